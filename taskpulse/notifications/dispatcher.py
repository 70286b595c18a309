"""NotificationDispatcher — singleton that sends pushes through registered transports."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from taskpulse.notifications.channels import DeliveryResult, DispatchReport
from taskpulse.notifications.errors import DispatchError

if TYPE_CHECKING:
    from taskpulse.notifications.channels import PushTransport

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Sends one notification to a set of device tokens.

    Singleton accessed via ``NotificationDispatcher.get()``.
    """

    _instance: NotificationDispatcher | None = None

    def __init__(self) -> None:
        self._transports: dict[str, PushTransport] = {}
        self._default: str = ""

    @classmethod
    def get(cls) -> NotificationDispatcher:
        """Return the singleton instance, creating it if needed."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def _reset(cls) -> None:
        """Reset singleton — for tests only."""
        cls._instance = None

    def register_transport(self, transport: PushTransport) -> None:
        """Register a transport. Raises ValueError on duplicate name."""
        if transport.name in self._transports:
            msg = f"Transport '{transport.name}' is already registered"
            raise ValueError(msg)
        self._transports[transport.name] = transport

    def set_default_transport(self, name: str) -> None:
        """Set the default transport by name. Raises KeyError if not registered."""
        if name not in self._transports:
            msg = f"Transport '{name}' is not registered"
            raise KeyError(msg)
        self._default = name

    def list_transports(self) -> list[str]:
        return list(self._transports.keys())

    @property
    def default_transport_name(self) -> str:
        return self._default

    def _resolve_transport(self, name: str | None) -> PushTransport | None:
        """Resolve a transport: explicit name → default → only registered transport."""
        if name:
            return self._transports.get(name)
        if self._default:
            return self._transports.get(self._default)
        if len(self._transports) == 1:
            return next(iter(self._transports.values()))
        return None

    async def dispatch(
        self,
        tokens: list[str],
        title: str,
        body: str,
        *,
        transport: str | None = None,
    ) -> DispatchReport:
        """Send ``{title, body}`` to every token.

        An empty token list is a no-op. Individual token failures are
        reported, not raised.
        """
        if not tokens:
            return DispatchReport()

        tr = self._resolve_transport(transport)
        if tr is None:
            msg = f"No transport resolved for dispatch (requested={transport})"
            raise DispatchError(msg)

        try:
            results = await tr.send_multicast(list(tokens), title, body)
        except DispatchError:
            raise
        except Exception as exc:
            msg = f"Transport '{tr.name}' failed: {exc}"
            raise DispatchError(msg) from exc

        report = DispatchReport(results=list(results))
        # Tokens the transport did not answer for count as failed.
        answered = {r.token for r in report.results}
        for token in tokens:
            if token not in answered:
                report.results.append(
                    DeliveryResult(token=token, success=False, error="no result")
                )

        if report.failure_count:
            logger.warning(
                "Dispatch '%s' via %s: %d ok, %d failed",
                title,
                tr.name,
                report.success_count,
                report.failure_count,
            )
        else:
            logger.info("Dispatch '%s' via %s: %d ok", title, tr.name, report.success_count)
        return report
