"""PushTransport protocol — interface for every push delivery backend."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of sending one notification to one token."""

    token: str
    success: bool
    error: str | None = None


@dataclass
class DispatchReport:
    """Per-token outcomes of one dispatch."""

    results: list[DeliveryResult] = field(default_factory=list)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failure_count(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def failed_tokens(self) -> list[str]:
        return [r.token for r in self.results if not r.success]


@runtime_checkable
class PushTransport(Protocol):
    """Protocol that all push transports must satisfy."""

    @property
    def name(self) -> str:
        """Unique transport identifier (e.g. 'fcm', 'log')."""
        ...

    async def send_multicast(
        self, tokens: list[str], title: str, body: str
    ) -> list[DeliveryResult]:
        """Send one notification to every token.

        Returns one result per token. Raises ``DispatchError`` only when the
        request cannot be made at all.
        """
        ...
