"""TokenRegistry — read-only lookup of a user's push tokens."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from taskpulse.tasks.store import TaskStore


class TokenRegistry:
    """Resolves the push tokens registered for a user.

    Args:
        store: TaskStore holding the ``device_tokens`` collection.
    """

    def __init__(self, store: TaskStore) -> None:
        self._store = store

    async def tokens_for(self, user_id: str) -> list[str]:
        """Distinct push tokens for *user_id*, in registration order."""
        seen: dict[str, None] = {}
        for device in await self._store.list_device_tokens(user_id):
            seen.setdefault(device.push_token, None)
        return list(seen)
