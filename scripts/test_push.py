#!/usr/bin/env python3
"""Send a test push notification to every registered device of one user.

Usage examples:
    # Through the configured transport (FCM by default)
    uv run python scripts/test_push.py <user_id>

    # Dry run through the logging transport
    uv run python scripts/test_push.py <user_id> --transport log

    # Custom text
    uv run python scripts/test_push.py <user_id> --title "Hi" --body "Testing"
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Allow running from project root
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from taskpulse.config import settings
from taskpulse.notifications.dispatcher import NotificationDispatcher
from taskpulse.notifications.errors import DispatchError
from taskpulse.notifications.log_transport import LogTransport
from taskpulse.notifications.tokens import TokenRegistry
from taskpulse.tasks.store import TaskStore

DEFAULT_TITLE = "🚀 Test Push"
DEFAULT_BODY = "This is a test push notification from taskpulse."


async def send_test_push(user_id: str, title: str, body: str, transport: str) -> int:
    """Push to *user_id*'s devices. Returns a process exit code."""
    tokens = await TokenRegistry(TaskStore.get()).tokens_for(user_id)
    if not tokens:
        print(f"No device tokens found for user {user_id}.", file=sys.stderr)
        return 1

    dispatcher = NotificationDispatcher.get()
    if transport == "log":
        dispatcher.register_transport(LogTransport())
    else:
        from taskpulse.notifications.fcm_transport import FCMTransport

        dispatcher.register_transport(FCMTransport())

    try:
        report = await dispatcher.dispatch(tokens, title, body, transport=transport)
    except DispatchError as exc:
        print(f"Error sending test notification: {exc}", file=sys.stderr)
        return 2

    print(f"Notification sent: {report.success_count} ok, {report.failure_count} failed.")
    for result in report.results:
        if not result.success:
            print(f"  {result.token[:16]}…  {result.error}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Send a test push to one user's devices")
    parser.add_argument("user_id", help="Owner of the device tokens")
    parser.add_argument("--title", default=DEFAULT_TITLE)
    parser.add_argument("--body", default=DEFAULT_BODY)
    parser.add_argument(
        "--transport",
        choices=["fcm", "log"],
        default=settings.push_transport,
        help="Push transport (default: PUSH_TRANSPORT)",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s - %(message)s")
    sys.exit(asyncio.run(send_test_push(args.user_id, args.title, args.body, args.transport)))


if __name__ == "__main__":
    main()
