"""Push notification delivery."""

from taskpulse.notifications.channels import DeliveryResult, DispatchReport, PushTransport
from taskpulse.notifications.dispatcher import NotificationDispatcher
from taskpulse.notifications.errors import DispatchError
from taskpulse.notifications.log_transport import LogTransport
from taskpulse.notifications.tokens import TokenRegistry

__all__ = [
    "DeliveryResult",
    "DispatchError",
    "DispatchReport",
    "LogTransport",
    "NotificationDispatcher",
    "PushTransport",
    "TokenRegistry",
]
