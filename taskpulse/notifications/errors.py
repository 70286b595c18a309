"""Notification errors."""


class DispatchError(Exception):
    """A push request failed as a whole (auth, network, no transport).

    Failures of individual tokens are never raised; they come back as
    unsuccessful ``DeliveryResult`` entries.
    """
