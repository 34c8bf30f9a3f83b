"""Exception types raised by the training engine."""


class LifttrackError(Exception):
    """Base class for all engine errors."""

    pass


class NotFoundError(LifttrackError):
    """Raised when a referenced user, plan, session, set or exercise does not exist."""

    pass


class ValidationError(LifttrackError):
    """Raised when input is rejected before any write."""

    pass


class SessionStateError(LifttrackError):
    """
    Raised on an illegal session lifecycle transition.

    Examples: ending a session that already ended, or starting a session
    while another one is still in progress.
    """

    pass
