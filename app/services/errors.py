"""Error taxonomy for the points ledger, inventory and redemption workflow.

Every error carries the HTTP status it maps to so the API layer can
surface it as a distinguishable kind instead of a generic message.
"""


class TrackerError(Exception):
    """Base class for business-rule failures raised by the service layer."""

    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(TrackerError):
    """A referenced user, store item or request does not exist."""

    status_code = 404


class InsufficientBalanceError(TrackerError):
    """A deduction would drive a student's balance below zero."""

    status_code = 409


class OutOfStockError(TrackerError):
    """A store item does not have enough stock for a reservation."""

    status_code = 409


class InvalidStateTransitionError(TrackerError):
    """A request was approved or rejected after reaching a terminal state."""

    status_code = 409


class DuplicateRequestError(TrackerError):
    """The student already has a pending request for the same item."""

    status_code = 409


class InvalidRequestError(TrackerError):
    """Input failed a business validation rule."""

    status_code = 400


class PermissionDeniedError(TrackerError):
    """The principal may not act on the target resource."""

    status_code = 403


class ConsistencyError(TrackerError):
    """A compensating or bundled action partially failed.

    Fatal: the enclosing transaction must be rolled back.
    """

    status_code = 500
