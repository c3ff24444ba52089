"""Domain exceptions raised by services and mapped to HTTP by the error handler."""


class HabitLedgerError(Exception):
    """Base exception for all habit ledger errors."""

    status_code = 400


class AuthenticationError(HabitLedgerError):
    """Caller has no resolvable identity."""

    status_code = 401

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class NotFoundError(HabitLedgerError):
    """Entity does not exist or belongs to another user.

    Both cases share this error so callers cannot discover other users' ids.
    """

    status_code = 404

    def __init__(self, entity: str = "Resource") -> None:
        super().__init__(f"{entity} not found")
        self.entity = entity


class QuotaExceededError(HabitLedgerError):
    """Plan-tier limit reached on creation."""

    status_code = 403

    def __init__(self, plan: str, limit: int, resource: str = "habits") -> None:
        super().__init__(
            f"Plan limit reached: {plan} plan allows {limit} active {resource}. "
            "Upgrade to Pro for unlimited."
        )
        self.plan = plan
        self.limit = limit
        self.resource = resource


class InvalidInputError(HabitLedgerError):
    """Request is well-formed but invalid against the stored entity."""

    status_code = 422


class ConflictError(HabitLedgerError):
    """Operation cannot be applied in the entity's current state."""

    status_code = 409
