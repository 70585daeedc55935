"""Domain layer errors."""


class DomainError(Exception):
    """Base domain error."""

    pass


class ValidationError(DomainError):
    """Domain validation error."""

    pass


class InvariantViolationError(DomainError):
    """Raised when an aggregate would be built in an inconsistent state."""

    pass


class StateAllocationError(DomainError):
    """Raised when no unique handshake state could be stored."""

    pass


class NotFoundError(DomainError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str):
        self.resource = resource
        self.identifier = identifier
        super().__init__(f"{resource} not found: {identifier}")


class OutOfRangeError(DomainError):
    """Raised when a 1-based account position is outside the valid range."""

    def __init__(self, position: int, lower: int, upper: int):
        self.position = position
        self.lower = lower
        self.upper = upper
        super().__init__(
            f"Invalid account number. Please choose between {lower} and {upper}"
        )


class ConcurrencyConflictError(DomainError):
    """Raised when a compare-and-swap save loses against a concurrent writer."""

    def __init__(self, resource: str, identifier: str, expected_version: int):
        self.resource = resource
        self.identifier = identifier
        self.expected_version = expected_version
        super().__init__(
            f"{resource} {identifier} was modified concurrently "
            f"(expected version {expected_version})"
        )
