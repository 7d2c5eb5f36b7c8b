class PetFunnyError(Exception):
    """Base class for errors reported back to the caller."""


class StorageError(PetFunnyError):
    """
    The persistence collaborator is unreachable or returned something unusable.
    Always retryable from the caller's point of view.
    """

    def __init__(self, message: str = "Storage unavailable, please try again."):
        super().__init__(message)
        self.message = message


class NotFoundError(PetFunnyError):
    def __init__(self, entity: str, entity_id):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class BookingRejected(PetFunnyError):
    """Raised by the booking lifecycle when admission refuses the (date, time)."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason
