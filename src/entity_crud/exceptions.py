"""Domain exceptions raised by the CRUD pipeline.

Every pipeline stage either returns its output or raises one of these.
Exception handlers in main.py translate them into the standard
error envelope: {"error": {"code": "...", "message": "..."}}.
"""


class DomainError(Exception):
    """Base class for all domain exceptions."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(DomainError):
    """Raised when caller input is malformed, disallowed or inconsistent."""


class NotFoundError(DomainError):
    """Raised when a well-formed lookup matches no entity."""

    def __init__(self, entity: str, identifier: object) -> None:
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} with id {identifier} not found")


class PersistenceError(DomainError):
    """Raised when the backing store reports a failure.

    ``kind`` names the failed call (DBReadError, DBCreateError, DBSaveError,
    DBDeleteError); ``cause`` is the original exception.
    """

    def __init__(self, kind: str, cause: BaseException) -> None:
        self.kind = kind
        self.cause = cause
        super().__init__(f"{kind}: {cause}")
