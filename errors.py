class ValidationError(ValueError):
    """A domain rule was violated."""


class NotFoundError(ValueError):
    """A referenced category, transaction or budget does not exist."""

    def __init__(self, resource: str, entity_id: object) -> None:
        self.resource = resource
        self.id = entity_id
        super().__init__(f"{resource} with ID {entity_id} not found")


class StoreError(RuntimeError):
    """The persistence layer failed; the underlying SQLAlchemy error is chained."""
