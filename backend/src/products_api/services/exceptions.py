"""Product creation exceptions.

Raised by the service layer when a creation request cannot be fulfilled.
The API layer catches these and translates them into HTTP responses.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A single rule failure. ``field`` is None for whole-request rules."""

    field: str | None
    message: str


class ProductCreationError(Exception):
    """Base class for every failure raised by ``ProductService.create``."""


class ValidationFailed(ProductCreationError):
    """The request broke one or more structural or business rules."""

    def __init__(self, errors: list[FieldError] | str, field: str | None = None):
        if isinstance(errors, str):
            errors = [FieldError(field=field, message=errors)]
        self.errors = list(errors)
        super().__init__("; ".join(error.message for error in self.errors))


class ConstraintViolation(ValidationFailed):
    """The store rejected the insert because another writer took the SKU first."""

    def __init__(self, message: str = "SKU already exists."):
        super().__init__(message, field="sku")


class UnexpectedFailure(ProductCreationError):
    """Any other failure from the store or a collaborator.

    The message is safe to show to clients; the cause is chained.
    """

    def __init__(self, operation_id: str):
        self.operation_id = operation_id
        super().__init__(
            f"An unexpected error occurred while creating the product (operation {operation_id})."
        )
