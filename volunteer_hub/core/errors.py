"""Error taxonomy shared by the ledger, the event repository and the routes.

Every error carries a ``message`` that is safe to show to the end user as is.
The HTTP layer maps each class to a status code in ``volunteer_hub.main``.
"""

from pydantic import ValidationError as PydanticValidationError


class VolunteerHubError(Exception):
    """Base class for errors the user is expected to see."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(VolunteerHubError):
    """Missing or malformed input. Nothing was written."""

    status_code = 422


class CapacityError(VolunteerHubError):
    """The event has no free present slot. Nothing was written."""

    status_code = 409

    def __init__(self, message: str = "The event is full"):
        super().__init__(message)


class NotFoundError(VolunteerHubError):
    status_code = 404


class PermissionDeniedError(VolunteerHubError):
    status_code = 403

    def __init__(self, message: str = "Organizer access required"):
        super().__init__(message)


class ConflictError(VolunteerHubError):
    """A concurrent writer kept changing the same registration."""

    status_code = 409


def validate_input(model, data):
    """Return ``data`` as an instance of the pydantic ``model``.

    Instances pass through untouched; anything else is validated and
    pydantic's errors are turned into a single ValidationError.
    """
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in error['loc']) or 'input'}: {error['msg']}"
            for error in e.errors()
        )
        raise ValidationError(f"Invalid input - {problems}") from e
