"""Field validation for server registration requests."""

from ghe_registry.registry.models import (
    ErrorCode,
    FieldError,
    ServerCreateRequest,
    ServerRecord,
)

NOT_GITHUB_MESSAGE = "Specified URL is not a Github server"


def validate_required_fields(request: ServerCreateRequest) -> list[FieldError]:
    """Check that both ``name`` and ``apiUrl`` are present.

    Args:
        request: The incoming registration payload.

    Returns:
        Missing-field errors, ordered name then apiUrl.
    """
    errors: list[FieldError] = []

    if request.name is None:
        errors.append(
            FieldError(field="name", code=ErrorCode.MISSING, message="name is required")
        )
    if request.api_url is None:
        errors.append(
            FieldError(field="apiUrl", code=ErrorCode.MISSING, message="apiUrl is required")
        )

    return errors


def find_conflicts(
    by_name: ServerRecord | None,
    by_api_url: ServerRecord | None,
) -> list[FieldError]:
    """Build uniqueness errors for a candidate server.

    Both checks are independent; every collision is reported, name first.

    Args:
        by_name: Existing record that already uses the candidate name, if any.
        by_api_url: Existing record that already uses the candidate URL, if any.

    Returns:
        A list of ALREADY_EXISTS errors, empty when there are no collisions.
    """
    errors: list[FieldError] = []

    if by_name is not None:
        errors.append(
            FieldError(
                field="name",
                code=ErrorCode.ALREADY_EXISTS,
                message=f"name already exists for server at '{by_name.api_url}'",
            )
        )
    if by_api_url is not None:
        errors.append(
            FieldError(
                field="apiUrl",
                code=ErrorCode.ALREADY_EXISTS,
                message=f"apiUrl is already registered as '{by_api_url.name}'",
            )
        )

    return errors
