"""Validation helpers for dcdeploy configuration sources."""

from pydantic import ValidationError as PydanticValidationError


def flatten_pydantic_errors(exc: PydanticValidationError) -> list[str]:
    """Flatten a pydantic ValidationError into one message per field.

    Field locations are joined with dots, so an error on a service's cpu
    value reads "services.api.cpu: Input should be greater than 0".

    Args:
        exc: Pydantic ValidationError raised while validating a config source

    Returns:
        List of human-readable messages, never empty
    """
    messages: list[str] = []

    for error in exc.errors():
        loc = error.get("loc", ())
        field_path = ".".join(str(item) for item in loc) if loc else "<root>"
        msg = error.get("msg", "Unknown error")

        if error.get("type") in ("value_error", "extra_forbidden"):
            messages.append(f"{field_path}: {msg} (received: {error.get('input')!r})")
        else:
            messages.append(f"{field_path}: {msg}")

    return messages or ["Validation failed with unknown error"]


def format_config_errors(exc: PydanticValidationError) -> str:
    """Render a pydantic ValidationError as a single-line message."""
    return "; ".join(flatten_pydantic_errors(exc))
