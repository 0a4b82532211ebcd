"""
Input validation functions for discussion mutations.

Provides validation for discussion numbers, titles, and bodies so that
obviously bad input is rejected before a GraphQL mutation is issued.
"""

# GitHub rejects discussion titles longer than this.
MAX_TITLE_LENGTH = 256


def format_validation_error(field_name: str, reason: str) -> str:
    """
    Generate consistent error message for validation failures.

    Args:
        field_name: Human-readable field name (e.g., "Title")
        reason: Description of validation failure (e.g., "cannot be empty")

    Returns:
        Formatted error message string
    """
    return f"{field_name} {reason}"


def validate_discussion_number(number: object) -> tuple[bool, str]:
    """
    Validate a discussion number.

    Returns:
        Tuple of (is_valid, error_message).
        Returns (True, "") if valid, (False, reason) if invalid.
    """
    # bool is an int subclass; reject it explicitly
    if isinstance(number, bool) or not isinstance(number, int):
        return (
            False,
            format_validation_error(
                "Discussion number", "must be an integer"
            ),
        )
    if number < 1:
        return (
            False,
            format_validation_error(
                "Discussion number", "must be a positive integer"
            ),
        )
    return (True, "")


def validate_title(title: str) -> tuple[bool, str]:
    """
    Validate a discussion title.

    Validation rules:
        - Cannot be empty or whitespace-only
        - Cannot contain a line break (the title is a single heading line)
        - Cannot exceed MAX_TITLE_LENGTH characters
    """
    if not title or not title.strip():
        return (False, format_validation_error("Title", "cannot be empty"))

    if "\n" in title or "\r" in title:
        return (
            False,
            format_validation_error(
                "Title", "cannot contain line breaks"
            ),
        )

    if len(title) > MAX_TITLE_LENGTH:
        return (
            False,
            format_validation_error(
                "Title",
                f"exceeds maximum length of {MAX_TITLE_LENGTH} characters",
            ),
        )

    return (True, "")


def validate_body(body: str, max_size: int = 65_536) -> tuple[bool, str]:
    """
    Validate a discussion or comment body.

    Args:
        body: The Markdown body to validate
        max_size: Maximum size in bytes (default: 65,536)

    Returns:
        Tuple of (is_valid, error_message).
    """
    if not body or not body.strip():
        return (False, format_validation_error("Body", "cannot be empty"))

    body_bytes = len(body.encode("utf-8"))
    if body_bytes > max_size:
        return (
            False,
            format_validation_error(
                "Body", f"exceeds maximum size of {max_size} bytes"
            ),
        )

    return (True, "")
