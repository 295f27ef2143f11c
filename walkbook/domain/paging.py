"""Page/limit validation shared by the listing operations."""

from .exceptions import ValidationError


def page_offset(page: int, limit: int, max_limit: int) -> int:
    """
    Validate page parameters and return the row offset.

    Raises:
        ValidationError: If page < 1 or limit is outside 1..max_limit
    """
    if page < 1:
        raise ValidationError("page must be at least 1")
    if limit < 1 or limit > max_limit:
        raise ValidationError(f"limit must be between 1 and {max_limit}")
    return (page - 1) * limit
