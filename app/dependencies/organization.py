from typing import Optional

from fastapi import Header

from app.core.exceptions import ValidationError


def get_organization_id(
    x_organization_id: Optional[str] = Header(default=None, alias="X-Organization-ID"),
) -> int:
    """Resolve the caller's organization from the X-Organization-ID header."""
    if x_organization_id is None or not x_organization_id.strip():
        raise ValidationError("X-Organization-ID header is required")

    try:
        organization_id = int(x_organization_id.strip())
    except ValueError:
        raise ValidationError("X-Organization-ID must be a positive integer")

    if organization_id < 1:
        raise ValidationError("X-Organization-ID must be a positive integer")
    return organization_id
