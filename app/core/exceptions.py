# app/core/exceptions.py
from typing import Optional

from fastapi import HTTPException, status


class PriceListError(HTTPException):
    """
    Base for every domain failure. Carries the HTTP status and a stable
    error code so the handler in app.main can render
    {statusCode, message, error}.
    """

    status_code_default: int = status.HTTP_400_BAD_REQUEST
    error: str = "PriceListError"

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(
            status_code=status_code or self.status_code_default,
            detail=message,
        )
        self.message = message

    def to_body(self) -> dict:
        return {
            "statusCode": self.status_code,
            "message": self.message,
            "error": self.error,
        }


class NotFound(PriceListError):
    status_code_default = status.HTTP_404_NOT_FOUND
    error = "NotFound"


class ValidationError(PriceListError):
    error = "ValidationError"


class InvalidConditionConfiguration(PriceListError):
    error = "InvalidConditionConfiguration"


class CannotRemoveOnlyDefault(PriceListError):
    error = "CannotRemoveOnlyDefault"

    def __init__(self, price_list_id: int):
        super().__init__(
            f"Price list {price_list_id} is the organization's only default; "
            "promote another price list to default first"
        )
        self.price_list_id = price_list_id


class CannotDeleteDefaultList(PriceListError):
    error = "CannotDeleteDefaultList"

    def __init__(self, price_list_id: int):
        super().__init__(
            f"Price list {price_list_id} is the default price list and cannot be deleted; "
            "promote another price list to default first"
        )
        self.price_list_id = price_list_id


class ConflictDefaultInvariant(PriceListError):
    status_code_default = status.HTTP_409_CONFLICT
    error = "ConflictDefaultInvariant"
