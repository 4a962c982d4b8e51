from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class ProductValidationException(HTTPException):
    def __init__(self, message: str = "Invalid product payload", **details: Any):
        payload: Dict[str, Any] = {"message": message}
        payload.update({k: v for k, v in details.items() if v is not None})
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=payload,
        )


class ProductNotFoundException(HTTPException):
    def __init__(self, detail: str = "Product not found"):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"message": detail},
        )


class ProductConflictException(HTTPException):
    def __init__(self, detail: str = "Duplicate slug or unique field"):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail={"message": detail},
        )


class CatalogInternalException(HTTPException):
    def __init__(self, detail: str = "Catalog operation failed", details: Optional[str] = None):
        payload: Dict[str, Any] = {"message": detail}
        if details:
            payload["details"] = details
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=payload,
        )
