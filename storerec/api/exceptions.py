"""Custom exceptions for the StoreRec API.

Defines specific exception types for better error handling and reporting.
"""

from typing import Any, Dict, Optional


class StoreRecException(Exception):
    """Base exception for StoreRec errors."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        """Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code for API responses
            details: Additional error details for debugging
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.details = details or {}


class DataNotFoundError(StoreRecException):
    """Raised when no catalog snapshot is available."""

    def __init__(self, data_dir: str, details: Optional[Dict[str, Any]] = None):
        message = f"Data not found at '{data_dir}'. Please build a snapshot first."
        super().__init__(
            message=message,
            status_code=503,
            details=details or {"data_dir": data_dir},
        )


class DataLoadError(StoreRecException):
    """Raised when the snapshot exists but fails to load."""

    def __init__(self, data_dir: str, error: Exception):
        message = f"Failed to load data from '{data_dir}': {str(error)}"
        super().__init__(
            message=message,
            status_code=500,
            details={
                "data_dir": data_dir,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )


class UserNotFoundError(StoreRecException):
    """Raised when a user has no record in the interaction store."""

    def __init__(self, user_id: int):
        super().__init__(
            message=f"User {user_id} not found",
            status_code=404,
            details={"user_id": user_id},
        )


class ProductNotFoundError(StoreRecException):
    """Raised when a product is not in the catalog."""

    def __init__(self, product_id: int):
        super().__init__(
            message=f"Product {product_id} not found",
            status_code=404,
            details={"product_id": product_id},
        )


class RecommendationError(StoreRecException):
    """Raised when recommendation generation fails."""

    def __init__(self, user_id: Optional[int], error: Exception):
        subject = f"user {user_id}" if user_id is not None else "request"
        message = f"Failed to generate recommendations for {subject}: {str(error)}"
        super().__init__(
            message=message,
            status_code=500,
            details={
                "user_id": user_id,
                "error": str(error),
                "error_type": type(error).__name__,
            },
        )
