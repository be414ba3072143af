from http import HTTPStatus
from typing import Any

from django.http import JsonResponse


class ComponentIdError(ValueError):
    """
    Raised when an element marked as a component has no `component-id`.

    Every component renderer is required to set the ID, so this is a programming
    error. It aborts the whole composition, no partial document is returned.
    """


class DuplicateHydrationKeyError(ValueError):
    """Raised when a hydration key is already set and overwriting was not allowed."""


class HttpError(Exception):
    """
    Uniform error for failures that should be mapped to an HTTP response.

    Carries the message, an HTTP status code, and optional structured details
    (e.g. the URL that failed, or the body the upstream server responded with).

    **Example:**

    ```python
    from django_assembly import HttpError

    def my_view(request):
        try:
            data = safe_fetch(lambda: fetch_profile(request.user.id))
        except HttpError as err:
            return err.to_response()
    ```
    """

    def __init__(self, message: str, status_code: int, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = int(status_code)
        self.details = details

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, {self.status_code}, details={self.details!r})"

    def to_dict(self) -> dict:
        return {
            "error": {
                "message": self.message,
                "statusCode": self.status_code,
                "details": self.details,
            },
        }

    def to_response(self) -> JsonResponse:
        """Render the error as a JSON response with the error's status code."""
        return JsonResponse(self.to_dict(), status=self.status_code)

    @classmethod
    def bad_request(cls, message: str = "Bad Request", details: Any = None) -> "HttpError":
        return cls(message, HTTPStatus.BAD_REQUEST, details)

    @classmethod
    def not_found(cls, message: str = "Not Found", details: Any = None) -> "HttpError":
        return cls(message, HTTPStatus.NOT_FOUND, details)

    @classmethod
    def server_error(cls, message: str = "Internal Server Error", details: Any = None) -> "HttpError":
        return cls(message, HTTPStatus.INTERNAL_SERVER_ERROR, details)

    @classmethod
    def timeout(cls, message: str = "Request Timeout", details: Any = None) -> "HttpError":
        return cls(message, HTTPStatus.REQUEST_TIMEOUT, details)
