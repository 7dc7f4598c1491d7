from fastapi import status


class FomiError(Exception):
    """Base class for domain failures that map onto an HTTP status."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(FomiError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Unauthorized"


class NotFoundError(FomiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Form not found"


class ValidationError(FomiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class TransportError(FomiError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Backend request failed"


class DecodeError(FomiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Malformed stored value"
