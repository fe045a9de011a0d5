from typing import Optional

GENERIC_AUTH_MESSAGE = "Something went wrong. Please try again."

AUTH_ERROR_MESSAGES = {
    "auth/user-not-found": "Invalid email or password.",
    "auth/wrong-password": "Invalid email or password.",
    "auth/invalid-credential": "Invalid email or password.",
    "auth/invalid-email": "Please enter a valid email address.",
    "auth/user-disabled": "This account has been disabled.",
    "auth/email-already-in-use": "An account with this email already exists.",
    "auth/weak-password": "Password should be at least 6 characters.",
    "auth/too-many-requests": "Too many attempts. Please wait a moment and try again.",
    "auth/network-request-failed": "Network error. Please check your connection.",
    "auth/popup-closed-by-user": "Sign-in was cancelled.",
}


def auth_error_message(code: Optional[str]) -> str:
    if not code:
        return GENERIC_AUTH_MESSAGE
    return AUTH_ERROR_MESSAGES.get(code, GENERIC_AUTH_MESSAGE)


class AuthError(Exception):
    def __init__(self, code: str, status_code: int = 401) -> None:
        super().__init__(code)
        self.code = code
        self.status_code = status_code

    @property
    def message(self) -> str:
        return auth_error_message(self.code)


class BatchLimitError(Exception):
    """Raised when a batched write holds more operations than the store accepts."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"batch of {size} writes exceeds the limit of {limit}")
        self.size = size
        self.limit = limit
