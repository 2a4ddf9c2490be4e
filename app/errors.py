from enum import Enum

from fastapi import status


class ErrorKind(str, Enum):
    UNAUTHORIZED = "UNAUTHORIZED"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    NO_SOCIAL_PROFILE_FOUND = "NO_SOCIAL_PROFILE_FOUND"
    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"
    WALLET_MISSING = "WALLET_MISSING"
    INVALID_INVITE_CODE = "INVALID_INVITE_CODE"
    CODE_ALREADY_USED = "CODE_ALREADY_USED"
    CHALLENGE_EXPIRED = "CHALLENGE_EXPIRED"
    INVALID_SIGNATURE = "INVALID_SIGNATURE"
    INVALID_REQUEST = "INVALID_REQUEST"
    USERNAME_INVALID_FORMAT = "USERNAME_INVALID_FORMAT"
    SOMETHING_WENT_WRONG = "SOMETHING_WENT_WRONG"


ERROR_STATUS_CODES = {
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.USER_NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.NO_SOCIAL_PROFILE_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.USER_ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.SOMETHING_WENT_WRONG: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class UserServiceError(Exception):
    """
    Expected domain failure raised by the service layer.

    Carries only an ``ErrorKind``; the HTTP layer turns it into an
    ``{"error": kind}`` body with the matching status code.
    """

    def __init__(self, kind: ErrorKind):
        super().__init__(kind.value)
        self.kind = kind

    @property
    def status_code(self) -> int:
        return ERROR_STATUS_CODES.get(self.kind, status.HTTP_400_BAD_REQUEST)
