from enum import StrEnum


class LogoutReason(StrEnum):
    """Why a session was ended.

    Only IDLE_TIMEOUT produces a notice to the user after sign-out.
    """

    USER = "user"
    UNAUTHORIZED = "unauthorized"
    IDLE_TIMEOUT = "idle_timeout"
