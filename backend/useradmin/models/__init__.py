from useradmin.models.user import User, UserStatus

__all__ = [
    "User",
    "UserStatus",
]
