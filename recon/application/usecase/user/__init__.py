"""User use cases."""

from .approve_user import ApproveUserRequest, ApproveUserResponse, ApproveUserUseCase
from .list_users import ListUsersRequest, ListUsersResponse, ListUsersUseCase
from .set_password import SetPasswordRequest, SetPasswordResponse, SetPasswordUseCase

__all__ = [
    "ApproveUserRequest",
    "ApproveUserResponse",
    "ApproveUserUseCase",
    "ListUsersRequest",
    "ListUsersResponse",
    "ListUsersUseCase",
    "SetPasswordRequest",
    "SetPasswordResponse",
    "SetPasswordUseCase",
]
