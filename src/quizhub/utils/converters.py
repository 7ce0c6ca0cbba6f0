"""Conversions between database models and pydantic schemas."""

from quizhub.models.user import UserModel
from quizhub.schemas.user import Role, User


def user_to_model(user: User) -> UserModel:
    return UserModel(
        user_id=user.user_id,
        email=user.email,
        password_hash=user.password_hash,
        name=user.name,
        avatar=user.avatar,
        role=user.role.value,
        is_active=user.is_active,
        email_verified=user.email_verified,
        two_factor_enabled=user.two_factor_enabled,
        last_login_at=user.last_login_at,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def model_to_user(model: UserModel) -> User:
    return User(
        user_id=model.user_id,
        email=model.email,
        password_hash=model.password_hash,
        name=model.name,
        avatar=model.avatar,
        role=Role(model.role),
        is_active=bool(model.is_active),
        email_verified=bool(model.email_verified),
        two_factor_enabled=bool(model.two_factor_enabled),
        last_login_at=model.last_login_at,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )
