from uuid import UUID
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON bodies use camelCase keys; Python code uses snake_case."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class RegisterUserRequest(CamelModel):
    email: EmailStr
    # bcrypt only looks at the first 72 bytes
    password: str = Field(..., min_length=8, max_length=72)
    display_name: str | None = Field(default=None, max_length=100)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if not v.strip():
            raise ValueError('Password cannot be blank')
        return v

    @field_validator('display_name')
    @classmethod
    def validate_display_name(cls, v):
        if v is None:
            return v
        return v.strip() or None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)

    @field_validator('refresh_token')
    @classmethod
    def validate_refresh_token(cls, v):
        if not v.strip():
            raise ValueError('Refresh token cannot be blank')
        return v


class UserResponse(CamelModel):
    """User data without sensitive information."""
    id: UUID
    email: str
    display_name: str | None = None


class TokenPair(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class AuthResponse(TokenPair):
    user: UserResponse


class TokenData(BaseModel):
    user_id: UUID
