# reading_portal/schemas/auth.py
from pydantic import BaseModel, ConfigDict, Field


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    role: str


class TokenData(BaseModel):
    user_id: int | None = None
    role: str | None = None


class LoginRequest(BaseModel):
    access_code: str = Field(min_length=1)


class RegisterRequest(BaseModel):
    access_code: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=100)


class UserPublic(BaseModel):

    id: int
    name: str
    role: str
    grade_level: int | None = None
    is_registered: bool = False

    model_config = ConfigDict(from_attributes=True)
