# reading_portal/schemas/user.py
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

PermissionLevel = Literal["full_access", "limited_access", "read_only", "no_access"]


class StudentCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    # admins must pass it; teachers create students in their own grade
    grade_level: int | None = Field(default=None, ge=1)


class StudentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    grade_level: int | None = Field(default=None, ge=1)


class TeacherCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    email: EmailStr | None = None
    access_code: str | None = Field(default=None, min_length=4, max_length=64)
    assigned_grade: int = Field(ge=1)
    permission_level: PermissionLevel = "full_access"


class TeacherUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)
    email: EmailStr | None = None
    assigned_grade: int | None = Field(default=None, ge=1)
    permission_level: PermissionLevel | None = None


class UserPublic(BaseModel):
    id: int
    name: str
    role: str
    grade_level: int | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class StudentPublic(UserPublic):
    access_code: str
    is_registered: bool = False


class TeacherPublic(UserPublic):
    access_code: str
    email: str | None = None
    permission_level: str | None = None
