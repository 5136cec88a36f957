# reading_portal/schemas/permission.py
from typing import Dict

from pydantic import BaseModel


class PermissionOverrideIn(BaseModel):
    permission_key: str
    is_enabled: bool


class TeacherPermissions(BaseModel):
    teacher_id: int
    teacher_name: str
    permission_level: str
    overrides: Dict[str, bool]
    permissions: Dict[str, bool]
