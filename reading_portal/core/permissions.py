# reading_portal/core/permissions.py
"""
Teacher permission catalog.

A teacher's permission level gives a default on/off value for every permission
in the catalog; admins can then flip individual permissions per teacher
(stored in ``teacher_permission_overrides``).
"""
from typing import Dict, List, Mapping

FULL_ACCESS = "full_access"
LIMITED_ACCESS = "limited_access"
READ_ONLY = "read_only"
NO_ACCESS = "no_access"

PERMISSION_LEVELS = (FULL_ACCESS, LIMITED_ACCESS, READ_ONLY, NO_ACCESS)

PERMISSION_CATEGORIES: Dict[str, List[str]] = {
    "content": [
        "create_stories",
        "edit_stories",
        "delete_stories",
        "create_forms",
        "edit_forms",
        "delete_forms",
    ],
    "students": [
        "create_students",
        "view_students",
        "edit_students",
        "delete_students",
    ],
    "grading": [
        "grade_submissions",
        "view_grades",
        "edit_grades",
        "delete_grades",
    ],
    "analytics": [
        "view_analytics",
        "export_data",
        "view_reports",
    ],
}

# limited_access keeps these categories only
_LIMITED_CATEGORIES = ("content", "grading")


def permission_key(category: str, name: str) -> str:
    return f"{category}_{name}"


def all_permission_keys() -> List[str]:
    return [
        permission_key(category, name)
        for category, names in PERMISSION_CATEGORIES.items()
        for name in names
    ]


def is_permission_enabled(level: str, category: str, name: str) -> bool:
    if level == FULL_ACCESS:
        return True
    if level == LIMITED_ACCESS:
        return category in _LIMITED_CATEGORIES
    if level == READ_ONLY:
        return "view" in name
    # no_access and anything unknown
    return False


def permissions_for_level(level: str) -> Dict[str, bool]:
    return {
        permission_key(category, name): is_permission_enabled(level, category, name)
        for category, names in PERMISSION_CATEGORIES.items()
        for name in names
    }


def effective_permissions(level: str, overrides: Mapping[str, bool]) -> Dict[str, bool]:
    """Level defaults with per-teacher overrides applied on top."""
    perms = permissions_for_level(level)
    for key, enabled in overrides.items():
        if key in perms:
            perms[key] = bool(enabled)
    return perms
