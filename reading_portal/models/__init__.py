# reading_portal/models/__init__.py
from reading_portal.models.user import User  # noqa
from reading_portal.models.story import Story, StoryProgress  # noqa
from reading_portal.models.form import Form  # noqa
from reading_portal.models.submission import Submission  # noqa
from reading_portal.models.permission import TeacherPermissionOverride  # noqa
from reading_portal.models.achievement import AchievementTitle, LeaderboardCacheEntry  # noqa
