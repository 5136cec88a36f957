# reading_portal/db/base.py
# Import every model so Base.metadata is complete for create_all / alembic.
from reading_portal.db.base_class import Base  # noqa
from reading_portal.models.user import User  # noqa
from reading_portal.models.story import Story, StoryProgress  # noqa
from reading_portal.models.form import Form  # noqa
from reading_portal.models.submission import Submission  # noqa
from reading_portal.models.permission import TeacherPermissionOverride  # noqa
from reading_portal.models.achievement import AchievementTitle, LeaderboardCacheEntry  # noqa
