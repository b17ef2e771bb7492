import enum

from sqlalchemy import Enum as SAEnum


class ProgramStatus(str, enum.Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class LessonStatus(str, enum.Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    PUBLISHED = "published"


class ContentType(str, enum.Enum):
    VIDEO = "video"
    ARTICLE = "article"


def _values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


# Shared SQLAlchemy Enum instances (reuse across models to avoid duplicate type creation).
# Native PG enum types on PostgreSQL, VARCHAR + CHECK elsewhere; the stored value is the lowercase value.
program_status_enum = SAEnum(ProgramStatus, name="program_status", values_callable=_values)
lesson_status_enum = SAEnum(LessonStatus, name="lesson_status", values_callable=_values)
content_type_enum = SAEnum(ContentType, name="content_type", values_callable=_values)
