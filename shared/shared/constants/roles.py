from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    EDITOR = "editor"
    VIEWER = "viewer"


# Roles allowed to change lesson/program content and publication state
EDITING_ROLES = frozenset({Role.ADMIN, Role.EDITOR})
# Roles allowed to read CMS (non-public) views
READING_ROLES = frozenset({Role.ADMIN, Role.EDITOR, Role.VIEWER})
