# Import all models so Alembic can discover them via Base.metadata
from .lesson import Lesson
from .program import Program
from .term import Term

__all__ = [
    "Lesson",
    "Program",
    "Term",
]
