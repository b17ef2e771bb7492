"""Domain exception classes for the CMS service.

Raised by service-layer code; controllers map them to HTTP responses and
the publisher's scheduler contains them at the sweep boundary.
"""


class ProgramNotFoundError(Exception):
    def __init__(self, program_id: str = ""):
        self.program_id = program_id
        super().__init__(f"Program not found: {program_id}")


class LessonNotFoundError(Exception):
    def __init__(self, lesson_id: str = ""):
        self.lesson_id = lesson_id
        super().__init__(f"Lesson not found: {lesson_id}")


class OrphanLessonError(Exception):
    """Raised when a claimed lesson's owning program row does not exist.

    Aborts the whole sweep transaction.
    """

    def __init__(self, lesson_id: str = "", program_id: str = ""):
        self.lesson_id = lesson_id
        self.program_id = program_id
        super().__init__(f"Lesson {lesson_id} references missing program {program_id}")


class InvalidStatusTransitionError(Exception):
    """Raised when a lesson status transition is not allowed."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot transition from {current} to {target}")


class PublishAtRequiredError(Exception):
    """Raised when scheduling a lesson without a publish_at time."""

    def __init__(self) -> None:
        super().__init__("publish_at is required for scheduling")
