"""ORM models package."""

from pageqa.models.qa_record import QARecord  # noqa: F401
from pageqa.models.task import Task, TaskStatus  # noqa: F401
