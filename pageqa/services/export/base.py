"""Abstract base class for QA exporters.

Defines the interface that all QA exporter implementations must follow.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pageqa.models.qa_record import QARecord


@dataclass
class ExportMetadata:
    """Task details printed above the QA list."""

    title: str
    url: str
    task_id: str
    export_date: datetime
    qa_count: int
    quality_score: float
    category: str = "other"
    keywords: list[str] = field(default_factory=list)


class QAExporter(ABC):
    """Abstract base class for QA exporters."""

    @property
    @abstractmethod
    def content_type(self) -> str:
        """MIME type for the export format."""
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """File extension for the export format."""
        pass

    @abstractmethod
    def export(
        self,
        records: list[QARecord],
        metadata: ExportMetadata | None,
    ) -> bytes:
        """Generate export content from QA records.

        Args:
            records: QA records to export (ordered by question order)
            metadata: Task metadata (None to skip the header)

        Returns:
            Binary content of the export file
        """
        pass

    def generate_filename(self, identifier: str) -> str:
        """Generate filename for the export.

        Args:
            identifier: Unique identifier for the export (e.g., task_id)

        Returns:
            Filename with timestamp and proper extension
        """
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
        short_id = identifier[:8] if len(identifier) > 8 else identifier
        return f"qa-export-{short_id}-{timestamp}.{self.file_extension}"
