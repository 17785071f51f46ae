"""Markdown exporter for generated QA lists."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pageqa.services.export.base import ExportMetadata, QAExporter

if TYPE_CHECKING:
    from pageqa.models.qa_record import QARecord


class MarkdownExporter(QAExporter):
    """Export a task's QA list to Markdown."""

    @property
    def content_type(self) -> str:
        return "text/markdown"

    @property
    def file_extension(self) -> str:
        return "md"

    def export(
        self,
        records: list[QARecord],
        metadata: ExportMetadata | None,
    ) -> bytes:
        lines: list[str] = []

        if metadata:
            lines.extend(
                [
                    f"# {metadata.title or 'Untitled'}",
                    "",
                    f"**Source**: {metadata.url}  ",
                    f"**Task ID**: `{metadata.task_id}`  ",
                    f"**Category**: {metadata.category}  ",
                    f"**Questions**: {metadata.qa_count}  ",
                    f"**Quality**: {metadata.quality_score:.1f}/5  ",
                    f"**Exported**: {metadata.export_date.strftime('%Y-%m-%d %H:%M:%S UTC')}",
                ]
            )
            if metadata.keywords:
                lines.append("")
                lines.append("**Keywords**: " + ", ".join(metadata.keywords))
            lines.extend(["", "---", ""])

        for record in records:
            lines.append(f"## {record.order}. {record.question}")
            lines.append("")
            lines.append(f"*{record.type} · {record.difficulty}*")
            lines.append("")
            lines.append(record.answer)
            if record.tags:
                lines.append("")
                lines.append(" ".join(f"`{tag}`" for tag in record.tags))
            lines.append("")

        return "\n".join(lines).encode("utf-8")
