"""QA export module.

Provides exporters for converting a task's QA list to downloadable formats.
"""

from __future__ import annotations

from pageqa.services.export.base import ExportMetadata, QAExporter
from pageqa.services.export.markdown import MarkdownExporter

_EXPORTERS: dict[str, type[QAExporter]] = {
    "markdown": MarkdownExporter,
}


def get_exporter(format: str = "markdown") -> QAExporter:
    """Return an exporter instance for ``format``.

    Raises:
        ValueError: If the format is not supported
    """
    exporter_class = _EXPORTERS.get(format)
    if exporter_class is None:
        raise ValueError(f"Unsupported export format: {format}")
    return exporter_class()


__all__ = [
    "ExportMetadata",
    "MarkdownExporter",
    "QAExporter",
    "get_exporter",
]
