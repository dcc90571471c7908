"""CSV exports."""

from basecamp.export.csv_exporter import (
    CSV_CONTENT_TYPE,
    ExportFile,
    submissions_csv,
    submissions_report_csv,
    whitelist_csv,
)

__all__ = [
    "CSV_CONTENT_TYPE",
    "ExportFile",
    "submissions_csv",
    "submissions_report_csv",
    "whitelist_csv",
]
