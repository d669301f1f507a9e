"""
Adapters - External implementations of ports

This package contains implementations of the core ports:
- memory.py: In-process dataset repository
- filesystem.py: JSON-file dataset repository with snapshot recovery
- excel.py: openpyxl workbook renderer
- submission_api.py: httpx client for the remote submission API
"""
from .memory import InMemoryRepository
from .filesystem import JsonFileRepository
from .excel import ExcelReportRenderer
from .submission_api import HttpSubmissionGateway

__all__ = [
    "InMemoryRepository",
    "JsonFileRepository",
    "ExcelReportRenderer",
    "HttpSubmissionGateway",
]
