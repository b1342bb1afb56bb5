"""
Service layer for the assessment lifecycle.

Services take a SQLAlchemy session and an explicit Caller, raise
linxiq.core.exceptions errors, and never raise HTTPException.
"""
from .assignments import AssignmentLedger
from .catalog import CatalogQuestion, CatalogTest, SqlCatalog
from .notifications import LoggingNotifier, Notifier
from .results import BatchItem, BatchReport, ResultStore
from .sessions import SessionManager

__all__ = [
    "AssignmentLedger",
    "CatalogQuestion",
    "CatalogTest",
    "SqlCatalog",
    "LoggingNotifier",
    "Notifier",
    "BatchItem",
    "BatchReport",
    "ResultStore",
    "SessionManager",
]
