"""SQLAlchemy metadata registry import for Alembic."""

from toolwright.models import (
    Action,
    AgenticTool,
    CompositeTool,
    CompositeToolOperation,
    DriftReport,
    Integration,
    MaintenanceProposal,
    ScrapeJob,
    ValidationFailure,
)
from toolwright.models.base import Base

__all__ = [
    "Base",
    "Integration",
    "Action",
    "DriftReport",
    "ValidationFailure",
    "CompositeTool",
    "CompositeToolOperation",
    "AgenticTool",
    "MaintenanceProposal",
    "ScrapeJob",
]
