"""ORM models package exports."""

from toolwright.models.action import Action
from toolwright.models.agentic_tool import AgenticTool
from toolwright.models.composite_tool import CompositeTool, CompositeToolOperation
from toolwright.models.drift_report import DriftReport
from toolwright.models.integration import Integration
from toolwright.models.maintenance_proposal import MaintenanceProposal
from toolwright.models.scrape_job import ScrapeJob
from toolwright.models.validation_failure import ValidationFailure

__all__ = [
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
