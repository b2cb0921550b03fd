"""Typed maintenance contracts shared by inference, lifecycle, and cascade code."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

ProposalStatus = Literal["pending", "approved", "rejected", "expired", "reverted"]
ProposalSeverity = Literal["info", "warning", "breaking"]
ProposalSource = Literal["inference", "rescrape"]
SchemaDirection = Literal["input", "output"]
ChangeType = Literal[
    "field_made_nullable",
    "field_type_changed",
    "field_added",
    "field_made_optional",
    "enum_value_added",
    "field_added_required",
]
ToolType = Literal["action", "composite", "agentic"]
SuggestionStatus = Literal["pending", "accepted", "skipped"]

OPEN_DRIFT_STATUSES: tuple[str, ...] = ("detected", "acknowledged")

VALID_PROPOSAL_TRANSITIONS: dict[str, tuple[str, ...]] = {
    "pending": ("approved", "rejected", "expired"),
    "approved": ("reverted",),
    "rejected": (),
    "expired": (),
    "reverted": (),
}

SEVERITY_RANK: dict[str, int] = {"info": 0, "warning": 1, "breaking": 2}


class ProposalChange(BaseModel):
    """One inferred edit applied to a proposed schema."""

    direction: SchemaDirection
    field_path: str
    change_type: ChangeType
    description: str
    drift_report_id: str
    before_value: Any = None
    after_value: Any = None


class AffectedTool(BaseModel):
    """Point-in-time reference to a tool that depends on an action."""

    tool_type: ToolType
    tool_id: str
    tool_name: str


class DescriptionSuggestion(BaseModel):
    """Suggested description text for one affected tool."""

    model_config = ConfigDict(validate_assignment=True)

    tool_type: ToolType
    tool_id: str
    tool_name: str
    current_description: str | None
    suggested_description: str
    status: SuggestionStatus = "pending"


class MaintenanceConfig(BaseModel):
    """Per-integration auto-maintenance settings."""

    enabled: bool = True
    auto_approve_info_level: bool = False
    rescrape_on_breaking: bool = False


@dataclass(slots=True, frozen=True)
class DriftSignal:
    """Open drift report as seen by the inference engine."""

    id: str
    action_id: str
    issue_code: str
    field_path: str
    severity: str = "info"
    status: str = "detected"

    @property
    def fingerprint(self) -> tuple[str, str]:
        """Key that pairs drift reports with validation failures."""

        return (self.issue_code, self.field_path)


@dataclass(slots=True, frozen=True)
class FailureRecord:
    """Aggregated validation failure statistics for one fingerprint."""

    action_id: str
    direction: SchemaDirection
    issue_code: str
    field_path: str
    expected_type: str | None = None
    received_type: str | None = None
    failure_count: int = 1

    @property
    def fingerprint(self) -> tuple[str, str]:
        """Key that pairs drift reports with validation failures."""

        return (self.issue_code, self.field_path)


@dataclass(slots=True)
class InferenceResult:
    """Proposed schemas plus the change list that produced them."""

    proposed_input_schema: dict[str, Any] | None = None
    proposed_output_schema: dict[str, Any] | None = None
    changes: list[ProposalChange] = field(default_factory=list)
    reasoning: str = ""


def highest_severity(severities: list[str]) -> ProposalSeverity:
    """Return the maximum severity using breaking > warning > info."""

    best: ProposalSeverity = "info"
    for value in severities:
        if SEVERITY_RANK.get(value, -1) > SEVERITY_RANK[best]:
            best = value  # type: ignore[assignment]
    return best


def severities_at_or_below(ceiling: ProposalSeverity | None) -> tuple[str, ...]:
    """Severities a batch approval with the given ceiling may touch."""

    if ceiling is None:
        return tuple(SEVERITY_RANK)
    limit = SEVERITY_RANK[ceiling]
    return tuple(level for level, rank in SEVERITY_RANK.items() if rank <= limit)
