"""Schemas for maintenance proposal endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, model_validator

from toolwright.maintenance.types import (
    AffectedTool,
    DescriptionSuggestion,
    ProposalChange,
    ProposalSeverity,
    ProposalSource,
    ProposalStatus,
)


class MaintenanceProposalRead(BaseModel):
    """Serialized maintenance proposal."""

    id: str
    integration_id: str
    tenant_id: str
    action_id: str
    status: ProposalStatus
    severity: ProposalSeverity
    source: ProposalSource
    current_input_schema: dict[str, Any]
    current_output_schema: dict[str, Any]
    proposed_input_schema: dict[str, Any] | None
    proposed_output_schema: dict[str, Any] | None
    changes: list[ProposalChange]
    reasoning: str
    drift_report_ids: list[str]
    affected_tools: list[AffectedTool] | None
    description_suggestions: list[DescriptionSuggestion] | None
    approved_at: datetime | None
    rejected_at: datetime | None
    expired_at: datetime | None
    reverted_at: datetime | None
    applied_at: datetime | None
    created_at: datetime
    updated_at: datetime


class ListProposalsQuery(BaseModel):
    """Filters and paging for proposal listings."""

    limit: int = Field(default=20, ge=1)
    offset: int = Field(default=0, ge=0)
    status: ProposalStatus | None = None
    severity: ProposalSeverity | None = None
    action_id: str | None = Field(default=None, min_length=1)


class ProposalListResponse(BaseModel):
    """Paginated proposal list payload."""

    items: list[MaintenanceProposalRead]
    total: int
    limit: int
    offset: int


class ProposalSummary(BaseModel):
    """Proposal counts by status for one integration."""

    pending: int = 0
    approved: int = 0
    rejected: int = 0
    expired: int = 0
    reverted: int = 0
    total: int = 0


class DescriptionDecision(BaseModel):
    """Reviewer decision for one description suggestion."""

    tool_id: str = Field(min_length=1)
    accept: bool


class DescriptionDecisionRequest(BaseModel):
    """Batch of accept/skip decisions."""

    decisions: list[DescriptionDecision]


class BatchApproveRequest(BaseModel):
    """Severity ceiling for batch approval; None approves every severity."""

    max_severity: ProposalSeverity | None = None


class BatchApproveResult(BaseModel):
    """Outcome counts for a batch approval."""

    approved: int
    failed: int


class GenerationResult(BaseModel):
    """Outcome of one generation pass over an integration."""

    proposals_created: int = 0
    actions_affected: int = 0
    expired_count: int = 0


class ExpirationResult(BaseModel):
    """Outcome of an expiration sweep."""

    expired_count: int


class RescrapeResult(BaseModel):
    """Whether a targeted re-scrape job was submitted."""

    action_id: str
    submitted: bool


class MaintenanceConfigUpdate(BaseModel):
    """Partial update for per-integration maintenance configuration."""

    enabled: bool | None = None
    auto_approve_info_level: bool | None = None
    rescrape_on_breaking: bool | None = None

    @model_validator(mode="after")
    def validate_non_empty_update(self) -> "MaintenanceConfigUpdate":
        if self.enabled is None and self.auto_approve_info_level is None and self.rescrape_on_breaking is None:
            raise ValueError("At least one field must be provided.")
        return self
