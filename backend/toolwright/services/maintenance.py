"""Maintenance proposal lifecycle: generation, review transitions, and expiry."""

from __future__ import annotations

import copy
import logging
from collections import defaultdict
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from toolwright.config import get_settings
from toolwright.maintenance.errors import (
    InvalidMaintenanceInputError,
    InvalidProposalTransitionError,
    ProposalConflictError,
    ProposalNotFoundError,
    RevertError,
    SchemaApplicationError,
)
from toolwright.maintenance.inference import infer_schema_updates
from toolwright.maintenance.types import (
    OPEN_DRIFT_STATUSES,
    SEVERITY_RANK,
    VALID_PROPOSAL_TRANSITIONS,
    DescriptionSuggestion,
    DriftSignal,
    FailureRecord,
    MaintenanceConfig,
    ProposalChange,
    highest_severity,
    severities_at_or_below,
)
from toolwright.models.action import Action
from toolwright.models.drift_report import DriftReport
from toolwright.models.integration import Integration
from toolwright.models.maintenance_proposal import MaintenanceProposal
from toolwright.models.validation_failure import ValidationFailure
from toolwright.schemas.maintenance import (
    BatchApproveResult,
    DescriptionDecisionRequest,
    GenerationResult,
    ListProposalsQuery,
    MaintenanceConfigUpdate,
    MaintenanceProposalRead,
    ProposalListResponse,
    ProposalSummary,
)
from toolwright.services.affected_tools import find_affected_tools
from toolwright.services.description_cascade import apply_suggestion, generate_description_suggestions
from toolwright.services.rescrape import RescrapeTrigger, ScrapeJobRescrapeTrigger, trigger_action_rescrape
from toolwright.services.tool_descriptions import ToolDescriptionGenerator

logger = logging.getLogger(__name__)


def list_proposals(
    db: Session,
    tenant_id: str,
    integration_id: str,
    query: ListProposalsQuery | dict[str, Any] | None = None,
) -> ProposalListResponse:
    """List proposals for an integration, newest first."""

    params = _validate_query(query)
    stmt = select(MaintenanceProposal).where(
        MaintenanceProposal.tenant_id == tenant_id,
        MaintenanceProposal.integration_id == integration_id,
    )
    if params.status is not None:
        stmt = stmt.where(MaintenanceProposal.status == params.status)
    if params.severity is not None:
        stmt = stmt.where(MaintenanceProposal.severity == params.severity)
    if params.action_id is not None:
        stmt = stmt.where(MaintenanceProposal.action_id == params.action_id)

    total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
    rows = db.scalars(
        stmt.order_by(MaintenanceProposal.created_at.desc(), MaintenanceProposal.id.desc())
        .limit(params.limit)
        .offset(params.offset)
    )
    return ProposalListResponse(
        items=[to_proposal_read(row) for row in rows],
        total=int(total),
        limit=params.limit,
        offset=params.offset,
    )


def get_proposal(db: Session, tenant_id: str, proposal_id: str) -> MaintenanceProposal:
    """Load one proposal scoped to the tenant."""

    proposal = db.scalar(
        select(MaintenanceProposal).where(
            MaintenanceProposal.id == proposal_id,
            MaintenanceProposal.tenant_id == tenant_id,
        )
    )
    if proposal is None:
        raise ProposalNotFoundError(proposal_id)
    return proposal


def get_proposal_summary(db: Session, tenant_id: str, integration_id: str) -> ProposalSummary:
    """Count proposals per status for one integration."""

    rows = db.execute(
        select(MaintenanceProposal.status, func.count())
        .where(
            MaintenanceProposal.tenant_id == tenant_id,
            MaintenanceProposal.integration_id == integration_id,
        )
        .group_by(MaintenanceProposal.status)
    ).all()
    counts = {status: int(count) for status, count in rows}
    return ProposalSummary(
        pending=counts.get("pending", 0),
        approved=counts.get("approved", 0),
        rejected=counts.get("rejected", 0),
        expired=counts.get("expired", 0),
        reverted=counts.get("reverted", 0),
        total=sum(counts.values()),
    )


def create_proposal(
    db: Session,
    tenant_id: str,
    action_id: str,
    *,
    drift_reports: list[DriftReport] | None = None,
    source: str = "inference",
) -> MaintenanceProposal | None:
    """Infer schema edits for an action and persist them as a pending proposal.

    Returns None when the open drift reports do not translate into any schema
    change. Raises ProposalConflictError when the action already has a pending
    proposal.
    """

    action = db.scalar(select(Action).where(Action.id == action_id, Action.tenant_id == tenant_id))
    if action is None:
        raise InvalidMaintenanceInputError(f"Action not found: {action_id}", status_code=404)
    if _has_pending_proposal(db, action_id):
        raise ProposalConflictError(action_id)

    if drift_reports is None:
        drift_reports = list(
            db.scalars(
                select(DriftReport)
                .where(
                    DriftReport.action_id == action_id,
                    DriftReport.tenant_id == tenant_id,
                    DriftReport.status.in_(OPEN_DRIFT_STATUSES),
                )
                .order_by(DriftReport.created_at.asc(), DriftReport.id.asc())
            )
        )
    if not drift_reports:
        return None

    current_input = copy.deepcopy(action.input_schema_json or {})
    current_output = copy.deepcopy(action.output_schema_json or {})
    result = infer_schema_updates(
        action_id,
        [_to_signal(report) for report in drift_reports],
        _load_failures(db, action_id, tenant_id),
        current_input,
        current_output,
    )
    if not result.changes:
        return None

    proposal = MaintenanceProposal(
        integration_id=action.integration_id,
        tenant_id=tenant_id,
        action_id=action_id,
        status="pending",
        severity=highest_severity([report.severity for report in drift_reports]),
        source=source,
        current_input_schema_json=current_input,
        current_output_schema_json=current_output,
        proposed_input_schema_json=result.proposed_input_schema,
        proposed_output_schema_json=result.proposed_output_schema,
        changes_json=[change.model_dump(mode="json") for change in result.changes],
        reasoning=result.reasoning,
        drift_report_ids_json=[report.id for report in drift_reports],
        affected_tools_json=[
            tool.model_dump(mode="json") for tool in find_affected_tools(db, action_id, tenant_id=tenant_id)
        ],
    )
    db.add(proposal)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ProposalConflictError(action_id) from exc
    db.refresh(proposal)
    logger.info(
        "maintenance.proposal_created proposal_id=%s action_id=%s severity=%s change_count=%d",
        proposal.id,
        action_id,
        proposal.severity,
        len(result.changes),
    )
    return proposal


def approve_proposal(
    db: Session,
    tenant_id: str,
    proposal_id: str,
    *,
    generate_suggestions: bool = True,
    generator: ToolDescriptionGenerator | None = None,
) -> MaintenanceProposal:
    """Apply a pending proposal's schemas and resolve its drift reports.

    The schema write, drift resolution, and status change commit together. The
    description cascade runs afterwards and cannot undo the approval.
    """

    proposal = get_proposal(db, tenant_id, proposal_id)
    _ensure_transition(proposal, "approved")

    try:
        action = db.scalar(select(Action).where(Action.id == proposal.action_id))
        if action is None:
            raise LookupError(f"action {proposal.action_id} no longer exists")
        if proposal.proposed_input_schema_json is not None:
            action.input_schema_json = copy.deepcopy(proposal.proposed_input_schema_json)
        if proposal.proposed_output_schema_json is not None:
            action.output_schema_json = copy.deepcopy(proposal.proposed_output_schema_json)

        now = _utcnow()
        for report in _referenced_drift_reports(db, proposal):
            if report.status in OPEN_DRIFT_STATUSES:
                report.status = "resolved"
                report.resolved_at = now

        proposal.status = "approved"
        proposal.approved_at = now
        proposal.applied_at = now
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.exception("maintenance.approve_failed proposal_id=%s", proposal_id)
        raise SchemaApplicationError(proposal_id, str(exc)) from exc

    logger.info("maintenance.proposal_approved proposal_id=%s action_id=%s", proposal_id, proposal.action_id)
    if generate_suggestions:
        run_description_cascade(db, proposal, generator=generator)
    return proposal


def run_description_cascade(
    db: Session,
    proposal: MaintenanceProposal,
    *,
    generator: ToolDescriptionGenerator | None = None,
) -> list[DescriptionSuggestion]:
    """Generate and store description suggestions for an approved proposal.

    Failures are logged and reported as an empty suggestion list.
    """

    proposal_id = proposal.id
    try:
        suggestions = generate_description_suggestions(
            db,
            proposal.action_id,
            tenant_id=proposal.tenant_id,
            generator=generator,
        )
        proposal.description_suggestions_json = [suggestion.model_dump(mode="json") for suggestion in suggestions]
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("maintenance.cascade_failed proposal_id=%s", proposal_id)
        return []
    logger.info("maintenance.cascade_completed proposal_id=%s suggestions=%d", proposal_id, len(suggestions))
    return suggestions


def reject_proposal(db: Session, tenant_id: str, proposal_id: str) -> MaintenanceProposal:
    """Reject a pending proposal; its drift reports stay open."""

    proposal = get_proposal(db, tenant_id, proposal_id)
    _ensure_transition(proposal, "rejected")
    proposal.status = "rejected"
    proposal.rejected_at = _utcnow()
    db.commit()
    db.refresh(proposal)
    return proposal


def revert_proposal(db: Session, tenant_id: str, proposal_id: str) -> MaintenanceProposal:
    """Restore the pre-approval schemas and reopen the proposal's drift reports.

    Accepted description suggestions are kept.
    """

    proposal = get_proposal(db, tenant_id, proposal_id)
    _ensure_transition(proposal, "reverted")

    try:
        action = db.scalar(select(Action).where(Action.id == proposal.action_id))
        if action is None:
            raise LookupError(f"action {proposal.action_id} no longer exists")
        action.input_schema_json = copy.deepcopy(proposal.current_input_schema_json)
        action.output_schema_json = copy.deepcopy(proposal.current_output_schema_json)

        for report in _referenced_drift_reports(db, proposal):
            report.status = "detected"
            report.resolved_at = None

        proposal.status = "reverted"
        proposal.reverted_at = _utcnow()
        db.commit()
    except Exception as exc:
        db.rollback()
        logger.exception("maintenance.revert_failed proposal_id=%s", proposal_id)
        raise RevertError(proposal_id, str(exc)) from exc

    logger.info("maintenance.proposal_reverted proposal_id=%s action_id=%s", proposal_id, proposal.action_id)
    db.refresh(proposal)
    return proposal


def batch_approve_by_integration(
    db: Session,
    tenant_id: str,
    integration_id: str,
    max_severity: str | None = None,
    *,
    generator: ToolDescriptionGenerator | None = None,
) -> BatchApproveResult:
    """Approve every pending proposal at or below a severity ceiling, one at a time."""

    if max_severity is not None and max_severity not in SEVERITY_RANK:
        raise InvalidMaintenanceInputError(f"Unknown severity: {max_severity}")
    proposal_ids = list(
        db.scalars(
            select(MaintenanceProposal.id)
            .where(
                MaintenanceProposal.tenant_id == tenant_id,
                MaintenanceProposal.integration_id == integration_id,
                MaintenanceProposal.status == "pending",
                MaintenanceProposal.severity.in_(severities_at_or_below(max_severity)),
            )
            .order_by(MaintenanceProposal.created_at.asc(), MaintenanceProposal.id.asc())
        )
    )

    approved = 0
    failed = 0
    for proposal_id in proposal_ids:
        try:
            approve_proposal(db, tenant_id, proposal_id, generator=generator)
            approved += 1
        except Exception:
            logger.exception("maintenance.batch_approve_item_failed proposal_id=%s", proposal_id)
            failed += 1
    logger.info(
        "maintenance.batch_approve integration_id=%s approved=%d failed=%d",
        integration_id,
        approved,
        failed,
    )
    return BatchApproveResult(approved=approved, failed=failed)


def apply_description_decisions(
    db: Session,
    tenant_id: str,
    proposal_id: str,
    payload: DescriptionDecisionRequest | dict[str, Any],
) -> MaintenanceProposal:
    """Accept or skip stored description suggestions for an approved proposal."""

    if not isinstance(payload, DescriptionDecisionRequest):
        try:
            payload = DescriptionDecisionRequest.model_validate(payload)
        except ValidationError as exc:
            raise InvalidMaintenanceInputError(f"Invalid description decisions: {exc}") from exc

    proposal = get_proposal(db, tenant_id, proposal_id)
    if proposal.status != "approved":
        raise InvalidProposalTransitionError(proposal.status, "apply description decisions")

    suggestions = [
        DescriptionSuggestion.model_validate(raw) for raw in (proposal.description_suggestions_json or [])
    ]
    decisions = {decision.tool_id: decision.accept for decision in payload.decisions}

    for suggestion in suggestions:
        accept = decisions.get(suggestion.tool_id)
        if accept is None:
            continue
        if not accept:
            suggestion.status = "skipped"
            continue
        try:
            apply_suggestion(db, suggestion, action_id=proposal.action_id)
        except Exception:
            logger.exception(
                "maintenance.description_apply_failed proposal_id=%s tool_id=%s",
                proposal_id,
                suggestion.tool_id,
            )
            continue
        suggestion.status = "accepted"

    proposal.description_suggestions_json = [suggestion.model_dump(mode="json") for suggestion in suggestions]
    db.commit()
    db.refresh(proposal)
    return proposal


def expire_stale_proposals(
    db: Session,
    *,
    integration_id: str | None = None,
    tenant_id: str | None = None,
) -> int:
    """Expire pending proposals whose drift reports have all been resolved.

    A referenced drift report that no longer exists counts as resolved.
    """

    stmt = select(MaintenanceProposal).where(MaintenanceProposal.status == "pending")
    if integration_id is not None:
        stmt = stmt.where(MaintenanceProposal.integration_id == integration_id)
    if tenant_id is not None:
        stmt = stmt.where(MaintenanceProposal.tenant_id == tenant_id)
    pending = list(db.scalars(stmt))
    if not pending:
        return 0

    referenced = {report_id for proposal in pending for report_id in (proposal.drift_report_ids_json or [])}
    open_ids: set[str] = set()
    if referenced:
        open_ids = set(
            db.scalars(
                select(DriftReport.id).where(
                    DriftReport.id.in_(referenced),
                    DriftReport.status.in_(OPEN_DRIFT_STATUSES),
                )
            )
        )

    now = _utcnow()
    expired = 0
    for proposal in pending:
        if any(report_id in open_ids for report_id in (proposal.drift_report_ids_json or [])):
            continue
        proposal.status = "expired"
        proposal.expired_at = now
        expired += 1
    if expired:
        db.commit()
        logger.info("maintenance.proposals_expired integration_id=%s count=%d", integration_id, expired)
    return expired


def generate_proposals_for_integration(
    db: Session,
    integration_id: str,
    tenant_id: str,
    *,
    rescrape_trigger: RescrapeTrigger | None = None,
) -> GenerationResult:
    """Create proposals for every action with open drift and no pending proposal."""

    integration = _get_integration(db, tenant_id, integration_id)
    expired_count = expire_stale_proposals(db, integration_id=integration_id, tenant_id=tenant_id)
    config = parse_maintenance_config(integration.maintenance_config_json)

    reports = db.scalars(
        select(DriftReport)
        .where(
            DriftReport.integration_id == integration_id,
            DriftReport.tenant_id == tenant_id,
            DriftReport.status.in_(OPEN_DRIFT_STATUSES),
        )
        .order_by(DriftReport.created_at.asc(), DriftReport.id.asc())
    )
    reports_by_action: dict[str, list[DriftReport]] = defaultdict(list)
    for report in reports:
        reports_by_action[report.action_id].append(report)
    if not reports_by_action:
        return GenerationResult(expired_count=expired_count)

    pending_action_ids = set(
        db.scalars(
            select(MaintenanceProposal.action_id).where(
                MaintenanceProposal.integration_id == integration_id,
                MaintenanceProposal.status == "pending",
            )
        )
    )

    created = 0
    for action_id, action_reports in reports_by_action.items():
        if action_id in pending_action_ids:
            continue
        try:
            proposal = create_proposal(db, tenant_id, action_id, drift_reports=action_reports)
        except Exception:
            db.rollback()
            logger.exception(
                "maintenance.generation_action_failed integration_id=%s action_id=%s",
                integration_id,
                action_id,
            )
            continue
        if proposal is None:
            continue
        created += 1

        if config.rescrape_on_breaking and proposal.severity == "breaking":
            action = db.get(Action, action_id)
            if action is not None:
                trigger_action_rescrape(db, action, rescrape_trigger or ScrapeJobRescrapeTrigger())

    logger.info(
        "maintenance.generation integration_id=%s proposals_created=%d actions_affected=%d expired=%d",
        integration_id,
        created,
        len(reports_by_action),
        expired_count,
    )
    return GenerationResult(
        proposals_created=created,
        actions_affected=len(reports_by_action),
        expired_count=expired_count,
    )


def get_maintenance_config(db: Session, tenant_id: str, integration_id: str) -> MaintenanceConfig:
    """Return the integration's maintenance config, falling back to defaults."""

    integration = _get_integration(db, tenant_id, integration_id)
    return parse_maintenance_config(integration.maintenance_config_json)


def update_maintenance_config(
    db: Session,
    tenant_id: str,
    integration_id: str,
    payload: MaintenanceConfigUpdate | dict[str, Any],
) -> MaintenanceConfig:
    """Merge a partial update into the integration's maintenance config."""

    if not isinstance(payload, MaintenanceConfigUpdate):
        try:
            payload = MaintenanceConfigUpdate.model_validate(payload)
        except ValidationError as exc:
            raise InvalidMaintenanceInputError(f"Invalid maintenance config: {exc}") from exc

    integration = _get_integration(db, tenant_id, integration_id)
    merged = parse_maintenance_config(integration.maintenance_config_json).model_copy(
        update=payload.model_dump(exclude_none=True)
    )
    integration.maintenance_config_json = merged.model_dump()
    db.commit()
    return merged


def to_proposal_read(proposal: MaintenanceProposal) -> MaintenanceProposalRead:
    """Convert a proposal row into its API representation."""

    return MaintenanceProposalRead(
        id=proposal.id,
        integration_id=proposal.integration_id,
        tenant_id=proposal.tenant_id,
        action_id=proposal.action_id,
        status=proposal.status,
        severity=proposal.severity,
        source=proposal.source,
        current_input_schema=proposal.current_input_schema_json or {},
        current_output_schema=proposal.current_output_schema_json or {},
        proposed_input_schema=proposal.proposed_input_schema_json,
        proposed_output_schema=proposal.proposed_output_schema_json,
        changes=[ProposalChange.model_validate(raw) for raw in (proposal.changes_json or [])],
        reasoning=proposal.reasoning,
        drift_report_ids=list(proposal.drift_report_ids_json or []),
        affected_tools=proposal.affected_tools_json,
        description_suggestions=proposal.description_suggestions_json,
        approved_at=proposal.approved_at,
        rejected_at=proposal.rejected_at,
        expired_at=proposal.expired_at,
        reverted_at=proposal.reverted_at,
        applied_at=proposal.applied_at,
        created_at=proposal.created_at,
        updated_at=proposal.updated_at,
    )


def _validate_query(query: ListProposalsQuery | dict[str, Any] | None) -> ListProposalsQuery:
    if isinstance(query, ListProposalsQuery):
        params = query
    else:
        try:
            params = ListProposalsQuery.model_validate(query or {})
        except ValidationError as exc:
            raise InvalidMaintenanceInputError(f"Invalid proposal query: {exc}") from exc
    page_limit = get_settings().maintenance_proposal_page_limit
    if params.limit > page_limit:
        raise InvalidMaintenanceInputError(f"limit must be at most {page_limit}")
    return params


def _ensure_transition(proposal: MaintenanceProposal, requested: str) -> None:
    if requested not in VALID_PROPOSAL_TRANSITIONS.get(proposal.status, ()):
        raise InvalidProposalTransitionError(proposal.status, requested)


def _has_pending_proposal(db: Session, action_id: str) -> bool:
    existing = db.scalar(
        select(MaintenanceProposal.id).where(
            MaintenanceProposal.action_id == action_id,
            MaintenanceProposal.status == "pending",
        )
    )
    return existing is not None


def _referenced_drift_reports(db: Session, proposal: MaintenanceProposal) -> list[DriftReport]:
    report_ids = list(proposal.drift_report_ids_json or [])
    if not report_ids:
        return []
    return list(db.scalars(select(DriftReport).where(DriftReport.id.in_(report_ids))))


def _load_failures(db: Session, action_id: str, tenant_id: str) -> list[FailureRecord]:
    rows = db.scalars(
        select(ValidationFailure).where(
            ValidationFailure.action_id == action_id,
            ValidationFailure.tenant_id == tenant_id,
        )
    )
    return [
        FailureRecord(
            action_id=row.action_id,
            direction="input" if row.direction == "input" else "output",
            issue_code=row.issue_code,
            field_path=row.field_path,
            expected_type=row.expected_type,
            received_type=row.received_type,
            failure_count=row.failure_count,
        )
        for row in rows
    ]


def _to_signal(report: DriftReport) -> DriftSignal:
    return DriftSignal(
        id=report.id,
        action_id=report.action_id,
        issue_code=report.issue_code,
        field_path=report.field_path,
        severity=report.severity,
        status=report.status,
    )


def _get_integration(db: Session, tenant_id: str, integration_id: str) -> Integration:
    integration = db.scalar(
        select(Integration).where(Integration.id == integration_id, Integration.tenant_id == tenant_id)
    )
    if integration is None:
        raise InvalidMaintenanceInputError(f"Integration not found: {integration_id}", status_code=404)
    return integration


def parse_maintenance_config(raw: Any) -> MaintenanceConfig:
    """Parse stored maintenance config JSON; missing or malformed values yield defaults."""

    if not isinstance(raw, dict):
        return MaintenanceConfig()
    try:
        return MaintenanceConfig.model_validate(raw)
    except ValidationError:
        return MaintenanceConfig()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)
