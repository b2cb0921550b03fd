"""Schema maintenance proposal routes."""

from collections.abc import Callable

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Path, Query
from sqlalchemy.orm import Session

from toolwright.db.dependencies import get_db, get_session_factory, get_tenant_id
from toolwright.maintenance.errors import MaintenanceError
from toolwright.maintenance.types import MaintenanceConfig, ProposalSeverity, ProposalStatus
from toolwright.schemas.common import ApiResponse
from toolwright.schemas.maintenance import (
    BatchApproveRequest,
    BatchApproveResult,
    DescriptionDecisionRequest,
    ExpirationResult,
    GenerationResult,
    ListProposalsQuery,
    MaintenanceConfigUpdate,
    MaintenanceProposalRead,
    ProposalListResponse,
    ProposalSummary,
    RescrapeResult,
)
from toolwright.services.background_jobs import run_description_cascade_job
from toolwright.services.maintenance import (
    apply_description_decisions,
    approve_proposal,
    batch_approve_by_integration,
    expire_stale_proposals,
    generate_proposals_for_integration,
    get_maintenance_config,
    get_proposal,
    get_proposal_summary,
    list_proposals,
    reject_proposal,
    revert_proposal,
    to_proposal_read,
    update_maintenance_config,
)
from toolwright.services.rescrape import request_action_rescrape

router = APIRouter()


def _http_error(exc: MaintenanceError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail={"code": exc.code, "message": exc.message})


@router.get("/integrations/{integration_id}/maintenance/proposals", response_model=ApiResponse[ProposalListResponse])
def read_proposals(
    integration_id: str = Path(..., min_length=1),
    limit: int = Query(default=20, ge=1),
    offset: int = Query(default=0, ge=0),
    status: ProposalStatus | None = Query(default=None),
    severity: ProposalSeverity | None = Query(default=None),
    action_id: str | None = Query(default=None, min_length=1),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ApiResponse[ProposalListResponse]:
    """List proposals for an integration, newest first."""

    query = ListProposalsQuery(limit=limit, offset=offset, status=status, severity=severity, action_id=action_id)
    try:
        return ApiResponse(data=list_proposals(db, tenant_id, integration_id, query))
    except MaintenanceError as exc:
        raise _http_error(exc) from exc


@router.post("/integrations/{integration_id}/maintenance/proposals", response_model=ApiResponse[GenerationResult])
def generate_proposals(
    integration_id: str = Path(..., min_length=1),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ApiResponse[GenerationResult]:
    """Run a generation pass over an integration's open drift."""

    try:
        return ApiResponse(data=generate_proposals_for_integration(db, integration_id, tenant_id))
    except MaintenanceError as exc:
        raise _http_error(exc) from exc


@router.get("/integrations/{integration_id}/maintenance/summary", response_model=ApiResponse[ProposalSummary])
def read_summary(
    integration_id: str = Path(..., min_length=1),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ApiResponse[ProposalSummary]:
    """Return proposal counts by status."""

    return ApiResponse(data=get_proposal_summary(db, tenant_id, integration_id))


@router.post(
    "/integrations/{integration_id}/maintenance/batch-approve",
    response_model=ApiResponse[BatchApproveResult],
)
def batch_approve(
    payload: BatchApproveRequest,
    integration_id: str = Path(..., min_length=1),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ApiResponse[BatchApproveResult]:
    """Approve pending proposals up to a severity ceiling."""

    try:
        result = batch_approve_by_integration(db, tenant_id, integration_id, payload.max_severity)
    except MaintenanceError as exc:
        raise _http_error(exc) from exc
    return ApiResponse(data=result)


@router.get("/integrations/{integration_id}/maintenance/config", response_model=ApiResponse[MaintenanceConfig])
def read_config(
    integration_id: str = Path(..., min_length=1),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ApiResponse[MaintenanceConfig]:
    try:
        return ApiResponse(data=get_maintenance_config(db, tenant_id, integration_id))
    except MaintenanceError as exc:
        raise _http_error(exc) from exc


@router.patch("/integrations/{integration_id}/maintenance/config", response_model=ApiResponse[MaintenanceConfig])
def patch_config(
    payload: MaintenanceConfigUpdate,
    integration_id: str = Path(..., min_length=1),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ApiResponse[MaintenanceConfig]:
    try:
        return ApiResponse(data=update_maintenance_config(db, tenant_id, integration_id, payload))
    except MaintenanceError as exc:
        raise _http_error(exc) from exc


@router.get("/maintenance/proposals/{proposal_id}", response_model=ApiResponse[MaintenanceProposalRead])
def read_proposal(
    proposal_id: str = Path(..., min_length=1),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ApiResponse[MaintenanceProposalRead]:
    try:
        proposal = get_proposal(db, tenant_id, proposal_id)
    except MaintenanceError as exc:
        raise _http_error(exc) from exc
    return ApiResponse(data=to_proposal_read(proposal))


@router.post("/maintenance/proposals/{proposal_id}/approve", response_model=ApiResponse[MaintenanceProposalRead])
def approve(
    background_tasks: BackgroundTasks,
    proposal_id: str = Path(..., min_length=1),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
    session_factory: Callable[[], Session] = Depends(get_session_factory),
) -> ApiResponse[MaintenanceProposalRead]:
    """Apply a proposal; description suggestions are generated after the response."""

    try:
        proposal = approve_proposal(db, tenant_id, proposal_id, generate_suggestions=False)
    except MaintenanceError as exc:
        raise _http_error(exc) from exc
    background_tasks.add_task(
        run_description_cascade_job,
        proposal_id,
        tenant_id,
        session_factory=session_factory,
    )
    return ApiResponse(data=to_proposal_read(proposal))


@router.post("/maintenance/proposals/{proposal_id}/reject", response_model=ApiResponse[MaintenanceProposalRead])
def reject(
    proposal_id: str = Path(..., min_length=1),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ApiResponse[MaintenanceProposalRead]:
    try:
        proposal = reject_proposal(db, tenant_id, proposal_id)
    except MaintenanceError as exc:
        raise _http_error(exc) from exc
    return ApiResponse(data=to_proposal_read(proposal))


@router.post("/maintenance/proposals/{proposal_id}/revert", response_model=ApiResponse[MaintenanceProposalRead])
def revert(
    proposal_id: str = Path(..., min_length=1),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ApiResponse[MaintenanceProposalRead]:
    """Restore the schemas captured when the proposal was created."""

    try:
        proposal = revert_proposal(db, tenant_id, proposal_id)
    except MaintenanceError as exc:
        raise _http_error(exc) from exc
    return ApiResponse(data=to_proposal_read(proposal))


@router.post(
    "/maintenance/proposals/{proposal_id}/descriptions",
    response_model=ApiResponse[MaintenanceProposalRead],
)
def decide_descriptions(
    payload: DescriptionDecisionRequest,
    proposal_id: str = Path(..., min_length=1),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ApiResponse[MaintenanceProposalRead]:
    """Accept or skip description suggestions on an approved proposal."""

    try:
        proposal = apply_description_decisions(db, tenant_id, proposal_id, payload)
    except MaintenanceError as exc:
        raise _http_error(exc) from exc
    return ApiResponse(data=to_proposal_read(proposal))


@router.post("/maintenance/expire", response_model=ApiResponse[ExpirationResult])
def expire(
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ApiResponse[ExpirationResult]:
    """Expire the tenant's pending proposals whose drift is already resolved."""

    return ApiResponse(data=ExpirationResult(expired_count=expire_stale_proposals(db, tenant_id=tenant_id)))


@router.post("/actions/{action_id}/rescrape", response_model=ApiResponse[RescrapeResult])
def rescrape_action(
    action_id: str = Path(..., min_length=1),
    tenant_id: str = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ApiResponse[RescrapeResult]:
    """Queue a re-scrape of the action's source documentation."""

    try:
        submitted = request_action_rescrape(db, tenant_id, action_id)
    except MaintenanceError as exc:
        raise _http_error(exc) from exc
    return ApiResponse(data=RescrapeResult(action_id=action_id, submitted=submitted))
