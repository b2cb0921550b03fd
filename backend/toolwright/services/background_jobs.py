"""Background jobs for schema maintenance and an explicit job scheduler."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from functools import partial
from time import perf_counter
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from toolwright.db.session import SessionLocal
from toolwright.models.integration import Integration
from toolwright.services.maintenance import (
    batch_approve_by_integration,
    expire_stale_proposals,
    generate_proposals_for_integration,
    get_proposal,
    parse_maintenance_config,
    run_description_cascade,
)
from toolwright.services.rescrape import RescrapeTrigger
from toolwright.services.tool_descriptions import ToolDescriptionGenerator

logger = logging.getLogger(__name__)

AUTO_MAINTENANCE_JOB = "auto_maintenance"

JobHandler = Callable[[dict[str, Any]], dict[str, Any]]
SessionFactory = Callable[[], Session]


class UnknownJobKindError(LookupError):
    """Raised when a scheduler has no handler for a job kind."""


class JobScheduler:
    """Dispatches job kinds to handlers registered at construction time."""

    def __init__(self, handlers: Mapping[str, JobHandler]) -> None:
        self._handlers = dict(handlers)

    @property
    def kinds(self) -> tuple[str, ...]:
        return tuple(sorted(self._handlers))

    def run(self, kind: str, payload: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run one job synchronously and return the handler's summary."""

        handler = self._handlers.get(kind)
        if handler is None:
            raise UnknownJobKindError(f"No handler registered for job kind '{kind}'")
        started = perf_counter()
        try:
            result = handler(payload or {})
        except Exception:
            logger.exception(
                "jobs.failed kind=%s elapsed_ms=%.2f",
                kind,
                (perf_counter() - started) * 1000.0,
            )
            raise
        logger.info("jobs.completed kind=%s total_ms=%.2f", kind, (perf_counter() - started) * 1000.0)
        return result


def build_job_scheduler(
    session_factory: SessionFactory = SessionLocal,
    *,
    generator: ToolDescriptionGenerator | None = None,
    rescrape_trigger: RescrapeTrigger | None = None,
) -> JobScheduler:
    """Construct the scheduler with every maintenance job handler wired in."""

    return JobScheduler(
        handlers={
            AUTO_MAINTENANCE_JOB: partial(
                run_auto_maintenance_job,
                session_factory=session_factory,
                generator=generator,
                rescrape_trigger=rescrape_trigger,
            ),
        }
    )


def run_auto_maintenance_job(
    payload: dict[str, Any] | None = None,
    *,
    session_factory: SessionFactory = SessionLocal,
    generator: ToolDescriptionGenerator | None = None,
    rescrape_trigger: RescrapeTrigger | None = None,
) -> dict[str, Any]:
    """Run one auto-maintenance sweep in its own session."""

    total_started = perf_counter()
    db = session_factory()
    try:
        summary = run_auto_maintenance(db, generator=generator, rescrape_trigger=rescrape_trigger)
        logger.info(
            (
                "maintenance.auto_timing integrations_checked=%d proposals_created=%d "
                "auto_approved=%d expired=%d total_ms=%.2f"
            ),
            summary["integrations_checked"],
            summary["proposals_created"],
            summary["auto_approved"],
            summary["expired_count"],
            (perf_counter() - total_started) * 1000.0,
        )
        return summary
    except Exception:
        logger.exception(
            "maintenance.auto_failed elapsed_ms=%.2f",
            (perf_counter() - total_started) * 1000.0,
        )
        raise
    finally:
        db.close()


def run_auto_maintenance(
    db: Session,
    *,
    generator: ToolDescriptionGenerator | None = None,
    rescrape_trigger: RescrapeTrigger | None = None,
) -> dict[str, Any]:
    """Expire stale proposals, then generate (and optionally auto-approve) per integration."""

    expired_count = 0
    try:
        expired_count = expire_stale_proposals(db)
    except Exception:
        db.rollback()
        logger.exception("maintenance.auto_expire_failed")

    integrations = [
        (integration.id, integration.tenant_id, parse_maintenance_config(integration.maintenance_config_json))
        for integration in db.scalars(select(Integration).order_by(Integration.created_at.asc(), Integration.id.asc()))
    ]

    checked = 0
    proposals_created = 0
    auto_approved = 0
    errors: list[str] = []
    for integration_id, tenant_id, config in integrations:
        if not config.enabled:
            continue
        checked += 1
        try:
            result = generate_proposals_for_integration(
                db,
                integration_id,
                tenant_id,
                rescrape_trigger=rescrape_trigger,
            )
            proposals_created += result.proposals_created
            if config.auto_approve_info_level and result.proposals_created > 0:
                batch = batch_approve_by_integration(db, tenant_id, integration_id, "info", generator=generator)
                auto_approved += batch.approved
        except Exception as exc:
            db.rollback()
            logger.exception("maintenance.auto_integration_failed integration_id=%s", integration_id)
            errors.append(f"{integration_id}: {exc}")

    summary: dict[str, Any] = {
        "integrations_checked": checked,
        "total_integrations": len(integrations),
        "proposals_created": proposals_created,
        "auto_approved": auto_approved,
        "expired_count": expired_count,
    }
    if errors:
        summary["errors"] = errors
    return summary


def run_description_cascade_job(
    proposal_id: str,
    tenant_id: str,
    *,
    session_factory: SessionFactory = SessionLocal,
    generator: ToolDescriptionGenerator | None = None,
) -> None:
    """Generate description suggestions for an approved proposal after the response is sent."""

    total_started = perf_counter()
    db = session_factory()
    try:
        proposal = get_proposal(db, tenant_id, proposal_id)
        suggestions = run_description_cascade(db, proposal, generator=generator)
        logger.info(
            "maintenance.cascade_timing proposal_id=%s suggestions=%d total_ms=%.2f",
            proposal_id,
            len(suggestions),
            (perf_counter() - total_started) * 1000.0,
        )
    except Exception:
        logger.exception(
            "maintenance.cascade_job_failed proposal_id=%s elapsed_ms=%.2f",
            proposal_id,
            (perf_counter() - total_started) * 1000.0,
        )
        raise
    finally:
        db.close()
