"""Targeted documentation re-scrape submission."""

from __future__ import annotations

import logging
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.orm import Session

from toolwright.maintenance.errors import InvalidMaintenanceInputError
from toolwright.models.action import Action
from toolwright.models.scrape_job import ScrapeJob

logger = logging.getLogger(__name__)


class RescrapeTrigger(Protocol):
    """Submits a re-scrape of specific documentation pages for one action."""

    def submit(
        self,
        db: Session,
        *,
        tenant_id: str,
        action_id: str,
        urls: list[str],
        wishlist: list[str],
    ) -> None:
        """Queue the re-scrape; must not raise for transient queue failures."""


class ScrapeJobRescrapeTrigger:
    """Queues a ``ScrapeJob`` row that the crawler picks up."""

    def submit(
        self,
        db: Session,
        *,
        tenant_id: str,
        action_id: str,
        urls: list[str],
        wishlist: list[str],
    ) -> None:
        job = ScrapeJob(
            tenant_id=tenant_id,
            action_id=action_id,
            specific_urls_json=list(urls),
            wishlist_json=list(wishlist),
            status="pending",
        )
        db.add(job)
        db.commit()
        logger.info(
            "maintenance.rescrape_submitted action_id=%s job_id=%s url_count=%d",
            action_id,
            job.id,
            len(urls),
        )


def action_source_urls(action: Action) -> list[str]:
    """Return the documentation URLs the action was extracted from."""

    raw = (action.metadata_json or {}).get("source_urls")
    if not isinstance(raw, list):
        return []
    return [url for url in raw if isinstance(url, str) and url.strip()]


def trigger_action_rescrape(db: Session, action: Action, trigger: RescrapeTrigger) -> bool:
    """Fire-and-forget re-scrape for one action; returns whether one was submitted."""

    urls = action_source_urls(action)
    if not urls:
        return False
    try:
        trigger.submit(
            db,
            tenant_id=action.tenant_id,
            action_id=action.id,
            urls=urls,
            wishlist=[action.slug],
        )
    except Exception:
        db.rollback()
        logger.exception("maintenance.rescrape_failed action_id=%s", action.id)
        return False
    return True


def request_action_rescrape(
    db: Session,
    tenant_id: str,
    action_id: str,
    *,
    trigger: RescrapeTrigger | None = None,
) -> bool:
    """Manually request a re-scrape of an action's source documentation."""

    action = db.scalar(select(Action).where(Action.id == action_id, Action.tenant_id == tenant_id))
    if action is None:
        raise InvalidMaintenanceInputError(f"Action not found: {action_id}", status_code=404)
    return trigger_action_rescrape(db, action, trigger or ScrapeJobRescrapeTrigger())
