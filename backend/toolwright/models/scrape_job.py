"""Scrape job ORM model."""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from toolwright.models.base import Base, CreatedAtMixin, IdMixin, UpdatedAtMixin


class ScrapeJob(Base, IdMixin, CreatedAtMixin, UpdatedAtMixin):
    """Queued documentation re-scrape request consumed by the crawler."""

    __tablename__ = "scrape_jobs"

    tenant_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    action_id: Mapped[str | None] = mapped_column(String(36), index=True, nullable=True)
    specific_urls_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    wishlist_json: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="pending", index=True, nullable=False)
