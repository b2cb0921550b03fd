"""Integration ORM model."""

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from toolwright.models.base import Base, CreatedAtMixin, IdMixin, UpdatedAtMixin


class Integration(Base, IdMixin, CreatedAtMixin, UpdatedAtMixin):
    """Third-party API surface whose actions were generated from scraped docs."""

    __tablename__ = "integrations"

    tenant_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    maintenance_config_json: Mapped[dict[str, object] | None] = mapped_column(JSON, nullable=True)
