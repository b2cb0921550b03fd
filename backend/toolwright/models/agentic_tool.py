"""Agentic tool ORM model."""

from sqlalchemy import JSON, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from toolwright.models.base import Base, CreatedAtMixin, IdMixin, UpdatedAtMixin


class AgenticTool(Base, IdMixin, CreatedAtMixin, UpdatedAtMixin):
    """LLM-mediated tool whose allocation JSON references one or more actions."""

    __tablename__ = "agentic_tools"

    tenant_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    execution_mode: Mapped[str] = mapped_column(String(32), nullable=False)
    tool_allocation_json: Mapped[dict[str, object]] = mapped_column(JSON, default=dict, nullable=False)
    tool_description: Mapped[str | None] = mapped_column(Text, nullable=True)
