"""Composite tool ORM models."""

from sqlalchemy import JSON, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from toolwright.models.base import Base, CreatedAtMixin, IdMixin, UpdatedAtMixin


class CompositeTool(Base, IdMixin, CreatedAtMixin, UpdatedAtMixin):
    """Tool that routes one request to one of several underlying actions."""

    __tablename__ = "composite_tools"

    tenant_id: Mapped[str] = mapped_column(String(36), index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    slug: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    routing_mode: Mapped[str] = mapped_column(String(32), default="rule_based", nullable=False)
    default_operation_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    unified_input_schema_json: Mapped[dict[str, object]] = mapped_column(JSON, default=dict, nullable=False)
    tool_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    tool_success_template: Mapped[str | None] = mapped_column(Text, nullable=True)
    tool_error_template: Mapped[str | None] = mapped_column(Text, nullable=True)

    operations: Mapped[list["CompositeToolOperation"]] = relationship(
        back_populates="composite_tool",
        cascade="all, delete-orphan",
        order_by="CompositeToolOperation.priority",
    )


class CompositeToolOperation(Base, IdMixin, CreatedAtMixin):
    """Join row binding a composite tool to one action."""

    __tablename__ = "composite_tool_operations"

    composite_tool_id: Mapped[str] = mapped_column(
        ForeignKey("composite_tools.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    action_id: Mapped[str] = mapped_column(
        ForeignKey("actions.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    operation_slug: Mapped[str] = mapped_column(String(100), nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    priority: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    composite_tool: Mapped[CompositeTool] = relationship(back_populates="operations")
