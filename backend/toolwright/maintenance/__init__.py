"""Schema-drift maintenance domain package."""

from toolwright.maintenance.errors import (
    InvalidMaintenanceInputError,
    InvalidProposalTransitionError,
    MaintenanceError,
    ProposalConflictError,
    ProposalNotFoundError,
    RevertError,
    SchemaApplicationError,
)
from toolwright.maintenance.inference import infer_field_type, infer_schema_updates
from toolwright.maintenance.schema_tree import SchemaNode, apply_field_edit
from toolwright.maintenance.tool_allocation import json_contains_value, parse_tool_allocation
from toolwright.maintenance.types import (
    AffectedTool,
    DescriptionSuggestion,
    DriftSignal,
    FailureRecord,
    InferenceResult,
    MaintenanceConfig,
    ProposalChange,
)

__all__ = [
    "AffectedTool",
    "DescriptionSuggestion",
    "DriftSignal",
    "FailureRecord",
    "InferenceResult",
    "InvalidMaintenanceInputError",
    "InvalidProposalTransitionError",
    "MaintenanceConfig",
    "MaintenanceError",
    "ProposalChange",
    "ProposalConflictError",
    "ProposalNotFoundError",
    "RevertError",
    "SchemaApplicationError",
    "SchemaNode",
    "apply_field_edit",
    "infer_field_type",
    "infer_schema_updates",
    "json_contains_value",
    "parse_tool_allocation",
]
