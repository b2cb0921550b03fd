"""Schema inference from drift reports and validation failure statistics.

Pure functions only: callers load drift reports, failures, and current schemas
and decide what to persist. Running inference twice on the same inputs yields
the same result, so speculative runs can simply be discarded.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Sequence
from typing import Any

from toolwright.maintenance.schema_tree import SchemaNode, apply_field_edit
from toolwright.maintenance.types import (
    ChangeType,
    DriftSignal,
    FailureRecord,
    InferenceResult,
    ProposalChange,
    SchemaDirection,
)

OUTPUT_ISSUE_MAP: dict[str, ChangeType] = {
    "type_mismatch": "field_type_changed",
    "unexpected_field": "field_added",
    "missing_required_field": "field_made_optional",
    "invalid_enum_value": "enum_value_added",
}

INPUT_ISSUE_MAP: dict[str, ChangeType] = {
    "missing_required_field": "field_added_required",
    "type_mismatch": "field_type_changed",
}

_TYPE_ALIASES: dict[str, str] = {
    "string": "string",
    "number": "number",
    "integer": "integer",
    "boolean": "boolean",
    "object": "object",
    "array": "array",
    "null": "null",
    "float": "number",
    "int": "integer",
    "bool": "boolean",
    "undefined": "string",
}


def infer_schema_updates(
    action_id: str,
    drift_reports: Sequence[DriftSignal],
    failures: Iterable[FailureRecord],
    current_input_schema: dict[str, Any] | None,
    current_output_schema: dict[str, Any] | None,
) -> InferenceResult:
    """Infer patched input/output schemas for one action."""

    if not drift_reports:
        return InferenceResult()

    reports_by_fingerprint: dict[tuple[str, str], DriftSignal] = {}
    for report in drift_reports:
        reports_by_fingerprint.setdefault(report.fingerprint, report)

    relevant = sorted(
        (
            failure
            for failure in failures
            if failure.action_id == action_id and failure.fingerprint in reports_by_fingerprint
        ),
        key=lambda failure: failure.failure_count,
        reverse=True,
    )
    if not relevant:
        return InferenceResult()

    result = InferenceResult()
    for direction, current in (("output", current_output_schema), ("input", current_input_schema)):
        direction_failures = [failure for failure in relevant if failure.direction == direction]
        if not direction_failures:
            continue
        root = SchemaNode.from_json(current or {})
        applied = 0
        for failure in direction_failures:
            report = reports_by_fingerprint[failure.fingerprint]
            change = _apply_failure(root, failure, direction, report.id)
            if change is None:
                continue
            result.changes.append(change)
            applied += 1
        if not applied:
            continue
        if direction == "output":
            result.proposed_output_schema = root.to_json()
        else:
            result.proposed_input_schema = root.to_json()

    result.reasoning = generate_overall_reasoning(result.changes, len(drift_reports))
    return result


def _apply_failure(
    root: SchemaNode,
    failure: FailureRecord,
    direction: SchemaDirection,
    drift_report_id: str,
) -> ProposalChange | None:
    issue_map = OUTPUT_ISSUE_MAP if direction == "output" else INPUT_ISSUE_MAP
    change_type = issue_map.get(failure.issue_code)
    if change_type is None:
        return None

    path = failure.field_path
    before: Any = None
    after: Any = None

    if change_type == "field_type_changed" and _normalize(failure.received_type) == "null":
        change_type = "field_made_nullable"
        apply_field_edit(root, path, "make_nullable")
        before = failure.expected_type
        after = f"{failure.expected_type} | null"
    elif change_type == "field_type_changed":
        apply_field_edit(root, path, "change_type", infer_field_type(failure.received_type))
        before = failure.expected_type
        after = failure.received_type
    elif change_type == "field_added":
        after = infer_field_type(failure.received_type)
        apply_field_edit(root, path, "add_optional", after)
    elif change_type == "field_made_optional":
        apply_field_edit(root, path, "make_optional")
        before = "required"
        after = "optional"
    elif change_type == "enum_value_added":
        apply_field_edit(root, path, "add_enum_value", failure.received_type)
        after = failure.received_type
    elif change_type == "field_added_required":
        after = infer_field_type(failure.expected_type)
        apply_field_edit(root, path, "add_required", after)

    return ProposalChange(
        direction=direction,
        field_path=path,
        change_type=change_type,
        description=generate_change_description(change_type, path, direction, failure),
        drift_report_id=drift_report_id,
        before_value=before,
        after_value=after,
    )


def infer_field_type(raw_type: str | None) -> str:
    """Map a raw type label to a JSON Schema type, defaulting to string."""

    return _TYPE_ALIASES.get(_normalize(raw_type), "string")


def generate_change_description(
    change_type: ChangeType,
    field_path: str,
    direction: SchemaDirection,
    failure: FailureRecord,
) -> str:
    """Human-readable summary of one change."""

    label = "Input" if direction == "input" else "Output"
    count = failure.failure_count
    expected = failure.expected_type
    received = failure.received_type

    if change_type == "field_made_nullable":
        return (
            f"{label} field '{field_path}' received null values {count} time(s). "
            f"Making field nullable ({expected} -> {expected} | null)."
        )
    if change_type == "field_type_changed":
        return f"{label} field '{field_path}' type changed from {expected} to {received} (observed {count} time(s))."
    if change_type == "field_added":
        return (
            f"{label} field '{field_path}' appeared unexpectedly {count} time(s) with type {received}. "
            "Adding as optional field."
        )
    if change_type == "field_made_optional":
        return (
            f"{label} field '{field_path}' was missing {count} time(s) despite being required. "
            "Making field optional."
        )
    if change_type == "enum_value_added":
        return (
            f"{label} field '{field_path}' received unexpected enum value '{received}' {count} time(s). "
            "Adding to allowed values."
        )
    if change_type == "field_added_required":
        return (
            f"{label} field '{field_path}' is now required by the API (observed {count} rejection(s)). "
            "Adding as required field."
        )
    return f"{label} field '{field_path}' changed ({change_type})."


def generate_overall_reasoning(changes: Sequence[ProposalChange], drift_report_count: int) -> str:
    """One-paragraph summary of every change in a proposal."""

    if not changes:
        return ""

    parts = [
        f"This proposal addresses {drift_report_count} drift report(s) with {len(changes)} schema change(s)."
    ]
    output_changes = [change for change in changes if change.direction == "output"]
    input_changes = [change for change in changes if change.direction == "input"]
    if output_changes:
        parts.append(f"Output schema: {_summarize(output_changes)}")
    if input_changes:
        parts.append(f"Input schema: {_summarize(input_changes)}")
    return " ".join(parts)


def _summarize(changes: Sequence[ProposalChange]) -> str:
    counts = Counter(change.change_type for change in changes)
    pieces = [
        f"{count} {change_type.replace('_', ' ')}{'s' if count > 1 else ''}"
        for change_type, count in counts.items()
    ]
    return ", ".join(pieces) + "."


def _normalize(raw_type: str | None) -> str:
    return (raw_type or "").strip().lower()
