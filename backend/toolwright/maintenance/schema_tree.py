"""JSON Schema tree model with dot-path navigation for inferred edits.

Schemas are parsed into ``SchemaNode`` trees, edited in place, and serialized
back. Keys the tree does not model are carried through untouched and the
original key order is preserved, so unchanged branches serialize to the same
JSON they were read from.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Literal

FieldOperation = Literal[
    "make_nullable",
    "change_type",
    "add_optional",
    "make_optional",
    "add_enum_value",
    "add_required",
]

_MODELED_KEYS = ("type", "properties", "required", "items", "enum")


@dataclass(slots=True)
class SchemaNode:
    """One node of a JSON Schema document."""

    type: str | list[str] | None = None
    # Non-object subschemas (``true``, ``false``) are kept as opaque leaves.
    properties: dict[str, SchemaNode | Any] | None = None
    required: list[str] | None = None
    items: SchemaNode | None = None
    enum: list[Any] | None = None
    extras: dict[str, Any] = field(default_factory=dict)
    key_order: list[str] = field(default_factory=list)

    @classmethod
    def from_json(cls, raw: Any) -> SchemaNode:
        """Build a detached tree from a JSON Schema mapping."""

        node = cls()
        if not isinstance(raw, dict):
            return node
        for key, value in raw.items():
            node.key_order.append(key)
            if key == "type" and _is_type_value(value):
                node.type = list(value) if isinstance(value, list) else value
            elif key == "properties" and isinstance(value, dict):
                node.properties = {
                    name: cls.from_json(child) if isinstance(child, dict) else copy.deepcopy(child)
                    for name, child in value.items()
                }
            elif key == "required" and isinstance(value, list) and all(isinstance(v, str) for v in value):
                node.required = list(value)
            elif key == "items" and isinstance(value, dict):
                node.items = cls.from_json(value)
            elif key == "enum" and isinstance(value, list):
                node.enum = copy.deepcopy(value)
            else:
                node.extras[key] = copy.deepcopy(value)
        return node

    def to_json(self) -> dict[str, Any]:
        """Serialize back to a JSON Schema mapping."""

        out: dict[str, Any] = {}
        for key in self.key_order:
            value = self._modeled_value(key)
            if value is not None:
                out[key] = value
            elif key in self.extras:
                out[key] = copy.deepcopy(self.extras[key])
        for key in _MODELED_KEYS:
            if key in out:
                continue
            value = self._modeled_value(key)
            if value is not None:
                out[key] = value
        return out

    def type_includes(self, type_name: str) -> bool:
        if isinstance(self.type, list):
            return type_name in self.type
        return self.type == type_name

    def child_properties(self) -> dict[str, SchemaNode | Any]:
        if self.properties is None:
            self.properties = {}
        return self.properties

    def _modeled_value(self, key: str) -> Any:
        if key == "type":
            return list(self.type) if isinstance(self.type, list) else self.type
        if key == "properties":
            if self.properties is None:
                return None
            return {
                name: child.to_json() if isinstance(child, SchemaNode) else copy.deepcopy(child)
                for name, child in self.properties.items()
            }
        if key == "required":
            return list(self.required) if self.required is not None else None
        if key == "items":
            return self.items.to_json() if self.items is not None else None
        if key == "enum":
            return copy.deepcopy(self.enum) if self.enum is not None else None
        return None


def resolve_parent(node: SchemaNode, segments: list[str]) -> SchemaNode:
    """Walk ``segments`` through ``properties``, synthesizing missing objects."""

    if not segments:
        return node
    head, rest = segments[0], segments[1:]
    properties = node.child_properties()
    child = properties.get(head)
    if not isinstance(child, SchemaNode):
        child = SchemaNode(type="object", properties={})
        properties[head] = child
    return resolve_parent(_object_under_array(child), rest)


def _object_under_array(node: SchemaNode) -> SchemaNode:
    items = node.items
    if node.type_includes("array") and items is not None:
        if items.properties is not None or items.type_includes("object"):
            return items
    return node


def apply_field_edit(
    root: SchemaNode,
    field_path: str,
    operation: FieldOperation,
    value: str | None = None,
) -> None:
    """Apply one structural edit to the field addressed by a dot path."""

    segments = [segment for segment in field_path.split(".") if segment]
    if not segments:
        return
    parent = resolve_parent(root, segments[:-1])
    name = segments[-1]
    properties = parent.child_properties()
    existing = properties.get(name)
    node = existing if isinstance(existing, SchemaNode) else None

    if operation == "make_nullable":
        if node is None:
            return
        if isinstance(node.type, list):
            if "null" not in node.type:
                node.type = [*node.type, "null"]
        elif node.type and node.type != "null":
            node.type = [node.type, "null"]
    elif operation == "change_type":
        if node is not None and value:
            node.type = value
        elif existing is not None and value:
            properties[name] = SchemaNode(type=value)
    elif operation == "add_optional":
        if existing is None:
            properties[name] = SchemaNode(type=value or "string")
        if parent.required is not None:
            parent.required = [item for item in parent.required if item != name]
    elif operation == "make_optional":
        if parent.required is not None:
            parent.required = [item for item in parent.required if item != name]
            if not parent.required:
                parent.required = None
    elif operation == "add_enum_value":
        if node is not None and node.enum is not None and value is not None:
            if value not in node.enum:
                node.enum.append(value)
    elif operation == "add_required":
        if existing is None:
            properties[name] = SchemaNode(type=value or "string")
        if parent.required is None:
            parent.required = []
        if name not in parent.required:
            parent.required.append(name)


def _is_type_value(value: Any) -> bool:
    if isinstance(value, str):
        return True
    return isinstance(value, list) and all(isinstance(item, str) for item in value)
