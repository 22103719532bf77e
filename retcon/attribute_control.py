"""Allow list and system attribute set derived from the schema."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from retcon.schema import AttributeValueKind, SchemaEntry, SchemaObjectClass


@dataclass(frozen=True)
class AllowedAttribute:
    """How a watched attribute is stored."""

    is_single_valued: bool
    value_kind: AttributeValueKind | None = None
    link_id: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "is_single_valued": self.is_single_valued,
            "value_kind": self.value_kind.value if self.value_kind is not None else None,
            "link_id": self.link_id,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AllowedAttribute:
        single = data["is_single_valued"]
        if not isinstance(single, bool):
            raise ValueError("is_single_valued must be a boolean")
        kind = data.get("value_kind")
        link_id = data.get("link_id")
        if link_id is not None and (isinstance(link_id, bool) or not isinstance(link_id, int)):
            raise ValueError("link_id must be an integer or null")
        return cls(
            is_single_valued=single,
            value_kind=AttributeValueKind(kind) if kind is not None else None,
            link_id=link_id,
        )


@dataclass
class AttributeControlSet:
    """Attributes to ignore and attributes to watch, keyed by lowercase name."""

    system_attributes: set[str] = field(default_factory=set)
    allow_list: dict[str, AllowedAttribute] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "system_attributes": sorted(self.system_attributes),
            "allow_list": {name: attr.to_dict() for name, attr in self.allow_list.items()},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AttributeControlSet:
        """Build a control set from its JSON form, raising ValueError when malformed."""
        try:
            system = data["system_attributes"]
            allow = data["allow_list"]
            if not all(isinstance(name, str) for name in system):
                raise ValueError("system_attributes must hold strings")
            return cls(
                system_attributes=set(system),
                allow_list={
                    str(name): AllowedAttribute.from_dict(attr) for name, attr in allow.items()
                },
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f"malformed attribute control set: {exc}") from exc


def build_attribute_control_sets(
    entries: Iterable[SchemaEntry],
    attributes_to_always_ignore: Iterable[str],
    schema_output_path: str | Path,
    update_schema_file: bool,
) -> AttributeControlSet:
    """Split schema attributes into system attributes and an allow list."""
    ignored = set(attributes_to_always_ignore)
    control_set = AttributeControlSet()
    for entry in entries:
        if entry.object_class is not SchemaObjectClass.ATTRIBUTE:
            continue
        name = entry.ldap_display_name.lower()
        if (
            entry.system_only
            or entry.is_constructed()
            or entry.is_not_replicated()
            or name in ignored
        ):
            control_set.system_attributes.add(name)
        else:
            control_set.allow_list[name] = AllowedAttribute(
                is_single_valued=entry.is_single_valued,
                value_kind=entry.value_kind,
                link_id=entry.link_id,
            )

    if update_schema_file:
        Path(schema_output_path).write_text(
            json.dumps(control_set.to_dict(), separators=(",", ":")), encoding="utf-8"
        )
    return control_set


def load_attribute_control_set(schema_path: str | Path) -> AttributeControlSet:
    """Load a control set from JSON; a missing file gives an empty set."""
    path = Path(schema_path)
    if not path.exists():
        return AttributeControlSet()
    with path.open(encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, Mapping):
        raise ValueError("attribute control set must be a JSON object")
    return AttributeControlSet.from_dict(data)