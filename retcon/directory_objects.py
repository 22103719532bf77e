"""Directory objects captured from the directory and their storage."""

from __future__ import annotations

import hashlib
import json
import struct
import zlib
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from retcon.attribute_control import AttributeControlSet
from retcon.schema import SchemaEntry

_SECURITY_DESCRIPTOR = "ntsecuritydescriptor"
_BIN_MAGIC = b"RCDO\x01"


def _length_prefix(count: int) -> bytes:
    return struct.pack(">I", count)


def compute_hash(
    attributes: Mapping[str, Sequence[str]],
    bin_attributes: Mapping[str, Sequence[bytes]],
) -> str:
    """Return an order-independent SHA-1 digest of the attributes, in upper-case hex."""
    hasher = hashlib.sha1()
    for key in sorted(attributes):
        key_bytes = key.encode("utf-8")
        values = sorted(attributes[key])
        hasher.update(_length_prefix(len(key_bytes)))
        hasher.update(key_bytes)
        hasher.update(_length_prefix(len(values)))
        for value in values:
            value_bytes = value.encode("utf-8")
            hasher.update(_length_prefix(len(value_bytes)))
            hasher.update(value_bytes)
    for key in sorted(bin_attributes):
        key_bytes = key.encode("utf-8")
        values = sorted(bytes(v) for v in bin_attributes[key])
        hasher.update(_length_prefix(len(key_bytes)))
        hasher.update(key_bytes)
        hasher.update(_length_prefix(len(values)))
        for value in values:
            hasher.update(_length_prefix(len(value)))
            hasher.update(value)
    return hasher.hexdigest().upper()


@dataclass
class DirectoryObject:
    """A directory entry reduced to its watched attributes."""

    dn: str
    name: str | None = None
    sddl: bytes | None = None
    object_class: list[str] = field(default_factory=list)
    is_deleted: bool = False
    attributes: dict[str, list[str]] = field(default_factory=dict)
    bin_attributes: dict[str, list[bytes]] = field(default_factory=dict)
    hash: str = ""

    @classmethod
    def from_ldap_entry(
        cls,
        dn: str,
        attrs: Mapping[str, Sequence[str]],
        bin_attrs: Mapping[str, Sequence[bytes]],
        attribute_control_set: AttributeControlSet,
    ) -> DirectoryObject:
        """Build an object from a search result, keeping only allow-listed attributes."""
        names = attrs.get("name")
        name = names[0] if names else None
        object_class = list(attrs.get("objectClass", []))
        sddl = next(
            (
                bytes(values[0])
                for key, values in bin_attrs.items()
                if key.lower() == _SECURITY_DESCRIPTOR and values
            ),
            None,
        )

        allowed = attribute_control_set.allow_list
        attributes: dict[str, list[str]] = {}
        for key, values in attrs.items():
            normalized = key.lower()
            if normalized in allowed:
                attributes.setdefault(normalized, []).extend(values)

        bin_attributes: dict[str, list[bytes]] = {}
        for key, values in bin_attrs.items():
            normalized = key.lower()
            if normalized == _SECURITY_DESCRIPTOR:
                continue
            if normalized in allowed:
                bin_attributes.setdefault(normalized, []).extend(bytes(v) for v in values)

        for values in attributes.values():
            values.sort()
        for bin_values in bin_attributes.values():
            bin_values.sort()

        deleted_values = attributes.get("isdeleted")
        is_deleted = (
            bool(deleted_values) and deleted_values[0].upper() == "TRUE"
        ) or "cn=deleted objects" in dn.lower()

        return cls(
            dn=dn,
            name=name,
            sddl=sddl,
            object_class=object_class,
            is_deleted=is_deleted,
            attributes=attributes,
            bin_attributes=bin_attributes,
            hash=compute_hash(attributes, bin_attributes),
        )

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON form; byte strings become lists of integers."""
        return {
            "dn": self.dn,
            "name": self.name,
            "sddl": list(self.sddl) if self.sddl is not None else None,
            "object_class": list(self.object_class),
            "is_deleted": self.is_deleted,
            "attributes": {k: list(v) for k, v in self.attributes.items()},
            "bin_attributes": {k: [list(b) for b in v] for k, v in self.bin_attributes.items()},
            "hash": self.hash,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> DirectoryObject:
        """Rebuild an object from its JSON form, raising ValueError when malformed."""
        try:
            sddl = data["sddl"]
            return cls(
                dn=str(data["dn"]),
                name=data["name"],
                sddl=bytes(sddl) if sddl is not None else None,
                object_class=[str(c) for c in data["object_class"]],
                is_deleted=bool(data["is_deleted"]),
                attributes={str(k): [str(x) for x in v] for k, v in data["attributes"].items()},
                bin_attributes={
                    str(k): [bytes(b) for b in v] for k, v in data["bin_attributes"].items()
                },
                hash=str(data["hash"]),
            )
        except (KeyError, TypeError, AttributeError) as exc:
            raise ValueError(f"malformed directory object: {exc}") from exc


def save_directory_objects_to_bin_file(
    objects: Iterable[DirectoryObject], path: str | Path
) -> None:
    """Write objects to a compact compressed file."""
    payload = json.dumps([obj.to_dict() for obj in objects], separators=(",", ":"))
    Path(path).write_bytes(_BIN_MAGIC + zlib.compress(payload.encode("utf-8")))


def save_directory_objects_to_json_file(
    objects: Iterable[DirectoryObject], path: str | Path
) -> Path:
    """Write objects as pretty JSON next to ``path`` with a .json extension."""
    json_path = Path(path).with_suffix(".json")
    json_path.write_text(
        json.dumps([obj.to_dict() for obj in objects], indent=2), encoding="utf-8"
    )
    return json_path


def read_directory_objects_from_bin_file(path: str | Path) -> list[DirectoryObject]:
    """Read objects written by :func:`save_directory_objects_to_bin_file`."""
    raw = Path(path).read_bytes()
    if not raw.startswith(_BIN_MAGIC):
        raise ValueError(f"{path} is not a directory object file")
    try:
        data = json.loads(zlib.decompress(raw[len(_BIN_MAGIC):]).decode("utf-8"))
    except (zlib.error, UnicodeDecodeError) as exc:
        raise ValueError(f"corrupt directory object file: {exc}") from exc
    if not isinstance(data, list):
        raise ValueError("directory object file must hold a list")
    return [DirectoryObject.from_dict(item) for item in data]


@dataclass
class DomainMappings:
    """Lookup tables gathered while collecting a domain."""

    dn_sid: dict[str, str] = field(default_factory=dict)
    sid_type: dict[str, str] = field(default_factory=dict)
    fqdn_sid: dict[str, str] = field(default_factory=dict)
    fqdn_ip: dict[str, str] = field(default_factory=dict)


@dataclass
class ADResults:
    """Everything collected from one directory run."""

    schema_entries: list[SchemaEntry] = field(default_factory=list)
    directory_objects: list[DirectoryObject] = field(default_factory=list)
    mappings: DomainMappings = field(default_factory=DomainMappings)