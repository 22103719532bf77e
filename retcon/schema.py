"""Schema entries read from the directory's schema naming context."""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from enum import Enum

_log = logging.getLogger(__name__)

_I32_PATTERN = re.compile(r"[+-]?[0-9]+")
_I32_MIN = -(2**31)
_I32_MAX = 2**31 - 1

FLAG_NOT_REPLICATED = 0x1
FLAG_CONSTRUCTED = 0x4


class AttributeValueKind(Enum):
    """The kind of value an attribute holds, derived from its schema syntax."""

    BOOLEAN = "Boolean"
    INTEGER = "Integer"
    LARGE_INTEGER = "LargeInteger"
    STRING = "String"
    OCTET_STRING = "OctetString"
    SID = "Sid"
    SECURITY_DESCRIPTOR = "SecurityDescriptor"
    DN = "Dn"
    TIME = "Time"
    OBJECT = "Object"
    UNKNOWN = "Unknown"

    @classmethod
    def from_schema_pair(cls, attribute_syntax: str, om_syntax: int) -> AttributeValueKind:
        """Map an (attributeSyntax, oMSyntax) pair to a value kind."""
        return _SYNTAX_KINDS.get((attribute_syntax, om_syntax), cls.UNKNOWN)


_SYNTAX_KINDS: dict[tuple[str, int], AttributeValueKind] = {
    ("2.5.5.8", 1): AttributeValueKind.BOOLEAN,
    ("2.5.5.9", 2): AttributeValueKind.INTEGER,
    ("2.5.5.9", 10): AttributeValueKind.INTEGER,
    ("2.5.5.16", 65): AttributeValueKind.LARGE_INTEGER,
    ("2.5.5.1", 127): AttributeValueKind.DN,
    ("2.5.5.15", 66): AttributeValueKind.SECURITY_DESCRIPTOR,
    ("2.5.5.17", 4): AttributeValueKind.SID,
    ("2.5.5.10", 4): AttributeValueKind.OCTET_STRING,
    ("2.5.5.11", 23): AttributeValueKind.TIME,
    ("2.5.5.11", 24): AttributeValueKind.TIME,
    ("2.5.5.3", 27): AttributeValueKind.STRING,
    ("2.5.5.5", 22): AttributeValueKind.STRING,
    ("2.5.5.5", 19): AttributeValueKind.STRING,
    ("2.5.5.6", 18): AttributeValueKind.STRING,
    ("2.5.5.2", 6): AttributeValueKind.STRING,
    ("2.5.5.4", 20): AttributeValueKind.STRING,
    ("2.5.5.12", 64): AttributeValueKind.STRING,
    ("2.5.5.7", 127): AttributeValueKind.OBJECT,
    ("2.5.5.10", 127): AttributeValueKind.OBJECT,
    ("2.5.5.13", 127): AttributeValueKind.OBJECT,
    ("2.5.5.14", 127): AttributeValueKind.OBJECT,
}


class SchemaObjectClass(Enum):
    """Whether a schema entry describes an attribute or a class."""

    ATTRIBUTE = "Attribute"
    CLASS = "Class"


def _parse_i32(text: str) -> int | None:
    """Parse a signed 32-bit integer strictly, returning None when it is not one."""
    if not _I32_PATTERN.fullmatch(text):
        return None
    number = int(text)
    if _I32_MIN <= number <= _I32_MAX:
        return number
    return None


def _first_int(values: Sequence[str]) -> int | None:
    return _parse_i32(values[0]) if values else None


def _first_flag(values: Sequence[str]) -> bool:
    return bool(values) and values[0].upper() == "TRUE"


def _guid(values: Sequence[bytes]) -> bytes | None:
    data = bytes(values[0])
    return data if len(data) == 16 else None


@dataclass
class SchemaEntry:
    """One attributeSchema or classSchema object."""

    ldap_display_name: str = ""
    schema_id_guid: bytes | None = None
    attribute_security_guid: bytes | None = None
    object_class: SchemaObjectClass = SchemaObjectClass.ATTRIBUTE
    admin_display_name: str = ""
    dn: str = ""
    attribute_syntax: str | None = None
    om_syntax: int | None = None
    is_single_valued: bool = False
    system_only: bool = False
    system_flags: int = 0
    link_id: int | None = None
    value_kind: AttributeValueKind | None = None

    def is_not_replicated(self) -> bool:
        return bool(self.system_flags & FLAG_NOT_REPLICATED)

    def is_constructed(self) -> bool:
        return bool(self.system_flags & FLAG_CONSTRUCTED)

    def parse(
        self,
        dn: str,
        attrs: Mapping[str, Sequence[str]],
        bin_attrs: Mapping[str, Sequence[bytes]],
    ) -> None:
        """Fill this entry from a search result's text and binary attributes."""
        self.dn = dn.upper()
        for key, value in attrs.items():
            _log.debug("  %r:%r", key, value)
        for key, value in bin_attrs.items():
            _log.debug("  %r:%r", key, value)

        for key, value in attrs.items():
            if key == "lDAPDisplayName":
                self.ldap_display_name = value[0].lower()
            elif key == "adminDisplayName":
                self.admin_display_name = value[0].lower()
            elif key == "objectClass":
                self.object_class = (
                    SchemaObjectClass.CLASS
                    if value[0].lower() == "classschema"
                    else SchemaObjectClass.ATTRIBUTE
                )
            elif key == "attributeSyntax":
                self.attribute_syntax = value[0] if value else None
            elif key == "oMSyntax":
                self.om_syntax = _first_int(value)
            elif key == "isSingleValued":
                self.is_single_valued = _first_flag(value)
            elif key == "systemOnly":
                self.system_only = _first_flag(value)
            elif key == "systemFlags":
                flags = _first_int(value)
                self.system_flags = flags if flags is not None else 0
            elif key == "linkID":
                self.link_id = _first_int(value)

        for key, value in bin_attrs.items():
            if not value:
                continue
            if key == "schemaIDGUID":
                self.schema_id_guid = _guid(value)
            elif key == "attributeSecurityGUID":
                self.attribute_security_guid = _guid(value)

        if self.attribute_syntax is not None and self.om_syntax is not None:
            self.value_kind = AttributeValueKind.from_schema_pair(
                self.attribute_syntax, self.om_syntax
            )