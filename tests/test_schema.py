import pytest

from retcon.schema import AttributeValueKind, SchemaEntry, SchemaObjectClass


@pytest.mark.parametrize(
    ("syntax", "om", "kind"),
    [
        ("2.5.5.8", 1, AttributeValueKind.BOOLEAN),
        ("2.5.5.9", 2, AttributeValueKind.INTEGER),
        ("2.5.5.9", 10, AttributeValueKind.INTEGER),
        ("2.5.5.16", 65, AttributeValueKind.LARGE_INTEGER),
        ("2.5.5.1", 127, AttributeValueKind.DN),
        ("2.5.5.15", 66, AttributeValueKind.SECURITY_DESCRIPTOR),
        ("2.5.5.17", 4, AttributeValueKind.SID),
        ("2.5.5.10", 4, AttributeValueKind.OCTET_STRING),
        ("2.5.5.11", 23, AttributeValueKind.TIME),
        ("2.5.5.11", 24, AttributeValueKind.TIME),
        ("2.5.5.3", 27, AttributeValueKind.STRING),
        ("2.5.5.5", 22, AttributeValueKind.STRING),
        ("2.5.5.5", 19, AttributeValueKind.STRING),
        ("2.5.5.6", 18, AttributeValueKind.STRING),
        ("2.5.5.2", 6, AttributeValueKind.STRING),
        ("2.5.5.4", 20, AttributeValueKind.STRING),
        ("2.5.5.12", 64, AttributeValueKind.STRING),
        ("2.5.5.7", 127, AttributeValueKind.OBJECT),
        ("2.5.5.10", 127, AttributeValueKind.OBJECT),
        ("2.5.5.13", 127, AttributeValueKind.OBJECT),
        ("2.5.5.14", 127, AttributeValueKind.OBJECT),
    ],
)
def test_from_schema_pair_known(syntax, om, kind):
    assert AttributeValueKind.from_schema_pair(syntax, om) is kind


@pytest.mark.parametrize(("syntax", "om"), [("2.5.5.8", 2), ("9.9.9", 1), ("2.5.5.1", 4)])
def test_from_schema_pair_unknown(syntax, om):
    assert AttributeValueKind.from_schema_pair(syntax, om) is AttributeValueKind.UNKNOWN


@pytest.mark.parametrize(
    ("flags", "not_replicated", "constructed"),
    [(0, False, False), (0x1, True, False), (0x4, False, True), (0x5, True, True)],
)
def test_system_flag_checks(flags, not_replicated, constructed):
    entry = SchemaEntry(system_flags=flags)
    assert entry.is_not_replicated() is not_replicated
    assert entry.is_constructed() is constructed


def test_parse_full_entry():
    guid = bytes(range(16))
    security_guid = bytes(range(16, 32))
    entry = SchemaEntry()
    entry.parse(
        "cn=Is-Deleted,cn=Schema,cn=Configuration,dc=example,dc=com",
        {
            "lDAPDisplayName": ["isDeleted"],
            "adminDisplayName": ["Is-Deleted"],
            "objectClass": ["attributeSchema"],
            "attributeSyntax": ["2.5.5.8"],
            "oMSyntax": ["1"],
            "isSingleValued": ["TRUE"],
            "systemOnly": ["FALSE"],
            "systemFlags": ["4"],
            "linkID": ["12"],
        },
        {"schemaIDGUID": [guid], "attributeSecurityGUID": [security_guid]},
    )
    assert entry.dn == "CN=IS-DELETED,CN=SCHEMA,CN=CONFIGURATION,DC=EXAMPLE,DC=COM"
    assert entry.ldap_display_name == "isdeleted"
    assert entry.admin_display_name == "is-deleted"
    assert entry.object_class is SchemaObjectClass.ATTRIBUTE
    assert entry.attribute_syntax == "2.5.5.8"
    assert entry.om_syntax == 1
    assert entry.is_single_valued is True
    assert entry.system_only is False
    assert entry.system_flags == 4
    assert entry.is_constructed() is True
    assert entry.link_id == 12
    assert entry.schema_id_guid == guid
    assert entry.attribute_security_guid == security_guid
    assert entry.value_kind is AttributeValueKind.BOOLEAN


def test_parse_class_schema_case_insensitive():
    entry = SchemaEntry()
    entry.parse("cn=User", {"objectClass": ["ClassSchema"]}, {})
    assert entry.object_class is SchemaObjectClass.CLASS


def test_parse_lowercase_true_is_accepted():
    entry = SchemaEntry()
    entry.parse("cn=a", {"isSingleValued": ["true"], "systemOnly": ["True"]}, {})
    assert entry.is_single_valued is True
    assert entry.system_only is True


def test_parse_bad_numbers():
    entry = SchemaEntry()
    entry.parse(
        "cn=a",
        {"attributeSyntax": ["2.5.5.8"], "oMSyntax": ["abc"], "systemFlags": ["x"], "linkID": ["99999999999"]},
        {},
    )
    assert entry.om_syntax is None
    assert entry.system_flags == 0
    assert entry.link_id is None
    assert entry.value_kind is None


def test_parse_wrong_guid_length():
    entry = SchemaEntry()
    entry.parse("cn=a", {}, {"schemaIDGUID": [b"\x01\x02"]})
    assert entry.schema_id_guid is None


def test_parse_empty_display_name_raises():
    entry = SchemaEntry()
    with pytest.raises(IndexError):
        entry.parse("cn=a", {"lDAPDisplayName": []}, {})