import base64

import pytest

from retcon.attribute_commands import (
    escape_dn_component,
    escape_powershell_single_quoted,
    generate_restore_attribute_commands,
    generate_sddl_commands,
    is_nt_security_descriptor_attr,
    is_probably_sddl_string,
)
from retcon.attribute_control import AllowedAttribute, AttributeControlSet
from retcon.directory_objects import DirectoryObject
from retcon.remediation import CommandType

DN = "CN=Alice,OU=Staff,DC=example,DC=local"


def _controls():
    return AttributeControlSet(
        allow_list={
            "description": AllowedAttribute(is_single_valued=True),
            "pkikeyusage": AllowedAttribute(is_single_valued=True),
            "pkicriticalextensions": AllowedAttribute(is_single_valued=False),
        }
    )


def _commands(cmds):
    return [c.command for c in cmds]


def test_escape_dn_component_line_breaks():
    assert escape_dn_component("a\nb\rc") == "a\\0Ab\\0Dc"
    assert escape_dn_component("plain") == "plain"


def test_escape_powershell_single_quoted_doubles_quotes():
    assert escape_powershell_single_quoted("O'Brien's") == "O''Brien''s"


@pytest.mark.parametrize(
    "data, expected",
    [
        (b"  O:BAG:BA ", "O:BAG:BA"),
        (b"D:(A;;GA;;;SY)", "D:(A;;GA;;;SY)"),
        (b"", None),
        (b"   ", None),
        (b"\xff\xfe", None),
        (b"hello", None),
    ],
)
def test_is_probably_sddl_string(data, expected):
    assert is_probably_sddl_string(data) == expected


@pytest.mark.parametrize(
    "name, expected",
    [
        ("nTSecurityDescriptor", True),
        ("ntsecuritydescriptor;binary", True),
        ("description", False),
        ("xntsecuritydescriptor", False),
    ],
)
def test_is_nt_security_descriptor_attr(name, expected):
    assert is_nt_security_descriptor_attr(name) is expected


def test_sddl_commands_without_baseline():
    cmds = generate_sddl_commands(DN, None)
    assert _commands(cmds) == [
        "Restore security descriptor from baseline",
        "Manual review is required, no baseline SDDL was captured",
    ]
    assert all(c.is_comment for c in cmds)
    assert generate_sddl_commands(DN, b"") == cmds


def test_sddl_commands_from_sddl_text():
    cmds = generate_sddl_commands(DN, b"O:BAG:BAD:(A;;GA;;;S'Y)")
    assert _commands(cmds) == [
        "Restore security descriptor from baseline",
        "$sddl = 'O:BAG:BAD:(A;;GA;;;S''Y)'",
        f"$acl = Get-Acl 'AD:\\{DN}'",
        "$acl.SetSecurityDescriptorSddlForm($sddl)",
        f"Set-Acl -Path 'AD:\\{DN}' -AclObject $acl",
        "# OR use dsacls:",
        f"# dsacls '{DN}' /S /T",
    ]
    assert cmds[-1].command_type is CommandType.DSACLS
    assert cmds[-1].is_comment is True
    assert cmds[-2].is_comment is False


def test_sddl_commands_from_binary_descriptor():
    raw = b"\x01\x00\x04\x80\x14\x00"
    cmds = generate_sddl_commands(DN, raw)
    encoded = base64.b64encode(raw).decode()
    assert cmds[1].command == f"$baselineSd = [Convert]::FromBase64String('{encoded}')"
    assert cmds[1].description == "Decode baseline security descriptor"
    assert cmds[2].command.startswith("$sddl = (New-Object")
    assert cmds[2].description == "Set SDDL variable"
    assert len(cmds) == 8


def test_restore_without_current_replaces_everything():
    target = DirectoryObject(dn=DN, attributes={"description": ["it's me"]})
    cmds = generate_restore_attribute_commands(target, None, DN, _controls())
    assert _commands(cmds) == [
        f"Set-ADObject -Identity '{DN}' -Replace @{{'description'=@('it''s me');}}"
    ]
    assert cmds[0].description == "Replace modified attributes"


def test_restore_identical_objects_gives_empty_replace():
    target = DirectoryObject(dn=DN, attributes={"description": ["x"]})
    current = DirectoryObject(dn=DN, attributes={"description": ["x"]})
    cmds = generate_restore_attribute_commands(target, current, DN, _controls())
    assert _commands(cmds) == [f"Set-ADObject -Identity '{DN}' -Replace @{{}}"]


def test_restore_clears_removed_attributes():
    target = DirectoryObject(dn=DN)
    current = DirectoryObject(
        dn=DN,
        attributes={"description": ["x"]},
        bin_attributes={"pkikeyusage": [b"\x80"], "ntsecuritydescriptor": [b"\x01"]},
    )
    cmds = generate_restore_attribute_commands(target, current, DN, _controls())
    assert cmds[-1].command == (
        f"Set-ADObject -Identity '{DN}' -Clear @('description','pkikeyusage')"
    )
    assert cmds[-1].description == "Clear removed attributes"


def test_restore_binary_single_and_multi_valued():
    target = DirectoryObject(
        dn=DN,
        bin_attributes={
            "pkikeyusage": [b"\x80\x00"],
            "pkicriticalextensions": [b"\x01", b"\x02"],
            "nTSecurityDescriptor": [b"\x09"],
        },
    )
    cmds = generate_restore_attribute_commands(target, None, DN, _controls())
    replace = cmds[0].command
    usage = base64.b64encode(b"\x80\x00").decode()
    one = base64.b64encode(b"\x01").decode()
    two = base64.b64encode(b"\x02").decode()
    assert f"'pkikeyusage'=[Convert]::FromBase64String('{usage}');" in replace
    assert (
        f"'pkicriticalextensions'=@([Convert]::FromBase64String('{one}'),"
        f"[Convert]::FromBase64String('{two}'));" in replace
    )
    assert "nTSecurityDescriptor" not in replace


def test_restore_emits_sddl_commands_only_when_descriptor_differs():
    sd = b"O:BAG:BA"
    target = DirectoryObject(dn=DN, sddl=sd)
    same = DirectoryObject(dn=DN, sddl=sd)
    other = DirectoryObject(dn=DN, sddl=b"O:SY")

    unchanged = generate_restore_attribute_commands(target, same, DN, _controls())
    changed = generate_restore_attribute_commands(target, other, DN, _controls())

    assert len(unchanged) == 1
    assert changed[0].command == "Restore security descriptor from baseline"
    assert changed[1].command == "$sddl = 'O:BAG:BA'"
    assert changed[-1].command == f"Set-ADObject -Identity '{DN}' -Replace @{{}}"
    assert changed[:-1] == generate_sddl_commands(DN, sd)