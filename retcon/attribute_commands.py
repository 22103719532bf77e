"""Commands that bring an object's attributes and security descriptor back to baseline."""

from __future__ import annotations

import base64
from collections.abc import Mapping, Sequence

from retcon.attribute_control import AttributeControlSet
from retcon.directory_objects import DirectoryObject
from retcon.remediation import CommandType, RemediationCommand

_SDDL_PREFIXES = ("O:", "G:", "D:", "S:")


def escape_dn_component(value: str) -> str:
    """Escape line breaks in a DN component."""
    return value.replace("\n", "\\0A").replace("\r", "\\0D")


def escape_powershell_single_quoted(value: str) -> str:
    """Escape a value for use inside a single-quoted PowerShell string."""
    return value.replace("'", "''")


def is_probably_sddl_string(data: bytes) -> str | None:
    """Return the trimmed text if the bytes look like an SDDL string, else None."""
    try:
        text = bytes(data).decode("utf-8").strip()
    except UnicodeDecodeError:
        return None
    if text and text.startswith(_SDDL_PREFIXES):
        return text
    return None


def is_nt_security_descriptor_attr(attr_name: str) -> bool:
    """Tell whether an attribute name, ignoring any ;options, is nTSecurityDescriptor."""
    base = attr_name.split(";", 1)[0]
    return base.lower() == "ntsecuritydescriptor"


def _powershell(command: str, description: str) -> RemediationCommand:
    return RemediationCommand(CommandType.POWERSHELL, command, description=description)


def _comment(command: str) -> RemediationCommand:
    return RemediationCommand(CommandType.COMMENT, command, is_comment=True)


def _differs(current: Mapping[str, Sequence], attr: str, values: Sequence) -> bool:
    return attr not in current or list(current[attr]) != list(values)


def generate_restore_attribute_commands(
    target: DirectoryObject,
    current: DirectoryObject | None,
    identity_dn: str,
    attribute_control_set: AttributeControlSet,
) -> list[RemediationCommand]:
    """Generate commands that restore ``target``'s attributes over ``current``."""
    commands: list[RemediationCommand] = []

    current_sddl = current.sddl if current is not None else None
    if target.sddl and current_sddl != target.sddl:
        commands.extend(generate_sddl_commands(identity_dn, target.sddl))

    current_attributes = current.attributes if current is not None else {}
    current_bin = current.bin_attributes if current is not None else {}

    to_replace = {
        attr: [escape_powershell_single_quoted(v) for v in values]
        for attr, values in target.attributes.items()
        if _differs(current_attributes, attr, values)
    }
    to_clear = [attr for attr in current_attributes if attr not in target.attributes]

    to_replace_bin = {
        attr: [base64.b64encode(bytes(v)).decode("ascii") for v in values]
        for attr, values in target.bin_attributes.items()
        if not is_nt_security_descriptor_attr(attr) and _differs(current_bin, attr, values)
    }
    to_clear.extend(
        attr
        for attr in current_bin
        if not is_nt_security_descriptor_attr(attr) and attr not in target.bin_attributes
    )

    parts = []
    for attr, values in to_replace.items():
        quoted = ",".join(f"'{v}'" for v in values)
        parts.append(f"'{attr}'=@({quoted});")
    for attr, encoded in to_replace_bin.items():
        allowed = attribute_control_set.allow_list.get(attr)
        decoded = [f"[Convert]::FromBase64String('{v}')" for v in encoded]
        if allowed is not None and allowed.is_single_valued and decoded:
            parts.append(f"'{attr}'={decoded[0]};")
        else:
            parts.append(f"'{attr}'=@({','.join(decoded)});")
    replace_object = "@{" + "".join(parts) + "}"

    commands.append(
        _powershell(
            f"Set-ADObject -Identity '{identity_dn}' -Replace {replace_object}",
            "Replace modified attributes",
        )
    )

    if to_clear:
        clear_array = ",".join(f"'{attr}'" for attr in to_clear)
        commands.append(
            _powershell(
                f"Set-ADObject -Identity '{identity_dn}' -Clear @({clear_array})",
                "Clear removed attributes",
            )
        )
    return commands


def generate_sddl_commands(dn: str, baseline_sd: bytes | None) -> list[RemediationCommand]:
    """Generate commands that put the baseline security descriptor back on ``dn``."""
    commands = [_comment("Restore security descriptor from baseline")]
    if not baseline_sd:
        commands.append(_comment("Manual review is required, no baseline SDDL was captured"))
        return commands

    sddl = is_probably_sddl_string(baseline_sd)
    if sddl is not None:
        commands.append(
            _powershell(f"$sddl = '{escape_powershell_single_quoted(sddl)}'", "Set SDDL variable")
        )
    else:
        encoded = base64.b64encode(bytes(baseline_sd)).decode("ascii")
        commands.append(
            _powershell(
                f"$baselineSd = [Convert]::FromBase64String('{encoded}')",
                "Decode baseline security descriptor",
            )
        )
        commands.append(
            _powershell(
                "$sddl = (New-Object System.Security.AccessControl.RawSecurityDescriptor"
                "($baselineSd, 0)).GetSddlForm"
                "([System.Security.AccessControl.AccessControlSections]::All)",
                "Set SDDL variable",
            )
        )

    commands.extend(
        [
            _powershell(f"$acl = Get-Acl 'AD:\\{dn}'", "Get current ACL"),
            _powershell("$acl.SetSecurityDescriptorSddlForm($sddl)", "Set SDDL form"),
            _powershell(f"Set-Acl -Path 'AD:\\{dn}' -AclObject $acl", "Apply ACL to object"),
            RemediationCommand(CommandType.COMMENT, "# OR use dsacls:"),
            RemediationCommand(
                CommandType.DSACLS,
                f"# dsacls '{dn}' /S /T",
                description="Alternative using dsacls",
                is_comment=True,
            ),
        ]
    )
    return commands