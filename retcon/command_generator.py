"""Turn remediation actions into the commands of a remediation script."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from retcon.attribute_commands import (
    escape_dn_component,
    generate_restore_attribute_commands,
)
from retcon.attribute_control import AttributeControlSet
from retcon.remediation import (
    ActionType,
    CommandType,
    RemediationAction,
    RemediationCommand,
)

_CERTIFICATE_TEMPLATE = "pkicertificatetemplate"
_DEBUG_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t", "\0": "\\0"}


def _debug_str(value: str) -> str:
    """Quote a string the way the script format has always shown it."""
    escaped = "".join(
        _DEBUG_ESCAPES.get(ch, ch if ch.isprintable() else f"\\u{{{ord(ch):x}}}")
        for ch in value
    )
    return f'"{escaped}"'


def _debug_list(values: Sequence[str]) -> str:
    return "[" + ", ".join(_debug_str(v) for v in values) + "]"


def _comment(command: str) -> RemediationCommand:
    return RemediationCommand(CommandType.COMMENT, command, is_comment=True)


def _powershell(
    command: str, description: str, object_name: str | None = None
) -> RemediationCommand:
    return RemediationCommand(
        CommandType.POWERSHELL, command, description=description, object_name=object_name
    )


def _parent_dn(dn: str) -> str:
    return ",".join(dn.split(",")[1:])


def generate_commands(
    actions: Mapping[str, Iterable[RemediationAction]],
    naming_contexts: Sequence[str],
    attribute_control_set: AttributeControlSet,
) -> list[RemediationCommand]:
    """Generate the commands for every action, group by group."""
    return [
        command
        for action_list in actions.values()
        for action in action_list
        for command in generate_commands_for_action(
            action, naming_contexts, attribute_control_set
        )
    ]


def generate_commands_for_action(
    action: RemediationAction,
    naming_contexts: Sequence[str],
    attribute_control_set: AttributeControlSet,
) -> list[RemediationCommand]:
    """Generate the commands for a single action."""
    if action.action is ActionType.CREATE:
        return _create_commands(action, attribute_control_set)
    if action.action is ActionType.REANIMATE:
        return _reanimate_commands(action, attribute_control_set)
    if action.action is ActionType.DELETE:
        return _delete_commands(action, naming_contexts, attribute_control_set)
    return _modify_commands(action, attribute_control_set)


def extract_naming_context(dn: str, naming_contexts: Sequence[str]) -> str | None:
    """Return the longest naming context that ``dn`` lives in, or None."""
    lowered = dn.lower()
    for context in sorted(naming_contexts, key=len, reverse=True):
        nc = context.lower()
        if lowered == nc or lowered.endswith("," + nc):
            return context
    return None


def _create_commands(
    action: RemediationAction, attribute_control_set: AttributeControlSet
) -> list[RemediationCommand]:
    record = action.target
    if record is None:
        return []
    commands = [
        _comment(
            f"Create new object of class {_debug_list(record.object_class)} "
            "with attributes from baseline"
        )
    ]
    object_name = record.name if record.name is not None else ""
    object_class = next(
        (c for c in reversed(record.object_class) if c.lower() != "top"),
        record.object_class[0] if record.object_class else "",
    )
    commands.append(
        _powershell(
            f"New-ADObject -Name '{escape_dn_component(object_name)}' "
            f"-Type '{escape_dn_component(object_class)}' "
            f"-Path '{escape_dn_component(_parent_dn(record.dn))}'",
            "Create new object based on baseline",
            object_name=record.name,
        )
    )
    commands.extend(
        generate_restore_attribute_commands(record, None, record.dn, attribute_control_set)
    )
    if object_class.lower() == _CERTIFICATE_TEMPLATE:
        escaped = escape_dn_component(object_name)
        commands.append(
            _comment(
                f"Object {escaped} is Certificate Template, "
                "using PSPKI CA cmdlets to create and enable"
            )
        )
        commands.append(
            _powershell(
                "Get-CertificationAuthority | Get-CATemplate | "
                f"Add-CATemplate -Name '{escaped}' | Set-CATemplate;",
                "Delete the object",
            )
        )
    return commands


def _delete_commands(
    action: RemediationAction,
    naming_contexts: Sequence[str],
    attribute_control_set: AttributeControlSet,
) -> list[RemediationCommand]:
    commands: list[RemediationCommand] = []
    target, current = action.target, action.current
    current_dn = current.dn if current is not None else ""
    new_dn = current_dn
    parent = action.last_known_parent

    if parent is not None:
        commands.append(_comment("Step 1: Move object to lastKnownParent before deletion"))
        commands.append(
            _powershell(
                f"Move-ADObject -Identity '{current_dn}' -TargetPath '{parent}'",
                "Move object to lastKnownParent before deletion",
            )
        )
        if current is not None and current.name is not None:
            new_dn = f"CN={escape_dn_component(current.name)},{parent}"
        if target is not None and current is not None:
            commands.extend(
                generate_restore_attribute_commands(
                    target, current, target.dn, attribute_control_set
                )
            )
        commands.append(_comment("Step 2: Delete the object"))
    else:
        commands.append(
            _comment(
                "WARNING: lastKnownParent not found in baseline, deleting directly "
                "(object may not be recoverable if not moved first)"
            )
        )

    if current is None:
        return commands

    is_template = any(c.lower() == _CERTIFICATE_TEMPLATE for c in current.object_class)
    if is_template and target is None:
        template_name = escape_dn_component(
            current.name if current.name is not None else "unknown-template"
        )
        commands.append(
            _comment(
                f"Object '{template_name}' is a Certificate Template, using CA cmdlets "
                "to delete to avoid orphaned CN=Deleted Objects entry"
            )
        )
        commands.append(
            _powershell(
                "Get-CertificationAuthority | Get-CATemplate | "
                f"Remove-CATemplate -Name '{template_name}' | Set-CATemplate; "
                f"Remove-ADObject -Identity '{new_dn}' -Recursive -Confirm:$false",
                "Delete the object",
            )
        )
    else:
        commands.append(
            _powershell(
                f"Remove-ADObject -Identity '{new_dn}' -Recursive -Confirm:$false",
                "Delete the object",
            )
        )

    context = extract_naming_context(current.dn, naming_contexts) or "unknown"
    commands.append(
        _powershell(
            "Get-ADObject -Filter 'isDeleted -eq $true' -IncludeDeletedObjects "
            f"-SearchBase 'CN=Deleted Objects,{context}' | "
            f"Where-Object {{ $_.DistinguishedName -ne 'CN=Deleted Objects,{context}' }} "
            "|  Remove-ADObject -Recursive -Confirm:$false",
            "Clear the recycle bin of the deleted object",
        )
    )
    return commands


def _modify_commands(
    action: RemediationAction, attribute_control_set: AttributeControlSet
) -> list[RemediationCommand]:
    target = action.target
    if target is None:
        return []
    return generate_restore_attribute_commands(
        target, action.current, target.dn, attribute_control_set
    )


def _reanimate_commands(
    action: RemediationAction, attribute_control_set: AttributeControlSet
) -> list[RemediationCommand]:
    target = action.target
    if target is None:
        return []
    commands: list[RemediationCommand] = []
    current_dn = action.current.dn if action.current is not None else ""
    if target.dn and current_dn.lower() != target.dn.lower():
        commands.append(
            _powershell(
                f"Restore-ADObject -Identity '{_debug_str(current_dn)}' "
                f"-TargetPath '{_debug_str(_parent_dn(target.dn))}' -Confirm:$false",
                "Move object back to original location",
            )
        )
    commands.extend(
        generate_restore_attribute_commands(
            target, action.current, current_dn, attribute_control_set
        )
    )
    return commands