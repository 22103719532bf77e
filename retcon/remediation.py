"""Remediation actions and the commands generated for them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from retcon.directory_objects import DirectoryObject


class CommandType(Enum):
    """Which tool a generated command is meant for."""

    POWERSHELL = "PowerShell"
    DSACLS = "DsAcls"
    COMMENT = "Comment"


class ActionType(Enum):
    """What has to happen to bring an object back to its baseline."""

    CREATE = "Create"
    REANIMATE = "Reanimate"
    MODIFY = "Modify"
    DELETE = "Delete"


@dataclass
class RemediationCommand:
    """One line of a generated remediation script."""

    command_type: CommandType
    command: str
    description: str | None = None
    object_name: str | None = None
    is_comment: bool = False


@dataclass
class RemediationAction:
    """A change to apply: the baseline target and the object as it is now."""

    action: ActionType
    target: DirectoryObject | None = None
    current: DirectoryObject | None = None
    last_known_parent: str | None = None