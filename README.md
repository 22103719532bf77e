# retcon

`retcon` is a library for comparing Active Directory objects against a saved
baseline and turning the differences into PowerShell remediation commands.
It decides which schema attributes are worth tracking, stores directory
objects with a stable content hash, and generates `New-ADObject`,
`Restore-ADObject`, `Set-ADObject`, `Remove-ADObject` and ACL commands that
bring objects back to their baseline state.

It needs nothing beyond the Python standard library and supports Python 3.10
and later.

## Modules

### `retcon.schema`

- `SchemaEntry` – one `attributeSchema` or `classSchema` entry.
  `SchemaEntry.parse(dn, attrs, bin_attrs)` fills it from a search result's
  text attributes (`lDAPDisplayName`, `adminDisplayName`, `objectClass`,
  `attributeSyntax`, `oMSyntax`, `isSingleValued`, `systemOnly`,
  `systemFlags`, `linkID`) and binary attributes (`schemaIDGUID`,
  `attributeSecurityGUID`, kept only when exactly 16 bytes). The DN is
  upper-cased and display names lower-cased. `is_not_replicated()` and
  `is_constructed()` test bits `0x1` and `0x4` of `system_flags`.
- `AttributeValueKind.from_schema_pair(attribute_syntax, om_syntax)` maps a
  syntax pair to `BOOLEAN`, `INTEGER`, `LARGE_INTEGER`, `STRING`,
  `OCTET_STRING`, `SID`, `SECURITY_DESCRIPTOR`, `DN`, `TIME`, `OBJECT`, or
  `UNKNOWN` for anything else.
- `SchemaObjectClass` – `ATTRIBUTE` or `CLASS`.

### `retcon.attribute_control`

- `build_attribute_control_sets(entries, attributes_to_always_ignore,
  schema_output_path, update_schema_file)` puts every attribute entry that is
  system-only, constructed, not replicated or in the ignore list into
  `system_attributes`, and every other one into `allow_list` as an
  `AllowedAttribute` (`is_single_valued`, `value_kind`, `link_id`). When
  `update_schema_file` is true the result is also written as JSON.
- `load_attribute_control_set(schema_path)` reads that JSON back; a missing
  file gives an empty `AttributeControlSet`, a malformed one raises
  `ValueError`. `AttributeControlSet.to_dict()` / `from_dict()` convert to and
  from the JSON form.

### `retcon.directory_objects`

- `DirectoryObject.from_ldap_entry(dn, attrs, bin_attrs, attribute_control_set)`
  keeps only allow-listed attributes, lower-cases their names, sorts their
  values, takes `nTSecurityDescriptor` into `sddl`, marks the object deleted
  when `isDeleted` is `TRUE` or the DN contains `CN=Deleted Objects`, and
  sets `hash` with `compute_hash`.
- `compute_hash(attributes, bin_attributes)` – an upper-case hex SHA-1 over
  length-prefixed, sorted keys and values, so captures of the same object
  hash equal regardless of ordering.
- `save_directory_objects_to_bin_file` / `read_directory_objects_from_bin_file`
  store objects in a compressed file with its own header;
  `save_directory_objects_to_json_file` writes pretty JSON next to the given
  path with a `.json` extension and returns that path.
- `ADResults` and `DomainMappings` are plain containers for collected data.

### `retcon.remediation`

`RemediationAction` pairs an `ActionType` (`CREATE`, `REANIMATE`, `MODIFY`,
`DELETE`) with the baseline `target`, the `current` object and an optional
`last_known_parent`. `RemediationCommand` is one generated line, tagged with
a `CommandType` (`POWERSHELL`, `DSACLS`, `COMMENT`).

### `retcon.command_generator` and `retcon.attribute_commands`

- `generate_commands(actions, naming_contexts, attribute_control_set)` takes a
  mapping of action lists and returns the commands for all of them;
  `generate_commands_for_action` handles a single action.
- Create actions produce `New-ADObject` plus attribute restores (and
  `Add-CATemplate` for certificate templates). Reanimate actions produce
  `Restore-ADObject` when the object has moved. Delete actions move the
  object to `last_known_parent` first when one is known, remove it (through
  `Remove-CATemplate` for certificate templates without a baseline), then
  empty the `CN=Deleted Objects` container of the object's naming context,
  found by `extract_naming_context`.
- `generate_restore_attribute_commands` emits one `Set-ADObject -Replace`
  command for changed attributes (binary values via
  `[Convert]::FromBase64String`) and a `Set-ADObject -Clear` command for
  attributes missing from the baseline. `generate_sddl_commands` restores a
  security descriptor with `Get-Acl` / `Set-Acl`.

### `retcon.scripts`

- `render_script(commands, generated)` returns the script text.
- `write_ps1(commands, cleanup_script_file)` writes it, creating the
  directory if needed.
- `write_to_console(commands)` prints a dry run.
- `execute_script(script_path)` runs a script with `powershell.exe` and
  returns its exit code.

### `retcon.hooks`

`execute_hooks(hooks, hook_type, base_dir)` runs, in order, each hook of the
given type with `powershell.exe`. A hook is any object with `hook_type`,
`path`, `arguments` and `continue_on_error`; relative paths are resolved
against `base_dir`. It returns a list of `HookOutput`, and raises `HookError`
for a missing script or a failure whose hook does not allow continuing.

### `retcon.storage`

`ObjectBuffer(file_path, capacity=1000)` collects items in memory and writes
them as little-endian `u32` length-prefixed records once `capacity` is
reached, on `flush()` or `finish()`, or when its `with` block ends.
`into_reader()` hands the file over to a `RecordReader`, which yields the
items lazily; `RecordReader.from_path` and `iter_records` read an existing
file. Items are pickled by default, so only read files you wrote yourself;
pass `encode` / `decode` to use another format.

### `retcon.banner`

`print_banner()` writes the start banner to standard output and returns it;
`return_current_time()` and `return_current_date()` format the local time as
`HH:MM:SS` and the date as `MM/DD/YY`.

## Example

```python
from pathlib import Path

from retcon.attribute_control import AllowedAttribute, AttributeControlSet
from retcon.command_generator import generate_commands
from retcon.directory_objects import DirectoryObject
from retcon.remediation import ActionType, RemediationAction
from retcon.scripts import write_ps1

control_set = AttributeControlSet(
    allow_list={"description": AllowedAttribute(is_single_valued=True)}
)

dn = "CN=alice,OU=Staff,DC=example,DC=com"
entry_class = ["top", "person", "user"]
baseline = DirectoryObject.from_ldap_entry(
    dn, {"name": ["alice"], "objectClass": entry_class,
         "description": ["Staff account"]}, {}, control_set,
)
current = DirectoryObject.from_ldap_entry(
    dn, {"name": ["alice"], "objectClass": entry_class,
         "description": ["changed"]}, {}, control_set,
)

if baseline.hash != current.hash:
    actions = {dn: [RemediationAction(ActionType.MODIFY, baseline, current)]}
    commands = generate_commands(actions, ["DC=example,DC=com"], control_set)
    write_ps1(commands, Path("out/cleanup.ps1"))
```

The written script starts with a header, imports the `ActiveDirectory`
module, and lists each command with its description as a comment above it.

## What it does not do

`retcon` is a library only. It does not connect to a directory or run LDAP
searches: entries must be handed to `SchemaEntry.parse` and
`DirectoryObject.from_ldap_entry` by the caller. It has no command-line
program, no scenario configuration loading and no web server or HTTP API.
Generated scripts and hooks need `powershell.exe` on the system to run.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.