# bedrock_api_helper

A library for building Minecraft Bedrock Script API add-ons from Python.

## What it does

- **Version resolution** (`bedrock_api_helper.versions`): takes the version lists published on npm
  for `@minecraft/*` modules and finds the right module version for a Minecraft version and release
  channel (`stable`, `beta`, `preview`) with `resolve_version_for_channel`,
  `resolve_exact_version_for_channel`, `resolve_module_versions` and `resolve_version`. It also
  shortens versions to the form used in `manifest.json` (`normalize_version`), compares versions
  (`compare_semver`) and pulls a definition and the types it references out of a `.d.ts` file
  (`extract_types`).
- **Registry access** (`bedrock_api_helper.registry`): `RegistryClient` fetches version lists,
  version metadata and `index.d.ts` type definitions from the npm registry. Results are kept in a
  `TtlCache` (`bedrock_api_helper.cache`) for a short time: 30 seconds for version lists, two
  minutes for metadata and type definitions.
- **Installed modules** (`bedrock_api_helper.installed`): reads `node_modules/@minecraft/*` in a
  project, reads the project's `package.json`, and reports versions that do not match the
  manifest (`validate_installed_modules`).
- **Manifest generation** (`bedrock_api_helper.manifest_gen`): builds behaviour-pack and
  resource-pack manifests, starter code, `package.json`, and the suggested file layout. It also
  parses, formats and edits manifest dependencies. `bedrock_api_helper.dependency_rules` holds the
  list of allowed and deprecated script modules.
- **Manifest rule checks** (`bedrock_api_helper.rules`): `all_rule_checks()` returns the checks for
  a decoded `manifest.json`. They cover `format_version`, the header fields, UUIDs, version arrays,
  script modules, deprecated, unknown and duplicate dependencies, and, if asked for, mismatches
  with `node_modules`. Each check returns a list of `Finding` objects.
- **API diff** (`bedrock_api_helper.symbols`, `bedrock_api_helper.apidiff`): extracts the exported
  symbols from two `.d.ts` files and reports removed, added, deprecated and changed symbols, and
  likely renames.

## Install

```
pip install .
```

The package has no third-party dependencies. It needs Python 3.10 or later.

## Examples

Resolve a module version:

```python
from bedrock_api_helper.models import VersionMatrix
from bedrock_api_helper.versions import resolve_version_for_channel

vm = VersionMatrix(
    module="@minecraft/server",
    versions=["2.6.0", "2.9.0-beta.1.26.30", "2.9.0-beta.1.26.30-preview.21"],
    tags={"latest": "2.6.0"},
)
resolve_version_for_channel(vm, "latest", "beta")    # "2.9.0-beta"
resolve_version_for_channel(vm, "latest", "stable")  # "2.6.0"
```

Generate a behaviour-pack manifest:

```python
from bedrock_api_helper.manifest_gen import (
    build_dependencies, format_manifest, generate_bp, generate_uuid,
)

deps = build_dependencies("2.6.0", needs_ui=True)
manifest = generate_bp("My Addon", "Does things", deps, generate_uuid())
print(format_manifest(manifest))
```

Run the manifest rule checks on a manifest whose top level is a JSON object:

```python
import json

from bedrock_api_helper.manifest_gen import ManifestParseError, parse_manifest
from bedrock_api_helper.rules import DoctorOptions, all_rule_checks

raw = json.loads(text)
try:
    parsed = parse_manifest(text)
except ManifestParseError:
    parsed = None

options = DoctorOptions()
findings = [f for check in all_rule_checks() for f in check(raw, parsed, options)]
for finding in findings:
    print(finding.severity, finding.rule, finding.path, finding.message)
```

Some checks need the typed manifest. They return nothing when `parsed` is `None`. Set
`DoctorOptions(check_local_modules=True, project_path="...")` to compare dependencies with the
modules installed in a project.

Compare two versions of an API:

```python
from bedrock_api_helper.symbols import build_symbol_table
from bedrock_api_helper.apidiff import compare_tables, sort_diff_result

old = build_symbol_table(old_dts, "@minecraft/server", "1.0.0")
new = build_symbol_table(new_dts, "@minecraft/server", "2.0.0")
diff = compare_tables(old, new, True, "", 50)
sort_diff_result(diff)
print(diff.summary)
```

Fetch data from npm:

```python
from bedrock_api_helper.registry import RegistryClient

client = RegistryClient()
client.list_concrete_versions("@minecraft/server", "2.8")
```

## Errors

Failures raise exceptions rather than return status values:

- `VersionResolutionError` and `SymbolNotFoundError` from `versions`
- `RegistryError` from `registry`
- `InstalledModuleError` from `installed`
- `DependencyChangeError` from `dependency_rules`
- `ManifestParseError` from `manifest_gen`

## What it does not do

- It has no single function that runs every rule over a manifest text. It does not sort findings
  into errors and warnings or write a summary. `DoctorOutput` is defined in `rules`, but nothing
  in the package fills it in. Run the checks yourself as shown above.
- It does not apply fixes to a manifest. `Finding.fixable` marks the findings that could be
  repaired, and `FixResult` and `FixupOutput` are defined, but the package has no code that
  rewrites a manifest.
- It provides no command-line tool and no server. It is a library only.

## Tests

```
pip install ".[test]"
pytest
```