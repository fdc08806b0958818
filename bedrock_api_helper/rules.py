"""Diagnostic rules run by the manifest doctor, and the result types they share."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .installed import InstalledModuleError, validate_installed_modules
from .models import ALLOWED_MODULES, Manifest

__all__ = [
    "ERROR",
    "WARNING",
    "DEFAULT_MIN_ENGINE_VERSION",
    "DEPRECATED_MODULE_MAP",
    "Finding",
    "DoctorOutput",
    "DoctorOptions",
    "FixResult",
    "FixupOutput",
    "RuleCheck",
    "all_rule_checks",
    "is_valid_version_array",
    "collect_uuids",
]

ERROR = "error"
WARNING = "warning"

DEFAULT_MIN_ENGINE_VERSION: tuple[int, int, int] = (1, 21, 60)

UUID_V4 = re.compile(r"[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}")

DEPRECATED_MODULE_MAP: dict[str, str] = {
    "mojang-minecraft": "@minecraft/server",
    "mojang-minecraft-ui": "@minecraft/server-ui",
    "mojang-minecraft-server-admin": "@minecraft/server-admin",
    "mojang-gametest": "@minecraft/server-gametest",
}


@dataclass
class Finding:
    """One diagnostic produced by a rule."""

    rule: str
    severity: str
    message: str
    path: str = ""
    fixable: bool = False


@dataclass
class DoctorOutput:
    """The result of checking a manifest."""

    ok: bool
    detected_pack_kind: str = ""
    errors: list[Finding] = field(default_factory=list)
    warnings: list[Finding] = field(default_factory=list)
    fixes: list[str] = field(default_factory=list)
    summary: str = ""


@dataclass
class DoctorOptions:
    """Optional settings for the doctor and the fixer."""

    min_engine_version: list[int] = field(
        default_factory=lambda: list(DEFAULT_MIN_ENGINE_VERSION)
    )
    check_local_modules: bool = False
    project_path: str | Path = ""


@dataclass
class FixResult:
    """A fix that was applied to a manifest."""

    rule: str
    note: str


@dataclass
class FixupOutput:
    """The result of fixing a manifest."""

    original_manifest: str
    fixed_manifest: str
    applied_fixes: list[FixResult] = field(default_factory=list)
    unfixable_errors: list[Finding] = field(default_factory=list)
    summary: str = ""


RuleCheck = Callable[[dict, "Manifest | None", DoctorOptions], "list[Finding]"]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_valid_version_array(value: Any) -> bool:
    """Whether the value is a list of exactly three numbers."""
    return isinstance(value, list) and len(value) == 3 and all(_is_number(v) for v in value)


def _header(raw: dict) -> dict | None:
    header = raw.get("header")
    return header if isinstance(header, dict) else None


def _dicts(raw: dict, key: str) -> list[tuple[int, dict]]:
    items = raw.get(key)
    if not isinstance(items, list):
        return []
    return [(i, item) for i, item in enumerate(items) if isinstance(item, dict)]


def _script_modules(raw: dict) -> list[tuple[int, dict]]:
    return [(i, m) for i, m in _dicts(raw, "modules") if m.get("type") == "script"]


def collect_uuids(raw: dict) -> list[str]:
    """All string UUIDs of the header, the modules and the dependencies, in order."""
    uuids: list[str] = []
    header = _header(raw)
    if header is not None and isinstance(header.get("uuid"), str):
        uuids.append(header["uuid"])
    for key in ("modules", "dependencies"):
        uuids.extend(item["uuid"] for _, item in _dicts(raw, key) if isinstance(item.get("uuid"), str))
    return uuids


def _check_invalid_json(raw: Any, parsed: Manifest | None, opts: DoctorOptions) -> list[Finding]:
    if not isinstance(raw, dict):
        return [Finding("invalid_json", ERROR, "Manifest root is not a JSON object", "", False)]
    return []


def _check_missing_format_version(raw, parsed, opts) -> list[Finding]:
    if "format_version" not in raw:
        return [Finding("missing_format_version", ERROR, "Missing 'format_version' field", "format_version", True)]
    return []


def _check_format_version_not_2(raw, parsed, opts) -> list[Finding]:
    if "format_version" not in raw:
        return []
    value = raw["format_version"]
    if _is_number(value) and value == 2:
        return []
    return [Finding("format_version_not_2", ERROR, "'format_version' should be 2", "format_version", True)]


def _check_missing_header(raw, parsed, opts) -> list[Finding]:
    if "header" not in raw:
        return [Finding("missing_header", ERROR, "Missing 'header' section", "header", False)]
    if not isinstance(raw["header"], dict):
        return [Finding("missing_header", ERROR, "'header' is not a valid object", "header", False)]
    return []


def _check_missing_header_name(raw, parsed, opts) -> list[Finding]:
    header = _header(raw)
    if header is not None and "name" not in header:
        return [Finding("missing_header_name", ERROR, "Missing 'header.name' field", "header.name", True)]
    return []


def _check_missing_header_description(raw, parsed, opts) -> list[Finding]:
    header = _header(raw)
    if header is not None and "description" not in header:
        return [
            Finding(
                "missing_header_description",
                WARNING,
                "Missing 'header.description' field",
                "header.description",
                True,
            )
        ]
    return []


def _check_missing_header_uuid(raw, parsed, opts) -> list[Finding]:
    header = _header(raw)
    if header is not None and "uuid" not in header:
        return [Finding("missing_header_uuid", ERROR, "Missing 'header.uuid' field", "header.uuid", True)]
    return []


def _check_invalid_header_uuid(raw, parsed, opts) -> list[Finding]:
    header = _header(raw)
    if header is None or not isinstance(header.get("uuid"), str):
        return []
    if UUID_V4.fullmatch(header["uuid"]) is None:
        return [
            Finding(
                "invalid_header_uuid",
                ERROR,
                "Invalid 'header.uuid' format: not a valid v4 UUID",
                "header.uuid",
                True,
            )
        ]
    return []


def _check_duplicate_uuids(raw, parsed, opts) -> list[Finding]:
    counts: dict[str, int] = {}
    for value in collect_uuids(raw):
        counts[value] = counts.get(value, 0) + 1
    duplicates = [value for value, count in counts.items() if count > 1]
    if duplicates:
        return [
            Finding(
                "duplicate_uuid",
                ERROR,
                f"Duplicate UUID(s) found: {', '.join(duplicates)}",
                "",
                True,
            )
        ]
    return []


def _check_invalid_header_version(raw, parsed, opts) -> list[Finding]:
    header = _header(raw)
    if header is None or "version" not in header:
        return []
    if not is_valid_version_array(header["version"]):
        return [
            Finding(
                "invalid_header_version",
                ERROR,
                "Invalid 'header.version' format (expected [major, minor, patch])",
                "header.version",
                True,
            )
        ]
    return []


def _check_invalid_module_version(raw, parsed, opts) -> list[Finding]:
    findings: list[Finding] = []
    for i, module in _dicts(raw, "modules"):
        path = f"modules[{i}].version"
        if "version" not in module:
            findings.append(
                Finding("invalid_module_version", ERROR, f"Module at index {i} is missing version", path, True)
            )
        elif not is_valid_version_array(module["version"]):
            findings.append(
                Finding(
                    "invalid_module_version",
                    ERROR,
                    f"Module at index {i} has invalid version format",
                    path,
                    True,
                )
            )
    return findings


def _check_invalid_min_engine_version(raw, parsed, opts) -> list[Finding]:
    header = _header(raw)
    if header is None or "min_engine_version" not in header:
        return []
    if not is_valid_version_array(header["min_engine_version"]):
        return [
            Finding(
                "invalid_min_engine_version",
                WARNING,
                "Invalid 'header.min_engine_version' format (expected [major, minor, patch])",
                "header.min_engine_version",
                True,
            )
        ]
    return []


def _check_multiple_script_modules(raw, parsed, opts) -> list[Finding]:
    count = len(_script_modules(raw))
    if count > 1:
        return [
            Finding(
                "multiple_script_modules",
                ERROR,
                f"Found {count} script modules; only one script module is allowed",
                "modules",
                False,
            )
        ]
    return []


def _check_script_module_missing_entry(raw, parsed, opts) -> list[Finding]:
    return [
        Finding(
            "script_module_missing_entry",
            ERROR,
            f"Script module at index {i} is missing 'entry' field",
            f"modules[{i}].entry",
            True,
        )
        for i, module in _script_modules(raw)
        if "entry" not in module
    ]


def _check_script_module_missing_language(raw, parsed, opts) -> list[Finding]:
    return [
        Finding(
            "script_module_missing_language",
            ERROR,
            f"Script module at index {i} is missing 'language' field",
            f"modules[{i}].language",
            True,
        )
        for i, module in _script_modules(raw)
        if "language" not in module
    ]


def _check_deprecated_module(raw, parsed, opts) -> list[Finding]:
    if parsed is None:
        return []
    return [
        Finding(
            "deprecated_module",
            ERROR,
            f"Deprecated module '{dep.module_name}' — use '{DEPRECATED_MODULE_MAP[dep.module_name]}' instead",
            f"dependencies[{i}].module_name",
            True,
        )
        for i, dep in enumerate(parsed.dependencies)
        if dep.module_name in DEPRECATED_MODULE_MAP
    ]


def _check_unknown_module(raw, parsed, opts) -> list[Finding]:
    if parsed is None:
        return []
    return [
        Finding(
            "unknown_module",
            WARNING,
            f"Unknown module '{dep.module_name}' is not in the allowed modules list",
            f"dependencies[{i}].module_name",
            False,
        )
        for i, dep in enumerate(parsed.dependencies)
        if dep.module_name.startswith("@minecraft/") and dep.module_name not in ALLOWED_MODULES
    ]


def _check_duplicate_dependency(raw, parsed, opts) -> list[Finding]:
    if parsed is None:
        return []
    seen_modules: set[str] = set()
    seen_uuids: set[str] = set()
    findings: list[Finding] = []
    for i, dep in enumerate(parsed.dependencies):
        if dep.module_name:
            if dep.module_name in seen_modules:
                findings.append(
                    Finding(
                        "duplicate_dependency",
                        WARNING,
                        f"Duplicate dependency by module_name '{dep.module_name}' at index {i}",
                        f"dependencies[{i}]",
                        True,
                    )
                )
            seen_modules.add(dep.module_name)
        if dep.uuid:
            if dep.uuid in seen_uuids:
                findings.append(
                    Finding(
                        "duplicate_dependency",
                        WARNING,
                        f"Duplicate dependency by UUID '{dep.uuid}' at index {i}",
                        f"dependencies[{i}]",
                        True,
                    )
                )
            seen_uuids.add(dep.uuid)
    return findings


def _check_missing_minecraft_server(raw, parsed, opts) -> list[Finding]:
    if parsed is None:
        return []
    if not any(module.type == "script" for module in parsed.modules):
        return []
    if any(dep.module_name == "@minecraft/server" for dep in parsed.dependencies):
        return []
    return [
        Finding(
            "missing_minecraft_server",
            ERROR,
            "Script module requires '@minecraft/server' dependency",
            "dependencies",
            True,
        )
    ]


def _check_invalid_pack_dependency_version(raw, parsed, opts) -> list[Finding]:
    if parsed is None:
        return []
    return [
        Finding(
            "invalid_pack_dependency_version",
            WARNING,
            f"UUID-based dependency at index {i} has empty version",
            f"dependencies[{i}].version",
            False,
        )
        for i, dep in enumerate(parsed.dependencies)
        if not dep.module_name and dep.uuid and not dep.version
    ]


def _check_node_modules_mismatch(raw, parsed, opts) -> list[Finding]:
    if opts is None or not opts.check_local_modules or not str(opts.project_path) or parsed is None:
        return []
    manifest_versions = {dep.module_name: dep.version for dep in parsed.dependencies if dep.module_name}
    if not manifest_versions:
        return []
    try:
        warnings = validate_installed_modules(opts.project_path, manifest_versions)
    except (InstalledModuleError, OSError) as err:
        return [
            Finding("node_modules_mismatch", WARNING, f"Failed to validate node_modules: {err}", "", False)
        ]
    return [Finding("node_modules_mismatch", WARNING, warning, "", False) for warning in warnings]


def all_rule_checks() -> list[RuleCheck]:
    """Every rule check, in the order the doctor runs them."""
    return [
        _check_invalid_json,
        _check_missing_format_version,
        _check_format_version_not_2,
        _check_missing_header,
        _check_missing_header_name,
        _check_missing_header_description,
        _check_missing_header_uuid,
        _check_invalid_header_uuid,
        _check_duplicate_uuids,
        _check_invalid_header_version,
        _check_invalid_module_version,
        _check_invalid_min_engine_version,
        _check_multiple_script_modules,
        _check_script_module_missing_entry,
        _check_script_module_missing_language,
        _check_deprecated_module,
        _check_unknown_module,
        _check_duplicate_dependency,
        _check_missing_minecraft_server,
        _check_invalid_pack_dependency_version,
        _check_node_modules_mismatch,
    ]