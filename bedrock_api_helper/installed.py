"""Inspect the @minecraft modules installed in a project's node_modules."""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .versions import normalize_version

__all__ = [
    "PackageJson",
    "InstalledModule",
    "InstalledModuleError",
    "validate_installed_modules",
    "normalize_project_path",
    "get_installed_module",
    "read_project_dependencies",
    "get_installed_minecraft_modules",
    "resolve_versions_from_installed",
]


class InstalledModuleError(Exception):
    """A package.json could not be read or parsed."""


def _optional_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string")
    return value


def _optional_str_map(data: Mapping[str, Any], key: str) -> dict[str, str]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict) or not all(isinstance(v, str) for v in value.values()):
        raise ValueError(f"field {key!r} must be an object of strings")
    return dict(value)


@dataclass
class PackageJson:
    """The parts of a package.json that matter here."""

    name: str = ""
    version: str = ""
    dependencies: dict[str, str] = field(default_factory=dict)
    dev_dependencies: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> PackageJson:
        if not isinstance(data, dict):
            raise ValueError("package.json must be a JSON object")
        return cls(
            name=_optional_str(data, "name"),
            version=_optional_str(data, "version"),
            dependencies=_optional_str_map(data, "dependencies"),
            dev_dependencies=_optional_str_map(data, "devDependencies"),
        )


@dataclass
class InstalledModule:
    """A module found under node_modules."""

    name: str
    version: str
    is_beta: bool
    manifest_path: Path
    package_path: Path


def _load_package_json(path: Path, label: str) -> PackageJson:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as err:
        raise InstalledModuleError(f"failed to read {label}: {err}") from err
    try:
        return PackageJson.from_dict(json.loads(text))
    except ValueError as err:
        raise InstalledModuleError(f"failed to parse {label}: {err}") from err


def normalize_project_path(project_path: str | Path | None) -> str:
    """Return '.' for a blank path, otherwise the path unchanged."""
    if project_path is None or not str(project_path).strip():
        return "."
    return str(project_path)


def get_installed_module(project_path: str | Path, module_name: str) -> InstalledModule:
    """Read a module's package.json from node_modules."""
    module_path = Path(project_path) / "node_modules" / module_name
    package_path = module_path / "package.json"
    pkg = _load_package_json(package_path, str(package_path))
    return InstalledModule(
        name=module_name,
        version=pkg.version,
        is_beta="beta" in pkg.version,
        manifest_path=package_path,
        package_path=module_path,
    )


def validate_installed_modules(
    project_path: str | Path | None, manifest_versions: Mapping[str, str]
) -> list[str]:
    """Compare manifest versions with installed ones and return warnings."""
    root = normalize_project_path(project_path)
    warnings: list[str] = []
    for module_name in sorted(manifest_versions):
        try:
            installed = get_installed_module(root, module_name)
        except InstalledModuleError as err:
            warnings.append(f"WARNING: {module_name} not found in node_modules: {err}")
            continue
        expected = normalize_version(manifest_versions[module_name])
        actual = normalize_version(installed.version)
        if expected != actual:
            warnings.append(
                f"WARNING: {module_name} version mismatch - manifest: {expected}, installed: {actual}"
            )
    return warnings


def read_project_dependencies(project_path: str | Path) -> PackageJson:
    """Read the project's own package.json."""
    return _load_package_json(Path(project_path) / "package.json", "package.json")


def get_installed_minecraft_modules(project_path: str | Path | None) -> list[InstalledModule]:
    """List every readable @minecraft/* module, sorted by directory name."""
    scope_dir = Path(normalize_project_path(project_path)) / "node_modules" / "@minecraft"
    try:
        entries = sorted(scope_dir.iterdir(), key=lambda p: p.name)
    except FileNotFoundError:
        return []
    except OSError as err:
        raise InstalledModuleError(f"failed to read @minecraft modules: {err}") from err

    modules: list[InstalledModule] = []
    for entry in entries:
        if not entry.is_dir():
            continue
        try:
            modules.append(get_installed_module(project_path or ".", f"@minecraft/{entry.name}"))
        except InstalledModuleError:
            continue
    return modules


def resolve_versions_from_installed(
    project_path: str | Path, modules: Iterable[str]
) -> dict[str, str]:
    """Map each installed module to its normalized version; missing ones are skipped."""
    resolved: dict[str, str] = {}
    for module_name in modules:
        try:
            installed = get_installed_module(project_path, module_name)
        except InstalledModuleError:
            continue
        resolved[module_name] = normalize_version(installed.version)
    return resolved