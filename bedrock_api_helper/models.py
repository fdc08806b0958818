"""Data types shared across the helper: manifests, dependencies and version data."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

ALLOWED_MODULES: tuple[str, ...] = (
    "@minecraft/server",
    "@minecraft/server-ui",
    "@minecraft/server-net",
    "@minecraft/server-admin",
    "@minecraft/server-gametest",
)

DEPRECATED_MODULES: tuple[str, ...] = (
    "mojang-minecraft",
    "mojang-minecraft-ui",
    "mojang-minecraft-server-admin",
    "mojang-gametest",
)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _string_field(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ValueError(f"field {key!r} must be a string, got {type(value).__name__}")
    return value


def _int_list_field(data: Mapping[str, Any], key: str) -> list[int]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(_is_int(item) for item in value):
        raise ValueError(f"field {key!r} must be an array of integers")
    return list(value)


def _object(value: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError(f"{what} must be a JSON object")
    return value


def _object_list(data: Mapping[str, Any], key: str) -> list[Any]:
    value = data.get(key)
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"field {key!r} must be an array")
    return value


@dataclass
class VersionMatrix:
    """Published versions and dist-tags of one npm module."""

    module: str
    versions: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)


@dataclass
class ResolvedVersion:
    """Outcome of mapping a Minecraft version to an npm version."""

    minecraft_version: str
    npm_version: str
    available_modules: list[str] = field(default_factory=list)
    guardrails: list[str] = field(default_factory=list)


@dataclass
class Dependency:
    """A manifest dependency, either on a script module or on another pack."""

    module_name: str = ""
    uuid: str = ""
    version: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Dependency:
        """Build from decoded JSON; array versions become dotted strings."""
        data = _object(data, "dependency")
        raw_version = data.get("version")
        if raw_version is None:
            version = ""
        elif isinstance(raw_version, str):
            version = raw_version
        elif isinstance(raw_version, list):
            if not all(_is_int(part) for part in raw_version):
                raise ValueError("invalid dependency version array")
            version = ".".join(str(part) for part in raw_version)
        else:
            raise ValueError("dependency version must be a string or an array")
        return cls(
            module_name=_string_field(data, "module_name"),
            uuid=_string_field(data, "uuid"),
            version=version,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        if self.module_name:
            out["module_name"] = self.module_name
        if self.uuid:
            out["uuid"] = self.uuid
        if self.version:
            out["version"] = self.version
        return out


@dataclass
class ManifestHeader:
    """The header section of a manifest."""

    name: str = ""
    description: str = ""
    uuid: str = ""
    version: list[int] = field(default_factory=list)
    min_engine_version: list[int] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ManifestHeader:
        data = _object(data, "header")
        return cls(
            name=_string_field(data, "name"),
            description=_string_field(data, "description"),
            uuid=_string_field(data, "uuid"),
            version=_int_list_field(data, "version"),
            min_engine_version=_int_list_field(data, "min_engine_version"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "name": self.name,
            "description": self.description,
            "uuid": self.uuid,
            "version": list(self.version),
        }
        if self.min_engine_version:
            out["min_engine_version"] = list(self.min_engine_version)
        return out


@dataclass
class ManifestModule:
    """One entry of a manifest's modules list."""

    type: str = ""
    uuid: str = ""
    version: list[int] = field(default_factory=list)
    language: str = ""
    entry: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ManifestModule:
        data = _object(data, "module")
        return cls(
            type=_string_field(data, "type"),
            uuid=_string_field(data, "uuid"),
            version=_int_list_field(data, "version"),
            language=_string_field(data, "language"),
            entry=_string_field(data, "entry"),
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "type": self.type,
            "uuid": self.uuid,
            "version": list(self.version),
        }
        if self.language:
            out["language"] = self.language
        if self.entry:
            out["entry"] = self.entry
        return out


@dataclass
class Manifest:
    """A Bedrock pack manifest.json."""

    format_version: int = 0
    header: ManifestHeader = field(default_factory=ManifestHeader)
    modules: list[ManifestModule] = field(default_factory=list)
    dependencies: list[Dependency] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Manifest:
        """Build from decoded JSON, raising ValueError on mistyped fields."""
        data = _object(data, "manifest")
        raw_format = data.get("format_version")
        if raw_format is None:
            format_version = 0
        elif _is_int(raw_format):
            format_version = raw_format
        else:
            raise ValueError("field 'format_version' must be an integer")

        raw_header = data.get("header")
        header = ManifestHeader() if raw_header is None else ManifestHeader.from_dict(raw_header)

        modules = [
            ManifestModule() if item is None else ManifestModule.from_dict(item)
            for item in _object_list(data, "modules")
        ]
        dependencies = [
            Dependency() if item is None else Dependency.from_dict(item)
            for item in _object_list(data, "dependencies")
        ]
        return cls(
            format_version=format_version,
            header=header,
            modules=modules,
            dependencies=dependencies,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "format_version": self.format_version,
            "header": self.header.to_dict(),
            "modules": [module.to_dict() for module in self.modules],
        }
        if self.dependencies:
            out["dependencies"] = [dep.to_dict() for dep in self.dependencies]
        return out


@dataclass
class AddonWorkspace:
    """Everything produced when scaffolding an addon workspace."""

    behavior_pack_manifest: str
    file_structure: list[str] = field(default_factory=list)
    starter_code: dict[str, str] = field(default_factory=dict)
    resource_pack_manifest: str = ""


@dataclass
class VersionResolutionResult:
    """Outcome of trying to resolve a requested version string."""

    requested: str
    resolved: str = ""
    candidates: list[str] = field(default_factory=list)
    error: str = ""