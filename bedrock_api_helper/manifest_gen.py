"""Generate and edit Bedrock pack manifests, starter code and project files."""

from __future__ import annotations

import json
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import replace
from pathlib import Path
from typing import Any

from .dependency_rules import validate_changes
from .installed import validate_installed_modules
from .models import Dependency, Manifest, ManifestHeader, ManifestModule
from .registry import RegistryClient, RegistryError
from .versions import VersionResolutionError, resolve_module_versions

__all__ = [
    "ManifestParseError",
    "generate_uuid",
    "generate_bp",
    "generate_rp",
    "generate_starter_code",
    "generate_package_json",
    "build_dependencies",
    "build_dependencies_with_channel",
    "build_dependencies_with_validation",
    "update_dependencies",
    "format_manifest",
    "parse_manifest",
    "file_structure",
]

MIN_ENGINE_VERSION = (1, 21, 60)
SERVER_MODULE = "@minecraft/server"
SERVER_UI_MODULE = "@minecraft/server-ui"


class ManifestParseError(ValueError):
    """The text is not a valid manifest."""


def generate_uuid() -> str:
    """Return a new random version 4 UUID string."""
    return str(uuid.uuid4())


def _sorted_deps(deps: Iterable[Dependency]) -> list[Dependency]:
    return sorted((replace(dep) for dep in deps), key=lambda d: (d.module_name, d.version))


def generate_bp(
    name: str, description: str, deps: Iterable[Dependency], bp_uuid: str
) -> Manifest:
    """Build a behavior pack manifest with a data and a script module."""
    return Manifest(
        format_version=2,
        header=ManifestHeader(
            name=name,
            description=description,
            uuid=bp_uuid,
            version=[1, 0, 0],
            min_engine_version=list(MIN_ENGINE_VERSION),
        ),
        modules=[
            ManifestModule(type="data", uuid=generate_uuid(), version=[1, 0, 0]),
            ManifestModule(
                type="script",
                uuid=generate_uuid(),
                version=[1, 0, 0],
                language="javascript",
                entry="scripts/main.js",
            ),
        ],
        dependencies=_sorted_deps(deps),
    )


def generate_rp(name: str, description: str, rp_uuid: str, bp_uuid: str) -> Manifest:
    """Build a resource pack manifest that depends on the behavior pack."""
    return Manifest(
        format_version=2,
        header=ManifestHeader(
            name=f"{name} RP",
            description=description,
            uuid=rp_uuid,
            version=[1, 0, 0],
            min_engine_version=list(MIN_ENGINE_VERSION),
        ),
        modules=[ManifestModule(type="resources", uuid=generate_uuid(), version=[1, 0, 0])],
        dependencies=[Dependency(uuid=bp_uuid, version="1.0.0")],
    )


def _dump(value: Any) -> str:
    return json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False)


def _tsconfig() -> str:
    return _dump(
        {
            "compilerOptions": {
                "target": "ES2020",
                "module": "ES2020",
                "moduleResolution": "node",
                "strict": True,
                "esModuleInterop": True,
                "skipLibCheck": True,
                "forceConsistentCasingInFileNames": True,
                "lib": ["ES2020"],
                "types": [],
            },
            "include": ["src/**/*"],
        }
    )


def generate_starter_code(lang: str, version: str) -> dict[str, str]:
    """Return starter source files keyed by path, in sorted order."""
    js_code = (
        'import { world, system } from "@minecraft/server";\n'
        "\n"
        f'console.warn("Script loaded for version {version}");\n'
    )
    if lang == "typescript":
        files = {
            "src/main.ts": js_code + "\n// TypeScript entry point\n",
            "tsconfig.json": _tsconfig(),
        }
    else:
        files = {"src/main.js": js_code}
    return dict(sorted(files.items()))


def generate_package_json(addon_name: str, deps: Iterable[Dependency], lang: str) -> str:
    """Return a package.json with esbuild build scripts and the script-module dependencies."""
    dep_map: dict[str, str] = {}
    external_flags: list[str] = []
    for dep in deps:
        if not dep.module_name:
            continue
        npm_version = dep.version
        if not npm_version.startswith(("^", "~")):
            npm_version = "^" + npm_version
        dep_map[dep.module_name] = npm_version
        external_flags.append(f"--external:{dep.module_name}")

    scripts: dict[str, str] = {}
    dev_deps: dict[str, str] = {"esbuild": "^0.25.9"}
    if lang == "typescript":
        externals = " ".join(external_flags)
        scripts["build"] = (
            "esbuild src/main.ts --bundle --format=esm --target=es2020 "
            f"--outfile=behavior_pack/scripts/main.js {externals} && node scripts/deploy.js dev"
        )
        scripts["typecheck"] = "tsc --noEmit"
        dev_deps["typescript"] = "^5.9.2"
    else:
        scripts["build"] = "node scripts/deploy.js dev"
    scripts["deploy:dev"] = "node scripts/deploy.js dev"
    scripts["deploy:prod"] = "node scripts/deploy.js prod"

    pkg: dict[str, Any] = {
        "name": addon_name.lower(),
        "private": True,
        "scripts": scripts,
        "devDependencies": dev_deps,
    }
    if dep_map:
        pkg["dependencies"] = dep_map
    return _dump(pkg) + "\n"


def build_dependencies(server_version: str, needs_ui: bool) -> list[Dependency]:
    """Dependencies on @minecraft/server, plus @minecraft/server-ui if asked for."""
    deps = [Dependency(module_name=SERVER_MODULE, version=server_version)]
    if needs_ui:
        deps.append(Dependency(module_name=SERVER_UI_MODULE, version=server_version))
    return deps


def build_dependencies_with_channel(
    client: RegistryClient,
    modules: Sequence[str] | None,
    minecraft_version: str,
    channel: str = "beta",
) -> list[Dependency]:
    """Resolve each module's manifest version from registry data for a channel."""
    modules = list(modules) if modules else [SERVER_MODULE]
    channel = channel or "beta"

    matrices = {}
    for module in modules:
        try:
            matrices[module] = client.fetch_version_matrix(module)
        except RegistryError as err:
            raise RegistryError(f"failed to fetch versions for {module}: {err}") from err

    try:
        resolved = resolve_module_versions(matrices, minecraft_version, channel)
    except VersionResolutionError as err:
        raise VersionResolutionError(f"failed to resolve versions: {err}") from err

    return [
        Dependency(module_name=module, version=resolved[module])
        for module in modules
        if module in resolved
    ]


def build_dependencies_with_validation(
    project_path: str | Path | None,
    client: RegistryClient,
    modules: Sequence[str] | None,
    minecraft_version: str,
    channel: str = "beta",
) -> tuple[list[Dependency], list[str]]:
    """Resolve dependencies and return them with warnings about node_modules mismatches."""
    deps = build_dependencies_with_channel(client, modules, minecraft_version, channel)
    manifest_versions = {dep.module_name: dep.version for dep in deps}
    warnings = validate_installed_modules(project_path, manifest_versions)
    return deps, warnings


def update_dependencies(manifest: Manifest, added: Iterable[str], removed: Iterable[str]) -> None:
    """Add and remove script-module dependencies in place.

    Dependencies without a module name are dropped; added modules get version "latest".
    """
    added = list(added)
    removed = list(removed)
    validate_changes(added, removed)

    by_module = {dep.module_name: dep for dep in manifest.dependencies if dep.module_name}
    for module in removed:
        by_module.pop(module, None)
    for module in added:
        by_module[module] = Dependency(module_name=module, version="latest")
    manifest.dependencies = list(by_module.values())


def format_manifest(manifest: Manifest) -> str:
    """Serialize a manifest as indented JSON."""
    return json.dumps(manifest.to_dict(), indent=2, ensure_ascii=False)


def parse_manifest(text: str) -> Manifest:
    """Parse manifest JSON, raising ManifestParseError if it is invalid."""
    try:
        data = json.loads(text)
        if data is None:
            return Manifest()
        return Manifest.from_dict(data)
    except ValueError as err:
        raise ManifestParseError(f"invalid manifest JSON: {err}") from err


def file_structure(
    addon_name: str, needs_rp: bool, lang: str, create_deploy: bool
) -> list[str]:
    """Return the recommended project layout, sorted."""
    ext = "ts" if lang == "typescript" else "js"
    paths = [
        "behavior_pack/",
        "behavior_pack/manifest.json",
        "behavior_pack/pack_icon.png",
        "behavior_pack/scripts/",
        "src/",
        f"src/main.{ext}",
    ]
    if needs_rp:
        paths += ["resource_pack/", "resource_pack/manifest.json", "resource_pack/pack_icon.png"]
    if lang == "typescript":
        paths.append("tsconfig.json")
    if create_deploy:
        paths += ["package.json", "scripts/", "scripts/deploy.js"]
    return sorted(paths)