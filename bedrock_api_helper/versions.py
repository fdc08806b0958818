"""Resolve Minecraft versions to npm versions and pull blocks out of .d.ts files."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from functools import cmp_to_key

from .models import VersionMatrix

__all__ = [
    "VersionResolutionError",
    "SymbolNotFoundError",
    "resolve_module_versions",
    "normalize_version",
    "resolve_version_for_channel",
    "resolve_exact_version_for_channel",
    "matches_channel",
    "compare_semver",
    "resolve_version",
    "extract_types",
]


class VersionResolutionError(Exception):
    """No npm version could be found for the request."""


class SymbolNotFoundError(LookupError):
    """A symbol is not defined in the type definitions."""


def resolve_module_versions(
    matrices: Mapping[str, VersionMatrix], minecraft_version: str, channel: str = "beta"
) -> dict[str, str]:
    """Resolve each module's version for a Minecraft version and channel."""
    channel = channel or "beta"
    resolved: dict[str, str] = {}
    for module, vm in matrices.items():
        try:
            resolved[module] = resolve_version_for_channel(vm, minecraft_version, channel)
        except VersionResolutionError as err:
            raise VersionResolutionError(f"failed to resolve version for {module}: {err}") from err
    return resolved


def normalize_version(version: str) -> str:
    """Shorten an npm version to its manifest form, e.g. '2.7.0-beta.1.26.14-stable' -> '2.7.0-beta'."""
    base, sep, prerelease = version.partition("-")
    if sep and "beta" in prerelease:
        return base + "-beta"
    return base


def resolve_version_for_channel(vm: VersionMatrix, minecraft_version: str, channel: str = "beta") -> str:
    """Resolve to the normalized manifest version for a channel."""
    return normalize_version(resolve_exact_version_for_channel(vm, minecraft_version, channel))


def resolve_exact_version_for_channel(
    vm: VersionMatrix, minecraft_version: str, channel: str = "beta"
) -> str:
    """Resolve to an exact npm publish version for a channel."""
    channel = channel or "beta"

    if minecraft_version == "latest":
        if channel == "stable":
            return _resolve_latest_stable(vm)
        if channel == "preview":
            return _resolve_latest_preview(vm)
        return _resolve_latest_beta(vm)

    mc_version = minecraft_version.removeprefix("v")
    matching = [v for v in vm.versions if mc_version in v]
    candidates = [v for v in matching if matches_channel(v, channel)] or matching
    if not candidates:
        raise VersionResolutionError(
            f"no npm version found matching Minecraft version {minecraft_version} for channel {channel}"
        )
    return _highest(candidates)


def matches_channel(version: str, channel: str) -> bool:
    """Whether a version string belongs to the given channel."""
    if channel == "stable":
        return _is_stable(version)
    if channel == "beta":
        return "-beta" in version and "-preview" not in version
    if channel == "preview":
        return "-preview" in version
    return True


def _is_stable(version: str) -> bool:
    return "-beta" not in version and "-preview" not in version and "-rc" not in version


def _highest(candidates: Iterable[str]) -> str:
    return max(candidates, key=cmp_to_key(compare_semver))


def _resolve_latest_stable(vm: VersionMatrix) -> str:
    candidates = [v for v in vm.versions if _is_stable(v)]
    if not candidates:
        raise VersionResolutionError(f"no stable version found for module {vm.module}")
    return normalize_version(_highest(candidates))


def _resolve_latest_beta(vm: VersionMatrix) -> str:
    candidates = [v for v in vm.versions if "-beta" in v and "-preview" not in v]
    if candidates:
        return normalize_version(_highest(candidates))
    if "latest" in vm.tags:
        return normalize_version(vm.tags["latest"])
    raise VersionResolutionError(f"no beta version found for module {vm.module}")


def _resolve_latest_preview(vm: VersionMatrix) -> str:
    candidates = [v for v in vm.versions if "-preview" in v]
    if candidates:
        return normalize_version(_highest(candidates))
    if "beta" in vm.tags:
        return normalize_version(vm.tags["beta"])
    raise VersionResolutionError(f"no preview version found for module {vm.module}")


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def _leading_int(part: str) -> int:
    match = _LEADING_INT.match(part)
    return int(match.group(1)) if match else 0


def compare_semver(a: str, b: str) -> int:
    """Compare two versions: positive if a > b, negative if a < b, 0 if equal."""
    parts_a = a.split("-")[0].split(".")
    parts_b = b.split("-")[0].split(".")

    for part_a, part_b in zip(parts_a, parts_b):
        num_a, num_b = _leading_int(part_a), _leading_int(part_b)
        if num_a > num_b:
            return 1
        if num_a < num_b:
            return -1

    if len(parts_a) != len(parts_b):
        return len(parts_a) - len(parts_b)

    a_pre = "-" in a
    b_pre = "-" in b
    if not a_pre and b_pre:
        return 1
    if a_pre and not b_pre:
        return -1

    return (a > b) - (a < b)


def _stable_first(a: str, b: str) -> int:
    a_stable = "-" not in a
    b_stable = "-" not in b
    if a_stable != b_stable:
        return -1 if a_stable else 1
    return -compare_semver(a, b)


def resolve_version(vm: VersionMatrix, minecraft_version: str) -> str:
    """Map a Minecraft version to the best npm version, preferring stable publishes."""
    if minecraft_version == "latest":
        if "latest" in vm.tags:
            return vm.tags["latest"]
        raise VersionResolutionError(f"no latest tag found for module {vm.module}")

    mc_version = minecraft_version.removeprefix("v")
    candidates = [v for v in vm.versions if v.startswith(mc_version)]
    if not candidates:
        raise VersionResolutionError(
            f"no npm version found matching Minecraft version {minecraft_version}"
        )
    return sorted(candidates, key=cmp_to_key(_stable_first))[0]


def extract_types(dts: bytes | str, query: str) -> str:
    """Return the definition of ``query`` followed by the definitions it references."""
    content = dts.decode("utf-8", errors="replace") if isinstance(dts, (bytes, bytearray)) else dts
    lines = content.split("\n")

    block = _find_definition_block(lines, query)
    if block is None:
        raise SymbolNotFoundError(f'symbol "{query}" not found in type definitions')
    start, end = block
    body = "\n".join(lines[start:end])
    pieces = [body]

    included = {query}
    for ref in _extract_referenced_types(body):
        if ref in included:
            continue
        found = _find_definition_block(lines, ref)
        if found is None:
            continue
        pieces.append("\n".join(lines[found[0]:found[1]]))
        included.add(ref)

    return "\n\n".join(pieces)


def _find_definition_block(lines: list[str], name: str) -> tuple[int, int] | None:
    pattern = re.compile(
        r"\s*(export\s+)?(declare\s+)?(abstract\s+)?"
        r"(class|interface|enum|type|function|namespace|module|const|let|var)\s+"
        + re.escape(name)
        + r"[\s{:(=<;]"
    )
    start = next((i for i, line in enumerate(lines) if pattern.match(line)), None)
    if start is None:
        return None

    if lines[start].strip().endswith(";"):
        return start, start + 1

    depth = 0
    in_block = False
    for i in range(start, len(lines)):
        line = lines[i]
        for ch in line:
            if ch == "{":
                depth += 1
                in_block = True
            elif ch == "}":
                depth -= 1
                if depth == 0 and in_block:
                    return start, i + 1
        if not in_block and i > start and line.strip().endswith(";"):
            return start, i + 1

    return start, len(lines)


_TYPE_NAME = re.compile(r"\b([A-Z][a-zA-Z0-9_]*)\b", re.ASCII)

_TS_KEYWORDS = frozenset(
    """
    const let var type interface class enum function namespace module export import from
    return if else for while switch case break continue new this super extends implements
    public private protected readonly static abstract async await yield throw try catch
    finally void null undefined true false number string boolean symbol any unknown never
    object Array Map Set Promise Date RegExp Error String Number Boolean Object Function
    Record Partial Required Readonly Pick Omit Exclude Extract NonNullable Parameters
    ReturnType InstanceType ThisParameterType OmitThisParameter ThisType Uppercase Lowercase
    Capitalize Uncapitalize ConstructorParameters Awaited PropertyKey IterableIterator
    Iterator Iterable AsyncIterable AsyncIterableIterator AsyncIterator ArrayLike
    ReadonlyArray ReadonlyMap ReadonlySet Intl JSON Math console Buffer NodeJS globalThis
    console.warn console.log console.error
    """.split()
)


def _extract_referenced_types(body: str) -> list[str]:
    seen: dict[str, None] = {}
    for match in _TYPE_NAME.finditer(body):
        name = match.group(1)
        if name not in _TS_KEYWORDS:
            seen.setdefault(name, None)
    return list(seen)