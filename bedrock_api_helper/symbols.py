"""Build tables of exported symbols from TypeScript declaration files."""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

__all__ = ["SymbolKind", "ExportedSymbol", "SymbolTable", "build_symbol_table"]


class SymbolKind(str, Enum):
    """The kind of a TypeScript symbol."""

    CLASS = "class"
    INTERFACE = "interface"
    NAMESPACE = "namespace"
    ENUM = "enum"
    FUNCTION = "function"
    TYPE = "type"
    VARIABLE = "variable"
    PROPERTY = "property"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    EVENT = "event"


@dataclass
class ExportedSymbol:
    """One exported symbol with its fully qualified name."""

    name: str
    kind: SymbolKind
    signature: str = ""
    deprecated: bool = False
    members: list[ExportedSymbol] = field(default_factory=list)
    parent: str = ""


@dataclass
class SymbolTable:
    """All exported symbols of one module version."""

    module: str
    version: str
    roots: list[ExportedSymbol] = field(default_factory=list)
    flat: dict[str, ExportedSymbol] = field(default_factory=dict)

    def flat_names(self) -> list[str]:
        """Every fully qualified symbol name in the table."""
        return list(self.flat)


_KIND_MAP: dict[str, SymbolKind] = {
    "class": SymbolKind.CLASS,
    "interface": SymbolKind.INTERFACE,
    "enum": SymbolKind.ENUM,
    "namespace": SymbolKind.NAMESPACE,
    "function": SymbolKind.FUNCTION,
    "type": SymbolKind.TYPE,
    "const": SymbolKind.VARIABLE,
    "let": SymbolKind.VARIABLE,
    "var": SymbolKind.VARIABLE,
}

_KIND_WORDS = "class|interface|enum|namespace|function|type|const|let|var"
_IDENT = r"[A-Za-z_]\w*"

_TOP_LEVEL_PATTERNS = tuple(
    re.compile(pattern, re.ASCII)
    for pattern in (
        rf"\s*export\s+declare\s+(abstract\s+)?({_KIND_WORDS})\s+({_IDENT})",
        rf"\s*declare\s+(abstract\s+)?({_KIND_WORDS})\s+({_IDENT})",
        rf"\s*export\s+(abstract\s+)?({_KIND_WORDS})\s+({_IDENT})",
    )
)
_NAME_RE = re.compile(
    rf"(?:export\s+)?(?:declare\s+)?(?:abstract\s+)?(?:{_KIND_WORDS})\s+({_IDENT})", re.ASCII
)
_KIND_RE = re.compile(
    rf"(?:export\s+)?(?:declare\s+)?(?:abstract\s+)?({_KIND_WORDS})\b", re.ASCII
)
_MEMBER_RE = re.compile(rf"\s+(readonly\s+)?({_IDENT})\??\s*[:(=]", re.ASCII)

_CONTAINER_KINDS = frozenset(
    {SymbolKind.CLASS, SymbolKind.INTERFACE, SymbolKind.NAMESPACE, SymbolKind.ENUM}
)

_KNOWN_ROOTS = frozenset(
    {
        "world",
        "system",
        "Player",
        "Entity",
        "Block",
        "ItemStack",
        "Dimension",
        "Container",
        "Scoreboard",
        "CommandResult",
    }
)

_MAX_SIGNATURE = 200
_SIGNATURE_LINES = 5


def build_symbol_table(dts: bytes | str, module: str, version: str) -> SymbolTable:
    """Parse .d.ts content into a table of exported symbols and their members."""
    content = dts.decode("utf-8", errors="replace") if isinstance(dts, (bytes, bytearray)) else dts
    lines = content.split("\n")

    roots: list[ExportedSymbol] = []
    flat: dict[str, ExportedSymbol] = {}
    for start, end in _find_top_level_declarations(lines):
        symbol = _parse_declaration(lines, start, end, "")
        if symbol is not None:
            roots.append(symbol)
            _flatten(symbol, flat)

    _expand_root_paths(roots, flat)
    return SymbolTable(module=module, version=version, roots=roots, flat=flat)


def _find_top_level_declarations(lines: Sequence[str]) -> list[tuple[int, int]]:
    ranges: list[tuple[int, int]] = []
    for index, line in enumerate(lines):
        for pattern in _TOP_LEVEL_PATTERNS:
            match = pattern.match(line)
            if match is None:
                continue
            groups = match.groups()
            kinds = [g for g in groups if g in _KIND_MAP]
            name = groups[-1]
            if not kinds or not name:
                continue
            ranges.append((index, _block_end(lines, index)))
            break
    return ranges


def _block_end(lines: Sequence[str], start: int) -> int:
    if lines[start].strip().endswith(";"):
        return start + 1
    depth = 0
    in_block = False
    for index in range(start, len(lines)):
        for ch in lines[index]:
            if ch == "{":
                depth += 1
                in_block = True
            elif ch == "}":
                depth -= 1
                if depth == 0 and in_block:
                    return index + 1
    return len(lines)


def _deprecated_above(
    lines: Sequence[str], index: int, reach: int, comment_prefixes: tuple[str, ...]
) -> bool:
    for j in range(index - 1, max(index - reach, 0) - 1, -1):
        text = lines[j].strip()
        if "@deprecated" in text:
            return True
        if not text.startswith(comment_prefixes):
            return False
    return False


def _parse_declaration(
    lines: Sequence[str], start: int, end: int, parent: str
) -> ExportedSymbol | None:
    first_line = lines[start].strip()
    name_match = _NAME_RE.search(first_line)
    if name_match is None:
        return None
    name = name_match.group(1)

    kind_match = _KIND_RE.search(first_line)
    kind = _KIND_MAP[kind_match.group(1)] if kind_match else SymbolKind.VARIABLE
    qualified = f"{parent}.{name}" if parent else name

    symbol = ExportedSymbol(
        name=qualified,
        kind=kind,
        signature=_signature(lines, start, end),
        deprecated=_deprecated_above(lines, start, 3, ("//", "/*", "*")),
        parent=parent,
    )
    if kind in _CONTAINER_KINDS:
        symbol.members = _extract_members(lines, start, end, qualified)
    return symbol


def _signature(lines: Sequence[str], start: int, end: int) -> str:
    parts = (lines[i].strip() for i in range(start, min(end, start + _SIGNATURE_LINES)))
    sig = " ".join(part for part in parts if part)
    if len(sig) > _MAX_SIGNATURE:
        sig = sig[:_MAX_SIGNATURE] + "..."
    return sig


def _extract_members(
    lines: Sequence[str], start: int, end: int, qualified: str
) -> list[ExportedSymbol]:
    members: list[ExportedSymbol] = []
    for index in range(start + 1, end - 1):
        raw = lines[index]
        text = raw.strip()
        if not text or text.startswith(("//", "*", "/*")) or text in ("}", "{"):
            continue
        match = _MEMBER_RE.match(raw)
        if match is None or not match.group(2):
            continue
        is_method = "(" in raw and ")" in raw
        members.append(
            ExportedSymbol(
                name=f"{qualified}.{match.group(2)}",
                kind=SymbolKind.METHOD if is_method else SymbolKind.PROPERTY,
                deprecated=_deprecated_above(lines, index, 2, ("//", "*")),
                parent=qualified,
            )
        )
    return members


def _flatten(symbol: ExportedSymbol, flat: dict[str, ExportedSymbol]) -> None:
    flat.setdefault(symbol.name, symbol)
    for member in symbol.members:
        _flatten(member, flat)


def _expand_root_paths(roots: Sequence[ExportedSymbol], flat: dict[str, ExportedSymbol]) -> None:
    for root in roots:
        flat[root.name] = root
        expand = root.name in _KNOWN_ROOTS or root.kind is SymbolKind.NAMESPACE
        for member in root.members:
            flat[member.name] = member
            if expand:
                for sub in member.members:
                    flat[sub.name] = sub