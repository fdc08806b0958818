import pytest

from bedrock_api_helper.symbols import (
    ExportedSymbol,
    SymbolKind,
    SymbolTable,
    build_symbol_table,
)

DTS = """\
export declare class World {
    /**
     * @deprecated use getDimension
     */
    getOld(): void;
    getDimension(id: string): Dimension;
    readonly name: string;
}

/** @deprecated */
export declare function legacy(): void;

export type Id = string;

export const VERSION: string;

export enum Color {
    Red = 0,
    Blue = 1,
}

declare abstract class Base {
    id: number;
}
"""


@pytest.fixture
def table():
    return build_symbol_table(DTS, "@minecraft/server", "1.0.0")


def test_module_and_version_are_kept(table):
    assert (table.module, table.version) == ("@minecraft/server", "1.0.0")


def test_roots_in_source_order(table):
    assert [root.name for root in table.roots] == [
        "World",
        "legacy",
        "Id",
        "VERSION",
        "Color",
        "Base",
    ]


def test_flat_names_cover_roots_and_members(table):
    assert set(table.flat_names()) == {
        "World",
        "World.getOld",
        "World.getDimension",
        "World.name",
        "legacy",
        "Id",
        "VERSION",
        "Color",
        "Color.Red",
        "Color.Blue",
        "Base",
        "Base.id",
    }
    assert table.flat_names() == list(table.flat)


@pytest.mark.parametrize(
    "name, kind",
    [
        ("World", SymbolKind.CLASS),
        ("legacy", SymbolKind.FUNCTION),
        ("Id", SymbolKind.TYPE),
        ("VERSION", SymbolKind.VARIABLE),
        ("Color", SymbolKind.ENUM),
        ("Base", SymbolKind.CLASS),
        ("World.getDimension", SymbolKind.METHOD),
        ("World.name", SymbolKind.PROPERTY),
        ("Color.Red", SymbolKind.PROPERTY),
    ],
)
def test_kinds(table, name, kind):
    assert table.flat[name].kind is kind


def test_deprecation_of_members_and_roots(table):
    assert table.flat["World.getOld"].deprecated is True
    assert table.flat["World.getDimension"].deprecated is False
    assert table.flat["legacy"].deprecated is True
    assert table.flat["World"].deprecated is False


def test_members_carry_parent(table):
    assert table.flat["World.name"].parent == "World"
    assert table.flat["Base.id"].parent == "Base"
    assert all(root.parent == "" for root in table.roots)


def test_one_line_signature(table):
    assert table.flat["Id"].signature == "export type Id = string;"
    assert table.flat["World"].signature.startswith("export declare class World {")


def test_bytes_and_text_give_same_table():
    from_bytes = build_symbol_table(DTS.encode("utf-8"), "m", "v")
    from_text = build_symbol_table(DTS, "m", "v")
    assert from_bytes.flat_names() == from_text.flat_names()


def test_empty_input_has_no_symbols():
    empty = build_symbol_table(b"", "m", "v")
    assert empty.roots == []
    assert empty.flat_names() == []


def test_long_signature_is_truncated():
    line = "export declare function f(" + "a: string, " * 30 + "): void;"
    result = build_symbol_table(line, "m", "v")
    sig = result.flat["f"].signature
    assert len(sig) == 203
    assert sig.endswith("...")
    assert sig[:200] == line[:200]


def test_repeated_declaration_keeps_last_root_and_all_members():
    dts = (
        "export interface Foo {\n"
        "    a: number;\n"
        "}\n"
        "export interface Foo {\n"
        "    b: number;\n"
        "}\n"
    )
    result = build_symbol_table(dts, "m", "v")
    assert len(result.roots) == 2
    assert result.flat["Foo"] is result.roots[1]
    assert {"Foo.a", "Foo.b"} <= set(result.flat_names())


def test_undeclared_lines_are_ignored():
    result = build_symbol_table("class Hidden {\n    x: number;\n}\n", "m", "v")
    assert result.flat_names() == []


def test_table_can_be_built_by_hand():
    sym = ExportedSymbol(name="x", kind=SymbolKind.VARIABLE)
    hand = SymbolTable(module="m", version="v", roots=[sym], flat={"x": sym})
    assert hand.flat_names() == ["x"]