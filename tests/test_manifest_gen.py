import json
import re

import pytest

from bedrock_api_helper.dependency_rules import DependencyChangeError
from bedrock_api_helper.manifest_gen import (
    ManifestParseError,
    build_dependencies,
    build_dependencies_with_channel,
    build_dependencies_with_validation,
    file_structure,
    format_manifest,
    generate_bp,
    generate_package_json,
    generate_rp,
    generate_starter_code,
    generate_uuid,
    parse_manifest,
    update_dependencies,
)
from bedrock_api_helper.models import Dependency, Manifest, ManifestHeader
from bedrock_api_helper.registry import RegistryClient, RegistryError
from bedrock_api_helper.versions import VersionResolutionError

UUID4 = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-4[0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$")

REGISTRY_DATA = {
    "@minecraft/server": {
        "versions": {
            "2.6.0": {},
            "2.9.0-beta.1.26.30": {},
            "2.9.0-beta.1.26.30-preview.21": {},
        },
        "dist-tags": {"latest": "2.6.0", "beta": "2.9.0-beta.1.26.30-preview.21"},
    },
    "@minecraft/server-ui": {
        "versions": {"2.1.0": {}, "2.2.0-beta.1.26.30": {}},
        "dist-tags": {"latest": "2.1.0"},
    },
}


def _fake_http(url):
    module = url.split("registry.npmjs.org/", 1)[1]
    if module in REGISTRY_DATA:
        return 200, json.dumps(REGISTRY_DATA[module]).encode()
    return 404, b""


@pytest.fixture
def client():
    return RegistryClient(http_get=_fake_http)


def test_generate_uuid_unique_and_length():
    first, second = generate_uuid(), generate_uuid()
    assert first != second
    assert len(first) == 36


def test_generate_uuid_format():
    value = generate_uuid()
    for pos in (8, 13, 18, 23):
        assert value[pos] == "-"
    assert UUID4.match(value)


def test_generate_bp():
    deps = [
        Dependency(module_name="@minecraft/server-ui", version="2.1.0-beta"),
        Dependency(module_name="@minecraft/server", version="2.7.0-beta"),
    ]
    bp = generate_bp("Test Addon", "A test addon", deps, "test-uuid")
    assert bp.header.name == "Test Addon"
    assert bp.header.description == "A test addon"
    assert bp.header.uuid == "test-uuid"
    assert [d.module_name for d in bp.dependencies] == [
        "@minecraft/server",
        "@minecraft/server-ui",
    ]
    assert len(bp.modules) == 2
    assert [m.type for m in bp.modules] == ["data", "script"]
    assert bp.modules[1].entry == "scripts/main.js"
    assert deps[0].module_name == "@minecraft/server-ui"


def test_manifest_header_min_engine_version():
    bp = generate_bp("Test", "Test desc", [Dependency("@minecraft/server", version="1.0.0")], "uuid")
    assert bp.header.min_engine_version == [1, 21, 60]


def test_generate_rp():
    rp = generate_rp("Test Addon", "A test addon", "rp-uuid", "bp-uuid")
    assert rp.header.name == "Test Addon RP"
    assert rp.header.uuid == "rp-uuid"
    assert len(rp.dependencies) == 1
    assert rp.dependencies[0].uuid == "bp-uuid"
    assert rp.dependencies[0].version == "1.0.0"
    assert len(rp.modules) == 1
    assert rp.modules[0].type == "resources"


def test_build_dependencies():
    deps = build_dependencies("2.7.0-beta", True)
    assert [d.module_name for d in deps] == ["@minecraft/server", "@minecraft/server-ui"]
    assert all(d.version == "2.7.0-beta" for d in deps)


def test_build_dependencies_no_ui():
    deps = build_dependencies("1.0.0", False)
    assert [d.module_name for d in deps] == ["@minecraft/server"]


def test_update_dependencies_add_and_remove():
    manifest = Manifest(dependencies=[Dependency(module_name="@minecraft/server", version="1.0.0")])
    update_dependencies(manifest, ["@minecraft/server-ui"], [])
    assert len(manifest.dependencies) == 2
    added = [d for d in manifest.dependencies if d.module_name == "@minecraft/server-ui"]
    assert added[0].version == "latest"

    update_dependencies(manifest, [], ["@minecraft/server"])
    assert [d.module_name for d in manifest.dependencies] == ["@minecraft/server-ui"]


def test_update_dependencies_invalid_module():
    manifest = Manifest()
    with pytest.raises(DependencyChangeError):
        update_dependencies(manifest, ["invalid-module"], [])


def test_update_dependencies_deprecated_module():
    manifest = Manifest()
    with pytest.raises(DependencyChangeError, match="deprecated"):
        update_dependencies(manifest, ["mojang-minecraft"], [])


def test_format_manifest():
    manifest = Manifest(format_version=2, header=ManifestHeader(name="Test", version=[1, 0, 0]))
    text = format_manifest(manifest)
    assert "Test" in text
    assert json.loads(text)["format_version"] == 2


def test_parse_manifest():
    text = """{
        "format_version": 2,
        "header": {"name": "Test", "version": [1, 0, 0]}
    }"""
    manifest = parse_manifest(text)
    assert manifest.format_version == 2
    assert manifest.header.name == "Test"


def test_parse_manifest_uuid_dependency_version_array():
    text = """{
        "format_version": 2,
        "header": {"name": "Test", "version": [1, 0, 0]},
        "dependencies": [{"uuid": "550e8400-e29b-41d4-a716-446655440000", "version": [2, 2, 0]}]
    }"""
    manifest = parse_manifest(text)
    assert len(manifest.dependencies) == 1
    assert manifest.dependencies[0].version == "2.2.0"


def test_parse_manifest_invalid_json():
    with pytest.raises(ManifestParseError):
        parse_manifest("invalid json")


def test_format_parse_round_trip():
    bp = generate_bp("Round", "trip", build_dependencies("1.0.0", True), "bp-uuid")
    assert parse_manifest(format_manifest(bp)) == bp


def test_file_structure():
    files = file_structure("MyAddon", False, "javascript", False)
    assert len(files) == 6
    assert "behavior_pack/manifest.json" in files
    assert "behavior_pack/pack_icon.png" in files
    assert "src/main.js" in files
    assert files == sorted(files)


def test_file_structure_with_rp():
    files = file_structure("MyAddon", True, "javascript", False)
    assert len(files) == 9
    assert "resource_pack/manifest.json" in files
    assert "resource_pack/pack_icon.png" in files


def test_file_structure_typescript():
    files = file_structure("MyAddon", False, "typescript", False)
    assert len(files) == 7
    assert "tsconfig.json" in files
    assert "src/main.ts" in files


def test_file_structure_with_deploy():
    files = file_structure("MyAddon", False, "javascript", True)
    assert len(files) == 9
    assert "package.json" in files
    assert "scripts/deploy.js" in files


def test_generate_starter_code():
    code = generate_starter_code("javascript", "1.21.60")
    assert list(code) == ["src/main.js"]
    assert "1.21.60" in code["src/main.js"]


def test_generate_starter_code_typescript():
    code = generate_starter_code("typescript", "latest")
    assert list(code) == ["src/main.ts", "tsconfig.json"]
    assert "// TypeScript entry point" in code["src/main.ts"]
    tsconfig = json.loads(code["tsconfig.json"])
    assert tsconfig["compilerOptions"]["target"] == "ES2020"
    assert tsconfig["include"] == ["src/**/*"]


def test_generate_package_json_javascript():
    deps = [
        Dependency(module_name="@minecraft/server", version="2.7.0-beta"),
        Dependency(module_name="@minecraft/server-ui", version="~2.1.0"),
        Dependency(uuid="pack-uuid", version="1.0.0"),
    ]
    pkg = json.loads(generate_package_json("MyAddon", deps, "javascript"))
    assert pkg["name"] == "myaddon"
    assert pkg["private"] is True
    assert pkg["dependencies"] == {
        "@minecraft/server": "^2.7.0-beta",
        "@minecraft/server-ui": "~2.1.0",
    }
    assert pkg["devDependencies"] == {"esbuild": "^0.25.9"}
    assert pkg["scripts"]["build"] == "node scripts/deploy.js dev"
    assert pkg["scripts"]["deploy:prod"] == "node scripts/deploy.js prod"


def test_generate_package_json_typescript():
    deps = [Dependency(module_name="@minecraft/server", version="2.7.0-beta")]
    text = generate_package_json("Addon", deps, "typescript")
    assert text.endswith("\n")
    pkg = json.loads(text)
    assert "--external:@minecraft/server" in pkg["scripts"]["build"]
    assert pkg["scripts"]["typecheck"] == "tsc --noEmit"
    assert pkg["devDependencies"]["typescript"] == "^5.9.2"


def test_generate_package_json_without_dependencies():
    pkg = json.loads(generate_package_json("Addon", [], "javascript"))
    assert "dependencies" not in pkg


def test_build_dependencies_with_channel_beta(client):
    deps = build_dependencies_with_channel(client, ["@minecraft/server"], "latest", "beta")
    assert deps == [Dependency(module_name="@minecraft/server", version="2.9.0-beta")]


def test_build_dependencies_with_channel_default_modules(client):
    deps = build_dependencies_with_channel(client, [], "latest", "beta")
    assert [d.module_name for d in deps] == ["@minecraft/server"]


def test_build_dependencies_with_channel_stable(client):
    deps = build_dependencies_with_channel(client, ["@minecraft/server"], "latest", "stable")
    assert len(deps) == 1
    assert "beta" not in deps[0].version
    assert deps[0].version == "2.6.0"


def test_build_dependencies_with_channel_multiple_modules(client):
    deps = build_dependencies_with_channel(
        client, ["@minecraft/server", "@minecraft/server-ui"], "latest", "beta"
    )
    assert [(d.module_name, d.version) for d in deps] == [
        ("@minecraft/server", "2.9.0-beta"),
        ("@minecraft/server-ui", "2.2.0-beta"),
    ]


def test_build_dependencies_with_channel_unknown_module(client):
    with pytest.raises(RegistryError, match="failed to fetch versions for @minecraft/nothing"):
        build_dependencies_with_channel(client, ["@minecraft/nothing"], "latest", "beta")


def test_build_dependencies_with_channel_unresolvable(client):
    with pytest.raises(VersionResolutionError, match="failed to resolve versions"):
        build_dependencies_with_channel(client, ["@minecraft/server"], "9.99.99", "stable")


def test_build_dependencies_with_validation_missing(client, tmp_path):
    deps, warnings = build_dependencies_with_validation(
        tmp_path, client, ["@minecraft/server"], "latest", "beta"
    )
    assert len(deps) == 1
    assert len(warnings) == 1
    assert "not found in node_modules" in warnings[0]


def test_build_dependencies_with_validation_matching(client, tmp_path):
    module_dir = tmp_path / "node_modules" / "@minecraft" / "server"
    module_dir.mkdir(parents=True)
    (module_dir / "package.json").write_text(
        '{"name":"@minecraft/server","version":"2.9.0-beta.1.26.30"}'
    )
    deps, warnings = build_dependencies_with_validation(
        tmp_path, client, ["@minecraft/server"], "latest", "beta"
    )
    assert deps[0].version == "2.9.0-beta"
    assert warnings == []