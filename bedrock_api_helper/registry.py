"""A caching client for the npm registry."""

from __future__ import annotations

import copy
import io
import json
import tarfile
import urllib.error
import urllib.request
from collections.abc import Callable
from functools import cmp_to_key
from typing import IO, Any

from .cache import TtlCache
from .models import VersionMatrix
from .versions import compare_semver

__all__ = ["RegistryError", "RegistryClient", "extract_dts", "REGISTRY_URL"]

REGISTRY_URL = "https://registry.npmjs.org"
VERSION_TTL = 30.0
DTS_TTL = 120.0
DEFAULT_TIMEOUT = 15.0

HttpGet = Callable[[str], "tuple[int, bytes]"]


class RegistryError(Exception):
    """The registry could not be reached or returned something unusable."""


def _urllib_get(url: str, timeout: float) -> tuple[int, bytes]:
    try:
        with urllib.request.urlopen(url, timeout=timeout) as response:
            return response.status, response.read()
    except urllib.error.HTTPError as err:
        return err.code, b""


def extract_dts(stream: IO[bytes]) -> bytes:
    """Read the package's index.d.ts out of a gzipped npm tarball."""
    try:
        with tarfile.open(fileobj=stream, mode="r|gz") as archive:
            for member in archive:
                if member.name.endswith("index.d.ts") and "node_modules" not in member.name:
                    handle = archive.extractfile(member)
                    return handle.read() if handle is not None else b""
    except (tarfile.TarError, OSError, EOFError) as err:
        raise RegistryError(str(err)) from err
    raise RegistryError("index.d.ts not found in tarball")


class RegistryClient:
    """Fetches version lists, metadata and type definitions, with short-lived caching."""

    def __init__(
        self,
        http_get: HttpGet | None = None,
        cache: TtlCache | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._http_get: HttpGet = http_get or (lambda url: _urllib_get(url, timeout))
        self.cache = cache if cache is not None else TtlCache()

    def _get(self, url: str, what: str) -> bytes:
        try:
            status, body = self._http_get(url)
        except OSError as err:
            raise RegistryError(f"failed to fetch {what}: {err}") from err
        if status != 200:
            raise RegistryError(f"npm registry returned status {status}")
        return body

    @staticmethod
    def _decode(body: bytes, what: str) -> Any:
        try:
            return json.loads(body)
        except ValueError as err:
            raise RegistryError(f"failed to decode {what}: {err}") from err

    def fetch_version_matrix(self, module: str) -> VersionMatrix:
        """Return all published versions and dist-tags of a module."""
        key = f"versions:{module}"
        cached = self.cache.get(key)
        if isinstance(cached, VersionMatrix):
            return copy.deepcopy(cached)

        body = self._get(f"{REGISTRY_URL}/{module}", "version matrix")
        payload = self._decode(body, "npm response")
        if not isinstance(payload, dict):
            raise RegistryError("failed to decode npm response: not a JSON object")
        versions = payload.get("versions") or {}
        tags = payload.get("dist-tags") or {}
        if not isinstance(versions, dict) or not isinstance(tags, dict):
            raise RegistryError("failed to decode npm response: unexpected structure")

        vm = VersionMatrix(module=module, versions=sorted(versions), tags=dict(tags))
        self.cache.set(key, copy.deepcopy(vm), VERSION_TTL)
        return vm

    def fetch_version_data(self, module: str, version: str) -> dict[str, Any]:
        """Return the registry metadata of one published version."""
        key = f"metadata:{module}@{version}"
        cached = self.cache.get(key)
        if isinstance(cached, dict):
            return copy.deepcopy(cached)

        body = self._get(f"{REGISTRY_URL}/{module}/{version}", "version data")
        result = self._decode(body, "version data")
        if not isinstance(result, dict):
            raise RegistryError("failed to decode version data: not a JSON object")
        self.cache.set(key, copy.deepcopy(result), DTS_TTL)
        return result

    def fetch_types(self, module: str, version: str) -> bytes:
        """Download a version's tarball and return its index.d.ts."""
        key = f"dts:{module}@{version}"
        cached = self.cache.get(key)
        if isinstance(cached, bytes):
            return cached

        body = self._get(f"{REGISTRY_URL}/{module}/{version}", "package metadata")
        payload = self._decode(body, "package metadata")
        dist = payload.get("dist") if isinstance(payload, dict) else None
        tarball = dist.get("tarball", "") if isinstance(dist, dict) else ""

        try:
            _, archive = self._http_get(tarball)
        except OSError as err:
            raise RegistryError(f"failed to download tarball: {err}") from err

        try:
            dts = extract_dts(io.BytesIO(archive))
        except RegistryError as err:
            raise RegistryError(f"failed to extract .d.ts: {err}") from err

        self.cache.set(key, dts, DTS_TTL)
        return dts

    def clear_cache(self) -> None:
        """Drop everything cached so the next calls fetch fresh data."""
        self.cache.clear()

    def clear_version_cache(self, module: str) -> None:
        self.cache.delete(f"versions:{module}")

    def _matrix(self, module: str) -> VersionMatrix:
        try:
            return self.fetch_version_matrix(module)
        except RegistryError as err:
            raise RegistryError(f"failed to fetch version matrix for {module}: {err}") from err

    def lookup_exact_version(self, module: str, version: str) -> bool:
        """Whether ``version`` is an exact published version of ``module``."""
        return version in self._matrix(module).versions

    def list_concrete_versions(self, module: str, shorthand: str) -> list[str]:
        """Versions starting with ``shorthand``, highest first."""
        candidates = [v for v in self._matrix(module).versions if v.startswith(shorthand)]
        return sorted(candidates, key=cmp_to_key(compare_semver), reverse=True)