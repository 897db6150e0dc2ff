# metadata.py
from __future__ import annotations

from pathlib import Path

from .errors import (
    InvalidVersionFormat,
    ManifestReadFailure,
    MissingVersion,
    VersionResolutionError,
)

VERSION_KEY = ".version"
MAX_MANIFEST_BYTES = 1024 * 1024
DEFAULT_FALLBACK_VERSION = "dev"


def _is_version_line(trimmed: str) -> bool:
    # ".version" must be followed by a delimiter so ".versions = ..." is skipped
    if not trimmed.startswith(VERSION_KEY):
        return False
    rest = trimmed[len(VERSION_KEY):]
    return rest == "" or rest[0] in " \t="


def parse_package_version(content: str) -> str:
    """
    Return the version value from manifest text.

    The first line whose trimmed form starts with the version key wins; the
    value is whatever sits between the first two double quotes on that line.
    """
    for line in content.split("\n"):
        trimmed = line.strip(" \t\r")
        if not _is_version_line(trimmed):
            continue

        first_quote = trimmed.find('"')
        if first_quote < 0:
            raise InvalidVersionFormat(f"no opening quote on version line: {trimmed!r}")
        second_quote = trimmed.find('"', first_quote + 1)
        if second_quote < 0:
            raise InvalidVersionFormat(f"no closing quote on version line: {trimmed!r}")

        return trimmed[first_quote + 1:second_quote]

    raise MissingVersion(f"no line starting with {VERSION_KEY!r}")


def read_package_version(manifest_path: str | Path) -> str:
    """Read a manifest file (capped at MAX_MANIFEST_BYTES) and parse its version."""
    path = Path(manifest_path)
    try:
        with path.open("rb") as f:
            raw = f.read(MAX_MANIFEST_BYTES + 1)
    except OSError as e:
        raise ManifestReadFailure(f"cannot read manifest {path}: {e}") from e

    if len(raw) > MAX_MANIFEST_BYTES:
        raise ManifestReadFailure(
            f"manifest {path} exceeds {MAX_MANIFEST_BYTES} bytes"
        )

    # bytes outside UTF-8 only matter if they sit on the version line
    return parse_package_version(raw.decode("utf-8", errors="replace"))


def resolve_release_version(
    override: str | None,
    manifest_path: str | Path,
    *,
    fallback: str = DEFAULT_FALLBACK_VERSION,
    strict: bool = False,
) -> str:
    """
    Pick the version used for release naming.

    An explicit override always wins. Otherwise the manifest is consulted;
    on failure the fallback is used, unless `strict` asks for the error.
    """
    if override is not None:
        return override
    try:
        return read_package_version(manifest_path)
    except VersionResolutionError:
        if strict:
            raise
        return fallback
