"""
Script: multiarch_tools/digests.py
What: Digest value type plus the small files that carry digests between jobs.
Doing: Parses `algo:hex` strings, names/writes one digest file per platform, and collects them for merge.
Why: Build jobs run on separate runners, so the only thing passed to the merge job is these files.
Goal: Give build and merge one shared digest file format, with optional strict parsing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from multiarch_tools.common import CiToolError


DIGEST_SUFFIX = ".digest"
DEFAULT_DIGEST_PATTERN = f"*{DIGEST_SUFFIX}"

# Hex length per supported algorithm (OCI image-spec registered algorithms).
DIGEST_HEX_LENGTHS = {
    "sha256": 64,
    "sha512": 128,
}
DIGEST_RE = re.compile(r"^([a-z0-9]+):([0-9a-f]+)$")
PLATFORM_UNSAFE_CHARS_RE = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class Digest:
    algorithm: str
    hex: str

    def __str__(self) -> str:
        return f"{self.algorithm}:{self.hex}"


def parse_digest(text: str, *, source: str | None = None) -> Digest:
    """
    Parse a content digest like `sha256:<64 hex chars>`.

    `source` is only used in the error message (normally the digest file path).
    """
    value = text.strip()
    where = f" in {source}" if source else ""

    match = DIGEST_RE.match(value)
    if not match:
        raise CiToolError(f"Malformed digest{where}: {value!r} (expected <algorithm>:<hex>)")

    algorithm, hex_value = match.groups()
    expected_length = DIGEST_HEX_LENGTHS.get(algorithm)
    if expected_length is None:
        supported = ", ".join(sorted(DIGEST_HEX_LENGTHS))
        raise CiToolError(f"Unsupported digest algorithm{where}: {algorithm} (supported: {supported})")
    if len(hex_value) != expected_length:
        raise CiToolError(
            f"Malformed digest{where}: {algorithm} needs {expected_length} hex chars, "
            f"got {len(hex_value)}"
        )
    return Digest(algorithm=algorithm, hex=hex_value)


def platform_slug(platform: str) -> str:
    """
    Turn a platform spec into a file-name safe piece.

    Example: `linux/arm/v7` becomes `linux-arm-v7`.
    """
    slug = PLATFORM_UNSAFE_CHARS_RE.sub("-", platform.strip().replace("/", "-")).strip("-")
    if not slug:
        raise CiToolError(f"Invalid platform: {platform!r}")
    return slug


def digest_file_name(tag: str, platform: str) -> str:
    """Return `<tag>-<platform slug>.digest`, unique per tag/platform pair."""
    return f"{tag}-{platform_slug(platform)}{DIGEST_SUFFIX}"


def write_digest_file(directory: Path, *, tag: str, platform: str, digest: Digest) -> Path:
    # One file per platform job; the name is unique per tag and platform.
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / digest_file_name(tag, platform)
    path.write_text(f"{digest}\n", encoding="utf-8")
    return path


def find_digest_files(directory: Path, pattern: str = DEFAULT_DIGEST_PATTERN) -> list[Path]:
    """
    List digest files in `directory` matching `pattern`, sorted by name.

    Artifact downloads merge every platform into one flat directory, so this
    does not recurse. Sorting keeps repeated runs on the same inputs identical.
    """
    if not directory.is_dir():
        return []
    return sorted(path for path in directory.glob(pattern) if path.is_file())


def read_digest_file(path: Path, *, validate: bool = False) -> str:
    """
    Return the trimmed digest string stored in one file.

    Without `validate` the content is passed through as-is so the registry
    tool reports a bad value, which matches the old shell behavior.
    """
    try:
        content = path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as exc:
        raise CiToolError(f"Could not read digest file {path}: {exc}") from exc
    if validate:
        return str(parse_digest(content, source=str(path)))
    return content


def find_duplicate_digests(entries: list[tuple[Path, str]]) -> dict[str, list[Path]]:
    """Group files by digest and keep only digests seen in more than one file."""
    seen: dict[str, list[Path]] = {}
    for path, digest in entries:
        seen.setdefault(digest, []).append(path)
    return {digest: paths for digest, paths in seen.items() if len(paths) > 1}
