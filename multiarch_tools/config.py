"""
Script: multiarch_tools/config.py
What: Typed settings for the build and merge steps.
Doing: Reads workflow inputs from env once and stores them in frozen dataclasses.
Why: Everything after `from_env()` gets its settings passed in, which keeps the step logic testable.
Goal: One place that knows the env variable names and their defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from multiarch_tools.common import CiToolError, env_flag, optional_env, require_env
from multiarch_tools.digests import DEFAULT_DIGEST_PATTERN
from multiarch_tools.references import ImageRef


DEFAULT_DIGESTS_PATH = "/tmp/digests"
DEFAULT_ARTIFACT_PREFIX = "digests"
DUPLICATE_POLICIES = ("keep", "reject")


def parse_build_args(raw: str) -> tuple[tuple[str, str], ...]:
    """
    Parse newline-separated `KEY=VALUE` build args.

    Blank lines are skipped. Only the first `=` splits, so values may contain `=`.
    """
    pairs: list[tuple[str, str]] = []
    for line_number, line in enumerate(raw.splitlines(), start=1):
        entry = line.strip()
        if not entry:
            continue
        key, sep, value = entry.partition("=")
        key = key.strip()
        if not sep or not key:
            raise CiToolError(f"Invalid build arg on line {line_number}: {entry!r} (expected KEY=VALUE)")
        pairs.append((key, value))
    return tuple(pairs)


@dataclass(frozen=True)
class BuildConfig:
    image: ImageRef
    tag: str
    platform: str
    context: str = "."
    dockerfile: str = "Dockerfile"
    build_args: tuple[tuple[str, str], ...] = field(default_factory=tuple)
    artifact_prefix: str = DEFAULT_ARTIFACT_PREFIX
    digests_dir: Path = Path(DEFAULT_DIGESTS_PATH)

    def __post_init__(self) -> None:
        # The tag goes into the digest file name, so reject bad tags before building.
        self.image.tagged(self.tag)
        if not self.platform:
            raise CiToolError("Platform is empty")

    @classmethod
    def from_env(cls) -> "BuildConfig":
        return cls(
            image=ImageRef.parse(require_env("INPUT_IMAGE")),
            tag=require_env("INPUT_TAG").strip(),
            platform=require_env("INPUT_PLATFORM").strip(),
            context=optional_env("INPUT_CONTEXT", "."),
            dockerfile=optional_env("INPUT_DOCKERFILE", "Dockerfile"),
            build_args=parse_build_args(optional_env("INPUT_BUILD_ARGS")),
            artifact_prefix=optional_env("INPUT_ARTIFACT_PREFIX", DEFAULT_ARTIFACT_PREFIX),
            digests_dir=Path(optional_env("INPUT_DIGESTS_PATH", DEFAULT_DIGESTS_PATH)),
        )


@dataclass(frozen=True)
class MergeConfig:
    image: ImageRef
    tag: str
    digests_dir: Path
    pattern: str = DEFAULT_DIGEST_PATTERN
    validate_digests: bool = False
    duplicate_policy: str = "keep"
    dry_run: bool = False

    def __post_init__(self) -> None:
        self.image.tagged(self.tag)
        if self.duplicate_policy not in DUPLICATE_POLICIES:
            raise CiToolError(
                f"Unknown duplicate digest policy: {self.duplicate_policy} "
                f"(expected one of: {', '.join(DUPLICATE_POLICIES)})"
            )

    @property
    def target(self) -> str:
        """Tag that will point at the merged manifest list."""
        return self.image.tagged(self.tag)

    @classmethod
    def from_env(cls) -> "MergeConfig":
        return cls(
            image=ImageRef.parse(require_env("INPUT_IMAGE")),
            tag=require_env("INPUT_TAG").strip(),
            digests_dir=Path(require_env("INPUT_DIGESTS_PATH")),
            pattern=optional_env("INPUT_DIGEST_PATTERN", DEFAULT_DIGEST_PATTERN),
            validate_digests=env_flag("INPUT_VALIDATE_DIGESTS", False),
            duplicate_policy=optional_env("INPUT_DUPLICATE_DIGESTS", "keep").strip().lower(),
            dry_run=env_flag("INPUT_DRY_RUN", False),
        )
