"""
Script: multiarch_tools/manifest_merge.py
What: Merges per-platform image digests into one multi-platform tag.
Doing: Reads every digest file from the downloaded artifacts, runs `imagetools create`, then `imagetools inspect`.
Why: Platform jobs push by digest only; this is the single step that assigns the shared tag.
Goal: Publish `<image>:<tag>` as a manifest list covering every platform that was built.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Sequence

from multiarch_tools.buildx import imagetools_create, imagetools_create_command, imagetools_inspect
from multiarch_tools.common import CiToolError, write_github_outputs
from multiarch_tools.config import MergeConfig
from multiarch_tools.digests import find_digest_files, find_duplicate_digests, read_digest_file


@dataclass(frozen=True)
class MergePlan:
    """Everything needed for the create call, computed before touching the registry."""

    target: str
    sources: tuple[str, ...]
    digest_files: tuple[Path, ...]


def collect_digests(config: MergeConfig) -> list[tuple[Path, str]]:
    """
    Return `(file, digest)` pairs for every digest file in the digests dir.

    Raises when no files match, so the workflow fails before any registry call.
    """
    files = find_digest_files(config.digests_dir, config.pattern)
    if not files:
        raise CiToolError(f"ERROR: no digest files found in {config.digests_dir}")
    return [(path, read_digest_file(path, validate=config.validate_digests)) for path in files]


def plan_merge(config: MergeConfig) -> MergePlan:
    entries = collect_digests(config)

    # Two files with the same digest usually means one platform job uploaded twice.
    duplicates = find_duplicate_digests(entries)
    for digest, paths in duplicates.items():
        names = ", ".join(path.name for path in paths)
        if config.duplicate_policy == "reject":
            raise CiToolError(f"Duplicate digest {digest} in digest files: {names}")
        print(f"Notice: digest {digest} appears in more than one file: {names}")

    return MergePlan(
        target=config.target,
        sources=tuple(config.image.pinned(digest) for _, digest in entries),
        digest_files=tuple(path for path, _ in entries),
    )


def merge_manifest(
    config: MergeConfig,
    *,
    create_manifest: Callable[[str, Sequence[str]], None] = imagetools_create,
    inspect_manifest: Callable[[str], str] = imagetools_inspect,
) -> MergePlan:
    """
    Create the manifest list and verify it.

    The registry calls are passed in so tests can record them instead of
    talking to a registry.
    """
    plan = plan_merge(config)
    print(f"Merging {len(plan.sources)} digest(s) into {plan.target}")
    for source in plan.sources:
        print(f"  {source}")

    if config.dry_run:
        print("Dry run, not publishing: " + " ".join(imagetools_create_command(plan.target, plan.sources)))
        return plan

    create_manifest(plan.target, plan.sources)
    # Inspect fails if the tag did not resolve, which is the verification step.
    print(inspect_manifest(plan.target), end="")
    return plan


def main() -> None:
    config = MergeConfig.from_env()
    plan = merge_manifest(config)

    outputs = {
        "image": str(config.image),
        "source_count": str(len(plan.sources)),
    }
    if config.dry_run:
        # Nothing was published, so there is no manifest to point later steps at.
        outputs["dry_run"] = "true"
    else:
        outputs["manifest"] = plan.target
    write_github_outputs(outputs)


if __name__ == "__main__":
    main()
