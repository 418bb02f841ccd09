"""
Script: multiarch_tools/platform_build.py
What: Builds and pushes one platform of the image by digest.
Doing: Runs `docker buildx build` for a single platform, then saves the pushed digest to a `.digest` file.
Why: Each matrix job builds natively on its own runner; the merge job needs every digest afterwards.
Goal: Leave exactly one digest file per platform for the artifact upload step.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Sequence

from multiarch_tools.buildx import build_push_by_digest
from multiarch_tools.common import write_github_outputs
from multiarch_tools.config import BuildConfig
from multiarch_tools.digests import Digest, platform_slug, write_digest_file


def artifact_name(prefix: str, tag: str, platform: str) -> str:
    """
    Name for the uploaded digest artifact.

    Artifact names must be unique across the matrix, so tag and platform are both part of it.
    The merge job downloads with a `<prefix>-*` pattern.
    """
    return f"{prefix}-{tag}-{platform_slug(platform)}"


def build_platform(
    config: BuildConfig,
    *,
    build: Callable[..., Digest] = build_push_by_digest,
) -> tuple[Digest, Path]:
    """Build one platform and record its digest; returns the digest and the file written."""
    build_args: Sequence[tuple[str, str]] = config.build_args
    print(f"Building {config.image} for {config.platform} from {config.context} ({config.dockerfile})")
    for key, _ in build_args:
        # Names only; values may be sensitive.
        print(f"  build arg: {key}")

    digest = build(
        image_name=str(config.image),
        platform=config.platform,
        context=config.context,
        dockerfile=config.dockerfile,
        build_args=build_args,
    )
    digest_file = write_digest_file(
        config.digests_dir,
        tag=config.tag,
        platform=config.platform,
        digest=digest,
    )
    print(f"Pushed {config.image.pinned(str(digest))}")
    print(f"Wrote {digest_file}")
    return digest, digest_file


def main() -> None:
    config = BuildConfig.from_env()
    digest, digest_file = build_platform(config)

    write_github_outputs(
        {
            "digest": str(digest),
            "digest_file": str(digest_file),
            "artifact_name": artifact_name(config.artifact_prefix, config.tag, config.platform),
        }
    )


if __name__ == "__main__":
    main()
