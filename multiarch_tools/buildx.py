"""
Script: multiarch_tools/buildx.py
What: Thin wrappers around `docker buildx` subcommands.
Doing: Builds command lines for push-by-digest builds and `imagetools create/inspect`, then runs them.
Why: Keeps exact CLI flags in one place so both steps and the tests agree on them.
Goal: Make every external call fail fast with the tool's own exit code.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Sequence

from multiarch_tools.common import CiToolError, load_json_file, run_cmd
from multiarch_tools.digests import Digest, parse_digest


DOCKER = "docker"
METADATA_DIGEST_KEY = "containerimage.digest"


def push_by_digest_output(image_name: str) -> str:
    """
    Return the `--output` value for an untagged, digest-only push.

    `name-canonical=true` keeps the image name as passed, and
    `push-by-digest=true` skips tagging so parallel platform jobs never race on a tag.
    """
    return f"type=image,name={image_name},push-by-digest=true,name-canonical=true,push=true"


def build_command(
    *,
    image_name: str,
    platform: str,
    context: str,
    dockerfile: str,
    build_args: Sequence[tuple[str, str]],
    metadata_file: str,
) -> list[str]:
    command = [DOCKER, "buildx", "build", "--platform", platform, "--file", dockerfile]
    for key, value in build_args:
        command.extend(["--build-arg", f"{key}={value}"])
    command.extend(
        [
            "--metadata-file",
            metadata_file,
            "--output",
            push_by_digest_output(image_name),
            context,
        ]
    )
    return command


def digest_from_metadata(metadata: dict, *, source: str) -> Digest:
    """Read the pushed image digest from a buildx `--metadata-file` document."""
    value = str(metadata.get(METADATA_DIGEST_KEY) or "")
    if not value:
        raise CiToolError(f"Missing {METADATA_DIGEST_KEY} in build metadata {source}")
    return parse_digest(value, source=source)


def build_push_by_digest(
    *,
    image_name: str,
    platform: str,
    context: str,
    dockerfile: str,
    build_args: Sequence[tuple[str, str]] = (),
) -> Digest:
    """Build one platform, push it without a tag, and return the pushed digest."""
    with tempfile.TemporaryDirectory(prefix="buildx-metadata-") as temp_dir:
        metadata_file = str(Path(temp_dir) / "metadata.json")
        command = build_command(
            image_name=image_name,
            platform=platform,
            context=context,
            dockerfile=dockerfile,
            build_args=build_args,
            metadata_file=metadata_file,
        )
        # Stream build logs straight to the job log.
        run_cmd(command, capture_output=False)
        metadata = load_json_file(metadata_file)
        return digest_from_metadata(metadata, source=metadata_file)


def imagetools_create_command(target: str, sources: Sequence[str]) -> list[str]:
    return [DOCKER, "buildx", "imagetools", "create", "-t", target, *sources]


def imagetools_create(target: str, sources: Sequence[str]) -> None:
    """
    Publish a manifest list at `target` from manifests already in the registry.

    https://docs.docker.com/reference/cli/docker/buildx/imagetools/create/
    """
    run_cmd(imagetools_create_command(target, sources), capture_output=False)


def imagetools_inspect(image_ref: str) -> str:
    """Return the human-readable `imagetools inspect` output for one ref."""
    return run_cmd([DOCKER, "buildx", "imagetools", "inspect", image_ref])
