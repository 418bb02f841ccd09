"""
Script: multiarch_tools/references.py
What: Image name handling for the build and merge steps.
Doing: Splits `registry/repository`, rejects names that already carry a tag or digest, and builds `:tag` / `@digest` refs.
Why: Both steps must address the exact same repository, first by digest and then by tag.
Goal: Catch a mistyped image input before anything is pushed.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from multiarch_tools.common import CiToolError


DEFAULT_REGISTRY = "docker.io"
TAG_RE = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9._-]{0,127}$")
REPOSITORY_RE = re.compile(r"^[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*(?:/[a-z0-9]+(?:(?:[._]|__|-+)[a-z0-9]+)*)*$")


def _has_registry_host(component: str) -> bool:
    # Same rule docker uses: a first path part with '.' or ':' (or localhost) is a host.
    return "." in component or ":" in component or component == "localhost"


@dataclass(frozen=True)
class ImageRef:
    """
    An image name without tag or digest, for example `ghcr.io/owner/app`.

    `name` keeps the exact spelling the workflow passed in, so refs printed in
    logs and passed to buildx look the same as the workflow input.
    """

    registry: str
    repository: str
    name: str

    @classmethod
    def parse(cls, image: str) -> "ImageRef":
        name = image.strip()
        if not name:
            raise CiToolError("Image reference is empty")
        if "@" in name:
            raise CiToolError(f"Image reference must not include a digest: {name}")

        first, _, rest = name.partition("/")
        if rest and _has_registry_host(first):
            registry, repository = first, rest
        else:
            registry, repository = DEFAULT_REGISTRY, name

        # A ':' after the registry host can only be a tag.
        if ":" in repository:
            raise CiToolError(f"Image reference must not include a tag: {name}")
        if not REPOSITORY_RE.match(repository):
            raise CiToolError(f"Invalid image repository path: {repository}")
        return cls(registry=registry, repository=repository, name=name)

    def tagged(self, tag: str) -> str:
        if not TAG_RE.match(tag):
            raise CiToolError(f"Invalid image tag: {tag!r}")
        return f"{self.name}:{tag}"

    def pinned(self, digest: str) -> str:
        return f"{self.name}@{digest}"

    def __str__(self) -> str:
        return self.name
