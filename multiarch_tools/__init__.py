"""
Script: multiarch_tools package
What: Holds Python workflow helpers for multi-platform container image builds.
Doing: Groups the per-platform build step, the manifest merge step, and shared utility code.
Why: Keeps workflow logic readable and testable instead of inlining shell in workflow YAML.
Goal: Provide one maintainable home for push-by-digest builds and manifest list publication.
"""
