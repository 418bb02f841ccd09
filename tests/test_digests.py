"""
Script: tests/test_digests.py
What: Tests for digest parsing and digest-file helpers.
Doing: Checks accepted/rejected digest strings, file naming, and collection order.
Why: A bad digest should fail in our step with a clear message, not deep in buildx.
Goal: Keep the digest file format stable between build and merge jobs.
"""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from multiarch_tools.common import CiToolError
from multiarch_tools.digests import (
    Digest,
    digest_file_name,
    find_digest_files,
    find_duplicate_digests,
    parse_digest,
    platform_slug,
    read_digest_file,
    write_digest_file,
)


SHA256_HEX = "0123456789abcdef" * 4


class ParseDigestTests(unittest.TestCase):
    def test_parses_sha256_and_trims_whitespace(self) -> None:
        digest = parse_digest(f"  sha256:{SHA256_HEX}\n")
        self.assertEqual(digest, Digest(algorithm="sha256", hex=SHA256_HEX))
        self.assertEqual(str(digest), f"sha256:{SHA256_HEX}")

    def test_parses_sha512(self) -> None:
        digest = parse_digest("sha512:" + "f" * 128)
        self.assertEqual(digest.algorithm, "sha512")

    def test_rejects_missing_algorithm(self) -> None:
        with self.assertRaises(CiToolError):
            parse_digest("not-a-digest")

    def test_rejects_wrong_length(self) -> None:
        with self.assertRaises(CiToolError) as ctx:
            parse_digest("sha256:abc")
        self.assertIn("64 hex chars", str(ctx.exception))

    def test_rejects_uppercase_hex(self) -> None:
        with self.assertRaises(CiToolError):
            parse_digest("sha256:" + "A" * 64)

    def test_rejects_unknown_algorithm(self) -> None:
        with self.assertRaises(CiToolError) as ctx:
            parse_digest("md5:" + "a" * 32)
        self.assertIn("Unsupported digest algorithm", str(ctx.exception))

    def test_error_names_source_file(self) -> None:
        with self.assertRaises(CiToolError) as ctx:
            parse_digest("", source="/tmp/digests/x.digest")
        self.assertIn("/tmp/digests/x.digest", str(ctx.exception))


class DigestFileTests(unittest.TestCase):
    def test_platform_slug_replaces_slashes(self) -> None:
        self.assertEqual(platform_slug("linux/amd64"), "linux-amd64")
        self.assertEqual(platform_slug("linux/arm/v7"), "linux-arm-v7")

    def test_platform_slug_rejects_empty(self) -> None:
        with self.assertRaises(CiToolError):
            platform_slug(" / ")

    def test_digest_file_name(self) -> None:
        self.assertEqual(digest_file_name("25.11", "linux/arm64"), "25.11-linux-arm64.digest")

    def test_write_then_read_digest_file(self) -> None:
        digest = parse_digest(f"sha256:{SHA256_HEX}")
        with tempfile.TemporaryDirectory() as temp_dir:
            path = write_digest_file(Path(temp_dir) / "out", tag="25.11", platform="linux/amd64", digest=digest)
            self.assertEqual(path.name, "25.11-linux-amd64.digest")
            self.assertEqual(path.read_text(encoding="utf-8"), f"sha256:{SHA256_HEX}\n")
            self.assertEqual(read_digest_file(path), f"sha256:{SHA256_HEX}")

    def test_read_without_validation_passes_content_through(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "bad.digest"
            path.write_text("  garbage \n", encoding="utf-8")
            self.assertEqual(read_digest_file(path, validate=False), "garbage")

    def test_read_with_validation_rejects_bad_content(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "bad.digest"
            path.write_text("not-a-digest\n", encoding="utf-8")
            with self.assertRaises(CiToolError) as ctx:
                read_digest_file(path, validate=True)
        self.assertIn("bad.digest", str(ctx.exception))

    def test_read_non_utf8_content_is_a_clear_error(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            path = Path(temp_dir) / "binary.digest"
            path.write_bytes(b"\xff\xfe garbage")
            for validate in (False, True):
                with self.assertRaises(CiToolError) as ctx:
                    read_digest_file(path, validate=validate)
                self.assertIn("Could not read digest file", str(ctx.exception))
                self.assertIn("binary.digest", str(ctx.exception))

    def test_read_os_error_is_a_clear_error(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            # Reading a directory raises an OSError on every platform.
            path = Path(temp_dir) / "dir.digest"
            path.mkdir()
            with self.assertRaises(CiToolError) as ctx:
                read_digest_file(path)
        self.assertIn("Could not read digest file", str(ctx.exception))

    def test_find_digest_files_sorted_and_filtered(self) -> None:
        with tempfile.TemporaryDirectory() as temp_dir:
            directory = Path(temp_dir)
            for name in ["b.digest", "a.digest", "readme.md"]:
                (directory / name).write_text("x", encoding="utf-8")
            found = [path.name for path in find_digest_files(directory)]
        self.assertEqual(found, ["a.digest", "b.digest"])

    def test_find_digest_files_missing_dir(self) -> None:
        self.assertEqual(find_digest_files(Path("/nonexistent/digests-dir")), [])

    def test_find_duplicate_digests(self) -> None:
        entries = [
            (Path("a.digest"), "sha256:1"),
            (Path("b.digest"), "sha256:2"),
            (Path("c.digest"), "sha256:1"),
        ]
        duplicates = find_duplicate_digests(entries)
        self.assertEqual(duplicates, {"sha256:1": [Path("a.digest"), Path("c.digest")]})


if __name__ == "__main__":
    unittest.main()
