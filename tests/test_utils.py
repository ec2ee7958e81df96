"""Tests for hashing and path utilities."""

import hashlib
import io

import pytest

from projsync.utils import (
    HASH_BLOCK_SIZE,
    ContentHasher,
    content_hash,
    content_hash_bytes,
    format_size,
    hash_file,
    join_remote,
    normalize_namespace,
    path_key,
    strip_namespace,
)


def reference_hash(data: bytes, block_size: int = HASH_BLOCK_SIZE) -> str:
    """Straightforward block-hash reference implementation."""
    digests = b"".join(
        hashlib.sha256(data[i : i + block_size]).digest()
        for i in range(0, len(data), block_size)
    )
    return hashlib.sha256(digests).hexdigest()


class TestContentHash:
    """Tests for the Dropbox content hash."""

    def test_empty_input(self):
        """Empty input hashes an empty concatenation of block digests."""
        assert content_hash_bytes(b"") == hashlib.sha256(b"").hexdigest()

    def test_small_input_is_hash_of_single_block_digest(self):
        """Input shorter than a block is one block."""
        data = b"hello world"
        expected = hashlib.sha256(hashlib.sha256(data).digest()).hexdigest()
        assert content_hash_bytes(data) == expected

    def test_hash_is_hex_encoded(self):
        """Test the digest is 64 lowercase hex characters."""
        digest = content_hash_bytes(b"abc")
        assert len(digest) == 64
        assert digest == digest.lower()
        int(digest, 16)

    def test_deterministic(self):
        """Hashing the same content twice gives the same result."""
        data = b"some file content" * 100
        assert content_hash_bytes(data) == content_hash_bytes(data)

    def test_different_content_differs(self):
        """Test different content gives different hashes."""
        assert content_hash_bytes(b"a") != content_hash_bytes(b"b")

    @pytest.mark.parametrize("piece_size", [1, 3, 7, 16, 64, 1000])
    def test_independent_of_write_chunking(self, piece_size):
        """Feeding data in pieces of any size gives the same hash."""
        data = bytes(range(256)) * 20
        hasher = ContentHasher(block_size=64)
        for i in range(0, len(data), piece_size):
            hasher.update(data[i : i + piece_size])
        assert hasher.hexdigest() == reference_hash(data, block_size=64)

    def test_exact_block_multiple(self):
        """Input that is an exact multiple of the block size has no extra block."""
        data = b"x" * 128
        single = ContentHasher(block_size=64)
        single.update(data)

        split = ContentHasher(block_size=64)
        split.update(data[:100])
        split.update(data[100:])

        assert single.hexdigest() == split.hexdigest()
        assert single.hexdigest() == reference_hash(data, block_size=64)

    def test_hexdigest_can_be_called_repeatedly(self):
        """Test hexdigest does not consume state."""
        hasher = ContentHasher(block_size=4)
        hasher.update(b"abcdef")
        first = hasher.hexdigest()
        assert hasher.hexdigest() == first
        hasher.update(b"gh")
        assert hasher.hexdigest() == reference_hash(b"abcdefgh", block_size=4)

    def test_invalid_block_size(self):
        """Test a non-positive block size is rejected."""
        with pytest.raises(ValueError, match="block_size"):
            ContentHasher(block_size=0)

    def test_stream_read_size_does_not_matter(self):
        """Test content_hash gives the same result for any read size."""
        data = b"0123456789" * 1000
        expected = content_hash_bytes(data)
        for read_size in (1, 333, 4096, len(data) * 2):
            assert content_hash(io.BytesIO(data), read_size=read_size) == expected

    def test_hash_spanning_real_blocks(self):
        """Test input larger than one 4 MiB block."""
        data = b"\x01" * (HASH_BLOCK_SIZE + 10)
        assert content_hash_bytes(data) == reference_hash(data)

    def test_hash_file(self, tmp_path):
        """Test hashing a file on disk."""
        path = tmp_path / "file.bin"
        path.write_bytes(b"file data")
        assert hash_file(path) == content_hash_bytes(b"file data")

    def test_hash_missing_file(self, tmp_path):
        """Test hashing a missing file raises OSError."""
        with pytest.raises(OSError):
            hash_file(tmp_path / "missing")


class TestRemotePaths:
    """Tests for namespace helpers."""

    @pytest.mark.parametrize(
        "remote,expected",
        [
            ("/", ""),
            ("", ""),
            ("proj", "/proj"),
            ("/proj/", "/proj"),
            ("a/b", "/a/b"),
            ("//a//b//", "/a/b"),
        ],
    )
    def test_normalize_namespace(self, remote, expected):
        """Test namespace normalization."""
        assert normalize_namespace(remote) == expected

    def test_join_remote(self):
        """Test joining namespace and relative path."""
        assert join_remote("/proj", "docs/a.txt") == "/proj/docs/a.txt"
        assert join_remote("proj/", "a.txt") == "/proj/a.txt"
        assert join_remote("", "a.txt") == "/a.txt"

    def test_path_key_ignores_case(self):
        """Test paths that differ only in case share a key."""
        assert path_key("Docs/README.md") == path_key("docs/readme.md")
        assert path_key("a.txt") != path_key("b.txt")

    def test_strip_namespace_keeps_display_case(self):
        """Test the prefix is matched case-insensitively."""
        rel = strip_namespace("/Proj", "/proj/docs/readme.md", "/Proj/Docs/README.md")
        assert rel == "Docs/README.md"

    def test_strip_namespace_root(self):
        """Test stripping the root namespace."""
        assert strip_namespace("", "/a/b.txt", "/a/b.txt") == "a/b.txt"

    def test_strip_namespace_outside(self):
        """Test a path outside the namespace is rejected."""
        with pytest.raises(ValueError, match="not inside namespace"):
            strip_namespace("/proj", "/other/a.txt", "/other/a.txt")

    def test_strip_namespace_sibling_prefix(self):
        """Test a sibling folder sharing a name prefix is outside."""
        with pytest.raises(ValueError):
            strip_namespace("/proj", "/project/a.txt", "/project/a.txt")


class TestFormatSize:
    """Tests for format_size."""

    def test_bytes(self):
        assert format_size(256) == "256 B"

    def test_kilobytes(self):
        assert format_size(1536) == "1.5 KB"

    def test_megabytes(self):
        assert format_size(5 * 1024 * 1024) == "5.0 MB"

    def test_gigabytes(self):
        assert format_size(2 * 1024**3) == "2.0 GB"
