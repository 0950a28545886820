"""
Unit tests for HasherImpl with the xxHash algorithm.
Verifies digest stability, caching and failure handling.
"""
from enum import Enum

from twinseek.core import HasherImpl, XXHashAlgorithmImpl, FileRecord, HashAlgorithm
from twinseek.core.interfaces import ContentHashAlgorithm


def record_for(path):
    return FileRecord.from_path(str(path), path.stat().st_size if path.exists() else 0)


class TestHasherImpl:
    """Test whole-file digests."""

    def test_identical_content_gives_identical_digest(self, duplicate_tree):
        """Byte-identical files hash the same; xxh64 digests are 8 bytes."""
        hasher = HasherImpl(XXHashAlgorithmImpl())

        a = hasher.compute_full_hash(record_for(duplicate_tree["report_1"]))
        b = hasher.compute_full_hash(record_for(duplicate_tree["report_2"]))

        assert a == b
        assert len(a) == 8

    def test_different_content_gives_different_digest(self, duplicate_tree):
        hasher = HasherImpl()
        a = hasher.compute_full_hash(record_for(duplicate_tree["notes_1"]))
        b = hasher.compute_full_hash(record_for(duplicate_tree["notes_2"]))
        assert a != b

    def test_large_file_spanning_several_chunks(self, temp_dir):
        """Files larger than one read chunk hash consistently."""
        content = bytes(range(256)) * (HasherImpl.CHUNK_SIZE // 256 * 2 + 3)
        first = temp_dir / "big1.bin"
        second = temp_dir / "big2.bin"
        first.write_bytes(content)
        second.write_bytes(content)

        hasher = HasherImpl()
        assert hasher.compute_full_hash(record_for(first)) == hasher.compute_full_hash(record_for(second))

    def test_missing_file_returns_none(self, temp_dir):
        """Unreadable files yield None instead of raising."""
        record = FileRecord.from_path(str(temp_dir / "missing.bin"), 10)
        assert HasherImpl().compute_full_hash(record) is None

    def test_digest_is_cached_per_path(self, temp_dir):
        """A second call returns the cached digest even if the file changed since."""
        path = temp_dir / "file.bin"
        path.write_bytes(b"first")
        hasher = HasherImpl()
        record = record_for(path)

        digest = hasher.compute_full_hash(record)
        path.write_bytes(b"second")

        assert hasher.compute_full_hash(record) == digest

    def test_stopped_hasher_returns_none(self, duplicate_tree):
        """A set stop flag aborts reading."""
        hasher = HasherImpl(stopped_flag=lambda: True)
        assert hasher.compute_full_hash(record_for(duplicate_tree["report_1"])) is None

    def test_xxhash_implements_content_algorithm(self):
        """The content-digest interface is distinct from the perceptual HashAlgorithm enum."""
        assert ContentHashAlgorithm in XXHashAlgorithmImpl.__mro__
        assert isinstance(HashAlgorithm.DHASH, Enum)
        digester = XXHashAlgorithmImpl.new()
        digester.update(b"abc")
        assert len(digester.digest()) == 8
