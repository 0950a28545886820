"""
Unit tests for SSIM verification and the shared thumbnail cache.
Thumbnails are injected through a fake loader, so most tests need no files.
"""
from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from twinseek.core import SsimVerifierImpl, ThumbnailCache, FileRecord, CandidatePair
from twinseek.core.verifier import compare_thumbnails
from twinseek.services import ImageService
from conftest import pattern_array, save_image


class CountingLoader:
    """Fake thumbnail loader that counts calls per path."""

    def __init__(self, thumbnails):
        self.thumbnails = thumbnails
        self.calls = {}

    def __call__(self, path, size):
        self.calls[path] = self.calls.get(path, 0) + 1
        return self.thumbnails.get(path)


def smooth(seed=0, size=32):
    y, x = np.mgrid[0:size, 0:size]
    return ((x * 4 + y * 3 + seed) % 256).astype(np.uint8)


def make_verifier(records, thumbnails):
    loader = CountingLoader(thumbnails)
    cache = ThumbnailCache([r.path for r in records], size=32, loader=loader)
    return SsimVerifierImpl(records, cache=cache), loader


class TestCompareThumbnails:

    def test_identical_thumbnails_score_one(self):
        thumb = smooth()
        assert compare_thumbnails(thumb, thumb.copy()) == pytest.approx(1.0)

    def test_score_is_clamped_to_unit_range(self):
        """Inverted structure can give negative SSIM; scores never leave [0, 1]."""
        thumb = smooth()
        score = compare_thumbnails(thumb, 255 - thumb)
        assert 0.0 <= score <= 1.0

    def test_shape_mismatch_returns_none(self):
        assert compare_thumbnails(smooth(size=32), smooth(size=16)) is None


class TestThumbnailCache:

    def test_loads_each_index_once(self):
        loader = CountingLoader({"/a.png": smooth()})
        cache = ThumbnailCache(["/a.png"], size=32, loader=loader)

        first = cache.get(0)
        second = cache.get(0)

        assert first is second
        assert loader.calls == {"/a.png": 1}
        assert 0 in cache
        assert len(cache) == 1

    def test_failed_load_is_cached_as_none(self):
        loader = CountingLoader({})
        cache = ThumbnailCache(["/broken.png"], size=32, loader=loader)

        assert cache.get(0) is None
        assert cache.get(0) is None
        assert loader.calls == {"/broken.png": 1}

    def test_concurrent_requests_share_one_entry(self):
        loader = CountingLoader({"/a.png": smooth()})
        cache = ThumbnailCache(["/a.png"], size=32, loader=loader)

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(lambda _: cache.get(0), range(32)))

        assert all(r is results[0] for r in results)

    def test_clear(self):
        cache = ThumbnailCache(["/a.png"], size=32, loader=CountingLoader({"/a.png": smooth()}))
        cache.get(0)
        cache.clear()
        assert len(cache) == 0


class TestSsimVerifierImpl:

    def test_uses_injected_empty_cache(self):
        """An empty cache has len() == 0 but must still be used as given."""
        records = [FileRecord.from_path("/x/a.png", 10)]
        cache = ThumbnailCache([r.path for r in records], loader=lambda path, size: None)

        verifier = SsimVerifierImpl(records, cache=cache)

        assert len(cache) == 0
        assert verifier.cache is cache

    def test_scores_pair(self):
        records = [FileRecord.from_path("/x/a.png", 10), FileRecord.from_path("/x/b.png", 20)]
        verifier, _ = make_verifier(records, {"/x/a.png": smooth(), "/x/b.png": smooth()})

        assert verifier.score(0, 1) == pytest.approx(1.0)

    def test_exact_duplicate_pair_is_never_scored(self):
        """Same name and size: skipped before any thumbnail is loaded."""
        records = [FileRecord.from_path("/d1/photo.png", 10), FileRecord.from_path("/d2/photo.png", 10)]
        verifier, loader = make_verifier(records, {"/d1/photo.png": smooth(), "/d2/photo.png": smooth()})

        assert verifier.is_exact_duplicate_pair(0, 1)
        assert verifier.score(0, 1) is None
        assert loader.calls == {}

    def test_scores_are_memoised_and_symmetric(self):
        records = [FileRecord.from_path("/x/a.png", 10), FileRecord.from_path("/x/b.png", 20)]
        verifier, loader = make_verifier(records, {"/x/a.png": smooth(0), "/x/b.png": smooth(9)})

        first = verifier.score(0, 1)
        assert verifier.score(1, 0) == first
        assert loader.calls == {"/x/a.png": 1, "/x/b.png": 1}

    def test_unreadable_image_gives_no_score(self):
        records = [FileRecord.from_path("/x/a.png", 10), FileRecord.from_path("/x/broken.png", 20)]
        verifier, _ = make_verifier(records, {"/x/a.png": smooth()})

        assert verifier.score(0, 1) is None
        assert verifier.verify(CandidatePair(0, 1, 3)) is None

    def test_verify_batch_keeps_input_order(self):
        """Parallel verification still returns results aligned with the input pairs."""
        paths = [f"/x/{n}.png" for n in range(6)]
        records = [FileRecord.from_path(p, n) for n, p in enumerate(paths)]
        verifier, _ = make_verifier(records, {p: smooth(seed=n * 40) for n, p in enumerate(paths)})
        pairs = [CandidatePair(i, j, 0) for i in range(6) for j in range(i + 1, 6)]

        with ThreadPoolExecutor(max_workers=4) as executor:
            parallel = verifier.verify_batch(pairs, executor)
        sequential = verifier.verify_batch(pairs)

        assert [r.pair for r in parallel] == pairs
        assert [r.score for r in parallel] == [r.score for r in sequential]

    def test_real_images_brightness_variant(self, temp_dir):
        """End to end with decoded thumbnails: a slightly brighter copy scores high."""
        base = save_image(pattern_array(), temp_dir / "base.png")
        brighter = save_image(pattern_array(shift=10), temp_dir / "brighter.png")
        records = [FileRecord.from_path(str(p), p.stat().st_size) for p in (base, brighter)]

        score = SsimVerifierImpl(records).score(0, 1)

        assert score is not None
        assert score > 0.92


class TestImageService:

    def test_thumbnail_is_square_grayscale(self, temp_dir):
        path = save_image(pattern_array(), temp_dir / "wide.png")
        thumb = ImageService.load_thumbnail(str(path), 128)

        assert thumb.shape == (128, 128)
        assert thumb.dtype == np.uint8
        # 96x64 scaled to 128x85: the top rows are black padding
        assert thumb[0].max() == 0

    def test_extension_check(self):
        assert ImageService.is_previewable_image("/a/B.JPG")
        assert not ImageService.is_previewable_image("/a/b.txt")

    def test_corrupt_file_loads_as_none(self, temp_dir):
        path = temp_dir / "broken.jpg"
        path.write_bytes(b"\xff\xd8 not really a jpeg")
        assert ImageService.load_rgb(str(path)) is None
        assert ImageService.load_thumbnail(str(path), 128) is None
