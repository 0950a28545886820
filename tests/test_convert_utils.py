"""
Unit tests for ConvertUtils formatting helpers.
"""
from twinseek.utils.convert_utils import ConvertUtils


class TestConvertUtils:

    def test_bytes_to_human(self):
        assert ConvertUtils.bytes_to_human(0) == "0.00B"
        assert ConvertUtils.bytes_to_human(1536) == "1.50KB"
        assert ConvertUtils.bytes_to_human(5 * 1024 ** 2) == "5.00MB"

    def test_negative_bytes(self):
        assert ConvertUtils.bytes_to_human(-1) == "0B"

    def test_score_to_percent(self):
        assert ConvertUtils.score_to_percent(0.9731) == "97.31%"
        assert ConvertUtils.score_to_percent(1.2) == "100.00%"
