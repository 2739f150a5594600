"""
Tests for the random upload payload generator.
"""

import os
import tempfile
import unittest
from unittest.mock import patch

from nexus_speedtest.common.exceptions import ConfigurationError
from nexus_speedtest.common.payload import (
    generate_random_data,
    payload_size_bytes,
    random_payload_file,
    read_payload,
)
from nexus_speedtest.configuration import BYTES_PER_MB


class TestRandomPayloadFile(unittest.TestCase):
    """Test payload sizes, content and cleanup."""

    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)

    def test_exact_sizes(self):
        for size_mb in (1, 2, 50):
            with self.subTest(size_mb=size_mb):
                with random_payload_file(size_mb, directory=self.tmp_dir.name) as path:
                    self.assertEqual(os.path.getsize(path), size_mb * 1024 * 1024)

    def test_zero_size_fails_before_any_io(self):
        with patch("nexus_speedtest.common.payload.tempfile.mkstemp") as mock_mkstemp:
            with self.assertRaises(ConfigurationError):
                with random_payload_file(0, directory=self.tmp_dir.name):
                    pass
            mock_mkstemp.assert_not_called()

    def test_negative_size_is_a_configuration_error(self):
        with self.assertRaises(ConfigurationError):
            payload_size_bytes(-1)

    def test_non_finite_size_is_a_configuration_error(self):
        for size_mb in (float("nan"), float("inf"), float("-inf")):
            with self.subTest(size_mb=size_mb):
                with self.assertRaises(ConfigurationError):
                    payload_size_bytes(size_mb)

    def test_configuration_error_is_a_value_error(self):
        with self.assertRaises(ValueError):
            payload_size_bytes(0)

    def test_fractional_size(self):
        self.assertEqual(payload_size_bytes(0.5), BYTES_PER_MB // 2)

    def test_two_payloads_same_length_different_content(self):
        with random_payload_file(1, directory=self.tmp_dir.name) as first_path:
            first = read_payload(first_path)
        with random_payload_file(1, directory=self.tmp_dir.name) as second_path:
            second = read_payload(second_path)

        self.assertEqual(len(first), len(second))
        self.assertNotEqual(first, second)

    def test_file_removed_after_block(self):
        with random_payload_file(1, directory=self.tmp_dir.name) as path:
            self.assertTrue(os.path.exists(path))
        self.assertFalse(os.path.exists(path))

    def test_file_removed_when_block_raises(self):
        with self.assertRaises(RuntimeError):
            with random_payload_file(1, directory=self.tmp_dir.name) as path:
                raise RuntimeError("setup failed")
        self.assertFalse(os.path.exists(path))

    def test_deletion_failure_is_only_a_warning(self):
        with patch("nexus_speedtest.common.payload.os.remove", side_effect=OSError("busy")):
            with self.assertLogs("nexus_speedtest.common.payload", level="WARNING") as logs:
                with random_payload_file(1, directory=self.tmp_dir.name) as path:
                    pass

        self.assertIn("Could not delete temporary file", logs.output[-1])
        self.assertTrue(os.path.exists(path))


class TestGenerateRandomData(unittest.TestCase):
    """Test chunked generation."""

    def test_chunks_are_bounded(self):
        chunks = list(generate_random_data(1, chunk_size=300 * 1024))
        self.assertTrue(all(len(chunk) <= 300 * 1024 for chunk in chunks))
        self.assertEqual(sum(len(chunk) for chunk in chunks), BYTES_PER_MB)
        self.assertEqual(len(chunks), 4)

    def test_default_chunk_is_one_mib(self):
        chunks = list(generate_random_data(2))
        self.assertEqual([len(chunk) for chunk in chunks], [BYTES_PER_MB, BYTES_PER_MB])


if __name__ == "__main__":
    unittest.main()
