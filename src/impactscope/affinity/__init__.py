"""Test-affinity resolution."""

from impactscope.affinity.finder import candidate_paths, find_tests, is_test_file

__all__ = ["candidate_paths", "find_tests", "is_test_file"]
