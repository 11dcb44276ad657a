"""
Tests for alignment repair.
"""

from src.subtrans.alignment import repair_alignment


def test_exact_length_untouched():
    assert repair_alignment(["a", "b"], ["x", "y"]) == ["a", "b"]


def test_missing_tail_filled_with_source():
    assert repair_alignment(["a"], ["x", "y", "z"]) == ["a", "y", "z"]


def test_excess_trimmed():
    assert repair_alignment(["a", "b", "c"], ["x", "y"]) == ["a", "b"]


def test_blank_entries_take_source():
    assert repair_alignment(["a", "  ", ""], ["x", "y", "z"]) == ["a", "y", "z"]


def test_empty():
    assert repair_alignment([], []) == []
    assert repair_alignment([], ["x"]) == ["x"]
