"""
Tests for token-bounded grouping.
"""

import random

import pytest

from src.subtrans.batching import group_segments_by_tokens

from src.tests.helpers import make_segments, word_count


def group_cost(group):
    return sum(word_count(s.text) for s in group) + len(group) - 1


def test_empty_input_yields_no_groups():
    assert group_segments_by_tokens([], 10, tokenizer=word_count) == []


def test_greedy_packing():
    segments = make_segments(["one two", "three four", "five", "six seven eight"])

    groups = group_segments_by_tokens(segments, 6, tokenizer=word_count)

    # 2 + (1 + 2) = 5; adding "five" would cost 7
    assert [[s.text for s in g] for g in groups] == [
        ["one two", "three four"],
        ["five", "six seven eight"],
    ]


def test_oversized_segment_gets_own_group():
    segments = make_segments(["a", "b c d e f g h", "i"])

    groups = group_segments_by_tokens(segments, 3, tokenizer=word_count)

    assert [[s.text for s in g] for g in groups] == [["a"], ["b c d e f g h"], ["i"]]


def test_invalid_ceiling():
    with pytest.raises(ValueError):
        group_segments_by_tokens(make_segments(["a"]), 0, tokenizer=word_count)


@pytest.mark.parametrize("seed", range(20))
def test_groups_reconstruct_input_and_respect_ceiling(seed):
    rng = random.Random(seed)
    texts = [" ".join("w" for _ in range(rng.randint(1, 12))) for _ in range(rng.randint(1, 40))]
    segments = make_segments(texts)
    limit = rng.randint(1, 30)

    groups = group_segments_by_tokens(segments, limit, tokenizer=word_count)

    assert [s for g in groups for s in g] == segments
    for g in groups:
        assert g
        assert group_cost(g) <= limit or len(g) == 1
