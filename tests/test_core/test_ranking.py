"""Tests for score reduction and top-K ranking."""

import math

import numpy as np
import pytest

from soundrank.core.labels import UNKNOWN_LABEL, LabelCatalog
from soundrank.core.ranking import TopKRanker, rank_scores, select_primary_scores
from soundrank.utils.errors import InferenceError


class TestRankScores:
    def test_top_two(self):
        ranked = rank_scores([0.1, 0.9, 0.4], ["dog", "siren", "rain"], top_k=2)
        assert [entry.label for entry in ranked] == ["siren", "rain"]
        assert [entry.index for entry in ranked] == [1, 2]
        assert ranked[0].score == pytest.approx(0.9)

    def test_default_k_is_five(self):
        ranked = rank_scores(np.linspace(0, 1, 10), [str(i) for i in range(10)])
        assert [entry.label for entry in ranked] == ["9", "8", "7", "6", "5"]

    def test_fewer_classes_than_k(self):
        ranked = rank_scores([0.3, 0.7], ["a", "b"], top_k=5)
        assert [entry.label for entry in ranked] == ["b", "a"]

    def test_ties_keep_lower_index_first(self):
        ranked = rank_scores([0.5, 0.9, 0.5, 0.9, 0.5], list("abcde"), top_k=5)
        assert [entry.index for entry in ranked] == [1, 3, 0, 2, 4]

    def test_nan_never_raises_and_ranks_last(self):
        ranked = rank_scores([float("nan"), 0.2, 0.8, float("nan")], list("abcd"), top_k=4)
        assert [entry.index for entry in ranked] == [2, 1, 0, 3]
        assert math.isnan(ranked[2].score)

    def test_missing_catalog_entries_use_placeholder(self):
        ranked = rank_scores([0.1, 0.2, 0.9], ["only"], top_k=3)
        assert ranked[0].label == UNKNOWN_LABEL
        assert ranked[0].index == 2
        assert ranked[2].label == "only"

    def test_empty_scores(self):
        assert rank_scores([], ["a"], top_k=3) == []

    @pytest.mark.parametrize("top_k", [0, -1])
    def test_invalid_k_raises(self, top_k):
        with pytest.raises(ValueError):
            rank_scores([0.1], ["a"], top_k=top_k)

    def test_accepts_label_catalog(self):
        ranked = rank_scores([0.2, 0.1], LabelCatalog(["x", "y"]), top_k=1)
        assert ranked[0].label == "x"

    @pytest.mark.parametrize("seed", range(5))
    def test_ranking_properties(self, seed):
        rng = np.random.default_rng(seed)
        n = int(rng.integers(1, 40))
        k = int(rng.integers(1, 12))
        # Coarse values so ties occur
        scores = np.round(rng.uniform(0, 1, size=n), 1)
        labels = [f"class_{i}" for i in range(n)]

        ranked = rank_scores(scores, labels, top_k=k)

        assert len(ranked) == min(k, n)
        returned = [entry.score for entry in ranked]
        assert returned == sorted(returned, reverse=True)
        left_out = set(range(n)) - {entry.index for entry in ranked}
        if left_out:
            assert min(returned) >= max(scores[i] for i in left_out)

    def test_full_catalog_never_yields_placeholder(self, tmp_path):
        labels = [f"label {i}" for i in range(20)]
        path = tmp_path / "labels.txt"
        path.write_text("\n".join(labels) + "\n", encoding="utf-8")
        catalog = LabelCatalog.from_file(path)

        scores = np.random.default_rng(11).uniform(size=20)
        ranked = rank_scores(scores, catalog, top_k=20)

        assert all(entry.label != UNKNOWN_LABEL for entry in ranked)
        assert sorted(entry.label for entry in ranked) == sorted(labels)


class TestSelectPrimaryScores:
    def test_only_first_output_is_used(self):
        outputs = [np.array([0.1, 0.2]), np.array([9.0, 9.0])]
        np.testing.assert_array_equal(select_primary_scores(outputs), [0.1, 0.2])

    def test_batch_axis_first_row(self):
        outputs = [np.array([[0.1, 0.9, 0.4]])]
        np.testing.assert_array_equal(select_primary_scores(outputs), [0.1, 0.9, 0.4])

    def test_first_reduction_takes_first_frame(self):
        outputs = [np.array([[0.1, 0.2], [0.9, 0.8]])]
        np.testing.assert_array_equal(select_primary_scores(outputs, "first"), [0.1, 0.2])

    def test_mean_reduction_averages_frames(self):
        outputs = [np.array([[0.1, 0.2], [0.3, 0.8]])]
        np.testing.assert_allclose(select_primary_scores(outputs, "mean"), [0.2, 0.5])

    def test_scalar_output(self):
        assert select_primary_scores([np.float32(0.5)]).shape == (1,)

    def test_zero_frames(self):
        outputs = [np.zeros((0, 4))]
        assert select_primary_scores(outputs, "first").size == 0
        assert select_primary_scores(outputs, "mean").size == 0

    def test_no_outputs_raises(self):
        with pytest.raises(InferenceError):
            select_primary_scores([])

    def test_unknown_reduction_raises(self):
        with pytest.raises(ValueError):
            select_primary_scores([np.zeros(3)], "max")


class TestTopKRanker:
    def test_rank_outputs(self):
        ranker = TopKRanker(top_k=2)
        ranked = ranker.rank([np.array([[0.1, 0.9, 0.4]])], ["dog", "siren", "rain"])
        assert [entry.label for entry in ranked] == ["siren", "rain"]

    def test_mean_reduction(self):
        ranker = TopKRanker(top_k=1, score_reduction="mean")
        outputs = [np.array([[0.9, 0.0], [0.0, 1.0], [0.0, 1.0]])]
        assert ranker.rank(outputs, ["a", "b"])[0].label == "b"

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            TopKRanker(top_k=0)
        with pytest.raises(ValueError):
            TopKRanker(score_reduction="median")
