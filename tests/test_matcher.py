import numpy as np
import pytest

from eigenmatch.core.errors import EmptyInputError, DimensionMismatchError
from eigenmatch.core.matcher import MatchResult, RESULT_COLUMNS, compute_distance_matrix, match, results_table


def test_distance_matrix():
    train = np.array([[0.0, 0.0], [1.0, 0.0]])
    test = np.array([[0.0, 0.0], [0.0, 2.0]])
    np.testing.assert_allclose(compute_distance_matrix(train, test), [[0.0, 4.0], [1.0, 5.0]])


def test_identical_sets_match_themselves(rng):
    loadings = rng.standard_normal((6, 3))
    results = match(loadings, loadings.copy())
    for i, r in enumerate(results):
        assert r.train_index == i
        assert r.nearest_index == i
        assert r.self_distance == 0.0
        assert r.margin == 0.0
        assert r.is_correct


def test_margin_never_negative(rng):
    for _ in range(20):
        train = rng.standard_normal((7, 4))
        test = rng.standard_normal((7, 4))
        for r in match(train, test):
            assert r.margin >= 0.0
            assert r.nearest_distance <= r.self_distance


def test_ties_resolved_to_lowest_index():
    train = np.array([[1.0], [1.0]])
    test = np.array([[0.0], [2.0]])
    results = match(train, test)
    assert results[0].nearest_index == 0
    # train 1 is equally close to both test images
    assert results[1].nearest_index == 0
    assert results[1].margin == 0.0
    assert not results[1].is_correct


def test_swapped_pair_detected():
    train = np.array([[0.0, 0.0], [3.0, 0.0], [0.0, 5.0]])
    test = train[[1, 0, 2]]
    results = match(train, test)
    assert results[0] == MatchResult(0, 9.0, 1, 0.0, 9.0)
    assert results[1].nearest_index == 0
    assert results[2].margin == 0.0


def test_set_size_mismatch():
    with pytest.raises(DimensionMismatchError):
        match(np.zeros((3, 2)), np.zeros((2, 2)))


def test_loading_length_mismatch():
    with pytest.raises(DimensionMismatchError):
        compute_distance_matrix(np.zeros((3, 2)), np.zeros((3, 3)))


def test_empty_loadings():
    with pytest.raises(EmptyInputError):
        match(np.zeros((0, 2)), np.zeros((0, 2)))


def test_results_table():
    results = [MatchResult(0, 0.0, 0, 0.0, 0.0), MatchResult(1, 2.5, 0, 1.0, 1.5)]
    table = results_table(results)
    assert list(table.columns) == RESULT_COLUMNS
    assert table['train_image_index'].tolist() == [1, 2]
    assert table['closest_test_image'].tolist() == [1, 1]
    assert table['distance_to_test_image'].tolist() == [0.0, 2.5]
    assert table['distance_to_closest_test_image'].tolist() == [0.0, 1.5]
