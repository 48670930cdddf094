"""
Nearest-neighbour matching of train and test loadings.

Train index i and test index i are expected to show the same identity; this
alignment is a caller contract and is not checked here.
"""

import logging
from dataclasses import dataclass
from typing import List

import numpy as np
import pandas as pd

from .errors import EmptyInputError, DimensionMismatchError

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    'train_image_index',
    'distance_to_test_image',
    'closest_test_image',
    'distance_to_closest_test_image',
]


@dataclass(frozen=True)
class MatchResult:
    """
    Match of one train image against all test images.

    Attributes:
        train_index: Index of the train image (0-based)
        self_distance: Squared distance to the test image with the same index
        nearest_index: Index of the closest test image (0-based)
        nearest_distance: Squared distance to the closest test image
        margin: self_distance - nearest_distance, never negative
    """
    train_index: int
    self_distance: float
    nearest_index: int
    nearest_distance: float
    margin: float

    @property
    def is_correct(self) -> bool:
        """True if the closest test image is the one with the same index"""
        return self.nearest_index == self.train_index


def _as_loadings(loadings: np.ndarray, name: str) -> np.ndarray:
    loadings = np.asarray(loadings, dtype=np.float64)
    if loadings.ndim != 2:
        raise DimensionMismatchError(
            f"{name} loadings must be an n x k matrix, got shape {loadings.shape}",
            stage="match", shape=loadings.shape
        )
    if loadings.shape[0] == 0:
        raise EmptyInputError(f"No {name} loadings supplied", stage="match", shape=loadings.shape)
    return loadings


def compute_distance_matrix(train_loadings: np.ndarray, test_loadings: np.ndarray) -> np.ndarray:
    """
    Squared Euclidean distances between every train and test loading.

    Args:
        train_loadings: n_train x k matrix
        test_loadings: n_test x k matrix

    Returns:
        np.ndarray: n_train x n_test matrix, entry (i, j) = ||train[i] - test[j]||^2
    """
    train = _as_loadings(train_loadings, "train")
    test = _as_loadings(test_loadings, "test")
    if train.shape[1] != test.shape[1]:
        raise DimensionMismatchError(
            f"Train loadings have {train.shape[1]} coefficients, test loadings {test.shape[1]}",
            stage="match", shape=(train.shape[1], test.shape[1])
        )
    # Explicit differences keep identical loadings at exactly zero distance
    diff = train[:, np.newaxis, :] - test[np.newaxis, :, :]
    return np.sum(diff ** 2, axis=2)


def match(train_loadings: np.ndarray, test_loadings: np.ndarray) -> List[MatchResult]:
    """
    Match every train loading against all test loadings.

    Args:
        train_loadings: n x k loadings of the train images
        test_loadings: n x k loadings of the test images, index-aligned with train

    Returns:
        List[MatchResult]: One result per train image, in train order

    Raises:
        DimensionMismatchError: If the two sets differ in size or loading length
    """
    train = _as_loadings(train_loadings, "train")
    test = _as_loadings(test_loadings, "test")
    if train.shape[0] != test.shape[0]:
        raise DimensionMismatchError(
            f"Train and test sets must have the same size, got {train.shape[0]} and {test.shape[0]}",
            stage="match", shape=(train.shape[0], test.shape[0])
        )

    distances = compute_distance_matrix(train, test)
    return matches_from_distances(distances)


def matches_from_distances(distances: np.ndarray) -> List[MatchResult]:
    """Build match results from a square train x test distance matrix."""
    distances = np.asarray(distances, dtype=np.float64)
    results = []
    for i in range(distances.shape[0]):
        row = distances[i]
        # argmin returns the lowest index on ties
        nearest = int(np.argmin(row))
        self_distance = float(row[i])
        nearest_distance = float(row[nearest])
        results.append(MatchResult(
            train_index=i,
            self_distance=self_distance,
            nearest_index=nearest,
            nearest_distance=nearest_distance,
            margin=self_distance - nearest_distance,
        ))

    n_failures = sum(not r.is_correct for r in results)
    logger.info("Matched %d train images, %d misidentified", len(results), n_failures)
    return results


def results_table(matches: List[MatchResult]) -> pd.DataFrame:
    """
    Tabulate match results.

    Image indices are reported 1-based. The last column holds the margin.

    Args:
        matches: Results returned by match()

    Returns:
        pd.DataFrame: One row per train image
    """
    rows = [{
        'train_image_index': m.train_index + 1,
        'distance_to_test_image': m.self_distance,
        'closest_test_image': m.nearest_index + 1,
        'distance_to_closest_test_image': m.margin,
    } for m in matches]
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)
