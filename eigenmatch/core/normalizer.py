"""
Mean-centering of face vectors.

The mean face is computed once from the training set and the same mean is then
subtracted from both training and test vectors, so that both sets live in the
same centred space.
"""

import logging
from typing import Sequence, Union

import numpy as np

from .errors import EmptyInputError, DimensionMismatchError

logger = logging.getLogger(__name__)

VectorsLike = Union[np.ndarray, Sequence[Sequence[float]]]


def _as_matrix(vectors: VectorsLike, stage: str) -> np.ndarray:
    """Stack vectors into a 2D float array, one vector per row."""
    if len(vectors) == 0:
        raise EmptyInputError("No vectors supplied", stage=stage, shape=(0,))
    try:
        matrix = np.asarray(vectors, dtype=np.float64)
    except ValueError as e:
        lengths = sorted({len(v) for v in vectors})
        raise DimensionMismatchError(
            f"Vectors have inconsistent lengths {lengths}", stage=stage, shape=(len(vectors),)
        ) from e
    if matrix.ndim != 2:
        raise DimensionMismatchError(
            f"Expected a sequence of 1D vectors, got an array of shape {matrix.shape}",
            stage=stage, shape=matrix.shape
        )
    return matrix


def compute_mean(vectors: VectorsLike) -> np.ndarray:
    """
    Compute the mean face of a set of vectors.

    Args:
        vectors: Sequence of face vectors of equal length d (or an n x d array)

    Returns:
        np.ndarray: Mean face of length d

    Raises:
        EmptyInputError: If no vectors are supplied
        DimensionMismatchError: If the vectors do not share a length
    """
    matrix = _as_matrix(vectors, stage="normalize")
    logger.debug("Computing mean face over %d vectors of length %d", *matrix.shape)
    return matrix.mean(axis=0)


def center_vector(vector: Sequence[float], mean: np.ndarray) -> np.ndarray:
    """
    Subtract the mean face from a single vector.

    Args:
        vector: Face vector of length d
        mean: Mean face of length d

    Returns:
        np.ndarray: Centred vector (a new array, the input is left untouched)

    Raises:
        DimensionMismatchError: If len(vector) != len(mean)
    """
    vector = np.asarray(vector, dtype=np.float64)
    mean = np.asarray(mean, dtype=np.float64)
    if vector.ndim != 1 or vector.shape != mean.shape:
        raise DimensionMismatchError(
            f"Vector of shape {vector.shape} cannot be centred with a mean of shape {mean.shape}",
            stage="normalize", shape=vector.shape
        )
    return vector - mean


def center_vectors(vectors: VectorsLike, mean: np.ndarray) -> np.ndarray:
    """
    Subtract the mean face from every vector of a set.

    Args:
        vectors: n vectors of length d
        mean: Mean face of length d, usually computed on another (training) set

    Returns:
        np.ndarray: n x d matrix of centred vectors
    """
    matrix = _as_matrix(vectors, stage="normalize")
    mean = np.asarray(mean, dtype=np.float64)
    if mean.ndim != 1 or matrix.shape[1] != mean.shape[0]:
        raise DimensionMismatchError(
            f"Vectors of length {matrix.shape[1]} cannot be centred with a mean of shape {mean.shape}",
            stage="normalize", shape=matrix.shape
        )
    return matrix - mean
