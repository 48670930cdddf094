"""
Eigenface basis construction.

Implements the Gram-matrix trick: instead of decomposing the d x d covariance
structure A^T.A of the centred training matrix, the small n x n matrix
M = A.A^T is decomposed and its eigenvectors are mapped back to image space
with v_i = A^T.u_i. Both matrices share their non-zero eigenvalues, so the
decomposition costs O(n^3) instead of O(d^3).
"""

import logging
from dataclasses import dataclass

import numpy as np

from .errors import EmptyInputError, DimensionMismatchError, InsufficientSamplesError, SingularSystemError

logger = logging.getLogger(__name__)


def _readonly(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=np.float64)
    array.setflags(write=False)
    return array


@dataclass(frozen=True)
class EigenBasis:
    """
    Top-k eigenfaces of a training set.

    Attributes:
        vectors: d x k matrix, one eigenface per column, by descending eigenvalue
        eigenvalues: k eigenvalues of the Gram matrix, descending
        gram_eigenvectors: n x k unit eigenvectors u_i of the Gram matrix
        total_variance: Sum of all n Gram eigenvalues (trace of A.A^T)
        normalized: True if the eigenfaces were scaled to unit length
    """
    vectors: np.ndarray
    eigenvalues: np.ndarray
    gram_eigenvectors: np.ndarray
    total_variance: float
    normalized: bool = False

    def __post_init__(self):
        # Freeze the arrays so the basis can be shared between worker threads
        object.__setattr__(self, 'vectors', _readonly(self.vectors))
        object.__setattr__(self, 'eigenvalues', _readonly(self.eigenvalues))
        object.__setattr__(self, 'gram_eigenvectors', _readonly(self.gram_eigenvectors))

    @property
    def dimension(self) -> int:
        """Length d of the eigenfaces"""
        return self.vectors.shape[0]

    @property
    def n_components(self) -> int:
        """Number k of eigenfaces"""
        return self.vectors.shape[1]

    @property
    def explained_variance_ratio(self) -> np.ndarray:
        """Share of the training variance captured by each eigenface"""
        if self.total_variance <= 0:
            return np.zeros_like(self.eigenvalues)
        return self.eigenvalues / self.total_variance

    def normalize(self) -> 'EigenBasis':
        """
        Return a copy of the basis whose eigenfaces have unit length.

        Returns:
            EigenBasis: Normalized basis (self if already normalized)
        """
        if self.normalized:
            return self
        norms = np.linalg.norm(self.vectors, axis=0)
        # Null eigenfaces (zero eigenvalue) are kept as they are
        norms[norms == 0] = 1.0
        return EigenBasis(self.vectors / norms, self.eigenvalues, self.gram_eigenvectors,
                          self.total_variance, normalized=True)


def build_eigenbasis(centered: np.ndarray, n_components: int, normalize: bool = False) -> EigenBasis:
    """
    Compute the top eigenfaces of a mean-centred training matrix.

    Args:
        centered: n x d matrix A whose rows are training vectors minus the mean face
        n_components: Number k of eigenfaces to keep, 1 <= k <= n
        normalize: If True, scale the eigenfaces to unit length. By default they are
            left as A^T.u_i, whose squared norm equals the eigenvalue.

    Returns:
        EigenBasis: Basis with the k eigenfaces of largest eigenvalue

    Raises:
        EmptyInputError: If the matrix has no rows
        DimensionMismatchError: If the input is not a 2D matrix
        InsufficientSamplesError: If k > n or k < 1
        SingularSystemError: If the eigen-decomposition does not converge
    """
    A = np.asarray(centered, dtype=np.float64)
    if A.ndim != 2:
        raise DimensionMismatchError(
            f"Expected an n x d matrix, got shape {A.shape}", stage="eigenbasis", shape=A.shape
        )
    n_samples, dimension = A.shape
    if n_samples == 0:
        raise EmptyInputError("No training vectors supplied", stage="eigenbasis", shape=A.shape)
    if n_components < 1 or n_components > n_samples:
        raise InsufficientSamplesError(
            f"Cannot extract {n_components} eigenfaces from {n_samples} training vectors",
            stage="eigenbasis", shape=A.shape
        )

    # Gram matrix, n x n
    M = A @ A.T

    try:
        eigenvalues, eigenvectors = np.linalg.eigh(M)
    except np.linalg.LinAlgError as e:
        raise SingularSystemError(
            f"Eigen-decomposition of the Gram matrix did not converge: {e}",
            stage="eigenbasis", shape=M.shape
        ) from e

    # eigh returns ascending eigenvalues
    order = np.argsort(eigenvalues)[::-1]
    eigenvalues = eigenvalues[order]
    eigenvectors = eigenvectors[:, order]

    top_values = eigenvalues[:n_components]
    top_vectors = eigenvectors[:, :n_components]

    # Map the small eigenvectors back to image space
    eigenfaces = A.T @ top_vectors

    total_variance = float(np.sum(np.clip(eigenvalues, 0.0, None)))
    basis = EigenBasis(eigenfaces, top_values, top_vectors, total_variance)

    logger.info("Built %d eigenfaces of dimension %d from %d training vectors",
                n_components, dimension, n_samples)
    logger.debug("Eigenvalues: %s", top_values)

    if normalize:
        basis = basis.normalize()
    return basis
