import numpy as np
import pytest
from sklearn.decomposition import PCA

from eigenmatch.core.eigenbasis import EigenBasis, build_eigenbasis
from eigenmatch.core.errors import (EmptyInputError, DimensionMismatchError,
                                    InsufficientSamplesError, SingularSystemError)


def test_eigenvalues_descending(centered_matrix):
    basis = build_eigenbasis(centered_matrix, 5)
    assert basis.vectors.shape == (60, 5)
    assert np.all(np.diff(basis.eigenvalues) <= 0)


def test_full_decomposition_reconstructs_gram_matrix(centered_matrix):
    n = centered_matrix.shape[0]
    basis = build_eigenbasis(centered_matrix, n)
    M = centered_matrix @ centered_matrix.T
    U = basis.gram_eigenvectors
    np.testing.assert_allclose(U @ np.diag(basis.eigenvalues) @ U.T, M, atol=1e-8)


def test_eigenfaces_orthogonal_and_unnormalized(centered_matrix):
    basis = build_eigenbasis(centered_matrix, 4)
    gram = basis.vectors.T @ basis.vectors
    # squared norm of A^T.u equals the eigenvalue
    np.testing.assert_allclose(gram, np.diag(basis.eigenvalues), atol=1e-8)
    assert not basis.normalized


def test_normalized_basis_has_unit_columns(centered_matrix):
    basis = build_eigenbasis(centered_matrix, 4, normalize=True)
    np.testing.assert_allclose(np.linalg.norm(basis.vectors, axis=0), np.ones(4))
    assert basis.normalized
    assert basis.normalize() is basis


def test_matches_sklearn_pca(centered_matrix):
    n = centered_matrix.shape[0]
    basis = build_eigenbasis(centered_matrix, 3)
    pca = PCA(n_components=3).fit(centered_matrix)

    np.testing.assert_allclose(basis.eigenvalues, pca.explained_variance_ * (n - 1), rtol=1e-8)
    np.testing.assert_allclose(basis.explained_variance_ratio, pca.explained_variance_ratio_, rtol=1e-8)

    # same directions up to sign
    unit = basis.normalize().vectors
    cosines = np.abs(np.sum(unit * pca.components_.T, axis=0))
    np.testing.assert_allclose(cosines, np.ones(3), atol=1e-8)


def test_basis_is_read_only(centered_matrix):
    basis = build_eigenbasis(centered_matrix, 2)
    with pytest.raises(ValueError):
        basis.vectors[0, 0] = 1.0


def test_too_many_components():
    A = np.ones((3, 4))
    with pytest.raises(InsufficientSamplesError) as exc_info:
        build_eigenbasis(A, 4)
    assert exc_info.value.shape == (3, 4)


def test_zero_components():
    with pytest.raises(InsufficientSamplesError):
        build_eigenbasis(np.ones((3, 4)), 0)


def test_k_above_n_fails_before_decomposition(monkeypatch):
    def fail(*args, **kwargs):
        raise AssertionError("decomposition should not run")

    monkeypatch.setattr(np.linalg, "eigh", fail)
    with pytest.raises(InsufficientSamplesError):
        build_eigenbasis(np.eye(3, 4), 4)


def test_empty_matrix():
    with pytest.raises(EmptyInputError):
        build_eigenbasis(np.empty((0, 4)), 1)


def test_vector_instead_of_matrix():
    with pytest.raises(DimensionMismatchError):
        build_eigenbasis(np.ones(4), 1)


def test_decomposition_failure(monkeypatch):
    def no_convergence(M):
        raise np.linalg.LinAlgError("Eigenvalues did not converge")

    monkeypatch.setattr(np.linalg, "eigh", no_convergence)
    with pytest.raises(SingularSystemError) as exc_info:
        build_eigenbasis(np.eye(3, 4), 2)
    assert exc_info.value.stage == "eigenbasis"


def test_explained_variance_ratio_of_empty_spectrum():
    basis = EigenBasis(np.zeros((4, 1)), np.zeros(1), np.zeros((2, 1)), 0.0)
    np.testing.assert_array_equal(basis.explained_variance_ratio, np.zeros(1))
