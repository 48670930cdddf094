import numpy as np
import pytest

from eigenmatch.core.dataset import create_synthetic_dataset, split_first_last


@pytest.fixture
def rng():
    return np.random.default_rng(0)


@pytest.fixture
def unit_vectors():
    """Three identities with orthogonal train vectors in R^4."""
    return np.array([
        [1.0, 0.0, 0.0, 0.0],
        [0.0, 1.0, 0.0, 0.0],
        [0.0, 0.0, 1.0, 0.0],
    ])


@pytest.fixture
def centered_matrix(rng):
    X = rng.standard_normal((8, 60))
    return X - X.mean(axis=0)


@pytest.fixture
def synthetic_split():
    face_set = create_synthetic_dataset(n_subjects=8, n_images_per_subject=3, img_size=8, noise=0.01)
    return split_first_last(face_set)
