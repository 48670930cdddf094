"""
Module for dataset management in eigenfaces recognition.

This module provides the face set container, the train/test split keeping one
image per identity on each side, and loaders for the reference and synthetic
datasets. Faces are always handled as flattened vectors.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Tuple, Any, Optional, Callable

import numpy as np
from sklearn.datasets import fetch_olivetti_faces

from eigenmatch import config
from .errors import EmptyInputError, DimensionMismatchError

logger = logging.getLogger(__name__)


@dataclass
class FaceSet:
    """
    Ordered collection of face vectors with one identity label per vector.

    Attributes:
        vectors: N x d matrix, one flattened face per row
        labels: Identity of each vector (identities may repeat)
        image_shape: (height, width) of the images the vectors come from, if known
    """
    vectors: np.ndarray
    labels: List[Any] = field(default_factory=list)
    image_shape: Optional[Tuple[int, int]] = None

    def __post_init__(self):
        """Verify dimensions after initialization"""
        self.vectors = np.asarray(self.vectors, dtype=np.float64)
        self.labels = list(self.labels)
        if self.vectors.size > 0 and self.vectors.ndim != 2:
            raise DimensionMismatchError(
                f"Vectors must be a 2D array (n_samples, n_features), not {self.vectors.shape}",
                stage="dataset", shape=self.vectors.shape
            )
        if len(self.labels) != len(self.vectors):
            raise DimensionMismatchError(
                f"Number of labels ({len(self.labels)}) does not match number of vectors ({len(self.vectors)})",
                stage="dataset", shape=self.vectors.shape
            )
        if self.image_shape is not None and self.vectors.size > 0:
            h, w = self.image_shape
            if h * w != self.dimension:
                raise DimensionMismatchError(
                    f"Image shape {self.image_shape} does not match vectors of length {self.dimension}",
                    stage="dataset", shape=self.vectors.shape
                )

    def __len__(self) -> int:
        return len(self.vectors)

    @property
    def dimension(self) -> int:
        """Return the vector length d"""
        return self.vectors.shape[1] if self.vectors.ndim == 2 else 0

    @property
    def identities(self) -> List[Any]:
        """Return distinct identities in order of first appearance"""
        seen = {}
        for label in self.labels:
            seen.setdefault(label, None)
        return list(seen)

    @property
    def n_identities(self) -> int:
        """Return number of distinct identities"""
        return len(self.identities)

    def get_vectors_for_identity(self, identity: Any) -> np.ndarray:
        """
        Get all vectors of a given identity.

        Args:
            identity: Identity to search for

        Returns:
            np.ndarray: Vectors of this identity, in dataset order
        """
        indices = [i for i, label in enumerate(self.labels) if label == identity]
        return self.vectors[indices]


def split_first_last(face_set: FaceSet) -> Tuple[FaceSet, FaceSet]:
    """
    Split a face set into one train and one test vector per identity.

    The first observed image of an identity goes to the train set and the last
    observed image to the test set. Identities keep their order of first
    appearance, so index i designates the same identity in both sets.

    Args:
        face_set: Face set with several images per identity

    Returns:
        Tuple[FaceSet, FaceSet]: (train, test), index-aligned

    Raises:
        EmptyInputError: If the face set is empty
    """
    if len(face_set) == 0:
        raise EmptyInputError("Cannot split an empty face set", stage="split", shape=face_set.vectors.shape)

    first = {}
    last = {}
    for i, label in enumerate(face_set.labels):
        first.setdefault(label, i)
        last[label] = i

    identities = list(first)
    train_idx = [first[label] for label in identities]
    test_idx = [last[label] for label in identities]

    single = [label for label in identities if first[label] == last[label]]
    if single:
        logger.warning("%d identities have a single image, used for both train and test: %s",
                       len(single), single)

    train = FaceSet(face_set.vectors[train_idx], identities, face_set.image_shape)
    test = FaceSet(face_set.vectors[test_idx], identities, face_set.image_shape)

    logger.info("Split %d images into %d train/test pairs", len(face_set), len(identities))
    return train, test


def load_olivetti(data_home: Optional[str] = None,
                  progress_callback: Optional[Callable] = None) -> FaceSet:
    """
    Load the reference dataset: 40 identities, 10 images each, 64 x 64 pixels.

    Args:
        data_home: Download and cache folder (scikit-learn default if None)
        progress_callback: Callback function for progress

    Returns:
        FaceSet: 400 vectors of length 4096, labelled by identity
    """
    start_time = time.time()

    if progress_callback:
        progress_callback(10, "Fetching Olivetti faces...")

    faces = fetch_olivetti_faces(data_home=data_home, shuffle=False)
    face_set = FaceSet(faces.data, faces.target.tolist(), faces.images.shape[1:3])

    if progress_callback:
        total_time = time.time() - start_time
        progress_callback(100, f"Dataset loaded in {total_time:.2f} seconds")

    logger.info("Loaded %d faces of %d identities (d=%d)",
                len(face_set), face_set.n_identities, face_set.dimension)
    return face_set


def create_synthetic_dataset(n_subjects: int = config.SYNTHETIC_N_SUBJECTS,
                             n_images_per_subject: int = config.SYNTHETIC_IMAGES_PER_SUBJECT,
                             img_size: int = config.SYNTHETIC_IMG_SIZE,
                             noise: float = config.SYNTHETIC_NOISE,
                             random_state: int = config.RANDOM_STATE,
                             progress_callback: Optional[Callable] = None) -> FaceSet:
    """
    Create a synthetic dataset for testing.

    Each subject gets a random prototype image; every image of the subject is
    the prototype plus Gaussian noise.

    Args:
        n_subjects: Number of subjects to create
        n_images_per_subject: Number of images per subject
        img_size: Image size (square)
        noise: Standard deviation of the noise added to each image
        random_state: Seed for reproducibility
        progress_callback: Callback function for progress

    Returns:
        FaceSet: Synthetic face set, images of a subject stored consecutively
    """
    start_time = time.time()

    if progress_callback:
        progress_callback(10, "Generating synthetic data...")

    rng = np.random.default_rng(random_state)
    dimension = img_size * img_size

    prototypes = rng.random((n_subjects, dimension))
    vectors = np.zeros((n_subjects * n_images_per_subject, dimension))
    labels = []

    for i in range(n_subjects):
        for j in range(n_images_per_subject):
            vectors[i * n_images_per_subject + j] = prototypes[i] + noise * rng.standard_normal(dimension)
            labels.append(i + 1)

    dataset = FaceSet(vectors, labels, (img_size, img_size))

    if progress_callback:
        total_time = time.time() - start_time
        progress_callback(100, f"Dataset creation completed in {total_time:.2f} seconds")

    return dataset
