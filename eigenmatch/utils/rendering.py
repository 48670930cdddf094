"""
Rendering of face vectors as images.

Vectors are interpreted as square grayscale images of side sqrt(dimension).
Images are written to files only; nothing is displayed.
"""

import logging
import math
import os
from typing import Optional, Sequence, Tuple

import numpy as np
import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt
from PIL import Image

from eigenmatch.core.eigenbasis import EigenBasis
from eigenmatch.core.errors import DimensionMismatchError

logger = logging.getLogger(__name__)


def image_shape_for(dimension: int) -> Tuple[int, int]:
    """Return the (height, width) of the square image holding `dimension` pixels."""
    side = math.isqrt(dimension)
    if side * side != dimension:
        raise DimensionMismatchError(
            f"Vector length {dimension} is not a square number of pixels",
            stage="render", shape=(dimension,)
        )
    return side, side


def vector_to_image(vector: Sequence[float], dimension: Optional[int] = None) -> Image.Image:
    """
    Convert a face vector to an 8-bit grayscale image.

    Values are min-max scaled to [0, 255], so eigenfaces and centred vectors
    render as well as raw faces.

    Args:
        vector: Face vector
        dimension: Expected vector length (defaults to len(vector))

    Returns:
        Image.Image: Grayscale image of shape sqrt(d) x sqrt(d)
    """
    a = np.asarray(vector, dtype=np.float64).ravel()
    if dimension is not None and a.shape[0] != dimension:
        raise DimensionMismatchError(
            f"Vector of length {a.shape[0]} does not match dimension {dimension}",
            stage="render", shape=a.shape
        )
    h, w = image_shape_for(a.shape[0])

    a_min, a_max = a.min(), a.max()
    if a_max - a_min < 1e-12:
        a_norm = np.zeros_like(a)
    else:
        a_norm = (a - a_min) / (a_max - a_min)
    pixels = (a_norm * 255.0).round().clip(0, 255).astype(np.uint8)
    return Image.fromarray(pixels.reshape(h, w))


def save_face_image(path: str, vector: Sequence[float], dimension: Optional[int] = None) -> str:
    """
    Write a face vector to an image file.

    Args:
        path: Output file, format chosen from the extension
        vector: Face vector
        dimension: Expected vector length

    Returns:
        str: The path written
    """
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    vector_to_image(vector, dimension).save(path)
    logger.debug("Saved face image %s", path)
    return path


def save_eigenface_grid(basis: EigenBasis, path: str, mean_face: Optional[np.ndarray] = None,
                        n_cols: int = 4) -> str:
    """
    Save the mean face and the eigenfaces side by side in one figure.

    Args:
        basis: Eigenface basis
        path: Output PNG file
        mean_face: Mean face shown first, if given
        n_cols: Number of columns of the grid

    Returns:
        str: The path written
    """
    image_shape = image_shape_for(basis.dimension)
    panels = []
    if mean_face is not None:
        panels.append(('Mean face', np.asarray(mean_face)))
    for i in range(basis.n_components):
        panels.append((f'Eigenface {i+1}', basis.vectors[:, i]))

    n_rows = (len(panels) + n_cols - 1) // n_cols
    fig = plt.figure(figsize=(3 * n_cols, 3 * n_rows))

    for i, (title, vector) in enumerate(panels):
        ax = fig.add_subplot(n_rows, n_cols, i + 1)
        ax.imshow(vector.reshape(image_shape), cmap='gray')
        ax.set_title(title)
        ax.axis('off')

    plt.tight_layout()
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    fig.savefig(path, dpi=100, bbox_inches='tight')
    plt.close(fig)

    logger.info("Saved %d eigenfaces to %s", basis.n_components, path)
    return path
