"""
Utilities for eigenfaces recognition.
"""

from .rendering import image_shape_for, vector_to_image, save_face_image, save_eigenface_grid

__all__ = [
    'image_shape_for',
    'vector_to_image',
    'save_face_image',
    'save_eigenface_grid',
]
