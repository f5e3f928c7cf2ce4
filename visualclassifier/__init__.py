"""
visualclassifier - Image Loading and Vectorization
==================================================

Loads images with Pillow, converts them to grayscale, flattens pixels into
NumPy feature vectors and extracts sub-images.
"""

__version__ = "0.1.0"

from .imageprocessing import Image, SubImageOutOfBoundsError, load_images, stack_grayscale_vectors

__all__ = ['Image', 'SubImageOutOfBoundsError', 'load_images', 'stack_grayscale_vectors']
