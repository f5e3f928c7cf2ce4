"""
Image processing modules for visualclassifier.

Contains the Image value object and batch helpers built on it.
"""

from .image import Image, SubImageOutOfBoundsError, load_images, stack_grayscale_vectors

__all__ = ['Image', 'SubImageOutOfBoundsError', 'load_images', 'stack_grayscale_vectors']
