"""
Image value object wrapping Pillow decoding and NumPy pixel planes.

An ``Image`` owns a read-only ``uint8`` plane buffer shaped
``(channels, height, width)`` and remembers the Pillow mode of the buffer it
was built from. Every transformation returns a new ``Image``.
"""

import numpy as np
from pathlib import Path
from typing import Optional, Tuple, Dict, Any, Union, List, Sequence
from PIL import Image as PILImage

from ..utils.logging import get_logger, path_identifier

logger = get_logger(__name__)

# Working mode for each plane count
PLANE_MODES = {1: 'L', 2: 'LA', 3: 'RGB', 4: 'RGBA'}

ImageSource = Union[PILImage.Image, str, Path]


class SubImageOutOfBoundsError(IndexError):
    """Raised when a sub-image box reaches outside the source image."""


def _plane_mode(display: PILImage.Image) -> str:
    """
    Pick the working mode for a display buffer.

    Colour information is kept: palette images become RGB (or RGBA when they
    carry transparency), single-band modes of any depth become L.
    """
    mode = display.mode
    if mode in PLANE_MODES.values():
        return mode
    if mode in ('P', 'PA'):
        if mode == 'PA' or 'transparency' in display.info:
            return 'RGBA'
        if display.palette is not None and display.palette.mode == 'RGBA':
            return 'RGBA'
        return 'RGB'
    if mode == '1' or mode == 'F' or mode.startswith('I'):
        return 'L'
    if mode == 'La':
        return 'LA'
    if mode.endswith(('A', 'a')):
        return 'RGBA'
    return 'RGB'


def _planes_to_display(planes: np.ndarray) -> PILImage.Image:
    """Encode a ``(channels, height, width)`` plane buffer as a Pillow image."""
    channels, height, width = planes.shape
    mode = PLANE_MODES[channels]

    if height == 0 or width == 0:
        return PILImage.new(mode, (width, height))

    if channels == 1:
        pixels = planes[0]
    else:
        pixels = planes.transpose(1, 2, 0)

    return PILImage.fromarray(np.ascontiguousarray(pixels))


def _planes_to_palette(planes: np.ndarray) -> PILImage.Image:
    """
    Encode RGB or RGBA planes as a ``P`` image without quantization loss.

    The palette is built from the distinct colours of the planes, so the
    planes must hold at most 256 colours, which is always true for planes
    decoded from a palette image.
    """
    channels, height, width = planes.shape

    if height == 0 or width == 0:
        return PILImage.new('P', (width, height))

    colors, indices = np.unique(planes.reshape(channels, -1).T, axis=0, return_inverse=True)
    if len(colors) > 256:
        raise ValueError(f"palette images hold at most 256 colours, got {len(colors)}")

    display = PILImage.fromarray(indices.reshape(height, width).astype(np.uint8))
    display.putpalette(colors.astype(np.uint8).tobytes(), rawmode=PLANE_MODES[channels])
    return display


class Image:
    """
    Decoded image with derived grayscale, vector and sub-image views.

    Construct from a ``PIL.Image.Image`` or from a file path. The instance
    never changes after construction.

    Example:
        >>> img = Image("photos/cat.png")
        >>> gray = img.to_grayscale()
        >>> gray.channels
        1
    """

    def __init__(self, source: Optional[ImageSource]):
        """
        Build an image from a display buffer or a file path.

        Args:
            source: Pillow image, or a path decoded with Pillow first

        Raises:
            ValueError: If ``source`` is None
            TypeError: If ``source`` is neither an image nor a path
            FileNotFoundError, PIL.UnidentifiedImageError: If decoding fails
        """
        if isinstance(source, (str, Path)):
            source = self._decode(source)

        if source is None:
            raise ValueError("image source cannot be null")

        if not isinstance(source, PILImage.Image):
            raise TypeError(f"image source must be a PIL image or a path, got {type(source).__name__}")

        plane_mode = _plane_mode(source)
        converted = source if source.mode == plane_mode else source.convert(plane_mode)

        pixels = np.array(converted, dtype=np.uint8)
        if pixels.ndim == 2:
            pixels = pixels[np.newaxis, :, :]
        else:
            pixels = pixels.transpose(2, 0, 1)

        planes = np.ascontiguousarray(pixels)
        planes.setflags(write=False)

        self._planes = planes
        self._format_tag = source.mode

    @staticmethod
    def _decode(path: Union[str, Path]) -> PILImage.Image:
        """Read and fully decode an image file, closing it afterwards."""
        with PILImage.open(path) as img:
            img.load()
            decoded = img.copy()

        logger.debug(f"Decoded image_{path_identifier(path)} ({decoded.mode} {decoded.width}x{decoded.height})")
        return decoded

    @property
    def width(self) -> int:
        """Width of the image in pixels."""
        return self._planes.shape[2]

    @property
    def height(self) -> int:
        """Height of the image in pixels."""
        return self._planes.shape[1]

    @property
    def channels(self) -> int:
        return self._planes.shape[0]

    @property
    def format_tag(self) -> str:
        """Pillow mode of the buffer this image was built from."""
        return self._format_tag

    @property
    def planes(self) -> np.ndarray:
        """Read-only ``(channels, height, width)`` uint8 pixel planes."""
        return self._planes

    def _average_channels(self) -> np.ndarray:
        # Truncating integer mean, as an unsigned 8-bit average would
        total = self._planes.sum(axis=0, dtype=np.uint32)
        return (total // self.channels).astype(np.uint8)

    def to_grayscale(self) -> 'Image':
        """
        Convert the image to grayscale.

        Each pixel becomes the average of all channel planes.

        Returns:
            A new single-channel Image in ``L`` mode
        """
        gray = self._average_channels()
        return Image(_planes_to_display(gray[np.newaxis, :, :]))

    def to_grayscale_vector(self) -> np.ndarray:
        """
        Flatten the grayscale intensities into a single row vector.

        Pixels are taken in row-major order and scaled to [0, 1].

        Returns:
            Array of shape ``(1, width * height)`` with dtype float64
        """
        gray = self._average_channels()
        return gray.reshape(1, -1).astype(np.float64) / 255.0

    def sub_image(self, left: int, top: int, right: int, bottom: int) -> 'Image':
        """
        Extract the box between the top-left and bottom-right coordinates.

        Args:
            left: the left x coordinate
            top: the top y coordinate
            right: the right x coordinate (exclusive)
            bottom: the bottom y coordinate (exclusive)

        Returns:
            A new Image of size ``(right - left, bottom - top)`` in this
            image's format

        Raises:
            ValueError: If ``right < left`` or ``bottom < top``
            SubImageOutOfBoundsError: If the box exceeds the image
        """
        if right < left or bottom < top:
            raise ValueError(
                f"invalid box ({left}, {top}, {right}, {bottom}): right/bottom must not precede left/top"
            )

        if left < 0 or top < 0 or right > self.width or bottom > self.height:
            raise SubImageOutOfBoundsError(
                f"box ({left}, {top}, {right}, {bottom}) exceeds image bounds {self.width}x{self.height}"
            )

        return Image._from_planes(self._planes[:, top:bottom, left:right], self._format_tag)

    @classmethod
    def _from_planes(cls, planes: np.ndarray, format_tag: str) -> 'Image':
        """Wrap a copy of ``planes`` in a new Image tagged ``format_tag``."""
        image = cls.__new__(cls)
        owned = planes.copy()
        owned.setflags(write=False)
        image._planes = owned
        image._format_tag = format_tag
        return image

    def to_display_buffer(self) -> PILImage.Image:
        """
        Render the plane buffer back into a Pillow image.

        Palette formats are rebuilt from the colours actually present, so
        no dithering or fixed palette is applied.

        Returns:
            A new Pillow image of this size, converted to ``format_tag``
        """
        if self._format_tag in ('P', 'PA') and self.channels in (3, 4):
            display = _planes_to_palette(self._planes)
            if display.mode != self._format_tag:
                display = display.convert(self._format_tag)
            return display

        display = _planes_to_display(self._planes)
        if display.mode != self._format_tag:
            display = display.convert(self._format_tag)
        return display

    def draw_bounding_box(self, top: int, left: int, bottom: int, right: int,
                          color: Any) -> None:
        """
        Draw a bounding box in the given color onto a copy of the image.

        Not implemented yet: always returns None, whatever the arguments.

        Args:
            top: the top y position of the box
            left: the left x position of the box
            bottom: the bottom y position of the box
            right: the right x position of the box
            color: the color to draw the bounding box in
        """
        logger.debug("draw_bounding_box is not implemented; returning None")
        return None

    def describe(self) -> Dict[str, Any]:
        """Summarize dimensions and format as a plain dictionary."""
        return {
            'width': self.width,
            'height': self.height,
            'channels': self.channels,
            'format_tag': self.format_tag,
        }

    def __repr__(self) -> str:
        return f"Image(width={self.width}, height={self.height}, channels={self.channels}, format_tag={self.format_tag!r})"


def load_images(image_paths: Sequence[Union[str, Path]]) -> List[Image]:
    """
    Load a batch of images, preserving order.

    Args:
        image_paths: Paths to decode

    Returns:
        One Image per path
    """
    images = [Image(path) for path in image_paths]
    logger.debug(f"Loaded {len(images)} images")
    return images


def stack_grayscale_vectors(images: Sequence[Image]) -> np.ndarray:
    """
    Stack grayscale vectors of equally sized images into a feature matrix.

    Args:
        images: Images sharing one width and height

    Returns:
        Array of shape ``(len(images), width * height)``

    Raises:
        ValueError: If ``images`` is empty or the sizes differ
    """
    if not images:
        raise ValueError("at least one image is required")

    size: Tuple[int, int] = (images[0].width, images[0].height)
    for index, image in enumerate(images):
        if (image.width, image.height) != size:
            raise ValueError(
                f"image {index} is {image.width}x{image.height}, expected {size[0]}x{size[1]}"
            )

    return np.vstack([image.to_grayscale_vector() for image in images])
