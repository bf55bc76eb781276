"""
Result Probe
============

Reads the actual dimensions of a rendered image. The rendered size can
differ from the requested viewport, so outcomes report what was written.
"""

from typing import Tuple, Union
from pathlib import Path

from PIL import Image, UnidentifiedImageError  # type: ignore

from imagely.config.logging import get_logger
from imagely.core.exceptions import ProbeError
from imagely.models.schemas import Dimensions

logger = get_logger(__name__)


def read_image_size(path: Union[str, Path]) -> Tuple[int, int]:
    """
    Read width and height from an image file header.

    Raises:
        ProbeError: If the file is missing or not a decodable image
    """
    try:
        with Image.open(path) as image:  # type: ignore[attr-defined]
            return image.size
    except (OSError, UnidentifiedImageError) as e:
        raise ProbeError(f'Cannot read image dimensions of "{path}": {e}') from e


def probe_dimensions(path: Union[str, Path]) -> Dimensions:
    """Probe image dimensions, downgrading any failure to null width/height."""
    try:
        width, height = read_image_size(path)
    except ProbeError as e:
        logger.debug("Dimension probe failed", path=str(path), error=str(e))
        return Dimensions(width=None, height=None)
    return Dimensions(width=width, height=height)
