"""Image comparison — strict pixel equality and diff artifact generation."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from PIL import Image, ImageChops

from render_check.models.check_result import ImageComparison
from render_check.models.config import CompareConfig

logger = logging.getLogger(__name__)

HIGHLIGHT_COLOR = (255, 0, 255, 255)
# Unchanged pixels are faded toward white in the diff image
_DIM_ALPHA = 0.3


class BaselineNotFoundError(FileNotFoundError):
    """Raised when the reference image does not exist."""


def _load_rgba(path: Path) -> Image.Image:
    with Image.open(path) as img:
        return img.convert("RGBA")


def _changed_mask(reference: Image.Image, current: Image.Image, threshold: int) -> Image.Image:
    """Return an L-mode mask, 255 where any channel differs by more than threshold."""
    diff = ImageChops.difference(reference, current)
    channel_max = diff.split()[0]
    for band in diff.split()[1:]:
        channel_max = ImageChops.lighter(channel_max, band)
    return channel_max.point(lambda v: 255 if v > threshold else 0)


def _pad(image: Image.Image, size: tuple[int, int]) -> Image.Image:
    if image.size == size:
        return image
    padded = Image.new("RGBA", size, (0, 0, 0, 0))
    padded.paste(image, (0, 0))
    return padded


def compare_images(
    reference_path: Path,
    current_path: Path,
    config: CompareConfig | None = None,
) -> ImageComparison:
    """Compare two images.

    In strict mode any differing pixel, or any difference in size, makes the
    images unequal. Otherwise a pixel counts as changed only when a channel
    moves by more than ``pixel_threshold``, and the images are equal while the
    share of changed pixels stays within ``max_diff_ratio``.
    """
    config = config or CompareConfig()
    if not reference_path.exists():
        raise BaselineNotFoundError(f"Baseline image not found: {reference_path}")

    reference = _load_rgba(reference_path)
    current = _load_rgba(current_path)
    reference_size, current_size = reference.size, current.size
    threshold = 0 if config.strict else config.pixel_threshold

    size = (max(reference.width, current.width), max(reference.height, current.height))
    if reference_size != current_size:
        logger.warning(
            "Image size mismatch: reference=%dx%d, current=%dx%d",
            *reference_size, *current_size,
        )
        reference = _pad(reference, size)
        current = _pad(current, size)

    diff_pixels = _changed_mask(reference, current, threshold).histogram()[255]
    total = size[0] * size[1]

    if reference_size != current_size:
        equal = False
    elif config.strict:
        equal = diff_pixels == 0
    else:
        equal = total == 0 or diff_pixels / total <= config.max_diff_ratio

    logger.debug("Compared %s to %s: %d/%d pixels differ", reference_path, current_path, diff_pixels, total)
    return ImageComparison(
        equal=equal,
        strict=config.strict,
        reference_size=reference_size,
        current_size=current_size,
        diff_pixels=diff_pixels,
        total_pixels=total,
    )


def write_diff_image(
    reference_path: Path,
    current_path: Path,
    diff_path: Path,
    config: CompareConfig | None = None,
) -> Path:
    """Write an image highlighting the pixels that differ between two images."""
    config = config or CompareConfig()
    if not reference_path.exists():
        raise BaselineNotFoundError(f"Baseline image not found: {reference_path}")

    reference = _load_rgba(reference_path)
    current = _load_rgba(current_path)
    size = (max(reference.width, current.width), max(reference.height, current.height))
    reference = _pad(reference, size)
    current = _pad(current, size)

    threshold = 0 if config.strict else config.pixel_threshold
    mask = _changed_mask(reference, current, threshold)

    white = Image.new("RGBA", size, (255, 255, 255, 255))
    dimmed = Image.blend(white, current, _DIM_ALPHA)
    highlight = Image.new("RGBA", size, HIGHLIGHT_COLOR)
    diff = Image.composite(highlight, dimmed, mask)

    diff_path.parent.mkdir(parents=True, exist_ok=True)
    diff.save(diff_path)
    logger.debug("Diff image written to %s", diff_path)
    return diff_path


async def compare_and_diff(
    reference_path: Path,
    current_path: Path,
    diff_path: Path,
    config: CompareConfig | None = None,
) -> ImageComparison:
    """Run the equality check and the diff writer concurrently; wait for both."""
    comparison, diff = await asyncio.gather(
        asyncio.to_thread(compare_images, reference_path, current_path, config),
        asyncio.to_thread(write_diff_image, reference_path, current_path, diff_path, config),
        return_exceptions=True,
    )
    if isinstance(comparison, BaseException):
        raise comparison
    if isinstance(diff, BaseException):
        raise diff
    return comparison
