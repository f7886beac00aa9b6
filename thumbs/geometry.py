"""
Geometry resolution for the fit, pad and crop mode families.

All sizes and offsets are integer pixels.
"""

from dataclasses import dataclass
from typing import Tuple

from .descriptor import Crop, Fit, Mode, Pad


@dataclass(frozen=True)
class Layout:
    """
    Resolved geometry for one transformation.

    Attributes:
        scaled_width: Width the source is resampled to
        scaled_height: Height the source is resampled to
        canvas_width: Width of the output image
        canvas_height: Height of the output image
        x: Pad: left edge of the scaled image on the canvas.
           Crop: left edge of the window inside the scaled image.
        y: Same as x, vertically
    """
    scaled_width: int
    scaled_height: int
    canvas_width: int
    canvas_height: int
    x: int = 0
    y: int = 0

    @property
    def scaled_size(self) -> Tuple[int, int]:
        return self.scaled_width, self.scaled_height

    @property
    def canvas_size(self) -> Tuple[int, int]:
        return self.canvas_width, self.canvas_height


def fit_size(
    src_width: int,
    src_height: int,
    max_width: int,
    max_height: int,
    upscale: bool = False
) -> Tuple[int, int]:
    """
    Largest size with the source aspect ratio that fits inside max_width x max_height.

    The limiting dimension equals its bound exactly. Without upscale a source
    that already fits is returned at its own size.
    """
    if not upscale and src_width <= max_width and src_height <= max_height:
        return src_width, src_height
    # compare max_width / src_width against max_height / src_height without floats
    if max_width * src_height <= max_height * src_width:
        return max_width, max(1, src_height * max_width // src_width)
    return max(1, src_width * max_height // src_height), max_height


def cover_size(
    src_width: int,
    src_height: int,
    min_width: int,
    min_height: int
) -> Tuple[int, int]:
    """
    Smallest size with the source aspect ratio that covers min_width x min_height.

    One dimension equals its bound exactly, the other is at least its bound.
    """
    if min_width * src_height >= min_height * src_width:
        return min_width, max(min_height, src_height * min_width // src_width)
    return max(min_width, src_width * min_height // src_height), min_height


def resolve_layout(
    src_width: int,
    src_height: int,
    mode: Mode,
    width: int,
    height: int,
    upscale: bool = False
) -> Layout:
    """
    Compute the scaled size and placement for a mode.

    Args:
        src_width: Decoded source width
        src_height: Decoded source height
        mode: Fit, Pad or Crop
        width: Target width
        height: Target height
        upscale: Allow fit and pad modes to enlarge small sources

    Returns:
        Layout for the compositor
    """
    if src_width <= 0 or src_height <= 0:
        raise ValueError(f"Invalid source size: {src_width}x{src_height}")

    if isinstance(mode, Fit):
        scaled_w, scaled_h = fit_size(src_width, src_height, width, height, upscale)
        return Layout(scaled_w, scaled_h, scaled_w, scaled_h)

    if isinstance(mode, Pad):
        scaled_w, scaled_h = fit_size(src_width, src_height, width, height, upscale)
        x, y = mode.anchor.offset(width - scaled_w, height - scaled_h)
        return Layout(scaled_w, scaled_h, width, height, x, y)

    if isinstance(mode, Crop):
        scaled_w, scaled_h = cover_size(src_width, src_height, width, height)
        x, y = mode.anchor.offset(scaled_w - width, scaled_h - height)
        x = min(max(x, 0), scaled_w - width)
        y = min(max(y, 0), scaled_h - height)
        return Layout(scaled_w, scaled_h, width, height, x, y)

    raise TypeError(f"Unknown mode: {mode!r}")
