"""
Compositor - produces the output pixels for a resolved Layout.
"""

from PIL import Image

from .descriptor import Color, Crop, Fit, Mode, Pad
from .geometry import Layout

RESAMPLE = Image.Resampling.LANCZOS


def has_alpha(img: Image.Image) -> bool:
    return img.mode in ('RGBA', 'LA', 'PA') or (img.mode == 'P' and 'transparency' in img.info)


def normalize_mode(img: Image.Image) -> Image.Image:
    """Convert to RGBA when the image carries transparency, RGB otherwise."""
    target = 'RGBA' if has_alpha(img) else 'RGB'
    if img.mode == target:
        return img
    return img.convert(target)


def composite(img: Image.Image, mode: Mode, layout: Layout, background: Color) -> Image.Image:
    """
    Scale and place the image according to layout.

    Args:
        img: Decoded source image
        mode: Fit, Pad or Crop
        layout: Geometry from resolve_layout
        background: RGBA canvas colour for pad modes

    Returns:
        New image of layout.canvas_size
    """
    img = normalize_mode(img)
    if img.size != layout.scaled_size:
        scaled = img.resize(layout.scaled_size, RESAMPLE)
    else:
        scaled = img.copy()

    if isinstance(mode, Fit):
        return scaled

    if isinstance(mode, Pad):
        canvas = Image.new('RGBA', layout.canvas_size, tuple(background))
        canvas.alpha_composite(scaled.convert('RGBA'), dest=(layout.x, layout.y))
        if scaled.mode == 'RGB' and background[3] == 255:
            return canvas.convert('RGB')
        return canvas

    if isinstance(mode, Crop):
        box = (layout.x, layout.y, layout.x + layout.canvas_width, layout.y + layout.canvas_height)
        return scaled.crop(box)

    raise TypeError(f"Unknown mode: {mode!r}")
