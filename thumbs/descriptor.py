"""
Request descriptor parsing.

A thumbnail request is a token path segment followed by the source path::

    {mode}{width}x{height}[,{color}][,q{quality}][,{format}]/{source.ext}

e.g. ``wcc200x150,ff0000,q80,webp/photos/cat.jpg``.
"""

import logging
import posixpath
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from .codec import normalize_format
from .errors import (
    DimensionsTooLarge, InvalidDimensions, InvalidMode, InvalidRequestPath,
)

Color = Tuple[int, int, int, int]

WHITE: Color = (255, 255, 255, 255)


class HAlign(Enum):
    LEFT = 'l'
    CENTER = 'c'
    RIGHT = 'r'


class VAlign(Enum):
    TOP = 't'
    CENTER = 'c'
    BOTTOM = 'b'


@dataclass(frozen=True)
class Anchor:
    """One of the nine positions of the horizontal x vertical grid."""
    horizontal: HAlign
    vertical: VAlign

    @property
    def token(self) -> str:
        return self.horizontal.value + self.vertical.value

    def offset(self, slack_x: int, slack_y: int) -> Tuple[int, int]:
        """
        Offset of the anchored box given the free space along each axis.

        Slack is never negative; center positions round down.
        """
        return _align(self.horizontal.value, slack_x), _align(self.vertical.value, slack_y)


def _align(position: str, slack: int) -> int:
    if position in ('l', 't'):
        return 0
    if position == 'c':
        return slack // 2
    return slack


CENTER = Anchor(HAlign.CENTER, VAlign.CENTER)


@dataclass(frozen=True)
class Fit:
    """Scale to fit inside the target box; output may be smaller."""

    @property
    def token(self) -> str:
        return 'm'


@dataclass(frozen=True)
class Pad:
    """Fit, then place on a background canvas of exactly the target size."""
    anchor: Anchor = CENTER

    @property
    def token(self) -> str:
        return 'w' + self.anchor.token


@dataclass(frozen=True)
class Crop:
    """Cover the target box, then cut a target-sized window out of it."""
    anchor: Anchor = CENTER

    @property
    def token(self) -> str:
        return self.anchor.token


Mode = Union[Fit, Pad, Crop]


def _build_modes() -> Dict[str, Mode]:
    modes: Dict[str, Mode] = {'m': Fit(), 'w': Pad(), 'wc': Pad(), 'c': Crop()}
    for horizontal in HAlign:
        for vertical in VAlign:
            anchor = Anchor(horizontal, vertical)
            modes['w' + anchor.token] = Pad(anchor)
            modes[anchor.token] = Crop(anchor)
    return modes


MODES: Dict[str, Mode] = _build_modes()


def parse_mode(token: str) -> Mode:
    """Look up a mode token. Raises InvalidMode if unknown."""
    try:
        return MODES[token]
    except KeyError:
        raise InvalidMode(f"Unknown thumbnail mode: {token!r}")


def parse_hex_color(value: str) -> Optional[Color]:
    """
    Parse a 6 (RGB) or 8 (RGBA) digit hex colour.

    Returns None if the value is not a valid colour.
    """
    if len(value) not in (6, 8) or not re.fullmatch(r'[0-9a-fA-F]+', value):
        return None
    channels = [int(value[i:i + 2], 16) for i in range(0, len(value), 2)]
    if len(channels) == 3:
        channels.append(255)
    return tuple(channels)


def color_hex(color: Color) -> str:
    return ''.join(f'{channel:02x}' for channel in color)


@dataclass(frozen=True)
class TransformDescriptor:
    """
    Validated, immutable description of one thumbnail request.

    Attributes:
        mode: Fit, Pad(anchor) or Crop(anchor)
        width: Target width in pixels
        height: Target height in pixels
        background: RGBA fill colour for pad modes
        quality: Encoder quality for lossy formats (0-100)
        output_format: Normalised format tag, e.g. 'jpeg'
        source_key: Key of the original in the image store
    """
    mode: Mode
    width: int
    height: int
    background: Color
    quality: int
    output_format: str
    source_key: str

    @property
    def cache_key(self) -> str:
        """Thumbnail store key; identical descriptors give identical keys."""
        return (
            f"{self.mode.token}{self.width}x{self.height},"
            f"{color_hex(self.background)},q{self.quality},{self.output_format}/"
            f"{self.source_key}"
        )


def normalize_source_key(source: str) -> str:
    """
    Normalise a source path into a store key.

    The path is resolved as if rooted, so '..' segments cannot climb out
    of the store.
    """
    if '\x00' in source:
        raise InvalidRequestPath(f"Source path contains a NUL byte: {source!r}")
    key = posixpath.normpath('/' + source).lstrip('/')
    if not key or key == '.':
        raise InvalidRequestPath(f"Empty source path: {source!r}")
    if not posixpath.splitext(key)[1]:
        raise InvalidRequestPath(f"Source path has no extension: {source!r}")
    return key


class DescriptorParser:
    """
    Parses request tokens into TransformDescriptors.

    Each instance owns its compiled pattern and limits.
    """

    TOKEN_PATTERN = r'(?P<mode>[A-Za-z]*)(?P<width>[^x,]*)x(?P<height>[^,]*)(?P<options>(?:,[^,]*)*)'

    def __init__(
        self,
        max_dimension: int = 2000,
        default_quality: int = 85,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize parser.

        Args:
            max_dimension: Largest accepted width or height
            default_quality: Quality used when the token gives none or a bad one
            logger: Optional logger instance
        """
        self.max_dimension = max_dimension
        self.default_quality = default_quality
        self.logger = logger or logging.getLogger(__name__)
        self._pattern = re.compile(self.TOKEN_PATTERN)

    def parse_path(self, path: str) -> TransformDescriptor:
        """Parse a full request path of the form '{token}/{source}'."""
        token, sep, source = path.lstrip('/').partition('/')
        if not sep:
            raise InvalidRequestPath(f"Invalid thumbnail request path: {path!r}")
        return self.parse(token, source)

    def parse(self, token: str, source: str) -> TransformDescriptor:
        match = self._pattern.fullmatch(token)
        if match is None:
            raise InvalidRequestPath(f"Invalid thumbnail token: {token!r}")

        mode = parse_mode(match.group('mode'))
        width, height = self._parse_dimensions(match.group('width'), match.group('height'))
        source_key = normalize_source_key(source)

        background = WHITE
        quality = self.default_quality
        output_format = None

        for option in match.group('options').split(',')[1:]:
            color = parse_hex_color(option)
            if color is not None:
                background = color
            elif option.startswith('q'):
                quality = self._parse_quality(option[1:])
            elif re.fullmatch(r'[0-9a-fA-F]+', option):
                self.logger.debug(f"Ignoring malformed color {option!r} in {token!r}")
            elif re.fullmatch(r'[A-Za-z]+', option):
                output_format = normalize_format(option)
            else:
                self.logger.debug(f"Ignoring malformed option {option!r} in {token!r}")

        if output_format is None:
            output_format = normalize_format(posixpath.splitext(source_key)[1])

        return TransformDescriptor(
            mode=mode,
            width=width,
            height=height,
            background=background,
            quality=quality,
            output_format=output_format,
            source_key=source_key,
        )

    def _parse_dimensions(self, width_str: str, height_str: str) -> Tuple[int, int]:
        if not re.fullmatch(r'[0-9]+', width_str) or not re.fullmatch(r'[0-9]+', height_str):
            raise InvalidDimensions(f"Invalid dimensions: {width_str}x{height_str}")
        width, height = int(width_str), int(height_str)
        if width <= 0 or height <= 0:
            raise InvalidDimensions(f"Invalid dimensions: {width}x{height}")
        if width > self.max_dimension or height > self.max_dimension:
            raise DimensionsTooLarge(
                f"Dimensions too large: {width}x{height} "
                f"(max: {self.max_dimension}x{self.max_dimension})"
            )
        return width, height

    def _parse_quality(self, value: str) -> int:
        if not re.fullmatch(r'[0-9]+', value):
            self.logger.debug(f"Malformed quality {value!r}, using {self.default_quality}")
            return self.default_quality
        quality = int(value)
        if quality > 100:
            self.logger.debug(f"Quality {quality} out of range, using {self.default_quality}")
            return self.default_quality
        return quality
