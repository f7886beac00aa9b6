"""
Codec registry - sniffs, decodes and encodes raster images with Pillow.
"""

import io
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

from PIL import Image

from .errors import (
    DecodeFailed, EncodeFailed, UnsupportedOutputFormat, UnsupportedSourceFormat,
)

FORMAT_ALIASES = {
    'jpg': 'jpeg',
    'jpe': 'jpeg',
}

HEADER_SIZE = 16

PNG_SIGNATURE = b'\x89PNG\r\n\x1a\n'


def normalize_format(name: str) -> str:
    """Normalise a format name or file extension, e.g. '.JPG' -> 'jpeg'."""
    name = name.lower().lstrip('.')
    return FORMAT_ALIASES.get(name, name)


def is_jpeg(header: bytes) -> bool:
    return header[:2] == b'\xff\xd8'


def is_png(header: bytes) -> bool:
    return header[:8] == PNG_SIGNATURE


def is_webp(header: bytes) -> bool:
    return header[:4] == b'RIFF' and header[8:12] == b'WEBP'


def flatten(img: Image.Image, background=(255, 255, 255)) -> Image.Image:
    """Composite transparent images onto an opaque background and return RGB."""
    if img.mode in ('RGBA', 'LA') or (img.mode == 'P' and 'transparency' in img.info):
        img = img.convert('RGBA')
        canvas = Image.new('RGB', img.size, background)
        canvas.paste(img, mask=img.split()[-1])
        return canvas
    if img.mode != 'RGB':
        return img.convert('RGB')
    return img


@dataclass(frozen=True)
class Codec:
    """
    Decoder/encoder pair for one raster format.

    Attributes:
        name: Format tag used in tokens and cache keys
        pil_format: Pillow format name
        content_type: MIME type of encoded output
        matches: Predicate over the first HEADER_SIZE bytes of a stream
        lossy: Whether quality applies when encoding
        supports_alpha: Whether the encoder keeps an alpha channel
        save_options: Extra keyword arguments for Image.save
    """
    name: str
    pil_format: str
    content_type: str
    matches: Callable[[bytes], bool]
    lossy: bool = False
    supports_alpha: bool = True
    save_options: Dict[str, object] = field(default_factory=dict)

    def decode(self, data: bytes) -> Image.Image:
        try:
            img = Image.open(io.BytesIO(data), formats=[self.pil_format])
            img.load()
        except (OSError, SyntaxError, ValueError, EOFError, Image.DecompressionBombError) as e:
            raise DecodeFailed(f"Failed to decode {self.name} image: {e}") from e
        return img

    def encode(self, img: Image.Image, quality: int) -> bytes:
        if not self.supports_alpha:
            img = flatten(img)
        options = dict(self.save_options)
        if self.lossy:
            options['quality'] = quality

        output = io.BytesIO()
        try:
            img.save(output, format=self.pil_format, **options)
        except (OSError, ValueError, KeyError) as e:
            raise EncodeFailed(f"Failed to encode {self.name} image: {e}") from e
        return output.getvalue()


JPEG = Codec(
    name='jpeg',
    pil_format='JPEG',
    content_type='image/jpeg',
    matches=is_jpeg,
    lossy=True,
    supports_alpha=False,
    save_options={'optimize': True},
)

PNG = Codec(
    name='png',
    pil_format='PNG',
    content_type='image/png',
    matches=is_png,
    save_options={'optimize': True},
)

WEBP = Codec(
    name='webp',
    pil_format='WEBP',
    content_type='image/webp',
    matches=is_webp,
    lossy=True,
)


class CodecRegistry:
    """
    Format tag -> Codec lookup.

    New formats are added with register(); decode() picks a codec by
    sniffing magic bytes, never by file extension.
    """

    def __init__(
        self,
        codecs: Optional[Iterable[Codec]] = None,
        logger: Optional[logging.Logger] = None
    ):
        self.logger = logger or logging.getLogger(__name__)
        self._codecs: Dict[str, Codec] = {}
        for codec in (JPEG, PNG, WEBP) if codecs is None else codecs:
            self.register(codec)

    def register(self, codec: Codec) -> None:
        self._codecs[codec.name] = codec

    @property
    def formats(self) -> List[str]:
        return sorted(self._codecs)

    def get(self, name: str) -> Codec:
        """Return the codec for a format tag. Raises UnsupportedOutputFormat if unknown."""
        codec = self._codecs.get(normalize_format(name))
        if codec is None:
            raise UnsupportedOutputFormat(
                f"Unsupported output format: {name!r}. Available: {self.formats}"
            )
        return codec

    def sniff(self, data: bytes) -> Codec:
        """Return the codec whose signature matches the start of data."""
        header = data[:HEADER_SIZE]
        for codec in self._codecs.values():
            if codec.matches(header):
                return codec
        raise UnsupportedSourceFormat(f"Unsupported image format, file header: {header.hex()}")

    def decode(self, data: bytes) -> Image.Image:
        codec = self.sniff(data)
        self.logger.debug(f"Decoding {len(data)} bytes as {codec.name}")
        return codec.decode(data)

    def encode(self, img: Image.Image, name: str, quality: int) -> bytes:
        return self.get(name).encode(img, quality)

    def content_type(self, name: str) -> str:
        return self.get(name).content_type
