"""
ThumbnailEngine - decode, resolve geometry, composite and encode.
"""

import logging
from typing import Optional

from .codec import CodecRegistry
from .compositor import composite
from .descriptor import TransformDescriptor
from .geometry import resolve_layout


class ThumbnailEngine:
    """
    Turns source bytes and a descriptor into encoded thumbnail bytes.

    Stateless apart from its codec registry, so one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        codecs: Optional[CodecRegistry] = None,
        upscale: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize engine.

        Args:
            codecs: Codec registry (default: JPEG, PNG, WebP)
            upscale: Let fit and pad modes enlarge sources smaller than the target
            logger: Optional logger instance
        """
        self.logger = logger or logging.getLogger(__name__)
        self.codecs = codecs or CodecRegistry(logger=self.logger)
        self.upscale = upscale

    def generate(self, data: bytes, descriptor: TransformDescriptor) -> bytes:
        """
        Generate a thumbnail.

        Args:
            data: Original image bytes
            descriptor: Parsed request

        Returns:
            Encoded thumbnail bytes in descriptor.output_format
        """
        img = self.codecs.decode(data)
        codec = self.codecs.get(descriptor.output_format)

        layout = resolve_layout(
            img.width, img.height, descriptor.mode,
            descriptor.width, descriptor.height, self.upscale
        )
        self.logger.debug(
            f"{descriptor.mode.token} {img.width}x{img.height} -> "
            f"scaled {layout.scaled_width}x{layout.scaled_height} "
            f"canvas {layout.canvas_width}x{layout.canvas_height} at ({layout.x},{layout.y})"
        )

        result = composite(img, descriptor.mode, layout, descriptor.background)
        return codec.encode(result, descriptor.quality)

    def content_type(self, descriptor: TransformDescriptor) -> str:
        return self.codecs.content_type(descriptor.output_format)
