"""
URL-driven thumbnail server.

Requests name a transformation and a source image::

    /{mode}{width}x{height}[,{color}][,q{quality}][,{format}]/{source-path}

Thumbnails are generated with Pillow on first request and kept in a
thumbnail store (local directory or S3) for every later one.
"""

__version__ = "1.0.0"

from .errors import (
    Outcome, ThumbsError, BadRequest, InvalidRequestPath, InvalidMode,
    InvalidDimensions, DimensionsTooLarge, NotFound, SourceNotFound,
    StorageError, GenerationError, UnsupportedSourceFormat, DecodeFailed,
    UnsupportedOutputFormat, EncodeFailed,
)
from .descriptor import (
    Anchor, HAlign, VAlign, Fit, Pad, Crop, TransformDescriptor, DescriptorParser,
)
from .geometry import Layout, resolve_layout
from .compositor import composite
from .codec import Codec, CodecRegistry
from .engine import ThumbnailEngine
from .config import S3Config, StoreConfig, ThumbsConfig
from .storage import BlobStore, LocalStore, MemoryStore, S3Store, build_store
from .pipeline import Thumbnail, ThumbnailPipeline
from .warm import Warmer, WarmStats

__all__ = [
    "Outcome",
    "ThumbsError",
    "BadRequest",
    "InvalidRequestPath",
    "InvalidMode",
    "InvalidDimensions",
    "DimensionsTooLarge",
    "NotFound",
    "SourceNotFound",
    "StorageError",
    "GenerationError",
    "UnsupportedSourceFormat",
    "DecodeFailed",
    "UnsupportedOutputFormat",
    "EncodeFailed",
    "Anchor",
    "HAlign",
    "VAlign",
    "Fit",
    "Pad",
    "Crop",
    "TransformDescriptor",
    "DescriptorParser",
    "Layout",
    "resolve_layout",
    "composite",
    "Codec",
    "CodecRegistry",
    "ThumbnailEngine",
    "S3Config",
    "StoreConfig",
    "ThumbsConfig",
    "BlobStore",
    "LocalStore",
    "MemoryStore",
    "S3Store",
    "build_store",
    "Thumbnail",
    "ThumbnailPipeline",
    "Warmer",
    "WarmStats",
]
