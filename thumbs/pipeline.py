"""
ThumbnailPipeline - serves thumbnails from the thumbnail store, generating
and persisting them from the image store on a miss.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

from .config import ThumbsConfig
from .descriptor import DescriptorParser, TransformDescriptor
from .engine import ThumbnailEngine
from .errors import GenerationError, NotFound, SourceNotFound, StorageError, ThumbsError
from .storage import BlobStore, build_store


@dataclass
class Thumbnail:
    """
    A servable thumbnail.

    Attributes:
        data: Encoded image bytes
        content_type: MIME type of data
        cache_key: Thumbnail store key
        cached: True if served from the thumbnail store
        persisted: False if a freshly generated thumbnail could not be stored
        last_modified: POSIX timestamp of the stored or generated bytes, if known
    """
    data: bytes
    content_type: str
    cache_key: str
    cached: bool = False
    persisted: bool = True
    last_modified: Optional[float] = None


class ThumbnailPipeline:
    """
    Cache-mediated thumbnail generation.

    No step is retried; every failure surfaces as a ThumbsError whose
    outcome tells the caller how to respond.
    """

    def __init__(
        self,
        image_store: BlobStore,
        thumbs_store: BlobStore,
        parser: Optional[DescriptorParser] = None,
        engine: Optional[ThumbnailEngine] = None,
        strict_persist: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize pipeline.

        Args:
            image_store: Store with original images (only read)
            thumbs_store: Store receiving generated thumbnails
            parser: Descriptor parser (default limits if omitted)
            engine: Thumbnail engine
            strict_persist: Raise StorageError instead of serving a thumbnail
                that could not be persisted
            logger: Optional logger instance
        """
        self.image_store = image_store
        self.thumbs_store = thumbs_store
        self.logger = logger or logging.getLogger(__name__)
        self.parser = parser or DescriptorParser(logger=self.logger)
        self.engine = engine or ThumbnailEngine(logger=self.logger)
        self.strict_persist = strict_persist

    @classmethod
    def from_config(
        cls,
        config: ThumbsConfig,
        logger: Optional[logging.Logger] = None
    ) -> 'ThumbnailPipeline':
        """Build stores, parser and engine from configuration."""
        logger = logger or logging.getLogger(__name__)
        return cls(
            image_store=build_store(config.image_store, config.s3, logger),
            thumbs_store=build_store(config.thumbs_store, config.s3, logger),
            parser=DescriptorParser(config.max_dimension, config.default_quality, logger),
            engine=ThumbnailEngine(upscale=config.upscale, logger=logger),
            strict_persist=config.strict_persist,
            logger=logger,
        )

    def serve_path(self, path: str) -> Thumbnail:
        """Serve a '{token}/{source}' path."""
        return self.serve_descriptor(self.parser.parse_path(path))

    def serve(self, token: str, source: str) -> Thumbnail:
        return self.serve_descriptor(self.parser.parse(token, source))

    def serve_descriptor(self, descriptor: TransformDescriptor) -> Thumbnail:
        """
        Serve the thumbnail for a descriptor.

        Raises:
            SourceNotFound: the original does not exist
            StorageError: a store failed
            GenerationError: decoding, transforming or encoding failed
        """
        key = descriptor.cache_key

        if self.thumbs_store.exists(key):
            self.logger.info(f"Serving existing thumbnail: {key}")
            try:
                data = self.thumbs_store.load(key)
            except NotFound as e:
                raise StorageError(f"Thumbnail vanished while loading: {key}") from e
            return Thumbnail(
                data, self.engine.content_type(descriptor), key,
                cached=True, last_modified=self.thumbs_store.modified(key)
            )

        self.logger.info(f"Thumbnail not found, generating new one: {key}")

        source_key = descriptor.source_key
        if not self.image_store.exists(source_key):
            self.logger.warning(f"Original image not found: {source_key}")
            raise SourceNotFound(f"Original image not found: {source_key}")

        try:
            source = self.image_store.load(source_key)
        except NotFound as e:
            raise SourceNotFound(f"Original image not found: {source_key}") from e

        data = self.generate(source, descriptor)
        content_type = self.engine.content_type(descriptor)

        self.logger.info(
            f"Generated thumbnail: {key} (mode={descriptor.mode.token}, "
            f"quality={descriptor.quality}, format={descriptor.output_format}, {len(data)} bytes)"
        )

        persisted = self.persist(key, data, content_type)
        return Thumbnail(
            data, content_type, key,
            cached=False, persisted=persisted, last_modified=time.time()
        )

    def generate(self, source: bytes, descriptor: TransformDescriptor) -> bytes:
        try:
            return self.engine.generate(source, descriptor)
        except ThumbsError as e:
            self.logger.error(f"Failed to generate thumbnail {descriptor.cache_key}: {e}")
            raise
        except Exception as e:
            self.logger.exception(f"Unexpected error generating {descriptor.cache_key}: {e}")
            raise GenerationError(f"Failed to generate thumbnail: {e}") from e

    def persist(self, key: str, data: bytes, content_type: str) -> bool:
        """Store a generated thumbnail. Returns False if it could not be stored."""
        try:
            self.thumbs_store.store(key, data, content_type)
            return True
        except StorageError as e:
            self.logger.error(f"Failed to store thumbnail {key}: {e}")
            if self.strict_persist:
                raise
            return False
