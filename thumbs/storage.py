"""
Blob stores for original images and generated thumbnails.

All stores share the same small API: exists(key), load(key) and
store(key, data). Missing keys raise NotFound; backend failures raise
StorageError.
"""

import logging
import os
import tempfile
import threading
import time
from abc import ABC, abstractmethod
from typing import Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from .config import S3Config, StoreConfig
from .errors import NotFound, StorageError

MISSING_CODES = ('404', 'NoSuchKey', 'NotFound')


class BlobStore(ABC):
    """Key-addressed byte storage."""

    @abstractmethod
    def exists(self, key: str) -> bool:
        ...

    @abstractmethod
    def load(self, key: str) -> bytes:
        ...

    @abstractmethod
    def store(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        ...

    def modified(self, key: str) -> Optional[float]:
        """Last modification time of key as a POSIX timestamp, or None if unknown."""
        return None


class MemoryStore(BlobStore):
    """Dict-backed store, for tests and throwaway thumbnail caches."""

    def __init__(self, objects: Optional[Dict[str, bytes]] = None):
        self.objects: Dict[str, bytes] = dict(objects or {})
        self.mtimes: Dict[str, float] = dict.fromkeys(self.objects, time.time())
        self._lock = threading.Lock()

    def exists(self, key: str) -> bool:
        with self._lock:
            return key in self.objects

    def load(self, key: str) -> bytes:
        with self._lock:
            try:
                return self.objects[key]
            except KeyError:
                raise NotFound(f"Missing object: {key}")

    def store(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        with self._lock:
            self.objects[key] = bytes(data)
            self.mtimes[key] = time.time()

    def modified(self, key: str) -> Optional[float]:
        with self._lock:
            return self.mtimes.get(key)


class LocalStore(BlobStore):
    """
    Store rooted at a local directory.

    Writes go to a temp file in the target directory and are moved into
    place, so readers never see a partial file.
    """

    def __init__(self, root_path: str, logger: Optional[logging.Logger] = None):
        self.root_path = os.path.realpath(root_path)
        self.logger = logger or logging.getLogger(__name__)

    def path_for(self, key: str) -> str:
        """Return the filesystem path for a key. Raises StorageError if it escapes the root."""
        try:
            path = os.path.realpath(os.path.join(self.root_path, key.lstrip('/')))
        except ValueError as e:
            raise StorageError(f"Invalid key {key!r}: {e}") from e
        if os.path.commonpath([self.root_path, path]) != self.root_path:
            raise StorageError(f"Key escapes store root: {key}")
        return path

    def exists(self, key: str) -> bool:
        return os.path.isfile(self.path_for(key))

    def load(self, key: str) -> bytes:
        path = self.path_for(key)
        try:
            with open(path, 'rb') as f:
                return f.read()
        except FileNotFoundError:
            raise NotFound(f"Missing file: {key}")
        except OSError as e:
            raise StorageError(f"Could not read {key}: {e}") from e

    def modified(self, key: str) -> Optional[float]:
        try:
            return os.path.getmtime(self.path_for(key))
        except OSError:
            return None

    def store(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        path = self.path_for(key)
        tmp_path = None
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=os.path.dirname(path), prefix='.tmp_')
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            os.replace(tmp_path, path)
            tmp_path = None
        except OSError as e:
            raise StorageError(f"Could not write {key}: {e}") from e
        finally:
            if tmp_path is not None:
                self._remove_tempfile(tmp_path)

    def _remove_tempfile(self, tmp_path: str) -> None:
        if os.path.exists(tmp_path):
            try:
                os.remove(tmp_path)
            except OSError as e:
                self.logger.warning(f"Could not delete {tmp_path}: {e}")


class S3Store(BlobStore):
    """
    Store backed by an S3/MinIO bucket under a key prefix.
    """

    def __init__(
        self,
        config: S3Config,
        prefix: str = '',
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize S3 store.

        Args:
            config: S3 connection settings
            prefix: Key prefix inside the bucket (e.g. 'originals')
            logger: Optional logger instance
        """
        self.config = config
        self.prefix = prefix.strip('/')
        self.logger = logger or logging.getLogger(__name__)

        self._client = boto3.client(
            's3',
            endpoint_url=config.endpoint,
            aws_access_key_id=config.access_key,
            aws_secret_access_key=config.secret_key,
            region_name=config.region,
            config=Config(
                signature_version='s3v4',
                s3={'addressing_style': 'path'}
            ),
            verify=config.verify_ssl
        )

    @property
    def client(self):
        """Return the underlying boto3 client."""
        return self._client

    def s3_key(self, key: str) -> str:
        """Normalize a store key into a full S3 object key."""
        return f"{self.prefix}/{key.lstrip('/')}".lstrip('/')

    def exists(self, key: str) -> bool:
        try:
            self._client.head_object(Bucket=self.config.bucket, Key=self.s3_key(key))
            return True
        except ClientError as e:
            if e.response['Error']['Code'] in MISSING_CODES:
                return False
            raise StorageError(f"S3 head_object failed for {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"S3 head_object failed for {key}: {e}") from e

    def load(self, key: str) -> bytes:
        try:
            response = self._client.get_object(Bucket=self.config.bucket, Key=self.s3_key(key))
            return response['Body'].read()
        except ClientError as e:
            if e.response['Error']['Code'] in MISSING_CODES:
                raise NotFound(f"Missing object: {key}")
            raise StorageError(f"S3 get_object failed for {key}: {e}") from e
        except BotoCoreError as e:
            raise StorageError(f"S3 get_object failed for {key}: {e}") from e

    def modified(self, key: str) -> Optional[float]:
        try:
            response = self._client.head_object(Bucket=self.config.bucket, Key=self.s3_key(key))
        except (ClientError, BotoCoreError) as e:
            self.logger.debug(f"No modification time for {key}: {e}")
            return None
        last_modified = response.get('LastModified')
        return last_modified.timestamp() if last_modified else None

    def store(self, key: str, data: bytes, content_type: Optional[str] = None) -> None:
        try:
            self._client.put_object(
                Bucket=self.config.bucket,
                Key=self.s3_key(key),
                Body=data,
                ContentType=content_type or 'application/octet-stream'
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"S3 put_object failed for {key}: {e}") from e


def build_store(
    store_config: StoreConfig,
    s3_config: Optional[S3Config] = None,
    logger: Optional[logging.Logger] = None
) -> BlobStore:
    """Create the store described by store_config."""
    if store_config.kind == 'local':
        return LocalStore(store_config.root_path, logger=logger)
    if store_config.kind == 's3':
        return S3Store(s3_config or S3Config.from_env(), store_config.prefix, logger=logger)
    if store_config.kind == 'memory':
        return MemoryStore()
    raise ValueError(f"Unknown storage kind: {store_config.kind!r}")
