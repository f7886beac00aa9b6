"""
Configuration for the thumbnail server, read from environment variables.
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

STORAGE_KINDS = ('local', 's3', 'memory')


def str2bool(value, raise_exc=False):
    """converts diverse string values into boolean True or False."""
    true_set = {'yes', 'true', 't', 'y', '1'}
    false_set = {'no', 'false', 'f', 'n', '0'}

    if isinstance(value, str):
        value = value.lower()
        if value in true_set:
            return True
        if value in false_set:
            return False

    if raise_exc:
        raise ValueError('Expected "%s"' % '", "'.join(true_set | false_set))
    return None


def _env_bool(name: str, default: bool) -> bool:
    value = str2bool(os.getenv(name))
    return default if value is None else value


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == '':
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {value!r}")


@dataclass
class S3Config:
    """
    S3/MinIO connection settings.

    Attributes:
        endpoint: Endpoint URL
        bucket: Bucket holding both stores
        access_key: Access key id
        secret_key: Secret access key
        region: Optional region name
        verify_ssl: Verify the endpoint certificate
    """
    endpoint: Optional[str] = None
    bucket: Optional[str] = None
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: Optional[str] = None
    verify_ssl: bool = True

    @classmethod
    def from_env(cls) -> 'S3Config':
        return cls(
            endpoint=os.getenv('S3_ENDPOINT'),
            bucket=os.getenv('S3_BUCKET'),
            access_key=os.getenv('S3_ACCESS_KEY'),
            secret_key=os.getenv('S3_SECRET_KEY'),
            region=os.getenv('S3_REGION'),
            verify_ssl=_env_bool('S3_VERIFY_SSL', True),
        )

    def validate(self) -> List[str]:
        errors = []
        if not self.endpoint:
            errors.append("S3_ENDPOINT is not set")
        if not self.bucket:
            errors.append("S3_BUCKET is not set")
        return errors


@dataclass
class StoreConfig:
    """
    Where one blob store lives.

    Attributes:
        kind: 'local', 's3' or 'memory'
        root_path: Directory for local stores
        prefix: Key prefix for S3 stores
    """
    kind: str = 'local'
    root_path: Optional[str] = None
    prefix: str = ''

    @classmethod
    def from_env(cls, name: str, default_root: str) -> 'StoreConfig':
        """Read THUMBS_{name}_STORAGE, THUMBS_{name}_ROOT and THUMBS_{name}_PREFIX."""
        return cls(
            kind=os.getenv(f'THUMBS_{name}_STORAGE', 'local').lower(),
            root_path=os.getenv(f'THUMBS_{name}_ROOT', default_root),
            prefix=os.getenv(f'THUMBS_{name}_PREFIX', ''),
        )

    def validate(self, label: str) -> List[str]:
        if self.kind not in STORAGE_KINDS:
            return [f"{label} storage must be one of {', '.join(STORAGE_KINDS)}, got {self.kind!r}"]
        if self.kind == 'local' and not self.root_path:
            return [f"{label} storage is local but has no root path"]
        return []


@dataclass
class ThumbsConfig:
    """
    Settings for the engine, the pipeline and the HTTP shell.

    Attributes:
        max_dimension: Largest width or height a request may ask for
        default_quality: Encoder quality when the request gives none
        cache_control: Cache-Control header for served thumbnails ('' disables)
        upscale: Let fit and pad modes enlarge sources smaller than the target
        strict_persist: Fail the request when the thumbnail cannot be stored
        host: Bind address
        port: Bind port
        server: Bottle server adapter name
        mount: URL prefix the thumbnail route is mounted under
        image_store: Store holding originals (read only)
        thumbs_store: Store receiving generated thumbnails
        s3: Connection settings shared by S3 stores
    """
    max_dimension: int = 2000
    default_quality: int = 85
    cache_control: str = 'public, max-age=31536000'
    upscale: bool = False
    strict_persist: bool = False
    host: str = '0.0.0.0'
    port: int = 8080
    server: str = 'wsgiref'
    mount: str = ''
    image_store: StoreConfig = field(default_factory=lambda: StoreConfig(root_path='images'))
    thumbs_store: StoreConfig = field(default_factory=lambda: StoreConfig(root_path='thumbs'))
    s3: S3Config = field(default_factory=S3Config)

    @classmethod
    def from_env(cls) -> 'ThumbsConfig':
        return cls(
            max_dimension=_env_int('THUMBS_MAX_DIMENSION', 2000),
            default_quality=_env_int('THUMBS_DEFAULT_QUALITY', 85),
            cache_control=os.getenv('THUMBS_CACHE_CONTROL', 'public, max-age=31536000'),
            upscale=_env_bool('THUMBS_UPSCALE', False),
            strict_persist=_env_bool('THUMBS_STRICT_PERSIST', False),
            host=os.getenv('THUMBS_HOST', '0.0.0.0'),
            port=_env_int('THUMBS_PORT', 8080),
            server=os.getenv('THUMBS_SERVER', 'wsgiref'),
            mount=os.getenv('THUMBS_MOUNT', ''),
            image_store=StoreConfig.from_env('IMAGE', 'images'),
            thumbs_store=StoreConfig.from_env('THUMBS', 'thumbs'),
            s3=S3Config.from_env(),
        )

    @property
    def uses_s3(self) -> bool:
        return 's3' in (self.image_store.kind, self.thumbs_store.kind)

    def validate(self, check_storage: bool = True) -> List[str]:
        """Return a list of configuration problems; empty when valid."""
        errors = []
        if self.max_dimension <= 0:
            errors.append("max_dimension must be positive")
        if not 0 <= self.default_quality <= 100:
            errors.append("default_quality must be between 0 and 100")
        if not 0 < self.port < 65536:
            errors.append(f"port out of range: {self.port}")
        if self.mount and not self.mount.startswith('/'):
            errors.append(f"mount must start with '/': {self.mount!r}")
        if not check_storage:
            return errors
        errors.extend(self.image_store.validate('image'))
        errors.extend(self.thumbs_store.validate('thumbnail'))
        if self.uses_s3:
            errors.extend(self.s3.validate())
        return errors
