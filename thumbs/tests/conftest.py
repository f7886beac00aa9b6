"""
Pytest fixtures for thumbs tests.
"""

import io
import logging

import pytest
from PIL import Image


def encode(img, format, **options):
    """Encode a PIL image to bytes."""
    buffer = io.BytesIO()
    img.save(buffer, format=format, **options)
    return buffer.getvalue()


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep configuration tests independent of the host environment."""
    import os
    for name in list(os.environ):
        if name.startswith('THUMBS_') or name.startswith('S3_'):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def landscape_image():
    """Fixture providing an 800x600 solid blue image."""
    return Image.new('RGB', (800, 600), color=(0, 0, 255))


@pytest.fixture
def landscape_jpeg(landscape_image):
    """Fixture providing 800x600 JPEG bytes."""
    return encode(landscape_image, 'JPEG', quality=90)


@pytest.fixture
def landscape_png(landscape_image):
    """Fixture providing 800x600 PNG bytes."""
    return encode(landscape_image, 'PNG')


@pytest.fixture
def portrait_png():
    """Fixture providing 600x800 PNG bytes."""
    return encode(Image.new('RGB', (600, 800), color=(0, 128, 0)), 'PNG')


@pytest.fixture
def alpha_png():
    """Fixture providing a 200x100 fully transparent PNG."""
    return encode(Image.new('RGBA', (200, 100), color=(255, 0, 0, 0)), 'PNG')


@pytest.fixture
def sample_webp():
    """Fixture providing 300x200 WebP bytes."""
    return encode(Image.new('RGB', (300, 200), color=(200, 100, 50)), 'WEBP', quality=80)


@pytest.fixture
def sample_gif():
    """Fixture providing GIF bytes."""
    return encode(Image.new('RGB', (50, 50), color='red'), 'GIF')


@pytest.fixture
def gradient_image():
    """Fixture providing a 256x256 RGB gradient (compresses differently per quality)."""
    gradient = Image.linear_gradient('L')
    return Image.merge('RGB', (gradient, gradient.rotate(90), gradient.rotate(180)))


@pytest.fixture
def image_store(landscape_jpeg, alpha_png, sample_webp, sample_gif):
    """Fixture providing an in-memory image store with a few originals."""
    from thumbs.storage import MemoryStore

    return MemoryStore({
        'photos/landscape.jpg': landscape_jpeg,
        'photos/alpha.png': alpha_png,
        'photos/cover.webp': sample_webp,
        'photos/anim.gif': sample_gif,
        'photos/lying.png': landscape_jpeg,
    })


@pytest.fixture
def thumbs_store():
    """Fixture providing an empty in-memory thumbnail store."""
    from thumbs.storage import MemoryStore

    return MemoryStore()


@pytest.fixture
def logger():
    """Fixture providing a logger."""
    return logging.getLogger('test')


@pytest.fixture
def pipeline(image_store, thumbs_store, logger):
    """Fixture providing a pipeline over the in-memory stores."""
    from thumbs.pipeline import ThumbnailPipeline

    return ThumbnailPipeline(image_store, thumbs_store, logger=logger)
