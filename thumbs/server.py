"""
Bottle application serving thumbnails at {mount}/{token}/{source-path}.
"""

import logging
import time
from functools import wraps
from typing import Optional

from bottle import Bottle, HTTPResponse, Response, abort, http_date, response

from .config import ThumbsConfig
from .errors import Outcome, ThumbsError, UnsupportedSourceFormat
from .pipeline import ThumbnailPipeline

STATUS_CODES = {
    Outcome.BAD_REQUEST: 400,
    Outcome.NOT_FOUND: 404,
    Outcome.STORAGE_ERROR: 500,
    Outcome.GENERATION_ERROR: 500,
}

ONE_YEAR = 365 * 24 * 60 * 60


def allow_cross_origin(func):
    """Decorate a view function to allow cross domain access."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            result = func(*args, **kwargs)
        except HTTPResponse as r:
            r.set_header('Access-Control-Allow-Origin', '*')
            raise
        (result if isinstance(result, Response) else response) \
            .set_header('Access-Control-Allow-Origin', '*')
        return result
    return wrapper


def status_for(error: ThumbsError) -> int:
    if isinstance(error, UnsupportedSourceFormat):
        return 415
    return STATUS_CODES[error.outcome]


def set_cache_headers(resp, cache_control: str) -> None:
    """Set Cache-Control and a one year Expires header."""
    if cache_control:
        resp.set_header('Cache-Control', cache_control)
        resp.set_header('Expires', http_date(time.time() + ONE_YEAR))


def create_app(
    pipeline: ThumbnailPipeline,
    config: Optional[ThumbsConfig] = None,
    logger: Optional[logging.Logger] = None
) -> Bottle:
    """
    Create the Bottle application.

    Args:
        pipeline: Pipeline answering thumbnail requests
        config: Settings for mount point and cache headers
        logger: Optional logger instance
    """
    config = config or ThumbsConfig()
    logger = logger or logging.getLogger(__name__)
    app = Bottle()

    @app.route('/')
    def main_page():
        logger.debug("Hit root")
        response.content_type = 'text/plain; charset=utf-8'
        return 'Thumbnail server'

    @app.route(config.mount.rstrip('/') + '/<token>/<source:path>')
    @allow_cross_origin
    def thumbnail(token, source):
        """Serve a stored thumbnail, generating it first if needed."""
        try:
            thumb = pipeline.serve(token, source)
        except ThumbsError as e:
            status = status_for(e)
            logger.log(
                logging.ERROR if status >= 500 else logging.INFO,
                f"{token}/{source}: {e.outcome.value} ({status}): {e}"
            )
            abort(status, str(e))

        response.content_type = thumb.content_type
        set_cache_headers(response, config.cache_control)
        response.set_header('X-Thumbs-Cache', 'HIT' if thumb.cached else 'MISS')
        if thumb.last_modified is not None:
            response.set_header('Last-Modified', http_date(thumb.last_modified))
        return thumb.data

    return app
