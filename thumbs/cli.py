"""
Command Line Interface for the thumbnail server.
"""

import argparse
import logging
import os
from typing import List, Optional

import urllib3
from bottle import run

from .config import ThumbsConfig
from .descriptor import DescriptorParser
from .engine import ThumbnailEngine
from .errors import ThumbsError
from .pipeline import ThumbnailPipeline
from .server import create_app
from .warm import Warmer


def setup_logging(verbose: bool, level_name: str = 'INFO') -> logging.Logger:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.getLevelName(level_name)

    logging.basicConfig(
        level=level,
        format='%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    logging.getLogger('boto3').setLevel(logging.WARNING)
    logging.getLogger('botocore').setLevel(logging.WARNING)
    logging.getLogger('urllib3').setLevel(logging.WARNING)
    logging.getLogger('PIL').setLevel(logging.WARNING)

    return logging.getLogger('thumbs')


def get_config(args: argparse.Namespace) -> ThumbsConfig:
    """Get configuration from environment and CLI overrides."""
    config = ThumbsConfig.from_env()

    if getattr(args, 'max_dimension', None):
        config.max_dimension = args.max_dimension
    if getattr(args, 'quality', None) is not None:
        config.default_quality = args.quality
    if getattr(args, 'upscale', False):
        config.upscale = True
    if getattr(args, 'host', None):
        config.host = args.host
    if getattr(args, 'port', None):
        config.port = args.port
    if getattr(args, 'image_root', None):
        config.image_store.kind = 'local'
        config.image_store.root_path = args.image_root
    if getattr(args, 'thumbs_root', None):
        config.thumbs_store.kind = 'local'
        config.thumbs_store.root_path = args.thumbs_root

    return config


def load_config(
    args: argparse.Namespace,
    logger: logging.Logger,
    check_storage: bool = True
) -> Optional[ThumbsConfig]:
    """Return a validated config, or None after logging the problems."""
    try:
        config = get_config(args)
    except ValueError as e:
        logger.error(str(e))
        return None

    errors = config.validate(check_storage)
    if errors:
        for error in errors:
            logger.error(error)
        return None

    if config.uses_s3 and not config.s3.verify_ssl:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
    return config


def add_config_arguments(parser: argparse.ArgumentParser) -> None:
    """Add configuration override arguments to a parser."""
    group = parser.add_argument_group('Configuration')
    group.add_argument('--max-dimension', type=int, help='Override THUMBS_MAX_DIMENSION')
    group.add_argument('--quality', type=int, help='Override THUMBS_DEFAULT_QUALITY')
    group.add_argument('--upscale', action='store_true', help='Enlarge sources smaller than the target')


def add_storage_arguments(parser: argparse.ArgumentParser) -> None:
    """Add storage configuration arguments to a parser."""
    group = parser.add_argument_group('Storage')
    group.add_argument('--image-root', metavar='PATH',
                       help='Serve originals from a local directory')
    group.add_argument('--thumbs-root', metavar='PATH',
                       help='Store thumbnails in a local directory')


def cmd_serve(args: argparse.Namespace) -> int:
    """Execute serve command."""
    logger = setup_logging(args.verbose, os.getenv('THUMBS_LOG_LEVEL', 'INFO').upper())
    config = load_config(args, logger)
    if config is None:
        return 1

    logger.info(f"Image storage: {config.image_store.kind} {config.image_store.root_path or config.image_store.prefix}")
    logger.info(f"Thumbnail storage: {config.thumbs_store.kind} {config.thumbs_store.root_path or config.thumbs_store.prefix}")
    logger.info(f"Max dimension: {config.max_dimension}px, default quality: {config.default_quality}")

    pipeline = ThumbnailPipeline.from_config(config, logger)
    app = create_app(pipeline, config, logger)

    logger.info(f"Running server on {config.host}:{config.port}")
    run(app=app, host=config.host, port=config.port, server=config.server, quiet=not args.verbose)
    logger.info("Exiting.")
    return 0


def cmd_render(args: argparse.Namespace) -> int:
    """Execute render command: transform one local file."""
    logger = setup_logging(args.verbose)
    config = load_config(args, logger, check_storage=False)
    if config is None:
        return 1

    parser = DescriptorParser(config.max_dimension, config.default_quality, logger)
    engine = ThumbnailEngine(upscale=config.upscale, logger=logger)

    try:
        descriptor = parser.parse(args.token, os.path.basename(args.input))
        with open(args.input, 'rb') as f:
            data = f.read()
        result = engine.generate(data, descriptor)
    except FileNotFoundError:
        logger.error(f"Input not found: {args.input}")
        return 1
    except ThumbsError as e:
        logger.error(f"Render failed: {e}")
        return 1

    with open(args.output, 'wb') as f:
        f.write(result)
    logger.info(f"Wrote {args.output} ({len(result)} bytes, {engine.content_type(descriptor)})")
    return 0


def read_keys(args: argparse.Namespace) -> List[str]:
    """Collect source keys from arguments and an optional keys file."""
    keys = list(args.keys or [])
    if args.keys_file:
        with open(args.keys_file) as f:
            keys.extend(line.strip() for line in f if line.strip() and not line.startswith('#'))
    return keys


def cmd_warm(args: argparse.Namespace) -> int:
    """Execute warm command: pre-generate thumbnails."""
    logger = setup_logging(args.verbose)
    config = load_config(args, logger)
    if config is None:
        return 1

    try:
        keys = read_keys(args)
    except FileNotFoundError:
        logger.error(f"Keys file not found: {args.keys_file}")
        return 1
    if not keys:
        logger.error("No source keys given")
        return 1

    warmer = Warmer(ThumbnailPipeline.from_config(config, logger), dry_run=args.dry_run, logger=logger)
    try:
        stats = warmer.warm(args.token, keys)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130

    if not args.quiet:
        print()
        print(f"Generated: {stats.generated}")
        print(f"Cached: {stats.cached}")
        print(f"Errors: {stats.errors}")
        print(f"Time: {stats.elapsed_seconds:.1f}s")

    return 0 if stats.errors == 0 else 1


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='thumbs',
        description='URL-driven thumbnail server',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Request format:
  /{mode}{width}x{height}[,{color}][,q{quality}][,{format}]/{source-path}

  Modes: m (fit), w[lcr][tcb] (pad), [lcr][tcb] (crop)

Examples:
  thumbs serve --image-root ./images --thumbs-root ./thumbs
  thumbs render wcc200x200,ff0000 photo.jpg -o thumb.jpg
  thumbs warm --token m200x200 --token cc100x100 photos/a.jpg photos/b.png
"""
    )

    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Serve command
    serve_parser = subparsers.add_parser('serve', help='Run the HTTP server')
    serve_parser.add_argument('--host', help='Override THUMBS_HOST')
    serve_parser.add_argument('--port', type=int, help='Override THUMBS_PORT')
    serve_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_config_arguments(serve_parser)
    add_storage_arguments(serve_parser)

    # Render command
    render_parser = subparsers.add_parser('render', help='Render one thumbnail from a local file')
    render_parser.add_argument('token', help='Transformation token, e.g. m200x200,q80')
    render_parser.add_argument('input', help='Input image file')
    render_parser.add_argument('-o', '--output', required=True, help='Output file')
    render_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_config_arguments(render_parser)

    # Warm command
    warm_parser = subparsers.add_parser('warm', help='Pre-generate thumbnails into the thumbnail store')
    warm_parser.add_argument('-t', '--token', action='append', required=True,
                             help='Transformation token (repeatable)')
    warm_parser.add_argument('keys', nargs='*', help='Source keys in the image store')
    warm_parser.add_argument('--keys-file', help='File with one source key per line')
    warm_parser.add_argument('-n', '--dry-run', action='store_true', help='Show what would be done')
    warm_parser.add_argument('-q', '--quiet', action='store_true', help='Suppress summary output')
    warm_parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    add_config_arguments(warm_parser)
    add_storage_arguments(warm_parser)

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    if parsed_args.command == 'serve':
        return cmd_serve(parsed_args)
    elif parsed_args.command == 'render':
        return cmd_render(parsed_args)
    elif parsed_args.command == 'warm':
        return cmd_warm(parsed_args)

    return 1
