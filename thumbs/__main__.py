"""
Main entry point for running the package as a module.

Usage:
    python -m thumbs serve --image-root ./images --thumbs-root ./thumbs
    python -m thumbs render m200x200 photo.jpg -o thumb.jpg
    python -m thumbs warm --token m200x200 photos/a.jpg
"""

import sys
from .cli import main

if __name__ == '__main__':
    sys.exit(main())
