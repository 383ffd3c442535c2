"""HTTP query surface."""

from .server import create_app
