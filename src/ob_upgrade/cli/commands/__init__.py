"""CLI command modules for ob."""

from .internal import app as internal_app
from .upgrade import upgrade

__all__ = ["internal_app", "upgrade"]
