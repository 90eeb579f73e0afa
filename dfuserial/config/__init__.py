"""Configuration helpers for the DFU serial transport."""

from . import logging, settings  # noqa: F401  # pyright: ignore[reportUnusedImport]
from .settings import TransportConfig, load_config

__all__ = ["TransportConfig", "load_config"]
