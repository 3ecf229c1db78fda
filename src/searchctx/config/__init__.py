"""Configuration management."""
from searchctx.config.settings import Config
from searchctx.config.constants import *

__all__ = [
    "Config",
]
