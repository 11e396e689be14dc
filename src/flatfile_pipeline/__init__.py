# src/flatfile_pipeline/__init__.py
"""
Flatfile contacts pipeline package exports.
"""

from .flatfile_listener.config_loader import init_env, load_blueprint, get_config
from .flatfile_listener.main import main as listener_main

__all__ = [
    "init_env",
    "load_blueprint",
    "get_config",
    "listener_main",
]
