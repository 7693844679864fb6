"""Generic bit-packed record dictionaries loaded once from TOML documents."""

from __future__ import annotations

from .dictionary import *  # noqa: F401,F403
from .dictionary import __all__ as _dictionary_all

__all__ = list(_dictionary_all) + ["tools"]
__version__ = "0.1.0"


def __getattr__(name: str):
    if name == "tools":
        import importlib

        module = importlib.import_module(f"{__name__}.tools")
        globals()[name] = module
        return module
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
