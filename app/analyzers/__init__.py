# app/analyzers/__init__.py
from . import accent

__all__ = ["accent"]
