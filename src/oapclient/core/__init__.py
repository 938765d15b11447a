"""Core request parameters, caller identity and administrator operations."""

from __future__ import annotations

from .credentials import Credentials
from .params import Param, Params

__all__ = ["Credentials", "Param", "Params"]
