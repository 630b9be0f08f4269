"""Policy store access for the resolution pipeline."""
from __future__ import annotations

from .base import PolicyStore
from .fixtures import build_store, load_fixture
from .sqlite import SQLitePolicyStore

__all__ = [
    "PolicyStore",
    "SQLitePolicyStore",
    "build_store",
    "load_fixture",
]
