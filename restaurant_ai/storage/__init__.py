"""
Data access layer.

Responsibilities:
- Define the entities the engines read (menu items, users, preferences,
  interactions, orders).
- Expose the ``DataAccessor`` read contract and an in-memory implementation.
- Load datasets from CSV or build the deterministic demo dataset.
"""
from .accessor import DataAccessor, InMemoryDataAccessor, fetch
from .demo import DEMO_RESTAURANT_ID, build_demo_accessor
from .loader import load_accessor

__all__ = [
    "DEMO_RESTAURANT_ID",
    "DataAccessor",
    "InMemoryDataAccessor",
    "build_demo_accessor",
    "fetch",
    "load_accessor",
]
