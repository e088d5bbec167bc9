"""
Saved Regions Module

Named capture regions persisted between runs.
"""

from .region_store import RegionStore

__all__ = ['RegionStore']
