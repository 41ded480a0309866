"""
Configuration for Voronoi diagram computation.
"""

from .config import Settings, settings

__all__ = ['Settings', 'settings']
