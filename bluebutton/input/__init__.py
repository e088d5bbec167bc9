"""
Mouse Input Module

Cursor positioning and left clicks on the local desktop.
"""

from .mouse import MouseController, within_tolerance

__all__ = ['MouseController', 'within_tolerance']
