"""
Interaction Package

Pointer-driven region editing with ephemeral previews and a single
commit per gesture.
"""

from .gesture import Creating, GestureBuffer, GestureState, Idle, Moving, Resizing
from .editor import RegionEditor

__all__ = [
    "Creating",
    "GestureBuffer",
    "GestureState",
    "Idle",
    "Moving",
    "Resizing",
    "RegionEditor",
]
