"""
fields package

Field list and image info dock.
"""

from fields.dock import FieldDock

__all__ = ["FieldDock"]
