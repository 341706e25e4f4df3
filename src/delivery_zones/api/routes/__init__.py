"""Route group exports."""

from . import admin, areas, health, menu

__all__ = ["areas", "menu", "admin", "health"]
