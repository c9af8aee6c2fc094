"""Route group exports."""

from . import cities, health, routes

__all__ = ["cities", "health", "routes"]
