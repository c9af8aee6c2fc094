"""Route resolution and batch optimization for the fleet planning dashboard."""

__version__ = "0.1.0"
