"""tether: many-to-many relation registry, list formatting and dispatch."""

__version__ = "0.3.0"
