"""Field inspection capture: observations, report composition, export."""

__version__ = "0.1.0"
