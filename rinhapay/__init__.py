"""Payment service that records payments and routes them to healthy processors."""

__version__ = "0.1.0"