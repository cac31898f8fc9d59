"""Step-by-step simulator of a JavaScript-style event loop."""

__version__ = "0.1.0"
