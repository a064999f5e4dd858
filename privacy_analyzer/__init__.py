"""Privacy analyzer: heuristic detection of third-party scripts,
dynamic code execution and fingerprinting on web pages."""

__version__ = "0.1.0"
