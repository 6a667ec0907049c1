"""locale-harness: locale-configured test runs against Android virtual devices."""

__version__ = "0.1.0"

__all__ = [
    "cli",
    "config",
    "reporting",
    "runtime",
]
