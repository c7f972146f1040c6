"""UDP DNS proxy that answers blacklisted queries with an error and forwards the rest upstream."""

__version__ = "0.1.0"
__all__ = ["__version__"]