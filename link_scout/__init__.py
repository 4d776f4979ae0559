# link_scout/__init__.py
"""
LinkScout package initializer.
Defines package version; the CLI entry point lives in ``link_scout.cli:main``.
"""
__version__ = "0.1.0"

__all__ = ["__version__"]
