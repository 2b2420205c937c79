"""Kotoba utilities."""

from .data_loader import load_data_file, get_available_catalogs

__all__ = ["load_data_file", "get_available_catalogs"]
