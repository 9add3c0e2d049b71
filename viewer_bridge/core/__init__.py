"""Core bridge functionality."""
from .config import Settings, get_settings

__all__ = ["get_settings", "Settings"]
