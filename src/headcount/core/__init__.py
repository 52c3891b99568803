"""Core configuration for the headcount service."""

from .settings import Settings, settings

__all__ = ["Settings", "settings"]
