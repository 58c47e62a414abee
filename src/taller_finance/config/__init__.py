"""Configuration module for taller-finance."""

from taller_finance.config.logging import configure_logging, get_logger
from taller_finance.config.settings import FlatSettings, get_settings

__all__ = ["FlatSettings", "get_settings", "configure_logging", "get_logger"]
