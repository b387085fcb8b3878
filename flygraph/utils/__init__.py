"""
Small utilities shared across the package.
"""
from .logging import get_logger, LEVELS
