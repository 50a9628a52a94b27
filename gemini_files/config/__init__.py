"""
Configuration resolution.
"""

from .runtime_config import RuntimeConfig, parse_positive_number

__all__ = ["RuntimeConfig", "parse_positive_number"]
