"""Caller-side service and code generators for Slink Store."""

from .slink_manager import SlinkManager
from .strategies import RandomStrategy, SequentialStrategy, get_strategy_from_config

__all__ = ["SlinkManager", "RandomStrategy", "SequentialStrategy", "get_strategy_from_config"]
