"""Strategy registry: maps strategy types to strategy classes."""

import logging
from typing import Type

from encore.schemas.scraper_config import StrategyType
from encore.scrapers.base import BaseStrategy

logger = logging.getLogger(__name__)

# Strategy type -> strategy class mapping
_REGISTRY: dict[StrategyType, Type[BaseStrategy]] = {}


def register_strategy(strategy: StrategyType):
    """Decorator to register a strategy class for a config ``type``."""
    def decorator(cls: Type[BaseStrategy]):
        _REGISTRY[strategy] = cls
        logger.debug(f"Registered extraction strategy: {strategy.value}")
        return cls
    return decorator


def get_strategy_class(strategy: StrategyType) -> Type[BaseStrategy]:
    """Look up the class for a strategy. Every StrategyType must be registered."""
    try:
        return _REGISTRY[strategy]
    except KeyError:
        raise LookupError(f"No extraction strategy registered for {strategy.value}") from None


def missing_strategies() -> list[StrategyType]:
    """Strategy types without a registered class."""
    return [strategy for strategy in StrategyType if strategy not in _REGISTRY]
