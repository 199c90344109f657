"""Domain data models for the Crypto Recovery planner.

Re-exports all model classes for convenient imports::

    from cryptorecovery.models import Position, ProjectionRow, StrategyType
"""

from cryptorecovery.models.position import Position
from cryptorecovery.models.projection import ProjectionRow
from cryptorecovery.models.search import CoinSearchResult
from cryptorecovery.models.types import CoinId, CoinSymbol, PositionId, StrategyType

__all__ = [
    "CoinId",
    "CoinSearchResult",
    "CoinSymbol",
    "Position",
    "PositionId",
    "ProjectionRow",
    "StrategyType",
]
