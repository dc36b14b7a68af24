"""
Compatibility ranking package.

Scores a user's local connections by DNA-vector similarity (with an
interest-overlap fallback) and returns them best first.
"""

from .service import RankingService, ranking_service

__all__ = ["RankingService", "ranking_service"]
