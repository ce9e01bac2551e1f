"""Base recommender class for common functionality."""
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Set

from dining_app.schemas.schemas import (
    DailyGoals,
    MenuItemCandidate,
    RecommendationConstraints,
    RecommendationResult,
)

class BaseRecommender(ABC):
    @abstractmethod
    def recommend(
        self,
        items: Iterable[MenuItemCandidate],
        constraints: Optional[RecommendationConstraints] = None,
        daily_goals: Optional[DailyGoals] = None,
        recent_item_ids: Optional[Set[int]] = None,
    ) -> RecommendationResult:
        """Pick the best meal from `items`."""
        pass
