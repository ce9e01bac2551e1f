"""Menu recommendation engine.

Searches combinations of a single meal period's menu items for the one that
best balances protein, calories, the caller's constraints and (optionally)
a per-meal share of the user's daily goals. The search is synchronous, has
no I/O and keeps no state between calls.
"""
import logging
from typing import Iterable, List, Optional, Set

from ..base import BaseRecommender
from .utils import (
    CANDIDATE_LIMIT,
    COMBINATION_LIMIT,
    DEFAULT_WEIGHTS,
    ScoringWeights,
    build_targets,
    filter_candidates,
    iter_combinations,
    normalize_constraints,
    rank_candidates,
    score_combination,
)
from dining_app.schemas.schemas import (
    DailyGoals,
    MacroTotals,
    MenuItemCandidate,
    RecommendationConstraints,
    RecommendationItem,
    RecommendationResult,
)

logger = logging.getLogger(__name__)

NO_MATCH_EXPLANATION = "No matching items found for the given filters."
NO_MATCH_WARNING = "No menu items with nutrition data matched the constraints."
EXPLANATION = "Built a recommendation by optimizing protein density and fit to your constraints."
CALORIE_CAP_WARNING = "Best match exceeds your calorie cap."
PROTEIN_TARGET_WARNING = "Best match is below your protein target."


def _no_match(constraints: RecommendationConstraints) -> RecommendationResult:
    return RecommendationResult(
        items=[],
        totals=MacroTotals(),
        constraints=constraints,
        explanation=NO_MATCH_EXPLANATION,
        warnings=[NO_MATCH_WARNING],
    )


class MenuRecommender(BaseRecommender):
    def __init__(self, candidate_limit: int = CANDIDATE_LIMIT, combination_limit: int = COMBINATION_LIMIT,
                 weights: ScoringWeights = DEFAULT_WEIGHTS):
        self.candidate_limit = candidate_limit
        self.combination_limit = combination_limit
        self.weights = weights

    def recommend(
        self,
        items: Iterable[MenuItemCandidate],
        constraints: Optional[RecommendationConstraints] = None,
        daily_goals: Optional[DailyGoals] = None,
        recent_item_ids: Optional[Set[int]] = None,
    ) -> RecommendationResult:
        """Return the best-scoring combination of `items`.

        Args:
            items: menu items for one hall/date/meal period; items without
                calories are skipped
            constraints: bounds and preferences; normalized before use
            daily_goals: per-day targets, split evenly over three meals
            recent_item_ids: ids eaten recently, scored down to avoid repeats
        Returns:
            RecommendationResult; an empty result (never an error) when
            nothing matches
        """
        constraints = normalize_constraints(constraints)
        recent = frozenset(recent_item_ids or ())
        candidates = rank_candidates(filter_candidates(items, constraints), limit=self.candidate_limit)

        if not candidates:
            return _no_match(constraints)

        targets = build_targets(daily_goals)
        best_combo: List[RecommendationItem] = []
        best_score = float("-inf")
        best_totals = MacroTotals()
        evaluated = 0

        for combo in iter_combinations(candidates, constraints.max_items, limit=self.combination_limit):
            evaluated += 1
            score, totals = score_combination(combo, constraints, targets, recent, self.weights)
            # strict: the first combination reaching the maximum wins
            if score > best_score:
                best_score = score
                best_combo = list(combo)
                best_totals = totals

        logger.debug("Scored %d combinations from %d candidates; best=%.2f", evaluated, len(candidates), best_score)
        if not best_combo:
            return _no_match(constraints)


        warnings = []
        if constraints.max_calories is not None and best_totals.calories > constraints.max_calories:
            warnings.append(CALORIE_CAP_WARNING)
        if constraints.min_protein is not None and best_totals.protein < constraints.min_protein:
            warnings.append(PROTEIN_TARGET_WARNING)

        return RecommendationResult(
            items=[item.model_copy(deep=True) for item in best_combo],
            totals=best_totals,
            constraints=constraints,
            explanation=EXPLANATION,
            warnings=warnings,
        )


_default_recommender = MenuRecommender()


def recommend(
    items: Iterable[MenuItemCandidate],
    constraints: Optional[RecommendationConstraints] = None,
    daily_goals: Optional[DailyGoals] = None,
    recent_item_ids: Optional[Set[int]] = None,
) -> RecommendationResult:
    """Run the default MenuRecommender."""
    return _default_recommender.recommend(items, constraints, daily_goals, recent_item_ids)
