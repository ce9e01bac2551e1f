"""Search helpers for menu recommendations: filtering, ranking, enumeration, scoring."""
from dataclasses import dataclass
from itertools import islice
from typing import Iterable, Iterator, List, NamedTuple, Optional, Sequence, Set, Tuple

from dining_app.core.utils import unique_strings
from dining_app.schemas.schemas import (
    DailyGoals,
    MacroTotals,
    MenuItemCandidate,
    RecommendationConstraints,
    RecommendationItem,
)

# Hard ceiling on items per recommendation, whatever the caller asks for
HARD_MAX_ITEMS = 6
DEFAULT_MAX_ITEMS = 4
# Only the top-N protein-dense candidates enter the combinatorial search
CANDIDATE_LIMIT = 18
# Enumeration stops after this many combinations (C(18, 6) alone is 18564)
COMBINATION_LIMIT = 2000
MEALS_PER_DAY = 3


@dataclass(frozen=True)
class ScoringWeights:
    """Penalty and boost weights used when scoring a combination."""
    protein_reward: float = 2.0
    calorie_cost: float = 0.05
    over_calories: float = 2.0
    under_calories: float = 1.5
    under_protein: float = 4.0
    over_carbs: float = 1.2
    over_fat: float = 1.2
    recent_item: float = 20.0
    preferred_ingredient: float = 8.0
    calorie_target: float = 0.1
    protein_target: float = 0.2


DEFAULT_WEIGHTS = ScoringWeights()


class RankedCandidate(NamedTuple):
    item: MenuItemCandidate
    calories: float
    protein: float
    carbs: float
    fat: float
    density: float


def normalize_constraints(constraints: Optional[RecommendationConstraints]) -> RecommendationConstraints:
    """Return a copy of `constraints` that is safe to search with.

    `max_items` defaults to 4 and is clamped to [1, HARD_MAX_ITEMS]; term lists
    are lower-cased and de-duplicated. Numeric bounds pass through untouched.
    """
    if constraints is None:
        constraints = RecommendationConstraints()
    max_items = constraints.max_items if constraints.max_items is not None else DEFAULT_MAX_ITEMS
    return constraints.model_copy(update={
        "max_items": max(1, min(int(max_items), HARD_MAX_ITEMS)),
        "dietary_flags": unique_strings(constraints.dietary_flags or []),
        "exclude_allergens": unique_strings(constraints.exclude_allergens or []),
        "avoid_ingredients": unique_strings(constraints.avoid_ingredients or []),
        "prefer_ingredients": unique_strings(constraints.prefer_ingredients or []),
    })


def matches_dietary_flags(item: MenuItemCandidate, flags: Sequence[str]) -> bool:
    # every required flag must be present (AND, not OR)
    if not flags:
        return True
    item_flags = {f.lower() for f in (item.nutrition.dietary_flags if item.nutrition else [])}
    return all(flag.lower() in item_flags for flag in flags)


def has_excluded_allergen(item: MenuItemCandidate, allergens: Sequence[str]) -> bool:
    if not allergens:
        return False
    item_allergens = {a.lower() for a in (item.nutrition.allergens if item.nutrition else [])}
    return any(allergen.lower() in item_allergens for allergen in allergens)


def name_matches_any(item: MenuItemCandidate, terms: Sequence[str]) -> bool:
    name = item.name.lower()
    return any(term.lower() in name for term in terms)


def filter_candidates(items: Iterable[MenuItemCandidate], constraints: RecommendationConstraints) -> List[MenuItemCandidate]:
    """Keep items that have calories and pass the flag, allergen and avoid-term checks."""
    return [
        item for item in items
        if item.nutrition is not None
        and item.nutrition.calories is not None
        and matches_dietary_flags(item, constraints.dietary_flags)
        and not has_excluded_allergen(item, constraints.exclude_allergens)
        and not name_matches_any(item, constraints.avoid_ingredients)
    ]


def _macro(value) -> float:
    return float(value) if value is not None else 0.0


def rank_candidates(items: Iterable[MenuItemCandidate], limit: int = CANDIDATE_LIMIT) -> List[RankedCandidate]:
    """Sort by protein density (then absolute protein), keeping the top `limit`."""
    ranked = []
    for item in items:
        n = item.nutrition
        calories = _macro(n.calories if n else None)
        protein = _macro(n.protein if n else None)
        ranked.append(RankedCandidate(
            item=item,
            calories=calories,
            protein=protein,
            carbs=_macro(n.carbs if n else None),
            fat=_macro(n.fat if n else None),
            density=protein / calories if calories > 0 else 0.0,
        ))
    ranked.sort(key=lambda c: (-c.density, -c.protein))
    return ranked[:limit]


def _index_subsets(size: int, max_len: int, start: int = 0, prefix: Tuple[int, ...] = ()) -> Iterator[Tuple[int, ...]]:
    # depth-first over increasing indices: (0,), (0, 1), (0, 1, 2), ..., (1,), (1, 2), ...
    for i in range(start, size):
        combo = prefix + (i,)
        yield combo
        if len(combo) < max_len:
            yield from _index_subsets(size, max_len, i + 1, combo)


def iter_combinations(candidates: Sequence[RankedCandidate], max_items: int,
                      limit: int = COMBINATION_LIMIT) -> Iterator[Tuple[RecommendationItem, ...]]:
    """Lazily yield item combinations of size 1..max_items, at most `limit` of them.

    Each subset appears once, in index-lexicographic order, so ties between
    equally scored combinations always resolve the same way.
    """
    pool = [
        RecommendationItem(
            id=c.item.id,
            name=c.item.name,
            quantity=1,
            nutrition=c.item.nutrition,
            score=c.density,
        )
        for c in candidates
    ]
    subsets = _index_subsets(len(pool), max_items)
    for indices in islice(subsets, max(0, limit)):
        yield tuple(pool[i] for i in indices)


def combination_totals(combo: Iterable[RecommendationItem]) -> MacroTotals:
    calories = protein = carbs = fat = 0.0
    for item in combo:
        n = item.nutrition
        if n is None:
            continue
        calories += _macro(n.calories) * item.quantity
        protein += _macro(n.protein) * item.quantity
        carbs += _macro(n.carbs) * item.quantity
        fat += _macro(n.fat) * item.quantity
    return MacroTotals(calories=calories, protein=protein, carbs=carbs, fat=fat)


def constraint_penalty(totals: MacroTotals, constraints: RecommendationConstraints,
                       weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    penalty = 0.0
    if constraints.max_calories is not None and totals.calories > constraints.max_calories:
        penalty += (totals.calories - constraints.max_calories) * weights.over_calories
    if constraints.min_calories is not None and totals.calories < constraints.min_calories:
        penalty += (constraints.min_calories - totals.calories) * weights.under_calories
    if constraints.min_protein is not None and totals.protein < constraints.min_protein:
        penalty += (constraints.min_protein - totals.protein) * weights.under_protein
    if constraints.max_carbs is not None and totals.carbs > constraints.max_carbs:
        penalty += (totals.carbs - constraints.max_carbs) * weights.over_carbs
    if constraints.max_fat is not None and totals.fat > constraints.max_fat:
        penalty += (totals.fat - constraints.max_fat) * weights.over_fat
    return penalty


def preference_adjustment(combo: Iterable[RecommendationItem], constraints: RecommendationConstraints,
                          recent_item_ids: Set[int], weights: ScoringWeights = DEFAULT_WEIGHTS) -> float:
    adjustment = 0.0
    prefer = constraints.prefer_ingredients
    for item in combo:
        if item.id in recent_item_ids:
            adjustment -= weights.recent_item
        if prefer:
            name = item.name.lower()
            if any(term.lower() in name for term in prefer):
                adjustment += weights.preferred_ingredient
    return adjustment


def score_combination(combo: Sequence[RecommendationItem], constraints: RecommendationConstraints,
                      targets: Optional[MacroTotals], recent_item_ids: Set[int],
                      weights: ScoringWeights = DEFAULT_WEIGHTS) -> Tuple[float, MacroTotals]:
    """Score one combination; higher is better. Returns (score, totals)."""
    totals = combination_totals(combo)

    target_adjustment = 0.0
    if targets is not None:
        target_adjustment -= abs(totals.calories - targets.calories) * weights.calorie_target
        target_adjustment -= abs(totals.protein - targets.protein) * weights.protein_target

    base = totals.protein * weights.protein_reward - totals.calories * weights.calorie_cost
    score = (
        base
        + target_adjustment
        + preference_adjustment(combo, constraints, recent_item_ids, weights)
        - constraint_penalty(totals, constraints, weights)
    )
    return score, totals


def build_targets(daily_goals: Optional[DailyGoals], meals_per_day: int = MEALS_PER_DAY) -> Optional[MacroTotals]:
    """Split daily goals into a per-meal target.

    Returns None when no goal is set. A goal left unset while others are set
    becomes a target of 0.
    """
    if daily_goals is None:
        return None
    goals = (daily_goals.calories, daily_goals.protein, daily_goals.carbs, daily_goals.fat)
    if all(g is None for g in goals):
        return None
    calories, protein, carbs, fat = ((g or 0.0) / meals_per_day for g in goals)
    return MacroTotals(calories=calories, protein=protein, carbs=carbs, fat=fat)
