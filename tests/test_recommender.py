"""
Tests for the menu recommendation engine.
"""
from decimal import Decimal

import pytest
from dining_app.recommenders.menu.recommender import (
    CALORIE_CAP_WARNING,
    EXPLANATION,
    NO_MATCH_EXPLANATION,
    NO_MATCH_WARNING,
    PROTEIN_TARGET_WARNING,
    MenuRecommender,
    recommend,
)
from dining_app.recommenders.menu.utils import (
    COMBINATION_LIMIT,
    HARD_MAX_ITEMS,
    _index_subsets,
    build_targets,
    filter_candidates,
    iter_combinations,
    normalize_constraints,
    rank_candidates,
    score_combination,
)
from dining_app.schemas.schemas import (
    DailyGoals,
    MenuItemCandidate,
    NutritionFacts,
    RecommendationConstraints,
)


def make_item(item_id, name, calories=None, protein=None, carbs=None, fat=None,
              allergens=None, dietary_flags=None, with_nutrition=True):
    nutrition = None
    if with_nutrition:
        nutrition = NutritionFacts(
            calories=calories, protein=protein, carbs=carbs, fat=fat,
            allergens=allergens or [], dietary_flags=dietary_flags or [],
        )
    return MenuItemCandidate(id=item_id, name=name, nutrition=nutrition)


def ids(result):
    return [item.id for item in result.items]


# --- end-to-end scenarios ----------------------------------------------------

def test_high_protein_item_wins_under_calorie_cap():
    """Test the protein-dense item is chosen and the cap is respected."""
    items = [make_item(1, "A", 300, 40), make_item(2, "B", 200, 5)]
    result = recommend(items, RecommendationConstraints(min_protein=30, max_calories=500, max_items=2))
    assert 1 in ids(result)
    assert result.totals.calories <= 500
    assert result.explanation == EXPLANATION
    assert result.warnings == []


def test_allergen_excluded():
    """Test items carrying an excluded allergen never appear."""
    items = [
        MenuItemCandidate.model_validate({
            "id": 1, "name": "Grilled Chicken",
            "nutrition": {"calories": 300, "protein": "40", "carbs": "5", "fat": "8",
                          "allergens": [], "dietary_flags": []},
        }),
        MenuItemCandidate.model_validate({
            "id": 2, "name": "Peanut Sauce Tofu",
            "nutrition": {"calories": 250, "protein": "20", "carbs": "10", "fat": "12",
                          "allergens": ["nuts"], "dietary_flags": ["vegetarian"]},
        }),
    ]
    result = recommend(items, RecommendationConstraints(exclude_allergens=["nuts"], max_items=2))
    assert ids(result) == [1]
    assert result.totals.protein == 40


def test_zero_combination_limit_reports_no_match():
    """Test scoring nothing gives the empty result, not a success message."""
    items = [make_item(1, "Chicken", 200, 40)]
    result = MenuRecommender(combination_limit=0).recommend(items)
    assert result.items == []
    assert result.explanation == NO_MATCH_EXPLANATION
    assert result.warnings == [NO_MATCH_WARNING]


def test_required_flag_matching_nothing_gives_empty_result():
    """Test a required dietary flag no item carries yields the empty result."""
    items = [make_item(1, "Grilled Chicken", 300, 40, dietary_flags=["halal"]),
             make_item(2, "Beef Burger", 600, 30)]
    result = recommend(items, RecommendationConstraints(dietary_flags=["vegetarian"]))
    assert result.items == []
    assert result.totals.calories == 0
    assert result.explanation == NO_MATCH_EXPLANATION
    assert result.warnings == [NO_MATCH_WARNING]


def test_empty_menu_returns_empty_result():
    """Test no items gives the no-match result instead of an error."""
    result = recommend([])
    assert result.items == []
    assert result.totals.calories == 0
    assert result.totals.protein == 0
    assert result.explanation == NO_MATCH_EXPLANATION
    assert result.warnings == [NO_MATCH_WARNING]
    assert result.constraints.max_items == 4


def test_items_without_calories_are_skipped():
    """Test items lacking nutrition or calories are not candidates."""
    items = [
        make_item(1, "No Nutrition", with_nutrition=False),
        make_item(2, "No Calories", protein=30),
    ]
    result = recommend(items)
    assert result.items == []
    assert result.warnings == [NO_MATCH_WARNING]


def test_never_exceeds_hard_max_items():
    """Test a huge max_items is clamped to the hard ceiling."""
    items = [make_item(i, f"Dish {i}", 100, 30) for i in range(1, 11)]
    result = recommend(items, RecommendationConstraints(max_items=20))
    assert result.constraints.max_items == HARD_MAX_ITEMS
    assert 0 < len(result.items) <= HARD_MAX_ITEMS


@pytest.mark.parametrize("requested, expected", [(0, 1), (-3, 1), (None, 4), (2.6, 3), ("5", 5)])
def test_max_items_clamped(requested, expected):
    """Test max_items defaults to 4 and is rounded and clamped to [1, 6]."""
    constraints = normalize_constraints(RecommendationConstraints(max_items=requested))
    assert constraints.max_items == expected


def test_max_items_bounds_result_size():
    """Test result never holds more items than requested."""
    items = [make_item(i, f"Dish {i}", 100, 30) for i in range(1, 8)]
    result = recommend(items, RecommendationConstraints(max_items=2))
    assert len(result.items) <= 2


def test_dietary_flags_require_all():
    """Test every requested flag must be present, case-insensitively."""
    items = [
        make_item(1, "Vegan Chili", 300, 20, dietary_flags=["vegan"]),
        make_item(2, "Vegan GF Bowl", 300, 15, dietary_flags=["Vegan", "Gluten-Free"]),
    ]
    result = recommend(items, RecommendationConstraints(dietary_flags=["VEGAN", "gluten-free"]))
    assert ids(result) == [2]


def test_avoid_ingredients_matches_name_substring():
    """Test avoid terms exclude items whose name contains them."""
    items = [make_item(1, "BBQ Pork Chop", 400, 40), make_item(2, "Baked Tofu", 300, 20)]
    result = recommend(items, RecommendationConstraints(avoid_ingredients=["pork"]))
    assert ids(result) == [2]


def test_preferred_ingredient_breaks_tie():
    """Test a preferred term lifts an otherwise identical item."""
    items = [make_item(1, "Plain Rice", 200, 10), make_item(2, "Chicken Rice", 200, 10)]
    assert ids(recommend(items, RecommendationConstraints(max_items=1))) == [1]
    preferred = recommend(items, RecommendationConstraints(max_items=1, prefer_ingredients=["chicken"]))
    assert ids(preferred) == [2]


def test_recent_items_are_penalized():
    """Test an item eaten recently loses to an equivalent one."""
    items = [make_item(1, "Plain Rice", 200, 10), make_item(2, "Chicken Rice", 200, 10)]
    result = recommend(items, RecommendationConstraints(max_items=1), recent_item_ids={1})
    assert ids(result) == [2]


def test_calorie_cap_warning():
    """Test a warning when the best option is over the calorie cap."""
    result = recommend([make_item(1, "Big Burrito", 800, 50)], RecommendationConstraints(max_calories=500))
    assert ids(result) == [1]
    assert CALORIE_CAP_WARNING in result.warnings


def test_protein_target_warning():
    """Test a warning when the best option misses the protein floor."""
    result = recommend([make_item(1, "Side Salad", 100, 5)], RecommendationConstraints(min_protein=30))
    assert result.warnings == [PROTEIN_TARGET_WARNING]


def test_daily_goals_pull_toward_per_meal_target():
    """Test daily goals steer the pick toward a third of the day's targets."""
    items = [make_item(1, "Side Salad", 150, 10), make_item(2, "Ribeye Platter", 900, 60)]
    constraints = RecommendationConstraints(max_items=1)
    assert ids(recommend(items, constraints)) == [2]
    goals = DailyGoals(calories=300, protein=15)
    assert ids(recommend(items, constraints, daily_goals=goals)) == [1]


def test_deterministic():
    """Test identical inputs give identical outputs."""
    items = [make_item(i, f"Dish {i}", 100 + i * 37 % 200, 5 + i * 7 % 40) for i in range(1, 15)]
    constraints = RecommendationConstraints(min_protein=40, max_calories=700)
    first = recommend(items, constraints)
    second = recommend(items, constraints)
    assert first.model_dump() == second.model_dump()


def test_result_does_not_alias_inputs():
    """Test returned items are copies and inputs are left untouched."""
    items = [make_item(1, "Grilled Chicken", 300, 40, dietary_flags=["halal"])]
    constraints = RecommendationConstraints(dietary_flags=["Halal", "halal"])
    result = recommend(items, constraints)
    assert len(result.items) == 1
    assert result.items[0].nutrition is not items[0].nutrition
    result.items[0].nutrition.protein = 0
    assert items[0].nutrition.protein == 40
    assert constraints.dietary_flags == ["Halal", "halal"]


def test_combination_limit_is_respected():
    """Test only the first combinations are scored when the limit is tiny."""
    items = [make_item(1, "Chicken", 200, 40), make_item(2, "Steak", 400, 60)]
    result = MenuRecommender(combination_limit=1).recommend(items)
    assert ids(result) == [1]


def test_decimal_and_string_macros_are_parsed():
    """Test stored decimals and numeric strings become floats once."""
    n = NutritionFacts(calories="250.6", protein=Decimal("12.50"), carbs="abc", fat=None, sodium=Decimal("410"))
    assert n.calories == 251
    assert n.protein == 12.5
    assert n.carbs is None
    assert n.fat is None
    assert n.sodium == 410


# --- building blocks ---------------------------------------------------------

def test_normalize_constraints_cleans_term_lists():
    """Test term lists are lower-cased, stripped and de-duplicated."""
    constraints = normalize_constraints(RecommendationConstraints(
        exclude_allergens=["Nuts", " nuts ", "Dairy"], prefer_ingredients=["", "Chicken"],
    ))
    assert constraints.exclude_allergens == ["nuts", "dairy"]
    assert constraints.prefer_ingredients == ["chicken"]


def test_normalize_constraints_none():
    """Test missing constraints become defaults."""
    constraints = normalize_constraints(None)
    assert constraints.max_items == 4
    assert constraints.dietary_flags == []
    assert constraints.min_protein is None


def test_filter_candidates():
    """Test the filter keeps only eligible items."""
    items = [
        make_item(1, "Eggs", 150, 12, allergens=["Eggs"]),
        make_item(2, "Toast", 100, 3),
        make_item(3, "Mystery", with_nutrition=False),
    ]
    constraints = normalize_constraints(RecommendationConstraints(exclude_allergens=["eggs"]))
    assert [i.id for i in filter_candidates(items, constraints)] == [2]


def test_rank_candidates_by_density_then_protein():
    """Test ranking by protein per calorie, ties broken by protein."""
    items = [
        make_item(1, "Low", 400, 10),
        make_item(2, "Dense Small", 100, 20),
        make_item(3, "Dense Large", 200, 40),
        make_item(4, "Zero Cal", 0, 5),
    ]
    ranked = rank_candidates(items)
    assert [c.item.id for c in ranked] == [3, 2, 1, 4]
    assert ranked[-1].density == 0


def test_rank_candidates_limit():
    """Test only the top candidates are kept."""
    items = [make_item(i, f"Dish {i}", 100, i) for i in range(1, 26)]
    ranked = rank_candidates(items, limit=18)
    assert len(ranked) == 18
    assert ranked[0].item.id == 25


def test_index_subsets_order():
    """Test subsets come out depth-first in increasing index order."""
    assert list(_index_subsets(3, 2)) == [(0,), (0, 1), (0, 2), (1,), (1, 2), (2,)]


def test_iter_combinations_counts():
    """Test all subsets are produced when under the limit."""
    ranked = rank_candidates([make_item(i, f"Dish {i}", 100, 10) for i in range(1, 4)])
    combos = list(iter_combinations(ranked, 3))
    assert len(combos) == 7
    assert all(len({item.id for item in combo}) == len(combo) for combo in combos)


def test_iter_combinations_stops_at_limit():
    """Test enumeration stops after COMBINATION_LIMIT subsets."""
    ranked = rank_candidates([make_item(i, f"Dish {i}", 100, 10) for i in range(1, 19)])
    combos = list(iter_combinations(ranked, 6))
    assert len(combos) == COMBINATION_LIMIT
    assert max(len(c) for c in combos) == 6


def test_score_combination_penalties():
    """Test macro penalties are subtracted from the base score."""
    ranked = rank_candidates([make_item(1, "Pasta", 300, 40, carbs=50, fat=20)])
    combo = next(iter_combinations(ranked, 1))
    constraints = normalize_constraints(RecommendationConstraints(max_carbs=30, max_fat=10))
    score, totals = score_combination(combo, constraints, None, set())
    # base 40*2 - 300*0.05 = 65; carbs (20*1.2) and fat (10*1.2) over
    assert score == pytest.approx(29.0)
    assert totals.carbs == 50


def test_build_targets():
    """Test daily goals are split over three meals."""
    assert build_targets(None) is None
    assert build_targets(DailyGoals()) is None
    targets = build_targets(DailyGoals(calories=2100, protein=150))
    assert targets.calories == pytest.approx(700)
    assert targets.protein == pytest.approx(50)
    assert targets.carbs == 0
    assert targets.fat == 0
