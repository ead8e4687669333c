"""Tests for pi_search.pipeline"""
from pi_search.pipeline import apply_pipeline, matches_query

FRUITS = ["Apple", "Banana", "Cherry", "Apricot", "Pineapple"]


def _fields(item: str) -> list[str]:
    return [item]


def _by_length(a: str, b: str) -> int:
    return len(a) - len(b)


class TestMatchesQuery:
    def test_substring_any_field(self):
        assert matches_query("nan", ["xyz", "Banana"])
        assert not matches_query("kiwi", ["Apple"])

    def test_case_policy(self):
        assert matches_query("APP", ["apple"])
        assert not matches_query("APP", ["apple"], case_sensitive=True)


class TestApplyPipeline:
    def test_no_criteria_is_identity_copy(self):
        result = apply_pipeline(FRUITS)
        assert result == FRUITS
        assert result is not FRUITS

    def test_filters_are_anded(self):
        result = apply_pipeline(
            FRUITS,
            filters={
                "starts_a": lambda s: s.startswith("A"),
                "long": lambda s: len(s) > 5,
            },
        )
        assert result == ["Apricot"]

    def test_exact_query_keeps_source_order(self):
        result = apply_pipeline(FRUITS, query="ap", searchable_fields=_fields)
        assert result == ["Apple", "Apricot", "Pineapple"]

    def test_query_without_projection_passes_through(self):
        assert apply_pipeline(FRUITS, query="zzz") == FRUITS

    def test_comparator_sorts(self):
        result = apply_pipeline(FRUITS, comparator=_by_length)
        assert result == ["Apple", "Banana", "Cherry", "Apricot", "Pineapple"]
        result = apply_pipeline(FRUITS, comparator=lambda a, b: (a > b) - (a < b))
        assert result == sorted(FRUITS)

    def test_fuzzy_orders_by_score(self):
        items = ["A-p-l-e tree", "Maple", "Apple"]
        result = apply_pipeline(items, query="apple", searchable_fields=_fields, fuzzy=True)
        assert result[0] == "Apple"
        assert set(result) <= set(items)

    def test_fuzzy_threshold_drops_weak_matches(self):
        result = apply_pipeline(
            FRUITS, query="apole", searchable_fields=_fields, fuzzy=True, fuzzy_threshold=0.6,
        )
        assert "Apple" not in result

    def test_comparator_overrides_fuzzy_order(self):
        items = ["Pineapple", "Apple", "Applesauce"]
        result = apply_pipeline(
            items,
            query="apple",
            searchable_fields=_fields,
            fuzzy=True,
            comparator=lambda a, b: (a > b) - (a < b),
        )
        assert result == ["Apple", "Applesauce", "Pineapple"]

    def test_filters_run_before_matching(self):
        result = apply_pipeline(
            FRUITS,
            filters={"no_pine": lambda s: "Pine" not in s},
            query="apple",
            searchable_fields=_fields,
        )
        assert result == ["Apple"]
