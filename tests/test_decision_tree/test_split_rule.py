"""Tests for SplitRule and Predicate: branch evaluation and row partitioning."""

from __future__ import annotations

import pytest
from pydantic import ValidationError
from pytest_check import check

from cartree.dataset import TabularDataset
from cartree.decision_tree.models import Predicate, SplitRule, is_numeric, parse_float
from cartree.exceptions import ParseError


def _make_fruit_dataset() -> TabularDataset:
    """Return a small dataset with a numeric and a categorical feature."""
    return TabularDataset.from_content(
        "weight,colour,fruit\n"
        "150,red,apple\n"
        "120,yellow,banana\n"
        "170,red,apple\n"
        "118,yellow,banana\n"
        "160,green,apple\n"
        "130,yellow,banana"
    )


class TestParsing:
    """Tests for the numeric parsing helpers."""

    @pytest.mark.parametrize("value", ["1", "-2.5", "3e4", "+.5", "7.", "1E-3"])
    def test_numeric_values(self, value: str) -> None:
        """Plain decimal literals are numeric."""
        assert is_numeric(value)

    @pytest.mark.parametrize("value", ["", "red", "1,5", "N/A", " 7 ", "0x1p3"])
    def test_non_numeric_values(self, value: str) -> None:
        """Anything that is not a plain decimal literal is not numeric."""
        assert not is_numeric(value)

    @pytest.mark.parametrize("value", ["nan", "NaN", "inf", "-Infinity", "1e400"])
    def test_non_finite_values_are_not_numeric(self, value: str) -> None:
        """Non-finite values, including overflowing literals, are rejected."""
        with check:
            assert not is_numeric(value)
        with check, pytest.raises(ParseError):
            parse_float(value, column="target")

    @pytest.mark.parametrize("value", ["1_000", "１２", "٣"])
    def test_underscores_and_non_ascii_digits_are_not_numeric(self, value: str) -> None:
        """Digit separators and non-ASCII digits that float() would accept are rejected."""
        with check:
            assert not is_numeric(value)
        with check, pytest.raises(ParseError):
            parse_float(value)

    def test_parse_float_error_carries_column(self) -> None:
        """Parse failures should name the value and column."""
        with pytest.raises(ParseError) as exc_info:
            parse_float("heavy", column="weight")

        with check:
            assert exc_info.value.value == "heavy"
        with check:
            assert exc_info.value.column == "weight"


class TestSplitRuleGoesRight:
    """Tests for `SplitRule.goes_right`."""

    def test_numeric_boundary_value_goes_right(self) -> None:
        """Numeric rules are inclusive at the boundary."""
        rule = SplitRule(feature="weight", column_index=0, boundary="150", kind="numeric")

        with check:
            assert rule.goes_right("150")
        with check:
            assert rule.goes_right("150.5")
        with check:
            assert not rule.goes_right("149.9")

    def test_numeric_comparison_is_numeric_not_lexical(self) -> None:
        """Values compare as numbers, so 9 stays below 10 even though it sorts after it as text."""
        rule = SplitRule(feature="weight", column_index=0, boundary="10", kind="numeric")

        assert not rule.goes_right("9")

    def test_categorical_requires_exact_equality(self) -> None:
        """Categorical rules match the boundary string exactly."""
        rule = SplitRule(feature="colour", column_index=1, boundary="red", kind="categorical")

        with check:
            assert rule.goes_right("red")
        with check:
            assert not rule.goes_right("Red")
        with check:
            assert not rule.goes_right("green")

    def test_numeric_rule_on_non_numeric_value_raises(self) -> None:
        """A misclassified column surfaces as a typed parse error."""
        rule = SplitRule(feature="weight", column_index=0, boundary="150", kind="numeric")

        with pytest.raises(ParseError):
            rule.goes_right("heavy")

    def test_str_shows_right_branch_condition(self) -> None:
        """The string form describes the right branch."""
        with check:
            assert str(SplitRule(feature="weight", column_index=0, boundary="150", kind="numeric")) == "weight >= 150"
        with check:
            assert str(SplitRule(feature="colour", column_index=1, boundary="red", kind="categorical")) == (
                "colour == red"
            )

    def test_rule_is_immutable(self) -> None:
        """Rules are frozen once created."""
        rule = SplitRule(feature="weight", column_index=0, boundary="150", kind="numeric")

        with pytest.raises(ValidationError):
            rule.boundary = "100"  # type: ignore[misc]

    def test_unknown_kind_is_rejected(self) -> None:
        """Only numeric and categorical rules exist."""
        with pytest.raises(ValidationError):
            SplitRule(feature="weight", column_index=0, boundary="150", kind="ordinal")  # type: ignore[arg-type]


class TestSplitRulePartition:
    """Tests for `SplitRule.partition`."""

    def test_numeric_partition_preserves_order(self) -> None:
        """Rows keep their relative input order on each side."""
        # Arrange
        ds = _make_fruit_dataset()
        rule = SplitRule(feature="weight", column_index=0, boundary="150", kind="numeric")

        # Act
        left, right = rule.partition(ds, [5, 4, 3, 2, 1, 0])

        # Assert
        with check:
            assert left == [5, 3, 1]
        with check:
            assert right == [4, 2, 0]

    def test_categorical_partition(self) -> None:
        """Rows equal to the boundary go right."""
        ds = _make_fruit_dataset()
        rule = SplitRule(feature="colour", column_index=1, boundary="yellow", kind="categorical")

        left, right = rule.partition(ds, range(6))

        with check:
            assert left == [0, 2, 4]
        with check:
            assert right == [1, 3, 5]

    @pytest.mark.parametrize(
        ("rule", "rows"),
        [
            (SplitRule(feature="weight", column_index=0, boundary="125", kind="numeric"), [0, 1, 2, 3, 4, 5]),
            (SplitRule(feature="weight", column_index=0, boundary="999", kind="numeric"), [2, 4]),
            (SplitRule(feature="colour", column_index=1, boundary="green", kind="categorical"), [1, 4, 5]),
            (SplitRule(feature="colour", column_index=1, boundary="blue", kind="categorical"), []),
        ],
        ids=["numeric-mixed", "numeric-all-left", "categorical-one", "empty-input"],
    )
    def test_partition_is_complete_and_disjoint(self, rule: SplitRule, rows: list[int]) -> None:
        """Both sides together hold exactly the input rows, each once."""
        left, right = rule.partition(_make_fruit_dataset(), rows)

        with check:
            assert set(left) | set(right) == set(rows)
        with check:
            assert set(left).isdisjoint(right)
        with check:
            assert len(left) + len(right) == len(rows)

    def test_row_goes_right_matches_partition(self) -> None:
        """Single-row routing agrees with partitioning."""
        ds = _make_fruit_dataset()
        rule = SplitRule(feature="weight", column_index=0, boundary="150", kind="numeric")

        _, right = rule.partition(ds, range(6))

        assert [row for row in range(6) if rule.row_goes_right(ds, row)] == right


class TestPredicate:
    """Tests for `Predicate` and the predicates derived from a rule."""

    def test_numeric_rule_predicates(self) -> None:
        """A numeric rule reads as `<` on the left and `>=` on the right."""
        left, right = SplitRule(feature="weight", column_index=0, boundary="150", kind="numeric").predicates()

        with check:
            assert str(left) == "weight < 150.0"
        with check:
            assert str(right) == "weight >= 150.0"

    def test_categorical_rule_predicates(self) -> None:
        """A categorical rule reads as `!=` on the left and `==` on the right."""
        left, right = SplitRule(feature="colour", column_index=1, boundary="red", kind="categorical").predicates()

        with check:
            assert str(left) == "colour != red"
        with check:
            assert str(right) == "colour == red"

    @pytest.mark.parametrize(
        ("operator", "value", "x", "expected"),
        [
            (">=", 2.45, "4.1", True),
            (">=", 2.45, "2.45", True),
            ("<", 2.45, "1.0", True),
            ("<", 2.45, "2.45", False),
            ("==", "red", "red", True),
            ("!=", "red", "red", False),
            ("!=", "red", "green", True),
        ],
    )
    def test_eval(self, operator: str, value: float | str, x: str, expected: bool) -> None:
        """Predicates evaluate raw cell values."""
        predicate = Predicate(variable="f", operator=operator, value=value)  # type: ignore[arg-type]

        assert predicate.eval(x) is expected

    @pytest.mark.parametrize("operator", [">=", "<"])
    def test_ordering_operator_with_string_value_rejected(self, operator: str) -> None:
        """Ordering operators need a numeric threshold."""
        with pytest.raises(ValidationError):
            Predicate(variable="colour", operator=operator, value="red")  # type: ignore[arg-type]
