"""Pydantic models and split-rule logic for the decision tree module."""

from __future__ import annotations

import math
import operator
import re
from collections.abc import Callable, Sequence
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from cartree.dataset import TabularDataset
from cartree.exceptions import ParseError

# ---------------------------------------------------------------------------
# Public type aliases
# ---------------------------------------------------------------------------

type RuleKind = Literal["numeric", "categorical"]

type DecisionTreeTask = Literal["classification", "regression"]

type PredicateOp = Literal[">=", "<", "==", "!="]

type Prediction = str | float

# ---------------------------------------------------------------------------
# Numeric parsing
# ---------------------------------------------------------------------------


def parse_float(value: str, *, column: str | None = None) -> float:
    """Parse a cell value as a finite float.

    Only plain decimal literals with ASCII digits and an optional exponent are
    accepted. Underscores, surrounding whitespace, `nan`, `inf`, and literals
    that overflow to infinity are rejected.

    Args:
        value (str): The raw cell value.
        column (str | None): Column name used in the error message.

    Returns:
        float: The parsed number.

    Raises:
        ParseError: If `value` is not a finite decimal float literal.

    Examples:
        >>> parse_float("2.5")
        2.5
        >>> parse_float("-1e3")
        -1000.0
    """
    if _FLOAT_LITERAL.fullmatch(value) is not None:
        number = float(value)
        if math.isfinite(number):
            return number
    raise ParseError(value, column=column)


def is_numeric(value: str) -> bool:
    """Return `True` if `value` parses as a finite float under `parse_float`."""
    return _FLOAT_LITERAL.fullmatch(value) is not None and math.isfinite(float(value))


# ---------------------------------------------------------------------------
# Public models -- Split rule
# ---------------------------------------------------------------------------


class SplitRule(BaseModel):
    """A single-feature binary decision boundary.

    A numeric rule sends a row right when its value, parsed as a float, is
    greater than or equal to the boundary. A categorical rule sends a row
    right when its value equals the boundary string exactly. Every other row
    goes left.

    Attributes:
        feature (str): Name of the feature column the rule tests.
        column_index (int): Position of `feature` in the dataset, resolved once
            before induction.
        boundary (str): The literal cell value used as threshold or match value.
        kind (RuleKind): `"numeric"` or `"categorical"`.

    Examples:
        >>> rule = SplitRule(feature="a", column_index=0, boundary="9", kind="numeric")
        >>> str(rule)
        'a >= 9'
        >>> rule.goes_right("10"), rule.goes_right("2")
        (True, False)
        >>> SplitRule(feature="colour", column_index=1, boundary="red", kind="categorical").goes_right("red")
        True
    """

    model_config = ConfigDict(frozen=True)

    feature: str = Field(description="Name of the feature column the rule tests.")
    column_index: int = Field(ge=0, description="Position of the feature column in the dataset.")
    boundary: str = Field(description="Literal cell value used as threshold (numeric) or match value (categorical).")
    kind: RuleKind = Field(description='Either "numeric" or "categorical".')

    def __str__(self) -> str:
        """Return the right-branch condition, e.g. `"a >= 9"` or `"colour == red"`."""
        op = ">=" if self.kind == "numeric" else "=="
        return f"{self.feature} {op} {self.boundary}"

    def goes_right(self, value: str) -> bool:
        """Return whether a row holding `value` in the rule's feature goes right.

        Args:
            value (str): The row's cell value for `feature`.

        Returns:
            bool: `True` for the right branch, `False` for the left branch.

        Raises:
            ParseError: For a numeric rule, if `value` or the boundary is not a
                number.
        """
        if self.kind == "numeric":
            return parse_float(value, column=self.feature) >= parse_float(self.boundary, column=self.feature)
        return value == self.boundary

    def row_goes_right(self, dataset: TabularDataset, row_index: int) -> bool:
        """Return whether row `row_index` of `dataset` goes right under this rule."""
        return self.goes_right(dataset.value_at(row_index, self.column_index))

    def partition(self, dataset: TabularDataset, row_indices: Sequence[int]) -> tuple[list[int], list[int]]:
        """Split row indices into the rows that go left and the rows that go right.

        Input order is preserved within each side.

        Args:
            dataset (TabularDataset): The dataset the rows belong to.
            row_indices (Sequence[int]): Row indices to split.

        Returns:
            tuple[list[int], list[int]]: `(left_rows, right_rows)`; disjoint,
                and together holding exactly the input rows.
        """
        threshold = parse_float(self.boundary, column=self.feature) if self.kind == "numeric" else None
        left: list[int] = []
        right: list[int] = []
        for row_index in row_indices:
            value = dataset.value_at(row_index, self.column_index)
            if threshold is not None:
                goes_right = parse_float(value, column=self.feature) >= threshold
            else:
                goes_right = value == self.boundary
            (right if goes_right else left).append(row_index)
        return left, right

    def predicates(self) -> tuple[Predicate, Predicate]:
        """Return the `(left, right)` branch conditions of this rule as predicates."""
        if self.kind == "numeric":
            threshold = parse_float(self.boundary, column=self.feature)
            return (
                Predicate(variable=self.feature, operator="<", value=threshold),
                Predicate(variable=self.feature, operator=">=", value=threshold),
            )
        return (
            Predicate(variable=self.feature, operator="!=", value=self.boundary),
            Predicate(variable=self.feature, operator="==", value=self.boundary),
        )


# ---------------------------------------------------------------------------
# Public models -- Extracted rules
# ---------------------------------------------------------------------------


class Predicate(BaseModel):
    """A single boolean condition on one feature, as found on a root-to-leaf path.

    Attributes:
        variable (str): Feature column name the condition applies to.
        operator (PredicateOp): `">="` / `"<"` for numeric thresholds,
            `"=="` / `"!="` for categorical matches.
        value (float | str): Numeric threshold or category string.

    Examples:
        >>> p = Predicate(variable="petal_length", operator=">=", value=2.45)
        >>> str(p)
        'petal_length >= 2.45'
        >>> p.eval("4.1")
        True
    """

    model_config = ConfigDict(frozen=True)

    variable: str = Field(description="Feature column name the condition applies to.")
    operator: PredicateOp = Field(description="Comparison operator.")
    value: float | str = Field(description="Numeric threshold or category string.")

    @model_validator(mode="after")
    def _validate_operator_value_compatibility(self) -> Predicate:
        """Validate that ordering operators carry a numeric threshold.

        Returns:
            Predicate: The validated model instance.

        Raises:
            ValueError: If `">="` or `"<"` is paired with a string value.
        """
        if self.operator in _ORDERING_OPS and isinstance(self.value, str):
            raise ValueError(f"Ordering operator '{self.operator}' requires a numeric value")
        return self

    def __str__(self) -> str:
        return f"{self.variable} {self.operator} {self.value}"

    def eval(self, x: str) -> bool:
        """Evaluate this predicate against a raw cell value.

        Args:
            x (str): The cell value to test.

        Returns:
            bool: `True` if the predicate holds for `x`.

        Raises:
            ParseError: If an ordering predicate receives a non-numeric value.
        """
        if self.operator in _ORDERING_OPS:
            return _ORDERING_OPS[self.operator](parse_float(x, column=self.variable), self.value)
        return (x == self.value) if self.operator == "==" else (x != self.value)


class ClassificationLeafRule(BaseModel):
    """A decision rule read from one leaf of a classification tree.

    Attributes:
        task_type (Literal["classification"]): Discriminator; always
            `"classification"`.
        predicates (list[Predicate]): Conditions from the root to this leaf.
            Empty for a single-leaf tree.
        prediction (str): Majority label of the leaf.
        samples (int): Number of training rows in the leaf.
        confidence (float): Share of the leaf's rows carrying the predicted
            label.
    """

    task_type: Literal["classification"] = Field(description='Discriminator field. Always "classification".')
    predicates: list[Predicate] = Field(description="Conditions along the path from root to this leaf.")
    prediction: str = Field(description="Majority label of the training rows in this leaf.")
    samples: int = Field(ge=1, description="Number of training rows in this leaf.")
    confidence: float = Field(ge=0.0, le=1.0, description="Share of leaf rows carrying the predicted label.")

    def __str__(self) -> str:
        conditions = " and ".join(str(p) for p in self.predicates) or "always"
        return f"if {conditions} then {self.prediction} (samples={self.samples}, confidence={self.confidence})"


class RegressionLeafRule(BaseModel):
    """A decision rule read from one leaf of a regression tree.

    Attributes:
        task_type (Literal["regression"]): Discriminator; always `"regression"`.
        predicates (list[Predicate]): Conditions from the root to this leaf.
        prediction (float): Mean target value of the leaf.
        samples (int): Number of training rows in the leaf.
        std (float): Population standard deviation of the leaf's targets.
    """

    task_type: Literal["regression"] = Field(description='Discriminator field. Always "regression".')
    predicates: list[Predicate] = Field(description="Conditions along the path from root to this leaf.")
    prediction: float = Field(description="Mean target value of the training rows in this leaf.")
    samples: int = Field(ge=1, description="Number of training rows in this leaf.")
    std: float = Field(ge=0.0, description="Population standard deviation of the leaf's target values.")

    def __str__(self) -> str:
        conditions = " and ".join(str(p) for p in self.predicates) or "always"
        return f"if {conditions} then {self.prediction} (samples={self.samples}, std={self.std})"


type LeafRule = Annotated[
    ClassificationLeafRule | RegressionLeafRule,
    Field(discriminator="task_type"),
]


# ---------------------------------------------------------------------------
# Public models -- Summaries
# ---------------------------------------------------------------------------


class TreeStats(BaseModel):
    """Shape of a learned tree.

    Attributes:
        depth (int): Number of splits on the longest root-to-leaf path.
        node_count (int): Total number of nodes.
        leaf_count (int): Number of leaves.
        sample_count (int): Number of training rows at the root.
    """

    depth: int = Field(ge=0)
    node_count: int = Field(ge=1)
    leaf_count: int = Field(ge=1)
    sample_count: int = Field(ge=1)

    @model_validator(mode="after")
    def _validate_binary_shape(self) -> TreeStats:
        """Validate that a full binary tree has one more leaf than internal nodes."""
        if self.node_count != 2 * self.leaf_count - 1:
            raise ValueError(
                f"node_count ({self.node_count}) must equal 2 * leaf_count - 1 ({2 * self.leaf_count - 1})"
            )
        return self


class EvaluationSummary(BaseModel):
    """Aggregate prediction error over a set of held-out rows.

    Attributes:
        task_type (DecisionTreeTask): Task of the evaluated tree.
        count (int): Number of rows evaluated.
        total_difference (float): Number of misclassified rows, or the sum of
            absolute differences for regression.
        rate (float): `total_difference / count`: the misclassification
            rate or the mean absolute difference. `0.0` when `count` is 0.
    """

    task_type: DecisionTreeTask
    count: int = Field(ge=0)
    total_difference: float = Field(ge=0.0)
    rate: float = Field(ge=0.0)

    @property
    def accuracy(self) -> float | None:
        """Share of correctly classified rows, or `None` for regression or no rows."""
        if self.task_type != "classification" or self.count == 0:
            return None
        return 1.0 - self.rate


class TrainingReport(BaseModel):
    """Result of loading, splitting, learning, and evaluating a tree.

    Attributes:
        target (str): Target column name.
        task_type (DecisionTreeTask): Task used for the tree.
        features (list[str]): Feature columns the tree could split on.
        training_count (int): Number of rows used for learning.
        test_count (int): Number of held-out rows evaluated.
        stats (TreeStats): Shape of the learned tree.
        rules (list[ClassificationLeafRule] | list[RegressionLeafRule]): One
            rule per leaf, in left-to-right leaf order.
        evaluation (EvaluationSummary): Error on the held-out rows.
    """

    target: str
    task_type: DecisionTreeTask
    features: list[str]
    training_count: int = Field(ge=1)
    test_count: int = Field(ge=0)
    stats: TreeStats
    rules: list[ClassificationLeafRule] | list[RegressionLeafRule]
    evaluation: EvaluationSummary

    @model_validator(mode="after")
    def _validate_rules_count_matches_leaf_count(self) -> TrainingReport:
        """Validate that there is exactly one rule per leaf."""
        if len(self.rules) != self.stats.leaf_count:
            raise ValueError(f"rules length ({len(self.rules)}) must equal leaf_count ({self.stats.leaf_count})")
        return self


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

_ORDERING_OPS: dict[str, Callable[[Any, Any], bool]] = {
    ">=": operator.ge,
    "<": operator.lt,
}

_FLOAT_LITERAL: re.Pattern[str] = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")
