"""Exhaustive search for the split rule with the highest information gain.

Every value of a feature within the node's rows is tried as a boundary. The
gain of a candidate is the parent impurity minus the plain average of the two
children's impurities. Candidates that leave one side empty are skipped, and
only a strictly positive gain is accepted.

Each distinct boundary is scored once per feature: repeated values produce the
same partition, and the first occurrence already wins ties. Numeric columns are
parsed once per call rather than once per candidate.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import NamedTuple

from loguru import logger

from cartree.dataset import TabularDataset
from cartree.decision_tree.impurity import ImpurityFunction
from cartree.decision_tree.models import RuleKind, SplitRule, is_numeric
from cartree.exceptions import ParseError


class ScoredRule(NamedTuple):
    """A split rule together with the information gain it achieved.

    Attributes:
        rule (SplitRule): The winning rule.
        gain (float): Parent impurity minus the mean child impurity; always
            strictly positive.
    """

    rule: SplitRule
    gain: float


class _Boundary(NamedTuple):
    boundary: str
    gain: float


def analyze_column_kind(values: Sequence[str]) -> RuleKind:
    """Classify a whole column as numeric or categorical.

    Args:
        values (Sequence[str]): Every value of the column, not just the rows of
            the current node.

    Returns:
        RuleKind: `"numeric"` when every value parses as a float, otherwise
            `"categorical"`.

    Examples:
        >>> analyze_column_kind(["1", "2.5", "-3e2"])
        'numeric'
        >>> analyze_column_kind(["1", "red"])
        'categorical'
    """
    return "numeric" if all(is_numeric(value) for value in values) else "categorical"


def find_best_rule(
    dataset: TabularDataset,
    row_indices: Sequence[int],
    features: Sequence[str],
    target: str,
    impurity: ImpurityFunction,
) -> SplitRule | None:
    """Return the split rule with the highest positive information gain.

    Args:
        dataset (TabularDataset): The dataset holding the rows.
        row_indices (Sequence[int]): Rows of the node being split.
        features (Sequence[str]): Candidate feature columns, in priority order
            for ties.
        target (str): Target column.
        impurity (ImpurityFunction): Impurity measure for target values.

    Returns:
        SplitRule | None: The best rule, or `None` when no candidate has a
            strictly positive gain (the node should become a leaf).
    """
    scored = score_best_rule(dataset, row_indices, features, target, impurity)
    return scored.rule if scored is not None else None


def score_best_rule(
    dataset: TabularDataset,
    row_indices: Sequence[int],
    features: Sequence[str],
    target: str,
    impurity: ImpurityFunction,
) -> ScoredRule | None:
    """Search all features and boundaries and return the winner with its gain.

    Ties keep the first candidate found: the earlier feature in `features`,
    then the boundary taken from the earlier row in `row_indices`.

    Args:
        dataset (TabularDataset): The dataset holding the rows.
        row_indices (Sequence[int]): Rows of the node being split.
        features (Sequence[str]): Candidate feature columns.
        target (str): Target column.
        impurity (ImpurityFunction): Impurity measure for target values.

    Returns:
        ScoredRule | None: The winning rule and its gain, or `None` when no
            candidate beats a gain of `0.0`.

    Raises:
        ColumnsNotFoundError: If a feature or the target is not in the dataset.
        ParseError: If a regression target value is not numeric.
    """
    feature_indices = dataset.require_columns(features)
    (target_index,) = dataset.require_columns([target])
    if len(row_indices) < 2:
        return None

    targets = dataset.column_values(target_index)
    current_impurity = _score(impurity, [targets[row] for row in row_indices], target)
    if current_impurity <= 0.0:
        return None

    best: ScoredRule | None = None
    best_gain = 0.0
    for feature, column_index in zip(features, feature_indices, strict=True):
        column = dataset.column_values(column_index)
        kind = analyze_column_kind(column)
        candidate = _best_boundary(
            column,
            kind=kind,
            targets=targets,
            row_indices=row_indices,
            current_impurity=current_impurity,
            impurity=impurity,
            target=target,
        )
        if candidate is None:
            continue
        logger.trace("Best boundary for feature", feature=feature, boundary=candidate.boundary, gain=candidate.gain)
        if candidate.gain > best_gain:
            best_gain = candidate.gain
            rule = SplitRule(feature=feature, column_index=column_index, boundary=candidate.boundary, kind=kind)
            best = ScoredRule(rule=rule, gain=candidate.gain)
    return best


def _best_boundary(
    column: Sequence[str],
    *,
    kind: RuleKind,
    targets: Sequence[str],
    row_indices: Sequence[int],
    current_impurity: float,
    impurity: ImpurityFunction,
    target: str,
) -> _Boundary | None:
    """Return the first boundary with the highest gain for one feature.

    Args:
        column (Sequence[str]): All values of the feature column, row-aligned.
        kind (RuleKind): The analyzed kind of the column.
        targets (Sequence[str]): All target values, row-aligned.
        row_indices (Sequence[int]): Rows of the node being split.
        current_impurity (float): Impurity of the node's target values.
        impurity (ImpurityFunction): Impurity measure for target values.
        target (str): Target column name, for error messages.

    Returns:
        _Boundary | None: The best boundary and its gain, or `None` when every
            candidate leaves one side empty.
    """
    keys: Sequence[float] | Sequence[str] = [float(value) for value in column] if kind == "numeric" else column

    best: _Boundary | None = None
    seen: set[float | str] = set()
    for row in row_indices:
        key = keys[row]
        if key in seen:
            continue
        seen.add(key)

        left_targets: list[str] = []
        right_targets: list[str] = []
        for other in row_indices:
            goes_right = keys[other] >= key if kind == "numeric" else keys[other] == key  # type: ignore[operator]
            (right_targets if goes_right else left_targets).append(targets[other])
        if not left_targets or not right_targets:
            continue

        left_impurity = _score(impurity, left_targets, target)
        right_impurity = _score(impurity, right_targets, target)
        gain = current_impurity - (left_impurity + right_impurity) / 2
        if best is None or gain > best.gain:
            best = _Boundary(boundary=column[row], gain=gain)
    return best


def _score(impurity: ImpurityFunction, values: Sequence[str], target: str) -> float:
    """Apply `impurity`, attaching the target column name to parse failures."""
    try:
        return impurity(values)
    except ParseError as exc:
        raise ParseError(exc.value, column=target) from exc
