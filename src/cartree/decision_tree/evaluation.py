"""Prediction error of a learned tree over held-out rows."""

from __future__ import annotations

from collections.abc import Sequence

from loguru import logger

from cartree.decision_tree.models import EvaluationSummary, parse_float
from cartree.decision_tree.tree import DecisionTree


def evaluate(tree: DecisionTree, test_rows: Sequence[int]) -> EvaluationSummary:
    """Compare the tree's predictions with the true targets of `test_rows`.

    Classification counts mismatching labels and reports the
    misclassification rate. Regression sums the absolute differences between
    predicted and true values and reports their mean. Mismatches never raise;
    this is a reporting aggregate.

    Args:
        tree (DecisionTree): A learned tree.
        test_rows (Sequence[int]): Rows of the tree's dataset to evaluate.

    Returns:
        EvaluationSummary: Row count, total difference, and rate. The rate is
            `0.0` when `test_rows` is empty.

    Raises:
        TreeStateError: If the tree has not learned yet.
        ParseError: For regression, if a true target value is not numeric.

    Examples:
        >>> from cartree.dataset import TabularDataset
        >>> ds = TabularDataset.from_content("a,label\\n1,x\\n2,x\\n9,y")
        >>> tree = DecisionTree(ds, features=["a"], target="label").learn()
        >>> evaluate(tree, [0, 1, 2]).rate
        0.0
    """
    dataset = tree.dataset
    (target_index,) = dataset.require_columns([tree.target])
    predictions = tree.predict_many(test_rows)

    total_difference = 0.0
    for row_index, prediction in zip(test_rows, predictions, strict=True):
        expected = dataset.value_at(row_index, target_index)
        if tree.task_type == "regression":
            total_difference += abs(float(prediction) - parse_float(expected, column=tree.target))
        elif prediction != expected:
            total_difference += 1.0

    count = len(test_rows)
    summary = EvaluationSummary(
        task_type=tree.task_type,
        count=count,
        total_difference=total_difference,
        rate=total_difference / count if count else 0.0,
    )
    logger.info(
        "Decision tree evaluated",
        task_type=summary.task_type,
        count=summary.count,
        total_difference=summary.total_difference,
        rate=summary.rate,
    )
    return summary
