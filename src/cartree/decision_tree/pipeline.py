"""Task detection and the load, split, learn, evaluate pipeline."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from loguru import logger

from cartree.dataset import TabularDataset
from cartree.decision_tree.evaluation import evaluate
from cartree.decision_tree.models import DecisionTreeTask, TrainingReport, is_numeric
from cartree.decision_tree.tree import DecisionTree
from cartree.settings import CartreeSettings

# ---------------------------------------------------------------------------
# Module-level constants
# ---------------------------------------------------------------------------

_MAX_CLASSIFICATION_UNIQUE_RATIO: float = 0.05  # Integer targets this repetitive are labels, not quantities.

# ---------------------------------------------------------------------------
# Public interface -- Task detection
# ---------------------------------------------------------------------------


def detect_task_type(
    values: Sequence[str],
    task_type_override: str | None = None,
    *,
    max_classification_unique: int = 20,
) -> DecisionTreeTask:
    """Infer whether a target column calls for classification or regression.

    When `task_type_override` is `"classification"` or `"regression"`, that
    value is returned directly. Otherwise non-numeric targets are labels;
    numeric targets are labels when they have at most
    `max_classification_unique` distinct values, or when they are all whole
    numbers repeated heavily enough; anything else is regression.

    Args:
        values (Sequence[str]): The target column values.
        task_type_override (str | None): Explicit task; `None` or `"auto"`
            triggers detection.
        max_classification_unique (int): Distinct-value cutoff for treating a
            numeric target as labels. Defaults to 20.

    Returns:
        DecisionTreeTask: The detected task type.

    Examples:
        >>> detect_task_type(["yes", "no", "yes"])
        'classification'
        >>> detect_task_type([str(v / 10) for v in range(50)])
        'regression'
    """
    if task_type_override in {"classification", "regression"}:
        return task_type_override  # type: ignore[return-value]

    if not values or not all(is_numeric(value) for value in values):
        return "classification"

    unique_count = len(set(values))
    if unique_count <= max_classification_unique:
        return "classification"
    all_integers = all(float(value).is_integer() for value in values)
    if all_integers and unique_count / len(values) < _MAX_CLASSIFICATION_UNIQUE_RATIO:
        return "classification"
    return "regression"


# ---------------------------------------------------------------------------
# Public interface -- Pipeline orchestration
# ---------------------------------------------------------------------------


def train_and_evaluate(
    source: TabularDataset | str | Path,
    target: str,
    *,
    features: Sequence[str] | None = None,
    task_type: str | None = None,
    settings: CartreeSettings | None = None,
) -> TrainingReport:
    """Load data, split it, learn a tree on the training rows, and evaluate it.

    Args:
        source (TabularDataset | str | Path): A dataset, or the path of a
            delimited text file parsed with `settings.separator` and
            `settings.has_header`.
        target (str): Name of the target column.
        features (Sequence[str] | None): Feature columns. `None` uses every
            column except `target`.
        task_type (str | None): `"classification"`, `"regression"`, or `None`
            for automatic detection.
        settings (CartreeSettings | None): Split and parsing settings. `None`
            reads them from the environment.

    Returns:
        TrainingReport: Tree shape, leaf rules, and held-out evaluation.

    Raises:
        ColumnsNotFoundError: If the target or a feature is not a column.
        ValueError: If no feature columns remain or the split leaves no
            training rows.
    """
    settings = settings if settings is not None else CartreeSettings()
    dataset = (
        source
        if isinstance(source, TabularDataset)
        else TabularDataset.from_csv_path(source, has_header=settings.has_header, separator=settings.separator)
    )

    (target_index,) = dataset.require_columns([target])
    feature_columns = list(features) if features is not None else [col for col in dataset.column_names if col != target]
    if not feature_columns:
        raise ValueError(f"No feature columns available besides target '{target}'")
    dataset.require_columns(feature_columns)

    detected_task_type = detect_task_type(
        dataset.column_values(target_index),
        task_type,
        max_classification_unique=settings.max_classification_unique,
    )
    training_rows, test_rows = dataset.training_test_split(settings.test_fraction, seed=settings.random_seed)
    if not training_rows:
        logger.warning("Training aborted", reason="no training rows after split", rows=dataset.row_count)
        raise ValueError(
            f"No training rows remain after drawing test_fraction={settings.test_fraction} "
            f"from {dataset.row_count} rows"
        )

    tree = DecisionTree(
        dataset,
        feature_columns,
        target,
        task_type=detected_task_type,
        row_indices=training_rows,
    ).learn()
    evaluation = evaluate(tree, test_rows)

    return TrainingReport(
        target=target,
        task_type=detected_task_type,
        features=feature_columns,
        training_count=len(training_rows),
        test_count=len(test_rows),
        stats=tree.stats,
        rules=tree.extract_rules(),
        evaluation=evaluation,
    )
