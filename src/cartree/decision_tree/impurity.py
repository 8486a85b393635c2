"""Impurity measures scoring the disorder of a subset of target values.

Lower is purer. Gini impurity scores categorical labels for classification;
population standard deviation scores numeric targets for regression.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Sequence

import numpy as np

from cartree.decision_tree.models import DecisionTreeTask, parse_float

type ImpurityFunction = Callable[[Sequence[str]], float]


def gini(target_values: Sequence[str]) -> float:
    """Return the Gini impurity `1 - sum(p_v ** 2)` of a multiset of labels.

    Args:
        target_values (Sequence[str]): Non-empty sequence of labels.

    Returns:
        float: Impurity in `[0, 1 - 1/k]` for `k` distinct labels; exactly
            `0.0` when all labels are equal.

    Examples:
        >>> gini(["x", "x", "x"])
        0.0
        >>> gini(["x", "y"])
        0.5
    """
    n = len(target_values)
    counts = Counter(target_values)
    return 1.0 - sum((count / n) ** 2 for count in counts.values())


def std(target_values: Sequence[str]) -> float:
    """Return the population standard deviation of numeric target values.

    Args:
        target_values (Sequence[str]): Non-empty sequence of numeric strings.

    Returns:
        float: Standard deviation, dividing by `n` rather than `n - 1`.

    Raises:
        ParseError: If any value does not parse as a float.

    Examples:
        >>> std(["1", "3"])
        1.0
    """
    values = np.fromiter((parse_float(value) for value in target_values), dtype=np.float64, count=len(target_values))
    # Identical values can still give a tiny non-zero std through rounding in the mean.
    if values.min() == values.max():
        return 0.0
    return float(np.std(values))


_IMPURITY_BY_TASK: dict[DecisionTreeTask, ImpurityFunction] = {
    "classification": gini,
    "regression": std,
}


def impurity_for_task(task_type: DecisionTreeTask) -> ImpurityFunction:
    """Return the impurity function used for `task_type`.

    Args:
        task_type (DecisionTreeTask): `"classification"` or `"regression"`.

    Returns:
        ImpurityFunction: `gini` for classification, `std` for regression.

    Raises:
        ValueError: If `task_type` is not a known task.
    """
    try:
        return _IMPURITY_BY_TASK[task_type]
    except KeyError:
        raise ValueError(f"Unknown task_type {task_type!r}; expected 'classification' or 'regression'") from None
