"""CART-style binary decision tree learned by recursive impurity-driven splitting.

Design Note:
    Nodes live in a flat tuple and refer to their children by position, with
    the root at position 0. Children never point back at their parent, and
    every node shares the same read-only dataset held by the tree. Induction
    walks an explicit stack instead of recursing, so deep trees are not
    bounded by the interpreter's recursion limit; nodes are still expanded
    depth-first, left child before right child.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Self

import numpy as np
from loguru import logger

from cartree.dataset import TabularDataset
from cartree.decision_tree.impurity import ImpurityFunction, impurity_for_task, std
from cartree.decision_tree.models import (
    ClassificationLeafRule,
    DecisionTreeTask,
    LeafRule,
    Predicate,
    Prediction,
    RegressionLeafRule,
    SplitRule,
    TreeStats,
    parse_float,
)
from cartree.decision_tree.rule_finder import score_best_rule
from cartree.exceptions import DuplicateColumnsError, TreeStateError
from cartree.logging import SPLIT_LEVEL

_RULE_DECIMAL_PLACES: int = 4


@dataclass(frozen=True)
class LeafNode:
    """A node without a split, holding the prediction for its rows.

    Attributes:
        rows (tuple[int, ...]): Training rows that reached this leaf.
        prediction (Prediction): Majority label (classification) or mean
            target value (regression) of `rows`.
    """

    rows: tuple[int, ...]
    prediction: Prediction


@dataclass(frozen=True)
class InternalNode:
    """A node split in two by a rule.

    Attributes:
        rule (SplitRule): Rule routing rows to the children.
        left (int): Position of the left child in the tree's node tuple.
        right (int): Position of the right child in the tree's node tuple.
        sample_count (int): Number of training rows that reached this node.
    """

    rule: SplitRule
    left: int
    right: int
    sample_count: int


type TreeNode = LeafNode | InternalNode


class DecisionTree:
    """Binary decision tree over a `TabularDataset`.

    A tree is created unlearned, learns exactly once, and is immutable
    afterwards. Classification trees split on Gini impurity and predict the
    majority label; regression trees split on standard deviation and predict
    the mean target.

    Examples:
        >>> ds = TabularDataset.from_content("a,b,label\\n1,10,x\\n2,20,x\\n9,90,y")
        >>> tree = DecisionTree(ds, features=["a", "b"], target="label").learn()
        >>> str(tree.root.rule)
        'a >= 9'
        >>> tree.predict(2)
        'y'
    """

    def __init__(
        self,
        dataset: TabularDataset,
        features: Sequence[str],
        target: str,
        *,
        task_type: DecisionTreeTask = "classification",
        row_indices: Sequence[int] | None = None,
    ) -> None:
        """Initialize an unlearned tree.

        Feature and target names are resolved against the dataset here, before
        any induction happens.

        Args:
            dataset (TabularDataset): Training data, shared read-only by every node.
            features (Sequence[str]): Columns the tree may split on.
            target (str): Column to predict.
            task_type (DecisionTreeTask): `"classification"` (default) or
                `"regression"`.
            row_indices (Sequence[int] | None): Training rows. `None` uses every
                row of `dataset`.

        Raises:
            ColumnsNotFoundError: If a feature or the target is not a column.
            DuplicateColumnsError: If `features` repeats a name.
            ValueError: If the target is also a feature, the row set is empty
                or repeats a row, or `task_type` is unknown.
            IndexError: If a row index is outside the dataset.
        """
        feature_list = list(features)
        if len(set(feature_list)) != len(feature_list):
            raise DuplicateColumnsError(columns=feature_list)
        if target in feature_list:
            raise ValueError(f"Target column '{target}' cannot also be a feature")
        dataset.require_columns([*feature_list, target])

        rows = list(range(dataset.row_count)) if row_indices is None else list(row_indices)
        if not rows:
            raise ValueError("Cannot learn a decision tree from an empty row set")
        if len(set(rows)) != len(rows):
            raise ValueError("Training row indices must be unique")
        out_of_range = [row for row in rows if not 0 <= row < dataset.row_count]
        if out_of_range:
            raise IndexError(f"Row indices out of range for dataset with {dataset.row_count} rows: {out_of_range}")

        self._dataset = dataset
        self._features = tuple(feature_list)
        self._target = target
        self._target_index = dataset.require_columns([target])[0]
        self._task_type: DecisionTreeTask = task_type
        self._impurity: ImpurityFunction = impurity_for_task(task_type)
        self._row_indices = tuple(rows)
        self._nodes: tuple[TreeNode, ...] | None = None

    def __repr__(self) -> str:
        state = "learned" if self.is_learned else "unlearned"
        return (
            f"{self.__class__.__name__}(task_type={self._task_type!r}, target={self._target!r}, "
            f"features={list(self._features)!r}, rows={len(self._row_indices)}, {state})"
        )

    # -----------------------------------------------------------------------
    # Read-only attributes
    # -----------------------------------------------------------------------

    @property
    def dataset(self) -> TabularDataset:
        """The training dataset."""
        return self._dataset

    @property
    def features(self) -> list[str]:
        """Columns the tree may split on."""
        return list(self._features)

    @property
    def target(self) -> str:
        """Column the tree predicts."""
        return self._target

    @property
    def task_type(self) -> DecisionTreeTask:
        """`"classification"` or `"regression"`."""
        return self._task_type

    @property
    def impurity(self) -> ImpurityFunction:
        """Impurity function selected for the task."""
        return self._impurity

    @property
    def row_indices(self) -> tuple[int, ...]:
        """Training rows at the root."""
        return self._row_indices

    @property
    def is_learned(self) -> bool:
        """Whether `learn` has completed."""
        return self._nodes is not None

    @property
    def nodes(self) -> tuple[TreeNode, ...]:
        """All nodes; the root is at position 0."""
        return self._require_nodes()

    @property
    def root(self) -> TreeNode:
        """The root node."""
        return self._require_nodes()[0]

    # -----------------------------------------------------------------------
    # Induction
    # -----------------------------------------------------------------------

    def learn(self) -> Self:
        """Grow the tree until no node has a split with positive information gain.

        Each node asks the rule finder for its best rule. A node with a rule
        partitions its rows into two non-empty children that are learned in
        turn; a node without one becomes a leaf with a cached prediction.

        Returns:
            Self: This tree, now learned.

        Raises:
            TreeStateError: If the tree has already learned.
            ParseError: If a regression target value is not numeric.
        """
        if self._nodes is not None:
            raise TreeStateError("Decision tree has already learned", learned=True)

        logger.info(
            "Learning decision tree",
            task_type=self._task_type,
            target=self._target,
            features=len(self._features),
            rows=len(self._row_indices),
        )

        nodes: list[TreeNode | None] = [None]
        stack: list[tuple[int, Sequence[int]]] = [(0, self._row_indices)]
        while stack:
            node_id, rows = stack.pop()
            scored = score_best_rule(self._dataset, rows, self._features, self._target, self._impurity)
            if scored is None:
                prediction = self._leaf_prediction(rows)
                nodes[node_id] = LeafNode(rows=tuple(rows), prediction=prediction)
                logger.debug("Leaf created", node_id=node_id, rows=len(rows), prediction=prediction)
                continue

            left_rows, right_rows = scored.rule.partition(self._dataset, rows)
            left_id, right_id = len(nodes), len(nodes) + 1
            nodes.extend((None, None))
            nodes[node_id] = InternalNode(rule=scored.rule, left=left_id, right=right_id, sample_count=len(rows))
            logger.log(
                SPLIT_LEVEL,
                "Split accepted",
                node_id=node_id,
                rule=str(scored.rule),
                kind=scored.rule.kind,
                gain=scored.gain,
                rows=len(rows),
                left_rows=len(left_rows),
                right_rows=len(right_rows),
            )
            # Pushed right first so the left subtree is expanded first.
            stack.append((right_id, right_rows))
            stack.append((left_id, left_rows))

        self._nodes = tuple(node for node in nodes if node is not None)
        stats = self.stats
        logger.info("Decision tree learned", depth=stats.depth, nodes=stats.node_count, leaves=stats.leaf_count)
        return self

    def _leaf_prediction(self, rows: Sequence[int]) -> Prediction:
        """Return the majority label or mean target value of `rows`."""
        values = [self._dataset.value_at(row, self._target_index) for row in rows]
        if self._task_type == "regression":
            return float(np.mean([parse_float(value, column=self._target) for value in values]))
        return _majority_label(values)

    # -----------------------------------------------------------------------
    # Prediction
    # -----------------------------------------------------------------------

    def predict(self, row_index: int) -> Prediction:
        """Predict the target of one dataset row by descending from the root.

        Args:
            row_index (int): Row of the tree's dataset.

        Returns:
            Prediction: The reached leaf's cached prediction.

        Raises:
            TreeStateError: If the tree has not learned yet.
            IndexError: If `row_index` is outside the dataset.
        """
        nodes = self._require_nodes()
        if not 0 <= row_index < self._dataset.row_count:
            raise IndexError(f"Row index {row_index} out of range for dataset with {self._dataset.row_count} rows")
        node = nodes[0]
        while isinstance(node, InternalNode):
            node = nodes[node.right if node.rule.row_goes_right(self._dataset, row_index) else node.left]
        return node.prediction

    def predict_many(self, row_indices: Sequence[int]) -> list[Prediction]:
        """Predict the target of several dataset rows, in input order."""
        return [self.predict(row_index) for row_index in row_indices]

    def predict_record(self, record: Mapping[str, str]) -> Prediction:
        """Predict the target of a row given as a column-name to value mapping.

        Use this for rows outside the training dataset, such as a separately
        loaded test file. Features missing from `record` are read as "".

        Args:
            record (Mapping[str, str]): Cell values keyed by column name.

        Returns:
            Prediction: The reached leaf's cached prediction.

        Raises:
            TreeStateError: If the tree has not learned yet.
            ParseError: If a numeric rule meets a non-numeric value.
        """
        nodes = self._require_nodes()
        node = nodes[0]
        while isinstance(node, InternalNode):
            goes_right = node.rule.goes_right(record.get(node.rule.feature, ""))
            node = nodes[node.right if goes_right else node.left]
        return node.prediction

    # -----------------------------------------------------------------------
    # Introspection
    # -----------------------------------------------------------------------

    @property
    def stats(self) -> TreeStats:
        """Depth, node count, leaf count, and training sample count."""
        nodes = self._require_nodes()
        max_depth = 0
        stack = [(0, 0)]
        while stack:
            node_id, depth = stack.pop()
            node = nodes[node_id]
            if isinstance(node, InternalNode):
                stack.extend(((node.left, depth + 1), (node.right, depth + 1)))
            else:
                max_depth = max(max_depth, depth)
        leaf_count = sum(isinstance(node, LeafNode) for node in nodes)
        return TreeStats(
            depth=max_depth,
            node_count=len(nodes),
            leaf_count=leaf_count,
            sample_count=len(self._row_indices),
        )

    def leaf_row_sets(self) -> list[tuple[int, ...]]:
        """Return the training rows of every leaf, leaves ordered left to right."""
        return [leaf.rows for leaf, _ in self._iter_leaves()]

    def extract_rules(self) -> list[LeafRule]:
        """Describe every leaf as a rule: root-to-leaf predicates plus prediction.

        Returns:
            list[LeafRule]: One `ClassificationLeafRule` or `RegressionLeafRule`
                per leaf, leaves ordered left to right.

        Raises:
            TreeStateError: If the tree has not learned yet.
        """
        return [self._build_leaf_rule(leaf, predicates) for leaf, predicates in self._iter_leaves()]

    def _build_leaf_rule(self, leaf: LeafNode, predicates: list[Predicate]) -> LeafRule:
        """Construct the rule describing one leaf.

        Args:
            leaf (LeafNode): The leaf to describe.
            predicates (list[Predicate]): Conditions from the root to `leaf`.

        Returns:
            LeafRule: Classification rules carry the share of rows holding the
                predicted label; regression rules carry the std of the targets.
        """
        values = [self._dataset.value_at(row, self._target_index) for row in leaf.rows]
        if self._task_type == "regression":
            return RegressionLeafRule(
                task_type="regression",
                predicates=predicates,
                prediction=round(float(leaf.prediction), _RULE_DECIMAL_PLACES),
                samples=len(values),
                std=round(std(values), _RULE_DECIMAL_PLACES),
            )
        confidence = values.count(str(leaf.prediction)) / len(values)
        return ClassificationLeafRule(
            task_type="classification",
            predicates=predicates,
            prediction=str(leaf.prediction),
            samples=len(values),
            confidence=round(confidence, _RULE_DECIMAL_PLACES),
        )

    def _iter_leaves(self) -> list[tuple[LeafNode, list[Predicate]]]:
        """Return every leaf with its root-to-leaf predicates, left to right."""
        nodes = self._require_nodes()
        leaves: list[tuple[LeafNode, list[Predicate]]] = []
        stack: list[tuple[int, list[Predicate]]] = [(0, [])]
        while stack:
            node_id, path = stack.pop()
            node = nodes[node_id]
            if isinstance(node, LeafNode):
                leaves.append((node, path))
                continue
            left_predicate, right_predicate = node.rule.predicates()
            stack.append((node.right, [*path, right_predicate]))
            stack.append((node.left, [*path, left_predicate]))
        return leaves

    def _require_nodes(self) -> tuple[TreeNode, ...]:
        if self._nodes is None:
            raise TreeStateError("Decision tree has not learned yet; call learn() first", learned=False)
        return self._nodes


def _majority_label(values: Sequence[str]) -> str:
    """Return the most frequent label.

    Labels are counted left to right; a label takes the lead only by exceeding
    the current maximum, so the first label to reach the maximum count wins
    ties.

    Examples:
        >>> _majority_label(["a", "b", "b", "a"])
        'b'
        >>> _majority_label(["a", "b"])
        'a'
    """
    counts: dict[str, int] = {}
    best_label = values[0]
    best_count = 0
    for value in values:
        counts[value] = counts.get(value, 0) + 1
        if counts[value] > best_count:
            best_label, best_count = value, counts[value]
    return best_label
