"""Decision tree sub-package: impurity, split rules, rule search, induction, and evaluation."""

from __future__ import annotations

from cartree.decision_tree.evaluation import evaluate
from cartree.decision_tree.impurity import ImpurityFunction, gini, impurity_for_task, std
from cartree.decision_tree.models import (
    ClassificationLeafRule,
    DecisionTreeTask,
    EvaluationSummary,
    LeafRule,
    Predicate,
    PredicateOp,
    Prediction,
    RegressionLeafRule,
    RuleKind,
    SplitRule,
    TrainingReport,
    TreeStats,
)
from cartree.decision_tree.pipeline import detect_task_type, train_and_evaluate
from cartree.decision_tree.rule_finder import ScoredRule, analyze_column_kind, find_best_rule, score_best_rule
from cartree.decision_tree.tree import DecisionTree, InternalNode, LeafNode, TreeNode

__all__ = [
    "ClassificationLeafRule",
    "DecisionTree",
    "DecisionTreeTask",
    "EvaluationSummary",
    "ImpurityFunction",
    "InternalNode",
    "LeafNode",
    "LeafRule",
    "Predicate",
    "PredicateOp",
    "Prediction",
    "RegressionLeafRule",
    "RuleKind",
    "ScoredRule",
    "SplitRule",
    "TrainingReport",
    "TreeNode",
    "TreeStats",
    "analyze_column_kind",
    "detect_task_type",
    "evaluate",
    "find_best_rule",
    "gini",
    "impurity_for_task",
    "score_best_rule",
    "std",
    "train_and_evaluate",
]
