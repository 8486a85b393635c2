"""cartree: CART-style decision trees over in-memory tabular data."""

from loguru import logger

from cartree.dataset import TabularDataset
from cartree.decision_tree import DecisionTree, evaluate, train_and_evaluate
from cartree.logging import PACKAGE_NAME, enable_logging
from cartree.settings import CartreeSettings

logger.disable(PACKAGE_NAME)  # noqa: RUF067 - Disable logging for the cartree package by default

__all__ = [
    "CartreeSettings",
    "DecisionTree",
    "TabularDataset",
    "enable_logging",
    "evaluate",
    "train_and_evaluate",
]
