"""Demonstrates how to enable and configure logging in cartree.

cartree logging is disabled by default. Users opt in by calling ``enable_logging()``,
which returns a ``LoggingHandle``. The handle can be used as a context manager
(``with enable_logging(): ...``) or disabled manually via ``handle.disable()``.
When the last active handle is disabled, cartree logging is automatically turned off.

Key concepts shown here:

- ``level``: controls the minimum log level. The custom ``SPLIT`` level
  (numeric value 15, between DEBUG and INFO) reports every split accepted
  during induction, with its rule, gain, and child sizes.
- ``log_format``: ``"short"`` shows ``timestamp | level | function - message``;
  ``"full"`` adds the module and line number.
- Warning logging: failed lookups (e.g. an unknown column) are logged before
  the exception is raised.
- Automatic cleanup: logging is re-disabled when the context manager exits.
"""

from cartree import DecisionTree, TabularDataset, enable_logging, evaluate
from cartree.exceptions import ColumnsNotFoundError

CONTENT = """sepal_length,sepal_width,petal_length,petal_width,species
5.1,3.5,1.4,0.2,setosa
4.9,3.0,1.4,0.2,setosa
4.7,3.2,1.3,0.2,setosa
7.0,3.2,4.7,1.4,versicolor
6.4,3.2,4.5,1.5,versicolor
6.9,3.1,4.9,1.5,versicolor
6.3,3.3,6.0,2.5,virginica
5.8,2.7,5.1,1.9,virginica
7.1,3.0,5.9,2.1,virginica
"""

# Enable logging at SPLIT level (and above) with full log format to follow the induction
with enable_logging(
    level="SPLIT",
    log_format="full",
):
    dataset = TabularDataset.from_content(CONTENT)
    training_rows, test_rows = dataset.training_test_split(0.3, seed=1)

    tree = DecisionTree(
        dataset,
        features=["sepal_length", "sepal_width", "petal_length", "petal_width"],
        target="species",
        row_indices=training_rows,
    ).learn()

    for rule in tree.extract_rules():
        print(rule)

    summary = evaluate(tree, test_rows)
    print(f"\nMisclassification rate: {summary.rate:.2f} over {summary.count} rows\n")

    # Try an unknown column to show warning logging
    try:
        dataset.require_columns(["petal_colour"])
    except ColumnsNotFoundError as exc:
        print(f"Lookup failed: {exc}")

# Logging automatically disabled here
