"""Custom exceptions for cartree.

Dataset construction and column validation exceptions (subclass ValueError):
- EmptyContentError: Raised when a dataset is built from empty content.
- ColumnsNotFoundError: Raised when requested columns do not exist in a dataset.
- DuplicateColumnsError: Raised when duplicate column names are provided.

Value exceptions (subclass ValueError):
- ParseError: Raised when a value expected to be numeric does not parse as a float.

Tree lifecycle exceptions (subclass RuntimeError):
- TreeStateError: Raised when a tree is used in the wrong lifecycle state.
"""

from __future__ import annotations


class EmptyContentError(ValueError):
    """Raised when a dataset is constructed from empty content.

    Examples:
        >>> err = EmptyContentError()
        >>> str(err)
        'Cannot build a dataset from empty content'
    """

    def __init__(self) -> None:
        """Initialize EmptyContentError."""
        super().__init__("Cannot build a dataset from empty content")


class ParseError(ValueError):
    """Raised when a value expected to be numeric cannot be parsed as a float.

    Attributes:
        value (str): The raw cell value that failed to parse.
        column (str | None): Column the value came from, when known.

    Examples:
        >>> err = ParseError("abc", column="weight")
        >>> err.value
        'abc'
        >>> str(err)
        "Value 'abc' in column 'weight' is not a number"
    """

    value: str
    column: str | None

    def __init__(self, value: str, column: str | None = None) -> None:
        """Initialize ParseError.

        Args:
            value (str): The raw value that failed to parse.
            column (str | None): Column the value came from. Defaults to None.
        """
        location = f" in column '{column}'" if column is not None else ""
        super().__init__(f"Value {value!r}{location} is not a number")
        self.value = value
        self.column = column

    def __repr__(self) -> str:
        """Return detailed representation for debugging.

        Returns:
            str: Detailed string representation including value and column.
        """
        return f"{self.__class__.__name__}(value={self.value!r}, column={self.column!r})"


class ColumnsNotFoundError(ValueError):
    """Raised when requested columns do not exist in a dataset.

    Attributes:
        missing_columns (list[str]): Column names that were not found.
        available_columns (list[str]): Column names present in the dataset.

    Examples:
        >>> err = ColumnsNotFoundError(
        ...     missing_columns=["x", "y"],
        ...     available_columns=["a", "b", "c"],
        ... )
        >>> err.missing_columns
        ['x', 'y']
    """

    missing_columns: list[str]
    available_columns: list[str]

    def __init__(
        self,
        missing_columns: list[str],
        available_columns: list[str],
    ) -> None:
        """Initialize ColumnsNotFoundError.

        Args:
            missing_columns (list[str]): Column names not found in the dataset.
            available_columns (list[str]): Column names present in the dataset.
        """
        super().__init__(f"Columns not found in dataset: {sorted(missing_columns)}")
        self.missing_columns = missing_columns
        self.available_columns = available_columns


class DuplicateColumnsError(ValueError):
    """Raised when duplicate column names are provided.

    Attributes:
        columns (list[str]): The column list that contains duplicates.
        duplicate_columns (list[str]): The specific column names that are
            duplicated (each listed once).

    Examples:
        >>> err = DuplicateColumnsError(columns=["a", "a", "b"])
        >>> err.duplicate_columns
        ['a']
    """

    columns: list[str]
    duplicate_columns: list[str]

    def __init__(self, columns: list[str]) -> None:
        """Initialize DuplicateColumnsError.

        Args:
            columns (list[str]): The column list containing duplicates.
        """
        self.columns = columns
        self.duplicate_columns = []
        seen: set[str] = set()
        for col in columns:
            if col in seen and col not in self.duplicate_columns:
                self.duplicate_columns.append(col)
            seen.add(col)
        super().__init__(f"Duplicate column names are not allowed: {self.duplicate_columns}")


class TreeStateError(RuntimeError):
    """Raised when a decision tree is used in the wrong lifecycle state.

    A tree moves one way from unlearned to learned. Learning twice, or
    predicting before learning, raises this error.

    Attributes:
        learned (bool): Whether the tree had already learned when the error
            was raised.
    """

    learned: bool

    def __init__(self, message: str, *, learned: bool) -> None:
        """Initialize TreeStateError.

        Args:
            message (str): Description of the misuse.
            learned (bool): The tree's learned state at the time of the error.
        """
        super().__init__(message)
        self.learned = learned
