"""In-memory tabular dataset of string cells, addressed by column name and row index.

Design Note:
    Cells are kept exactly as parsed (trimmed strings). Numeric interpretation
    happens later, inside the decision tree, so one dataset can back both
    classification and regression trees. Rows shorter than the header keep
    their short length: absent cells are missing, never zero-filled.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from pathlib import Path

import numpy as np
import polars as pl
from loguru import logger

from cartree.exceptions import ColumnsNotFoundError, DuplicateColumnsError, EmptyContentError

_AUTO_COLUMN_PREFIX: str = "column"


class TabularDataset:
    """Immutable table of string cells with a column-name index.

    Lookups (`row`, `cell`, `column`, `column_index`) never raise: they return
    `None` when the requested row, cell, or column does not exist.

    Examples:
        >>> ds = TabularDataset.from_content("h1,h2\\n1,2\\n3,4", has_header=True)
        >>> ds.row_count
        2
        >>> ds.column("h1")
        ['1', '3']
        >>> ds.row(1)
        ['3', '4']
        >>> ds.column("missing") is None
        True
    """

    def __init__(self, column_names: Sequence[str], rows: Sequence[Sequence[str]]) -> None:
        """Initialize the dataset from already-parsed column names and rows.

        Args:
            column_names (Sequence[str]): Unique, case-sensitive column names in
                positional order.
            rows (Sequence[Sequence[str]]): Row cells. Rows may be shorter than
                `column_names`.

        Raises:
            DuplicateColumnsError: If `column_names` contains duplicates.
        """
        names = list(column_names)
        if len(set(names)) != len(names):
            raise DuplicateColumnsError(columns=names)
        self._column_names: tuple[str, ...] = tuple(names)
        self._column_indices: dict[str, int] = {name: index for index, name in enumerate(names)}
        self._rows: tuple[tuple[str, ...], ...] = tuple(tuple(row) for row in rows)

    # -----------------------------------------------------------------------
    # Construction
    # -----------------------------------------------------------------------

    @classmethod
    def from_content(
        cls,
        content: str,
        *,
        has_header: bool = True,
        separator: str = ",",
    ) -> TabularDataset:
        """Parse delimited text into a dataset.

        Blank lines are skipped. Every cell and header name is stripped of
        leading and trailing whitespace. Without a header, or where a header
        cell is empty, columns are named `column<i>` by position, moving on
        to the next free `i` when that name is already taken by the header.

        Args:
            content (str): Delimited text, one row per line.
            has_header (bool): Whether the first line holds column names.
                Defaults to True.
            separator (str): Field separator. Defaults to ",".

        Returns:
            TabularDataset: The parsed dataset. Header-only content yields a
                dataset with zero rows.

        Raises:
            EmptyContentError: If `content` is the empty string.
        """
        if not content:
            logger.warning("Dataset construction failed", reason="empty content")
            raise EmptyContentError

        lines = [line.rstrip("\r") for line in content.split("\n")]
        split_lines = [[cell.strip() for cell in line.split(separator)] for line in lines if line]

        if has_header and split_lines:
            header, rows = split_lines[0], split_lines[1:]
        else:
            width = max((len(row) for row in split_lines), default=0)
            header, rows = [""] * width, split_lines

        column_names = _fill_column_names(header)
        if len(set(column_names)) != len(column_names):
            logger.warning("Dataset construction failed", reason="duplicate header names")
        dataset = cls(column_names, rows)
        logger.info("Dataset loaded", rows=dataset.row_count, columns=len(column_names))
        return dataset

    @classmethod
    def from_csv_path(
        cls,
        path: str | Path,
        *,
        has_header: bool = True,
        separator: str = ",",
        encoding: str = "utf-8",
    ) -> TabularDataset:
        """Read a delimited text file and parse it with `from_content`.

        Args:
            path (str | Path): Location of the file.
            has_header (bool): Whether the first line holds column names.
            separator (str): Field separator.
            encoding (str): Text encoding of the file. Defaults to "utf-8".

        Returns:
            TabularDataset: The parsed dataset.

        Raises:
            FileNotFoundError: If `path` does not exist.
            EmptyContentError: If the file is empty.
        """
        content = Path(path).read_text(encoding=encoding)
        logger.debug("Read delimited file", path=str(path), characters=len(content))
        return cls.from_content(content, has_header=has_header, separator=separator)

    @classmethod
    def from_polars(cls, df: pl.DataFrame) -> TabularDataset:
        """Build a dataset from a Polars DataFrame, rendering every value as a string.

        Null values become empty strings.

        Args:
            df (pl.DataFrame): The source DataFrame.

        Returns:
            TabularDataset: A dataset with one column per DataFrame column.
        """
        string_df = df.cast(pl.String) if df.width > 0 else df
        rows = [["" if cell is None else cell for cell in row] for row in string_df.iter_rows()]
        return cls(df.columns, rows)

    def to_polars(self) -> pl.DataFrame:
        """Return the dataset as a Polars DataFrame of String columns.

        Absent cells of short rows become nulls; cells beyond the named
        columns are dropped.

        Returns:
            pl.DataFrame: DataFrame with `row_count` rows and one String column
                per dataset column.
        """
        schema = dict.fromkeys(self._column_names, pl.String)
        width = len(self._column_names)
        if not self._rows:
            return pl.DataFrame(schema=schema)
        padded = [list(row[:width]) + [None] * (width - len(row)) for row in self._rows]
        return pl.DataFrame(padded, schema=schema, orient="row")

    # -----------------------------------------------------------------------
    # Lookups
    # -----------------------------------------------------------------------

    @property
    def row_count(self) -> int:
        """Number of data rows (the header is not counted)."""
        return len(self._rows)

    @property
    def column_names(self) -> list[str]:
        """Column names in positional order."""
        return list(self._column_names)

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(rows={self.row_count}, columns={list(self._column_names)!r})"

    def column_index(self, name: str) -> int | None:
        """Return the position of column `name`, or `None` if it does not exist."""
        return self._column_indices.get(name)

    def row(self, index: int) -> list[str] | None:
        """Return the cells of row `index`, or `None` outside `[0, row_count)`."""
        if not 0 <= index < len(self._rows):
            return None
        return list(self._rows[index])

    def cell(self, row: int, col: int) -> str | None:
        """Return the cell at (`row`, `col`), or `None` if either index is out of bounds.

        The column bound is the row's own length, so absent cells of short
        rows are reported as `None`.
        """
        if not 0 <= row < len(self._rows):
            return None
        cells = self._rows[row]
        if not 0 <= col < len(cells):
            return None
        return cells[col]

    def column(self, name: str) -> list[str] | None:
        """Return the values of column `name` in row order.

        Rows too short to hold the column contribute nothing, so the result
        can be shorter than `row_count`.

        Args:
            name (str): Column name (case-sensitive).

        Returns:
            list[str] | None: The column values, an empty list for a dataset
                with no rows, or `None` for an unknown column.
        """
        index = self._column_indices.get(name)
        if index is None:
            return None
        return [row[index] for row in self._rows if index < len(row)]

    # -----------------------------------------------------------------------
    # Row-aligned access used by tree induction
    # -----------------------------------------------------------------------

    def value_at(self, row: int, col: int) -> str:
        """Return the cell at (`row`, `col`), reading an absent cell as "".

        Args:
            row (int): Row index; must be within `[0, row_count)`.
            col (int): Column index.

        Returns:
            str: The cell value, or "" when the row is too short.

        Raises:
            IndexError: If `row` is out of bounds.
        """
        if not 0 <= row < len(self._rows):
            raise IndexError(f"Row index {row} out of range for dataset with {len(self._rows)} rows")
        cells = self._rows[row]
        return cells[col] if col < len(cells) else ""

    def column_values(self, col: int) -> list[str]:
        """Return one value per row for column position `col`, absent cells as ""."""
        return [row[col] if col < len(row) else "" for row in self._rows]

    def require_columns(self, names: Sequence[str]) -> list[int]:
        """Resolve column names to positions, failing on any unknown name.

        Args:
            names (Sequence[str]): Column names to resolve.

        Returns:
            list[int]: Column positions parallel to `names`.

        Raises:
            ColumnsNotFoundError: If any name is not a column of this dataset.
        """
        missing = [name for name in names if name not in self._column_indices]
        if missing:
            logger.warning("Column lookup failed", missing=missing)
            raise ColumnsNotFoundError(missing_columns=missing, available_columns=list(self._column_names))
        return [self._column_indices[name] for name in names]

    # -----------------------------------------------------------------------
    # Sampling
    # -----------------------------------------------------------------------

    def training_test_split(
        self,
        test_fraction: float,
        *,
        seed: int | None = None,
    ) -> tuple[list[int], list[int]]:
        """Randomly partition row indices into training and test sets.

        `floor(row_count * test_fraction)` indices are drawn uniformly *with
        replacement*, then deduplicated into the test set, so the test set can
        be smaller than requested. Every other row goes to training.

        Args:
            test_fraction (float): Requested test share, between 0 and 1.
            seed (int | None): Seed for the random draws. Defaults to None.

        Returns:
            tuple[list[int], list[int]]: `(training_rows, test_rows)`, each in
                ascending order and disjoint, together covering every row.

        Raises:
            ValueError: If `test_fraction` is outside `[0, 1]`.
        """
        if not 0.0 <= test_fraction <= 1.0:
            raise ValueError(f"test_fraction must be between 0 and 1, got {test_fraction}")

        n_rows = len(self._rows)
        draw_count = math.floor(n_rows * test_fraction)
        test_set: set[int] = set()
        if draw_count > 0:
            rng = np.random.default_rng(seed)
            test_set = {int(index) for index in rng.integers(0, n_rows, size=draw_count)}

        test_rows = sorted(test_set)
        training_rows = [index for index in range(n_rows) if index not in test_set]
        logger.debug(
            "Training/test split drawn",
            requested=draw_count,
            test_rows=len(test_rows),
            training_rows=len(training_rows),
        )
        return training_rows, test_rows


def _fill_column_names(header: Sequence[str]) -> list[str]:
    """Name empty header cells `column<i>`, skipping names the header already uses."""
    taken = {name for name in header if name}
    column_names: list[str] = []
    for index, name in enumerate(header):
        if not name:
            suffix = index
            while f"{_AUTO_COLUMN_PREFIX}{suffix}" in taken:
                suffix += 1
            name = f"{_AUTO_COLUMN_PREFIX}{suffix}"
            taken.add(name)
        column_names.append(name)
    return column_names
