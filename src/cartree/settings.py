"""Environment-driven defaults for loading data and training trees."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CartreeSettings(BaseSettings):
    """Defaults used by the training pipeline.

    Values are read from `CARTREE_*` environment variables or a `.env` file,
    falling back to the field defaults below.

    Attributes:
        separator (str): Single-character field separator for delimited text.
        has_header (bool): Whether the first line of the content is a header row.
        test_fraction (float): Fraction of rows drawn (with replacement) for the
            held-out test set.
        random_seed (int | None): Seed for the train/test split. `None` means
            non-deterministic.
        max_classification_unique (int): Numeric targets with at most this many
            distinct values are treated as classification labels.

    Examples:
        >>> settings = CartreeSettings(test_fraction=0.3)
        >>> settings.separator
        ','
    """

    model_config = SettingsConfigDict(
        env_prefix="CARTREE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    separator: str = Field(default=",", description="Single-character field separator.")
    has_header: bool = Field(default=True, description="Whether the first line is a header row.")
    test_fraction: float = Field(
        default=0.2,
        ge=0.0,
        le=1.0,
        description="Fraction of rows drawn for the held-out test set.",
    )
    random_seed: int | None = Field(default=None, description="Seed for the train/test split.")
    max_classification_unique: int = Field(
        default=20,
        ge=1,
        description="Numeric targets with at most this many distinct values are treated as labels.",
    )

    @field_validator("separator", mode="after")
    @classmethod
    def _validate_single_character(cls, value: str) -> str:
        """Validate that the separator is exactly one character.

        Args:
            value (str): The separator to validate.

        Returns:
            str: The validated separator, unchanged.

        Raises:
            ValueError: If the separator is not exactly one character long.
        """
        if len(value) != 1:
            raise ValueError(f"separator must be a single character, got {value!r}")
        return value
