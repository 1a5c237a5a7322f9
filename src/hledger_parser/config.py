"""Parser configuration."""

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict


class ParserConfig(BaseModel):
    """Options for a single parse.

    Can be loaded from a YAML mapping, e.g.::

        strict: true
        periodic_transactions: false
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    path: str = ""  # reported in diagnostics
    strict: bool = False  # raise the first error instead of recovering
    periodic_transactions: bool = True  # accept "~ PERIOD" items
    allow_unterminated_block_comment: bool = True  # warning rather than error

    @classmethod
    def from_yaml(cls, filepath: str | Path) -> "ParserConfig":
        with open(filepath) as f:
            data = yaml.safe_load(f)
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ValueError(f"{filepath}: expected a mapping, got {type(data).__name__}")
        return cls(**data)

    def with_overrides(self, **overrides) -> "ParserConfig":
        if not overrides:
            return self
        return type(self)(**{**self.model_dump(), **overrides})
