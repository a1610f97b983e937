"""
Interpreter configuration.

Settings can be loaded from a YAML file:

    # treelox.yaml
    prelude: true
    echo: true
    show_source: false
    max_errors: 10
    prompt: "lox> "
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

import yaml


@dataclass
class LoxConfig:
    """Settings for a treelox session."""
    prelude: bool = True        # Run the Lox prelude (pow, ...) before user code
    echo: bool = True           # REPL prints the value of a trailing expression
    show_source: bool = True    # Diagnostics include the source line and caret
    max_errors: int = 20        # Parser stops collecting after this many errors
    prompt: str = "> "

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoxConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown configuration key(s): {', '.join(unknown)}")
        return cls(**data)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "LoxConfig":
        """Load settings from a YAML mapping; missing keys keep their defaults."""
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        with config_path.open("r", encoding="utf-8") as fp:
            try:
                data = yaml.safe_load(fp) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Configuration file must contain a mapping: {config_path}")
        return cls.from_dict(data)

    def save(self, path: Union[str, Path]) -> None:
        config_path = Path(path)
        with config_path.open("w", encoding="utf-8") as fp:
            yaml.safe_dump(self.to_dict(), fp, sort_keys=False)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
