import json
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Union

from shelf_planner.utils.constants import (
    EXPAND_FALLBACK_MULTIPLIER,
    EXPAND_PRIMARY_MULTIPLIER,
    EXPAND_TOP_N,
    WIDTH_TOLERANCE,
)
from shelf_planner.utils.error_handler import DataLoadError


def _coerce(name: str, value: Any, kind: type) -> Any:
    """Cast a JSON value to the rule's declared type"""
    if kind is bool:
        if not isinstance(value, bool):
            raise DataLoadError(f"Rule {name} must be true or false, got {value!r}")
        return value

    if isinstance(value, bool):
        raise DataLoadError(f"Rule {name} must be a number, got {value!r}")
    try:
        converted = kind(value)
    except (TypeError, ValueError) as e:
        raise DataLoadError(f"Rule {name} must be {kind.__name__}, got {value!r}") from e

    if kind is int and isinstance(value, float) and not value.is_integer():
        raise DataLoadError(f"Rule {name} must be a whole number, got {value!r}")
    if converted < 0:
        raise DataLoadError(f"Rule {name} must not be negative, got {value!r}")
    return converted


@dataclass(frozen=True)
class ReconciliationRules:
    """Tunable parameters of the cut/expand rules"""
    tolerance: float = WIDTH_TOLERANCE
    expand_top_n: int = EXPAND_TOP_N
    primary_multiplier: float = EXPAND_PRIMARY_MULTIPLIER
    fallback_multiplier: float = EXPAND_FALLBACK_MULTIPLIER
    enable_cut: bool = True
    enable_expand: bool = True

    @classmethod
    def from_dict(cls, data: Dict) -> "ReconciliationRules":
        if not isinstance(data, dict):
            raise DataLoadError(f"Reconciliation rules must be a JSON object, got {type(data).__name__}")

        known = {f.name: f.type for f in fields(cls)}
        unknown = set(data) - set(known)
        if unknown:
            raise DataLoadError(f"Unknown reconciliation rule keys: {sorted(unknown)}")
        return cls(**{key: _coerce(key, value, known[key]) for key, value in data.items()})

    def to_dict(self) -> Dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_rules(path: Union[str, Path]) -> ReconciliationRules:
    """Load rule overrides from a JSON file, optionally nested under "reconciliation_rules" """
    file_path = Path(path)
    if not file_path.exists():
        raise DataLoadError(f"Rules file not found: {file_path}")

    with open(file_path, 'r', encoding='utf-8') as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise DataLoadError(f"Invalid rules file {file_path}: {e}") from e

    if isinstance(data, dict) and 'reconciliation_rules' in data:
        data = data['reconciliation_rules']
    return ReconciliationRules.from_dict(data)
