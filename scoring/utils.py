"""
Scoring utility functions.
Provides weight/threshold loading and the rounding helpers used by the aggregators.
"""
from decimal import Decimal, ROUND_HALF_UP, localcontext
from typing import Dict, Any, Optional, Union
import logging
import os

import yaml

logger = logging.getLogger(__name__)

# filename used for weight YAML configuration
WEIGHTS_FILENAME = 'weights.yaml'
WEIGHTS_ENV = 'TEAMSCORE_WEIGHTS_FILE'

# points per source; keys match EventKind values plus the two task buckets
DEFAULT_WEIGHTS = {
    'TASK_CREATED': 2,
    'MEMBER_INVITED': 1,
    'PROJECT_CREATED': 1,
    'TASK_DONE': 5,
    'TASK_IN_PROGRESS': 3,
}

DEFAULT_THRESHOLDS = {
    'low_contribution_pct': 10,
    'high_rating_min': 4.5,
    'high_rating_max_pct': 15,
    'low_rating_max': 2.0,
    'low_rating_min_pct': 40,
}

Number = Union[int, float, Decimal]


def default_config_path() -> str:
    """Return TEAMSCORE_WEIGHTS_FILE if set, else config/weights.yaml at the repo root."""
    return os.getenv(WEIGHTS_ENV) or os.path.join(os.path.dirname(os.path.dirname(__file__)), 'config', WEIGHTS_FILENAME)


def _read_config(path: Optional[str]) -> Dict[str, Any]:
    path = path or default_config_path()
    if not os.path.exists(path):
        return {}
    try:
        with open(path, 'r', encoding='utf-8') as f:
            doc = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as ex:
        logger.warning("Could not read weights config %s: %s; using defaults", path, ex)
        return {}
    if not isinstance(doc, dict):
        logger.warning("Weights config %s is not a mapping; using defaults", path)
        return {}
    return doc


def _merge_numeric(defaults: Dict[str, Number], overrides: Any, cast) -> Dict[str, Number]:
    merged = defaults.copy()
    if not isinstance(overrides, dict):
        return merged
    for k in defaults:
        if k not in overrides:
            continue
        try:
            merged[k] = cast(overrides[k])
        except (TypeError, ValueError) as ex:
            logger.warning("Ignoring config value %s=%r: %s", k, overrides[k], ex)
    return merged


def _whole_number(value) -> int:
    f = float(value)
    if not f.is_integer():
        raise ValueError("weights must be whole numbers")
    return int(f)


def load_weights(path: Optional[str] = None) -> Dict[str, int]:
    """
    Load point weights from the 'weights' section of the YAML config, otherwise return defaults.
    Unknown keys are ignored; missing keys keep their default.
    Non-integer weights are ignored like non-numeric ones.
    """
    return _merge_numeric(DEFAULT_WEIGHTS, _read_config(path).get('weights'), _whole_number)


def load_thresholds(path: Optional[str] = None) -> Dict[str, float]:
    """Load flag thresholds from the 'thresholds' section of the YAML config, otherwise return defaults."""
    return _merge_numeric(DEFAULT_THRESHOLDS, _read_config(path).get('thresholds'), float)


def round_half_up(value: Number, places: int = 0) -> Union[int, float]:
    """
    Round to `places` decimals with ties going away from zero (2.5 -> 3, 4.25 -> 4.3).
    Floats go through str() so 4.25 rounds as written rather than as its binary approximation.
    Returns an int when places == 0. Infinities and NaN come back unchanged as floats.
    """
    d = value if isinstance(value, Decimal) else Decimal(str(value))
    if not d.is_finite():
        return float(d)
    with localcontext() as ctx:
        # room for every integer digit plus the requested places
        ctx.prec = max(ctx.prec, d.adjusted() + places + 2)
        q = d.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    return int(q) if places == 0 else float(q)


def percentage_of(points: int, total_points: int) -> int:
    """Integer share of total_points, rounded half-up. Zero total gives 0."""
    if not total_points:
        return 0
    return round_half_up(Decimal(points) * 100 / Decimal(total_points))


def mean(values) -> float:
    """Arithmetic mean of a non-empty sequence."""
    values = list(values)
    return sum(values) / len(values)
