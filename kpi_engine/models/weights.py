"""Role weight table and grade classification.

The overall KPI is a weighted sum of the six sub-scores. Weights depend on the
user's role; every row sums to 1.0.
"""

from typing import Dict, Optional

DIMENSIONS = ("delivery", "reliability", "collaboration", "quality", "initiative", "efficiency")

DEFAULT_ROLE = "member"

ROLE_WEIGHTS: Dict[str, Dict[str, float]] = {
    "manager": {
        "delivery": 0.20,
        "reliability": 0.25,
        "collaboration": 0.20,
        "quality": 0.20,
        "initiative": 0.10,
        "efficiency": 0.05,
    },
    "director": {
        "delivery": 0.15,
        "reliability": 0.20,
        "collaboration": 0.25,
        "quality": 0.20,
        "initiative": 0.15,
        "efficiency": 0.05,
    },
    "member": {
        "delivery": 0.25,
        "reliability": 0.25,
        "collaboration": 0.20,
        "quality": 0.20,
        "initiative": 0.05,
        "efficiency": 0.05,
    },
}

# Roles that share another bucket's weights
ROLE_ALIASES = {"employee": "member"}

GRADE_THRESHOLDS = (
    (95, "A+"),
    (90, "A"),
    (85, "B+"),
    (80, "B"),
    (75, "C+"),
    (70, "C"),
    (65, "D+"),
    (60, "D"),
)
FAILING_GRADE = "F"


def validate_weights(weights: Dict[str, float], label: str = "weights") -> Dict[str, float]:
    """Validate one row of dimension weights.

    Args:
        weights: Mapping of dimension name to weight
        label: Name used in error messages

    Returns:
        The weights as floats (numeric strings from YAML are accepted)

    Raises:
        ValueError: If a dimension is missing or unknown, a weight is not a number
            or is out of range, or the weights don't sum to 1.0 (within tolerance)
    """
    missing = [dim for dim in DIMENSIONS if dim not in weights]
    if missing:
        raise ValueError(f"{label} missing dimensions: {', '.join(missing)}")

    unknown = [dim for dim in weights if dim not in DIMENSIONS]
    if unknown:
        raise ValueError(f"{label} has unknown dimensions: {', '.join(unknown)}")

    coerced = {}
    for dim, raw in weights.items():
        try:
            coerced[dim] = float(raw)
        except (TypeError, ValueError):
            raise ValueError(f"Weight for {dim} in {label} must be a number, got {raw!r}") from None
    weights = coerced

    for dim, weight in weights.items():
        if not (0.0 <= weight <= 1.0):
            raise ValueError(f"Weight for {dim} in {label} must be between 0.0 and 1.0, got {weight}")

    total = sum(weights.values())
    if not (0.999 <= total <= 1.001):
        raise ValueError(f"{label} must sum to 1.0, got {total}")

    return weights


def normalize_role(role: Optional[str]) -> str:
    """Map a raw role name to its weight bucket key (lowercase, aliases resolved)."""
    if not isinstance(role, str) or not role.strip():
        return DEFAULT_ROLE
    key = role.strip().lower()
    return ROLE_ALIASES.get(key, key)


def get_role_weights(
    role: Optional[str], weight_table: Optional[Dict[str, Dict[str, float]]] = None
) -> Dict[str, float]:
    """Look up the weights for a role, falling back to the member bucket.

    Args:
        role: User role (case-insensitive)
        weight_table: Optional table overriding ROLE_WEIGHTS

    Returns:
        Dictionary of dimension weights
    """
    table = weight_table if weight_table is not None else ROLE_WEIGHTS
    key = normalize_role(role)
    if key in table:
        return dict(table[key])
    return dict(table.get(DEFAULT_ROLE, ROLE_WEIGHTS[DEFAULT_ROLE]))


def weighted_score(scores: Dict[str, float], weights: Dict[str, float]) -> float:
    """Combine sub-scores with their weights."""
    return sum(scores[dim] * weights[dim] for dim in DIMENSIONS)


def grade_for_score(score: float) -> str:
    """Map an overall score to a letter grade."""
    for threshold, grade in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade
    return FAILING_GRADE
