"""Feature selection model.

The closed catalog of optional capabilities a generated project can carry.
Every flag is independent of the others; the only ordering that matters is
the declaration order of :class:`FeatureFlag`, which is the order in which
manifest edits, template patches and auxiliary fragments are applied.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from .errors import InvalidFeatureName


class FeatureFlag(str, Enum):
    """Named optional capabilities, in application order."""

    ROUTER = "router"
    STATE_MANAGEMENT = "stateManagement"
    DARK_MODE = "darkMode"
    EXAMPLES = "examples"
    CONTAINER_QUERIES = "containerQueries"
    LINTING = "linting"
    CODE_SPLITTING = "codeSplitting"
    PWA = "pwa"
    IMAGE_OPTIMIZATION = "imageOptimization"


@dataclass(frozen=True)
class FeatureInfo:
    """Display title and default selection of one flag."""

    flag: FeatureFlag
    title: str
    default: bool


FEATURE_CATALOG: dict[FeatureFlag, FeatureInfo] = {
    info.flag: info
    for info in (
        FeatureInfo(FeatureFlag.ROUTER, "React Router", True),
        FeatureInfo(FeatureFlag.STATE_MANAGEMENT, "Zustand (State Management)", True),
        FeatureInfo(FeatureFlag.DARK_MODE, "Dark Mode", True),
        FeatureInfo(FeatureFlag.EXAMPLES, "Example Components", True),
        FeatureInfo(FeatureFlag.CONTAINER_QUERIES, "Container Queries", False),
        FeatureInfo(FeatureFlag.LINTING, "ESLint & Prettier", True),
        FeatureInfo(FeatureFlag.CODE_SPLITTING, "Code Splitting & Lazy Loading", True),
        FeatureInfo(FeatureFlag.PWA, "PWA Support", False),
        FeatureInfo(FeatureFlag.IMAGE_OPTIMIZATION, "Image Optimization", True),
    )
}

# Older selection names still accepted on input.
_ALIASES: dict[str, FeatureFlag] = {
    "zustand": FeatureFlag.STATE_MANAGEMENT,
}


def default_features() -> frozenset[FeatureFlag]:
    """Return the flags that are selected when no selection step ran."""
    return frozenset(flag for flag, info in FEATURE_CATALOG.items() if info.default)


def parse_feature(name: str | FeatureFlag) -> FeatureFlag:
    """Convert a raw selection name to a :class:`FeatureFlag`.

    Raises:
        InvalidFeatureName: If *name* is not part of the catalog.
    """
    if isinstance(name, FeatureFlag):
        return name
    key = name.strip()
    if key in _ALIASES:
        return _ALIASES[key]
    try:
        return FeatureFlag(key)
    except ValueError:
        raise InvalidFeatureName(name) from None


def validate_features(
    raw_selections: Iterable[str | FeatureFlag] | None,
) -> frozenset[FeatureFlag]:
    """Validate raw selections into a set of flags.

    ``None`` means the selection step was skipped entirely (non-interactive
    mode) and yields :func:`default_features`.  An empty iterable is a valid
    explicit "no optional features" selection.

    Raises:
        InvalidFeatureName: For the first name outside the catalog.
    """
    if raw_selections is None:
        return default_features()
    return frozenset(parse_feature(name) for name in raw_selections)


def ordered(features: Iterable[FeatureFlag]) -> list[FeatureFlag]:
    """Return *features* sorted into declaration order, without duplicates."""
    selected = set(features)
    return [flag for flag in FeatureFlag if flag in selected]
