"""Derived analytics over scoring service responses.

Every function here is pure: it works on data the caller already fetched
and never touches the network.
"""

from typing import Dict, List, Mapping, Optional, Sequence, Tuple

import pandas as pd

from src.config.constants import PRIORITY_ORDER, REQUIRED_COLUMNS
from src.data.schemas import (
    Classification,
    FeatureContribution,
    FeatureImportance,
    HistoryEntry,
    RecommendationGroup,
    RiskAssessmentItem,
    RiskLevel,
    RiskSummary,
    RiskTier,
    TrendPoint,
    UsageStats,
)
from src.errors import EmptyInput


def contributions_from_mapping(weights: Mapping[str, float]) -> List[FeatureContribution]:
    """Convert a feature->weight mapping into contributions.

    Known features come first in canonical declaration order, followed by
    any other keys in the order the mapping yields them.
    """
    known = [f for f in REQUIRED_COLUMNS if f in weights]
    extra = [f for f in weights if f not in REQUIRED_COLUMNS]
    return [FeatureContribution(feature=f, weight=float(weights[f])) for f in known + extra]


def rank_contributions(contributions: Sequence[FeatureContribution]) -> List[FeatureContribution]:
    """Sort contributions by weight, highest first.

    The sort is stable: equal weights keep their original relative order.

    Args:
        contributions: Feature contributions in any order

    Returns:
        New list ordered by descending weight
    """
    return sorted(contributions, key=lambda c: -c.weight)


def risk_tiers_from_assessment(items: Sequence[RiskAssessmentItem]) -> List[RiskTier]:
    return [
        RiskTier(
            feature=item.feature,
            value=item.value,
            tier=item.risk_level,
            normal_range=item.normal_range,
            status=item.status,
        )
        for item in items
    ]


def summarize_risk_tiers(tiers: Sequence[RiskTier]) -> RiskSummary:
    """Count features per risk tier. The counts sum to ``len(tiers)``."""
    counts = {level: 0 for level in RiskLevel}
    for t in tiers:
        counts[t.tier] += 1
    return RiskSummary(
        high_count=counts[RiskLevel.HIGH],
        medium_count=counts[RiskLevel.MEDIUM],
        low_count=counts[RiskLevel.LOW],
    )


def build_trend_series(entries: Sequence[HistoryEntry]) -> List[TrendPoint]:
    """Map history entries to chart points in their original order.

    Args:
        entries: History entries, oldest first

    Returns:
        One point per entry, numbered from 1, with the probability as a
        percentage rounded to two decimals
    """
    return [
        TrendPoint(
            index=i,
            probability_percent=round(entry.probability * 100, 2),
            timestamp=entry.timestamp,
        )
        for i, entry in enumerate(entries, start=1)
    ]


def average_risk_score(entries: Sequence[HistoryEntry]) -> float:
    """Mean of ``probability * 100`` over all entries.

    Raises:
        EmptyInput: If ``entries`` is empty
    """
    if not entries:
        raise EmptyInput("Cannot average risk score over zero history entries")

    probabilities = pd.Series([e.probability for e in entries], dtype=float)
    return float((probabilities * 100).mean())


def latest_classification(entries: Sequence[HistoryEntry]) -> Optional[Classification]:
    if not entries:
        return None
    return entries[-1].classification


def classification_distribution(entries: Sequence[HistoryEntry]) -> Dict[str, int]:
    counts = pd.Series([e.classification.value for e in entries], dtype=object).value_counts()
    return {label.value: int(counts.get(label.value, 0)) for label in Classification}


def rank_feature_importance(importances: Sequence[FeatureImportance]) -> List[FeatureImportance]:
    return sorted(importances, key=lambda f: -f.importance)


def rank_endpoint_usage(stats: UsageStats) -> List[Tuple[str, int]]:
    return sorted(stats.endpoint_usage.items(), key=lambda kv: -kv[1])


def order_recommendations(groups: Sequence[RecommendationGroup]) -> List[RecommendationGroup]:
    """Order recommendation groups High, Medium, Low; unknown priorities last."""

    def rank(group):
        if group.priority in PRIORITY_ORDER:
            return PRIORITY_ORDER.index(group.priority)
        return len(PRIORITY_ORDER)

    return sorted(groups, key=rank)
