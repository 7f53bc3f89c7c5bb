"""
RICE scoring and feature prioritization.

Reach, impact, confidence and effort are 0-10 scores. Confidence is read as a
fraction (confidence / 10), so RICE(9, 8, 9, 5) == 12.96.
"""

from dataclasses import replace
from typing import List, Sequence

from models.data_models import FeatureData

HIGH_PRIORITY_THRESHOLD = 10.0


def rice_score(reach: float, impact: float, confidence: float, effort: float) -> float:
    if effort <= 0:
        return 0.0
    return round(reach * impact * (confidence / 10.0) / effort, 2)


def score_feature(feature: FeatureData) -> FeatureData:
    """Copy of the feature with its RICE score recomputed from the inputs"""
    return replace(
        feature,
        rice_score=rice_score(feature.reach, feature.impact, feature.confidence, feature.effort),
    )


def prioritize(features: Sequence[FeatureData]) -> List[FeatureData]:
    """Score features and order them best first (stable for equal scores)"""
    scored = [score_feature(f) for f in features]
    scored.sort(key=lambda f: f.rice_score, reverse=True)
    return scored


def average_rice(features: Sequence[FeatureData]) -> float:
    if not features:
        return 0.0
    return round(sum(f.rice_score for f in features) / len(features), 1)


def high_priority_count(features: Sequence[FeatureData]) -> int:
    return sum(1 for f in features if f.rice_score >= HIGH_PRIORITY_THRESHOLD)
