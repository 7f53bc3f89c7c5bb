"""
FeatureMapper Class - Relates features to API endpoints

Keyword overlap between a feature's text and endpoint paths is used to guess
which endpoints a feature touches. It is a best-effort heuristic: the score
is normalised by the feature's keyword count only, so it is not symmetric.
"""

import re
from typing import List, Sequence, Tuple

from models.data_models import (
    AffectedEndpoint,
    EndpointUsage,
    FeatureApiImpact,
    FeatureData,
    LogEntry,
)
from services.aggregator import Aggregator
from utils.helpers import mean

MATCH_THRESHOLD = 0.2
MIN_KEYWORD_LENGTH = 4

_NON_WORD = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def extract_keywords(text: str) -> List[str]:
    """Lowercase, strip punctuation, split on whitespace, drop tokens of 3 chars or fewer"""
    cleaned = _NON_WORD.sub("", (text or "").lower())
    return [w for w in _WHITESPACE.split(cleaned) if len(w) >= MIN_KEYWORD_LENGTH]


def match_score(feature_keywords: Sequence[str], endpoint_keywords: Sequence[str]) -> float:
    """Share of feature keywords that contain, or are contained in, some endpoint keyword"""
    matches = [
        k1 for k1 in feature_keywords
        if any(k2 in k1 or k1 in k2 for k2 in endpoint_keywords)
    ]
    return len(matches) / max(len(feature_keywords), 1)


def feature_text(feature: FeatureData) -> str:
    return f"{feature.name} {feature.description or ''}"


class FeatureMapper:
    """
    Maps features onto endpoints.
    Responsibilities:
    - Score endpoints against a feature description
    - Select related endpoints (score above threshold)
    - Assess the impact of a feature on endpoints seen in access logs
    """

    def __init__(self, aggregator: Aggregator):
        self.aggregator = aggregator

    @staticmethod
    def score_endpoints(feature: FeatureData, endpoints: Sequence[str]) -> List[Tuple[str, float]]:
        keywords = extract_keywords(feature_text(feature))
        return [(endpoint, match_score(keywords, extract_keywords(endpoint))) for endpoint in endpoints]

    def map_feature_to_endpoints(self, feature: FeatureData, endpoints: Sequence[str]) -> List[str]:
        return [e for e, score in self.score_endpoints(feature, endpoints) if score > MATCH_THRESHOLD]

    def analyze_api_impact(self, feature: FeatureData, entries: List[LogEntry]) -> FeatureApiImpact:
        """Impact of a feature on the endpoints present in the given logs"""
        usage = self.aggregator.endpoint_usage(entries)
        scores = dict(self.score_endpoints(feature, [u.endpoint for u in usage]))

        affected: List[AffectedEndpoint] = []
        for endpoint in usage:
            score = scores[endpoint.endpoint]
            if score <= MATCH_THRESHOLD:
                continue

            endpoint_logs = self.aggregator.filter_endpoint(entries, endpoint.endpoint)
            avg_response_time = mean([e.response_time for e in endpoint_logs])

            if score > 0.6 and endpoint.count > 1000:
                impact_level = "high"
            elif score > 0.4 or endpoint.count > 500:
                impact_level = "medium"
            else:
                impact_level = "low"

            issues = self._potential_issues(feature, endpoint, avg_response_time)
            affected.append(
                AffectedEndpoint(
                    endpoint=endpoint.endpoint,
                    match_score=round(score, 4),
                    impact_level=impact_level,
                    current_usage=endpoint.count,
                    current_performance=avg_response_time,
                    potential_issues=issues,
                    recommendations=self._endpoint_recommendations(endpoint, impact_level, issues),
                )
            )

        overall = self._overall_impact(affected)
        complexity = self._implementation_complexity(feature, affected)

        return FeatureApiImpact(
            feature_id=feature.id or "unknown",
            feature_name=feature.name,
            affected_endpoints=affected,
            overall_api_impact=overall,
            implementation_complexity=complexity,
            recommendations=self._overall_recommendations(feature, affected, overall, complexity),
        )

    @staticmethod
    def _potential_issues(feature: FeatureData, endpoint: EndpointUsage, avg_response_time: float) -> List[str]:
        issues: List[str] = []
        if endpoint.count > 1000 and avg_response_time > 200:
            issues.append("High usage endpoint with existing performance concerns")
        if endpoint.success_rate < 95:
            issues.append(f"Endpoint has reliability issues ({endpoint.success_rate:.1f}% success rate)")
        if feature.effort > 7:
            issues.append("Complex feature implementation may affect endpoint stability")
        return issues

    @staticmethod
    def _endpoint_recommendations(endpoint: EndpointUsage, impact_level: str, issues: List[str]) -> List[str]:
        recs: List[str] = []
        if impact_level == "high":
            recs.append("Conduct thorough performance testing before implementation")
            recs.append("Consider implementing the feature in phases to monitor impact")
        if endpoint.count > 1000:
            recs.append("Implement caching strategies to minimize additional load")
        if endpoint.success_rate < 95:
            recs.append("Resolve existing reliability issues before adding new functionality")
        if any("performance" in issue for issue in issues):
            recs.append("Optimize endpoint performance before adding new features")
        return recs

    @staticmethod
    def _overall_impact(affected: List[AffectedEndpoint]) -> str:
        levels = {a.impact_level for a in affected}
        if "high" in levels:
            return "high"
        if "medium" in levels:
            return "medium"
        return "low"

    @staticmethod
    def _implementation_complexity(feature: FeatureData, affected: List[AffectedEndpoint]) -> str:
        if feature.effort > 7:
            return "high"
        if feature.effort > 4:
            return "medium"
        if sum(1 for a in affected if a.impact_level == "high") > 2:
            return "high"
        return "low"

    @staticmethod
    def _overall_recommendations(
        feature: FeatureData,
        affected: List[AffectedEndpoint],
        overall: str,
        complexity: str,
    ) -> List[str]:
        recs: List[str] = []
        if overall == "high":
            recs.append("Conduct a detailed API impact assessment before proceeding")
            recs.append("Consider creating new API endpoints instead of modifying existing ones")
        if complexity == "high":
            recs.append("Break down implementation into smaller, manageable phases")
            recs.append("Allocate additional QA resources for thorough testing")
        if len(affected) > 3:
            recs.append("Create a comprehensive test plan covering all affected endpoints")
        if feature.rice_score > 10:
            recs.append("High-value feature - prioritize implementation with appropriate safeguards")
        elif feature.rice_score < 5:
            recs.append("Consider if the API impact justifies implementing this lower-value feature")
        return recs
