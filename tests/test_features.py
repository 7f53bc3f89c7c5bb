"""Tests for RICE scoring, load-impact estimates and user-story analysis."""

import pytest

from models.data_models import FeatureData, UserStoryInput
from services.features import (
    average_rice,
    high_priority_count,
    prioritize,
    rice_score,
    score_feature,
)
from services.impact import estimate_load_impact, matched_endpoints
from services.user_stories import analyze_user_story, total_weeks


class TestRice:

    def test_confidence_is_a_fraction(self):
        assert rice_score(9, 8, 9, 5) == 12.96
        assert rice_score(9, 7, 8, 3) == 16.8

    @pytest.mark.parametrize("effort", [0, -1])
    def test_no_effort_scores_zero(self, effort):
        assert rice_score(9, 9, 9, effort) == 0.0

    def test_literal_score_is_replaced(self):
        feature = FeatureData(name="x", reach=10, impact=10, confidence=10, effort=10, rice_score=999)
        assert score_feature(feature).rice_score == 10.0
        assert feature.rice_score == 999

    def test_prioritize_orders_best_first(self):
        features = [
            FeatureData(name="low", reach=2, impact=2, confidence=5, effort=5),
            FeatureData(name="high", reach=9, impact=9, confidence=9, effort=2),
            FeatureData(name="mid", reach=5, impact=5, confidence=5, effort=5),
        ]
        assert [f.name for f in prioritize(features)] == ["high", "mid", "low"]

    def test_summary_metrics(self):
        features = prioritize([
            FeatureData(name="a", reach=9, impact=8, confidence=9, effort=5),
            FeatureData(name="b", reach=1, impact=1, confidence=10, effort=1),
        ])
        assert high_priority_count(features) == 1
        assert average_rice(features) == pytest.approx(7.0)
        assert average_rice([]) == 0.0


class TestLoadImpact:

    def test_keyword_match(self):
        feature = FeatureData(name="Wishlist", complexity=8, business_value=8)
        impact = estimate_load_impact(feature)

        assert [e.path for e in impact.impacted_endpoints] == ["/saved-items"]
        endpoint = impact.impacted_endpoints[0]
        assert endpoint.method == "POST"
        assert endpoint.current_load == "95 req/min"
        assert endpoint.estimated_load == "61 req/min"
        assert endpoint.impact == "high"
        assert impact.overall_risk == "high"
        assert impact.recommendations == [
            "Consider phased rollout to monitor API performance",
            "Implement rate limiting for affected endpoints",
            "Break down this feature into smaller components to reduce API impact",
        ]

    def test_user_stories_are_searched(self):
        feature = FeatureData(name="Onboarding", user_stories=["I can login with Google"])
        assert matched_endpoints(feature) == ["/auth/login"]

    @pytest.mark.parametrize("complexity,expected", [
        (9, ["/auth/login", "/users/profile"]),
        (5, ["/products"]),
        (2, ["/recommendations"]),
    ])
    def test_defaults_by_complexity(self, complexity, expected):
        assert matched_endpoints(FeatureData(name="Dark mode", complexity=complexity)) == expected

    def test_low_impact(self):
        impact = estimate_load_impact(FeatureData(name="Dark mode", complexity=2, business_value=2))

        assert impact.impacted_endpoints[0].impact == "low"
        assert impact.overall_risk == "low"
        assert impact.recommendations == ["No significant API changes needed"]


class TestUserStories:

    def test_template_analysis(self):
        story = UserStoryInput(
            user_story_uuid="us-1",
            user_story_description="As a user I want to reset my password",
        )
        result = analyze_user_story(story)

        assert result.source == "template"
        assert result.user_story_uuid == "us-1"
        assert [f.name for f in result.features] == [
            "Email Notification", "Security Validation", "Password Reset Flow",
        ]
        assert result.features[-1].rice_score == 12.96
        assert result.summary.effort == "5 weeks"
        assert len(result.components) == 4

    def test_total_weeks(self):
        story = UserStoryInput(user_story_uuid="", user_story_description="x")
        assert total_weeks(analyze_user_story(story).timeline) == 5.0
