"""Tests for PDF report rendering and ratings."""

import base64

import pytest

from models.data_models import ComponentData, FeatureData, RiskData, TimelineData
from services.features import prioritize
from services.reports import (
    DATA_URI_PREFIX,
    ReportRenderer,
    endpoint_filename,
    endpoint_recommendations,
    overall_rating,
    response_time_rating,
    success_rate_rating,
)


def decode(data_uri: str) -> bytes:
    assert data_uri.startswith(DATA_URI_PREFIX)
    return base64.b64decode(data_uri[len(DATA_URI_PREFIX):])


@pytest.fixture
def renderer():
    return ReportRenderer()


class TestRatings:

    @pytest.mark.parametrize("p95,expected", [(100, "Excellent"), (700, "Good"), (1500, "Needs Improvement")])
    def test_response_time(self, p95, expected):
        assert response_time_rating(p95) == expected

    @pytest.mark.parametrize("rate,expected", [(99.5, "Excellent"), (97, "Good"), (90, "Needs Improvement")])
    def test_success_rate(self, rate, expected):
        assert success_rate_rating(rate) == expected

    @pytest.mark.parametrize("p95,rate,expected", [
        (100, 100, "Excellent"),
        (600, 100, "Good"),
        (100, 97, "Good"),
        (1200, 100, "Needs Improvement"),
        (100, 90, "Needs Improvement"),
    ])
    def test_overall(self, p95, rate, expected):
        assert overall_rating(p95, rate) == expected

    def test_filename(self):
        assert endpoint_filename("/users/profile") == "_users_profile_analysis.pdf"


class TestEndpointReport:

    def test_renders_pdf(self, renderer, aggregator, entry_factory):
        entries = [entry_factory("/users/profile", 200 if i % 5 else 500, 100 + i) for i in range(20)]
        report = aggregator.compute_report(entries, "/users/profile")

        document = renderer.render_endpoint_report(report)

        assert document.filename == "_users_profile_analysis.pdf"
        assert decode(document.pdf_base64).startswith(b"%PDF")

    def test_recommendations(self, aggregator, entry_factory):
        entries = [entry_factory("/a", 500 if i % 2 else 200, 2000) for i in range(4)]
        report = aggregator.compute_report(entries, "/a")

        assert endpoint_recommendations(report) == [
            "Optimize endpoint performance to reduce response time",
            "Investigate and fix errors causing failed requests",
            "Consider promoting this API to increase usage",
        ]

    def test_endpoint_with_markup_characters(self, renderer, aggregator, entry_factory):
        report = aggregator.compute_report([entry_factory("/search?q=<a>&b")], "/search?q=<a>&b")
        assert decode(renderer.render_endpoint_report(report).pdf_base64).startswith(b"%PDF")


class TestFeatureReport:

    def test_renders_pdf(self, renderer):
        features = prioritize([
            FeatureData(name="Password Reset Flow", reach=9, impact=8, confidence=9, effort=5),
            FeatureData(name="Email Notification", reach=9, impact=7, confidence=8, effort=3),
        ])
        document = renderer.render_feature_report(
            features,
            risks=[RiskData("Email delivery failure", "Medium", "Low", "Retry")],
            components=[ComponentData("Email Service", "Medium", "New template")],
            timeline=[TimelineData("Testing", "2 weeks", "Unit tests")],
            recommendations=["Add rate limiting"],
            system_type="E-commerce Platform",
            description="Customers need to reset passwords.",
        )

        assert document.filename == "e-commerce-platform-feature-analysis.pdf"
        assert decode(document.pdf_base64).startswith(b"%PDF")

    def test_minimal(self, renderer):
        document = renderer.render_feature_report([])
        assert decode(document.pdf_base64).startswith(b"%PDF")
