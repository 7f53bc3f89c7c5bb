"""
User-story analysis.

There is no model behind this yet: every story gets the same password-reset
template analysis, marked with source="template". RICE scores and the total
effort are computed from the template rather than hard-coded.
"""

import re
from typing import List

from models.data_models import (
    AnalysisSummary,
    ComponentData,
    FeatureData,
    RiskData,
    TimelineData,
    UserStoryAnalysisResult,
    UserStoryInput,
)
from services.features import prioritize

_WEEKS = re.compile(r"(\d+(?:\.\d+)?)\s*week", re.IGNORECASE)


def _template_features() -> List[FeatureData]:
    return [
        FeatureData(name="Password Reset Flow", reach=9, impact=8, confidence=9, effort=5),
        FeatureData(name="Email Notification", reach=9, impact=7, confidence=8, effort=3),
        FeatureData(name="Security Validation", reach=7, impact=9, confidence=9, effort=4),
    ]


def _template_risks() -> List[RiskData]:
    return [
        RiskData("Email delivery failure", "Medium", "Low",
                 "Implement retry mechanism and notification for failed emails"),
        RiskData("Security vulnerabilities", "High", "Low",
                 "Implement token expiration and rate limiting"),
        RiskData("User confusion", "Low", "Medium",
                 "Clear instructions and UI guidance"),
    ]


def _template_components() -> List[ComponentData]:
    return [
        ComponentData("Authentication Service", "High", "Add password reset functionality"),
        ComponentData("Email Service", "Medium", "Create password reset email template"),
        ComponentData("User Interface", "Medium", "Add forgot password form and reset password form"),
        ComponentData("Database", "Low", "Add token storage for password reset"),
    ]


def _template_timeline() -> List[TimelineData]:
    return [
        TimelineData("Design & Planning", "1 week",
                     "Technical design document, API specifications"),
        TimelineData("Backend Implementation", "2 weeks",
                     "Authentication service updates, email integration"),
        TimelineData("Frontend Implementation", "1 week",
                     "UI components for password reset flow"),
        TimelineData("Testing", "1 week",
                     "Unit tests, integration tests, user acceptance testing"),
    ]


def total_weeks(timeline: List[TimelineData]) -> float:
    total = 0.0
    for phase in timeline:
        m = _WEEKS.search(phase.duration)
        if m:
            total += float(m.group(1))
    return total


def _format_weeks(weeks: float) -> str:
    value = int(weeks) if weeks == int(weeks) else weeks
    return f"{value} week" if value == 1 else f"{value} weeks"


def analyze_user_story(story: UserStoryInput) -> UserStoryAnalysisResult:
    timeline = _template_timeline()
    return UserStoryAnalysisResult(
        features=prioritize(_template_features()),
        risks=_template_risks(),
        components=_template_components(),
        timeline=timeline,
        summary=AnalysisSummary(
            complexity="Medium",
            effort=_format_weeks(total_weeks(timeline)),
            impact="High",
            recommendations=[
                "Implement secure token-based reset mechanism",
                "Add rate limiting to prevent abuse",
                "Ensure mobile responsiveness for reset forms",
                "Add comprehensive logging for security audits",
            ],
        ),
        user_story_uuid=story.user_story_uuid,
        source="template",
    )
