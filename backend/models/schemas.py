"""Request Pydantic models for API endpoints.

Bodies accept the camelCase keys the frontend sends as well as snake_case.
Validated requests are converted into the dataclass DTOs the services use.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from models.data_models import (
    ComponentData,
    FeatureData,
    RiskData,
    TimelineData,
    UserStoryInput,
)


class RequestModel(BaseModel):
    """Base for request bodies: camelCase aliases, snake_case also accepted"""

    model_config = ConfigDict(populate_by_name=True, allow_inf_nan=False)


# ──────────────────────────────────────────────────────────────────────────────
# Features
# ──────────────────────────────────────────────────────────────────────────────

class FeatureIn(RequestModel):
    """A feature with its 0-10 RICE inputs."""
    name: str = Field(..., description="Feature name")
    id: Optional[Union[str, int]] = None
    description: Optional[str] = None
    reach: float = 0.0
    impact: float = 0.0
    confidence: float = 0.0
    effort: float = 0.0
    risk: str = "Medium"
    complexity: float = 5.0
    business_value: float = Field(5.0, alias="businessValue")
    timeline: float = 0.0
    dependencies: List[str] = Field(default_factory=list)
    user_stories: List[str] = Field(default_factory=list, alias="userStories")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Feature name is required")
        return v

    def to_feature(self) -> FeatureData:
        return FeatureData(
            name=self.name,
            id=str(self.id) if self.id is not None else None,
            description=self.description,
            reach=self.reach,
            impact=self.impact,
            confidence=self.confidence,
            effort=self.effort,
            risk=self.risk,
            complexity=self.complexity,
            business_value=self.business_value,
            timeline=self.timeline,
            dependencies=list(self.dependencies),
            user_stories=list(self.user_stories),
        )


class RiskIn(RequestModel):
    name: str = ""
    severity: str = ""
    probability: str = ""
    mitigation: str = ""

    def to_risk(self) -> RiskData:
        return RiskData(self.name, self.severity, self.probability, self.mitigation)


class ComponentIn(RequestModel):
    name: str = ""
    impact_level: str = Field("", alias="impactLevel")
    changes: str = ""

    def to_component(self) -> ComponentData:
        return ComponentData(self.name, self.impact_level, self.changes)


class TimelineIn(RequestModel):
    name: str = ""
    duration: str = ""
    deliverables: str = ""

    def to_timeline(self) -> TimelineData:
        return TimelineData(self.name, self.duration, self.deliverables)


class FeaturesBody(RequestModel):
    features: List[FeatureIn]

    def to_features(self) -> List[FeatureData]:
        return [f.to_feature() for f in self.features]


class FeatureBody(RequestModel):
    feature: FeatureIn


class FeatureEndpointsBody(FeatureBody):
    endpoints: List[str] = Field(..., description="Endpoint paths to score against the feature")


class FeatureReportBody(FeaturesBody):
    """Everything shown in the feature analysis PDF."""
    system_type: str = Field("Web Application", alias="systemType")
    description: str = ""
    risks: List[RiskIn] = Field(default_factory=list)
    components: List[ComponentIn] = Field(default_factory=list)
    timeline: List[TimelineIn] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


# ──────────────────────────────────────────────────────────────────────────────
# Logs
# ──────────────────────────────────────────────────────────────────────────────

class LogsBody(RequestModel):
    """Raw log records; keys are normalized by LogParser."""
    logs: List[Dict[str, Any]] = Field(default_factory=list)


class EndpointLogsBody(RequestModel):
    endpoint: str = Field(..., min_length=1)
    logs: List[Dict[str, Any]] = Field(..., min_length=1)


class StatisticsBody(LogsBody):
    days_in_sample: Optional[float] = Field(None, gt=0, alias="daysInSample")
    search: str = ""
    sort_by: str = Field("count", alias="sortBy")
    order: Literal["asc", "desc"] = "desc"


class FeatureImpactBody(LogsBody):
    feature: FeatureIn


# ──────────────────────────────────────────────────────────────────────────────
# User stories
# ──────────────────────────────────────────────────────────────────────────────

class UserStoryIn(RequestModel):
    user_story_uuid: str = Field("", alias="userStoryUuid")
    user_story_description: str = Field(..., alias="userStoryDescription")
    acceptance_criteria: str = Field("", alias="acceptanceCriteria")
    db_schema: str = Field("", alias="dbSchema")
    swagger_link: str = Field("", alias="swaggerLink")
    test_cases: str = Field("", alias="testCases")
    additional_notes: str = Field("", alias="additionalNotes")

    @field_validator("user_story_description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("User story description is required")
        return v

    def to_input(self) -> UserStoryInput:
        return UserStoryInput(
            user_story_uuid=self.user_story_uuid,
            user_story_description=self.user_story_description,
            acceptance_criteria=self.acceptance_criteria,
            db_schema=self.db_schema,
            swagger_link=self.swagger_link,
            test_cases=self.test_cases,
            additional_notes=self.additional_notes,
        )
