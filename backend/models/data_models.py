"""
Data Models (DTOs - Data Transfer Objects)

This module contains all dataclass definitions used throughout the application,
plus `to_payload` which renders them as camelCase JSON for the HTTP API.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime
from typing import Any, Dict, List, Optional


def _json_name(name: str) -> Dict[str, str]:
    return {"json": name}


@dataclass
class LogEntry:
    """Represents a single normalized API access log entry"""
    timestamp: datetime
    ip: str
    endpoint: str
    status_code: int
    response_time: float
    user_agent: str = ""
    method: str = "GET"
    username: str = ""
    device_id: str = ""
    request_body: str = ""
    response_body: str = ""
    id: Optional[str] = None


@dataclass
class ParseResult:
    """Entries parsed from an upload and the number of rows skipped"""
    entries: List[LogEntry]
    skipped: int = 0
    mode: str = "csv"


@dataclass
class HealthStatus:
    """Health check response"""
    status: str
    version: str


# ──────────────────────────────────────────────────────────────────────────────
# Log aggregation results
# ──────────────────────────────────────────────────────────────────────────────

@dataclass
class EndpointUsage:
    """Per-endpoint usage"""
    endpoint: str
    count: int
    avg_response_time: float
    success_rate: float


@dataclass
class EndpointAnalysis:
    """Per-endpoint usage with method, user and device breakdown"""
    endpoint: str
    count: int
    avg_response_time: float
    success_rate: float
    methods: Dict[str, int]
    users: int
    devices: int


@dataclass
class ApiLogAnalysis:
    """Summary returned after a log upload"""
    total_requests: int
    unique_endpoints: int
    unique_ips: int = field(metadata=_json_name("uniqueIPs"))
    unique_users: int
    unique_devices: int
    top_endpoints: List[EndpointAnalysis]
    endpoints_by_response_time: List[EndpointAnalysis]
    endpoints_by_error_rate: List[EndpointAnalysis]


@dataclass
class DailyUsage:
    date: str
    count: int


@dataclass
class IPDistribution:
    region: str
    count: int


@dataclass
class EndpointTrend:
    endpoint: str
    usage: List[DailyUsage]


@dataclass
class LogAnalysisResult:
    """Access log overview"""
    total_requests: int
    unique_ips: int = field(metadata=_json_name("uniqueIPs"))
    unique_endpoints: int
    unique_users: int
    top_endpoints: List[EndpointUsage]
    daily_usage: List[DailyUsage]
    ip_distribution: List[IPDistribution]
    endpoint_trends: List[EndpointTrend]


@dataclass
class EndpointStatistic:
    """Row of the endpoint statistics table"""
    endpoint: str
    count: int
    success_count: int
    failure_count: int
    success_rate: float
    daily_frequency: float
    hourly_frequency: float
    drop_frequency: float
    avg_response_time: float
    p95_response_time: float
    peak_hour: int
    last_seen: Optional[datetime]


@dataclass
class Finding:
    """Rule-based recommendation"""
    type: str
    severity: str
    title: str
    description: str


@dataclass
class Enhancement:
    title: str
    description: str
    impact: str


@dataclass
class EndpointReport:
    """Detailed report for a single endpoint"""
    endpoint: str
    total_requests: int
    successful_requests: int
    failed_requests: int
    success_rate: float
    avg_response_time: float
    p95_response_time: float
    unique_ips: int = field(metadata=_json_name("uniqueIPs"))
    peak_hour: int
    status_codes: Dict[str, int]
    daily_trend: List[DailyUsage]
    hourly_distribution: List[int]
    recommendations: List[Finding]
    enhancements: List[Enhancement]


# ──────────────────────────────────────────────────────────────────────────────
# Features and user stories
# ──────────────────────────────────────────────────────────────────────────────

@dataclass
class FeatureData:
    """A feature with RICE inputs (0-10 scales) and planning attributes"""
    name: str
    reach: float = 0.0
    impact: float = 0.0
    confidence: float = 0.0
    effort: float = 0.0
    rice_score: float = 0.0
    id: Optional[str] = None
    description: Optional[str] = None
    risk: str = "Medium"
    complexity: float = 5.0
    business_value: float = 5.0
    timeline: float = 0.0
    dependencies: List[str] = field(default_factory=list)
    user_stories: List[str] = field(default_factory=list)


@dataclass
class RiskData:
    name: str
    severity: str
    probability: str
    mitigation: str


@dataclass
class ComponentData:
    name: str
    impact_level: str
    changes: str


@dataclass
class TimelineData:
    name: str
    duration: str
    deliverables: str


@dataclass
class UserStoryInput:
    user_story_uuid: str
    user_story_description: str
    acceptance_criteria: str = ""
    db_schema: str = ""
    swagger_link: str = ""
    test_cases: str = ""
    additional_notes: str = ""


@dataclass
class AnalysisSummary:
    complexity: str
    effort: str
    impact: str
    recommendations: List[str]


@dataclass
class UserStoryAnalysisResult:
    features: List[FeatureData]
    risks: List[RiskData]
    components: List[ComponentData]
    timeline: List[TimelineData]
    summary: AnalysisSummary
    user_story_uuid: str = ""
    source: str = "template"


# ──────────────────────────────────────────────────────────────────────────────
# Feature to API impact
# ──────────────────────────────────────────────────────────────────────────────

@dataclass
class AffectedEndpoint:
    endpoint: str
    match_score: float
    impact_level: str
    current_usage: int
    current_performance: float
    potential_issues: List[str]
    recommendations: List[str]


@dataclass
class FeatureApiImpact:
    """Impact of a feature on endpoints observed in access logs"""
    feature_id: str
    feature_name: str
    affected_endpoints: List[AffectedEndpoint]
    overall_api_impact: str
    implementation_complexity: str
    recommendations: List[str]


@dataclass
class ImpactedEndpoint:
    path: str
    method: str
    current_load: str
    estimated_load: str
    impact: str
    recommendation: str


@dataclass
class FeatureLoadImpact:
    """Estimated extra load a feature puts on the known API catalogue"""
    feature_id: str
    feature_name: str
    impacted_endpoints: List[ImpactedEndpoint]
    overall_risk: str
    recommendations: List[str]


@dataclass
class PdfDocument:
    pdf_base64: str
    filename: str


# ──────────────────────────────────────────────────────────────────────────────
# Serialization
# ──────────────────────────────────────────────────────────────────────────────

def camel_case(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in rest)


def to_payload(obj: Any) -> Any:
    """Convert dataclasses (recursively) into JSON-ready dicts with camelCase keys"""
    if is_dataclass(obj) and not isinstance(obj, type):
        return {
            f.metadata.get("json", camel_case(f.name)): to_payload(getattr(obj, f.name))
            for f in fields(obj)
        }
    if isinstance(obj, datetime):
        return obj.isoformat()
    if isinstance(obj, dict):
        return {k: to_payload(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [to_payload(v) for v in obj]
    return obj
