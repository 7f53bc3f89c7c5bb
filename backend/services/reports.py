"""
ReportRenderer Class - PDF reports

Renders the endpoint analysis report and the feature analysis report with
reportlab and returns them as base64 data URIs.
"""

import base64
import io
import logging
import re
from datetime import datetime
from typing import List, Optional, Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from models.data_models import (
    ComponentData,
    EndpointReport,
    FeatureData,
    PdfDocument,
    RiskData,
    TimelineData,
)
from services.features import average_rice, high_priority_count
from services.user_stories import total_weeks

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:application/pdf;base64,"

EXCELLENT = "Excellent"
GOOD = "Good"
NEEDS_IMPROVEMENT = "Needs Improvement"

_TABLE_STYLE = TableStyle([
    ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2980b9")),
    ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
    ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
    ("FONTSIZE", (0, 0), (-1, -1), 9),
    ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
    ("VALIGN", (0, 0), (-1, -1), "TOP"),
])


def response_time_rating(p95: float) -> str:
    if p95 < 500:
        return EXCELLENT
    if p95 < 1000:
        return GOOD
    return NEEDS_IMPROVEMENT


def success_rate_rating(success_rate: float) -> str:
    if success_rate > 99:
        return EXCELLENT
    if success_rate > 95:
        return GOOD
    return NEEDS_IMPROVEMENT


def overall_rating(p95: float, success_rate: float) -> str:
    if p95 > 1000 or success_rate < 95:
        return NEEDS_IMPROVEMENT
    if p95 > 500 or success_rate < 98:
        return GOOD
    return EXCELLENT


def endpoint_recommendations(report: EndpointReport) -> List[str]:
    recs: List[str] = []
    if report.p95_response_time > 1000:
        recs.append("Optimize endpoint performance to reduce response time")
    if report.success_rate < 95:
        recs.append("Investigate and fix errors causing failed requests")
    if report.unique_ips < 10:
        recs.append("Consider promoting this API to increase usage")
    return recs


def endpoint_filename(endpoint: str) -> str:
    return f"{endpoint.replace('/', '_')}_analysis.pdf"


def to_data_uri(pdf_bytes: bytes) -> str:
    return DATA_URI_PREFIX + base64.b64encode(pdf_bytes).decode("ascii")


class ReportRenderer:
    """
    Builds PDF reports.
    Responsibilities:
    - Endpoint analysis report (summary, status codes, ratings, recommendations)
    - Feature analysis report (metrics, features, risks, impact, timeline)
    """

    def __init__(self):
        self.styles = getSampleStyleSheet()

    # ── building blocks ──────────────────────────────────────────────────────

    def _heading(self, text: str, level: int = 2) -> Paragraph:
        return Paragraph(escape(text), self.styles[f"Heading{level}"])

    def _para(self, text: str) -> Paragraph:
        return Paragraph(escape(text), self.styles["BodyText"])

    def _table(self, head: Sequence[str], rows: Sequence[Sequence[object]]) -> Table:
        body = [[self._para(str(cell)) for cell in row] for row in rows]
        table = Table([list(head)] + body, repeatRows=1, hAlign="LEFT")
        table.setStyle(_TABLE_STYLE)
        return table

    @staticmethod
    def _build(story: list, title: str) -> bytes:
        buf = io.BytesIO()
        doc = SimpleDocTemplate(
            buf,
            pagesize=A4,
            title=title,
            leftMargin=14 * mm,
            rightMargin=14 * mm,
            topMargin=14 * mm,
            bottomMargin=14 * mm,
        )
        doc.build(story)
        return buf.getvalue()

    # ── endpoint report ──────────────────────────────────────────────────────

    def render_endpoint_report(self, report: EndpointReport, generated_at: Optional[datetime] = None) -> PdfDocument:
        generated_at = generated_at or datetime.now()
        total = report.total_requests
        story: list = [
            self._heading(f"API Endpoint Analysis: {report.endpoint}", 1),
            self._para(f"Generated on: {generated_at:%Y-%m-%d %H:%M:%S}"),
            self._heading("Executive Summary"),
            self._para(f"This report provides a detailed analysis of the API endpoint {report.endpoint}."),
            self._para(f"Total Requests: {total}"),
            self._para(f"Unique Users: {report.unique_ips}"),
            self._para(f"Success Rate: {report.success_rate:.2f}%"),
            self._para(f"Avg Response Time: {report.avg_response_time:.2f} ms"),
            self._para(f"P95 Response Time: {report.p95_response_time:.2f} ms"),
            self._heading("Status Code Distribution"),
            self._table(
                ["Status Code", "Count", "Percentage"],
                [
                    [code, count, f"{(count / total * 100) if total else 0:.2f}%"]
                    for code, count in report.status_codes.items()
                ],
            ),
            self._heading("Performance Analysis"),
            self._table(
                ["Metric", "Value", "Rating"],
                [
                    ["Response Time", f"{report.p95_response_time:.2f} ms",
                     response_time_rating(report.p95_response_time)],
                    ["Success Rate", f"{report.success_rate:.2f}%",
                     success_rate_rating(report.success_rate)],
                    ["Overall", "", overall_rating(report.p95_response_time, report.success_rate)],
                ],
            ),
            self._heading("Recommendations"),
        ]
        recs = endpoint_recommendations(report)
        story.extend(self._para(f"• {rec}") for rec in recs)
        if not recs:
            story.append(self._para("No action needed."))

        pdf = self._build(story, f"API Endpoint Analysis: {report.endpoint}")
        logger.info("Rendered endpoint report for %s (%d bytes)", report.endpoint, len(pdf))
        return PdfDocument(pdf_base64=to_data_uri(pdf), filename=endpoint_filename(report.endpoint))

    # ── feature report ───────────────────────────────────────────────────────

    def render_feature_report(
        self,
        features: Sequence[FeatureData],
        risks: Sequence[RiskData] = (),
        components: Sequence[ComponentData] = (),
        timeline: Sequence[TimelineData] = (),
        recommendations: Sequence[str] = (),
        system_type: str = "Web Application",
        description: str = "",
        generated_at: Optional[datetime] = None,
    ) -> PdfDocument:
        generated_at = generated_at or datetime.now()
        weeks = total_weeks(list(timeline))
        story: list = [
            self._heading("Feature Analysis Report", 1),
            self._para(f"System: {system_type}"),
            self._para(f"Generated: {generated_at:%Y-%m-%d}"),
            self._heading("Executive Summary"),
            self._para(
                f"This report analyzes {len(features)} proposed features, their prioritization, "
                f"risks and impact on the existing {system_type.lower()}."
            ),
            self._heading("Key Metrics"),
            self._table(
                ["Avg. RICE Score", "Weeks Timeline", "Major Components", "High Priority Features"],
                [[f"{average_rice(features):.1f}", f"{weeks:g}", len(components), high_priority_count(features)]],
            ),
        ]
        if description:
            story += [self._heading("Client Request"), self._para(description)]

        story += [
            self._heading("Feature Analysis"),
            self._table(
                ["Feature", "Reach", "Impact", "Confidence", "Effort", "RICE Score"],
                [[f.name, f"{f.reach:g}", f"{f.impact:g}", f"{f.confidence:g}", f"{f.effort:g}", f"{f.rice_score:.2f}"]
                 for f in features],
            ),
        ]
        if risks:
            story += [
                self._heading("Risk Analysis"),
                self._table(["Risk", "Severity", "Probability", "Mitigation"],
                            [[r.name, r.severity, r.probability, r.mitigation] for r in risks]),
            ]
        if components:
            story += [
                self._heading("Impact Analysis"),
                self._table(["Component", "Impact Level", "Changes Required"],
                            [[c.name, c.impact_level, c.changes] for c in components]),
            ]
        if timeline:
            story += [
                self._heading("Implementation Timeline"),
                self._table(["Phase", "Duration", "Key Deliverables"],
                            [[t.name, t.duration, t.deliverables] for t in timeline]),
            ]
        if recommendations:
            story.append(self._heading("Recommendations"))
            story.extend(self._para(f"• {rec}") for rec in recommendations)

        story += [Spacer(1, 12 * mm), self._para("Feature Analyzer Report - Confidential")]

        pdf = self._build(story, "Feature Analysis Report")
        slug = re.sub(r"[^a-z0-9]+", "-", system_type.lower()).strip("-") or "feature"
        logger.info("Rendered feature report with %d features (%d bytes)", len(features), len(pdf))
        return PdfDocument(pdf_base64=to_data_uri(pdf), filename=f"{slug}-feature-analysis.pdf")
