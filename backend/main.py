from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, File, HTTPException, Query, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from models.data_models import HealthStatus, LogEntry, to_payload
from models.schemas import (
    EndpointLogsBody,
    FeatureBody,
    FeatureEndpointsBody,
    FeatureImpactBody,
    FeatureReportBody,
    FeaturesBody,
    LogsBody,
    StatisticsBody,
    UserStoryIn,
)
from services.aggregator import Aggregator
from services.features import prioritize, score_feature
from services.impact import estimate_load_impact
from services.mapping import FeatureMapper
from services.parser import LogParser
from services.reports import ReportRenderer
from services.sample_data import generate_sample_logs
from services.user_stories import analyze_user_story

__version__ = "0.1.0"

# ──────────────────────────────────────────────────────────────────────────────
# Config
# ──────────────────────────────────────────────────────────────────────────────

API_PREFIX = os.getenv("API_PREFIX", "/api")
DAYS_IN_SAMPLE = float(os.getenv("DAYS_IN_SAMPLE", "30"))
MAX_UPLOAD_BYTES = int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# ──────────────────────────────────────────────────────────────────────────────
# Services
# ──────────────────────────────────────────────────────────────────────────────

log_parser = LogParser()
aggregator = Aggregator(log_parser)
mapper = FeatureMapper(aggregator)
renderer = ReportRenderer()

# ──────────────────────────────────────────────────────────────────────────────
# App
# ──────────────────────────────────────────────────────────────────────────────

app = FastAPI(title="Feature Analyzer (Logs → Endpoint Stats, RICE, Reports)", version=__version__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "DELETE", "PATCH", "POST", "PUT"],
    allow_headers=["*"],
)


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Errors are always {"error": ..., "details"?: ...}"""
    content = exc.detail if isinstance(exc.detail, dict) else {"error": str(exc.detail)}
    return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [{"loc": list(err.get("loc", ())), "msg": err.get("msg", "")} for err in exc.errors()]
    return JSONResponse(status_code=400, content={"error": "Invalid data provided", "details": details})


def invalid(exc: Exception) -> HTTPException:
    return HTTPException(status_code=400, detail={"error": "Invalid data provided", "details": str(exc)})


def server_error(message: str, exc: Exception) -> HTTPException:
    return HTTPException(status_code=500, detail={"error": message, "details": str(exc)})


def too_large() -> HTTPException:
    return HTTPException(status_code=400, detail=f"File exceeds the {MAX_UPLOAD_BYTES} byte upload limit")


def read_logs(logs: List[Dict[str, Any]]) -> List[LogEntry]:
    """Normalize raw log records from a JSON body"""
    result = log_parser.normalize_many(logs)
    if result.skipped:
        logger.debug("Ignored %d malformed log records", result.skipped)
    return result.entries


# ──────────────────────────────────────────────────────────────────────────────
# Health
# ──────────────────────────────────────────────────────────────────────────────

@app.get(f"{API_PREFIX}/health")
def health() -> Dict[str, Any]:
    return to_payload(HealthStatus(status="ok", version=__version__))


# ──────────────────────────────────────────────────────────────────────────────
# Log upload + analysis
# ──────────────────────────────────────────────────────────────────────────────

@app.post(f"{API_PREFIX}/logs/upload")
async def upload_logs(file: Optional[UploadFile] = File(None)) -> Dict[str, Any]:
    """
    Accepts a CSV export (or JSON / JSONL) of API access logs.
    Malformed rows are skipped and counted in `skippedRows`.
    """
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")
    if not log_parser.is_supported(file.filename or ""):
        raise HTTPException(status_code=400, detail="File must be a CSV")
    if file.size is not None and file.size > MAX_UPLOAD_BYTES:
        raise too_large()

    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="Empty file")
    if len(content) > MAX_UPLOAD_BYTES:
        raise too_large()

    try:
        result = log_parser.parse_upload(content, file.filename or "")
    except ValueError as exc:
        raise HTTPException(status_code=400, detail={"error": "Empty file", "details": str(exc)})

    try:
        analysis = aggregator.analyze_upload(result.entries)
    except Exception as exc:
        logger.exception("Error processing upload %s", file.filename)
        raise server_error("Failed to process CSV file", exc)

    logger.info(
        "Processed upload %s: %d entries, %d skipped (%s)",
        file.filename, len(result.entries), result.skipped, result.mode,
    )
    message = (
        f"Successfully processed {len(result.entries)} log entries"
        if result.entries
        else "No log entries found in the file"
    )
    return {
        "success": True,
        "message": message,
        "analysis": to_payload(analysis),
        "skippedRows": result.skipped,
    }


@app.get(f"{API_PREFIX}/logs/sample")
def sample_logs(
    days: int = Query(30, ge=1, le=365),
    count: int = Query(500, ge=0, le=10000),
    seed: Optional[int] = Query(None),
) -> Dict[str, Any]:
    entries = generate_sample_logs(days=days, count=count, seed=seed)
    return {
        "logs": to_payload(entries),
        "analysis": to_payload(aggregator.analyze_access_logs(entries)),
    }


@app.post(f"{API_PREFIX}/logs/analyze")
def analyze_logs(body: LogsBody) -> Dict[str, Any]:
    return to_payload(aggregator.analyze_access_logs(read_logs(body.logs)))


# ──────────────────────────────────────────────────────────────────────────────
# Endpoint statistics + reports
# ──────────────────────────────────────────────────────────────────────────────

@app.post(f"{API_PREFIX}/endpoints/statistics")
def endpoint_statistics(body: StatisticsBody) -> Dict[str, Any]:
    days = body.days_in_sample or DAYS_IN_SAMPLE
    try:
        stats = aggregator.compute_statistics(
            read_logs(body.logs),
            days_in_sample=days,
            search=body.search,
            sort_by=body.sort_by,
            order=body.order,
        )
    except ValueError as exc:
        raise invalid(exc)
    return {"endpoints": to_payload(stats), "daysInSample": days}


@app.post(f"{API_PREFIX}/endpoints/report")
def endpoint_report(body: EndpointLogsBody) -> Dict[str, Any]:
    entries = aggregator.filter_endpoint(read_logs(body.logs), body.endpoint)
    if not entries:
        raise HTTPException(status_code=404, detail="No logs found for this endpoint")
    return to_payload(aggregator.compute_report(entries, body.endpoint))


@app.post(f"{API_PREFIX}/generate-endpoint-pdf")
def generate_endpoint_pdf(body: EndpointLogsBody) -> Dict[str, Any]:
    entries = aggregator.filter_endpoint(read_logs(body.logs), body.endpoint)
    if not entries:
        raise HTTPException(status_code=404, detail="No logs found for this endpoint")

    try:
        report = aggregator.compute_report(entries, body.endpoint)
        document = renderer.render_endpoint_report(report)
    except Exception as exc:
        logger.exception("Error generating PDF for %s", body.endpoint)
        raise server_error("Failed to generate PDF", exc)
    return to_payload(document)


# ──────────────────────────────────────────────────────────────────────────────
# Features
# ──────────────────────────────────────────────────────────────────────────────

@app.post(f"{API_PREFIX}/features/prioritize")
def prioritize_features(body: FeaturesBody) -> Dict[str, Any]:
    return {"features": to_payload(prioritize(body.to_features()))}


@app.post(f"{API_PREFIX}/features/endpoints")
def feature_endpoints(body: FeatureEndpointsBody) -> Dict[str, Any]:
    feature = body.feature.to_feature()
    scores = mapper.score_endpoints(feature, body.endpoints)
    return {
        "related": mapper.map_feature_to_endpoints(feature, body.endpoints),
        "scores": [{"endpoint": e, "score": round(s, 4)} for e, s in scores],
    }


@app.post(f"{API_PREFIX}/features/api-impact")
def feature_api_impact(body: FeatureImpactBody) -> Dict[str, Any]:
    feature = score_feature(body.feature.to_feature())
    return to_payload(mapper.analyze_api_impact(feature, read_logs(body.logs)))


@app.post(f"{API_PREFIX}/features/load-impact")
def feature_load_impact(body: FeatureBody) -> Dict[str, Any]:
    return to_payload(estimate_load_impact(body.feature.to_feature()))


@app.post(f"{API_PREFIX}/user-stories/analyze")
def user_story_analysis(body: UserStoryIn) -> Dict[str, Any]:
    return to_payload(analyze_user_story(body.to_input()))


@app.post(f"{API_PREFIX}/reports/feature-pdf")
def feature_report_pdf(body: FeatureReportBody) -> Dict[str, Any]:
    try:
        document = renderer.render_feature_report(
            [score_feature(f) for f in body.to_features()],
            risks=[r.to_risk() for r in body.risks],
            components=[c.to_component() for c in body.components],
            timeline=[t.to_timeline() for t in body.timeline],
            recommendations=body.recommendations,
            system_type=body.system_type,
            description=body.description,
        )
    except Exception as exc:
        logger.exception("Error generating feature report")
        raise server_error("Failed to generate PDF", exc)
    return to_payload(document)
