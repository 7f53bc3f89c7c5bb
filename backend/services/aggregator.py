"""
Aggregator Class - Computes metrics and statistics

This module aggregates log entries into per-endpoint statistics, histograms
and the summaries shown after an upload.
"""

import logging
from dataclasses import fields
from datetime import timezone
from typing import Callable, Dict, List, Optional

from models.data_models import (
    ApiLogAnalysis,
    DailyUsage,
    EndpointAnalysis,
    EndpointReport,
    EndpointStatistic,
    EndpointTrend,
    EndpointUsage,
    Enhancement,
    Finding,
    IPDistribution,
    LogAnalysisResult,
    LogEntry,
    camel_case,
)
from services.parser import LogParser
from utils.helpers import mean, percentile, rate

logger = logging.getLogger(__name__)

TOP_ENDPOINTS_LIMIT = 20
SLOWEST_ENDPOINTS_LIMIT = 10
ERROR_PRONE_LIMIT = 10
# endpoints with this many requests or fewer are left out of the error ranking
ERROR_RANKING_MIN_REQUESTS = 10

STATISTIC_FIELDS = {f.name: f.name for f in fields(EndpointStatistic)}
STATISTIC_FIELDS.update({camel_case(f.name): f.name for f in fields(EndpointStatistic)})


class Aggregator:
    """
    Aggregates log entries into metrics and statistics.
    Responsibilities:
    - Group entries by endpoint
    - Compute per-endpoint usage and statistics
    - Compute hourly / daily / status / IP distributions
    - Build the upload summary and the endpoint detail report
    """

    def __init__(self, log_parser: Optional[LogParser] = None):
        self.parser = log_parser or LogParser()

    # ── grouping ─────────────────────────────────────────────────────────────

    @staticmethod
    def group_by_endpoint(entries: List[LogEntry]) -> Dict[str, List[LogEntry]]:
        """Group by exact endpoint string, keeping first-seen order"""
        buckets: Dict[str, List[LogEntry]] = {}
        for e in entries:
            buckets.setdefault(e.endpoint, []).append(e)
        return buckets

    @staticmethod
    def filter_endpoint(entries: List[LogEntry], endpoint: str) -> List[LogEntry]:
        return [e for e in entries if e.endpoint == endpoint]

    # ── distributions ────────────────────────────────────────────────────────

    @staticmethod
    def hourly_distribution(entries: List[LogEntry]) -> List[int]:
        """Request count per local hour of day (24 buckets)"""
        hours = [0] * 24
        for e in entries:
            hours[e.timestamp.astimezone().hour] += 1
        return hours

    def peak_hour(self, entries: List[LogEntry]) -> int:
        """Busiest local hour; ties go to the earliest hour"""
        hours = self.hourly_distribution(entries)
        return max(range(24), key=hours.__getitem__)

    @staticmethod
    def daily_usage(entries: List[LogEntry]) -> List[DailyUsage]:
        """Request count per UTC calendar day, oldest first"""
        days: Dict[str, int] = {}
        for e in entries:
            day = e.timestamp.astimezone(timezone.utc).date().isoformat()
            days[day] = days.get(day, 0) + 1
        return [DailyUsage(date=d, count=c) for d, c in sorted(days.items())]

    @staticmethod
    def status_code_distribution(entries: List[LogEntry]) -> Dict[str, int]:
        by_status: Dict[str, int] = {}
        for e in entries:
            key = str(e.status_code)
            by_status[key] = by_status.get(key, 0) + 1
        return dict(sorted(by_status.items(), key=lambda kv: int(kv[0])))

    @staticmethod
    def ip_distribution(entries: List[LogEntry]) -> List[IPDistribution]:
        by_ip: Dict[str, int] = {}
        for e in entries:
            by_ip[e.ip] = by_ip.get(e.ip, 0) + 1
        return [IPDistribution(region=ip, count=c) for ip, c in by_ip.items()]

    def endpoint_trends(self, entries: List[LogEntry]) -> List[EndpointTrend]:
        return [
            EndpointTrend(endpoint=endpoint, usage=self.daily_usage(items))
            for endpoint, items in self.group_by_endpoint(entries).items()
        ]

    # ── per-endpoint aggregates ──────────────────────────────────────────────

    def endpoint_usage(self, entries: List[LogEntry]) -> List[EndpointUsage]:
        """Usage per endpoint, most requested first"""
        usage: List[EndpointUsage] = []
        for endpoint, items in self.group_by_endpoint(entries).items():
            successes = sum(1 for e in items if self.parser.is_success(e))
            usage.append(
                EndpointUsage(
                    endpoint=endpoint,
                    count=len(items),
                    avg_response_time=mean([e.response_time for e in items]),
                    success_rate=rate(successes, len(items)),
                )
            )
        usage.sort(key=lambda u: u.count, reverse=True)
        return usage

    def endpoint_analysis(self, entries: List[LogEntry]) -> List[EndpointAnalysis]:
        out: List[EndpointAnalysis] = []
        for endpoint, items in self.group_by_endpoint(entries).items():
            methods: Dict[str, int] = {}
            for e in items:
                methods[e.method] = methods.get(e.method, 0) + 1
            successes = sum(1 for e in items if self.parser.is_success(e))
            out.append(
                EndpointAnalysis(
                    endpoint=endpoint,
                    count=len(items),
                    avg_response_time=mean([e.response_time for e in items]),
                    success_rate=rate(successes, len(items)),
                    methods=methods,
                    users=len({e.username for e in items if e.username}),
                    devices=len({e.device_id for e in items if e.device_id}),
                )
            )
        return out

    def compute_statistic(self, endpoint: str, items: List[LogEntry], days_in_sample: float) -> EndpointStatistic:
        """Statistics for one endpoint group; an empty group yields zeros"""
        count = len(items)
        successes = sum(1 for e in items if self.parser.is_success(e))
        drops = sum(1 for e in items if self.parser.is_error(e))
        response_times = [e.response_time for e in items]
        daily = (count / days_in_sample) if days_in_sample > 0 else 0.0

        return EndpointStatistic(
            endpoint=endpoint,
            count=count,
            success_count=successes,
            failure_count=count - successes,
            success_rate=rate(successes, count),
            daily_frequency=daily,
            hourly_frequency=daily / 24,
            drop_frequency=rate(drops, count),
            avg_response_time=mean(response_times),
            p95_response_time=percentile(response_times, 95),
            peak_hour=self.peak_hour(items),
            last_seen=max((e.timestamp for e in items), default=None),
        )

    def compute_statistics(
        self,
        entries: List[LogEntry],
        days_in_sample: float,
        search: str = "",
        sort_by: str = "count",
        order: str = "desc",
    ) -> List[EndpointStatistic]:
        """Statistics table: every endpoint, filtered by search and sorted"""
        attr = STATISTIC_FIELDS.get(sort_by)
        if attr is None:
            raise ValueError(f"Unknown sort field: {sort_by}")

        needle = (search or "").lower()
        stats = [
            self.compute_statistic(endpoint, items, days_in_sample)
            for endpoint, items in self.group_by_endpoint(entries).items()
            if needle in endpoint.lower()
        ]

        key_fn: Callable[[EndpointStatistic], object] = lambda s: getattr(s, attr)
        stats.sort(key=key_fn, reverse=order.lower() != "asc")
        return stats

    # ── summaries ────────────────────────────────────────────────────────────

    def analyze_upload(self, entries: List[LogEntry]) -> ApiLogAnalysis:
        """Summary returned by the upload endpoint"""
        per_endpoint = self.endpoint_analysis(entries)

        top = sorted(per_endpoint, key=lambda a: a.count, reverse=True)[:TOP_ENDPOINTS_LIMIT]
        slowest = sorted(per_endpoint, key=lambda a: a.avg_response_time, reverse=True)[:SLOWEST_ENDPOINTS_LIMIT]
        error_prone = sorted(
            (a for a in per_endpoint if a.count > ERROR_RANKING_MIN_REQUESTS),
            key=lambda a: a.success_rate,
        )[:ERROR_PRONE_LIMIT]

        return ApiLogAnalysis(
            total_requests=len(entries),
            unique_endpoints=len({e.endpoint for e in entries}),
            unique_ips=len({e.ip for e in entries}),
            unique_users=len({e.username for e in entries if e.username}),
            unique_devices=len({e.device_id for e in entries if e.device_id}),
            top_endpoints=top,
            endpoints_by_response_time=slowest,
            endpoints_by_error_rate=error_prone,
        )

    def analyze_access_logs(self, entries: List[LogEntry]) -> LogAnalysisResult:
        return LogAnalysisResult(
            total_requests=len(entries),
            unique_ips=len({e.ip for e in entries}),
            unique_endpoints=len({e.endpoint for e in entries}),
            unique_users=len({e.username for e in entries if e.username}),
            top_endpoints=self.endpoint_usage(entries),
            daily_usage=self.daily_usage(entries),
            ip_distribution=self.ip_distribution(entries),
            endpoint_trends=self.endpoint_trends(entries),
        )

    # ── endpoint detail report ───────────────────────────────────────────────

    def compute_report(self, entries: List[LogEntry], endpoint: str) -> EndpointReport:
        items = self.filter_endpoint(entries, endpoint)
        total = len(items)
        successes = sum(1 for e in items if self.parser.is_success(e))
        response_times = [e.response_time for e in items]
        hourly = self.hourly_distribution(items)
        peak = self.peak_hour(items)

        report = EndpointReport(
            endpoint=endpoint,
            total_requests=total,
            successful_requests=successes,
            failed_requests=total - successes,
            success_rate=rate(successes, total),
            avg_response_time=mean(response_times),
            p95_response_time=percentile(response_times, 95),
            unique_ips=len({e.ip for e in items}),
            peak_hour=peak,
            status_codes=self.status_code_distribution(items),
            daily_trend=self.daily_usage(items),
            hourly_distribution=hourly,
            recommendations=[],
            enhancements=[],
        )
        report.recommendations = self._recommendations(report)
        report.enhancements = self._enhancements(report)
        logger.debug("Built report for %s from %d entries", endpoint, total)
        return report

    @staticmethod
    def _peak_ratio(report: EndpointReport) -> float:
        avg_hourly = sum(report.hourly_distribution) / 24
        if avg_hourly == 0:
            return 0.0
        return report.hourly_distribution[report.peak_hour] / avg_hourly

    def _recommendations(self, report: EndpointReport) -> List[Finding]:
        out: List[Finding] = []
        if report.total_requests == 0:
            return out

        if report.avg_response_time > 500:
            out.append(Finding(
                type="performance",
                severity="high",
                title="High Average Response Time",
                description=(
                    f"The average response time of {report.avg_response_time:.0f}ms is high. "
                    "Consider optimizing the endpoint implementation."
                ),
            ))
        elif report.avg_response_time > 200:
            out.append(Finding(
                type="performance",
                severity="medium",
                title="Moderate Response Time",
                description=(
                    f"The average response time of {report.avg_response_time:.0f}ms could be improved. "
                    "Review the endpoint for potential optimizations."
                ),
            ))

        if report.success_rate < 95:
            out.append(Finding(
                type="reliability",
                severity="high",
                title="Low Success Rate",
                description=(
                    f"The success rate of {report.success_rate:.1f}% is below the recommended "
                    "threshold of 95%. Investigate the causes of failures."
                ),
            ))
        elif report.success_rate < 98:
            out.append(Finding(
                type="reliability",
                severity="medium",
                title="Moderate Success Rate",
                description=(
                    f"The success rate of {report.success_rate:.1f}% could be improved. "
                    "Review error patterns to increase reliability."
                ),
            ))

        ratio = self._peak_ratio(report)
        if ratio > 3:
            out.append(Finding(
                type="scaling",
                severity="high",
                title="High Peak Hour Load",
                description=(
                    f"The load during peak hour ({report.peak_hour}:00) is {ratio:.1f}x the average. "
                    "Consider implementing caching or scaling strategies during peak hours."
                ),
            ))
        return out

    def _enhancements(self, report: EndpointReport) -> List[Enhancement]:
        out: List[Enhancement] = []
        if report.total_requests == 0:
            return out

        if report.total_requests > 1000:
            out.append(Enhancement(
                title="High Usage API",
                description=(
                    "This endpoint has high usage and would benefit from performance "
                    "optimizations and caching strategies."
                ),
                impact="high",
            ))
        if report.p95_response_time > 1000:
            out.append(Enhancement(
                title="Response Time Optimization",
                description=(
                    f"The 95th percentile response time ({report.p95_response_time:.0f}ms) indicates "
                    "potential performance issues that could be addressed."
                ),
                impact="high",
            ))
        if report.success_rate < 98:
            out.append(Enhancement(
                title="Error Handling Improvement",
                description=(
                    "Improving error handling and implementing retry mechanisms could "
                    "increase the success rate."
                ),
                impact="medium",
            ))
        if self._peak_ratio(report) > 2:
            out.append(Enhancement(
                title="Load Balancing",
                description=(
                    "Consider implementing load balancing or caching strategies to handle "
                    f"peak loads at {report.peak_hour}:00."
                ),
                impact="medium",
            ))
        return out
