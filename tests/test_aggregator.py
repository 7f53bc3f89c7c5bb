"""Tests for Aggregator: per-endpoint statistics, distributions and reports."""

from datetime import datetime, timezone

import pytest

from models.data_models import LogEntry


class TestEndpointStatistics:

    def test_two_entry_example(self, aggregator, entry_factory):
        entries = [
            entry_factory("/a", 200, 100),
            entry_factory("/a", 500, 300),
        ]
        stat = aggregator.compute_statistics(entries, days_in_sample=30)[0]

        assert stat.endpoint == "/a"
        assert stat.count == 2
        assert stat.success_rate == 50.0
        assert stat.avg_response_time == 200.0
        assert stat.drop_frequency == 50.0
        assert stat.success_count == 1
        assert stat.failure_count == 1

    def test_counts_sum_to_total(self, aggregator, entry_factory):
        entries = [entry_factory(f"/e{i % 4}", 200 if i % 3 else 404, i) for i in range(37)]
        stats = aggregator.compute_statistics(entries, days_in_sample=7)

        assert sum(s.count for s in stats) == len(entries)
        assert len(stats) == 4

    def test_success_and_drop_add_up(self, aggregator, entry_factory):
        entries = [entry_factory("/a", code) for code in (200, 201, 301, 400, 404, 500, 503)]
        stat = aggregator.compute_statistic("/a", entries, 30)

        assert stat.success_rate + stat.drop_frequency == pytest.approx(100.0)

    def test_empty_group_is_all_zero(self, aggregator):
        stat = aggregator.compute_statistic("/none", [], 30)

        assert stat.count == 0
        assert stat.success_rate == 0.0
        assert stat.drop_frequency == 0.0
        assert stat.avg_response_time == 0.0
        assert stat.p95_response_time == 0.0
        assert stat.daily_frequency == 0.0
        assert stat.peak_hour == 0
        assert stat.last_seen is None

    def test_empty_log_set(self, aggregator):
        assert aggregator.compute_statistics([], days_in_sample=30) == []

    def test_daily_frequency_uses_caller_days(self, aggregator, entry_factory):
        entries = [entry_factory("/a") for _ in range(60)]
        stat = aggregator.compute_statistic("/a", entries, 30)

        assert stat.daily_frequency == 2.0
        assert stat.hourly_frequency == pytest.approx(2.0 / 24)

    def test_p95_and_last_seen(self, aggregator, entry_factory):
        entries = [entry_factory("/a", 200, rt, hour=h) for h, rt in enumerate(range(10, 210, 10))]
        stat = aggregator.compute_statistic("/a", entries, 30)

        assert stat.p95_response_time == 190.0
        assert stat.last_seen == max(e.timestamp for e in entries)

    def test_peak_hour_ties_go_to_earliest(self, aggregator, entry_factory):
        entries = [
            entry_factory("/a", hour=15),
            entry_factory("/a", hour=9),
            entry_factory("/a", hour=15),
            entry_factory("/a", hour=9),
        ]
        assert aggregator.peak_hour(entries) == 9

    def test_peak_hour(self, aggregator, entry_factory):
        entries = [entry_factory("/a", hour=h) for h in (3, 18, 18, 22)]
        assert aggregator.compute_statistic("/a", entries, 30).peak_hour == 18

    def test_no_path_normalization(self, aggregator, entry_factory):
        entries = [entry_factory("/users/1"), entry_factory("/users/2"), entry_factory("/users/1")]
        stats = aggregator.compute_statistics(entries, 30)

        assert {s.endpoint: s.count for s in stats} == {"/users/1": 2, "/users/2": 1}

    def test_search_and_sort(self, aggregator, entry_factory):
        entries = (
            [entry_factory("/users/profile", response_time=50)] * 3
            + [entry_factory("/users/follows", response_time=400)]
            + [entry_factory("/products", response_time=10)] * 5
        )
        by_time = aggregator.compute_statistics(entries, 30, search="USERS", sort_by="avgResponseTime")
        assert [s.endpoint for s in by_time] == ["/users/follows", "/users/profile"]

        by_name = aggregator.compute_statistics(entries, 30, sort_by="endpoint", order="asc")
        assert [s.endpoint for s in by_name] == ["/products", "/users/follows", "/users/profile"]

    def test_unknown_sort_field(self, aggregator, entry_factory):
        with pytest.raises(ValueError):
            aggregator.compute_statistics([entry_factory()], 30, sort_by="bogus")


class TestDistributions:

    def test_hourly_distribution(self, aggregator, entry_factory):
        hours = aggregator.hourly_distribution([entry_factory(hour=h) for h in (0, 0, 23)])

        assert len(hours) == 24
        assert hours[0] == 2
        assert hours[23] == 1
        assert sum(hours) == 3

    def test_daily_usage_sorted_by_utc_date(self, aggregator):
        def at(ts: str) -> LogEntry:
            return LogEntry(
                timestamp=datetime.fromisoformat(ts).replace(tzinfo=timezone.utc),
                ip="x", endpoint="/a", status_code=200, response_time=0,
            )

        usage = aggregator.daily_usage([
            at("2024-03-07T08:00:00"),
            at("2024-03-05T23:59:00"),
            at("2024-03-07T20:00:00"),
        ])
        assert [(d.date, d.count) for d in usage] == [("2024-03-05", 1), ("2024-03-07", 2)]

    def test_status_code_distribution(self, aggregator, entry_factory):
        entries = [entry_factory(status_code=c) for c in (500, 200, 200, 404)]
        assert aggregator.status_code_distribution(entries) == {"200": 2, "404": 1, "500": 1}


class TestSummaries:

    def test_upload_summary(self, aggregator, entry_factory):
        entries = (
            [entry_factory("/busy", 500 if i < 3 else 200, 100, username=f"u{i % 2}", device_id="d1")
             for i in range(12)]
            + [entry_factory("/slow", 200, 900, method="POST", ip="10.0.0.9")]
        )
        summary = aggregator.analyze_upload(entries)

        assert summary.total_requests == 13
        assert summary.unique_endpoints == 2
        assert summary.unique_ips == 2
        assert summary.unique_users == 2
        assert summary.unique_devices == 1
        assert summary.top_endpoints[0].endpoint == "/busy"
        assert summary.top_endpoints[0].users == 2
        assert summary.endpoints_by_response_time[0].endpoint == "/slow"
        assert summary.endpoints_by_response_time[0].methods == {"POST": 1}
        # /slow has too few requests to be ranked by error rate
        assert [a.endpoint for a in summary.endpoints_by_error_rate] == ["/busy"]
        assert summary.endpoints_by_error_rate[0].success_rate == pytest.approx(75.0)

    def test_empty_upload_summary(self, aggregator):
        summary = aggregator.analyze_upload([])

        assert summary.total_requests == 0
        assert summary.unique_endpoints == 0
        assert summary.top_endpoints == []
        assert summary.endpoints_by_error_rate == []

    def test_access_log_analysis(self, aggregator, entry_factory):
        entries = [entry_factory("/a", ip="1"), entry_factory("/a", ip="2"), entry_factory("/b", ip="1")]
        result = aggregator.analyze_access_logs(entries)

        assert result.total_requests == 3
        assert result.unique_ips == 2
        assert [u.endpoint for u in result.top_endpoints] == ["/a", "/b"]
        assert {d.region: d.count for d in result.ip_distribution} == {"1": 2, "2": 1}
        assert [t.endpoint for t in result.endpoint_trends] == ["/a", "/b"]

    def test_empty_access_log_analysis(self, aggregator):
        result = aggregator.analyze_access_logs([])
        assert result.total_requests == 0
        assert result.daily_usage == []


class TestEndpointReport:

    def test_healthy_endpoint(self, aggregator, entry_factory):
        entries = [entry_factory("/a", 200, 100, hour=h) for h in range(24)]
        report = aggregator.compute_report(entries, "/a")

        assert report.total_requests == 24
        assert report.success_rate == 100.0
        assert report.recommendations == []
        assert report.enhancements == []

    def test_slow_failing_peaky_endpoint(self, aggregator, entry_factory):
        entries = [entry_factory("/a", 500 if i % 2 else 200, 1500, hour=14) for i in range(10)]
        entries.append(entry_factory("/other"))
        report = aggregator.compute_report(entries, "/a")

        assert report.total_requests == 10
        assert report.failed_requests == 5
        assert report.peak_hour == 14
        assert report.status_codes == {"200": 5, "500": 5}

        titles = [r.title for r in report.recommendations]
        assert titles == ["High Average Response Time", "Low Success Rate", "High Peak Hour Load"]
        assert {r.severity for r in report.recommendations} == {"high"}

        enhancement_titles = [e.title for e in report.enhancements]
        assert "Response Time Optimization" in enhancement_titles
        assert "Error Handling Improvement" in enhancement_titles
        assert "Load Balancing" in enhancement_titles
        assert "High Usage API" not in enhancement_titles

    def test_moderate_thresholds(self, aggregator, entry_factory):
        entries = [entry_factory("/a", 404 if i == 0 else 200, 300, hour=i % 24) for i in range(30)]
        report = aggregator.compute_report(entries, "/a")

        severities = {r.title: r.severity for r in report.recommendations}
        assert severities == {"Moderate Response Time": "medium", "Moderate Success Rate": "medium"}

    def test_unknown_endpoint(self, aggregator, entry_factory):
        report = aggregator.compute_report([entry_factory("/a")], "/missing")

        assert report.total_requests == 0
        assert report.success_rate == 0.0
        assert report.recommendations == []
