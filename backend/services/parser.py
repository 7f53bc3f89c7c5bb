"""
LogParser Class - Handles parsing and normalization

This module parses uploaded CSV / JSON / JSONL log exports into structured
LogEntry objects. Column names vary between exporters, so each field is read
from the first matching alias.
"""

import csv
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from models.data_models import LogEntry, ParseResult
from utils.helpers import first_present, parse_ts, safe_float, safe_int

logger = logging.getLogger(__name__)

ID_KEYS = ("id", "_id")
IP_KEYS = ("ip", "public_ip", "clientIp")
ENDPOINT_KEYS = ("requestEndPoint", "request_path", "url", "endpoint", "path")
STATUS_KEYS = ("responseCode", "status_code", "statusCode", "status")
RESPONSE_TIME_KEYS = ("responseTime", "response_time", "duration")
USER_AGENT_KEYS = ("userAgent", "user_agent")
METHOD_KEYS = ("method", "request_method")
USERNAME_KEYS = ("username", "user")
DEVICE_KEYS = ("deviceId", "device_id")
TIMESTAMP_KEYS = ("createdAt", "timestamp", "created_at")

# JSON exports sometimes wrap the list of records in an object
LIST_KEYS = ("logs", "events", "entries", "data", "items")

CSV_EXTENSIONS = (".csv",)
JSON_EXTENSIONS = (".json", ".jsonl", ".ndjson")

# A quoted CSV field may contain newlines, up to this many physical lines
MAX_RECORD_LINES = 50


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


class LogParser:
    """
    Parses raw uploads into structured LogEntry objects.
    Responsibilities:
    - Decode CSV, JSON and JSONL exports
    - Normalize the many column spellings
    - Skip malformed rows without aborting the upload
    - Classify log entries (success, error)
    """

    @staticmethod
    def is_supported(filename: str) -> bool:
        name = (filename or "").lower()
        return name.endswith(CSV_EXTENSIONS + JSON_EXTENSIONS)

    def parse_upload(self, content: bytes, filename: str) -> ParseResult:
        """Parse uploaded file content, choosing the format from the file name"""
        if not content:
            raise ValueError("Empty file content")

        text = content.decode("utf-8-sig", errors="ignore").strip()
        if not text:
            raise ValueError("Empty file after decoding")

        if (filename or "").lower().endswith(JSON_EXTENSIONS):
            return self.parse_json(text)
        return self.parse_csv(text)

    def parse_csv(self, text: str) -> ParseResult:
        """
        Parse CSV with a header row.
        Rows with more cells than the header, or that the csv module rejects,
        are skipped and counted. A rejected row costs one physical line:
        parsing resumes on the next line.
        """
        lines = text.splitlines(keepends=True)
        header, used = self._read_record(lines, 0, width=None)
        if not header:
            return ParseResult(entries=[], skipped=0, mode="csv")
        fieldnames = [name.strip() for name in header]
        width = len(fieldnames)

        now = datetime.now(timezone.utc)
        entries: List[LogEntry] = []
        skipped = 0

        i = max(used, 1)
        while i < len(lines):
            line_no = i + 1
            if not lines[i].strip():
                i += 1
                continue

            cells, used = self._read_record(lines, i, width)
            if cells is None:
                skipped += 1
                logger.debug("Skipping unreadable CSV row at line %d", line_no)
                i += 1
                continue
            i += used

            if len(cells) > width:
                skipped += 1
                logger.debug("Skipping CSV row at line %d: more cells than header columns", line_no)
                continue

            row = dict(zip(fieldnames, cells))
            if not any(_text(v) for v in row.values()):
                continue

            entry = self.normalize(row, now=now)
            if entry is None:
                skipped += 1
                logger.debug("Skipping CSV row at line %d: invalid timestamp", line_no)
                continue
            entries.append(entry)

        return ParseResult(entries=entries, skipped=skipped, mode="csv")

    @staticmethod
    def _read_record(lines: List[str], start: int, width: Optional[int]) -> Tuple[Optional[List[str]], int]:
        """
        Read one CSV record beginning at lines[start].
        A quoted field may run over several lines, but the record must close
        within MAX_RECORD_LINES and, when it spans lines, have at most `width`
        cells. Returns (cells, lines used), or (None, 0) for an unreadable row.
        """
        last = min(start + MAX_RECORD_LINES, len(lines))
        for end in range(start + 1, last + 1):
            reader = csv.reader(lines[start:end], strict=True, skipinitialspace=True)
            try:
                cells = next(reader)
            except (csv.Error, StopIteration):
                continue
            used = end - start
            if reader.line_num != used:
                return None, 0
            if used > 1 and width is not None and len(cells) > width:
                return None, 0
            return cells, used
        return None, 0

    def parse_json(self, text: str) -> ParseResult:
        """
        Accepts:
          - JSON array
          - JSON object containing a list under logs/events/entries/data/items
          - Single JSON object
          - JSONL (one object per line, invalid lines are skipped)
        """
        skipped = 0
        try:
            obj = json.loads(text)
        except json.JSONDecodeError:
            items, skipped = self._read_jsonl(text)
            mode = "jsonl"
        else:
            items, mode = self._unwrap(obj)

        result = self.normalize_many(items)
        result.skipped += skipped
        result.mode = mode
        return result

    def normalize_many(self, items: Iterable[Any]) -> ParseResult:
        """Normalize a sequence of raw records, counting the ones that are not usable"""
        now = datetime.now(timezone.utc)
        entries: List[LogEntry] = []
        skipped = 0
        for item in items:
            if not isinstance(item, dict):
                skipped += 1
                continue
            entry = self.normalize(item, now=now)
            if entry is None:
                skipped += 1
                continue
            entries.append(entry)
        return ParseResult(entries=entries, skipped=skipped, mode="records")

    @staticmethod
    def normalize(raw: Dict[str, Any], now: Optional[datetime] = None) -> Optional[LogEntry]:
        """
        Normalize a raw log record into a LogEntry.
        Missing timestamp means "now"; a timestamp that does not parse makes
        the record malformed (None).
        """
        ts_raw = first_present(raw, TIMESTAMP_KEYS)
        if ts_raw is None:
            ts = now or datetime.now(timezone.utc)
        else:
            ts = parse_ts(ts_raw)
            if ts is None:
                return None

        status = safe_int(first_present(raw, STATUS_KEYS))
        if status is None or status <= 0:
            status = 200

        response_time = safe_float(first_present(raw, RESPONSE_TIME_KEYS)) or 0.0

        record_id = first_present(raw, ID_KEYS)

        return LogEntry(
            timestamp=ts,
            ip=_text(first_present(raw, IP_KEYS)) or "unknown",
            endpoint=_text(first_present(raw, ENDPOINT_KEYS)) or "unknown",
            status_code=status,
            response_time=response_time,
            user_agent=_text(first_present(raw, USER_AGENT_KEYS)),
            method=(_text(first_present(raw, METHOD_KEYS)) or "GET").upper(),
            username=_text(first_present(raw, USERNAME_KEYS)),
            device_id=_text(first_present(raw, DEVICE_KEYS)),
            request_body=_text(raw.get("requestBody")),
            response_body=_text(raw.get("responseBody")),
            id=_text(record_id) if record_id is not None else None,
        )

    @staticmethod
    def is_success(entry: LogEntry) -> bool:
        """2xx and 3xx count as success"""
        return 200 <= entry.status_code < 400

    @staticmethod
    def is_error(entry: LogEntry) -> bool:
        """Check if entry represents a dropped request (status >= 400)"""
        return entry.status_code >= 400

    @staticmethod
    def _unwrap(obj: Any) -> Tuple[List[Any], str]:
        if isinstance(obj, list):
            return obj, "json_array"
        if isinstance(obj, dict):
            for key in LIST_KEYS:
                if isinstance(obj.get(key), list):
                    return obj[key], f"json_object.{key}"
            return [obj], "single_json_object"
        return [obj], "json_scalar"

    @staticmethod
    def _read_jsonl(text: str) -> Tuple[List[Any], int]:
        items: List[Any] = []
        skipped = 0
        for line in text.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                items.append(json.loads(line))
            except json.JSONDecodeError:
                skipped += 1
        return items, skipped
