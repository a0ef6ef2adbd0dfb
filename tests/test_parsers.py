from datetime import datetime, timedelta, timezone

import pytest

from loganizer.errors import ParseFailure
from loganizer.models import Dialect
from loganizer.parsers import (
    KNOWN_LEVELS,
    ApacheAccessParser,
    ApacheErrorParser,
    CustomAppParser,
    GenericParser,
    JSONParser,
    MySQLErrorParser,
    NginxAccessParser,
    NginxErrorParser,
    TimestampPolicy,
    extract_log_level,
    get_parser,
    level_from_status,
)

NGINX_ACCESS_LINE = (
    '203.0.113.9 - - [10/Oct/2024:13:55:36 +0000] "GET /index.html HTTP/1.1" {status} 612 "-" "curl/8.4.0"'
)
APACHE_ACCESS_LINE = '198.51.100.7 - frank [10/Oct/2024:13:55:36 -0700] "GET /apache_pb.gif HTTP/1.0" {status} 2326'

WELL_FORMED = [
    ("generic", "2024-01-01 10:00:00 ERROR disk full"),
    ("generic", "2024-01-01 10:00:00 [warn] cache nearly full"),
    ("nginx-access", NGINX_ACCESS_LINE.format(status=200)),
    ("apache-access", APACHE_ACCESS_LINE.format(status=404)),
    ("nginx-error", "2024/10/10 13:55:36 [error] 1234#5678: *1 open() failed"),
    ("apache-error", "[Thu Oct 10 13:55:36.123456 2024] [core:error] [pid 1234:tid 5678] File does not exist"),
    ("mysql-error", "2024-10-10T13:55:36.123456Z 12 [ERROR] [MY-010584] Replica failed"),
    ("mysql-error", "2024-10-10 13:55:36 [Warning] InnoDB: slow flush"),
    ("custom-app", "[2024-01-01 10:00:00] FATAL payments: ledger corrupted"),
    ("custom-app", "2024-01-01 10:00:00 debug warming cache"),
    ("json", '{"timestamp": "2024-01-01T10:00:00Z", "level": "trace", "message": "tick"}'),
]


@pytest.mark.parametrize(("source_type", "line"), WELL_FORMED)
def test_well_formed_lines_yield_known_uppercase_level(source_type, line):
    record = get_parser(source_type).parse(line, 7)

    assert record.level in KNOWN_LEVELS
    assert record.level == record.level.upper()
    assert record.line_number == 7
    assert record.dialect == source_type


@pytest.mark.parametrize("status", list(range(100, 600, 7)) + [399, 400, 499, 500, 599])
def test_status_code_dialects_derive_level(status):
    expected = "ERROR" if status >= 500 else "WARN" if status >= 400 else "INFO"

    assert level_from_status(status) == expected
    assert NginxAccessParser().parse(NGINX_ACCESS_LINE.format(status=status), 1).level == expected
    assert ApacheAccessParser().parse(APACHE_ACCESS_LINE.format(status=status), 1).level == expected


def test_get_parser_dispatch_and_default():
    assert isinstance(get_parser("nginx-access"), NginxAccessParser)
    assert isinstance(get_parser("NGINX-ERROR"), NginxErrorParser)
    assert isinstance(get_parser(Dialect.APACHE_ERROR), ApacheErrorParser)
    assert isinstance(get_parser("mysql-error"), MySQLErrorParser)
    assert isinstance(get_parser("custom-app"), CustomAppParser)
    assert isinstance(get_parser("json"), JSONParser)
    assert isinstance(get_parser("unknown"), GenericParser)
    assert isinstance(get_parser("syslog-ng"), GenericParser)


def test_get_parser_passes_policy():
    assert get_parser("json", TimestampPolicy.STRICT).policy is TimestampPolicy.STRICT


def test_extract_log_level_prefers_most_severe_token():
    assert extract_log_level("worker crashed: FATAL error in loop") == "FATAL"
    assert extract_log_level("request error") == "ERROR"
    assert extract_log_level("Warning: low disk") == "WARN"
    assert extract_log_level("nothing to see") == "INFO"


class TestGenericParser:
    def test_parses_layout(self):
        record = GenericParser().parse("2024-01-01 10:00:00 ERROR disk full", 1)

        assert record.timestamp == datetime(2024, 1, 1, 10, 0, 0)
        assert record.level == "ERROR"
        assert record.message == "disk full"
        assert record.fields == {}

    def test_bracketed_level(self):
        record = GenericParser().parse("2024-01-01 10:00:00 [info] started", 1)

        assert record.level == "INFO"
        assert record.message == "started"

    def test_best_effort_for_unstructured_line(self):
        record = GenericParser().parse("kernel: something went wrong, error 42", 3)

        assert record.level == "ERROR"
        assert record.message == "kernel: something went wrong, error 42"
        assert record.timestamp.tzinfo is not None

    def test_empty_line_fails(self):
        with pytest.raises(ParseFailure) as info:
            GenericParser().parse("   ", 2)
        assert info.value.reason == "empty"

    def test_lenient_bad_timestamp_uses_now(self):
        before = datetime.now(timezone.utc)
        record = GenericParser().parse("2024-13-45 10:00:00 ERROR bad month", 1)

        assert record.level == "ERROR"
        assert record.timestamp - before < timedelta(minutes=1)

    def test_strict_bad_timestamp_fails(self):
        with pytest.raises(ParseFailure) as info:
            GenericParser(TimestampPolicy.STRICT).parse("2024-13-45 10:00:00 ERROR bad month", 4)
        assert info.value.reason == "bad-timestamp"
        assert info.value.line_number == 4

    def test_strict_rejects_best_effort(self):
        with pytest.raises(ParseFailure) as info:
            GenericParser(TimestampPolicy.STRICT).parse("no structure at all", 1)
        assert info.value.reason == "format-mismatch"


class TestWebParsers:
    def test_nginx_access_fields(self):
        record = NginxAccessParser().parse(NGINX_ACCESS_LINE.format(status=503), 1)

        assert record.level == "ERROR"
        assert record.message == "203.0.113.9 GET /index.html HTTP/1.1 -> 503"
        assert record.fields["status"] == "503"
        assert record.fields["user_agent"] == "curl/8.4.0"
        assert record.timestamp == datetime(2024, 10, 10, 13, 55, 36, tzinfo=timezone.utc)

    def test_apache_access_fields(self):
        record = ApacheAccessParser().parse(APACHE_ACCESS_LINE.format(status=200), 1)

        assert record.level == "INFO"
        assert set(record.fields) == {"ip", "request", "status", "size"}
        assert record.timestamp.utcoffset() == timedelta(hours=-7)

    def test_access_mismatch_is_a_failure(self):
        with pytest.raises(ParseFailure) as info:
            NginxAccessParser().parse("not an access log line", 1)
        assert info.value.reason == "format-mismatch"

    def test_nginx_error(self):
        record = NginxErrorParser().parse("2024/10/10 13:55:36 [warn] 1234#5678: upstream slow", 1)

        assert record.level == "WARN"
        assert record.message == "upstream slow"
        assert record.fields == {"pid": "1234", "tid": "5678"}
        assert record.timestamp == datetime(2024, 10, 10, 13, 55, 36)

    def test_apache_error_module_prefix_is_dropped(self):
        record = ApacheErrorParser().parse(
            "[Thu Oct 10 13:55:36.123456 2024] [core:error] [pid 1234:tid 5678] File does not exist", 1
        )

        assert record.level == "ERROR"
        assert record.fields == {"process": "pid 1234:tid 5678"}
        assert record.timestamp == datetime(2024, 10, 10, 13, 55, 36, 123456)


class TestMySQLErrorParser:
    def test_modern_layout(self):
        record = MySQLErrorParser().parse("2024-10-10T13:55:36.123456Z 12 [ERROR] [MY-010584] Replica failed", 1)

        assert record.level == "ERROR"
        assert record.fields == {"thread": "12"}
        assert record.message == "[MY-010584] Replica failed"
        assert record.timestamp.tzinfo == timezone.utc

    def test_simple_layout(self):
        record = MySQLErrorParser().parse("2024-10-10 13:55:36 [Note] InnoDB: ready", 1)

        assert record.level == "NOTE"
        assert record.message == "InnoDB: ready"

    def test_mismatch_is_a_failure(self):
        with pytest.raises(ParseFailure):
            MySQLErrorParser().parse("InnoDB: ready", 1)


class TestCustomAppParser:
    def test_component_layout(self):
        record = CustomAppParser().parse("[2024-01-01 10:00:00] ERROR payments: card declined", 1)

        assert record.level == "ERROR"
        assert record.message == "card declined"
        assert record.fields == {"component": "payments"}

    def test_simple_layout(self):
        record = CustomAppParser().parse("2024-01-01 10:00:00 WARN low stock", 1)

        assert record.level == "WARN"
        assert record.message == "low stock"

    def test_best_effort(self):
        record = CustomAppParser().parse("unexpected fatal condition", 1)

        assert record.level == "FATAL"
        assert record.message == "unexpected fatal condition"


class TestJSONParser:
    def test_special_keys_and_side_fields(self):
        record = JSONParser().parse(
            '{"timestamp": "2024-01-01T10:00:00Z", "level": "error", "msg": "boom", "user": 42, "ok": true}', 1
        )

        assert record.level == "ERROR"
        assert record.message == "boom"
        assert record.fields == {"user": "42", "ok": "true"}
        assert record.timestamp == datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)

    def test_message_wins_over_msg(self):
        record = JSONParser().parse('{"message": "first", "msg": "second"}', 1)

        assert record.message == "first"
        assert record.level == "INFO"

    def test_malformed_json_fails(self):
        with pytest.raises(ParseFailure) as info:
            JSONParser().parse('{"level": ', 1)
        assert info.value.reason.startswith("invalid-json")

    def test_non_object_fails(self):
        with pytest.raises(ParseFailure) as info:
            JSONParser().parse("[1, 2, 3]", 1)
        assert info.value.reason == "not-an-object"

    def test_strict_missing_timestamp_fails(self):
        with pytest.raises(ParseFailure):
            JSONParser(TimestampPolicy.STRICT).parse('{"level": "info", "message": "hi"}', 1)

    def test_deeply_nested_json_fails(self):
        with pytest.raises(ParseFailure) as info:
            JSONParser().parse("[" * 100000, 7)
        assert info.value.reason.startswith("invalid-json")
        assert info.value.line_number == 7

    @pytest.mark.parametrize(
        "value, microsecond",
        [("2024-01-01T10:00:00.12Z", 120000), ("2024-01-01T10:00:00.1234567+00:00", 123456)],
    )
    def test_any_fraction_length_is_accepted(self, value, microsecond):
        record = JSONParser(TimestampPolicy.STRICT).parse(f'{{"timestamp": "{value}", "message": "hi"}}', 1)

        assert record.timestamp == datetime(2024, 1, 1, 10, 0, 0, microsecond, tzinfo=timezone.utc)

    def test_strict_bad_timestamp_carries_line_number(self):
        with pytest.raises(ParseFailure) as info:
            JSONParser(TimestampPolicy.STRICT).parse('{"timestamp": "yesterday", "message": "hi"}', 12)
        assert info.value.reason == "bad-timestamp"
        assert info.value.line_number == 12
