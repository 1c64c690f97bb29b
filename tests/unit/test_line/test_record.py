"""Unit tests for the request log record model."""
from __future__ import annotations

import pytest

from logline.line.record import ConnectionType, LogRecord, ResponseFacts, format_duration


@pytest.mark.parametrize(
    ("duration_us", "expected"),
    [(0, "0µs"), (999, "999µs"), (1000, "1000µs"), (1001, "1ms"), (1999, "1ms"), (45_678, "45ms")],
)
def test_format_duration(duration_us: int, expected: str) -> None:
    assert format_duration(duration_us) == expected


def test_connection_type_from_response() -> None:
    assert ResponseFacts(status=200).connection_type is ConnectionType.SENT
    assert ResponseFacts(status=200, chunked=True).connection_type is ConnectionType.CHUNKED


class TestLogRecord:
    """Test suite for LogRecord."""

    def test_minimal_record_fields(self):
        record = LogRecord(
            connection_type=ConnectionType.SENT,
            method="GET",
            path="/api/users",
            status="200",
            duration_us=2500,
        )

        assert record.to_dict() == {
            "method": "GET",
            "path": "/api/users",
            "status": "200",
            "timing": "2ms",
            "duration_ms": 2.5,
        }

    def test_field_order_and_vendor_keys_last(self):
        record = LogRecord(
            connection_type=ConnectionType.CHUNKED,
            method="QUERY",
            path="/graphql",
            status="200",
            duration_us=10,
            operation_name="unnamed",
            query="{ }",
            client_ip="10.0.0.1",
            user_agent="curl/8",
            referer="https://example.com",
            x_forwarded_for="1.2.3.4",
            x_forwarded_proto="https",
            x_forwarded_port="443",
            via="1.1 proxy",
            variables='{"a":1}',
            vendor_fields={"http.url": "/graphql", "http.referer": None},
        )

        assert list(record.to_dict()) == [
            "method",
            "path",
            "operation_name",
            "query",
            "status",
            "timing",
            "duration_ms",
            "client_ip",
            "user_agent",
            "referer",
            "x_forwarded_for",
            "x_forwarded_proto",
            "x_forwarded_port",
            "via",
            "variables",
            "http.url",
        ]

    def test_connection_type_is_not_structured(self):
        record = LogRecord(
            connection_type=ConnectionType.CHUNKED,
            method="GET",
            path="/",
            status="204",
            duration_us=1,
        )

        assert "connection_type" not in record.to_dict()
        assert ConnectionType.CHUNKED not in record.to_dict().values()
