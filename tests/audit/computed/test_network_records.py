"""Tests for network record reconstruction."""

import pytest

from tracelens.audit.computed import NetworkRecorder, NetworkRecords
from tracelens.audit.models import ResourceType, parse_devtools_log


class TestNetworkRecorder:
    """Test NetworkRecorder event handling."""

    def test_completed_request(self, build_log):
        records = NetworkRecorder().process_log(build_log("https://example.com/app.js"))

        assert len(records) == 1
        record = records[0]
        assert record.url == "https://example.com/app.js"
        assert record.resource_type == ResourceType.SCRIPT
        assert record.status_code == 200
        assert record.mime_type == "application/javascript"
        assert record.protocol == "h2"
        assert record.transfer_size == 1024
        assert record.finished is True
        assert record.failed is False
        assert record.duration_ms == pytest.approx(100.0)

    def test_records_in_start_order(self, build_log):
        records = NetworkRecorder().process_log(build_log(
            "https://example.com/",
            "https://cdn.example.net/lib.js",
            "https://example.com/style.css",
        ))

        assert [r.url for r in records] == [
            "https://example.com/",
            "https://cdn.example.net/lib.js",
            "https://example.com/style.css",
        ]

    def test_failed_request(self):
        log = parse_devtools_log([
            {"method": "Network.requestWillBeSent",
             "params": {"requestId": "1", "timestamp": 1.0, "type": "Image",
                        "request": {"url": "https://img.example.com/a.png"}}},
            {"method": "Network.loadingFailed",
             "params": {"requestId": "1", "timestamp": 1.5, "errorText": "net::ERR_BLOCKED_BY_CLIENT"}},
        ])

        record = NetworkRecorder().process_log(log)[0]

        assert record.failed is True
        assert record.finished is True
        assert record.error_text == "net::ERR_BLOCKED_BY_CLIENT"
        assert record.resource_type == ResourceType.IMAGE

    def test_served_from_cache(self):
        log = parse_devtools_log([
            {"method": "Network.requestWillBeSent",
             "params": {"requestId": "1", "request": {"url": "https://example.com/a.js"}}},
            {"method": "Network.requestServedFromCache", "params": {"requestId": "1"}},
        ])

        assert NetworkRecorder().process_log(log)[0].from_cache is True

    def test_redirect_keeps_both_hops(self):
        log = parse_devtools_log([
            {"method": "Network.requestWillBeSent",
             "params": {"requestId": "1", "timestamp": 1.0, "type": "Document",
                        "request": {"url": "http://example.com/"}}},
            {"method": "Network.requestWillBeSent",
             "params": {"requestId": "1", "timestamp": 1.2, "type": "Document",
                        "request": {"url": "https://www.example.com/"},
                        "redirectResponse": {"status": 301, "mimeType": "text/html"}}},
            {"method": "Network.loadingFinished",
             "params": {"requestId": "1", "timestamp": 1.4, "encodedDataLength": 10}},
        ])

        first, second = NetworkRecorder().process_log(log)

        assert first.request_id == "1:redirect"
        assert first.status_code == 301
        assert first.finished is True
        assert second.request_id == "1"
        assert second.redirect_source_url == "http://example.com/"
        assert second.transfer_size == 10

    def test_unknown_and_incomplete_events_ignored(self):
        log = parse_devtools_log([
            {"method": "Network.requestWillBeSent", "params": {"requestId": "1"}},
            {"method": "Network.loadingFinished", "params": {"requestId": "missing"}},
            {"method": "Page.loadEventFired", "params": {}},
        ])

        assert NetworkRecorder().process_log(log) == []


class TestNetworkRecordsArtifact:
    """Test the NetworkRecords computed artifact."""

    @pytest.mark.asyncio
    async def test_request_through_context(self, context, build_log):
        log = build_log("https://example.com/", "https://cdn.example.net/lib.js")

        records = await NetworkRecords.request(log, context)
        again = await NetworkRecords.request(log, context)

        assert [r.url for r in records] == ["https://example.com/", "https://cdn.example.net/lib.js"]
        assert again is records
        assert context.stats.misses == 1
