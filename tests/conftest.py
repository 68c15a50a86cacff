"""Shared test fixtures and configuration for tracelens tests."""

import itertools
import sys
from pathlib import Path

import pytest

# Add project root to Python path
sys.path.insert(0, str(Path(__file__).parent.parent))

from tracelens.audit.computed import ComputedContext
from tracelens.audit.entities import KnownEntityReference
from tracelens.audit.models import Artifacts, PageURL, parse_devtools_log


@pytest.fixture
def request_events():
    """Factory for the protocol events of one completed request."""
    ids = itertools.count(1)
    clock = itertools.count(100)

    def _make(url, request_id=None, resource_type="Script", timestamp=None, status=200,
              mime_type="application/javascript", encoded_data_length=1024):
        request_id = request_id or f"req-{next(ids)}"
        start = timestamp if timestamp is not None else float(next(clock))
        return [
            {
                "method": "Network.requestWillBeSent",
                "params": {
                    "requestId": request_id,
                    "documentURL": "https://example.com/",
                    "frameId": "frame-1",
                    "type": resource_type,
                    "timestamp": start,
                    "request": {"url": url, "method": "GET"},
                },
            },
            {
                "method": "Network.responseReceived",
                "params": {
                    "requestId": request_id,
                    "type": resource_type,
                    "timestamp": start + 0.05,
                    "response": {
                        "url": url,
                        "status": status,
                        "mimeType": mime_type,
                        "protocol": "h2",
                    },
                },
            },
            {
                "method": "Network.loadingFinished",
                "params": {
                    "requestId": request_id,
                    "timestamp": start + 0.1,
                    "encodedDataLength": encoded_data_length,
                },
            },
        ]

    return _make


@pytest.fixture
def extension_context_event():
    """Factory for a Runtime.executionContextCreated event."""
    ids = itertools.count(1)

    def _make(origin, name):
        return {
            "method": "Runtime.executionContextCreated",
            "params": {
                "context": {
                    "id": next(ids),
                    "origin": origin,
                    "name": name,
                    "uniqueId": f"ctx-{origin}",
                },
            },
        }

    return _make


@pytest.fixture
def build_log(request_events):
    """Build a parsed devtools log from URLs and raw event dicts.

    Strings become completed requests; dicts are used verbatim.
    """
    def _build(*items):
        raw = []
        for item in items:
            if isinstance(item, str):
                raw.extend(request_events(item))
            else:
                raw.append(item)
        return parse_devtools_log(raw)

    return _build


@pytest.fixture
def page_url():
    """Navigation URL metadata for https://example.com/."""
    return PageURL(main_document_url="https://example.com/", final_displayed_url="https://example.com/")


@pytest.fixture
def make_artifacts(build_log):
    """Factory for Artifacts from a page URL and log items."""
    def _make(final_displayed_url, *items, main_document_url=None, anchor_elements=None):
        return Artifacts(
            url=PageURL(main_document_url=main_document_url, final_displayed_url=final_displayed_url),
            devtools_log=build_log(*items),
            anchor_elements=anchor_elements,
        )

    return _make


@pytest.fixture(scope="session")
def known_entities():
    """Known-entity reference loaded from the bundled dataset."""
    return KnownEntityReference.load()


@pytest.fixture
def context(known_entities):
    """Fresh run context using the bundled known entities."""
    ctx = ComputedContext(entity_lookup=known_entities)
    yield ctx
    ctx.close()
