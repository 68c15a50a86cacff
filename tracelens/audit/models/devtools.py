"""Pydantic models for DevTools protocol logs and the artifacts derived from them.

This module defines the raw inputs consumed by the computed-artifact engine
(the protocol event log and the page URL metadata) together with the
normalized network request records and anchor elements used by audits.
"""

import json
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ResourceType(str, Enum):
    """Types of network resources as reported by the protocol."""
    DOCUMENT = "document"
    STYLESHEET = "stylesheet"
    IMAGE = "image"
    MEDIA = "media"
    FONT = "font"
    SCRIPT = "script"
    TEXTTRACK = "texttrack"
    XHR = "xhr"
    FETCH = "fetch"
    PREFETCH = "prefetch"
    EVENTSOURCE = "eventsource"
    WEBSOCKET = "websocket"
    MANIFEST = "manifest"
    PING = "ping"
    OTHER = "other"

    @classmethod
    def from_protocol(cls, value: Optional[str]) -> "ResourceType":
        """Map a protocol resource type (e.g. ``"Script"``) to the enum."""
        if not value:
            return cls.OTHER
        try:
            return cls(value.lower())
        except ValueError:
            return cls.OTHER


class DevtoolsLogEntry(BaseModel):
    """A single protocol event as recorded in the devtools log."""

    model_config = ConfigDict(populate_by_name=True)

    method: str = Field(description="Protocol method name, e.g. Network.requestWillBeSent")
    params: Dict[str, Any] = Field(
        default_factory=dict,
        description="Event payload"
    )
    session_id: Optional[str] = Field(
        default=None,
        alias="sessionId",
        description="Target session the event was received on"
    )


DevtoolsLog = List[DevtoolsLogEntry]


def parse_devtools_log(raw_entries: List[Dict[str, Any]]) -> DevtoolsLog:
    """Validate a list of raw protocol events into log entries."""
    return [DevtoolsLogEntry.model_validate(entry) for entry in raw_entries]


def load_devtools_log(path: Union[str, Path]) -> DevtoolsLog:
    """Load a devtools log from a JSON file containing an array of events.

    Args:
        path: Path to the JSON file

    Returns:
        Parsed log entries in file order

    Raises:
        ValueError: If the file does not contain a JSON array
    """
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, list):
        raise ValueError(f"Devtools log must be a JSON array: {path}")

    return parse_devtools_log(data)


class PageURL(BaseModel):
    """URL metadata for the analyzed page."""

    model_config = ConfigDict(populate_by_name=True)

    requested_url: Optional[str] = Field(
        default=None,
        alias="requestedUrl",
        description="URL the run was asked to load"
    )
    main_document_url: Optional[str] = Field(
        default=None,
        alias="mainDocumentUrl",
        description="URL of the main document request (navigations only)"
    )
    final_displayed_url: str = Field(
        alias="finalDisplayedUrl",
        description="URL shown in the address bar at the end of the run"
    )

    @property
    def first_party_url(self) -> str:
        """URL used to identify the first party."""
        return self.main_document_url or self.final_displayed_url


class NetworkRecord(BaseModel):
    """A network request reconstructed from protocol events."""

    request_id: str = Field(description="Protocol request identifier")
    url: str = Field(description="Request URL")
    method: str = Field(default="GET", description="HTTP method")
    resource_type: ResourceType = Field(
        default=ResourceType.OTHER,
        description="Type of requested resource"
    )
    document_url: Optional[str] = Field(
        default=None,
        description="URL of the document that issued the request"
    )
    frame_id: Optional[str] = Field(default=None, description="Frame that issued the request")

    # Response data
    status_code: Optional[int] = Field(default=None, description="HTTP status code")
    mime_type: Optional[str] = Field(default=None, description="Response MIME type")
    protocol: Optional[str] = Field(default=None, description="Protocol (http/1.1, h2, ...)")

    # Timing in protocol seconds
    start_time: Optional[float] = Field(default=None, description="Request start timestamp")
    end_time: Optional[float] = Field(default=None, description="Request end timestamp")
    transfer_size: int = Field(default=0, description="Encoded bytes received")

    # Lifecycle
    finished: bool = Field(default=False, description="Whether loading finished or failed")
    failed: bool = Field(default=False, description="Whether loading failed")
    error_text: Optional[str] = Field(default=None, description="Failure reason")
    from_cache: bool = Field(default=False, description="Served from memory or disk cache")
    redirect_source_url: Optional[str] = Field(
        default=None,
        description="URL of the request that redirected to this one"
    )

    @property
    def host(self) -> str:
        """Extract host from URL."""
        try:
            return urlsplit(self.url).netloc
        except ValueError:
            return ""

    @property
    def duration_ms(self) -> Optional[float]:
        """Request duration in milliseconds."""
        if self.start_time is not None and self.end_time is not None:
            return (self.end_time - self.start_time) * 1000
        return None


class AnchorElement(BaseModel):
    """An ``<a>`` element collected from the page."""

    model_config = ConfigDict(populate_by_name=True)

    href: str = Field(default="", description="Resolved link destination")
    raw_href: str = Field(default="", alias="rawHref", description="href attribute as written")
    text: str = Field(default="", description="Visible link text")
    text_lang: str = Field(default="", alias="textLang", description="Language of the link text")
    rel: str = Field(default="", description="rel attribute")
    target: str = Field(default="", description="target attribute")
    role: str = Field(default="", description="role attribute")
    onclick: str = Field(default="", description="Truncated onclick attribute")


class Artifacts(BaseModel):
    """Raw artifacts gathered for one page, handed to audits."""

    model_config = ConfigDict(populate_by_name=True)

    url: PageURL = Field(alias="URL", description="Page URL metadata")
    devtools_log: DevtoolsLog = Field(
        default_factory=list,
        alias="devtoolsLog",
        description="Protocol events recorded during the run"
    )
    anchor_elements: Optional[List[AnchorElement]] = Field(
        default=None,
        alias="AnchorElements",
        description="Anchor elements collected from the page"
    )

    @field_validator('devtools_log', mode='before')
    @classmethod
    def validate_devtools_log(cls, v):
        """Treat a missing log as empty."""
        if v is None:
            return []
        return v
