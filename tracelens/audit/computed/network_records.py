"""Network records reconstructed from a devtools log.

This module provides the NetworkRecorder that replays ``Network.*`` protocol
events to build complete request records, and the ``NetworkRecords``
computed artifact that exposes them to other artifacts.
"""

import logging
from typing import Any, Dict, List, Optional

from ..models.devtools import DevtoolsLog, DevtoolsLogEntry, NetworkRecord, ResourceType
from .artifact import ComputedArtifact


logger = logging.getLogger(__name__)


class NetworkRecorder:
    """Builds NetworkRecords from protocol events in log order."""

    def __init__(self):
        self.records: List[NetworkRecord] = []
        self._records_by_id: Dict[str, NetworkRecord] = {}

    def process_log(self, devtools_log: DevtoolsLog) -> List[NetworkRecord]:
        """Replay every entry of a log and return records in start order."""
        for entry in devtools_log:
            self.dispatch(entry)
        return list(self.records)

    def dispatch(self, entry: DevtoolsLogEntry) -> None:
        """Route one protocol event to its handler."""
        handler = {
            'Network.requestWillBeSent': self._on_request_will_be_sent,
            'Network.requestServedFromCache': self._on_request_served_from_cache,
            'Network.responseReceived': self._on_response_received,
            'Network.loadingFinished': self._on_loading_finished,
            'Network.loadingFailed': self._on_loading_failed,
        }.get(entry.method)

        if handler is not None:
            handler(entry.params)

    def _get_record(self, params: Dict[str, Any]) -> Optional[NetworkRecord]:
        request_id = params.get('requestId')
        record = self._records_by_id.get(request_id) if request_id else None
        if record is None:
            logger.debug(f"Ignoring event for unknown request id {request_id}")
        return record

    def _on_request_will_be_sent(self, params: Dict[str, Any]) -> None:
        request_id = params.get('requestId')
        request = params.get('request') or {}
        url = request.get('url')
        if not request_id or not url:
            logger.debug("Skipping requestWillBeSent without requestId or url")
            return

        redirect_source = None
        redirect_response = params.get('redirectResponse')
        previous = self._records_by_id.get(request_id)
        if redirect_response is not None and previous is not None:
            # The redirected hop keeps its own record under a derived id
            previous.status_code = redirect_response.get('status')
            previous.mime_type = redirect_response.get('mimeType')
            previous.protocol = redirect_response.get('protocol')
            previous.end_time = params.get('timestamp')
            previous.finished = True
            previous.request_id = f"{previous.request_id}:redirect"
            self._records_by_id[previous.request_id] = previous
            redirect_source = previous.url

        record = NetworkRecord(
            request_id=request_id,
            url=url,
            method=request.get('method', 'GET'),
            resource_type=ResourceType.from_protocol(params.get('type')),
            document_url=params.get('documentURL'),
            frame_id=params.get('frameId'),
            start_time=params.get('timestamp'),
            redirect_source_url=redirect_source,
        )
        self._records_by_id[request_id] = record
        self.records.append(record)

    def _on_request_served_from_cache(self, params: Dict[str, Any]) -> None:
        record = self._get_record(params)
        if record is not None:
            record.from_cache = True

    def _on_response_received(self, params: Dict[str, Any]) -> None:
        record = self._get_record(params)
        if record is None:
            return

        response = params.get('response') or {}
        record.status_code = response.get('status')
        record.mime_type = response.get('mimeType')
        record.protocol = response.get('protocol')
        if response.get('fromDiskCache') or response.get('fromPrefetchCache'):
            record.from_cache = True
        if params.get('type'):
            record.resource_type = ResourceType.from_protocol(params['type'])

    def _on_loading_finished(self, params: Dict[str, Any]) -> None:
        record = self._get_record(params)
        if record is None:
            return

        record.end_time = params.get('timestamp')
        record.transfer_size = int(params.get('encodedDataLength') or 0)
        record.finished = True

    def _on_loading_failed(self, params: Dict[str, Any]) -> None:
        record = self._get_record(params)
        if record is None:
            return

        record.end_time = params.get('timestamp')
        record.failed = True
        record.finished = True
        record.error_text = params.get('errorText')


class NetworkRecordsArtifact(ComputedArtifact):
    """Computed artifact turning a devtools log into network records."""

    def __init__(self):
        super().__init__("NetworkRecords")

    def compute(self, devtools_log: DevtoolsLog, context) -> List[NetworkRecord]:
        records = NetworkRecorder().process_log(devtools_log)
        logger.debug(f"Reconstructed {len(records)} network records from {len(devtools_log)} log entries")
        return records


NetworkRecords = NetworkRecordsArtifact()
