# invoice_bridge/connectors/apps_script_connector.py
"""
Client for the Google Apps Script web app that renders invoice PDFs into
Google Drive and deletes them again.

Contract (JSON in, JSON out):
    {"action": "generate", ...record fields}  ->  {"success", "fileName", "fileUrl", "fileId", "error"?}
    {"action": "delete", "fileId": "..."}     ->  {"success", "fileName"?, "error"?}
"""

from typing import Any, Dict, Mapping, Optional

import httpx
from pydantic import ValidationError

from invoice_bridge import monitoring
from invoice_bridge.connectors.http_client import send_json
from invoice_bridge.exceptions import ContractViolationError
from invoice_bridge.schemas import DeletionResult, GenerationResult

SERVICE = "apps_script"


def _parse(model, data: Dict[str, Any]):
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise ContractViolationError(f"Apps Script returned an unexpected response: {e}") from e


def build_generate_payload(body: Mapping[str, Any]) -> Dict[str, Any]:
    """Forward every inbound key untouched, with `action` forced to generate."""
    payload = dict(body)
    payload["action"] = "generate"
    return payload


def request_generation(
    url: str,
    body: Mapping[str, Any],
    timeout: float = 60.0,
    transport: Optional[httpx.BaseTransport] = None,
) -> GenerationResult:
    payload = build_generate_payload(body)
    monitoring.logger.info("Forwarding generate request to Apps Script",
                           extra={"record_id": payload.get("recordId")})
    data = send_json(
        "POST", url, payload,
        service=SERVICE,
        failure_prefix="Apps Script request failed",
        timeout=timeout,
        transport=transport,
    )
    return _parse(GenerationResult, data)


def request_deletion(
    url: str,
    file_id: str,
    timeout: float = 60.0,
    transport: Optional[httpx.BaseTransport] = None,
) -> DeletionResult:
    monitoring.logger.info("Forwarding delete request to Apps Script", extra={"file_id": file_id})
    data = send_json(
        "POST", url, {"action": "delete", "fileId": file_id},
        service=SERVICE,
        failure_prefix="Apps Script delete request failed",
        timeout=timeout,
        transport=transport,
    )
    return _parse(DeletionResult, data)
