# invoice_bridge/connectors/airtable_connector.py
from typing import Any, Dict, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from invoice_bridge import monitoring
from invoice_bridge.config import Settings
from invoice_bridge.connectors.http_client import send_json
from invoice_bridge.exceptions import UpstreamTransportError
from invoice_bridge.schemas import AirtableRecord, AttachmentUpdate

SERVICE = "airtable"


def record_url(api_url: str, base_id: str, table_name: str, record_id: str) -> str:
    return f"{api_url}/{base_id}/{quote(table_name, safe='')}/{record_id}"


def build_attachment_update(file_url: str, file_name: str) -> Dict[str, Any]:
    """PATCH body carrying only the `Invoice PDF` attachment, never the Drive file id."""
    return AttachmentUpdate.for_invoice(file_url, file_name).model_dump()


def attach_invoice(
    settings: Settings,
    table_name: str,
    record_id: str,
    file_url: str,
    file_name: str,
    transport: Optional[httpx.BaseTransport] = None,
) -> AirtableRecord:
    """
    Attach the generated PDF to an Airtable record (partial update).

    Returns the updated record as Airtable reports it. Raises
    UpstreamHTTPError when Airtable rejects the update; the response body
    is kept on the error for the failure log.
    """
    url = record_url(settings.airtable_api_url, settings.airtable_base_id, table_name, record_id)
    monitoring.logger.info(
        "Uploading invoice PDF to Airtable",
        extra={"base_id": settings.airtable_base_id, "table_name": table_name, "record_id": record_id},
    )
    data = send_json(
        "PATCH", url, build_attachment_update(file_url, file_name),
        service=SERVICE,
        failure_prefix="Airtable upload failed",
        headers={"Authorization": f"Bearer {settings.airtable_api_key}"},
        timeout=settings.timeout_seconds,
        transport=transport,
    )

    try:
        return AirtableRecord.model_validate(data)
    except ValidationError as e:
        raise UpstreamTransportError(f"Airtable returned an unexpected record: {e}", service=SERVICE) from e
