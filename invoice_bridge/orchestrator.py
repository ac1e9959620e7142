# invoice_bridge/orchestrator.py
import traceback
from typing import Any, Dict, Mapping, Optional, Tuple

import httpx

# Import modules (not bare functions) so monkeypatching in tests works correctly
import invoice_bridge.connectors.apps_script_connector as _apps_script
import invoice_bridge.connectors.airtable_connector as _airtable
from invoice_bridge import monitoring
from invoice_bridge.config import Settings
from invoice_bridge.exceptions import (
    ContractViolationError,
    InvalidRequestError,
    OrchestrationError,
    UpstreamHTTPError,
    UpstreamLogicalError,
)
from invoice_bridge.schemas import OrchestrationResult

ACTION_GENERATE = "generate"
ACTION_DELETE = "delete"

MSG_GENERATED = "Invoice generated and uploaded to Airtable successfully"
MSG_DELETED = "File deleted from Google Drive successfully"


def resolve_action(body: Mapping[str, Any]) -> str:
    """
    Only "delete" is special-cased. Anything else, including an unknown
    value, runs the generate flow.
    """
    action = body.get("action") or ACTION_GENERATE
    if action == ACTION_DELETE:
        return ACTION_DELETE
    if action != ACTION_GENERATE:
        monitoring.logger.warning("Unknown action, falling back to generate", extra={"action": action})
    return ACTION_GENERATE


def resolve_table_name(value: Any, settings: Settings) -> str:
    """
    Table name from the request, or the configured default. Checked before
    any upstream call so a bad value never leaves an orphaned Drive file.
    """
    if not value:
        return settings.airtable_table_name
    if isinstance(value, str):
        return value
    # numeric names arrive as JSON numbers
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    raise InvalidRequestError("tableName must be a string")


def to_envelope(result: OrchestrationResult, include_stack: bool = False) -> Tuple[int, Dict[str, Any]]:
    """Map a result to (status_code, body) for the outbound response."""
    if result.success:
        # absent upstream values are left out, not sent as null
        return 200, {"success": True, **{k: v for k, v in result.payload.items() if v is not None}}
    err = result.error
    body: Dict[str, Any] = {"success": False, "error": str(err)}
    if include_stack and err is not None:
        body["stack"] = "".join(traceback.format_exception(type(err), err, err.__traceback__))
    return 500, body


class InvoiceOrchestrator:
    def __init__(self, transport: Optional[httpx.BaseTransport] = None):
        # transport is only set in tests (httpx.MockTransport)
        self.transport = transport

    def handle_request(self, body: Any, settings: Optional[Settings] = None) -> OrchestrationResult:
        """
        Full synchronous flow:
        1. Load and check configuration
        2. Dispatch on `action`
        3. Run the delete or generate flow
        Every OrchestrationError ends the flow and comes back as a failed result.
        """
        action = ACTION_GENERATE
        try:
            settings = (settings or Settings.from_env()).require()
            if not isinstance(body, Mapping):
                raise InvalidRequestError("Request body must be a JSON object")
            action = resolve_action(body)
            monitoring.logger.info("Received invoice request", extra={"action": action})

            if action == ACTION_DELETE:
                payload = self.handle_delete(body, settings)
            else:
                payload = self.handle_generate(body, settings)
        except OrchestrationError as e:
            extra = {"action": action, "kind": e.kind, "error": str(e)}
            if isinstance(e, UpstreamHTTPError):
                extra.update({"service": e.service, "status_code": e.status_code, "response_body": e.body})
            monitoring.logger.error("Invoice request failed", extra=extra)
            monitoring.inc_action(action, "fail")
            monitoring.inc_failure(e.kind)
            return OrchestrationResult.fail(e)

        monitoring.inc_action(action, "success")
        return OrchestrationResult.ok(payload)

    def handle_delete(self, body: Mapping[str, Any], settings: Settings) -> Dict[str, Any]:
        file_id = body.get("fileId")
        if not file_id:
            raise InvalidRequestError("fileId is required for delete action")

        result = _apps_script.request_deletion(
            settings.apps_script_url, file_id,
            timeout=settings.timeout_seconds, transport=self.transport,
        )
        if not result.success:
            raise UpstreamLogicalError(f"Delete failed: {result.error or 'Unknown error'}")

        monitoring.logger.info("File deleted from Drive", extra={"file_id": file_id, "file_name": result.fileName})
        return {
            "message": MSG_DELETED,
            "fileName": result.fileName,
            "fileId": file_id,
        }

    def handle_generate(self, body: Mapping[str, Any], settings: Settings) -> Dict[str, Any]:
        record_id = body.get("recordId")
        if not record_id:
            raise InvalidRequestError("recordId is required in the request body")
        table_name = resolve_table_name(body.get("tableName"), settings)

        # 1) Render the PDF into Drive
        generated = _apps_script.request_generation(
            settings.apps_script_url, body,
            timeout=settings.timeout_seconds, transport=self.transport,
        )
        if not generated.success:
            raise UpstreamLogicalError(
                f"Apps Script Error: {generated.error or 'Unknown error from Apps Script'}"
            )
        if not generated.fileName:
            raise ContractViolationError("Apps Script did not return fileName")
        if not generated.fileUrl or not generated.fileId:
            raise ContractViolationError(
                "Apps Script did not return fileUrl and fileId. "
                "Make sure you updated the Apps Script code."
            )
        monitoring.logger.info(
            "PDF generated",
            extra={"record_id": record_id, "file_name": generated.fileName, "file_id": generated.fileId},
        )

        # 2) Attach it to the Airtable record. A Drive file left behind by a
        # failure here is not cleaned up.
        record = _airtable.attach_invoice(
            settings, table_name, record_id,
            file_url=generated.fileUrl,
            file_name=generated.fileName,
            transport=self.transport,
        )
        monitoring.logger.info("PDF uploaded to Airtable", extra={"record_id": record_id, "table_name": table_name})

        return {
            "message": MSG_GENERATED,
            "fileName": generated.fileName,
            "recordId": record_id,
            "airtableRecordId": record.id,
            # returned so the caller can send a later delete action
            "fileId": generated.fileId,
            "fileUrl": generated.fileUrl,
        }
