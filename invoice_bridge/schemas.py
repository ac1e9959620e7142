# invoice_bridge/schemas.py
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from invoice_bridge.exceptions import OrchestrationError

INVOICE_ATTACHMENT_FIELD = "Invoice PDF"


class GenerationResult(BaseModel):
    """Apps Script reply to a generate action."""
    model_config = ConfigDict(extra="allow")

    success: bool = False
    fileName: Optional[str] = None
    fileUrl: Optional[str] = None
    fileId: Optional[str] = None
    error: Optional[str] = None


class DeletionResult(BaseModel):
    """Apps Script reply to a delete action."""
    model_config = ConfigDict(extra="allow")

    success: bool = False
    fileName: Optional[str] = None
    error: Optional[str] = None


class AirtableRecord(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    fields: Dict[str, Any] = Field(default_factory=dict)


class AttachmentRef(BaseModel):
    # Airtable attachment fields take a list of {url, filename}; Airtable
    # downloads the file from `url` itself.
    url: str
    filename: str


class AttachmentUpdate(BaseModel):
    fields: Dict[str, List[AttachmentRef]]

    @classmethod
    def for_invoice(cls, file_url: str, file_name: str) -> "AttachmentUpdate":
        return cls(fields={
            INVOICE_ATTACHMENT_FIELD: [AttachmentRef(url=file_url, filename=file_name)]
        })


class OrchestrationResult(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    success: bool
    payload: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[OrchestrationError] = None

    @classmethod
    def ok(cls, payload: Dict[str, Any]) -> "OrchestrationResult":
        return cls(success=True, payload=payload)

    @classmethod
    def fail(cls, error: OrchestrationError) -> "OrchestrationResult":
        return cls(success=False, error=error)
