# invoice_bridge/exceptions.py
"""
Error taxonomy for the invoice flow.

Every error surfaces the same way to callers (HTTP 500 with the failure
envelope). `kind` only feeds logs and metrics.
"""

from typing import Optional


class OrchestrationError(Exception):
    kind = "internal"


class ConfigurationError(OrchestrationError):
    """A required environment value is missing."""
    kind = "configuration"


class InvalidRequestError(OrchestrationError):
    """A required request field is missing or the body is not a JSON object."""
    kind = "validation"


class UpstreamHTTPError(OrchestrationError):
    """Apps Script or Airtable answered with a non-2xx status."""
    kind = "upstream_http"

    def __init__(self, message: str, service: str, status_code: int, body: str = ""):
        super().__init__(message)
        self.service = service
        self.status_code = status_code
        self.body = body


class UpstreamTransportError(OrchestrationError):
    """The call never produced a usable response (network error, non-JSON body)."""
    kind = "upstream_transport"

    def __init__(self, message: str, service: Optional[str] = None):
        super().__init__(message)
        self.service = service


class UpstreamLogicalError(OrchestrationError):
    """Apps Script answered 2xx but reported success: false."""
    kind = "upstream_logical"


class ContractViolationError(OrchestrationError):
    """Apps Script reported success but left out fields this service relies on."""
    kind = "contract"
