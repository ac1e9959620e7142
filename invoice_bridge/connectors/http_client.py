# invoice_bridge/connectors/http_client.py
import time
from typing import Any, Dict, Mapping, Optional

import httpx

from invoice_bridge import monitoring
from invoice_bridge.exceptions import UpstreamHTTPError, UpstreamTransportError


def send_json(
    method: str,
    url: str,
    payload: Mapping[str, Any],
    *,
    service: str,
    failure_prefix: str,
    headers: Optional[Dict[str, str]] = None,
    timeout: float = 60.0,
    transport: Optional[httpx.BaseTransport] = None,
) -> Dict[str, Any]:
    """
    Send `payload` as JSON and return the decoded JSON response.

    Raises:
        UpstreamHTTPError: final status is not 2xx. The message is
            "<failure_prefix>: <status> - <body text>".
        UpstreamTransportError: the request failed or the body is not JSON.
    """
    req_headers = {"Content-Type": "application/json"}
    if headers:
        req_headers.update(headers)

    start = time.time()
    try:
        # Apps Script web apps reply with a 302 to script.googleusercontent.com
        with httpx.Client(timeout=timeout, transport=transport, follow_redirects=True) as client:
            resp = client.request(method, url, json=dict(payload), headers=req_headers)
    except httpx.HTTPError as e:
        monitoring.observe_upstream(start, service, "transport_error")
        raise UpstreamTransportError(f"{failure_prefix}: {e}", service=service) from e

    if not resp.is_success:
        monitoring.observe_upstream(start, service, "http_error")
        raise UpstreamHTTPError(
            f"{failure_prefix}: {resp.status_code} - {resp.text}",
            service=service,
            status_code=resp.status_code,
            body=resp.text,
        )

    try:
        data = resp.json()
    except ValueError as e:
        monitoring.observe_upstream(start, service, "invalid_json")
        raise UpstreamTransportError(
            f"{service} returned a non-JSON response ({resp.status_code})", service=service
        ) from e

    if not isinstance(data, dict):
        monitoring.observe_upstream(start, service, "invalid_json")
        raise UpstreamTransportError(
            f"{service} returned JSON that is not an object", service=service
        )

    monitoring.observe_upstream(start, service, "success")
    return data
