# invoice_bridge/app.py
import time
import traceback

# Load .env BEFORE any invoice_bridge imports (monitoring reads env vars at import time)
from dotenv import load_dotenv
load_dotenv(override=True)

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response, PlainTextResponse
from starlette.concurrency import run_in_threadpool

from invoice_bridge.orchestrator import InvoiceOrchestrator, to_envelope
from invoice_bridge.config import is_development
from invoice_bridge import monitoring

app = FastAPI(title="Airtable Invoice Bridge")

# instantiate orchestrator once
orchestrator = InvoiceOrchestrator()

INVOICE_PATHS = ("/api/generate-invoice", "/api")
ALL_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]

CORS_HEADERS = {
    "Access-Control-Allow-Credentials": "true",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


# ---------------------------------------------------------------------------
# Metrics middleware
# ---------------------------------------------------------------------------
@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    start = time.time()
    endpoint = request.url.path
    method = request.method
    status = "500"
    try:
        response = await call_next(request)
        status = str(response.status_code)
        return response
    except Exception:
        monitoring.logger.exception("Unhandled exception in request", extra={"path": endpoint})
        raise
    finally:
        monitoring.observe_request(start, endpoint, method, status)


def _json(status_code: int, content) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=content, headers=CORS_HEADERS)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
async def generate_invoice(request: Request):
    """
    POST /api/generate-invoice
    Body: { "action": "generate", "recordId": "rec...", "tableName": "...", ...fields }
       or { "action": "delete", "fileId": "..." }
    """
    if request.method == "OPTIONS":
        return Response(status_code=200, headers=CORS_HEADERS)

    if request.method != "POST":
        return _json(405, {"success": False, "error": "Method not allowed. Use POST."})

    try:
        body = await request.json()
    except ValueError:
        # the orchestrator rejects a missing body after its config check
        body = None

    try:
        # upstream calls block; keep them off the event loop
        result = await run_in_threadpool(orchestrator.handle_request, body)
        status_code, content = to_envelope(result, include_stack=is_development())
        return _json(status_code, content)
    except Exception as e:
        monitoring.logger.exception("Unexpected error in invoice handler")
        content = {"success": False, "error": str(e)}
        if is_development():
            content["stack"] = traceback.format_exc()
        return _json(500, content)


for _path in INVOICE_PATHS:
    app.add_api_route(_path, generate_invoice, methods=ALL_METHODS)


@app.get("/health")
async def health():
    return {"status": "ok"}


@app.get("/metrics")
async def metrics():
    if not monitoring.PROMETHEUS_ENABLED:
        return PlainTextResponse("Prometheus disabled", status_code=404)
    payload, content_type = monitoring.prometheus_metrics_response()
    return Response(content=payload, media_type=content_type)
