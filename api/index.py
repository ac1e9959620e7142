# api/index.py
"""
Vercel Serverless Function adapter.

Vercel's Python runtime looks for a variable named `app` (ASGI) or `handler` (WSGI).
FastAPI is ASGI, so we just re-export it as `app`.
"""
import sys
import os

# Ensure project root is on the Python path so `invoice_bridge.*` imports resolve.
# On Vercel the layout is /vercel/path0/ (project root).
ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

# Serverless instances are scraped by nothing; metrics stay off unless asked for
os.environ.setdefault("PROMETHEUS_ENABLED", "false")

# Load .env if present (Vercel injects env vars natively, but this helps local testing)
from dotenv import load_dotenv
load_dotenv(os.path.join(ROOT, ".env"), override=True)

# Import the FastAPI app — Vercel looks for the `app` variable
from invoice_bridge.app import app  # noqa: F401 — Vercel uses this
