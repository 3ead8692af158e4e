"""GitHub webhook receiver.

Verifies the request signature and writes each push event as one JSON file
into pending_webhooks/ for the analysis stage.
"""

import json
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from ..common import (
    append_log_line,
    log_error,
    log_server_message,
    log_webhook_request,
    setup_logging,
    verify_github_signature,
)
from ..config import PipelineConfig
from ..models import WebhookRecord, write_queue_item

_UNSAFE_DELIVERY_CHARS = re.compile(r'[^A-Za-z0-9_-]')


def queue_filename(delivery_id: str, when: datetime) -> str:
    safe_delivery = _UNSAFE_DELIVERY_CHARS.sub("", delivery_id or "")
    return f"push_{when.strftime('%Y-%m-%d_%H-%M-%S')}_{safe_delivery}.json"


def write_queue_file(record: WebhookRecord, queue_dir: Path, when: datetime) -> Path:
    """Queue ``record`` without overwriting a push received in the same second."""
    return write_queue_item(
        queue_dir,
        queue_filename(record.delivery_id, when),
        json.dumps(record.model_dump(), indent=2, ensure_ascii=False),
    )


def create_app(config: Optional[PipelineConfig] = None) -> FastAPI:
    """Build the webhook application for one pipeline configuration."""
    config = config or PipelineConfig.from_env()
    paths = config.paths

    app = FastAPI(title="Pushscribe", description="GitHub push webhook receiver")
    app.state.config = config

    @app.on_event("startup")
    async def startup_event() -> None:
        """Prepare directories and logging."""
        paths.ensure()
        setup_logging(paths.logs, "webhook_server")
        log_server_message("Server starting up")
        log_server_message("Webhook endpoint: /webhook/github")
        log_server_message(f"Queue directory: {paths.pending_webhooks}")
        if not config.webhook_secret:
            log_server_message("GITHUB_WEBHOOK_SECRET not set; signatures are not verified")

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        log_server_message("Server shutting down")

    @app.get("/health")
    async def health_check() -> dict:
        """Health check endpoint."""
        return {"status": "healthy"}

    @app.post("/webhook/github")
    async def github_webhook(request: Request) -> dict:
        """Handle GitHub webhook requests."""
        body = await request.body()
        event = request.headers.get("X-GitHub-Event", "")
        delivery = request.headers.get("X-GitHub-Delivery", "")
        signature_256 = request.headers.get("X-Hub-Signature-256", "")
        signature_1 = request.headers.get("X-Hub-Signature", "")

        if config.webhook_secret:
            if not signature_256 and not signature_1:
                log_server_message(f"Missing signature header. Event: {event}, Delivery: {delivery}")
                raise HTTPException(status_code=401, detail="Missing signature header")

            if not verify_github_signature(body, config.webhook_secret, signature_256, signature_1):
                log_server_message(f"Signature verification failed. Event: {event}, Delivery: {delivery}")
                log_error("Invalid signature", body.decode("utf-8", errors="ignore")[:1000], paths.logs)
                raise HTTPException(status_code=401, detail="Invalid signature")

        try:
            payload: Dict[str, Any] = json.loads(body) if body.strip() else {}
        except json.JSONDecodeError as e:
            log_server_message(f"JSON parsing error: {e}")
            log_error(f"Invalid JSON in request body: {e}", body.decode("utf-8", errors="ignore")[:1000], paths.logs)
            raise HTTPException(status_code=400, detail=f"Invalid JSON payload: {e.msg}")
        except UnicodeDecodeError as e:
            log_server_message(f"Request body is not UTF-8: {e}")
            log_error(f"Request body is not UTF-8: {e}", body.decode("utf-8", errors="ignore")[:1000], paths.logs)
            raise HTTPException(status_code=400, detail="Invalid JSON payload: body is not UTF-8")

        if not isinstance(payload, dict):
            raise HTTPException(status_code=400, detail="Invalid JSON payload: expected an object")

        now = datetime.now()
        log_webhook_request(payload, paths.logs, event=event, delivery_id=delivery)

        response: Dict[str, Any] = {"status": "received"}

        if event == "push":
            response["message"] = "Push event received"
            try:
                record = WebhookRecord.from_payload(event, delivery, now.strftime("%Y-%m-%d %H:%M:%S"), payload)
            except ValidationError as e:
                log_server_message(f"Invalid push payload: {e.error_count()} error(s)")
                raise HTTPException(status_code=400, detail="Invalid push payload")

            if "ref" in payload:
                response["branch"] = record.branch

            if isinstance(payload.get("commits"), list):
                response["commits_count"] = record.commits_count
                try:
                    queued = write_queue_file(record, paths.pending_webhooks, now)
                except OSError as e:
                    log_error(f"Failed to save webhook to queue: {e}", delivery, paths.logs)
                    raise HTTPException(status_code=500, detail="Failed to save webhook")
                response["queued"] = queued.name
                log_server_message(f"Push queued for analysis: {queued.name}")
        elif event == "pull_request":
            response["message"] = "Pull request event received"
            if "action" in payload:
                response["action"] = payload["action"]
        elif event == "ping":
            response["message"] = "Pong! Webhook is configured correctly"
        else:
            response["message"] = f"Event received: {event}"

        summary = f"{event} | {delivery}"
        if "branch" in response:
            summary += f" | Branch: {response['branch']}"
        if "commits_count" in response:
            summary += f" | Commits: {response['commits_count']}"
        append_log_line(paths.logs / "summary.log", summary)

        return response

    @app.exception_handler(HTTPException)
    async def http_error_handler(request: Request, exc: HTTPException):
        """Render HTTP errors as JSON with a status field."""
        return JSONResponse(
            status_code=exc.status_code,
            content={"status": "error", "error": exc.detail},
        )

    @app.exception_handler(500)
    async def internal_error_handler(request: Request, exc: Exception):
        """Handle unexpected errors."""
        log_server_message(f"500 Internal Server Error: {exc}")
        return JSONResponse(
            status_code=500,
            content={"status": "error", "error": "Internal server error"},
        )

    return app


app = create_app()
