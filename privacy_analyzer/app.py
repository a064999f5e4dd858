"""
Background service entry point: FastAPI app and routes.

Exposes the extension's background process over local HTTP so the
page context and the popup can deliver messages to it, read a tab's
log, export a report and run a static analysis of supplied HTML.
"""

from __future__ import annotations

from typing import Any

import dotenv
import fastapi
import pydantic
import uvicorn
from fastapi.middleware import cors
from starlette import responses

from privacy_analyzer import __version__, config
from privacy_analyzer.analysis import page_analyzer
from privacy_analyzer.extension import background
from privacy_analyzer.models import messages, report
from privacy_analyzer.reporting import export
from privacy_analyzer.utils import errors, logger, serialization

dotenv.load_dotenv()

log = logger.create_logger("Server")


class MessageEnvelope(pydantic.BaseModel):
    """A message plus the sender metadata the host attaches to it."""

    message: dict[str, Any]
    sender: messages.MessageSender | None = None


class AnalyzeRequest(pydantic.BaseModel):
    """Static analysis request for an HTML document."""

    url: str
    html: str = ""


def _json(model: pydantic.BaseModel, **kwargs: Any) -> responses.JSONResponse:
    return responses.JSONResponse(content=serialization.to_camel_dict(model), **kwargs)


def create_app(service: background.BackgroundService | None = None) -> fastapi.FastAPI:
    """Build the FastAPI app around *service*."""
    service = service or background.BackgroundService()
    app = fastapi.FastAPI(title="Privacy Analyzer Background Service", version=__version__)
    app.state.service = service

    # ========================================================================
    # Middleware
    # ========================================================================

    app.add_middleware(
        cors.CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(errors.InputError)
    async def input_error_handler(_request: fastapi.Request, exc: errors.InputError) -> responses.JSONResponse:
        log.warn("Rejected request", {"error": errors.get_error_message(exc)})
        return responses.JSONResponse(status_code=400, content={"error": errors.get_error_message(exc)})

    # ========================================================================
    # API Routes
    # ========================================================================

    @app.post("/api/messages")
    async def post_message(envelope: MessageEnvelope) -> responses.Response:
        """Deliver one extension message to the background dispatcher."""
        result = service.handle_message(envelope.message, envelope.sender)
        if result is None:
            return responses.JSONResponse(content={"ok": True})
        return _json(result)

    @app.delete("/api/tabs/{tab_id}")
    async def remove_tab(tab_id: int) -> dict[str, bool]:
        """Tear down the log of a closed tab."""
        return {"removed": service.on_tab_removed(tab_id)}

    @app.get("/api/tabs/{tab_id}/export")
    async def export_tab(
        tab_id: int,
        browser_name: str = fastapi.Query("Unknown", alias="browserName"),
        browser_version: str = fastapi.Query("Unknown", alias="browserVersion"),
    ) -> responses.JSONResponse:
        """Export the latest report of a tab as a downloadable JSON file."""
        latest = service.latest(tab_id)
        if latest is None:
            raise fastapi.HTTPException(status_code=404, detail="No reports for this tab")
        exported = export.export_report(
            latest,
            config.get_settings().extension_version,
            report.BrowserInfo(name=browser_name, version=browser_version),
        )
        filename = export.format_filename(exported.timestamp)
        return _json(exported, headers={"Content-Disposition": f'attachment; filename="{filename}"'})

    @app.post("/api/analyze")
    async def analyze(request: AnalyzeRequest) -> responses.JSONResponse:
        """Run the static analysis over supplied HTML."""
        return _json(page_analyzer.analyze_html(request.url, request.html))

    return app


app = create_app()


# ============================================================================
# Start Server
# ============================================================================


def main(host: str | None = None, port: int | None = None) -> None:
    """Run the background service with uvicorn."""
    settings = config.get_settings()
    host = host or settings.host
    port = port or settings.port

    log.section("Privacy Analyzer Service Started")
    log.success(f"Server listening on {host}:{port}")
    log.info("Environment", {"env": settings.environment})

    uvicorn.run(
        "privacy_analyzer.app:app",
        host=host,
        port=port,
        reload=not settings.is_production,
    )


if __name__ == "__main__":
    main()
