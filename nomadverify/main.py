import logging
import os
import time
from pathlib import Path

from fastapi import Depends, FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.templating import Jinja2Templates

from nomadverify.core.config import (
    COPIED_INDICATOR_MS,
    PROOF_STATUS_POLL_MS,
    REDIRECT_DELAY_SECONDS,
    TOAST_DURATION_MS,
    VERIFIED_PATH,
    load_static_config,
)
from nomadverify.exceptions import ResolveError
from nomadverify.logging_config import configure_logging, short_id
from nomadverify.proof.builder import build_disclosure_policy
from nomadverify.proof.models import StaticConfig
from nomadverify.proof.sdk import ProofSdk, SelfProofSdk
from nomadverify.session.models import (
    ErrorCode,
    LookupErrorResponse,
    ProofCallbackRequest,
    ProofStatusResponse,
    SessionLookupResponse,
)
from nomadverify.session.resolver import SessionResolver
from nomadverify.ui.channel import FlowRegistry, ProofChannel, get_flow_registry
from nomadverify.ui.flow import MSG_PROOF_FAILED, MSG_VERIFIED, VerificationFlow
from nomadverify.ui.notify import MSG_COPIED, MSG_COPY_FAILED, MSG_OPENING, Notifier
from nomadverify.ui.qr import render_qr_svg
from nomadverify.ui.state import Ready, SessionError

configure_logging()
log = logging.getLogger("nomadverify")

app = FastAPI(title="CryptoNomads Verification", version="0.1.0")

templates_dir = Path(__file__).parent / "templates"
templates = Jinja2Templates(directory=str(templates_dir))
# Toast texts carry emoji; keep them readable in the page config
templates.env.policies["json.dumps_kwargs"] = {"sort_keys": True, "ensure_ascii": False}

ERROR_PAGE_STATUS = {
    ErrorCode.INVALID_INPUT: 400,
    ErrorCode.SESSION_NOT_FOUND: 404,
}


# =============================================================================
# Dependencies
# =============================================================================

def get_resolver() -> SessionResolver:
    return SessionResolver()


def get_static_config() -> StaticConfig:
    return load_static_config()


def get_proof_sdk() -> ProofSdk:
    return SelfProofSdk()


# =============================================================================
# Middleware / operational endpoints
# =============================================================================

@app.middleware("http")
async def req_log(request: Request, call_next):
    start = time.time()
    route = request.url.path
    remote = request.client.host if request.client else "-"
    resp = await call_next(request)
    duration_ms = int((time.time() - start) * 1000)
    log.info(f"request_complete status={resp.status_code} duration_ms={duration_ms}",
             extra={"request_id": "-", "route": route, "remote_addr": remote})
    return resp

@app.get("/healthz")
def healthz():
    return {"ok": True}

@app.get("/version")
def version():
    # GIT_SHA is injected at deploy time
    return {"git_sha": os.getenv("GIT_SHA", "unknown")}


@app.get("/admin")
def admin(config: StaticConfig = Depends(get_static_config)):
    """Return proof request configuration for operator visibility.

    Gated by ADMIN_ENDPOINT_ENABLED (default: True for dev, False for prod).
    """
    from nomadverify.core.config import (
        ADMIN_ENDPOINT_ENABLED,
        COPIED_INDICATOR_MS,
        FLOW_TTL_SECONDS,
        PROOF_STATUS_POLL_MS,
        REDIRECT_DELAY_SECONDS,
        SESSION_TABLE,
        TOAST_DURATION_MS,
    )

    if not ADMIN_ENDPOINT_ENABLED:
        return JSONResponse(
            status_code=404,
            content={"detail": "Admin endpoint disabled"}
        )

    return {
        "protocol": {
            "version": config.version,
            "chain_id": config.chain_id,
            "endpoint_type": config.endpoint_type,
            "user_id_type": config.user_id_type,
        },
        "app": {
            "app_name": config.app_name,
            "scope": config.scope,
            "endpoint": config.endpoint,
            "endpoint_configured": bool(config.endpoint),
            "dev_mode": config.dev_mode,
        },
        "disclosures": build_disclosure_policy(config).to_dict(),
        "ui": {
            "toast_duration_ms": TOAST_DURATION_MS,
            "copied_indicator_ms": COPIED_INDICATOR_MS,
            "redirect_delay_seconds": REDIRECT_DELAY_SECONDS,
            "proof_status_poll_ms": PROOF_STATUS_POLL_MS,
            "flow_ttl_seconds": FLOW_TTL_SECONDS,
        },
        "store": {
            "session_table": SESSION_TABLE,
        },
        "environment": {
            "log_level": logging.getLogger().getEffectiveLevel(),
            "log_level_name": logging.getLevelName(logging.getLogger().getEffectiveLevel()),
        },
    }


# =============================================================================
# Session lookup API
# =============================================================================

def _lookup_error(e: ResolveError) -> JSONResponse:
    if e.code == ErrorCode.SESSION_NOT_FOUND:
        body = LookupErrorResponse(error=e.error, message=e.message, code=e.code)
    else:
        body = LookupErrorResponse(error=e.error)
    return JSONResponse(status_code=e.http_status, content=body.model_dump(exclude_none=True))


@app.get("/api/user")
@app.get("/api/user/")
async def get_user_missing_uuid():
    return _lookup_error(ResolveError.invalid_input())


@app.get("/api/user/{uuid}")
async def get_user(uuid: str, resolver: SessionResolver = Depends(get_resolver)):
    """Resolve a verification session by its UUID."""
    try:
        session = await resolver.resolve(uuid)
    except ResolveError as e:
        return _lookup_error(e)

    resp = SessionLookupResponse(data=session)
    return JSONResponse(resp.model_dump(mode="json", by_alias=True))


# =============================================================================
# Pages
# =============================================================================

@app.get("/verification/{uuid}", response_class=HTMLResponse)
async def verification_page(
    uuid: str,
    request: Request,
    resolver: SessionResolver = Depends(get_resolver),
    config: StaticConfig = Depends(get_static_config),
    sdk: ProofSdk = Depends(get_proof_sdk),
    registry: FlowRegistry = Depends(get_flow_registry),
):
    """Render the verification page for one session.

    A Ready flow stays alive in the registry so proof callbacks posted to
    /api/proof/{request_id} reach it; any other outcome is torn down here.
    """
    channel = ProofChannel()
    flow = VerificationFlow(
        resolver,
        config=config,
        sdk=sdk,
        notifier=Notifier(on_change=channel.on_toast),
        navigate=channel.on_navigate,
        redirect_delay=REDIRECT_DELAY_SECONDS,
        verified_path=VERIFIED_PATH,
    )
    try:
        state = await flow.start(uuid)
    except Exception:
        flow.close()
        raise

    if isinstance(state, Ready):
        request_id = state.request.session_id
        channel.flow = flow
        registry.register(request_id, channel)
        log.info(
            f"Rendering verification page for {short_id(uuid)}",
            extra={"session_id": short_id(uuid)},
        )
        return templates.TemplateResponse(
            request,
            "verification.html",
            {
                "app_name": config.app_name,
                "session": state.session,
                "qr_svg": render_qr_svg(state.link),
                "page": _page_config(state.link, request_id),
            },
        )

    flow.close()
    error = state if isinstance(state, SessionError) else None
    return templates.TemplateResponse(
        request,
        "error.html",
        {
            "message": error.message if error else "Invalid verification session",
            "kind": error.kind if error else None,
        },
        status_code=ERROR_PAGE_STATUS.get(error.code, 500) if error else 500,
    )


def _page_config(link: str, request_id: str) -> dict:
    """Settings the verification page script runs on."""
    return {
        "link": link,
        "requestId": request_id,
        "statusUrl": f"/api/proof/{request_id}",
        "toastMs": TOAST_DURATION_MS,
        "copiedMs": COPIED_INDICATOR_MS,
        "pollMs": PROOF_STATUS_POLL_MS,
        "redirectDelayMs": int(REDIRECT_DELAY_SECONDS * 1000),
        "verifiedPath": VERIFIED_PATH,
        "messages": {
            "copied": MSG_COPIED,
            "copyFailed": MSG_COPY_FAILED,
            "opening": MSG_OPENING,
            "verified": MSG_VERIFIED,
            "proofFailed": MSG_PROOF_FAILED,
        },
    }


# =============================================================================
# Proof status
# =============================================================================

def _proof_status(request_id: str, channel: ProofChannel) -> dict:
    resp = ProofStatusResponse(
        request_id=request_id,
        state=channel.state,
        toast=channel.toast,
        toast_seq=channel.toast_seq,
        redirect=channel.redirect,
    )
    return resp.model_dump(by_alias=True)


def _unknown_request() -> JSONResponse:
    return JSONResponse(
        status_code=404,
        content={"detail": "Unknown or expired verification request"},
    )


@app.get("/api/proof/{request_id}")
async def get_proof_status(request_id: str, registry: FlowRegistry = Depends(get_flow_registry)):
    """Polled by the verification page for toasts and the redirect target."""
    channel = registry.get(request_id)
    if channel is None:
        return _unknown_request()
    return _proof_status(request_id, channel)


@app.post("/api/proof/{request_id}")
async def post_proof_callback(
    request_id: str,
    body: ProofCallbackRequest,
    registry: FlowRegistry = Depends(get_flow_registry),
):
    """Proof outcome reported by the Self relayer bridge for one rendered page.

    success: success toast, then redirect to the verified view.
    error: failure toast; the page stays ready for another scan.
    """
    channel = registry.get(request_id)
    if channel is None or channel.flow is None:
        log.warning(f"Proof callback for unknown request {short_id(request_id)}")
        return _unknown_request()

    if body.status == "success":
        log.info(f"Proof accepted for request {short_id(request_id)}")
        channel.flow.handle_proof_success(body)
    else:
        channel.flow.handle_proof_error(body.reason or "proof rejected")
    return _proof_status(request_id, channel)


@app.get("/verified", response_class=HTMLResponse)
def verified_page(request: Request):
    return templates.TemplateResponse(request, "verified.html", {})
