"""
Dashboard console API.

Backend-for-frontend for the results dashboard pages: signs users in against the
results backend, keeps the issued bearer token in a signed session cookie, and
forwards page data requests with that token.
"""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, File, Form, HTTPException, Query, Request, UploadFile
from fastapi.responses import HTMLResponse, JSONResponse, Response
from pydantic import BaseModel

from resultsdash.auth.models import SessionUser
from resultsdash.auth.tokens import SessionTokenProvider, StaticTokenProvider
from resultsdash.client.errors import (
    ApiError,
    AuthenticationError,
    DecodeError,
    HttpError,
    TransportError,
    UploadRejectedError,
)
from resultsdash.client.http import client_from_config
from resultsdash.config import load_config
from resultsdash.core.models import (
    CreateResult,
    CreateStudent,
    CreateSubject,
    UpdateResult,
    UpdateStudent,
    UpdateSubject,
)
from resultsdash.core.uploads import DEFAULT_UPLOAD_TYPE, MAX_UPLOAD_BYTES, InvalidUploadError, validate_csv_upload
from resultsdash.providers.results_provider import DefaultResultsProvider, ResultsProvider

logger = logging.getLogger(__name__)

app = FastAPI(title="Student results console")


class LoginCredentials(BaseModel):
    email: str = ""
    password: str = ""
    role: str = ""


def _is_public_path(path: str) -> bool:
    if path == "/healthz":
        return True
    # Login must be reachable without a session; allow logout even if the cookie is already gone.
    if path in ("/api/auth/login", "/api/auth/logout"):
        return True
    return False


def _dump(model: Any) -> Any:
    if isinstance(model, list):
        return [_dump(m) for m in model]
    if isinstance(model, BaseModel):
        return model.model_dump(mode="json", by_alias=True)
    return model


def _http_exception(e: ApiError) -> HTTPException:
    if isinstance(e, HttpError):
        return HTTPException(status_code=e.status, detail=e.message)
    if isinstance(e, AuthenticationError):
        return HTTPException(status_code=401, detail=e.message)
    if isinstance(e, UploadRejectedError):
        return HTTPException(status_code=422, detail=e.message)
    if isinstance(e, (TransportError, DecodeError)):
        return HTTPException(status_code=502, detail=e.message)
    return HTTPException(status_code=500, detail=e.message)


@app.exception_handler(ApiError)
async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    http_exc = _http_exception(exc)
    logger.info("%s %s - backend error %d: %s", request.method, request.url.path, http_exc.status_code, exc.message)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})


def _current_user(request: Request) -> SessionUser:
    user = getattr(request.state, "user", None)
    if user is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return user


def _require_admin(request: Request) -> SessionUser:
    user = _current_user(request)
    if not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin role required")
    return user


def _require_self_or_admin(request: Request, student_id: str) -> SessionUser:
    user = _current_user(request)
    if not user.is_admin and user.id != student_id:
        raise HTTPException(status_code=403, detail="Students may only view their own records")
    return user


def provider_for_request(request: Request) -> ResultsProvider:
    """Provider whose bearer token is read from this request's session on every call."""
    client = client_from_config(SessionTokenProvider(lambda: getattr(request.state, "user", None)))
    return DefaultResultsProvider(client)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log requests and enforce the session cookie on non-public paths."""
    start_time = time.time()
    path = request.url.path or ""
    try:
        if request.method != "OPTIONS" and not _is_public_path(path):
            from resultsdash.auth.session import decode_session, session_cookie_name

            cfg = load_config()
            user = decode_session(cfg, request.cookies.get(session_cookie_name(cfg)))
            if user is None:
                # No `WWW-Authenticate`: browsers would pop a basic-auth dialog over the login page.
                return JSONResponse(status_code=401, content={"detail": "Unauthorized"})
            request.state.user = user

        response = await call_next(request)
        logger.debug(
            "%s %s - %d (%.3fs)", request.method, path, response.status_code, time.time() - start_time
        )
        return response
    except Exception as e:
        logger.exception("%s %s - ERROR after %.3fs: %s", request.method, path, time.time() - start_time, e)
        raise


@app.get("/healthz")
def healthz() -> Dict[str, Any]:
    return {"ok": True}


# ---- Auth ----


@app.post("/api/auth/login")
def auth_login(credentials: LoginCredentials) -> JSONResponse:
    from resultsdash.auth.credentials import authorize
    from resultsdash.auth.session import encode_session, session_cookie_kwargs

    cfg = load_config()
    if not cfg.console_sessions_enabled:
        raise HTTPException(status_code=500, detail="Session signing is not configured (AUTH_SESSION_SECRET)")

    if not credentials.email.strip() or not credentials.password or not credentials.role.strip():
        raise HTTPException(status_code=400, detail="Email, password, and role are required.")

    try:
        user = authorize(
            client_from_config(StaticTokenProvider(None)),
            credentials.email,
            credentials.password,
            credentials.role,
        )
    except AuthenticationError as e:
        raise HTTPException(status_code=401, detail=e.message)

    session_value = encode_session(cfg, user)
    if not session_value:
        raise HTTPException(status_code=500, detail="Session signing is not configured (AUTH_SESSION_SECRET)")

    resp = JSONResponse(content={"ok": True, "user": user.public_view()})
    resp.headers["Cache-Control"] = "no-store"
    resp.set_cookie(**session_cookie_kwargs(cfg, session_value))
    return resp


@app.post("/api/auth/logout")
def auth_logout() -> JSONResponse:
    from resultsdash.auth.session import clear_session_cookie_kwargs

    resp = JSONResponse(content={"ok": True})
    resp.headers["Cache-Control"] = "no-store"
    resp.set_cookie(**clear_session_cookie_kwargs(load_config()))
    return resp


@app.get("/api/auth/me")
def auth_me(request: Request) -> Dict[str, Any]:
    return {"ok": True, "user": _current_user(request).public_view()}


# ---- Students ----


@app.get("/api/students")
def list_students(request: Request) -> List[Dict[str, Any]]:
    _require_admin(request)
    return _dump(provider_for_request(request).get_students())


@app.get("/api/students/{student_id}")
def get_student(request: Request, student_id: str) -> Dict[str, Any]:
    _require_self_or_admin(request, student_id)
    return _dump(provider_for_request(request).get_student(student_id))


@app.post("/api/students", status_code=201)
def create_student(request: Request, data: CreateStudent) -> Dict[str, Any]:
    _require_admin(request)
    return _dump(provider_for_request(request).create_student(data))


@app.put("/api/students/{student_id}")
def update_student(request: Request, student_id: str, data: UpdateStudent) -> Any:
    _require_admin(request)
    if not data.model_fields_set:
        return {"ok": True, "message": "No changes detected."}
    return _dump(provider_for_request(request).update_student(student_id, data))


@app.delete("/api/students/{student_id}", status_code=204)
def delete_student(request: Request, student_id: str) -> Response:
    _require_admin(request)
    provider_for_request(request).delete_student(student_id)
    return Response(status_code=204)


# ---- Results ----


@app.get("/api/results")
def list_results(request: Request, semester: Optional[str] = Query(None)) -> List[Dict[str, Any]]:
    _require_admin(request)
    provider = provider_for_request(request)
    if semester:
        return _dump(provider.get_results_by_semester(semester))
    return _dump(provider.get_results())


@app.get("/api/results/student/{student_id}")
def list_student_results(request: Request, student_id: str) -> List[Dict[str, Any]]:
    _require_self_or_admin(request, student_id)
    return _dump(provider_for_request(request).get_results_by_student(student_id))


@app.post("/api/results", status_code=201)
def create_result(request: Request, data: CreateResult) -> Dict[str, Any]:
    _require_admin(request)
    return _dump(provider_for_request(request).create_result(data))


@app.put("/api/results/{result_id}")
def update_result(request: Request, result_id: int, data: UpdateResult) -> Dict[str, Any]:
    _require_admin(request)
    return _dump(provider_for_request(request).update_result(result_id, data))


@app.delete("/api/results/{result_id}", status_code=204)
def delete_result(request: Request, result_id: int) -> Response:
    _require_admin(request)
    provider_for_request(request).delete_result(result_id)
    return Response(status_code=204)


# ---- Subjects ----


@app.get("/api/subjects")
def list_subjects(request: Request) -> List[Dict[str, Any]]:
    _require_admin(request)
    return _dump(provider_for_request(request).get_subjects())


@app.get("/api/subjects/{code}")
def get_subject(request: Request, code: str) -> Dict[str, Any]:
    _require_admin(request)
    return _dump(provider_for_request(request).get_subject(code))


@app.post("/api/subjects", status_code=201)
def create_subject(request: Request, data: CreateSubject) -> Dict[str, Any]:
    _require_admin(request)
    return _dump(provider_for_request(request).create_subject(data))


@app.put("/api/subjects/{code}")
def update_subject(request: Request, code: str, data: UpdateSubject) -> Any:
    _require_admin(request)
    if not data.model_fields_set:
        return {"ok": True, "message": "No changes detected."}
    return _dump(provider_for_request(request).update_subject(code, data))


@app.delete("/api/subjects/{code}", status_code=204)
def delete_subject(request: Request, code: str) -> Response:
    _require_admin(request)
    provider_for_request(request).delete_subject(code)
    return Response(status_code=204)


# ---- Uploads / analytics / reports ----


@app.get("/api/uploads")
def recent_uploads(request: Request, limit: int = Query(5, ge=1, le=100)) -> List[Dict[str, Any]]:
    _require_admin(request)
    return _dump(provider_for_request(request).get_recent_uploads(limit))


@app.post("/api/uploads/results/csv")
def upload_results_csv(
    request: Request,
    semester: str = Form(...),
    file: UploadFile = File(...),
    upload_type: str = Form(DEFAULT_UPLOAD_TYPE, alias="type"),
) -> Dict[str, Any]:
    _require_admin(request)
    # One byte past the cap is enough to detect an oversized upload.
    content = file.file.read(MAX_UPLOAD_BYTES + 1)
    try:
        validate_csv_upload(file.filename, len(content), file.content_type)
        result = provider_for_request(request).upload_results_csv(
            semester=semester,
            filename=file.filename or "results.csv",
            content=content,
            upload_type=upload_type,
            content_type=file.content_type,
        )
    except InvalidUploadError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _dump(result)


@app.get("/api/analytics/admin")
def analytics(request: Request) -> Dict[str, Any]:
    _require_admin(request)
    return _dump(provider_for_request(request).get_analytics_stats())


@app.get("/api/reports/semester/{semester}", response_class=HTMLResponse)
def semester_report(request: Request, semester: str) -> HTMLResponse:
    _require_admin(request)
    return HTMLResponse(content=provider_for_request(request).get_semester_report_html(semester))


# ---- Student pages ----


@app.get("/api/student/dashboard")
def student_dashboard(request: Request) -> Dict[str, Any]:
    user = _current_user(request)
    provider = provider_for_request(request)

    # Profile and results are independent requests; fetch them concurrently.
    with ThreadPoolExecutor(max_workers=2) as pool:
        student_future = pool.submit(provider.get_student, user.id)
        results_future = pool.submit(provider.get_results_by_student, user.id)
        student = student_future.result()
        results = results_future.result()

    return {"student": _dump(student), "results": _dump(results)}


def run(host: str = "0.0.0.0", port: int = 3000) -> None:
    import uvicorn

    cfg = load_config()
    level = getattr(logging, cfg.log_level, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    # basicConfig is a no-op once the CLI has configured the root logger.
    logging.getLogger().setLevel(level)
    if not cfg.console_sessions_enabled:
        logger.warning("AUTH_SESSION_SECRET is not set; console logins will be refused")

    uvicorn_log_level = (
        cfg.log_level.lower()
        if cfg.log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"]
        else "info"
    )
    logger.info("Starting console on %s:%d (backend=%s)", host, port, cfg.api_base_url)
    uvicorn.run(app, host=host, port=port, log_level=uvicorn_log_level)
