"""installkit - Install API FastAPI application.

Operator-facing driver for the install tool. Requests obtain the tool from a
factory installed at startup; the tool keeps no state besides its collaborators.

Mutating endpoints answer 423 while the tool is locked by failed logins.
Fatal failures are written to the daily fatal error log before an error
response is returned.

Run with:
    uvicorn services.install_api.main:app --reload  # dev server only
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from installkit.config import DATABASE_NAME, LICENSE_ACCEPTED_KEY
from installkit.errors import (
    InstallError,
    InstallErrorCode,
    RunOnceError,
    TemplateImportError,
    TemplateNotFoundError,
)
from installkit.schemas import (
    CreateAdminRequest,
    ImportTemplateRequest,
    ImportTemplateResponse,
    InstallErrorResponse,
    InstallStatusResponse,
    LoginCountResponse,
    RunOnceResponse,
    StatusResponse,
    TemplateListResponse,
)
from installkit.tool import InstallTool, create_install_tool

logger = logging.getLogger(__name__)

# --- Tool Setup ---

# Module-level tool factory (initialized on startup, replaceable for testing)
_tool_factory: Callable[[], InstallTool] | None = None
_database_name: str = DATABASE_NAME


def get_tool_factory() -> Callable[[], InstallTool]:
    """Get the tool factory.

    Raises:
        RuntimeError: If the factory is not initialized (app lifespan not invoked).
    """
    if _tool_factory is None:
        raise RuntimeError("Install tool not initialized. App lifespan not invoked?")
    return _tool_factory


def get_install_tool():
    """Dependency that provides an install tool."""
    return get_tool_factory()()


ToolDep = Annotated[InstallTool, Depends(get_install_tool)]


# --- Lifespan ---


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler.

    Builds the install tool from the configured defaults unless a factory
    was installed beforehand. The tool is shared so the in-memory config
    tier lives as long as the process.
    """
    global _tool_factory
    if _tool_factory is None:
        tool = create_install_tool()
        _tool_factory = lambda: tool  # noqa: E731
        logger.info("Install tool ready (root=%s)", tool.root_dir)

    yield


# --- FastAPI App ---


app = FastAPI(
    title="installkit - Install API",
    description="Bootstrap an application database: status, templates, first admin.",
    version="0.1.0",
    lifespan=lifespan,
)


# --- Error Handling ---


def error_code_to_status(error_code: str) -> int:
    """Map installer error codes to HTTP status codes."""
    if error_code == InstallErrorCode.TEMPLATE_NOT_FOUND:
        return 404
    if error_code == InstallErrorCode.INSTALL_LOCKED:
        return 423
    if error_code == InstallErrorCode.ADMIN_EXISTS:
        return 409
    if error_code == InstallErrorCode.DATABASE_UNAVAILABLE:
        return 503
    return 500


def make_error_response(error_code: str, error_message: str) -> JSONResponse:
    """Create a JSON error response."""
    return JSONResponse(
        status_code=error_code_to_status(error_code),
        content=InstallErrorResponse(
            error_code=error_code,
            error_message=error_message,
        ).model_dump(),
    )


def locked_response() -> JSONResponse:
    return make_error_response(
        InstallErrorCode.INSTALL_LOCKED,
        "The install tool is locked after too many failed logins",
    )


ERROR_RESPONSES = {
    423: {"model": InstallErrorResponse, "description": "Install tool locked"},
    500: {"model": InstallErrorResponse, "description": "Operation failed"},
}


# --- Endpoints ---


@app.get("/v1/install/status", response_model=InstallStatusResponse, summary="Readiness status")
def install_status(tool: ToolDep):
    """Report the readiness predicates of the installation target.

    Database predicates are only evaluated when the database is reachable.
    """
    can_connect = tool.can_connect_to_database(_database_name)
    status = InstallStatusResponse(
        locked=tool.is_locked(),
        license_required=tool.should_accept_license(),
        can_write_files=tool.can_write_files(),
        can_connect=can_connect,
    )
    if can_connect:
        status.fresh_installation = tool.is_fresh_installation()
        status.old_database = tool.has_old_database()
        status.has_admin = tool.has_admin_user()
    return status


@app.post(
    "/v1/install/login-failures",
    response_model=LoginCountResponse,
    summary="Record a failed install tool login",
)
def record_login_failure(tool: ToolDep):
    count = tool.increase_login_count()
    return LoginCountResponse(login_count=count, locked=tool.is_locked())


@app.delete(
    "/v1/install/login-failures",
    response_model=LoginCountResponse,
    responses={423: {"model": InstallErrorResponse, "description": "Install tool locked"}},
    summary="Reset the failed login counter",
)
def reset_login_failures(tool: ToolDep):
    """Clear failed logins recorded so far.

    Refused while locked; unlocking is done outside the API by calling
    InstallTool.reset_login_count or removing the cache entry.
    """
    if tool.is_locked():
        return locked_response()
    tool.reset_login_count()
    return LoginCountResponse(login_count=0, locked=tool.is_locked())


@app.post(
    "/v1/install/license",
    response_model=StatusResponse,
    responses=ERROR_RESPONSES,
    summary="Accept the license",
)
def accept_license(tool: ToolDep):
    if tool.is_locked():
        return locked_response()
    try:
        tool.persist_config(LICENSE_ACCEPTED_KEY, True)
    except (InstallError, OSError) as e:
        tool.log_exception(e)
        logger.exception("Could not persist license acceptance")
        return make_error_response(InstallErrorCode.LOCALCONFIG_INVALID, str(e))
    return StatusResponse()


@app.get("/v1/install/templates", response_model=TemplateListResponse, summary="List seed templates")
def list_templates(tool: ToolDep):
    return TemplateListResponse(templates=tool.get_templates())


@app.post(
    "/v1/install/templates/import",
    response_model=ImportTemplateResponse,
    responses={
        404: {"model": InstallErrorResponse, "description": "Template not found"},
        503: {"model": InstallErrorResponse, "description": "No database configured"},
        **ERROR_RESPONSES,
    },
    summary="Import a seed template",
)
def import_template(request: ImportTemplateRequest, tool: ToolDep):
    """Import a seed template.

    Unless preserve_data is set, every prefixed table is emptied first. A
    failed statement aborts the import; the operator re-imports after fixing
    the template.
    """
    if tool.is_locked():
        return locked_response()
    try:
        report = tool.import_template(request.template, preserve_data=request.preserve_data)
    except TemplateNotFoundError as e:
        return make_error_response(e.error_code, e.message)
    except TemplateImportError as e:
        tool.log_exception(e)
        return make_error_response(e.error_code, e.message)
    except InstallError as e:
        return make_error_response(e.error_code, e.message)
    except SQLAlchemyError as e:
        tool.log_exception(e)
        logger.exception("Template import of %s failed", request.template)
        return make_error_response(
            InstallErrorCode.TEMPLATE_IMPORT_FAILED, f"Import of {request.template} failed"
        )
    return ImportTemplateResponse(
        template=report.template,
        truncated_tables=report.truncated_tables,
        statements=report.statements,
    )


@app.post(
    "/v1/install/admin",
    response_model=StatusResponse,
    responses={
        409: {"model": InstallErrorResponse, "description": "Administrator exists"},
        503: {"model": InstallErrorResponse, "description": "No database configured"},
        **ERROR_RESPONSES,
    },
    summary="Create the first administrator",
)
def create_admin(request: CreateAdminRequest, tool: ToolDep):
    if tool.is_locked():
        return locked_response()
    if tool.has_admin_user():
        return make_error_response(
            InstallErrorCode.ADMIN_EXISTS, "An administrator account already exists"
        )
    try:
        tool.persist_admin_user(
            request.username, request.name, request.email, request.password, request.language
        )
    except InstallError as e:
        return make_error_response(e.error_code, e.message)
    except SQLAlchemyError as e:
        tool.log_exception(e)
        logger.exception("Could not create administrator account")
        return make_error_response(
            InstallErrorCode.ADMIN_CREATE_FAILED, "The administrator account could not be created"
        )
    return StatusResponse()


@app.post(
    "/v1/install/run-once",
    response_model=RunOnceResponse,
    responses=ERROR_RESPONSES,
    summary="Run pending run-once scripts",
)
def run_once(tool: ToolDep):
    if tool.is_locked():
        return locked_response()
    try:
        executed = tool.handle_run_once()
    except RunOnceError as e:
        tool.log_exception(e)
        return make_error_response(e.error_code, e.message)
    return RunOnceResponse(executed=executed)


@app.get("/health", summary="Health check")
def health_check():
    """Simple health check endpoint."""
    return {"status": "ok"}


# --- For testing: allow overriding the tool factory ---


def override_tool_factory(factory: Callable[[], InstallTool], database_name: str | None = None):
    """Override the tool factory (and optionally the schema name) for testing."""
    global _tool_factory, _database_name
    _tool_factory = factory
    if database_name is not None:
        _database_name = database_name
