"""
HTTP API for Finance Tracker

The browser client talks to these routes. Sessions travel in an
HttpOnly cookie; every route except signup, login, logout, password
recovery and health requires it.

DESIGN PRINCIPLES:
1. Routes only parse, delegate to a flow, and shape the response
2. Every error body is {"error": "<short message>"}
3. Stack traces are logged, never returned
4. Update/delete answer the same whether or not the record was ours
"""

import json
from typing import Any, Optional

from fastapi import FastAPI, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from finance_tracker.activity import configure_logging
from finance_tracker.config import get_settings
from finance_tracker.errors import FinanceTrackerError, InternalError, ValidationError
from finance_tracker.models.account import (
    ForgotPasswordRequest,
    Identity,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
)
from finance_tracker.models.category import CategoryCreate
from finance_tracker.models.transaction import TransactionCreate, TransactionUpdate
from finance_tracker.orchestrator import (
    AppComponents,
    create_app_components,
    parse_request,
)
from finance_tracker.security import cleared_cookie_options, session_cookie_options
from finance_tracker.services.storage import StorageError


def _error_response(error: FinanceTrackerError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content={"error": error.message})


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Request body must be valid JSON")


def create_app(components: Optional[AppComponents] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        components: Pre-built flows (tests inject in-memory ones).
                    Defaults to create_app_components().
    """
    settings = get_settings()
    auth_settings = settings.auth
    app_settings = settings.app

    configure_logging(debug=app_settings.debug_mode)
    components = components or create_app_components()

    auth_flow = components.auth_flow
    expense_flow = components.expense_flow
    category_flow = components.category_flow
    analytics_flow = components.analytics_flow
    activity_logger = components.activity_logger

    app = FastAPI(title="Finance Tracker", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def set_session(response: Response, token: str) -> None:
        response.set_cookie(value=token, **session_cookie_options(auth_settings, app_settings))

    def clear_session(response: Response) -> None:
        response.set_cookie(value="", **cleared_cookie_options(auth_settings, app_settings))

    async def identity_from(request: Request) -> Identity:
        return await auth_flow.current_user(request.cookies.get(auth_settings.cookie_name))

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    @app.exception_handler(FinanceTrackerError)
    async def handle_domain_error(request: Request, exc: FinanceTrackerError):
        return _error_response(exc)

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        activity_logger.log_storage_error(
            operation=f"{request.method} {request.url.path}",
            error_message=str(exc),
        )
        return _error_response(InternalError())

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        activity_logger.log_request_failed(request.method, request.url.path, exc)
        return _error_response(InternalError())

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    @app.post("/auth/signup", status_code=201)
    async def signup(request: Request, response: Response):
        payload = parse_request(SignupRequest, await _read_json(request))
        identity, token = await auth_flow.signup(payload)
        set_session(response, token)
        return {"message": "User created successfully", "user": identity.model_dump()}

    @app.post("/auth/login")
    async def login(request: Request, response: Response):
        payload = parse_request(LoginRequest, await _read_json(request))
        identity, token = await auth_flow.login(payload)
        set_session(response, token)
        return {"message": "Login successful", "user": identity.model_dump()}

    @app.post("/auth/logout")
    async def logout(response: Response):
        clear_session(response)
        return {"message": "Logged out successfully"}

    @app.get("/auth/me")
    async def me(request: Request):
        identity = await identity_from(request)
        return {"user": identity.model_dump()}

    @app.post("/auth/forgot-password")
    async def forgot_password(request: Request):
        payload = parse_request(ForgotPasswordRequest, await _read_json(request))
        question = await auth_flow.forgot_password(payload)
        return {"securityQuestion": question}

    @app.post("/auth/reset-password")
    async def reset_password(request: Request):
        payload = parse_request(ResetPasswordRequest, await _read_json(request))
        await auth_flow.reset_password(payload)
        return {"message": "Password updated successfully"}

    @app.delete("/auth/delete-account")
    async def delete_account(request: Request, response: Response):
        await auth_flow.delete_account(await identity_from(request))
        clear_session(response)
        return {"message": "Account deleted successfully"}

    @app.delete("/auth/delete-data")
    async def delete_data(request: Request):
        await auth_flow.delete_data(await identity_from(request))
        return {"message": "Data deleted successfully"}

    # ------------------------------------------------------------------
    # Expenses
    # ------------------------------------------------------------------

    @app.get("/expenses")
    async def list_expenses(request: Request):
        expenses = await expense_flow.list_expenses(await identity_from(request))
        return {"expenses": [e.model_dump(mode="json", by_alias=True) for e in expenses]}

    @app.post("/expenses", status_code=201)
    async def create_expense(request: Request):
        identity = await identity_from(request)
        payload = parse_request(TransactionCreate, await _read_json(request))
        expense = await expense_flow.create_expense(identity, payload)
        return {"expense": expense.model_dump(mode="json", by_alias=True)}

    @app.put("/expenses")
    async def update_expense(request: Request):
        identity = await identity_from(request)
        body = await _read_json(request)
        if not isinstance(body, dict):
            raise ValidationError("Request body must be a JSON object")
        body = dict(body)
        transaction_id = body.pop("id", None)
        if not transaction_id:
            raise ValidationError("Expense ID is required")
        patch = parse_request(TransactionUpdate, body)
        await expense_flow.update_expense(identity, str(transaction_id), patch)
        return {"message": "Expense updated successfully"}

    @app.delete("/expenses")
    async def delete_expense(
        request: Request,
        transaction_id: Optional[str] = Query(default=None, alias="id"),
    ):
        await expense_flow.delete_expense(await identity_from(request), transaction_id)
        return {"message": "Expense deleted successfully"}

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    @app.get("/categories")
    async def list_categories(request: Request):
        categories = await category_flow.list_categories(await identity_from(request))
        return {"categories": [c.model_dump(mode="json", by_alias=True) for c in categories]}

    @app.post("/categories", status_code=201)
    async def create_category(request: Request):
        identity = await identity_from(request)
        payload = parse_request(CategoryCreate, await _read_json(request))
        category = await category_flow.create_category(identity, payload)
        return {"category": category.model_dump(mode="json", by_alias=True)}

    @app.delete("/categories")
    async def delete_category(
        request: Request,
        category_id: Optional[str] = Query(default=None, alias="id"),
    ):
        await category_flow.delete_category(await identity_from(request), category_id)
        return {"message": "Category deleted successfully"}

    # ------------------------------------------------------------------
    # Analytics
    # ------------------------------------------------------------------

    @app.get("/analytics")
    async def analytics(request: Request, months: Optional[str] = Query(default=None)):
        identity = await identity_from(request)
        month_count = None
        if months is not None:
            try:
                month_count = int(months)
            except ValueError:
                raise ValidationError("months must be a whole number")
        summary = await analytics_flow.summarize(identity, months=month_count)
        return {"analytics": summary.model_dump(mode="json", by_alias=True)}

    @app.get("/health")
    async def health():
        return {
            "status": "ok",
            "storage": "sql" if components.sql_client is not None else "memory",
        }

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(create_app(), host="0.0.0.0", port=8000)
