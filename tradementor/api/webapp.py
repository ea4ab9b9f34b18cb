from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as RequestValidationError
from starlette.concurrency import run_in_threadpool

from tradementor.api.schemas import EmotionCheckRequest, TradeRequest, api_error, api_success
from tradementor.api.service import JournalService
from tradementor.journal.journal_models import to_utc
from tradementor.utils.exceptions import TradeMentorError, ValidationError
from tradementor.utils.logger import bind_request_context, clear_request_context, get_logger

logger = get_logger(__name__)

app = FastAPI(title="TradeMentor Analytics", version="1.0")

USER_HEADER = "X-User-Id"

PUBLIC_PATHS = {"/api/health"}


def get_service() -> JournalService:
    return JournalService.get_instance()


def current_user(request: Request) -> str:
    return request.state.user_id


@app.middleware("http")
async def identity_middleware(request: Request, call_next):
    path = request.url.path
    if not path.startswith("/api/") or path in PUBLIC_PATHS:
        return await call_next(request)
    user_id = request.headers.get(USER_HEADER, "").strip()
    if not user_id:
        logger.warning("missing_user_header", path=path)
        return JSONResponse(api_error("Not authenticated", [f"{USER_HEADER} header is required"]),
                            status_code=401)
    request.state.user_id = user_id
    bind_request_context(user_id=user_id, path=path)
    try:
        return await call_next(request)
    finally:
        clear_request_context()


# ─── Helpers ────────────────────────────────────────────────────

def _opt_datetime(request: Request, *names: str) -> Optional[datetime]:
    for name in names:
        raw = request.query_params.get(name)
        if raw:
            return to_utc(raw)
    return None


def _int_param(request: Request, name: str, default: int) -> int:
    raw = request.query_params.get(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer", field=name)


def _error_response(e: TradeMentorError) -> JSONResponse:
    errors = [f"{e.field}: {e.message}"] if e.field else [e.message]
    return JSONResponse(api_error(e.message, errors), status_code=e.status_code or 500)


def _failure(event: str, message: str, e: Exception) -> JSONResponse:
    logger.error(event, error=str(e))
    return JSONResponse(api_error(message), status_code=500)


async def _run(event: str, message: str, fn, *args) -> Any:
    """Run a blocking service call in the threadpool and wrap it in the envelope."""
    try:
        data = await run_in_threadpool(fn, *args)
        return api_success(data)
    except ValidationError as e:
        return _error_response(e)
    except TradeMentorError as e:
        if (e.status_code or 500) < 500:
            return _error_response(e)
        return _failure(event, message, e)
    except Exception as e:
        return _failure(event, message, e)


# ─── Health ─────────────────────────────────────────────────────

@app.get("/api/health")
async def health() -> Any:
    return await _run("health_check_error", "Health check failed", get_service().get_health)


# ─── Journal ingestion ──────────────────────────────────────────

@app.post("/api/emotions")
async def record_emotion(request: Request) -> Any:
    try:
        body = await request.json()
        req = EmotionCheckRequest.model_validate(body)
    except RequestValidationError as e:
        return JSONResponse(api_error("Invalid emotion check", [err["msg"] for err in e.errors()]),
                            status_code=400)
    except ValueError:
        return JSONResponse(api_error("Request body must be JSON"), status_code=400)
    return await _run("record_emotion_error", "An error occurred while saving the emotion check",
                      get_service().record_emotion, current_user(request), req)


@app.get("/api/emotions/stats")
async def emotion_stats(request: Request) -> Any:
    return await _run("emotion_stats_error", "An error occurred while loading emotion stats",
                      get_service().get_emotion_stats, current_user(request))


@app.get("/api/emotions/{emotion_id}")
async def get_emotion(request: Request, emotion_id: str) -> Any:
    return await _run("get_emotion_error", "An error occurred while loading the emotion check",
                      get_service().get_emotion, current_user(request), emotion_id)


@app.post("/api/trades")
async def record_trade(request: Request) -> Any:
    try:
        body = await request.json()
        req = TradeRequest.model_validate(body)
    except RequestValidationError as e:
        return JSONResponse(api_error("Invalid trade", [err["msg"] for err in e.errors()]),
                            status_code=400)
    except ValueError:
        return JSONResponse(api_error("Request body must be JSON"), status_code=400)
    return await _run("record_trade_error", "An error occurred while saving the trade",
                      get_service().record_trade, current_user(request), req)


@app.get("/api/trades/{trade_id}")
async def get_trade(request: Request, trade_id: str) -> Any:
    return await _run("get_trade_error", "An error occurred while loading the trade",
                      get_service().get_trade, current_user(request), trade_id)


# ────────────────────────────────────────────────────────────────
# Pattern analytics
# ────────────────────────────────────────────────────────────────

@app.get("/api/pattern/correlation")
async def pattern_correlation(request: Request) -> Any:
    try:
        start = _opt_datetime(request, "startDate", "start_date")
        end = _opt_datetime(request, "endDate", "end_date")
    except ValidationError as e:
        return _error_response(e)
    period = request.query_params.get("period", "custom")
    return await _run("pattern_correlation_error",
                      "An error occurred while analyzing emotion-performance correlation",
                      get_service().get_correlation, current_user(request), start, end, period)


@app.get("/api/pattern/weekly-trend")
async def pattern_weekly_trend(request: Request) -> Any:
    try:
        weeks = _int_param(request, "weeks", 4)
    except ValidationError as e:
        return _error_response(e)
    return await _run("pattern_weekly_trend_error",
                      "An error occurred while analyzing weekly emotion trends",
                      get_service().get_weekly_trend, current_user(request), weeks)


@app.get("/api/pattern/insights")
async def pattern_insights(request: Request) -> Any:
    return await _run("pattern_insights_error", "An error occurred while generating insights",
                      get_service().get_insights, current_user(request))


@app.get("/api/pattern/optimal-conditions")
async def pattern_optimal_conditions(request: Request) -> Any:
    return await _run("pattern_optimal_conditions_error",
                      "An error occurred while analyzing optimal trading conditions",
                      get_service().get_optimal_conditions, current_user(request))


@app.get("/api/pattern/dashboard")
async def pattern_dashboard(request: Request) -> Any:
    period = request.query_params.get("period", "30d")
    return await _run("pattern_dashboard_error",
                      "An error occurred while generating the pattern dashboard",
                      get_service().get_dashboard, current_user(request), period)


@app.get("/api/pattern/emotion-performance")
async def pattern_emotion_performance(request: Request) -> Any:
    try:
        start = _opt_datetime(request, "startDate", "start_date")
        end = _opt_datetime(request, "endDate", "end_date")
    except ValidationError as e:
        return _error_response(e)
    return await _run("pattern_emotion_performance_error",
                      "An error occurred while analyzing emotion level performance",
                      get_service().get_emotion_level_performance, current_user(request), start, end)


@app.get("/api/pattern/recommendations")
async def pattern_recommendations(request: Request) -> Any:
    try:
        level = _int_param(request, "currentEmotionLevel",
                           _int_param(request, "current_emotion_level", 5))
    except ValidationError as e:
        return _error_response(e)
    return await _run("pattern_recommendations_error",
                      "An error occurred while generating trading recommendations",
                      get_service().get_recommendations, current_user(request), level)


# ─── Summary pattern endpoints ──────────────────────────────────

@app.get("/api/patterns/analysis")
async def patterns_analysis(request: Request) -> Any:
    try:
        start = _opt_datetime(request, "startDate", "start_date")
        end = _opt_datetime(request, "endDate", "end_date")
        weeks = _int_param(request, "weeks", 4)
    except ValidationError as e:
        return _error_response(e)
    return await _run("patterns_analysis_error", "An error occurred while analyzing patterns",
                      get_service().get_pattern_analysis, current_user(request), start, end, weeks)


@app.get("/api/patterns/emotion-patterns")
async def patterns_emotion_patterns(request: Request) -> Any:
    try:
        start = _opt_datetime(request, "startDate", "start_date")
        end = _opt_datetime(request, "endDate", "end_date")
    except ValidationError as e:
        return _error_response(e)
    return await _run("patterns_emotion_patterns_error",
                      "An error occurred while analyzing emotion patterns",
                      get_service().get_emotion_patterns, current_user(request), start, end)


@app.get("/api/patterns/emotion-distribution")
async def patterns_emotion_distribution(request: Request) -> Any:
    try:
        start = _opt_datetime(request, "startDate", "start_date")
        end = _opt_datetime(request, "endDate", "end_date")
    except ValidationError as e:
        return _error_response(e)
    return await _run("patterns_emotion_distribution_error",
                      "An error occurred while analyzing the emotion distribution",
                      get_service().get_emotion_distribution, current_user(request), start, end)
