"""
MARKET PULSE — FastAPI Application
Read-only rendering boundary for the dashboard: catalogs, the current
dataset bundle, the current analysis, plus the two input triggers
(selection changed, run analysis).
"""
import uuid
from typing import Dict, Any, Optional
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from market_pulse.config.settings import get_settings
from market_pulse.config.catalog import list_symbols, list_timeframes
from market_pulse.data.summary import summarize_bundle
from market_pulse.session.dashboard import get_dashboard_session
from market_pulse.utils.errors import EmptySeriesError, InvalidProfileError
from market_pulse.utils.logger import get_logger, setup_logging
from market_pulse.utils.helpers import utc_timestamp

logger = get_logger("api")

# Application state
app_state: Dict[str, Any] = {
    "instance_id": str(uuid.uuid4())[:8],
    "started_at": None,
    "errors": 0,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the dashboard session on startup, stop it on shutdown."""
    setup_logging()
    settings = get_settings()
    app_state["started_at"] = utc_timestamp()

    session = get_dashboard_session()
    logger.info("market_pulse_starting",
                version=settings.version,
                instance=app_state["instance_id"],
                symbol=session.symbol,
                timeframe=session.timeframe)

    await session.start()
    logger.info("market_pulse_ready")

    yield

    logger.info("market_pulse_shutting_down")
    await session.stop()


app = FastAPI(
    title="MARKET PULSE",
    description="Synthetic market data and weighted signal ensemble for the trading dashboard",
    version="1.0.0",
    lifespan=lifespan,
)


# ─── Health & Metrics ───────────────────────────────────────────

@app.get("/healthz", tags=["System"])
async def health_check():
    """Fast health check endpoint for load balancers and monitoring."""
    return JSONResponse(
        status_code=200,
        content={
            "status": "healthy",
            "instance": app_state["instance_id"],
            "uptime_since": app_state["started_at"],
            "timestamp": utc_timestamp(),
        },
    )


@app.get("/metrics", tags=["System"])
async def metrics():
    """Session counters."""
    settings = get_settings()
    session = get_dashboard_session()
    return {
        "app": {
            "name": settings.app_name,
            "version": settings.version,
            "instance_id": app_state["instance_id"],
            "started_at": app_state["started_at"],
        },
        "session": {
            **session.stats,
            "generation": session.generation,
            "is_running": session.is_running,
            "last_update": session.last_update.isoformat() if session.last_update else None,
        },
        "errors": app_state["errors"],
        "timestamp": utc_timestamp(),
    }


# ─── Catalogs ───────────────────────────────────────────────────

@app.get("/api/v1/catalog/symbols", tags=["Catalog"])
async def symbols():
    return {"symbols": list_symbols()}


@app.get("/api/v1/catalog/timeframes", tags=["Catalog"])
async def timeframes():
    return {"timeframes": list_timeframes()}


# ─── Dashboard State ────────────────────────────────────────────

class SelectionRequest(BaseModel):
    symbol: Optional[str] = None
    timeframe: Optional[str] = None


@app.get("/api/v1/dashboard", tags=["Dashboard"])
async def dashboard():
    """Full snapshot: selection, status, datasets and analysis."""
    return get_dashboard_session().snapshot()


@app.post("/api/v1/selection", tags=["Dashboard"])
async def change_selection(request: SelectionRequest):
    """Switch symbol and/or timeframe. Clears the current analysis."""
    session = get_dashboard_session()
    try:
        changed = session.select(symbol=request.symbol, timeframe=request.timeframe)
    except InvalidProfileError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {
        "changed": changed,
        "symbol": session.symbol,
        "timeframe": session.timeframe,
        "generation": session.generation,
    }


# ─── Market Data ────────────────────────────────────────────────

@app.get("/api/v1/market-data", tags=["Market Data"])
async def market_data():
    """The current four-dataset bundle."""
    bundle = get_dashboard_session().bundle
    if bundle is None:
        raise HTTPException(status_code=404, detail="No market data generated yet")
    return bundle.model_dump(mode="json")


@app.get("/api/v1/market-data/summary", tags=["Market Data"])
async def market_data_summary():
    """Aggregates over the current bundle."""
    bundle = get_dashboard_session().bundle
    if bundle is None:
        raise HTTPException(status_code=404, detail="No market data generated yet")
    return summarize_bundle(bundle)


@app.post("/api/v1/refresh", tags=["Market Data"])
async def force_refresh():
    """Regenerate the bundle now (skipped if a refresh is already running)."""
    session = get_dashboard_session()
    try:
        replaced = await session.refresh()
    except Exception as e:
        app_state["errors"] += 1
        logger.error("refresh_request_error", symbol=session.symbol, error=str(e))
        raise HTTPException(status_code=500, detail=str(e))
    return {"replaced": replaced, "last_update": session.last_update.isoformat() if session.last_update else None}


# ─── Analysis ───────────────────────────────────────────────────

@app.post("/api/v1/analysis", tags=["Analysis"])
async def run_analysis():
    """Run the signal ensemble on the latest sample."""
    session = get_dashboard_session()
    if session.is_analyzing:
        raise HTTPException(status_code=409, detail="Analysis already in progress")
    try:
        result = await session.run_analysis()
    except EmptySeriesError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"analysis": result.to_dict() if result else None, "superseded": result is None}


@app.get("/api/v1/analysis", tags=["Analysis"])
async def current_analysis():
    result = get_dashboard_session().analysis
    return {"analysis": result.to_dict() if result else None}
