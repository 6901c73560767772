"""
MARKET PULSE — Dashboard Session
Owns the current selection, the current dataset bundle and the current
analysis result. Refreshes run on a timer, analyses on demand; every
in-flight operation carries the generation token it started under and its
result is dropped if the selection changed before it landed.
"""
import asyncio
import contextlib
from datetime import datetime
from typing import Any, Dict, Optional, Set

from market_pulse.config.settings import SimulationSettings, get_settings
from market_pulse.config.catalog import get_symbol_profile, get_timeframe_profile
from market_pulse.data.models import MarketDataBundle, PriceSample, SymbolProfile, TimeframeProfile
from market_pulse.data.generator import MarketDataGenerator
from market_pulse.data.random_source import NumpyRandomSource
from market_pulse.data.summary import price_change
from market_pulse.engines.ensemble import SignalEnsemble, SignalEnsembleResult
from market_pulse.utils.errors import EmptySeriesError
from market_pulse.utils.logger import get_logger

logger = get_logger("dashboard_session")


class DashboardSession:
    """
    Process-wide dashboard context.

    Lifecycle: created on startup, start() loads the first bundle and
    launches the refresh loop, stop() tears it down. Bundle and analysis are
    replaced wholesale, never mutated.
    """

    def __init__(
        self,
        generator: Optional[MarketDataGenerator] = None,
        ensemble: Optional[SignalEnsemble] = None,
        settings: Optional[SimulationSettings] = None,
        symbol: Optional[str] = None,
        timeframe: Optional[str] = None,
        refresh_latency: Optional[float] = None,
        analysis_latency: Optional[float] = None,
    ):
        self.settings = settings or get_settings().simulation
        self.generator = generator or MarketDataGenerator(NumpyRandomSource(self.settings.seed))
        self.ensemble = ensemble or SignalEnsemble()
        self.symbol_profile: SymbolProfile = get_symbol_profile(symbol or self.settings.default_symbol)
        self.timeframe_profile: TimeframeProfile = get_timeframe_profile(
            timeframe or self.settings.default_timeframe
        )
        self.refresh_latency = (
            self.settings.refresh_latency_seconds if refresh_latency is None else refresh_latency
        )
        self.analysis_latency = (
            self.settings.analysis_latency_seconds if analysis_latency is None else analysis_latency
        )

        self._generation = 0
        self._bundle: Optional[MarketDataBundle] = None
        self._bundle_generation: Optional[int] = None
        self._analysis: Optional[SignalEnsembleResult] = None
        self._refreshing_generation: Optional[int] = None
        self._analyzing = False
        self._loop_task: Optional[asyncio.Task] = None
        self._pending: Set[asyncio.Task] = set()
        self.last_update: Optional[datetime] = None
        self.stats: Dict[str, int] = {
            "refreshes": 0,
            "refreshes_skipped": 0,
            "analyses": 0,
            "stale_results_dropped": 0,
            "errors": 0,
        }

    # ─── Read-only state ────────────────────────────────────────

    @property
    def symbol(self) -> str:
        return self.symbol_profile.code

    @property
    def timeframe(self) -> str:
        return self.timeframe_profile.code

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def bundle(self) -> Optional[MarketDataBundle]:
        return self._bundle

    @property
    def analysis(self) -> Optional[SignalEnsembleResult]:
        return self._analysis

    @property
    def is_refreshing(self) -> bool:
        return self._refreshing_generation == self._generation

    @property
    def is_analyzing(self) -> bool:
        return self._analyzing

    @property
    def is_running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def refresh_interval_seconds(self) -> float:
        """Ten refreshes per bar interval, but never more often than every 5s."""
        return max(
            self.timeframe_profile.interval_seconds / self.settings.refresh_divisor,
            self.settings.min_refresh_interval_seconds,
        )

    # ─── Selection ──────────────────────────────────────────────

    def select(self, symbol: Optional[str] = None, timeframe: Optional[str] = None) -> bool:
        """
        Change symbol and/or timeframe. Both codes are validated before
        anything changes, so an InvalidProfileError leaves the session untouched.
        Returns True if the context changed.
        """
        new_symbol = get_symbol_profile(symbol) if symbol is not None else self.symbol_profile
        new_timeframe = get_timeframe_profile(timeframe) if timeframe is not None else self.timeframe_profile

        if new_symbol == self.symbol_profile and new_timeframe == self.timeframe_profile:
            return False

        self.symbol_profile = new_symbol
        self.timeframe_profile = new_timeframe
        self._generation += 1
        self._analysis = None

        logger.info(
            "selection_changed",
            symbol=self.symbol,
            timeframe=self.timeframe,
            generation=self._generation,
        )

        if self.is_running:
            self._restart_loop()
        return True

    def select_symbol(self, code: str) -> bool:
        return self.select(symbol=code)

    def select_timeframe(self, code: str) -> bool:
        return self.select(timeframe=code)

    # ─── Refresh ────────────────────────────────────────────────

    async def refresh(self) -> bool:
        """
        Generate a new bundle for the current selection after the artificial
        latency. Skipped while a refresh for the same selection is in flight.
        Returns True if the bundle was replaced.
        """
        token = self._generation
        if self._refreshing_generation == token:
            self.stats["refreshes_skipped"] += 1
            logger.debug("refresh_skipped", symbol=self.symbol, generation=token)
            return False

        self._refreshing_generation = token
        symbol, timeframe = self.symbol_profile, self.timeframe_profile
        try:
            await asyncio.sleep(self.refresh_latency)
            bundle = self.generator.generate(symbol, timeframe)
        finally:
            if self._refreshing_generation == token:
                self._refreshing_generation = None

        if token != self._generation:
            self._drop_stale("refresh", token)
            return False

        self._bundle = bundle
        self._bundle_generation = token
        self.last_update = bundle.generated_at
        self.stats["refreshes"] += 1
        logger.debug("bundle_replaced", symbol=symbol.code, timeframe=timeframe.code, samples=len(bundle.series))
        return True

    async def _guarded_refresh(self) -> None:
        try:
            await self.refresh()
        except Exception as e:
            self.stats["errors"] += 1
            logger.error("refresh_error", symbol=self.symbol, error=str(e))

    def _spawn_refresh(self) -> None:
        task = asyncio.create_task(self._guarded_refresh())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _refresh_loop(self) -> None:
        interval = self.refresh_interval_seconds
        logger.info("refresh_loop_started", symbol=self.symbol, timeframe=self.timeframe, interval=interval)
        while True:
            await asyncio.sleep(interval)
            self._spawn_refresh()

    def _restart_loop(self) -> None:
        if self._loop_task is not None:
            self._loop_task.cancel()
        self._spawn_refresh()
        self._loop_task = asyncio.create_task(self._refresh_loop())

    # ─── Analysis ───────────────────────────────────────────────

    def _current_sample(self) -> PriceSample:
        if self._bundle is None or self._bundle_generation != self._generation:
            raise EmptySeriesError(f"No price series loaded for {self.symbol} {self.timeframe}")
        sample = self._bundle.latest_sample
        if sample is None:
            raise EmptySeriesError(f"Price series for {self.symbol} {self.timeframe} is empty")
        return sample

    async def run_analysis(self) -> Optional[SignalEnsembleResult]:
        """
        Analyze the latest sample of the current bundle after the artificial
        latency. Raises EmptySeriesError if there is nothing to analyze.
        Returns None if another analysis is running or the selection changed
        before this one finished.
        """
        if self._analyzing:
            logger.info("analysis_skipped", symbol=self.symbol, reason="in_flight")
            return None

        token = self._generation
        sample = self._current_sample()
        symbol, timeframe = self.symbol, self.timeframe

        self._analyzing = True
        try:
            await asyncio.sleep(self.analysis_latency)
            result = self.ensemble.analyze(sample, symbol=symbol, timeframe=timeframe)
        finally:
            self._analyzing = False

        if token != self._generation:
            self._drop_stale("analysis", token)
            return None

        self._analysis = result
        self.stats["analyses"] += 1
        return result

    def _drop_stale(self, kind: str, token: int) -> None:
        self.stats["stale_results_dropped"] += 1
        logger.info("stale_result_dropped", kind=kind, token=token, current=self._generation)

    # ─── Lifecycle ──────────────────────────────────────────────

    async def start(self) -> None:
        """Load the first bundle, then refresh on the timer."""
        if self.is_running:
            return
        await self.refresh()
        self._loop_task = asyncio.create_task(self._refresh_loop())
        logger.info("session_started", symbol=self.symbol, timeframe=self.timeframe)

    async def stop(self) -> None:
        """Cancel the refresh loop and any refresh still in flight."""
        tasks = list(self._pending)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
            self._loop_task = None
        for task in tasks:
            task.cancel()
        for task in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._pending.clear()
        logger.info("session_stopped", symbol=self.symbol)

    # ─── Rendering boundary ─────────────────────────────────────

    @property
    def status(self) -> str:
        return "LOADING" if self.is_refreshing else "LIVE"

    def snapshot(self, include_data: bool = True) -> Dict[str, Any]:
        """Read-only view of everything the presentation layer renders."""
        bundle = self._bundle
        change = price_change(bundle.series) if bundle else None
        snap: Dict[str, Any] = {
            "symbol": self.symbol_profile.model_dump(),
            "timeframe": self.timeframe_profile.model_dump(),
            "status": self.status,
            "is_analyzing": self._analyzing,
            "generation": self._generation,
            "refresh_interval_seconds": self.refresh_interval_seconds,
            "last_update": self.last_update.isoformat() if self.last_update else None,
            "price_change": change.model_dump(mode="json") if change else None,
            "analysis": self._analysis.to_dict() if self._analysis else None,
        }
        if include_data:
            snap["market_data"] = bundle.model_dump(mode="json") if bundle else None
        return snap


# Singleton
_session: Optional[DashboardSession] = None


def get_dashboard_session() -> DashboardSession:
    global _session
    if _session is None:
        _session = DashboardSession()
    return _session


def set_dashboard_session(session: Optional[DashboardSession]) -> None:
    """Replace the process-wide session (used at startup and in tests)."""
    global _session
    _session = session
