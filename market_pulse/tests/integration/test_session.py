"""
MARKET PULSE — Integration Tests for the Dashboard Session
Refresh/analysis lifecycle, generation tokens and stale-result handling.
"""
import asyncio
import pytest

from market_pulse.engines.ensemble import SignalEnsembleResult
from market_pulse.session.dashboard import (
    DashboardSession, get_dashboard_session, set_dashboard_session,
)
from market_pulse.utils.errors import EmptySeriesError, InvalidProfileError


class TestSelection:
    def test_initial_state(self, session):
        assert session.symbol == "AAPL"
        assert session.timeframe == "5m"
        assert session.bundle is None
        assert session.analysis is None
        assert session.generation == 0
        assert session.status == "LIVE"

    def test_refresh_interval(self, session):
        # 5m / 10 = 30s
        assert session.refresh_interval_seconds == 30.0
        session.select_timeframe("1m")
        # 1m / 10 = 6s
        assert session.refresh_interval_seconds == 6.0

    def test_refresh_interval_floor(self, simulation_settings):
        s = DashboardSession(settings=simulation_settings, timeframe="1m")
        s.settings = simulation_settings.model_copy(update={"refresh_divisor": 100})
        assert s.refresh_interval_seconds == 5.0

    def test_invalid_symbol_leaves_state_untouched(self, session):
        with pytest.raises(InvalidProfileError):
            session.select(symbol="AAPL2", timeframe="1h")
        assert session.symbol == "AAPL"
        assert session.timeframe == "5m"
        assert session.generation == 0

    def test_same_selection_is_noop(self, session):
        assert session.select_symbol("AAPL") is False
        assert session.generation == 0

    def test_unknown_default_rejected(self, simulation_settings):
        with pytest.raises(InvalidProfileError):
            DashboardSession(settings=simulation_settings, symbol="ZZZZ")


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_replaces_bundle(self, session):
        assert await session.refresh() is True
        bundle = session.bundle
        assert bundle.symbol == "AAPL"
        assert len(bundle.series) == 100
        assert len(bundle.order_flow) == 30
        assert session.last_update == bundle.generated_at

        assert await session.refresh() is True
        assert session.bundle is not bundle
        assert session.stats["refreshes"] == 2

    @pytest.mark.asyncio
    async def test_overlapping_refresh_is_skipped(self, session):
        session.refresh_latency = 0.05
        first = asyncio.create_task(session.refresh())
        await asyncio.sleep(0)
        assert session.is_refreshing
        assert session.status == "LOADING"
        assert await session.refresh() is False
        assert await first is True
        assert session.stats["refreshes_skipped"] == 1
        assert not session.is_refreshing

    @pytest.mark.asyncio
    async def test_stale_refresh_dropped(self, session):
        session.refresh_latency = 0.05
        inflight = asyncio.create_task(session.refresh())
        await asyncio.sleep(0)
        session.select_symbol("TSLA")
        # A refresh for the new selection is not blocked by the stale one
        assert await session.refresh() is True
        assert await inflight is False
        assert session.bundle.symbol == "TSLA"
        assert session.stats["stale_results_dropped"] == 1


class TestAnalysis:
    @pytest.mark.asyncio
    async def test_analysis_without_data(self, session):
        with pytest.raises(EmptySeriesError):
            await session.run_analysis()
        assert session.analysis is None
        assert session.is_analyzing is False

    @pytest.mark.asyncio
    async def test_analysis_on_latest_sample(self, session):
        await session.refresh()
        result = await session.run_analysis()
        assert isinstance(result, SignalEnsembleResult)
        assert session.analysis is result
        assert result.current_price == session.bundle.series[-1].price
        assert result.symbol == "AAPL"
        assert result.timeframe == "5m"

    @pytest.mark.asyncio
    async def test_selection_change_clears_analysis(self, session):
        await session.refresh()
        await session.run_analysis()
        assert session.analysis is not None
        session.select_symbol("MSFT")
        assert session.analysis is None

    @pytest.mark.asyncio
    async def test_analysis_needs_bundle_for_current_selection(self, session):
        await session.refresh()
        session.select_timeframe("1h")
        with pytest.raises(EmptySeriesError):
            await session.run_analysis()

    @pytest.mark.asyncio
    async def test_timeframe_change_drops_inflight_analysis(self, session):
        await session.refresh()
        session.analysis_latency = 0.05
        inflight = asyncio.create_task(session.run_analysis())
        await asyncio.sleep(0)
        assert session.is_analyzing

        session.select_timeframe("15m")
        await session.refresh()

        assert await inflight is None
        assert session.analysis is None
        assert session.stats["stale_results_dropped"] == 1

        fresh = await session.run_analysis()
        assert fresh.timeframe == "15m"
        assert session.analysis is fresh

    @pytest.mark.asyncio
    async def test_single_analysis_in_flight(self, session):
        await session.refresh()
        session.analysis_latency = 0.05
        first = asyncio.create_task(session.run_analysis())
        await asyncio.sleep(0)
        assert await session.run_analysis() is None
        assert await first is not None
        assert session.stats["analyses"] == 1


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_start_loads_and_stop_tears_down(self, session):
        await session.start()
        try:
            assert session.is_running
            assert session.bundle is not None
        finally:
            await session.stop()
        assert not session.is_running

    @pytest.mark.asyncio
    async def test_loop_refreshes_on_timer(self, session):
        session.settings = session.settings.model_copy(update={"min_refresh_interval_seconds": 0.01})
        session.select_timeframe("1m")
        session.settings = session.settings.model_copy(update={"refresh_divisor": 100000})
        await session.start()
        try:
            await asyncio.sleep(0.1)
        finally:
            await session.stop()
        assert session.stats["refreshes"] >= 2

    @pytest.mark.asyncio
    async def test_selection_change_reloads_while_running(self, session):
        await session.start()
        try:
            session.select_symbol("NVDA")
            for _ in range(20):
                await asyncio.sleep(0.01)
                if session.bundle.symbol == "NVDA":
                    break
            assert session.bundle.symbol == "NVDA"
        finally:
            await session.stop()

    def test_singleton_injection(self, session):
        set_dashboard_session(session)
        try:
            assert get_dashboard_session() is session
        finally:
            set_dashboard_session(None)

    def test_snapshot(self, session):
        snap = session.snapshot()
        assert snap["symbol"]["code"] == "AAPL"
        assert snap["timeframe"]["label"] == "5 Minutes"
        assert snap["market_data"] is None
        assert snap["analysis"] is None
        assert snap["price_change"] is None
