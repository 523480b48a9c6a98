"""Tests for the analytics context container."""
from tradelytics.config import AnalyticsConfig, CacheConfig
from tradelytics.context import AnalyticsContext
from tradelytics.store import TradeMirror


class TestAnalyticsContext:
    def test_wires_components(self):
        """Service shares the context's store and cache."""
        ctx = AnalyticsContext(AnalyticsConfig(account_id="acct"), start_janitor=False)
        assert ctx.service.store is ctx.store
        assert ctx.service.cache is ctx.cache
        assert ctx.store.account_id == "acct"

    def test_contexts_are_isolated(self, trades):
        """Two contexts never share trades or cache."""
        with AnalyticsContext(start_janitor=False) as a, AnalyticsContext(start_janitor=False) as b:
            a.store.replace_trades(trades)
            assert len(a.service.get_metric("equity_curve")) == 4
            assert b.service.get_metric("equity_curve").data == []

    def test_init_and_dispose(self):
        """init starts the janitor, dispose stops everything."""
        ctx = AnalyticsContext(AnalyticsConfig(cache=CacheConfig(cleanup_interval_seconds=60)))
        ctx.init()
        assert ctx.initialized
        assert ctx.janitor.running
        assert ctx.service.initialized

        ctx.dispose()
        assert not ctx.initialized
        assert not ctx.janitor.running
        assert not ctx.service.initialized
        ctx.dispose()

    def test_store_changes_reach_service(self, trades):
        """Replacing trades invalidates the service's cache."""
        with AnalyticsContext(start_janitor=False) as ctx:
            assert ctx.service.get_metric("equity_curve").data == []
            ctx.store.replace_trades(trades)
            assert len(ctx.service.get_metric("equity_curve")) == 4

    def test_loads_mirror_on_init(self, tmp_path, trades):
        """init loads mirrored trades for the account."""
        mirror = TradeMirror(tmp_path / "trades.db")
        mirror.save("acct", trades)

        config = AnalyticsConfig(account_id="acct", mirror_path=tmp_path / "trades.db")
        with AnalyticsContext(config, start_janitor=False) as ctx:
            assert ctx.store.get_all_trades() == trades
