"""
Tests for service wiring and the command line entry point.
"""

import json
import sys
from unittest.mock import MagicMock, patch

import pytest

from supplysync.__main__ import main
from supplysync.catalog import InMemoryCatalogStore
from supplysync.config import CategorizationConfig, SyncConfig, get_config
from supplysync.scheduler import build_service
from supplysync.sync.categorization import RouterCategoryClassifier
from supplysync.sync.inventory import INVENTORY_JOB_ID
from supplysync.sync.orchestrator import INITIAL_SYNC_JOB_ID, SYNC_JOB_ID

from conftest import GIGA_TOML


class TestBuildService:
    """Test build_service() wiring."""

    def test_engines_share_one_scheduler(self):
        """Orchestrator and reconciler register on the same scheduler."""
        service = build_service(SyncConfig(), store=InMemoryCatalogStore())

        assert service.orchestrator.scheduler is service.scheduler
        assert service.reconciler.scheduler is service.scheduler

    def test_config_flows_into_engines(self):
        """Sync, batching and threshold settings reach the engines."""
        config = SyncConfig(
            sync={"interval_minutes": 5, "page_size": 100},
            gigab2b={"batch_size": 50, "batch_delay": 2.0},
            inventory={"low_stock_threshold": 4},
        )

        service = build_service(config, store=InMemoryCatalogStore())

        assert service.orchestrator.interval_minutes == 5
        assert service.orchestrator.page_size == 100
        assert service.orchestrator.adapter_options.batch_size == 50
        assert service.orchestrator.adapter_options.batch_delay == 2.0
        assert service.orchestrator.upsert_engine.low_stock_threshold == 4

    def test_classifier_disabled_without_key(self):
        """No router key means keyword-only categorization."""
        service = build_service(SyncConfig(), store=InMemoryCatalogStore())

        assert service.classifier is None
        assert service.orchestrator.upsert_engine.categorizer.classifier is None

    @pytest.mark.asyncio
    async def test_classifier_enabled_with_key(self):
        """A router key wires the chat-completions classifier."""
        config = SyncConfig(categorization=CategorizationConfig(router_api_key="k"))

        service = build_service(config, store=InMemoryCatalogStore())
        try:
            assert isinstance(service.classifier, RouterCategoryClassifier)
            assert service.orchestrator.upsert_engine.categorizer.classifier is service.classifier
        finally:
            await service.classifier.aclose()

    @pytest.mark.asyncio
    async def test_suppliers_loaded_from_directory(self, tmp_path):
        """Without a store, suppliers come from the configured directory."""
        (tmp_path / "giga.toml").write_text(GIGA_TOML)

        service = build_service(SyncConfig(suppliers_dir=str(tmp_path)))

        suppliers = await service.store.get_active_suppliers()
        assert [s.id for s in suppliers] == ["giga-main"]

    @pytest.mark.asyncio
    async def test_start_and_stop(self):
        """start() registers all jobs; stop() removes them and shuts down."""
        with patch("supplysync.scheduler.AsyncIOScheduler") as scheduler_class:
            scheduler = MagicMock()
            scheduler.running = True
            scheduler_class.return_value = scheduler
            service = build_service(SyncConfig(), store=InMemoryCatalogStore())

            service.start()
            await service.stop()

        added = [c.kwargs["id"] for c in scheduler.add_job.call_args_list]
        assert added == [SYNC_JOB_ID, INITIAL_SYNC_JOB_ID, INVENTORY_JOB_ID]
        removed = [c.args[0] for c in scheduler.remove_job.call_args_list]
        assert removed == [SYNC_JOB_ID, INITIAL_SYNC_JOB_ID, INVENTORY_JOB_ID]
        scheduler.shutdown.assert_called_once_with(wait=False)


class TestMain:
    """Test the one-shot CLI modes."""

    @pytest.fixture(autouse=True)
    def fresh_config(self, monkeypatch, tmp_path):
        monkeypatch.delenv("CONTEXT_ROUTER_API_KEY", raising=False)
        monkeypatch.chdir(tmp_path)
        get_config.cache_clear()
        yield
        get_config.cache_clear()

    def test_once_with_no_suppliers(self, tmp_path, monkeypatch, capsys):
        """--once prints the cycle status and exits 0."""
        monkeypatch.setattr(sys, "argv", ["supplysync", "--once", "--suppliers-dir", str(tmp_path)])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 0
        status = json.loads(capsys.readouterr().out)
        assert status["progress"]["suppliers_total"] == 0
        assert status["errors"] == []

    def test_test_connection_unknown_supplier(self, tmp_path, monkeypatch, capsys):
        """--test-connection exits 1 when the supplier does not exist."""
        monkeypatch.setattr(
            sys, "argv", ["supplysync", "--test-connection", "ghost", "--suppliers-dir", str(tmp_path)]
        )

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 1
        result = json.loads(capsys.readouterr().out)
        assert result["success"] is False

    def test_modes_are_exclusive(self, monkeypatch):
        """Only one one-shot mode may be selected."""
        monkeypatch.setattr(sys, "argv", ["supplysync", "--once", "--inventory"])

        with pytest.raises(SystemExit) as exc_info:
            main()

        assert exc_info.value.code == 2
