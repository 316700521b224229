"""
Tests for the content Celery tasks.

The task bodies are exercised through their async implementations with
the test session factory; the Celery wrappers are called synchronously.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import ProcessingStatus, User
from app.services.content_processor import CONTENT_TABLE, ProcessingResult
from app.tasks.content_tasks import (
    process_content_async,
    process_content_task,
    reclaim_stale_async,
    reclaim_stale_processing_task,
    run_async,
)
from app.workers.celery_app import celery_app


async def _answer():
    return 42


class TestRunAsync:

    def test_without_running_loop(self):
        assert run_async(_answer()) == 42

    @pytest.mark.asyncio
    async def test_inside_running_loop(self):
        assert run_async(_answer()) == 42


@pytest.mark.asyncio
class TestProcessContentAsync:

    async def test_delegates_to_processor(self):
        processor = MagicMock()
        processor.process = AsyncMock(
            return_value=ProcessingResult(success=True, result={"title": "T"})
        )

        result = await process_content_async("cid", "https://example.com", "uid", processor=processor)

        assert result == {"success": True, "result": {"title": "T"}}
        processor.process.assert_awaited_once_with("cid", "https://example.com", "uid")

    async def test_failure_shape(self):
        processor = MagicMock()
        processor.process = AsyncMock(return_value=ProcessingResult(success=False, error="boom"))

        result = await process_content_async("cid", "https://example.com", "uid", processor=processor)

        assert result == {"success": False, "error": "boom"}

    async def test_worker_engine_uses_store_url(self, pipeline_config):
        engine = MagicMock()
        engine.dispose = AsyncMock()
        processor = MagicMock()
        processor.process = AsyncMock(return_value=ProcessingResult(success=True, result={}))
        notifier = MagicMock()
        notifier.aclose = AsyncMock()

        with patch("app.tasks.content_tasks.create_engine", return_value=engine) as mock_engine, \
                patch("app.tasks.content_tasks.ContentProcessor", return_value=processor), \
                patch("app.tasks.content_tasks.ChangeNotifier", return_value=notifier):
            result = await process_content_async(
                "cid", "https://example.com", "uid", config=pipeline_config
            )

        assert result["success"] is True
        mock_engine.assert_called_once_with(pipeline_config.store_url)
        engine.dispose.assert_awaited_once()
        notifier.aclose.assert_awaited_once()


@pytest.mark.asyncio
class TestReclaimStaleAsync:

    async def test_reclaims_and_notifies(
        self,
        db_session: AsyncSession,
        session_factory,
        test_user: User,
        make_content,
        notifier
    ):
        now = datetime.now(timezone.utc)
        stale = await make_content(
            test_user,
            status=ProcessingStatus.PROCESSING,
            updated_at=now - timedelta(hours=1),
        )
        await make_content(test_user, status=ProcessingStatus.PROCESSING)

        stats = await reclaim_stale_async(session_factory, older_than_minutes=15, notifier=notifier)

        assert stats == {
            "reclaimed": 1,
            "content_ids": [str(stale.id)],
            "older_than_minutes": 15,
        }
        assert notifier.events == [(str(test_user.id), CONTENT_TABLE, "UPDATE", str(stale.id))]

        await db_session.refresh(stale)
        assert stale.processing_status == ProcessingStatus.FAILED

    async def test_nothing_stale(self, session_factory, notifier):
        stats = await reclaim_stale_async(session_factory, older_than_minutes=15, notifier=notifier)

        assert stats["reclaimed"] == 0
        assert notifier.events == []


class TestCeleryTasks:

    def test_registered_names(self):
        assert process_content_task.name == "content.process_content"
        assert reclaim_stale_processing_task.name == "content.reclaim_stale_processing"
        assert "content.process_content" in celery_app.tasks

    def test_routes_and_schedule(self):
        routes = celery_app.conf.task_routes
        assert routes["content.process_content"]["queue"] == "content"
        assert routes["content.reclaim_stale_processing"]["queue"] == "maintenance"
        assert "reclaim-stale-processing" in celery_app.conf.beat_schedule

    @patch("app.tasks.content_tasks.process_content_async", new_callable=AsyncMock)
    def test_process_content_task_runs_pipeline(self, mock_process):
        mock_process.return_value = {"success": True, "result": {}}

        result = process_content_task.run("cid", "https://example.com", "uid")

        assert result == {"success": True, "result": {}}
        mock_process.assert_awaited_once_with("cid", "https://example.com", "uid")

    @patch("app.tasks.content_tasks.reclaim_stale_async", new_callable=AsyncMock)
    def test_reclaim_task(self, mock_reclaim):
        mock_reclaim.return_value = {"reclaimed": 2, "content_ids": ["a", "b"], "older_than_minutes": 15}

        stats = reclaim_stale_processing_task.run()

        assert stats["reclaimed"] == 2
