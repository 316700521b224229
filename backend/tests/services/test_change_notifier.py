"""
Unit tests for change notifications.
"""

import json
import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.services.change_notifier import ChangeNotifier, NullNotifier, channel_for


@pytest.fixture
def redis_client() -> MagicMock:
    client = MagicMock()
    client.publish = AsyncMock(return_value=1)
    client.aclose = AsyncMock()
    return client


@pytest.mark.asyncio
class TestChangeNotifier:

    async def test_publish_message(self, redis_client):
        user_id, record_id = uuid.uuid4(), uuid.uuid4()
        notifier = ChangeNotifier(redis=redis_client)

        assert await notifier.publish(user_id, "content_items", "INSERT", record_id) is True

        channel, payload = redis_client.publish.call_args.args
        assert channel == f"changes:{user_id}"
        message = json.loads(payload)
        assert message["table"] == "content_items"
        assert message["event"] == "INSERT"
        assert message["record_id"] == str(record_id)
        assert message["user_id"] == str(user_id)
        assert "at" in message

    async def test_publish_without_record(self, redis_client):
        notifier = ChangeNotifier(redis=redis_client)

        await notifier.publish("u1", "collections", "DELETE")

        message = json.loads(redis_client.publish.call_args.args[1])
        assert message["record_id"] is None

    async def test_publish_failure_is_swallowed(self, redis_client):
        redis_client.publish.side_effect = ConnectionError("redis down")
        notifier = ChangeNotifier(redis=redis_client)

        assert await notifier.publish("u1", "content_items", "UPDATE", "c1") is False

    async def test_shared_client_not_closed(self, redis_client):
        notifier = ChangeNotifier(redis=redis_client)

        await notifier.aclose()

        redis_client.aclose.assert_not_called()

    async def test_owned_client_closed(self, redis_client):
        with patch(
            "app.services.change_notifier.create_redis_client",
            return_value=redis_client,
        ) as mock_create:
            notifier = ChangeNotifier(redis_url="redis://cache:6379/1")
            await notifier.publish("u1", "content_items", "UPDATE", "c1")
            await notifier.aclose()

        mock_create.assert_called_once_with("redis://cache:6379/1")
        redis_client.aclose.assert_awaited_once()

    async def test_null_notifier(self):
        assert await NullNotifier().publish("u1", "content_items", "UPDATE") is False


def test_channel_for():
    assert channel_for("abc") == "changes:abc"
