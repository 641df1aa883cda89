import asyncio
import time

import pytest

from data_services import segment_service
from data_utils.errors import InfrastructureError, QuerySyntaxError


class SlowRepo:
    def __init__(self, delay=0.0, result=0, error=None):
        self.delay = delay
        self.result = result
        self.error = error
        self.timeouts = []

    def count_by_filter(self, filter_expression, timeout=None):
        self.timeouts.append(timeout)
        time.sleep(self.delay)
        if self.error:
            raise self.error
        return self.result


def test_count_async_returns_result():
    repo = SlowRepo(result=9)

    total = asyncio.run(segment_service.count_by_filter_async(repo, "subscribers.id > 0", timeout=2))

    assert total == 9
    assert repo.timeouts == [2]


def test_count_async_uses_configured_deadline(monkeypatch):
    monkeypatch.setattr(segment_service.SegmentConfigs, "COUNT_TIMEOUT_SECONDS", 3)
    repo = SlowRepo(result=1)

    asyncio.run(segment_service.count_by_filter_async(repo, ""))

    assert repo.timeouts == [3]


def test_count_async_deadline_exceeded():
    repo = SlowRepo(delay=0.5)

    with pytest.raises(InfrastructureError, match="timed out"):
        asyncio.run(segment_service.count_by_filter_async(repo, "", timeout=0.05))


def test_count_async_propagates_classified_errors():
    repo = SlowRepo(error=QuerySyntaxError("syntax error"))

    with pytest.raises(QuerySyntaxError):
        asyncio.run(segment_service.count_by_filter_async(repo, "subscribers.", timeout=1))
