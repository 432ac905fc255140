from __future__ import annotations

import os
import tempfile

# Keep the rotating log file out of the user's home directory during tests.
os.environ.setdefault("MODULE_PROFILES_LOG_DIR", tempfile.mkdtemp(prefix="module-profiles-logs-"))

import pytest  # noqa: E402
from loguru import logger  # noqa: E402

from core.fetch import HttpFetcher, RetryPolicy  # noqa: E402
from tests.helpers.fakes import FakeSession  # noqa: E402


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def fetcher(session, sleeps):
    return HttpFetcher(
        session=session,
        manifest_policy=RetryPolicy(max_attempts=2, timeout_seconds=20),
        download_policy=RetryPolicy(max_attempts=3, timeout_seconds=60),
        sleep=sleeps.append,
    )


@pytest.fixture
def log_messages():
    """Messages emitted through loguru while the test runs."""
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]), level="DEBUG")
    yield messages
    logger.remove(handler_id)
