import pytest

from batchjudge.config import Judge0Config
from tests.mocks.judge0 import FakeJudge0API, SleepRecorder, make_judge0_client

_JUDGE0_ENV_VARS = (
    "JUDGE0_API_URL",
    "JUDGE0_API_KEY",
    "JUDGE0_PYTHON_ID",
    "JUDGE0_TIMEOUT",
    "JUDGE0_INITIAL_POLL_INTERVAL",
    "JUDGE0_MAX_POLL_INTERVAL",
    "JUDGE0_MAX_BATCH_SIZE",
    "JUDGE0_MAX_RETRIES",
    "JUDGE0_SYNC_THRESHOLD",
)


@pytest.fixture(autouse=True)
def clear_judge0_env(monkeypatch):
    for env_var in _JUDGE0_ENV_VARS:
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def fake_api() -> FakeJudge0API:
    """
    Create an in-memory Judge0 backend.
    """
    return FakeJudge0API()


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def fast_config() -> Judge0Config:
    """
    Configuration with tiny poll intervals and no retry delay.
    """
    return Judge0Config(
        initial_poll_interval=0.001,
        max_poll_interval=0.01,
        retry_delay=0.0,
        timeout=5.0,
    )


@pytest.fixture
def client(fake_api, fast_config, sleep_recorder):
    return make_judge0_client(api=fake_api, config=fast_config, sleep=sleep_recorder)
