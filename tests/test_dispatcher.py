"""
Tests for the submission dispatcher.
"""

import math

import pytest

from batchjudge import codec
from batchjudge.client import Judge0Client
from batchjudge.dispatcher import SubmissionDispatcher, chunked
from batchjudge.exceptions import SubmissionRejectedError, TransportError
from batchjudge.models import TestInput
from batchjudge.status import ExecutionMode
from tests.mocks.judge0 import FakeJudge0API

ECHO = "print(input())"


def _tests(count: int) -> list[TestInput]:
    return [TestInput(id=f"t{i}", input=str(i), expected_output=str(i)) for i in range(count)]


@pytest.fixture
def dispatcher(client: Judge0Client) -> SubmissionDispatcher:
    return SubmissionDispatcher(client=client)


def test_chunked_preserves_order():
    items = list(range(45))

    chunks = chunked(items=items, size=20)

    assert [len(chunk) for chunk in chunks] == [20, 20, 5]
    assert [item for chunk in chunks for item in chunk] == items
    assert chunked(items=[], size=20) == []


def test_chunked_rejects_non_positive_size():
    with pytest.raises(ValueError):
        chunked(items=[1], size=0)


@pytest.mark.asyncio
@pytest.mark.parametrize("count", [0, 1, 20, 21, 25, 40, 61])
async def test_batch_chunk_count(dispatcher: SubmissionDispatcher, fake_api: FakeJudge0API, count: int):
    tokens = await dispatcher.dispatch(source_code=ECHO, tests=_tests(count), mode=ExecutionMode.BATCH)

    assert len(tokens) == count
    assert fake_api.count(method="POST", path="/submissions/batch") == math.ceil(count / 20)


@pytest.mark.asyncio
async def test_batch_tokens_follow_input_order(dispatcher: SubmissionDispatcher, fake_api: FakeJudge0API):
    tests = _tests(25)

    tokens = await dispatcher.dispatch(source_code=ECHO, tests=tests, mode=ExecutionMode.BATCH)

    assert sorted(fake_api.batch_create_sizes) == [5, 20]
    assert [fake_api.submissions[token].stdin for token in tokens] == [test.input for test in tests]
    assert all(submission.source_code == ECHO for submission in fake_api.submissions.values())


@pytest.mark.asyncio
async def test_empty_tests_make_no_request(dispatcher: SubmissionDispatcher, fake_api: FakeJudge0API):
    assert await dispatcher.dispatch(source_code=ECHO, tests=[], mode=ExecutionMode.SYNC) == []
    assert await dispatcher.dispatch(source_code=ECHO, tests=[], mode=ExecutionMode.BATCH) == []
    assert fake_api.requests == []


@pytest.mark.asyncio
async def test_sync_mode_returns_results_in_order(dispatcher: SubmissionDispatcher, fake_api: FakeJudge0API):
    tests = _tests(8)

    results = await dispatcher.dispatch(source_code=ECHO, tests=tests, mode=ExecutionMode.SYNC)

    assert [result.stdout for result in results] == [f"{i}\n" for i in range(8)]
    assert fake_api.count(method="POST", path="/submissions") == 8
    assert all(request.params["wait"] == "true" for request in fake_api.requests)


@pytest.mark.asyncio
async def test_source_is_sent_encoded(dispatcher: SubmissionDispatcher, fake_api: FakeJudge0API):
    await dispatcher.execute_with_wait(source_code="print('é')", stdin_inputs=["x"])

    body = fake_api.requests[-1].body
    assert body["source_code"] == codec.encode(text="print('é')")
    assert body["stdin"] == codec.encode(text="x")
    assert body["language_id"] == 71


@pytest.mark.asyncio
async def test_failing_chunk_fails_the_whole_dispatch(dispatcher: SubmissionDispatcher, fake_api: FakeJudge0API):
    fake_api.fail_next(method="POST", path="/submissions/batch", failures=[500] * 6)

    with pytest.raises(TransportError):
        await dispatcher.dispatch(source_code=ECHO, tests=_tests(30), mode=ExecutionMode.BATCH)


@pytest.mark.asyncio
async def test_rejected_chunk_is_not_retried(dispatcher: SubmissionDispatcher, fake_api: FakeJudge0API):
    fake_api.fail_next(method="POST", path="/submissions/batch", failures=[400])

    with pytest.raises(SubmissionRejectedError):
        await dispatcher.dispatch(source_code=ECHO, tests=_tests(5), mode=ExecutionMode.BATCH)

    assert fake_api.count(method="POST", path="/submissions/batch") == 1


@pytest.mark.asyncio
async def test_auto_mode_is_refused(dispatcher: SubmissionDispatcher):
    with pytest.raises(ValueError):
        await dispatcher.dispatch(source_code=ECHO, tests=_tests(1), mode=ExecutionMode.AUTO)
