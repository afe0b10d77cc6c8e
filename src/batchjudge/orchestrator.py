"""
Main endpoint for users.
Exposes ``run_tests``, which runs a solution against ordered test inputs on
the configured backend, and ``run_test_code`` for assertion-style tests.
"""

from __future__ import annotations

import re
import typing as t
import uuid

import structlog

from batchjudge.client import Judge0Client
from batchjudge.config import Judge0Config
from batchjudge.dispatcher import SubmissionDispatcher
from batchjudge.harness import (
    ALL_TESTS_PASSED_MARKER,
    build_program,
    build_test_code_program,
)
from batchjudge.logging import logging_context
from batchjudge.models import Outcome, RawResult, TestCodeReport, TestInput
from batchjudge.poller import Poller
from batchjudge.reconciler import classify, error_message, execution_time_ms, reconcile_all
from batchjudge.status import ExecutionMode

log = structlog.get_logger(__name__)

_ASSERT_PATTERN = re.compile(r"assert (.+)", re.IGNORECASE)


def resolve_mode(*, mode: ExecutionMode, test_count: int, sync_threshold: int) -> ExecutionMode:
    """
    Pick the concrete strategy for ``mode``.

    ``AUTO`` favours submit-and-wait requests for small runs, where they avoid
    polling latency, and batches above ``sync_threshold`` tests.
    """
    if mode is not ExecutionMode.AUTO:
        return mode
    return ExecutionMode.SYNC if test_count <= sync_threshold else ExecutionMode.BATCH


async def execute(
    *,
    client: Judge0Client,
    source_code: str,
    tests: t.Sequence[TestInput],
    mode: ExecutionMode,
) -> list[RawResult]:
    """
    Get one terminal raw result per test, in test order.

    Parameters
    ----------
    client : Judge0Client
        Backend client.
    source_code : str
        Complete program to run.
    tests : typing.Sequence[TestInput]
        Test inputs.
    mode : ExecutionMode
        ``SYNC`` or ``BATCH``.

    Returns
    -------
    list[RawResult]
        ``results[i]`` belongs to ``tests[i]``.
    """
    dispatcher = SubmissionDispatcher(client=client)
    if mode is ExecutionMode.SYNC:
        return t.cast(
            list[RawResult],
            await dispatcher.dispatch(source_code=source_code, tests=tests, mode=mode),
        )
    tokens = t.cast(
        list[str],
        await dispatcher.dispatch(source_code=source_code, tests=tests, mode=mode),
    )
    return await Poller(client=client).poll(tokens=tokens)


async def run_tests(
    code: str,
    tests: t.Sequence[TestInput],
    *,
    config: Judge0Config,
    mode: ExecutionMode = ExecutionMode.AUTO,
    code_prompt: str | None = None,
    entry_point: str | None = None,
    client: Judge0Client | None = None,
) -> list[Outcome]:
    """
    Run a solution against every test input and classify the results.

    Parameters
    ----------
    code : str
        User solution.
    tests : typing.Sequence[TestInput]
        Tests to run.
    config : Judge0Config
        Backend configuration.
    mode : ExecutionMode, optional
        Submission strategy. ``AUTO`` picks one from the test count.
    code_prompt : str | None, optional
        Problem preamble prepended to the solution.
    entry_point : str | None, optional
        Solution method called by the generated stdin runner.
    client : Judge0Client | None, optional
        Client to use instead of one built from ``config``.

    Returns
    -------
    list[Outcome]
        Exactly one outcome per test, ``outcomes[i]`` matching ``tests[i]``.

    Raises
    ------
    batchjudge.exceptions.TransportError
        If a submission kept failing after retries.
    batchjudge.exceptions.SubmissionRejectedError
        If the backend refused a submission.
    """
    if not tests:
        return []

    client = client or Judge0Client(config=config)
    resolved_mode = resolve_mode(
        mode=mode,
        test_count=len(tests),
        sync_threshold=client.config.sync_threshold,
    )
    program = build_program(code=code, code_prompt=code_prompt, entry_point=entry_point)

    with logging_context(run_id=uuid.uuid4().hex[:12]):
        log.info(event="Running tests", test_count=len(tests), mode=resolved_mode.value)
        raw_results = await execute(
            client=client,
            source_code=program,
            tests=tests,
            mode=resolved_mode,
        )
        outcomes = reconcile_all(tests=tests, raws=raw_results)
        log.info(
            event="Tests finished",
            test_count=len(outcomes),
            passed_count=sum(1 for outcome in outcomes if outcome.passed),
        )
    return outcomes


orchestrate = run_tests


async def run_test_code(
    code: str,
    test_code: str,
    *,
    config: Judge0Config,
    code_prompt: str | None = None,
    entry_point: str | None = None,
    client: Judge0Client | None = None,
) -> TestCodeReport:
    """
    Run assertion-style test code (``def check(candidate): ...``) once.

    Parameters
    ----------
    code : str
        User solution.
    test_code : str
        Test code defining ``check``.
    config : Judge0Config
        Backend configuration.
    code_prompt : str | None, optional
        Problem preamble prepended to the solution.
    entry_point : str | None, optional
        Solution method passed to ``check``.
    client : Judge0Client | None, optional
        Client to use instead of one built from ``config``.

    Returns
    -------
    TestCodeReport
        Aggregated pass/fail report. ``total_tests`` is the number of
        ``assert`` statements in ``test_code``.
    """
    client = client or Judge0Client(config=config)
    program = build_test_code_program(
        code=code,
        test_code=test_code,
        code_prompt=code_prompt,
        entry_point=entry_point,
    )
    with logging_context(run_id=uuid.uuid4().hex[:12]):
        log.info(event="Running test code")
        dispatcher = SubmissionDispatcher(client=client)
        results = await dispatcher.execute_with_wait(source_code=program, stdin_inputs=[""])
    return build_test_code_report(raw=results[0], test_code=test_code)


def build_test_code_report(*, raw: RawResult, test_code: str) -> TestCodeReport:
    """Summarise the single result of an assertion-style run."""
    time_ms = execution_time_ms(raw=raw)
    error_kind = classify(raw=raw)
    if error_kind is not None:
        message = error_message(raw=raw)
        failed_assertion = None
        is_assertion = "AssertionError" in message
        if is_assertion:
            match = _ASSERT_PATTERN.search(message)
            if match:
                failed_assertion = match.group(1).strip()
        return TestCodeReport(
            passed=False,
            total_tests=0,
            passed_tests=0,
            error_kind="assertion" if is_assertion else error_kind,
            error_message=message,
            failed_assertion=failed_assertion,
            execution_time_ms=time_ms,
            memory_kb=raw.memory,
        )

    all_passed = ALL_TESTS_PASSED_MARKER in (raw.stdout or "")
    assert_count = test_code.count("assert ")
    return TestCodeReport(
        passed=all_passed,
        total_tests=assert_count,
        passed_tests=assert_count if all_passed else 0,
        execution_time_ms=time_ms,
        memory_kb=raw.memory,
    )
