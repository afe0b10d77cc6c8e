"""
Classification of raw backend results into test outcomes.
"""

from __future__ import annotations

import re
import typing as t

from batchjudge.models import Outcome, RawResult, TestInput
from batchjudge.status import JobState, OutcomeKind, StatusCode, is_error_status

TIME_LIMIT_MESSAGE = "Code execution exceeded the time limit (10 seconds)"
# Interpreted languages report syntax errors when the program is loaded.
# Those reports carry no traceback, unlike syntax errors raised by exec or eval.
_SYNTAX_ERROR_PATTERN = re.compile(r"^\s*(SyntaxError|IndentationError|TabError)\b", re.MULTILINE)
_TRACEBACK_HEADER = "Traceback (most recent call last):"


def normalize_output(text: str | None) -> str:
    return (text or "").strip()


def is_load_time_syntax_error(stderr: str | None) -> bool:
    if not stderr or _TRACEBACK_HEADER in stderr:
        return False
    return _SYNTAX_ERROR_PATTERN.search(stderr) is not None


def classify(raw: RawResult) -> OutcomeKind | None:
    """
    Map a raw status to an error outcome kind.

    Parameters
    ----------
    raw : RawResult
        Result reported by the backend.

    Returns
    -------
    OutcomeKind | None
        The error kind, or ``None`` when the program ran to completion and
        its output has to be compared.
    """
    status_id = raw.status.id
    if JobState.from_status_id(status_id=status_id) is not JobState.TERMINAL:
        return OutcomeKind.TIMEOUT
    if status_id == StatusCode.TIME_LIMIT_EXCEEDED:
        return OutcomeKind.TIMEOUT
    if status_id == StatusCode.COMPILATION_ERROR:
        return OutcomeKind.COMPILATION_ERROR
    if is_error_status(status_id=status_id):
        if is_load_time_syntax_error(stderr=raw.stderr):
            return OutcomeKind.COMPILATION_ERROR
        return OutcomeKind.RUNTIME_ERROR
    return None


def error_message(raw: RawResult) -> str:
    """Pick the most useful diagnostic of a failed execution."""
    if raw.compile_output:
        return raw.compile_output.strip()
    if raw.stderr:
        return raw.stderr.strip()
    if raw.status.id == StatusCode.TIME_LIMIT_EXCEEDED and not raw.message:
        return TIME_LIMIT_MESSAGE
    if raw.message:
        return raw.message.strip()
    return raw.status.description


def execution_time_ms(raw: RawResult) -> float | None:
    return raw.time * 1000 if raw.time is not None else None


def reconcile(test: TestInput, raw: RawResult) -> Outcome:
    """
    Build the outcome of ``test`` from its raw result.

    Parameters
    ----------
    test : TestInput
        Test the result belongs to.
    raw : RawResult
        Terminal result reported for that test.

    Returns
    -------
    Outcome
        Deterministic classification of the pair.
    """
    actual_output = normalize_output(text=raw.stdout)
    expected_output = normalize_output(text=test.expected_output)
    error_kind = classify(raw=raw)
    if error_kind is not None:
        return Outcome(
            test_id=test.id,
            kind=error_kind,
            actual_output=actual_output,
            expected_output=expected_output,
            error_message=error_message(raw=raw),
            execution_time_ms=execution_time_ms(raw=raw),
            memory_kb=raw.memory,
        )

    kind = OutcomeKind.PASSED if actual_output == expected_output else OutcomeKind.FAILED
    return Outcome(
        test_id=test.id,
        kind=kind,
        actual_output=actual_output,
        expected_output=expected_output,
        execution_time_ms=execution_time_ms(raw=raw),
        memory_kb=raw.memory,
    )


def reconcile_all(tests: t.Sequence[TestInput], raws: t.Sequence[RawResult]) -> list[Outcome]:
    """
    Reconcile results by index, ``outcomes[i]`` belonging to ``tests[i]``.

    Raises
    ------
    ValueError
        If the two sequences differ in length.
    """
    if len(tests) != len(raws):
        raise ValueError(f"Expected {len(tests)} result(s), got {len(raws)}")
    return [reconcile(test=test, raw=raw) for test, raw in zip(tests, raws)]
