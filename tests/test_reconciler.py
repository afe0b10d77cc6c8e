"""
Tests for outcome classification.
"""

import pytest

from batchjudge.models import RawResult, SubmissionStatus, TestInput
from batchjudge.reconciler import TIME_LIMIT_MESSAGE, reconcile, reconcile_all
from batchjudge.status import OutcomeKind, StatusCode

TEST = TestInput(id="t1", input="5", expected_output="5\n")


def _raw(status_id: int, **fields) -> RawResult:
    return RawResult(token="tok", status=SubmissionStatus(id=status_id, description="desc"), **fields)


def test_matching_output_passes():
    outcome = reconcile(test=TEST, raw=_raw(StatusCode.ACCEPTED, stdout="  5\n", time=0.012, memory=3456))

    assert outcome.kind is OutcomeKind.PASSED
    assert outcome.passed is True
    assert outcome.actual_output == "5"
    assert outcome.expected_output == "5"
    assert outcome.error_message is None
    assert outcome.execution_time_ms == pytest.approx(12.0)
    assert outcome.memory_kb == 3456


def test_different_output_fails():
    outcome = reconcile(test=TEST, raw=_raw(StatusCode.ACCEPTED, stdout="6\n"))

    assert outcome.kind is OutcomeKind.FAILED
    assert outcome.passed is False
    assert outcome.actual_output == "6"


def test_missing_stdout_is_empty_output():
    outcome = reconcile(test=TEST, raw=_raw(StatusCode.ACCEPTED))

    assert outcome.kind is OutcomeKind.FAILED
    assert outcome.actual_output == ""
    assert outcome.execution_time_ms is None


def test_wrong_answer_status_compares_output():
    outcome = reconcile(test=TEST, raw=_raw(StatusCode.WRONG_ANSWER, stdout="5"))

    assert outcome.kind is OutcomeKind.PASSED


def test_time_limit_is_timeout():
    outcome = reconcile(test=TEST, raw=_raw(StatusCode.TIME_LIMIT_EXCEEDED))

    assert outcome.kind is OutcomeKind.TIMEOUT
    assert outcome.error_message == TIME_LIMIT_MESSAGE


def test_polling_timeout_is_timeout():
    outcome = reconcile(test=TEST, raw=RawResult.polling_timeout(token="tok"))

    assert outcome.kind is OutcomeKind.TIMEOUT
    assert outcome.error_message == "Code execution timed out"


@pytest.mark.parametrize("status_id", [StatusCode.IN_QUEUE, StatusCode.PROCESSING])
def test_unfinished_status_is_timeout(status_id: int):
    assert reconcile(test=TEST, raw=_raw(status_id)).kind is OutcomeKind.TIMEOUT


def test_compilation_error_uses_compiler_output():
    raw = _raw(StatusCode.COMPILATION_ERROR, compile_output="main.cpp:1: error: expected ';'\n")

    outcome = reconcile(test=TEST, raw=raw)

    assert outcome.kind is OutcomeKind.COMPILATION_ERROR
    assert outcome.error_message == "main.cpp:1: error: expected ';'"
    assert outcome.passed is False


@pytest.mark.parametrize(
    "status_id",
    [
        StatusCode.RUNTIME_ERROR_SIGSEGV,
        StatusCode.RUNTIME_ERROR_SIGXFSZ,
        StatusCode.RUNTIME_ERROR_SIGFPE,
        StatusCode.RUNTIME_ERROR_SIGABRT,
        StatusCode.RUNTIME_ERROR_NZEC,
        StatusCode.RUNTIME_ERROR_OTHER,
        StatusCode.INTERNAL_ERROR,
        StatusCode.EXEC_FORMAT_ERROR,
    ],
)
def test_runtime_errors(status_id: int):
    raw = _raw(status_id, stderr="ZeroDivisionError: division by zero\n", stdout="partial\n")

    outcome = reconcile(test=TEST, raw=raw)

    assert outcome.kind is OutcomeKind.RUNTIME_ERROR
    assert outcome.error_message == "ZeroDivisionError: division by zero"
    assert outcome.actual_output == "partial"


def test_syntax_error_when_loading_is_compilation_error():
    stderr = '  File "script.py", line 1\n    def f(:\n          ^\nSyntaxError: invalid syntax\n'

    outcome = reconcile(test=TEST, raw=_raw(StatusCode.RUNTIME_ERROR_NZEC, stderr=stderr))

    assert outcome.kind is OutcomeKind.COMPILATION_ERROR
    assert outcome.error_message.endswith("SyntaxError: invalid syntax")


def test_syntax_error_raised_while_running_is_runtime_error():
    stderr = (
        "Traceback (most recent call last):\n"
        '  File "script.py", line 14, in <module>\n'
        "    exec(_input, globals(), _vars)\n"
        '  File "<string>", line 1\n'
        "    nums = [1,\n"
        "           ^\n"
        "SyntaxError: '[' was never closed\n"
    )

    outcome = reconcile(test=TEST, raw=_raw(StatusCode.RUNTIME_ERROR_NZEC, stderr=stderr))

    assert outcome.kind is OutcomeKind.RUNTIME_ERROR
    assert outcome.error_message.endswith("SyntaxError: '[' was never closed")


def test_error_message_falls_back_to_message_then_description():
    with_message = reconcile(test=TEST, raw=_raw(StatusCode.INTERNAL_ERROR, message="box failed\n"))
    bare = reconcile(test=TEST, raw=_raw(StatusCode.INTERNAL_ERROR))

    assert with_message.error_message == "box failed"
    assert bare.error_message == "desc"


def test_reconcile_is_deterministic():
    raw = _raw(StatusCode.ACCEPTED, stdout="5")

    assert reconcile(test=TEST, raw=raw) == reconcile(test=TEST, raw=raw)


def test_reconcile_all_keeps_index_order():
    tests = [TestInput(id=f"t{i}", input=str(i), expected_output=str(i)) for i in range(3)]
    raws = [_raw(StatusCode.ACCEPTED, stdout="0"), _raw(StatusCode.ACCEPTED, stdout="x"), _raw(5)]

    outcomes = reconcile_all(tests=tests, raws=raws)

    assert [outcome.test_id for outcome in outcomes] == ["t0", "t1", "t2"]
    assert [outcome.kind for outcome in outcomes] == [
        OutcomeKind.PASSED,
        OutcomeKind.FAILED,
        OutcomeKind.TIMEOUT,
    ]


def test_reconcile_all_requires_one_result_per_test():
    with pytest.raises(ValueError):
        reconcile_all(tests=[TEST], raws=[])
