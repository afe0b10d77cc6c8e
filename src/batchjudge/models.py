import typing as t

from pydantic import BaseModel, ConfigDict, Field, computed_field

from batchjudge import codec
from batchjudge.status import OutcomeKind, StatusCode

ENCODED_FIELDS = ("stdout", "stderr", "compile_output", "message")


class TestInput(BaseModel):
    """A single test case supplied by the caller."""

    __test__ = False

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    input: str
    expected_output: str = Field(alias="expectedOutput")
    is_custom: bool = Field(default=False, alias="isCustom")


class SubmissionStatus(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int
    description: str = ""


class RawResult(BaseModel):
    """
    Decoded execution result of one remote job.

    Optional output fields are ``None`` when the backend omitted them,
    which is distinct from an empty output.
    """

    model_config = ConfigDict(extra="ignore")

    token: str | None = None
    status: SubmissionStatus
    stdout: str | None = None
    stderr: str | None = None
    compile_output: str | None = None
    message: str | None = None
    time: float | None = None
    memory: int | None = None

    @classmethod
    def from_wire(cls, payload: dict[str, t.Any]) -> "RawResult":
        """
        Build a result from a base64-encoded backend payload.

        Parameters
        ----------
        payload : dict[str, typing.Any]
            Submission object as returned by the backend.

        Returns
        -------
        RawResult
            Result with every encoded field decoded.
        """
        data = dict(payload)
        for field in ENCODED_FIELDS:
            data[field] = codec.decode(data.get(field))
        if data.get("status") is None:
            data["status"] = {"id": data.get("status_id", StatusCode.INTERNAL_ERROR)}
        return cls.model_validate(obj=data)

    @classmethod
    def polling_timeout(cls, token: str | None) -> "RawResult":
        """
        Build the synthetic result given to jobs still pending at the deadline.
        """
        return cls(
            token=token,
            status=SubmissionStatus(
                id=StatusCode.TIME_LIMIT_EXCEEDED,
                description="Polling timeout",
            ),
            message="Code execution timed out",
        )


class Outcome(BaseModel):
    """Canonical result of one test input."""

    model_config = ConfigDict(frozen=True)

    test_id: str
    kind: OutcomeKind
    actual_output: str
    expected_output: str
    error_message: str | None = None
    execution_time_ms: float | None = None
    memory_kb: int | None = None

    @computed_field
    @property
    def passed(self) -> bool:
        return self.kind is OutcomeKind.PASSED


class TestCodeReport(BaseModel):
    """Result of running assertion-style test code against a solution."""

    __test__ = False

    model_config = ConfigDict(frozen=True)

    passed: bool
    total_tests: int
    passed_tests: int
    error_kind: OutcomeKind | t.Literal["assertion"] | None = None
    error_message: str | None = None
    failed_assertion: str | None = None
    execution_time_ms: float | None = None
    memory_kb: int | None = None
