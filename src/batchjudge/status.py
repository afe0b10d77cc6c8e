from enum import Enum, IntEnum


class StatusCode(IntEnum):
    IN_QUEUE = 1
    PROCESSING = 2
    ACCEPTED = 3
    WRONG_ANSWER = 4
    TIME_LIMIT_EXCEEDED = 5
    COMPILATION_ERROR = 6
    RUNTIME_ERROR_SIGSEGV = 7
    RUNTIME_ERROR_SIGXFSZ = 8
    RUNTIME_ERROR_SIGFPE = 9
    RUNTIME_ERROR_SIGABRT = 10
    RUNTIME_ERROR_NZEC = 11
    RUNTIME_ERROR_OTHER = 12
    INTERNAL_ERROR = 13
    EXEC_FORMAT_ERROR = 14


class JobState(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    TERMINAL = "terminal"

    @classmethod
    def from_status_id(cls, status_id: int) -> "JobState":
        if status_id == StatusCode.IN_QUEUE:
            return cls.QUEUED
        if status_id == StatusCode.PROCESSING:
            return cls.PROCESSING
        return cls.TERMINAL


class ExecutionMode(str, Enum):
    AUTO = "auto"
    SYNC = "sync"
    BATCH = "batch"


class OutcomeKind(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    COMPILATION_ERROR = "compilation_error"
    RUNTIME_ERROR = "runtime_error"
    TIMEOUT = "timeout"


def is_error_status(status_id: int) -> bool:
    return (
        status_id == StatusCode.TIME_LIMIT_EXCEEDED
        or status_id == StatusCode.COMPILATION_ERROR
        or status_id >= StatusCode.RUNTIME_ERROR_SIGSEGV
    )
