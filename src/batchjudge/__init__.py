from .client import Judge0Client as Judge0Client
from .config import Judge0Config as Judge0Config
from .exceptions import BatchJudgeError as BatchJudgeError
from .exceptions import ConfigurationError as ConfigurationError
from .exceptions import SubmissionRejectedError as SubmissionRejectedError
from .exceptions import TransportError as TransportError
from .models import Outcome as Outcome
from .models import RawResult as RawResult
from .models import TestCodeReport as TestCodeReport
from .models import TestInput as TestInput
from .orchestrator import orchestrate as orchestrate
from .orchestrator import run_test_code as run_test_code
from .orchestrator import run_tests as run_tests
from .status import ExecutionMode as ExecutionMode
from .status import OutcomeKind as OutcomeKind

__all__ = [
    "BatchJudgeError",
    "ConfigurationError",
    "ExecutionMode",
    "Judge0Client",
    "Judge0Config",
    "Outcome",
    "OutcomeKind",
    "RawResult",
    "SubmissionRejectedError",
    "TestCodeReport",
    "TestInput",
    "TransportError",
    "orchestrate",
    "run_test_code",
    "run_tests",
]
