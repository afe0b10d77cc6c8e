"""
Assembly of the Python programs sent to the backend.

A submitted program is the optional problem preamble, the user's solution
and a driver: either a stdin-driven test runner or assertion-style test code.
"""

from __future__ import annotations

ALL_TESTS_PASSED_MARKER = "ALL_TESTS_PASSED"

_TEST_RUNNER_TEMPLATE = """
# Test runner - reads input, calls solution, prints result
import sys
import re

_input = sys.stdin.read().strip()

# "nums = [3,3], target = 6" -> "nums = [3,3]; target = 6"
_input = re.sub(r',\\s*([a-zA-Z_][a-zA-Z0-9_]*)\\s*=', r'; \\1 =', _input)

_vars = {{}}
exec(_input, globals(), _vars)

_solution = Solution()
_method = getattr(_solution, "{method_name}")

import inspect
_params = list(inspect.signature(_method).parameters.keys())
_args = [_vars[p] for p in _params if p in _vars]

_result = _method(*_args)
print(_result)
"""


def method_name(entry_point: str) -> str:
    """Strip a qualified entry point such as ``Solution().twoSum`` to ``twoSum``."""
    return entry_point.rsplit(".", 1)[-1]


def build_test_runner(entry_point: str) -> str:
    return _TEST_RUNNER_TEMPLATE.format(method_name=method_name(entry_point=entry_point))


def build_program(code: str, code_prompt: str | None = None, entry_point: str | None = None) -> str:
    """
    Build the program run once per stdin input.

    Parameters
    ----------
    code : str
        User solution.
    code_prompt : str | None
        Preamble with imports and helper classes, prepended when given.
    entry_point : str | None
        Solution method; when given a runner calling it with the parsed
        stdin is appended.

    Returns
    -------
    str
        Complete program source.
    """
    program = f"{code_prompt}\n\n{code}" if code_prompt else code
    if entry_point:
        program += "\n\n" + build_test_runner(entry_point=entry_point)
    return program


def build_test_code_program(
    code: str,
    test_code: str,
    code_prompt: str | None = None,
    entry_point: str | None = None,
) -> str:
    """
    Build a program that runs ``check(candidate)`` against the solution.

    The program prints ``ALL_TESTS_PASSED`` once every assertion held.
    """
    parts = []
    if code_prompt:
        parts.append(code_prompt + "\n\n")
    parts.append(code + "\n\n")
    parts.append(test_code + "\n\n")
    candidate = f"Solution().{method_name(entry_point=entry_point)}" if entry_point else "Solution"
    parts.append(f'# Run tests\ncheck({candidate})\nprint("{ALL_TESTS_PASSED_MARKER}")\n')
    return "".join(parts)
