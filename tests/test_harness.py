"""
Tests for program assembly.
"""

from batchjudge.harness import (
    build_program,
    build_test_code_program,
    build_test_runner,
    method_name,
)


def test_method_name():
    assert method_name(entry_point="Solution().twoSum") == "twoSum"
    assert method_name(entry_point="twoSum") == "twoSum"


def test_build_program_without_entry_point_is_the_code():
    assert build_program(code="print(input())") == "print(input())"


def test_build_program_prepends_prompt_and_appends_runner():
    program = build_program(
        code="class Solution: ...",
        code_prompt="from typing import List",
        entry_point="Solution().twoSum",
    )

    assert program.startswith("from typing import List\n\nclass Solution: ...\n\n")
    assert 'getattr(_solution, "twoSum")' in program


def test_test_runner_is_valid_python():
    runner = build_test_runner(entry_point="Solution().twoSum")

    compile(runner, "<runner>", "exec")
    assert "_vars = {}" in runner
    assert r"re.sub(r',\s*([a-zA-Z_][a-zA-Z0-9_]*)\s*=', r'; \1 =', _input)" in runner


def test_test_runner_runs_a_solution():
    program = build_program(
        code="class Solution:\n    def add(self, a, b):\n        return a + b\n",
        entry_point="Solution().add",
    )
    namespace: dict = {}
    import io
    import sys
    from contextlib import redirect_stdout

    stdout = io.StringIO()
    original_stdin = sys.stdin
    sys.stdin = io.StringIO("b = 2, a = 40")
    try:
        with redirect_stdout(stdout):
            exec(compile(program, "<program>", "exec"), namespace)
    finally:
        sys.stdin = original_stdin

    assert stdout.getvalue().strip() == "42"


def test_build_test_code_program():
    program = build_test_code_program(
        code="class Solution: ...",
        test_code="def check(candidate):\n    assert candidate(1) == 1",
        entry_point="Solution().identity",
    )

    assert program.endswith(
        '# Run tests\ncheck(Solution().identity)\nprint("ALL_TESTS_PASSED")\n'
    )


def test_build_test_code_program_without_entry_point():
    program = build_test_code_program(code="x = 1", test_code="def check(c): pass")

    assert "check(Solution)\n" in program
