import asyncio
import json
import logging
from pathlib import Path
from typing import Annotated

import typer
from pydantic import TypeAdapter, ValidationError
from rich import print
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from batchjudge.cli.callbacks import load_file_callback, mode_callback
from batchjudge.client import Judge0Client
from batchjudge.config import Judge0Config
from batchjudge.exceptions import BatchJudgeError
from batchjudge.logging import setup_logging
from batchjudge.models import Outcome, TestCodeReport, TestInput
from batchjudge.orchestrator import run_test_code, run_tests
from batchjudge.status import ExecutionMode
from batchjudge.utils.files import read_jsonl_file, read_text_file

app = typer.Typer(no_args_is_help=True)

test_input_list_adapter = TypeAdapter(list[TestInput])

_OUTCOME_STYLES = {
    "passed": "green",
    "failed": "yellow",
}


def build_client(config: Judge0Config) -> Judge0Client:
    return Judge0Client(config=config)


def load_config(api_url: str | None, language_id: int | None) -> Judge0Config:
    try:
        return Judge0Config.from_env(api_url=api_url, language_id=language_id)
    except (BatchJudgeError, ValidationError) as error:
        print(f"[red]Invalid configuration:[/red] {error}")
        raise typer.Exit(2)


def load_tests(path: Path) -> list[TestInput]:
    try:
        return test_input_list_adapter.validate_python(read_jsonl_file(path))
    except (json.JSONDecodeError, ValidationError) as error:
        print(f"[red]Invalid test file {path}:[/red] {error}")
        raise typer.Exit(2)


def print_outcomes(outcomes: list[Outcome]):
    table = Table("Test", "Result", "Expected", "Actual", "Time (ms)", "Error", title="Results")
    for outcome in outcomes:
        style = _OUTCOME_STYLES.get(outcome.kind.value, "red")
        table.add_row(
            outcome.test_id,
            f"[{style}]{outcome.kind.value}[/{style}]",
            outcome.expected_output,
            outcome.actual_output,
            f"{outcome.execution_time_ms:.0f}" if outcome.execution_time_ms is not None else "-",
            outcome.error_message or "",
        )
    console = Console()
    console.print(table)
    passed = sum(1 for outcome in outcomes if outcome.passed)
    console.print(f"{passed}/{len(outcomes)} tests passed")


def print_report(report: TestCodeReport):
    report_dict = {
        "Passed": f"[green]{report.passed}[/green]" if report.passed else f"[red]{report.passed}[/red]",
        "Assertions": f"{report.passed_tests}/{report.total_tests}",
        "Error Kind": getattr(report.error_kind, "value", report.error_kind),
        "Failed Assertion": report.failed_assertion,
        "Error": report.error_message,
    }
    values = "\n".join(f"{key}: {value}" for key, value in report_dict.items() if value is not None)
    console = Console()
    console.print(Panel(values, title="Test code", expand=False, highlight=True))


@app.command(name="run")
def run(
    source: Annotated[
        Path,
        typer.Argument(help="The solution source file", callback=load_file_callback),
    ],
    tests: Annotated[
        Path,
        typer.Option(
            "-t",
            "--tests",
            help="JSONL file of test cases with id, input and expectedOutput fields",
            callback=load_file_callback,
        ),
    ],
    mode: Annotated[
        str,
        typer.Option(
            "-m",
            "--mode",
            help="Submission strategy: auto, sync or batch",
            callback=mode_callback,
        ),
    ] = ExecutionMode.AUTO.value,
    entry_point: Annotated[
        str | None,
        typer.Option(help="Solution method called with the parsed stdin, e.g. Solution().twoSum"),
    ] = None,
    code_prompt: Annotated[
        Path | None,
        typer.Option(help="Optional preamble file prepended to the solution", callback=load_file_callback),
    ] = None,
    api_url: Annotated[str | None, typer.Option(help="Overrides JUDGE0_API_URL")] = None,
    language_id: Annotated[int | None, typer.Option(help="Overrides JUDGE0_PYTHON_ID")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print outcomes as JSON")] = False,
    verbose: Annotated[bool, typer.Option("-v", "--verbose", help="Enable debug logs")] = False,
):
    """Run a solution against test cases on the Judge0 backend"""
    setup_logging(level=logging.DEBUG if verbose else logging.WARNING)
    config = load_config(api_url=api_url, language_id=language_id)
    test_inputs = load_tests(path=tests)
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
            disable=as_json,
        ) as progress:
            progress.add_task(description=f"Running {len(test_inputs)} test(s)...", total=None)
            outcomes = asyncio.run(
                run_tests(
                    source.read_text(encoding="utf-8"),
                    test_inputs,
                    config=config,
                    mode=ExecutionMode(mode),
                    code_prompt=read_text_file(code_prompt),
                    entry_point=entry_point,
                    client=build_client(config=config),
                )
            )
    except BatchJudgeError as error:
        print(f"[red]Execution failed:[/red] {error}")
        raise typer.Exit(2)

    if as_json:
        typer.echo(json.dumps([outcome.model_dump(mode="json") for outcome in outcomes], indent=2))
    else:
        print_outcomes(outcomes=outcomes)
    if not all(outcome.passed for outcome in outcomes):
        raise typer.Exit(1)


@app.command(name="check")
def check(
    source: Annotated[
        Path,
        typer.Argument(help="The solution source file", callback=load_file_callback),
    ],
    test_code: Annotated[
        Path,
        typer.Option(help="Python file defining check(candidate)", callback=load_file_callback),
    ],
    entry_point: Annotated[
        str | None,
        typer.Option(help="Solution method passed to check, e.g. Solution().twoSum"),
    ] = None,
    code_prompt: Annotated[
        Path | None,
        typer.Option(help="Optional preamble file prepended to the solution", callback=load_file_callback),
    ] = None,
    api_url: Annotated[str | None, typer.Option(help="Overrides JUDGE0_API_URL")] = None,
    language_id: Annotated[int | None, typer.Option(help="Overrides JUDGE0_PYTHON_ID")] = None,
    verbose: Annotated[bool, typer.Option("-v", "--verbose", help="Enable debug logs")] = False,
):
    """Run assertion-style test code against a solution"""
    setup_logging(level=logging.DEBUG if verbose else logging.WARNING)
    config = load_config(api_url=api_url, language_id=language_id)
    try:
        report = asyncio.run(
            run_test_code(
                source.read_text(encoding="utf-8"),
                test_code.read_text(encoding="utf-8"),
                config=config,
                code_prompt=read_text_file(code_prompt),
                entry_point=entry_point,
                client=build_client(config=config),
            )
        )
    except BatchJudgeError as error:
        print(f"[red]Execution failed:[/red] {error}")
        raise typer.Exit(2)

    print_report(report=report)
    if not report.passed:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
