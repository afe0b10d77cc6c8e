from pathlib import Path

import typer

from batchjudge.status import ExecutionMode


def mode_callback(ctx: typer.Context, value: str):
    if ctx.resilient_parsing:
        return
    supported = [mode.value for mode in ExecutionMode]
    if value not in supported:
        raise typer.BadParameter(
            message=f"'{value}' is not a valid mode, supported modes are: {', '.join(supported)}",
            param_hint="--mode, -m",
        )
    return value


def load_file_callback(ctx: typer.Context, value: Path | None):
    if ctx.resilient_parsing or value is None:
        return value
    if not value.exists():
        raise typer.BadParameter(
            message=f"file at path: '{value.as_posix()}' does not exist",
        )
    return value
