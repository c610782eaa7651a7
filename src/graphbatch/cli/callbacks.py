from pathlib import Path

import typer

from graphbatch.models import HttpComponent


def load_file_callback(ctx: typer.Context, value: Path):
    if ctx.resilient_parsing:
        return
    if not value.exists():
        raise typer.BadParameter(
            message=f"file at path: '{value.as_posix()}' does not exist",
        )
    return value


def http_component_callback(ctx: typer.Context, value: str | None):
    if ctx.resilient_parsing or value is None:
        return value
    supported = [component.value for component in HttpComponent]
    if value.lower() not in supported:
        raise typer.BadParameter(
            message=f"'{value}' is not a valid HTTP component, supported components are: {', '.join(supported)}",
            param_hint="--http-component",
        )
    return value.lower()
