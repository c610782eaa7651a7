import json
import logging
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError
from rich import print_json
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from graphbatch.api import GraphAPI
from graphbatch.cli.callbacks import http_component_callback, load_file_callback
from graphbatch.collection import GraphCollection
from graphbatch.config import GraphConfig, resolve_access_token
from graphbatch.exceptions import APIError
from graphbatch.models import call_input_list_adapter
from graphbatch.utils.files import read_jsonl_file
from graphbatch.utils.logging import setup_logging

app = typer.Typer(no_args_is_help=True)

AccessTokenOption = Annotated[
    str | None,
    typer.Option(
        help="Access token, defaults to the GRAPHBATCH_ACCESS_TOKEN environment variable",
    ),
]
AppSecretOption = Annotated[
    str | None,
    typer.Option(help="Optional app secret used to sign requests with an appsecret_proof"),
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("-v", "--verbose", help="Enable debug logging")] = False,
):
    """Graph API client with batched request execution"""
    setup_logging(level=logging.DEBUG if verbose else logging.WARNING)


def build_api(access_token: str | None, app_secret: str | None) -> GraphAPI:
    return GraphAPI(
        access_token=resolve_access_token(access_token=access_token),
        app_secret=app_secret,
        config=GraphConfig.from_env(),
    )


def describe_outcome(outcome: Any) -> tuple[str, str]:
    if isinstance(outcome, APIError):
        return "[red]error[/red]", str(outcome)
    if isinstance(outcome, GraphCollection):
        return "[green]collection[/green]", json.dumps(list(outcome), default=str)
    return "[green]ok[/green]", json.dumps(outcome, default=str)


def parse_arguments(values: list[str]) -> dict[str, str]:
    arguments = {}
    for value in values:
        key, separator, argument = value.partition("=")
        if not separator or not key:
            raise typer.BadParameter(
                message=f"'{value}' is not a key=value pair",
                param_hint="--arg, -a",
            )
        arguments[key] = argument
    return arguments


@app.command(name="run")
def run_batch(
    calls_file: Annotated[
        Path,
        typer.Argument(
            help="JSONL file with one call per line: {path, args, method, options}",
            callback=load_file_callback,
        ),
    ],
    access_token: AccessTokenOption = None,
    app_secret: AppSecretOption = None,
):
    """Execute the calls of a JSONL file as batched requests"""
    try:
        calls = call_input_list_adapter.validate_python(read_jsonl_file(calls_file))
    except (ValidationError, ValueError) as error:
        typer.echo(f"Invalid calls file: {error}")
        raise typer.Exit(1)

    batch_api = build_api(access_token=access_token, app_secret=app_secret).batch()
    try:
        for index, call in enumerate(calls):
            batch_api.graph_call(
                call.path,
                call.args,
                call.method,
                call.options,
                post_processing=lambda outcome, index=index: (index, outcome),
            )
    except (APIError, ValueError) as error:
        typer.echo(f"Invalid call: {error}")
        raise typer.Exit(1)

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        transient=True,
    ) as progress:
        progress.add_task(description=f"Executing {len(calls)} batched call(s)...", total=None)
        try:
            results = batch_api.execute()
        except APIError as error:
            typer.echo(f"Batch request failed: {error}")
            raise typer.Exit(1)

    table = Table("#", "Method", "Path", "Outcome", "Value", title="Batch results")
    for index, outcome in sorted(results, key=lambda item: item[0]):
        call = calls[index]
        kind, value = describe_outcome(outcome)
        table.add_row(str(index), call.method.upper(), call.path, kind, value)
    console = Console()
    console.print(table)


@app.command(name="get")
def get_path(
    path: Annotated[str, typer.Argument(help="Object or connection path, e.g. me/friends")],
    arg: Annotated[
        list[str] | None,
        typer.Option("-a", "--arg", help="Call argument as key=value, repeatable"),
    ] = None,
    http_component: Annotated[
        str | None,
        typer.Option(
            help="Part of the response to print: status, headers or body",
            callback=http_component_callback,
        ),
    ] = None,
    access_token: AccessTokenOption = None,
    app_secret: AppSecretOption = None,
):
    """Perform a single GET call and print the result"""
    api = build_api(access_token=access_token, app_secret=app_secret)
    options = {"http_component": http_component} if http_component else {}
    try:
        result = api.get_object(path, parse_arguments(arg or []), options)
    except APIError as error:
        typer.echo(f"Request failed: {error}")
        raise typer.Exit(1)
    if isinstance(result, GraphCollection):
        result = result.raw_response
    print_json(data=result)
