from __future__ import annotations

import logging
from typing import Optional

import typer

from .errors import LabelingError
from .labeler import Labeler
from .schema import LabelResult, ModelConfig
from .tasks import TASKS
from .validator import validate_response

app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.callback()
def main(debug: bool = typer.Option(False, help="Log prompts and raw LLM outputs")):
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def render(result: LabelResult) -> str:
    """Human-readable summary: joined labels, percentage confidence, Yes/No flags."""
    label = ", ".join(result.label) if isinstance(result.label, list) else result.label
    yes_no = {True: "Yes", False: "No"}
    return "\n".join(
        [
            f"Task:           {result.task}",
            f"Label:          {label or '-'}",
            f"Confidence:     {round(result.confidence * 100)}%",
            f"Ambiguity:      {yes_no[result.ambiguity_detected]}",
            f"Human review:   {yes_no[result.review_recommended]}",
        ]
    )


def _fail(e: LabelingError) -> None:
    typer.secho(f"Error: {e.message}", fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


@app.command()
def tasks():
    """
    List the supported labeling tasks and their labels.
    """
    for task, spec in TASKS.items():
        typer.secho(f"{spec.display_name} ({task.value}, {spec.cardinality.value}-label)", bold=True)
        typer.echo("  " + ", ".join(spec.labels))


@app.command()
def prompt(
    text: str = typer.Argument(..., help="Text to label"),
    task: str = typer.Option(..., help="Labeling task, e.g. 'sentiment analysis'"),
    mode: str = typer.Option("zero-shot", help="zero-shot or few-shot"),
):
    """Print the system prompt that would be sent for TEXT."""
    try:
        typer.echo(Labeler().preview(task, mode, text))
    except LabelingError as e:
        _fail(e)


@app.command()
def label(
    text: str = typer.Argument(..., help="Text to label"),
    task: str = typer.Option(..., help="Labeling task, e.g. 'sentiment analysis'"),
    mode: str = typer.Option("zero-shot", help="zero-shot or few-shot"),
    model: Optional[str] = typer.Option(None, help="Model name override"),
    temperature: float = typer.Option(None, help="Override sampling temperature"),
    seed: Optional[int] = typer.Option(None, help="Random seed for determinism (if provider supports)"),
    as_json: bool = typer.Option(False, "--json", help="Print the raw validated JSON result"),
):
    """
    Label TEXT with an LLM and print the validated result.
    """
    cfg = ModelConfig()
    if model:
        cfg.model = model
    if temperature is not None:
        cfg.temperature = temperature
    cfg.seed = seed

    try:
        result = Labeler(cfg).label(task, mode, text)
    except LabelingError as e:
        _fail(e)

    if as_json:
        typer.echo(result.model_dump_json(indent=2))
    else:
        typer.echo(render(result))


@app.command()
def validate(
    raw: str = typer.Argument(..., help="Model output (JSON string) to validate"),
    task: str = typer.Option(..., help="Labeling task the output belongs to"),
):
    """Run the response validator on a saved model output."""
    try:
        result = validate_response(task, raw)
    except LabelingError as e:
        _fail(e)
    typer.echo(result.model_dump_json(indent=2))


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address"),
    port: int = typer.Option(8000, help="Bind port"),
):
    """Run the HTTP API."""
    import uvicorn

    uvicorn.run("textlabel.api:app", host=host, port=port)


if __name__ == "__main__":
    app()
