from __future__ import annotations
import asyncio
import json
from pathlib import Path
from typing import Dict, List, Optional

import typer

from .bootstrap import build_app
from .config_loader import ConfigError
from .core.errors import ClassifiedError
from .core.types import GenerateOptions, StructuredOptions
from .prompts.builder import EmptyTemplateError, build_prompt, list_placeholders

app = typer.Typer(add_completion=False, help="Glide: resilient text generation for email workflows.")

DEFAULT_CONFIG = Path("config/default.yaml")
SMOKE_PROMPT = "In one short sentence, what is the capital of South Africa?"


def _fail(message: str, code: int = 1) -> None:
    typer.echo(message, err=True)
    raise typer.Exit(code=code)


def _load(config: Path) -> Dict:
    try:
        return build_app(config)
    except (ConfigError, FileNotFoundError) as e:
        _fail(f"[config] {e}", code=2)
    except ClassifiedError as e:
        _fail(f"[{e.kind.value}] {e.human_message}")


def _parse_vars(pairs: List[str]) -> Dict[str, str]:
    """KEY=VALUE pairs; KEY=@path reads the value from a file."""
    out: Dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected KEY=VALUE, got '{pair}'", param_hint="--var")
        if value.startswith("@"):
            value = Path(value[1:]).read_text(encoding="utf-8")
        out[key] = value
    return out


@app.command()
def smoke(config: Path = typer.Option(DEFAULT_CONFIG, "--config", "-c")):
    """Send one fixed question to the configured service and print the answer."""
    ctx = _load(config)
    try:
        reply = asyncio.run(
            ctx["dispatcher"].generate_text(
                SMOKE_PROMPT, GenerateOptions(temperature=0.3, max_output_tokens=100)
            )
        )
    except ClassifiedError as e:
        _fail(f"[{e.kind.value}] {e.human_message}")
    typer.echo(reply.strip())


@app.command()
def generate(
    template: Path = typer.Argument(..., exists=True, dir_okay=False, help="Prompt template with {{KEY}} markers."),
    var: List[str] = typer.Option([], "--var", "-v", help="KEY=VALUE (or KEY=@file); repeatable."),
    config: Path = typer.Option(DEFAULT_CONFIG, "--config", "-c"),
    context_var: Optional[str] = typer.Option(None, help="Variable holding the source text to truncate."),
    max_context_tokens: Optional[int] = typer.Option(None, help="Token budget for --context-var."),
    json_mode: bool = typer.Option(False, "--json", help="Request structured JSON output."),
    schema: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="JSON schema file (implies --json)."),
    system: Optional[str] = typer.Option(None, help="System instruction for structured mode."),
    model: Optional[str] = typer.Option(None, help="Override the configured model."),
    timeout_ms: Optional[int] = typer.Option(None, help="Override the adaptive timeout."),
):
    """Fill a template and generate text (or JSON) from it."""
    variables = _parse_vars(var)
    try:
        prompt = build_prompt(
            template.read_text(encoding="utf-8"),
            variables,
            context_key=context_var,
            max_context_tokens=max_context_tokens,
        )
    except EmptyTemplateError as e:
        _fail(f"[template] {e}", code=2)
    except ValueError as e:
        raise typer.BadParameter(str(e), param_hint="--max-context-tokens")

    response_schema = None
    if schema is not None:
        try:
            response_schema = json.loads(schema.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise typer.BadParameter(f"not valid JSON: {e}", param_hint="--schema")

    ctx = _load(config)
    dispatcher = ctx["dispatcher"]
    try:
        if json_mode or schema is not None:
            opts = StructuredOptions(
                model=model,
                system_instruction=system,
                response_schema=response_schema,
                timeout_ms=timeout_ms,
            )
            data = asyncio.run(dispatcher.generate_structured(prompt, opts))
            typer.echo(json.dumps(data, indent=2, ensure_ascii=False))
        else:
            text = asyncio.run(dispatcher.generate_text(prompt, GenerateOptions(model=model, timeout_ms=timeout_ms)))
            typer.echo(text)
    except ClassifiedError as e:
        _fail(f"[{e.kind.value}] {e.human_message}")


@app.command()
def placeholders(template: Path = typer.Argument(..., exists=True, dir_okay=False)):
    """List the {{KEY}} markers a template expects."""
    for name in list_placeholders(template.read_text(encoding="utf-8")):
        typer.echo(name)


if __name__ == "__main__":
    app()
