"""Click CLI group: ask, batch, chat and tools commands."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import click

from conduit.config import Settings, get_settings, validate_settings_for_env
from conduit.errors import AgentError, ConfigError
from conduit.logging import configure_logging
from conduit.messages import Message
from conduit.orchestrator.agent import Agent, build_agent
from conduit.tools.catalog import DEFAULT_TOOL_SPECS

_PROVIDER_CHOICES = click.Choice(["openai", "claude", "ollama", "google"])


def _load_settings(provider: str | None, model: str | None) -> Settings:
    settings = get_settings()
    overrides: dict[str, object] = {}
    if provider:
        overrides["api_provider"] = provider
    if model:
        overrides["model_name"] = model
    if overrides:
        settings = settings.model_copy(update=overrides)
    return settings


def _agent_from_options(provider: str | None, model: str | None) -> Agent:
    settings = _load_settings(provider, model)
    configure_logging(settings.log_level)
    try:
        validate_settings_for_env(settings)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    return build_agent(settings)


def _result_payload(prompt: str, result: Message | AgentError) -> dict[str, object]:
    if isinstance(result, AgentError):
        return {"prompt": prompt, "ok": False, "error": str(result), "kind": type(result).__name__}
    return {"prompt": prompt, "ok": True, "assistant": result.content}


@click.group()
def cli() -> None:
    """Conduit tool-using agent CLI."""


@cli.command()
@click.argument("message")
@click.option("--provider", type=_PROVIDER_CHOICES, default=None, help="Override API_PROVIDER.")
@click.option("--model", type=str, default=None, help="Override MODEL_NAME.")
@click.option("--json", "json_output", is_flag=True, help="Print structured JSON response.")
def ask(message: str, provider: str | None, model: str | None, json_output: bool) -> None:
    """Send one prompt and print the final answer."""
    agent = _agent_from_options(provider, model)
    try:
        reply = asyncio.run(agent.send(message))
    except AgentError as exc:
        if json_output:
            click.echo(json.dumps(_result_payload(message, exc)))
        raise click.ClickException(str(exc)) from exc
    if json_output:
        click.echo(json.dumps(_result_payload(message, reply)))
    else:
        click.echo(reply.content)


@cli.command()
@click.argument("prompts", nargs=-1)
@click.option(
    "--file",
    "prompt_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Read additional prompts from a file, one per line.",
)
@click.option("--provider", type=_PROVIDER_CHOICES, default=None, help="Override API_PROVIDER.")
@click.option("--model", type=str, default=None, help="Override MODEL_NAME.")
@click.option("--json", "json_output", is_flag=True, help="Print one JSON object per prompt.")
def batch(
    prompts: tuple[str, ...],
    prompt_file: Path | None,
    provider: str | None,
    model: str | None,
    json_output: bool,
) -> None:
    """Run independent prompts concurrently, printing results in input order."""
    items = list(prompts)
    if prompt_file is not None:
        lines = prompt_file.read_text(encoding="utf-8").splitlines()
        items.extend(line.strip() for line in lines if line.strip())
    if not items:
        raise click.UsageError("no prompts given")

    agent = _agent_from_options(provider, model)
    results = asyncio.run(agent.send_batch(items))
    for index, (prompt, result) in enumerate(zip(items, results, strict=True)):
        if json_output:
            click.echo(json.dumps(_result_payload(prompt, result)))
        elif isinstance(result, AgentError):
            click.echo(f"[{index}] error: {result}")
        else:
            click.echo(f"[{index}] {result.content}")
    if any(isinstance(result, AgentError) for result in results):
        click.get_current_context().exit(1)


@cli.command()
@click.option("--provider", type=_PROVIDER_CHOICES, default=None, help="Override API_PROVIDER.")
@click.option("--model", type=str, default=None, help="Override MODEL_NAME.")
def chat(provider: str | None, model: str | None) -> None:
    """Interactive conversation. /reset clears history, /exit quits."""
    agent = _agent_from_options(provider, model)
    click.echo(f"conduit chat ({agent.config.provider_kind}:{agent.config.model_name})")

    async def _loop() -> None:
        while True:
            try:
                line = await asyncio.to_thread(click.prompt, "you", prompt_suffix="> ")
            except (EOFError, click.Abort):
                click.echo()
                return
            text = line.strip()
            if not text:
                continue
            if text in {"/exit", "/quit"}:
                return
            if text == "/reset":
                agent.reset()
                click.echo("history cleared")
                continue
            try:
                reply = await agent.send(text)
            except AgentError as exc:
                click.echo(f"error: {exc}", err=True)
                continue
            click.echo(reply.content)

    asyncio.run(_loop())


@cli.command()
@click.option("--json", "json_output", is_flag=True, help="Print tool schemas as JSON.")
def tools(json_output: bool) -> None:
    """List the tools the agent can call."""
    if json_output:
        click.echo(
            json.dumps(
                [
                    {"name": s.name, "description": s.description, "parameters": s.to_schema()}
                    for s in DEFAULT_TOOL_SPECS
                ],
                indent=2,
            )
        )
        return
    for spec in DEFAULT_TOOL_SPECS:
        params = ", ".join(
            f"{name}{'' if param.required else '?'}: {param.type}"
            for name, param in spec.parameters.items()
        )
        click.echo(f"{spec.name}({params})  {spec.description}")


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
