# src/autojoin/apps/cli/app.py
from __future__ import annotations

import asyncio
import json
import os
import traceback
from typing import Optional

import typer
from dotenv import find_dotenv, load_dotenv
from rich import print

from autojoin.apps.bootstrap import get_ctx, init_ctx
from autojoin.core.errors import AutojoinError
from autojoin.services import bootstrap as boot
from autojoin.services.consul.backend import ConsulBackend
from autojoin.services.settings import Settings

# загружаем .env один раз (AUTOJOIN_* переменные)
load_dotenv(find_dotenv(usecwd=True))

app = typer.Typer(help="Cluster membership through a service registry (Consul).")


def _run(coro):
    try:
        return asyncio.run(coro)
    except AutojoinError as e:
        if os.getenv("AUTOJOIN_CLI_DEBUG") == "1":
            traceback.print_exc()
        print(f"[red]error:[/red] {e}")
        raise typer.Exit(code=1)
    finally:
        # HTTP-сессия реестра живёт до конца команды
        get_ctx().close()


async def _wait_for_interrupt() -> None:
    """Block until the process is interrupted (Ctrl+C cancels the task)."""
    await asyncio.Event().wait()


# -------- корневой callback (composition root) --------


@app.callback()
def main(
    config: Optional[str] = typer.Option(None, "--config", "-c", help="YAML file with settings (по умолчанию из AUTOJOIN_CONFIG)"),
    backend: Optional[str] = typer.Option(None, "--backend", help="consul | memory"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR"),
):
    """
    Вызывается перед любыми подкомандами: читает настройки и строит контекст.
    """
    settings = Settings.from_sources(config_file=config)
    settings = settings.with_overrides(backend=backend, log_level=log_level)
    init_ctx(settings)


# -------- команды --------


@app.command("discover")
def discover(as_json: bool = typer.Option(False, "--json", help="Print a JSON list")):
    """Список узлов кластера, найденных в реестре."""
    nodes = _run(get_ctx().backend.discover())
    if as_json:
        typer.echo(json.dumps(nodes))
        return
    if not nodes:
        print("[yellow]no nodes found[/yellow]")
        return
    for node in nodes:
        typer.echo(node)


@app.command("register")
def register():
    """Зарегистрировать этот узел в реестре."""
    _run(get_ctx().backend.register())
    print("[green]registered[/green]")


@app.command("deregister")
def deregister():
    """Снять регистрацию этого узла."""
    _run(get_ctx().backend.deregister())
    print("[green]deregistered[/green]")


@app.command("payload")
def payload():
    """Показать тело запроса регистрации (только consul)."""
    backend = get_ctx().backend
    if not isinstance(backend, ConsulBackend):
        print(f"[yellow]backend '{backend.name}' has no registration payload[/yellow]")
        raise typer.Exit(code=2)
    try:
        body = backend.builder.build().to_dict()
    except AutojoinError as e:
        print(f"[red]error:[/red] {e}")
        raise typer.Exit(code=1)
    typer.echo(json.dumps(body, indent=2, ensure_ascii=False))


@app.command("config")
def show_config():
    """Действующие настройки (токен скрыт)."""
    typer.echo(json.dumps(get_ctx().settings.to_dict(), indent=2, ensure_ascii=False))


@app.command("run")
def run(
    deregister_on_exit: bool = typer.Option(True, "--deregister-on-exit/--keep-registration", help="Deregister when interrupted"),
):
    """Зарегистрироваться, запустить TTL-таймер и работать до Ctrl+C."""

    async def _main() -> None:
        ctx = get_ctx()
        await ctx.backend.register()
        await boot.run_boot_sequence()
        print(f"[cyan]running as {ctx.node_name} (backend={ctx.settings.backend})[/cyan]")
        try:
            await _wait_for_interrupt()
        finally:
            await boot.shutdown()
            if deregister_on_exit:
                await ctx.backend.deregister()

    try:
        _run(_main())
    except KeyboardInterrupt:
        print("[cyan]stopped[/cyan]")


if __name__ == "__main__":
    app()
