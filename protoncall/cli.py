from __future__ import annotations

import logging
from pathlib import Path
from typing import List, NoReturn, Optional

import typer

from .config import (
    Config,
    config_as_dict,
    default_config_path,
    load_config,
    write_default_config,
)
from .errors import ProtonCallError
from .index import Index
from .launcher import Proton
from .runtime import RuntimeVersion
from .runtime_options import RuntimeOption, parse_options
from .utils import flatten_lists
from .version import Version

app = typer.Typer(no_args_is_help=True)
config_app = typer.Typer(no_args_is_help=True)

app.add_typer(config_app, name="config")


def setup_logging(debug: bool) -> None:
    level = logging.DEBUG if debug else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to config.yaml"),
):
    setup_logging(debug)
    ctx.obj = {"config_path": config}


def _fail(exc: ProtonCallError) -> NoReturn:
    typer.echo(f"error: {exc}", err=True)
    raise typer.Exit(code=1)


def get_config(ctx: typer.Context) -> Config:
    path = (ctx.obj or {}).get("config_path")
    try:
        return load_config(path)
    except ProtonCallError as exc:
        _fail(exc)


def exit_code_for(status: int) -> int:
    # Popen reports a signal death as -signum; shells report 128 + signum.
    return 128 - status if status < 0 else status


def get_index(config: Config, index_dir: Optional[Path] = None) -> Index:
    root = index_dir if index_dir is not None else config.common
    return Index.build(root, config.cache)


@app.command(context_settings={"allow_extra_args": True, "ignore_unknown_options": True})
def run(
    ctx: typer.Context,
    program: Path = typer.Argument(..., help="Windows executable to run"),
    args: Optional[List[str]] = typer.Argument(None, help="Arguments passed to the program"),
    proton: Optional[str] = typer.Option(None, "--proton", "-p", help="Proton version, e.g. 6.3 or experimental"),
    custom: Optional[Path] = typer.Option(None, "--custom", "-c", help="Path to a custom Proton install"),
    runtime: Optional[str] = typer.Option(None, "--runtime", "-r", help="Steam runtime to run Proton in"),
    options: Optional[List[str]] = typer.Option(None, "--option", "-o", help="Runtime option, repeatable or comma list"),
    index_dir: Optional[Path] = typer.Option(None, "--index-dir", help="Override the indexed common dir"),
):
    config = get_config(ctx)
    try:
        opts = parse_options(flatten_lists(options or []))
        if custom is not None:
            version = Version.custom()
            path = custom
        else:
            version = Version.parse(proton) if proton else config.default_version
            index = get_index(config, index_dir)
            found = index.get(version)
            if found is None:
                typer.echo(f"Proton {version} is not installed\n\n{index}", err=True)
                raise typer.Exit(code=1)
            path = found

        if runtime is not None:
            runtime_version: Optional[RuntimeVersion] = RuntimeVersion.parse(runtime)
        else:
            runtime_version = config.default_runtime

        launch = Proton.new(
            version=version,
            path=path,
            program=program,
            args=list(args or []) + list(ctx.args),
            options=opts,
            compat=config.data,
            steam=config.steam,
            runtime=runtime_version,
            common=config.common,
        )
        status = launch.run()
    except ProtonCallError as exc:
        _fail(exc)
    raise typer.Exit(code=exit_code_for(status))


@app.command("index")
def index_show(
    ctx: typer.Context,
    reindex: bool = typer.Option(False, "--reindex", help="Scan again and rewrite the cache"),
    index_dir: Optional[Path] = typer.Option(None, "--index-dir", help="Override the indexed common dir"),
):
    config = get_config(ctx)
    try:
        index = get_index(config, index_dir)
        if reindex:
            index.reindex(config.cache)
    except ProtonCallError as exc:
        _fail(exc)
    typer.echo(str(index))


@app.command("options")
def options_list():
    for opt in RuntimeOption:
        names = "/".join(opt.aliases)
        typer.echo(f"{names}: {opt.env_var_name} - {opt.help}")


@app.command("runtimes")
def runtimes_list(ctx: typer.Context):
    config = get_config(ctx)
    for rt in RuntimeVersion:
        state = "installed" if rt.launcher_path(config.common).exists() else "missing"
        typer.echo(f"{'/'.join(rt.aliases)}: {rt.install_name} ({state})")


@config_app.command("init")
def config_init(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Overwrite existing file"),
):
    path = (ctx.obj or {}).get("config_path")
    try:
        path = path or default_config_path()
    except ProtonCallError as exc:
        _fail(exc)
    if path.exists() and not force:
        raise typer.BadParameter(f"Config already exists: {path}")
    write_default_config(path)
    typer.echo(f"Wrote {path}")


@config_app.command("show")
def config_show(ctx: typer.Context):
    config = get_config(ctx)
    for key, value in config_as_dict(config).items():
        typer.echo(f"{key}: {value}")


if __name__ == "__main__":
    app()
