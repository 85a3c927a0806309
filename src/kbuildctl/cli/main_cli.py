"""
Top-level CLI: one subcommand per build mode, `build` when none is given.
"""

import logging
import sys

import click
import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape

from kbuildctl.core.config import DEFAULT_CONFIG_FILE, load_settings
from kbuildctl.core.status import StatusPrinter
from kbuildctl.errors import BuildError
from kbuildctl.notify.telegram import TelegramNotifier, code_span
from kbuildctl.pipeline import BuildPipeline

logger = logging.getLogger(__name__)
console = Console(highlight=False)

ENVIRONMENT_HELP = """\
Environment Variables:
  CLANG_PATH          Path to clang toolchain (default: {clang_path})
  GCC_PATH            Path to GCC toolchain (default: {gcc_path})
  TELEGRAM_BOT_TOKEN  Telegram bot token for notifications
  TELEGRAM_CHAT_ID    Telegram chat ID for notifications
  ENABLE_TELEGRAM     Enable Telegram notifications (true/false)

Example:
  kbuildctl build
  kbuildctl zip
  ENABLE_TELEGRAM=true TELEGRAM_BOT_TOKEN=xxx TELEGRAM_CHAT_ID=yyy kbuildctl zip
  CLANG_PATH=~/my-clang/bin kbuildctl rebuild
"""

app = typer.Typer(
    help="Android kernel build, AnyKernel3 packaging and Telegram notifications",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _pipeline(ctx: typer.Context) -> BuildPipeline:
    return ctx.find_root().obj


def _run(ctx: typer.Context, mode: str, summary: bool = True) -> None:
    pipeline = _pipeline(ctx)
    try:
        getattr(pipeline, mode)()
    except BuildError as e:
        pipeline.report_failure(e)
        raise typer.Exit(1)
    except OSError as e:
        pipeline.report_failure(BuildError(f"{mode} failed: {e}"))
        raise typer.Exit(1)
    if summary:
        pipeline.summary()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    config_file: str = typer.Option(
        DEFAULT_CONFIG_FILE, "--config-file", "-c",
        help="Shell-style KEY=\"value\" file layered over .env (missing file is ignored)",
    ),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
):
    """
    Build the kernel (default), or run one of the subcommands.
    """
    numeric_level = getattr(logging, log_level.upper(), None)
    if not isinstance(numeric_level, int):
        raise typer.BadParameter(f"Invalid log level: {log_level}", param_hint="--log-level")
    logging.basicConfig(
        level=numeric_level,
        format="%(levelname)s %(name)s - %(message)s"
    )

    if ctx.obj is None:
        try:
            settings = load_settings(config_file)
        except ValidationError as e:
            console.print(f"[red]\\[ERROR][/red] Invalid configuration:\n{escape(str(e))}")
            raise typer.Exit(1)
        ctx.obj = BuildPipeline(settings)

    ctx.obj.banner()

    if ctx.invoked_subcommand is None:
        _run(ctx, "build")


@app.command()
def clean(ctx: typer.Context):
    """Clean build directory."""
    _run(ctx, "clean", summary=False)


@app.command()
def config(ctx: typer.Context):
    """Generate defconfig only."""
    _run(ctx, "config", summary=False)


@app.command()
def build(ctx: typer.Context):
    """Build kernel (default)."""
    _run(ctx, "build")


@app.command()
def rebuild(ctx: typer.Context):
    """Clean and build, then create and upload a flashable zip."""
    _run(ctx, "rebuild")


@app.command("zip")
def make_zip(ctx: typer.Context):
    """Build kernel and create flashable zip."""
    _run(ctx, "zip")


@app.command()
def repack(ctx: typer.Context):
    """Only create zip from existing build."""
    _run(ctx, "repack")


@app.command("help")
def show_help(ctx: typer.Context):
    """Show this help message."""
    settings = _pipeline(ctx).settings
    typer.echo(ctx.find_root().get_help())
    typer.echo("")
    typer.echo(ENVIRONMENT_HELP.format(clang_path=settings.clang_path, gcc_path=settings.gcc_path))


def notify_usage_error(message: str) -> None:
    """Send the Build Error notification for a command line that could not be parsed."""
    try:
        settings = load_settings()
    except ValidationError:
        return
    notifier = TelegramNotifier(settings, status=StatusPrinter(console))
    notifier.send("❌ *Build Error*", code_span(message))


def main():
    try:
        code = app(standalone_mode=False)
    except click.UsageError as e:
        message = e.format_message()
        console.print(f"[red]\\[ERROR][/red] {escape(message)}")
        notify_usage_error(message)
        typer.echo("Run 'kbuildctl help' for usage.")
        sys.exit(1)
    except click.Abort:
        console.print("[red]\\[ERROR][/red] Aborted")
        sys.exit(1)
    sys.exit(code or 0)


if __name__ == "__main__":
    main()
