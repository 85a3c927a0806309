"""
Pre-flight checks for the toolchain and device inputs.
"""

import logging

from kbuildctl.build.runner import CommandRunner
from kbuildctl.core.config import Settings
from kbuildctl.core.status import StatusPrinter
from kbuildctl.errors import DependencyError
from kbuildctl.notify.telegram import TelegramNotifier

logger = logging.getLogger(__name__)


def check_dependencies(
    settings: Settings,
    runner: CommandRunner,
    status: StatusPrinter,
    notifier: TelegramNotifier,
) -> None:
    """
    Verify the tools and files a build needs.

    Raises:
        DependencyError: If clang, make or the device config is missing.
    """
    status.info("Checking dependencies...")

    if runner.which("git") is None:
        status.warning("git not found, AnyKernel3 setup and commit info will fail")
        notifier.send("⚠️ *Dependency Check*", "git not found on the build host")

    if settings.clang_path.is_dir():
        status.success(f"Clang found at: {settings.clang_path}")
    else:
        raise DependencyError(
            f"Clang not found at: {settings.clang_path}. "
            "Please set CLANG_PATH or install clang toolchain"
        )

    if runner.which("make") is None:
        raise DependencyError("make not found. Please install build-essential")

    if not settings.device_config.is_file():
        raise DependencyError(f"Device config not found: {settings.device_config}")

    if settings.enable_telegram and not notifier.enabled:
        status.warning("Telegram bot token or chat ID missing, Telegram notifications disabled")
        notifier.disable()

    status.success("All dependencies checked")
