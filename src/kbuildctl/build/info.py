"""
Build metadata gathered for the "Build Started" announcement.
"""

import getpass
import socket
from datetime import datetime
from typing import Optional

from kbuildctl.build.kernel import KernelBuilder
from kbuildctl.build.runner import CommandRunner
from kbuildctl.core.config import Settings
from kbuildctl.schemas import BuildInfo


def last_commit(runner: CommandRunner) -> str:
    commit = runner.output(["git", "log", "--pretty=format:%h - %s", "-1"])
    return commit or "No git info"


def short_commit(runner: CommandRunner, cwd=None) -> str:
    commit = runner.output(["git", "rev-parse", "--short", "HEAD"], cwd=cwd)
    return commit or "unknown"


def collect_build_info(
    settings: Settings,
    builder: KernelBuilder,
    runner: CommandRunner,
    now: Optional[datetime] = None,
) -> BuildInfo:
    now = now or datetime.now()
    return BuildInfo(
        device=settings.device,
        device_model=settings.device_model,
        kernel_name=settings.kernel_name,
        kernel_version=builder.kernel_version(),
        build_date=now.strftime("%Y-%m-%d %H:%M:%S"),
        builder=f"{getpass.getuser()}@{socket.gethostname()}",
        compiler=builder.compiler_version(),
        commit=last_commit(runner),
        threads=settings.threads,
    )
