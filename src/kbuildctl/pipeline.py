"""
Build pipeline: one method per CLI subcommand, sequencing the build steps
and the Telegram notifications that go with them.
"""

import logging
from datetime import datetime
from typing import Optional

from kbuildctl.build.dependencies import check_dependencies
from kbuildctl.build.info import collect_build_info
from kbuildctl.build.kernel import KernelBuilder
from kbuildctl.build.runner import CommandRunner
from kbuildctl.core.config import Settings
from kbuildctl.core.status import StatusPrinter
from kbuildctl.core.utils import format_duration
from kbuildctl.errors import BuildError
from kbuildctl.notify.telegram import TelegramNotifier, code_span
from kbuildctl.packaging.anykernel import AnyKernelPackager
from kbuildctl.schemas import FlashableZip

logger = logging.getLogger(__name__)


class BuildPipeline:
    """Orchestrates clean/config/build/zip/repack for one device."""

    def __init__(
        self,
        settings: Settings,
        runner: Optional[CommandRunner] = None,
        notifier: Optional[TelegramNotifier] = None,
        status: Optional[StatusPrinter] = None,
    ):
        self.settings = settings
        self.runner = runner or CommandRunner()
        self.status = status or StatusPrinter()
        self.notifier = notifier or TelegramNotifier(settings, status=self.status)
        self.builder = KernelBuilder(settings, self.runner, self.status)
        self.packager = AnyKernelPackager(settings, self.runner, self.status)

        self.build_time: Optional[str] = None
        self.final_zip: Optional[FlashableZip] = None

    # Steps

    def check_dependencies(self) -> None:
        check_dependencies(self.settings, self.runner, self.status, self.notifier)

    def compile(self) -> None:
        if self.notifier.enabled:
            info = collect_build_info(self.settings, self.builder, self.runner)
            self.notifier.send("", info.to_markdown())

        elapsed = self.builder.build()
        self.build_time = format_duration(elapsed)
        self.notifier.send("✅ *Build Completed*", f"⏱ *Build Time:* `{self.build_time}`")

    def package(self) -> FlashableZip:
        self.final_zip = self.packager.make_flashable_zip(self.builder.find_kernel_image())
        return self.final_zip

    def zip_caption(self, status_line: str) -> str:
        s = self.settings
        size = self.final_zip.size if self.final_zip else "unknown"
        return "\n".join([
            "📦 *Flashable Kernel Zip*",
            "",
            f"📱 *Device:* `{s.device}`",
            f"🐧 *Kernel:* `{s.kernel_name} v{s.kernel_version}`",
            f"📅 *Date:* `{datetime.now():%d %B %Y}`",
            f"💾 *Size:* `{size}`",
            status_line,
        ])

    def upload(self, caption: str) -> None:
        if self.final_zip is not None and self.final_zip.path.is_file():
            self.notifier.upload(self.final_zip.path, caption)

    # Subcommands

    def clean(self) -> None:
        self.builder.clean()
        self.notifier.send("🧹 *Clean Completed*", "Build directory has been cleaned")

    def config(self) -> None:
        s = self.settings
        self.check_dependencies()
        self.builder.configure()
        self.status.success("Configuration completed")
        self.notifier.send(
            "⚙️ *Configuration Completed*",
            f"📱 *Device:* `{s.device}`\n🔧 *Config:* `{s.base_defconfig} + {s.device_config}`",
        )

    def build(self) -> None:
        self.check_dependencies()
        self.builder.ensure_config()
        self.compile()
        self.builder.check_output()

    def rebuild(self) -> None:
        self.check_dependencies()
        self.builder.clean()
        self.builder.configure()
        self.compile()
        self.builder.check_output()
        self.package()
        self.upload("📦 *Flashable Kernel Zip Ready!*")

    def zip(self) -> None:
        self.build()
        self.package()
        self.upload(self.zip_caption(f"⏱ *Build Time:* `{self.build_time}`"))

    def repack(self) -> None:
        self.builder.check_output()
        self.package()
        self.upload(self.zip_caption("♻️ *Status:* `Repacked from existing build`"))

    # Reporting

    def banner(self) -> None:
        self.status.info("========================================")
        self.status.info(f"  {self.settings.banner}")
        self.status.info("========================================")
        self.status.line()

    def report_failure(self, error: BuildError) -> None:
        message = str(error)
        logger.debug("Build failed", exc_info=error)
        self.status.error(message)
        self.notifier.send("❌ *Build Error*", code_span(message))

    def summary(self) -> None:
        self.status.line()
        self.status.success("All done!")
        if self.final_zip is not None and self.final_zip.path.is_file():
            self.status.info(f"Flashable zip: {self.final_zip.path}")
        else:
            image = self.builder.find_kernel_image()
            if image is not None:
                self.status.info(f"Kernel image: {image}")
        self.status.line()
