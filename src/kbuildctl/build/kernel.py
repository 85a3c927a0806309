"""
Kernel configuration and compilation through the kernel's own make targets.
"""

import logging
import shutil
import time
from pathlib import Path
from typing import List, Optional

from kbuildctl.build.runner import CommandRunner
from kbuildctl.core.config import Settings
from kbuildctl.core.settings import DTB_IMAGE, KERNEL_IMAGE_CANDIDATES, MERGE_CONFIG_SCRIPT
from kbuildctl.core.status import StatusPrinter
from kbuildctl.core.utils import format_duration
from kbuildctl.errors import ImageNotFoundError
from kbuildctl.schemas import GeneratedImage, OutputReport

logger = logging.getLogger(__name__)


class KernelBuilder:
    """Runs defconfig, config merge and the compile for the configured device."""

    def __init__(self, settings: Settings, runner: CommandRunner, status: StatusPrinter):
        self.settings = settings
        self.runner = runner
        self.status = status

    def _arch_args(self) -> List[str]:
        s = self.settings
        return [f"O={s.out_dir}", f"ARCH={s.arch}", f"SUBARCH={s.subarch}"]

    def clean(self) -> None:
        self.status.info("Cleaning build directory...")
        shutil.rmtree(self.settings.out_dir, ignore_errors=True)
        self.status.success("Clean completed")

    def has_config(self) -> bool:
        return self.settings.config_path.is_file()

    def make_defconfig(self) -> None:
        s = self.settings
        self.status.info(f"Generating base defconfig: {s.base_defconfig}")
        self.runner.run(
            ["make", *self._arch_args(), s.base_defconfig],
            env=s.toolchain_env(),
        )
        self.status.success("Base defconfig created")

    def merge_device_config(self) -> None:
        s = self.settings
        self.status.info(f"Merging device config for: {s.device}")
        self.runner.run([
            MERGE_CONFIG_SCRIPT, "-m", "-O", s.out_dir,
            s.config_path,
            s.device_config,
        ])
        self.status.success("Device config merged")

    def configure(self) -> None:
        self.make_defconfig()
        self.merge_device_config()

    def ensure_config(self) -> None:
        """Generate a config only when the output directory has none."""
        if not self.has_config():
            self.status.info("No existing config found, generating new one")
            self.configure()
        else:
            self.status.info(f"Using existing config from {self.settings.config_path}")

    def build_command(self) -> List[str]:
        s = self.settings
        return [
            "make", f"-j{s.threads}", *self._arch_args(),
            "CC=clang",
            f"CLANG_TRIPLE={s.clang_triple}",
            f"CROSS_COMPILE={s.gcc_prefix}",
            f"CROSS_COMPILE_ARM32={s.cross_compile_arm32}",
            "LLVM=1",
            "LLVM_IAS=1",
        ]

    def build(self) -> float:
        """Compile the kernel and return the elapsed wall time in seconds."""
        s = self.settings
        self.status.info(f"Building kernel for {s.device}...")
        self.status.info(f"Using {s.threads} threads")

        start = time.monotonic()
        self.runner.run(self.build_command(), env=s.toolchain_env())
        elapsed = time.monotonic() - start

        self.status.success(f"Kernel built in {format_duration(elapsed)}")
        return elapsed

    def find_kernel_image(self) -> Optional[Path]:
        for name in KERNEL_IMAGE_CANDIDATES:
            candidate = self.settings.boot_dir / name
            if candidate.is_file():
                return candidate
        return None

    def list_images(self) -> List[GeneratedImage]:
        boot_dir = self.settings.boot_dir
        if not boot_dir.is_dir():
            return []
        images = []
        for path in sorted(boot_dir.rglob("*")):
            if path.is_file() and (path.name.startswith("Image") or path.suffix == ".img"):
                images.append(GeneratedImage(path=path, size_bytes=path.stat().st_size))
        return images

    def check_output(self) -> OutputReport:
        self.status.info("Checking output files...")

        image = self.find_kernel_image()
        if image is None:
            raise ImageNotFoundError("Kernel image not found!")

        report = OutputReport(image=image, image_size_bytes=image.stat().st_size)
        self.status.success(f"Kernel image found: {image} ({report.image_size})")

        dtb = self.settings.boot_dir / DTB_IMAGE
        if dtb.is_file():
            report.dtb = dtb
            self.status.success(f"DTB image found: {dtb}")

        report.images = self.list_images()
        self.status.line()
        self.status.info("All generated images:")
        for generated in report.images:
            self.status.line(f"  - {generated.path} ({generated.size})")
        return report

    def kernel_version(self) -> str:
        version = self.runner.output(["make", "kernelversion"])
        return version or self.settings.kernel_version

    def compiler_version(self) -> str:
        clang = self.settings.clang_path / "clang"
        output = self.runner.output([clang, "--version"])
        if not output:
            return "unknown"
        return output.splitlines()[0].replace("clang version ", "")
