"""AnyKernel3 flashable zip packaging.

This module keeps a local AnyKernel3 checkout up to date, stages the freshly
built kernel image (plus DTB and modules when present) into it, and writes the
result as a flashable zip named after the kernel, device, date and commit.
"""

import logging
import os
import shutil
import zipfile
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from kbuildctl.build.info import short_commit
from kbuildctl.build.runner import CommandRunner
from kbuildctl.core.config import Settings
from kbuildctl.core.settings import (
    ANYKERNEL_STALE_PATTERNS,
    DTB_IMAGE,
    MODULES_DIR,
    ZIP_EXCLUDE_DIRS,
    ZIP_EXCLUDE_SUFFIXES,
    ZIP_EXCLUDE_TOP_LEVEL,
)
from kbuildctl.core.status import StatusPrinter
from kbuildctl.errors import CommandError, ImageNotFoundError, PackagingError
from kbuildctl.schemas import FlashableZip

logger = logging.getLogger(__name__)


class AnyKernelPackager:
    """Builds flashable zips from an AnyKernel3 template checkout."""

    def __init__(self, settings: Settings, runner: CommandRunner, status: StatusPrinter):
        self.settings = settings
        self.runner = runner
        self.status = status

    @property
    def anykernel_dir(self) -> Path:
        return self.settings.anykernel_dir

    def setup(self) -> None:
        """Clone the AnyKernel3 branch, or update an existing checkout.

        Raises:
            PackagingError: If the clone fails
            CommandError: If updating an existing checkout fails
        """
        s = self.settings
        self.status.info("Setting up AnyKernel3...")

        if not self.anykernel_dir.is_dir():
            self.status.info(f"Cloning AnyKernel3 from {s.anykernel_repo}")
            try:
                self.runner.run([
                    "git", "clone", "-b", s.anykernel_branch,
                    s.anykernel_repo, self.anykernel_dir,
                ])
            except CommandError as e:
                raise PackagingError("Failed to clone AnyKernel3") from e
        else:
            self.status.info("AnyKernel3 directory exists, updating...")
            cwd = self.anykernel_dir
            self.runner.run(["git", "fetch", "origin"], cwd=cwd)
            self.runner.run(["git", "checkout", s.anykernel_branch], cwd=cwd)
            self.runner.run(["git", "pull", "origin", s.anykernel_branch], cwd=cwd)

        self.status.success("AnyKernel3 ready")

    def remove_stale(self) -> None:
        """Remove zips and images left over from a previous packaging run."""
        for pattern in ANYKERNEL_STALE_PATTERNS:
            for path in self.anykernel_dir.glob(pattern):
                if path.is_file():
                    path.unlink()

    def prepare(self, image: Path) -> None:
        """Copy the kernel image, DTB and modules into the AnyKernel3 tree.

        Raises:
            PackagingError: If a file cannot be removed or copied
        """
        dtb = self.settings.boot_dir / DTB_IMAGE
        modules = self.settings.out_dir / MODULES_DIR
        try:
            self.remove_stale()
            shutil.copy2(image, self.anykernel_dir / image.name)

            if dtb.is_file():
                shutil.copy2(dtb, self.anykernel_dir / DTB_IMAGE)
                self.status.info("DTB image copied")

            if modules.is_dir():
                shutil.copytree(modules, self.anykernel_dir / MODULES_DIR, dirs_exist_ok=True)
                self.status.info("Kernel modules copied")
        except OSError as e:
            raise PackagingError(f"Failed to prepare AnyKernel3: {e}") from e

    def zip_name(self, now: Optional[datetime] = None) -> str:
        s = self.settings
        now = now or datetime.now()
        commit = short_commit(self.runner)
        return (
            f"{s.kernel_name}-{s.device}-{s.kernel_version}-"
            f"{now:%Y%m%d}-{now:%H%M}-{commit}.zip"
        )

    def _iter_members(self) -> Iterator[Path]:
        root = self.anykernel_dir
        for dirpath, dirnames, filenames in os.walk(root):
            current = Path(dirpath)
            top = current == root
            dirnames[:] = sorted(
                d for d in dirnames
                if d not in ZIP_EXCLUDE_DIRS and not (top and d.startswith("."))
            )
            if not top:
                yield current
            for name in sorted(filenames):
                if name.endswith(ZIP_EXCLUDE_SUFFIXES):
                    continue
                if top and (name in ZIP_EXCLUDE_TOP_LEVEL or name.startswith(".")):
                    continue
                yield current / name

    def create_zip(self, name: str) -> FlashableZip:
        """Write the AnyKernel3 tree into ``zip_dir/name``.

        Raises:
            PackagingError: If the archive cannot be written
        """
        target = self.settings.zip_dir / name

        self.status.info(f"Packaging: {name}")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with zipfile.ZipFile(target, "w", zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
                for path in self._iter_members():
                    zf.write(path, path.relative_to(self.anykernel_dir).as_posix())
        except OSError as e:
            raise PackagingError(f"Failed to create zip: {e}") from e

        if not target.is_file():
            raise PackagingError("Failed to create zip")

        result = FlashableZip(path=target, size_bytes=target.stat().st_size)
        self.status.success(f"Flashable zip created: {target} ({result.size})")
        return result

    def make_flashable_zip(self, image: Optional[Path]) -> FlashableZip:
        self.status.info("Creating flashable zip...")
        if image is None or not image.is_file():
            raise ImageNotFoundError("No kernel image found to pack!")
        self.status.info(f"Using kernel image: {image}")

        self.setup()
        self.prepare(image)
        return self.create_zip(self.zip_name())
