"""
Schemas for build results passed between the build, packaging and notify steps.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from kbuildctl.core.utils import human_size


class GeneratedImage(BaseModel):
    """A file found in the boot output directory."""
    path: Path
    size_bytes: int

    @property
    def size(self) -> str:
        return human_size(self.size_bytes)


class OutputReport(BaseModel):
    """Result of inspecting the build output."""
    image: Path
    image_size_bytes: int
    dtb: Optional[Path] = None
    images: List[GeneratedImage] = Field(default_factory=list)

    @property
    def image_size(self) -> str:
        return human_size(self.image_size_bytes)


class FlashableZip(BaseModel):
    """A packaged AnyKernel3 archive."""
    path: Path
    size_bytes: int

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def size(self) -> str:
        return human_size(self.size_bytes)


class BuildInfo(BaseModel):
    """Details announced when a compile starts."""
    device: str
    device_model: str
    kernel_name: str
    kernel_version: str
    build_date: str
    builder: str
    compiler: str
    commit: str
    threads: int

    def to_markdown(self) -> str:
        return "\n".join([
            "*🔨 Build Started*",
            "",
            f"📱 *Device:* `{self.device}` ({self.device_model})",
            f"🐧 *Kernel:* `{self.kernel_name} v{self.kernel_version}`",
            f"📅 *Date:* `{self.build_date}`",
            f"👤 *Builder:* `{self.builder}`",
            f"🔧 *Compiler:* `{self.compiler}`",
            f"📝 *Commit:* `{self.commit}`",
            f"⚙️ *Threads:* `{self.threads}`",
        ])
