# kbuildctl/src/kbuildctl/core/config.py

import os
import logging
from pathlib import Path
from typing import Dict, Mapping, Optional

import keyring
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from kbuildctl.core.settings import KEYRING_SERVICE

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = "telegram.conf"


class Settings(BaseSettings):
    # Device
    device: str = Field(default="akari")
    device_model: str = Field(default="Xperia XZ2")
    device_config: Path = Field(default=Path("arch/arm64/configs/vendor/sony/akari.config"))
    base_defconfig: str = Field(default="vendor/sdm845-perf_defconfig")

    # Architecture
    arch: str = Field(default="arm64")
    subarch: str = Field(default="arm64")

    out_dir: Path = Field(default=Path("out"))

    # Toolchains
    clang_path: Path = Field(default=Path("/home/romiyus/bringup/cus-clang/bin"))
    gcc_path: Path = Field(
        default_factory=lambda: Path.home() / "toolchains" / "aarch64-linux-android-4.9" / "bin"
    )
    gcc_prefix: str = Field(default="aarch64-linux-android-")
    clang_triple: str = Field(default="aarch64-linux-gnu-")
    cross_compile_arm32: str = Field(default="arm-linux-androideabi-")
    threads: int = Field(default_factory=lambda: os.cpu_count() or 1, ge=1)

    # Kernel identity
    kernel_version: str = Field(default="4.19")
    kernel_name: str = Field(default="Orion-Akari")

    # AnyKernel3
    anykernel_dir: Path = Field(default=Path("../AnyKernel3"))
    anykernel_repo: str = Field(default="https://github.com/romiyusnandar/Anykernel3.git")
    anykernel_branch: str = Field(default="akari")

    # Telegram
    telegram_bot_token: Optional[str] = Field(default=None)
    telegram_chat_id: Optional[str] = Field(default=None)
    enable_telegram: bool = Field(default=False)

    zip_dir: Path = Field(default_factory=lambda: Path.cwd() / "zip")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="",
        extra="ignore",
    )

    @property
    def boot_dir(self) -> Path:
        return self.out_dir / "arch" / self.arch / "boot"

    @property
    def kernel_image(self) -> Path:
        return self.boot_dir / "Image.gz-dtb"

    @property
    def config_path(self) -> Path:
        return self.out_dir / ".config"

    @property
    def banner(self) -> str:
        return f"Sony {self.device_model} ({self.device}) Kernel Build"

    def toolchain_env(self, base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
        """
        Environment for make invocations: clang first, then GCC, then the caller's PATH.
        """
        env = dict(os.environ if base is None else base)
        parts = [str(self.clang_path), str(self.gcc_path)]
        if env.get("PATH"):
            parts.append(env["PATH"])
        env["PATH"] = os.pathsep.join(parts)
        return env

    def get_secure_value(self, key: str, default=None):
        attr_name = key.lower()
        try:
            secure = keyring.get_password(KEYRING_SERVICE, key)
            return secure or getattr(self, attr_name, default)
        except Exception:
            return getattr(self, attr_name, default)

    @property
    def bot_token(self) -> Optional[str]:
        return self.get_secure_value("TELEGRAM_BOT_TOKEN")

    @property
    def telegram_enabled(self) -> bool:
        return bool(self.enable_telegram and self.bot_token and self.telegram_chat_id)


def load_settings(config_file: Optional[str] = DEFAULT_CONFIG_FILE, **overrides) -> Settings:
    """
    Build Settings from the environment, `.env` and an optional shell-style config file.

    The config file (``telegram.conf`` by default) holds ``KEY="value"`` lines and
    takes precedence over ``.env``; real environment variables win over both.
    Missing files are skipped.
    """
    env_files = [".env"]
    if config_file:
        if Path(config_file).is_file():
            logger.debug("Loading config file %s", config_file)
        env_files.append(config_file)
    return Settings(_env_file=tuple(env_files), **overrides)
