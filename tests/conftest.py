import io
from pathlib import Path
from typing import Callable, Dict, List, Optional

import pytest
from rich.console import Console

from kbuildctl.core.config import Settings
from kbuildctl.core.status import StatusPrinter
from kbuildctl.errors import CommandError


class FakeRunner:
    """Records commands instead of running them."""

    def __init__(self):
        self.calls: List[dict] = []
        self.outputs: Dict[str, str] = {}
        self.missing = set()
        self.failing = set()
        self.hooks: Dict[str, Callable[[List[str]], None]] = {}

    @staticmethod
    def _key(cmd: List[str]) -> str:
        return " ".join(cmd[:2])

    @property
    def commands(self) -> List[List[str]]:
        return [call["cmd"] for call in self.calls]

    def run(self, command, cwd=None, env=None):
        cmd = [str(part) for part in command]
        self.calls.append({"cmd": cmd, "cwd": cwd, "env": env})
        if self._key(cmd) in self.failing:
            raise CommandError(f"Command failed: {' '.join(cmd)}", cmd, 1)
        hook = self.hooks.get(self._key(cmd))
        if hook:
            hook(cmd)

    def output(self, command, cwd=None, env=None) -> Optional[str]:
        cmd = [str(part) for part in command]
        return self.outputs.get(" ".join(cmd))

    def which(self, name):
        return None if name in self.missing else f"/usr/bin/{name}"


@pytest.fixture(autouse=True)
def no_keyring(monkeypatch):
    monkeypatch.setattr("kbuildctl.core.config.keyring.get_password", lambda *args: None)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    clang = tmp_path / "clang" / "bin"
    clang.mkdir(parents=True)
    device_config = tmp_path / "akari.config"
    device_config.write_text("CONFIG_LOCALVERSION=\"-orion\"\n")
    return Settings(
        _env_file=None,
        arch="arm64",
        subarch="arm64",
        out_dir=tmp_path / "out",
        clang_path=clang,
        gcc_path=tmp_path / "gcc" / "bin",
        device_config=device_config,
        anykernel_dir=tmp_path / "AnyKernel3",
        zip_dir=tmp_path / "zip",
        threads=4,
        telegram_bot_token=None,
        telegram_chat_id=None,
        enable_telegram=False,
    )


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def status() -> StatusPrinter:
    return StatusPrinter(Console(file=io.StringIO(), width=200, highlight=False))


def status_text(status: StatusPrinter) -> str:
    return status.console.file.getvalue()


def make_boot_image(settings: Settings, name: str = "Image.gz-dtb", content: bytes = b"kernel") -> Path:
    settings.boot_dir.mkdir(parents=True, exist_ok=True)
    image = settings.boot_dir / name
    image.write_bytes(content)
    return image


def make_anykernel_tree(root: Path) -> None:
    root.mkdir(parents=True, exist_ok=True)
    (root / "anykernel.sh").write_text("#!/sbin/sh\n")
    (root / "README.md").write_text("AnyKernel3\n")
    (root / ".gitignore").write_text("*.zip\n")
    (root / ".git").mkdir(exist_ok=True)
    (root / ".git" / "HEAD").write_text("ref: refs/heads/akari\n")
    tools = root / "tools"
    tools.mkdir(exist_ok=True)
    (tools / "ak3-core.sh").write_text("# core\n")
