import zipfile
from unittest.mock import MagicMock

import pytest

from kbuildctl.errors import CommandError, DependencyError, ImageNotFoundError
from kbuildctl.notify.telegram import TelegramNotifier
from kbuildctl.pipeline import BuildPipeline

from conftest import make_anykernel_tree, make_boot_image, status_text


@pytest.fixture
def notifier():
    notifier = MagicMock()
    notifier.enabled = False
    return notifier


@pytest.fixture
def pipeline(settings, runner, status, notifier):
    runner.hooks["make -j4"] = lambda cmd: make_boot_image(settings, "Image.gz-dtb")
    runner.hooks["git clone"] = lambda cmd: make_anykernel_tree(settings.anykernel_dir)
    return BuildPipeline(settings, runner=runner, notifier=notifier, status=status)


def _sent_titles(notifier):
    return [call.args[0] for call in notifier.send.call_args_list]


def test_clean(pipeline, settings, notifier):
    settings.out_dir.mkdir()
    pipeline.clean()
    assert not settings.out_dir.exists()
    assert _sent_titles(notifier) == ["🧹 *Clean Completed*"]


def test_config(pipeline, runner, notifier, settings):
    pipeline.config()
    assert [cmd[0] for cmd in runner.commands] == ["make", "./scripts/kconfig/merge_config.sh"]
    title, message = notifier.send.call_args.args
    assert title == "⚙️ *Configuration Completed*"
    assert f"{settings.base_defconfig} + {settings.device_config}" in message


def test_build_generates_config_and_compiles(pipeline, runner, notifier, status):
    pipeline.build()

    assert runner.commands[0][-1] == "vendor/sdm845-perf_defconfig"
    assert runner.commands[1][0] == "./scripts/kconfig/merge_config.sh"
    assert runner.commands[2][:2] == ["make", "-j4"]
    assert pipeline.build_time == "0m 0s"
    assert "✅ *Build Completed*" in _sent_titles(notifier)
    assert "Kernel image found" in status_text(status)


def test_build_announces_build_info(pipeline, notifier, monkeypatch):
    notifier.enabled = True
    monkeypatch.setattr("kbuildctl.build.info.getpass.getuser", lambda: "romiyus")
    monkeypatch.setattr("kbuildctl.build.info.socket.gethostname", lambda: "buildbox")

    pipeline.build()

    title, message = notifier.send.call_args_list[0].args
    assert title == ""
    assert message.startswith("*🔨 Build Started*")
    assert "`romiyus@buildbox`" in message
    assert "`No git info`" in message


def test_build_stops_on_missing_dependency(pipeline, runner, settings):
    settings.device_config.unlink()
    with pytest.raises(DependencyError):
        pipeline.build()
    assert runner.commands == []


def test_zip_packages_and_uploads(pipeline, notifier, settings):
    pipeline.zip()

    assert pipeline.final_zip is not None
    assert pipeline.final_zip.path.parent == settings.zip_dir
    with zipfile.ZipFile(pipeline.final_zip.path) as zf:
        assert "Image.gz-dtb" in zf.namelist()

    path, caption = notifier.upload.call_args.args
    assert path == pipeline.final_zip.path
    assert caption.startswith("📦 *Flashable Kernel Zip*")
    assert "📱 *Device:* `akari`" in caption
    assert "🐧 *Kernel:* `Orion-Akari v4.19`" in caption
    assert "⏱ *Build Time:* `0m 0s`" in caption


def test_rebuild_cleans_first(pipeline, runner, settings, notifier):
    settings.out_dir.mkdir()
    stale = settings.out_dir / "stale.o"
    stale.write_text("x")

    pipeline.rebuild()

    assert not stale.exists()
    assert runner.commands[0][-1] == "vendor/sdm845-perf_defconfig"
    assert notifier.upload.call_args.args[1] == "📦 *Flashable Kernel Zip Ready!*"


def test_repack_uses_existing_image(pipeline, runner, settings, notifier):
    make_boot_image(settings, "Image")

    pipeline.repack()

    assert not any(cmd[0] == "make" for cmd in runner.commands)
    caption = notifier.upload.call_args.args[1]
    assert "♻️ *Status:* `Repacked from existing build`" in caption


def test_repack_without_build(pipeline, notifier):
    with pytest.raises(ImageNotFoundError):
        pipeline.repack()
    notifier.upload.assert_not_called()


def test_report_failure(pipeline, notifier, status):
    pipeline.report_failure(DependencyError("make not found. Please install build-essential"))
    assert "[ERROR] make not found" in status_text(status)
    notifier.send.assert_called_once_with("❌ *Build Error*", "`make not found. Please install build-essential`")


def test_summary_prefers_zip(pipeline, status):
    pipeline.zip()
    pipeline.summary()
    text = status_text(status)
    assert "All done!" in text
    assert f"Flashable zip: {pipeline.final_zip.path}" in text


def test_summary_falls_back_to_image(pipeline, status, settings):
    pipeline.build()
    pipeline.summary()
    assert f"Kernel image: {settings.kernel_image}" in status_text(status)


def _outside_code_spans(text):
    return "".join(text.split("`")[::2])


def test_failed_compile_sends_balanced_markdown(settings, runner, status):
    enabled = settings.model_copy(update={
        "enable_telegram": True,
        "telegram_bot_token": "123:abc",
        "telegram_chat_id": "-1001",
    })
    session = MagicMock()
    session.post.return_value.json.return_value = {"ok": True}
    notifier = TelegramNotifier(enabled, session=session, status=status)
    pipeline = BuildPipeline(enabled, runner=runner, notifier=notifier, status=status)
    runner.failing.add("make -j4")

    with pytest.raises(CommandError) as exc_info:
        pipeline.build()
    pipeline.report_failure(exc_info.value)

    text = session.post.call_args.kwargs["data"]["text"]
    assert text.startswith("❌ *Build Error*\n\n")
    assert "CROSS_COMPILE=" in text
    assert text.count("`") % 2 == 0
    plain = _outside_code_spans(text)
    assert plain.count("_") % 2 == 0
    assert plain.count("*") % 2 == 0
    assert "CROSS_COMPILE" not in plain
