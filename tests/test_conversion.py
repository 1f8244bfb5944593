import subprocess
import sys

from scrcpy_menu.conversion import remux_command, remux_target, remux_to_mp4


def test_remux_command():
    assert remux_command("ffmpeg", "in.mkv", "in.mp4") == [
        "ffmpeg", "-y", "-i", "in.mkv",
        "-c:v", "copy", "-c:a", "aac", "-b:a", "192k",
        "-movflags", "+faststart", "in.mp4",
    ]


def test_remux_target():
    assert remux_target("/videos/clip.mkv") == "/videos/clip.mp4"


def test_remux_success(tmp_path):
    source = tmp_path / "clip.mkv"
    source.write_bytes(b"mkv")
    calls = []

    def runner(cmd, **kwargs):
        calls.append(cmd)
        (tmp_path / "clip.mp4").write_bytes(b"mp4")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")

    target = remux_to_mp4(str(source), ffmpeg_path="/usr/bin/ffmpeg", runner=runner)

    assert target == str(tmp_path / "clip.mp4")
    assert calls[0][0] == "/usr/bin/ffmpeg"
    assert source.exists()


def test_remux_failure_keeps_source_and_removes_partial(tmp_path):
    source = tmp_path / "clip.mkv"
    source.write_bytes(b"mkv")

    def runner(cmd, **kwargs):
        (tmp_path / "clip.mp4").write_bytes(b"half")
        return subprocess.CompletedProcess(cmd, 1, stdout="", stderr="Invalid data")

    assert remux_to_mp4(str(source), ffmpeg_path="ffmpeg", runner=runner) is None
    assert source.exists()
    assert not (tmp_path / "clip.mp4").exists()


def test_remux_without_ffmpeg(tmp_path, monkeypatch):
    source = tmp_path / "clip.mkv"
    source.write_bytes(b"mkv")
    monkeypatch.setattr("shutil.which", lambda name: None)

    def runner(cmd, **kwargs):
        raise AssertionError("ffmpeg should not run")

    assert remux_to_mp4(str(source), runner=runner) is None
    assert source.exists()


def test_remux_missing_source(tmp_path):
    def runner(cmd, **kwargs):
        raise AssertionError("ffmpeg should not run")

    assert remux_to_mp4(str(tmp_path / "gone.mkv"), ffmpeg_path="ffmpeg", runner=runner) is None


def test_remux_start_failure(tmp_path):
    source = tmp_path / "clip.mkv"
    source.write_bytes(b"mkv")

    def runner(cmd, **kwargs):
        raise OSError("exec format error")

    assert remux_to_mp4(str(source), ffmpeg_path="ffmpeg", runner=runner) is None


def test_undecodable_ffmpeg_output_is_reported(tmp_path):
    source = tmp_path / "clip.mkv"
    source.write_bytes(b"mkv")
    script = "import sys; sys.stderr.buffer.write(b'title: \\xff\\xfe'); sys.exit(1)"

    def runner(cmd, **kwargs):
        return subprocess.run([sys.executable, "-c", script], **kwargs)

    assert remux_to_mp4(str(source), ffmpeg_path="ffmpeg", runner=runner) is None
    assert source.exists()
