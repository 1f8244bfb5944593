import sys
from datetime import datetime

from scrcpy_menu.mirroring import (
    build_arguments, default_recording_name, describe_exit, launch, recording_arguments,
)
from scrcpy_menu.models import Preset, RecordingFormat


def test_minimal_preset():
    preset = Preset(name="Min", video_codec="h264")
    assert build_arguments(preset, "ABC123") == ["--serial", "ABC123", "--video-codec", "h264"]


def test_full_preset_ordering():
    preset = Preset(
        name="Full",
        resolution="1920",
        video_codec="h265",
        video_bitrate="16M",
        video_buffer="50",
        audio_codec="opus",
        audio_bitrate="128K",
        audio_buffer="30",
        other_options="--stay-awake  --turn-screen-off",
    )
    assert build_arguments(preset, "ABC123") == [
        "--serial", "ABC123",
        "--max-size", "1920",
        "--video-codec", "h265",
        "--video-bit-rate", "16M",
        "--video-buffer", "50",
        "--audio-codec", "opus",
        "--audio-bit-rate", "128K",
        "--audio-buffer", "30",
        "--stay-awake", "--turn-screen-off",
    ]


def test_zero_and_invalid_buffers_are_omitted():
    preset = Preset(name="Buf", video_buffer="0", audio_buffer="abc")
    assert build_arguments(preset, "S") == ["--serial", "S"]


def test_blank_fields_are_omitted():
    preset = Preset(name="Blank", resolution="  ", audio_codec="", other_options="   ")
    assert build_arguments(preset, "S") == ["--serial", "S"]


def test_recording_arguments():
    assert recording_arguments("/tmp/x.mp4") == ["--record", "/tmp/x.mp4"]


def test_default_recording_name():
    now = datetime(2026, 1, 2, 3, 4, 5)
    assert default_recording_name("Gaming", RecordingFormat.MP4, now) == "Gaming_20260102_030405.mp4"
    assert default_recording_name("My Preset!", RecordingFormat.MKV_TO_MP4, now) == \
        "My_Preset_20260102_030405.mkv"
    assert default_recording_name("///", RecordingFormat.MP4, now) == "recording_20260102_030405.mp4"


def test_describe_exit():
    assert describe_exit(0) == "clean exit"
    assert describe_exit(2) == "device disconnected"
    assert describe_exit(42) == "unexpected exit code 42"


def test_launch_missing_executable(tmp_path):
    missing = str(tmp_path / "no-such-scrcpy")
    assert launch([missing, "--serial", "S"]) == -1
    assert launch([missing], capture=True) == -1


def test_launch_passthrough_returns_exit_code():
    assert launch([sys.executable, "-c", "import sys; sys.exit(2)"]) == 2


def test_launch_captures_output_lines():
    lines = []
    script = (
        "import sys\n"
        "print('INFO: scrcpy 2.4')\n"
        "sys.stdout.flush()\n"
        "sys.stderr.write('ERROR: device gone\\n')\n"
        "sys.stdout.write('partial')\n"
        "sys.exit(1)\n"
    )
    code = launch([sys.executable, "-c", script], capture=True,
                  on_line=lambda stream, line: lines.append((stream, line)),
                  poll_interval=0.01)

    assert code == 1
    assert ("stdout", "INFO: scrcpy 2.4") in lines
    assert ("stderr", "ERROR: device gone") in lines
    assert ("stdout", "partial") in lines
