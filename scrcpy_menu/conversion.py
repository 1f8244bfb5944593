"""Remuxing finished recordings to MP4."""

import logging
import os
import shutil
import subprocess
from typing import List, Optional

logger = logging.getLogger(__name__)

AUDIO_CODEC = "aac"
AUDIO_BITRATE = "192k"


def remux_command(ffmpeg: str, source: str, target: str) -> List[str]:
    """Copy the video stream, re-encode audio to AAC and move the index to the front."""
    return [
        ffmpeg, "-y",
        "-i", source,
        "-c:v", "copy",
        "-c:a", AUDIO_CODEC,
        "-b:a", AUDIO_BITRATE,
        "-movflags", "+faststart",
        target,
    ]


def remux_target(source: str) -> str:
    base, _ = os.path.splitext(source)
    return base + ".mp4"


def remux_to_mp4(source: str, ffmpeg_path: Optional[str] = None,
                 runner=subprocess.run) -> Optional[str]:
    """Remux a recording to MP4. Returns the new path, or None on failure.

    The source recording is left untouched either way.
    """
    ffmpeg = ffmpeg_path or shutil.which("ffmpeg")
    if not ffmpeg:
        print("❌ ffmpeg not found, keeping the original recording")
        logger.warning("Remux skipped: ffmpeg not found")
        return None

    if not os.path.exists(source):
        print(f"❌ Recording not found: {source}")
        logger.warning("Remux skipped: %s does not exist", source)
        return None

    target = remux_target(source)
    if os.path.abspath(target) == os.path.abspath(source):
        logger.info("%s is already an MP4", source)
        return source

    print(f"🔄 Remuxing {os.path.basename(source)} to MP4...")
    cmd = remux_command(ffmpeg, source, target)
    logger.info("Running %s", " ".join(cmd))

    try:
        result = runner(cmd, capture_output=True, encoding="utf-8",
                        errors="replace", check=False)
    except OSError as e:
        print(f"❌ Remux failed: {e}")
        logger.error("Remux failed to start: %s", e)
        return None

    if result.returncode != 0:
        stderr = (result.stderr or "").strip()
        print(f"❌ Remux failed: {stderr[-500:]}")
        logger.error("Remux of %s failed with code %s", source, result.returncode)
        if os.path.exists(target):
            os.remove(target)
        return None

    print(f"   ✅ Saved {target}")
    logger.info("Remuxed %s -> %s", source, target)
    return target
