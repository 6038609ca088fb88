"""FFmpeg-based HLS relay command construction."""
from __future__ import annotations

import logging
import shlex
import subprocess
from pathlib import Path
from typing import List

from .config import RelaySettings

LOGGER = logging.getLogger(__name__)


class FFmpegHlsRelay:
    """Build and launch FFmpeg processes that remux one source into HLS."""

    def __init__(self, settings: RelaySettings) -> None:
        self.settings = settings

    def build_command(self, source_address: str, output_dir: Path) -> List[str]:
        """Construct the FFmpeg CLI command that relays ``source_address``."""

        settings = self.settings
        hls = settings.hls
        cmd: List[str] = [
            settings.ffmpeg_binary,
            "-hide_banner",
            "-nostdin",
            "-loglevel",
            settings.loglevel,
        ]
        if settings.input_args:
            cmd.extend(str(arg) for arg in settings.input_args)
        cmd.extend(["-i", source_address])

        # Remux only, no subtitle streams.
        cmd.extend(["-c", "copy", "-sn"])
        cmd.extend(["-f", "hls", "-hls_time", str(hls.segment_duration), "-hls_list_size", str(hls.list_size)])

        flags = list(hls.extra_flags)
        if hls.delete_segments and "delete_segments" not in flags:
            flags.insert(0, "delete_segments")
        if flags:
            cmd.extend(["-hls_flags", "+".join(flags)])

        cmd.extend(["-hls_segment_filename", str(output_dir / hls.segment_pattern)])
        cmd.append(str(output_dir / hls.manifest_name))
        return cmd

    def start(self, source_address: str, output_dir: Path) -> subprocess.Popen[str]:
        """Launch FFmpeg and return the running handle.

        stderr is piped so the supervisor can keep a tail of FFmpeg's
        diagnostics; the caller must drain it.
        """

        output_dir.mkdir(parents=True, exist_ok=True)
        command = self.build_command(source_address, output_dir)
        LOGGER.info("Starting FFmpeg: %s", shlex.join(command))
        return subprocess.Popen(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )


__all__ = ["FFmpegHlsRelay"]
