"""Configuration objects for the HLS relay."""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

from ..config import DEFAULT_PROCESS_MAX_RUNTIME
from ..utils import coerce_float, coerce_int, ensure_leading_slash, strip_trailing_slash


@dataclass(slots=True)
class HlsMuxingOptions:
    """Settings that control the rolling HLS window written by FFmpeg.

    Defaults match the live profile the relay has always used:
    - 4s segments
    - 5 segment window in the manifest
    - expired segments deleted by FFmpeg itself
    """

    segment_duration: int = 4
    list_size: int = 5
    delete_segments: bool = True
    manifest_name: str = "playlist.m3u8"
    segment_pattern: str = "segment%03d.ts"
    extra_flags: Sequence[str] = field(default_factory=tuple)


@dataclass(slots=True)
class RelaySettings:
    """Everything needed to launch and locate one relay session."""

    output_root: Path
    hls: HlsMuxingOptions = field(default_factory=HlsMuxingOptions)
    ffmpeg_binary: str = "ffmpeg"
    loglevel: str = "warning"
    public_prefix: str = "/hls"
    input_args: Sequence[str] = field(default_factory=tuple)
    readiness_attempts: int = 20
    readiness_interval: float = 1.0
    reclaim_grace_seconds: float = 3.0
    stop_grace_seconds: float = 5.0
    max_runtime_seconds: float = 0.0

    def output_dir_for(self, source_id: int) -> Path:
        return self.output_root / str(source_id)

    def manifest_path_for(self, source_id: int) -> Path:
        return self.output_dir_for(source_id) / self.hls.manifest_name

    def manifest_url_for(self, source_id: int) -> str:
        prefix = strip_trailing_slash(ensure_leading_slash(self.public_prefix))
        return f"{prefix}/{source_id}/{self.hls.manifest_name}"

    @property
    def readiness_window_seconds(self) -> float:
        return self.readiness_attempts * self.readiness_interval


def settings_from_config(config: Mapping[str, Any]) -> RelaySettings:
    """Build :class:`RelaySettings` from a Flask-style configuration mapping."""

    output_root = Path(str(config.get("RESTREAM_OUTPUT_DIR") or "stream_data")).expanduser().resolve()
    hls = HlsMuxingOptions(
        segment_duration=max(1, coerce_int(config.get("RESTREAM_SEGMENT_SECONDS"), 4)),
        list_size=max(1, coerce_int(config.get("RESTREAM_PLAYLIST_SIZE"), 5)),
    )
    return RelaySettings(
        output_root=output_root,
        hls=hls,
        ffmpeg_binary=str(config.get("RESTREAM_FFMPEG_BINARY") or "ffmpeg"),
        loglevel=str(config.get("RESTREAM_FFMPEG_LOGLEVEL") or "warning"),
        public_prefix=str(config.get("RESTREAM_HLS_PREFIX") or "/hls"),
        readiness_attempts=max(1, coerce_int(config.get("RESTREAM_READINESS_ATTEMPTS"), 20)),
        readiness_interval=max(0.01, coerce_float(config.get("RESTREAM_READINESS_INTERVAL"), 1.0)),
        reclaim_grace_seconds=max(0.0, coerce_float(config.get("RESTREAM_RECLAIM_GRACE_SECONDS"), 3.0)),
        stop_grace_seconds=max(0.0, coerce_float(config.get("RESTREAM_STOP_GRACE_SECONDS"), 5.0)),
        max_runtime_seconds=max(0.0, coerce_float(config.get("RESTREAM_PROCESS_MAX_RUNTIME"), DEFAULT_PROCESS_MAX_RUNTIME)),
    )


__all__ = ["HlsMuxingOptions", "RelaySettings", "settings_from_config"]
