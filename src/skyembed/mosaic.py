from __future__ import annotations

import logging
import subprocess
import sys
from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import Any

from .errors import CompositorError
from .normalize import CanonicalImage

MOSAIC_CONTENT_TYPE = "image/jpeg"
_CHUNK_SIZE = 64 * 1024

logger = logging.getLogger(__name__)


def _log(message: str) -> None:
    from .runtime import get_verbose_logging

    if get_verbose_logging():
        print(f"[mosaic] {message}", file=sys.stderr, flush=True)


@dataclass(frozen=True)
class MosaicRedirect:
    url: str


def average_width(images: Sequence[CanonicalImage]) -> int:
    if not images:
        return 0
    return sum(image.width for image in images) // len(images)


def build_filter_complex(count: int, width: int) -> str:
    scaled = "".join(f"[{index}:v]scale={width}:-2[m{index}];" for index in range(count))
    labels = "".join(f"[m{index}]" for index in range(count))
    return f"{scaled}{labels}vstack=inputs={count}"


def build_ffmpeg_args(images: Sequence[CanonicalImage], *, ffmpeg: str) -> list[str]:
    args = [ffmpeg, "-hide_banner", "-loglevel", "error"]
    for image in images:
        args.extend(["-i", image.url])
    args.extend(
        [
            "-filter_complex",
            build_filter_complex(len(images), average_width(images)),
            "-f",
            "image2pipe",
            "-c:v",
            "mjpeg",
            "pipe:1",
        ]
    )
    return args


class FfmpegProcess:
    """An ffmpeg child whose stdout is read in chunks until EOF.

    ``close`` kills the process if it is still running and always reaps it, so
    wrapping the process in ``with`` or calling ``close`` from a response's
    close hook is enough to stop work for a disconnected client.
    """

    def __init__(self, argv: list[str], *, chunk_size: int = _CHUNK_SIZE) -> None:
        self._argv = argv
        self._chunk_size = chunk_size
        self._process: subprocess.Popen[bytes] | None = None

    def __enter__(self) -> FfmpegProcess:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()

    def start(self) -> None:
        if self._process is not None:
            return
        try:
            self._process = subprocess.Popen(
                self._argv,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except OSError as exc:
            raise CompositorError(f"genMosaic: Failed to run ({exc})") from exc
        _log(f"Started ffmpeg with {self._argv.count('-i')} inputs")

    def read_chunk(self) -> bytes:
        process = self._process
        if process is None or process.stdout is None:
            return b""
        return process.stdout.read(self._chunk_size)

    def chunks(self) -> Iterator[bytes]:
        while True:
            chunk = self.read_chunk()
            if not chunk:
                return
            yield chunk

    def wait(self) -> int:
        process = self._process
        if process is None:
            return -1
        return process.wait()

    def close(self) -> None:
        process = self._process
        self._process = None
        if process is None:
            return
        if process.poll() is None:
            process.kill()
        if process.stdout is not None:
            process.stdout.close()
        process.wait()


class MosaicStream:
    """Iterable JPEG body backed by a running ffmpeg process."""

    content_type = MOSAIC_CONTENT_TYPE

    def __init__(self, process: FfmpegProcess, first_chunk: bytes) -> None:
        self._process = process
        self._first_chunk = first_chunk

    def __iter__(self) -> Iterator[bytes]:
        try:
            yield self._first_chunk
            yield from self._process.chunks()
            returncode = self._process.wait()
            if returncode != 0:
                # Bytes already went out; the client sees a truncated image.
                logger.warning("ffmpeg exited with %s after streaming", returncode)
        finally:
            self._process.close()

    def close(self) -> None:
        self._process.close()


def composite(
    images: Sequence[CanonicalImage], *, ffmpeg: str | None
) -> MosaicRedirect | MosaicStream:
    """Stack ``images`` vertically into one JPEG.

    A single image is not composited; the caller redirects to it instead.
    """
    if not images:
        raise CompositorError("genMosaic: No images")
    if len(images) == 1:
        return MosaicRedirect(url=images[0].url)
    if not ffmpeg:
        raise CompositorError("genMosaic: ffmpeg is not available")

    process = FfmpegProcess(build_ffmpeg_args(images, ffmpeg=ffmpeg))
    process.start()
    try:
        first_chunk = process.read_chunk()
        if not first_chunk:
            returncode = process.wait()
            raise CompositorError(
                f"genMosaic: Failed to run (ffmpeg exited with {returncode})"
            )
    except BaseException:
        process.close()
        raise
    return MosaicStream(process, first_chunk)
