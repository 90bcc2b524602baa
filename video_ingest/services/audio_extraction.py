import asyncio
import logging
import os
import subprocess

from video_ingest.core.errors import AudioExtractionFailed

logger = logging.getLogger(__name__)


class AudioExtractor:
    """
    Extracts a speech-ready audio track from a video container using FFmpeg.

    The output is a mono, low-bitrate MP3: small enough for transcription
    upload limits and plenty for speech.
    """

    def __init__(self, ffmpeg_binary: str = "ffmpeg", sample_rate: int = 16000, bitrate: str = "32k"):
        self.ffmpeg_binary = ffmpeg_binary
        self.sample_rate = sample_rate
        self.bitrate = bitrate

    def build_command(self, video_path: str, audio_path: str) -> list:
        # -y   → overwrite output if exists
        # -vn  → drop the video stream
        # -ac  → mono is enough for speech
        # -ar  → 16 kHz, the rate speech models work at
        # -b:a → bitrate keeps long talks under upload limits
        return [
            self.ffmpeg_binary,
            "-y",
            "-i", video_path,
            "-vn",
            "-ac", "1",
            "-ar", str(self.sample_rate),
            "-b:a", self.bitrate,
            "-f", "mp3",
            audio_path,
        ]

    def _run(self, video_path: str, audio_path: str) -> str:
        if not video_path:
            raise AudioExtractionFailed("Video path is missing")

        if not os.path.exists(video_path):
            raise AudioExtractionFailed(f"Video file does not exist: {video_path}")

        try:
            subprocess.run(
                self.build_command(video_path, audio_path),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                check=True,
            )
        except subprocess.CalledProcessError as e:
            error_msg = e.stderr.decode(errors="replace") if e.stderr else str(e)
            raise AudioExtractionFailed(f"FFmpeg failed to extract audio: {error_msg}") from e
        except FileNotFoundError as e:
            raise AudioExtractionFailed(f"FFmpeg binary not found: {self.ffmpeg_binary}") from e

        if not os.path.exists(audio_path):
            raise AudioExtractionFailed("Audio extraction failed, output file not found")

        return audio_path

    async def extract(self, video_path: str, audio_path: str) -> str:
        """Transcode `video_path` to MP3 at `audio_path`. All-or-nothing."""
        await asyncio.to_thread(self._run, video_path, audio_path)
        logger.info(f"Extracted audio to: {audio_path}")
        return audio_path
