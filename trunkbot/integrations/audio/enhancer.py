"""
Optional audio enhancement through an external denoiser (e.g. DeepFilterNet's ``deep-filter``).

Enhancement never blocks or fails a call: on timeout or any error the
original audio is returned unchanged.
"""

import asyncio
import tempfile
from pathlib import Path
from typing import Optional

from trunkbot.utils.logger import get_module_logger

logger = get_module_logger(__name__)


class AudioEnhancer:
    """Runs ``{command} --pf -v -o <out_dir> <input>`` on a temporary copy of the audio."""

    def __init__(self, command: Optional[str], timeout: float = 5.0):
        self.command = command
        self.timeout = timeout
        self.enabled = bool(command)

    async def enhance(self, audio: bytes, filename: str = "call.wav") -> bytes:
        """
        Denoise call audio.

        Args:
            audio: Original call audio
            filename: Name used for the temporary file (keeps the extension the tool expects)

        Returns:
            Enhanced audio, or ``audio`` unchanged when disabled, timed out or failed
        """
        if not self.enabled:
            return audio

        try:
            return await asyncio.wait_for(self._run(audio, Path(filename).name), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Audio enhancement timed out after {self.timeout}s for {filename}, using original audio")
        except (OSError, RuntimeError) as e:
            logger.warning(f"Audio enhancement failed for {filename}, using original audio: {e}")
        return audio

    async def _run(self, audio: bytes, name: str) -> bytes:
        with tempfile.TemporaryDirectory(prefix="trunkbot-") as work_dir:
            input_path = Path(work_dir) / name
            output_dir = Path(work_dir) / "out"
            output_dir.mkdir()
            input_path.write_bytes(audio)

            process = await asyncio.create_subprocess_exec(
                self.command, "--pf", "-v", "-o", str(output_dir), str(input_path),
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
            try:
                _, stderr = await process.communicate()
            except asyncio.CancelledError:
                process.kill()
                await process.wait()
                raise

            if process.returncode != 0:
                raise RuntimeError(
                    f"{self.command} exited with {process.returncode}: {stderr.decode(errors='replace').strip()}"
                )

            output_path = output_dir / name
            if not output_path.exists():
                raise RuntimeError(f"{self.command} produced no output for {name}")
            return output_path.read_bytes()
