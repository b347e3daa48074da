"""
External render invocation through the Remotion CLI.
"""

import logging
import os
import subprocess
import tempfile
import time
from typing import List, Optional

from config import (
    COMPOSITION_ID,
    REMOTION_PROJECT_DIR,
    RENDER_COMMAND,
    RENDER_MAX_OUTPUT_BYTES,
    RENDER_TIMEOUT_SECONDS,
)
from services.errors import RenderError


class RemotionRunner:
    """Renders an entry point to a video file with `remotion render`."""

    def __init__(
        self,
        command: Optional[List[str]] = None,
        project_dir: str = REMOTION_PROJECT_DIR,
        composition_id: str = COMPOSITION_ID,
        timeout: float = RENDER_TIMEOUT_SECONDS,
        max_output_bytes: int = RENDER_MAX_OUTPUT_BYTES,
        poll_interval: float = 0.5,
    ):
        self.command = list(command or RENDER_COMMAND)
        self.project_dir = project_dir
        self.composition_id = composition_id
        self.timeout = timeout
        self.max_output_bytes = max_output_bytes
        self.poll_interval = poll_interval

    def _build_command(self, entry_point: str, output_path: str) -> List[str]:
        return self.command + [entry_point, self.composition_id, output_path]

    @staticmethod
    def _read_tail(stream, limit: int = 4096) -> str:
        size = stream.seek(0, os.SEEK_END)
        stream.seek(max(0, size - limit))
        return stream.read().decode("utf-8", errors="replace").strip()

    def _check_output_size(self, stdout, stderr) -> None:
        if stdout.seek(0, os.SEEK_END) + stderr.seek(0, os.SEEK_END) > self.max_output_bytes:
            logging.error("❌ Remotion output exceeded its bound, stopping the render.")
            raise RenderError(f"Renderer output exceeded {self.max_output_bytes} bytes.")

    def _wait(self, process, stdout, stderr) -> int:
        """Wait for the renderer while enforcing the timeout and the output bound."""
        deadline = time.monotonic() + self.timeout
        while True:
            try:
                returncode = process.wait(timeout=self.poll_interval)
            except subprocess.TimeoutExpired:
                returncode = None
            self._check_output_size(stdout, stderr)
            if returncode is not None:
                return returncode
            if time.monotonic() >= deadline:
                logging.error("❌ Remotion rendering timed out.")
                raise RenderError(f"Rendering timed out after {int(self.timeout)} seconds.")

    def render(self, entry_point: str, output_path: str) -> str:
        os.makedirs(os.path.dirname(output_path), exist_ok=True)
        command = self._build_command(entry_point, output_path)
        logging.info(f"🎬 Running Remotion command: {' '.join(command)}")

        with tempfile.TemporaryFile() as stdout, tempfile.TemporaryFile() as stderr:
            try:
                process = subprocess.Popen(
                    command,
                    cwd=self.project_dir,
                    stdout=stdout,
                    stderr=stderr,
                    env=os.environ.copy(),
                )
            except OSError as e:
                raise RenderError(f"Could not start renderer: {e}") from e

            try:
                returncode = self._wait(process, stdout, stderr)
            finally:
                if process.poll() is None:
                    process.kill()
                    process.wait()

            error_output = self._read_tail(stderr)
            if returncode != 0:
                logging.error(f"❌ Remotion rendering failed. Stderr:\n{error_output}")
                last_line = error_output.splitlines()[-1] if error_output else "Unknown Remotion error"
                raise RenderError(f"Remotion rendering failed: {last_line}")

            if error_output:
                logging.warning(f"Render warnings: {error_output}")

        if not os.path.exists(output_path):
            raise RenderError("Video file was not generated")

        logging.info("✅ Remotion rendering completed successfully!")
        return output_path
