"""Wrapper around the chromaprint ``fpcalc`` binary."""

from __future__ import annotations

import json
import subprocess

from metadata.errors import FingerprintError


class FpcalcFingerprinter:
    """Generate acoustic fingerprints by running ``fpcalc -json``."""

    def __init__(self, fpcalc_path: str = "fpcalc", *, timeout: int = 60) -> None:
        self.fpcalc_path = fpcalc_path
        self.timeout = timeout

    def generate_fingerprint(self, file_path: str) -> tuple[str, int]:
        """Return ``(fingerprint, duration_seconds)`` for ``file_path``.

        Raises:
            FingerprintError: If ``fpcalc`` is missing, fails, times out, or
                prints output without a fingerprint.
        """
        command = [self.fpcalc_path, "-json", file_path]
        try:
            completed = subprocess.run(
                command,
                capture_output=True,
                text=True,
                check=True,
                timeout=self.timeout,
            )
        except FileNotFoundError as exc:
            raise FingerprintError("fpcalc is not installed or not available in PATH") from exc
        except subprocess.TimeoutExpired as exc:
            raise FingerprintError(f"fpcalc timed out while fingerprinting: {file_path}") from exc
        except subprocess.CalledProcessError as exc:
            stderr_text = (exc.stderr or "").strip()
            raise FingerprintError(f"fpcalc failed for {file_path}: {stderr_text or exc}") from exc

        try:
            payload = json.loads(completed.stdout or "{}")
        except json.JSONDecodeError as exc:
            raise FingerprintError(f"fpcalc returned invalid JSON for {file_path}") from exc

        fingerprint = payload.get("fingerprint")
        if not fingerprint:
            raise FingerprintError(f"fpcalc did not return a fingerprint for {file_path}")
        try:
            duration = int(float(payload.get("duration") or 0))
        except (TypeError, ValueError):
            duration = 0
        return str(fingerprint), duration
