from __future__ import annotations

import importlib.util
import logging
import os
import shutil
import subprocess
import sys
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

DISABLE_TTS_ENV = "HANZI_DISABLE_TTS"
TTS_BACKEND_ENV = "HANZI_TTS_BACKEND"
TTS_VOICE_ENV = "HANZI_TTS_VOICE"

SUPPORTED_BACKENDS = ("pyttsx3-subprocess", "say", "powershell", "espeak")


class Speaker(Protocol):
    def speak(self, text: str) -> None: ...


class NullSpeaker:
    """Speaker used when audio is disabled or unavailable."""

    def speak(self, text: str) -> None:
        _ = text

    def update(self) -> None:
        pass

    def stop(self) -> None:
        pass


class OfflineTtsSpeaker:
    """Best-effort offline TTS via isolated subprocesses.

    At most one utterance is audible: a new request terminates whatever is
    still playing and replaces anything not yet launched. Launches happen
    from ``update()`` on the UI loop, so ``speak()`` never blocks.
    """

    _max_utterance_s = 8.0
    _kill_after_s = 0.5

    def __init__(
        self,
        *,
        backends: Sequence[str] | None = None,
        voice: str | None = None,
        popen: Callable[..., Any] = subprocess.Popen,
    ) -> None:
        self._enabled = False
        self._backends: list[str] = []
        self._backend: str | None = None
        self._voice = (os.environ.get(TTS_VOICE_ENV, "") if voice is None else voice).strip()
        self._popen = popen
        self._pending: str | None = None
        self._active_proc: Any | None = None
        self._active_started_s = 0.0
        self._stopping: list[tuple[Any, float]] = []

        if backends is None:
            if os.environ.get(DISABLE_TTS_ENV, "0") == "1":
                logger.info("Speech disabled via %s", DISABLE_TTS_ENV)
                return
            if os.environ.get("SDL_AUDIODRIVER", "").strip().lower() == "dummy":
                # Keep automated/headless runs silent and stable.
                return
            backends = self._resolve_backends()

        self._backends = [name for name in backends if name in SUPPORTED_BACKENDS]
        self._backend = self._backends[0] if self._backends else None
        self._enabled = self._backend is not None
        if self._enabled:
            logger.info("Speech backend: %s", self._backend)
        else:
            logger.warning("No offline speech backend available; pronunciation will not be spoken")

    @property
    def enabled(self) -> bool:
        return bool(self._enabled)

    @property
    def backend(self) -> str | None:
        return self._backend

    @property
    def pending_count(self) -> int:
        active = 1 if self._active_proc is not None else 0
        return active + (0 if self._pending is None else 1)

    def speak(self, text: str) -> None:
        if not self._enabled:
            return
        phrase = " ".join(str(text).strip().split())
        if phrase == "":
            return
        self._cancel_active()
        self._pending = phrase

    def update(self) -> None:
        self._reap_stopping()
        if not self._enabled:
            return

        proc = self._active_proc
        if proc is not None:
            if proc.poll() is None:
                if (time.monotonic() - self._active_started_s) > self._max_utterance_s:
                    self._cancel_active()
            else:
                self._active_proc = None

        if self._active_proc is not None or self._pending is None:
            return

        while self._pending is not None and self._enabled:
            launched = self._launch_process(self._pending)
            if launched is not None:
                self._pending = None
                self._active_proc = launched
                self._active_started_s = time.monotonic()
                return
            self._drop_current_backend()

        self._pending = None

    def stop(self) -> None:
        self._pending = None
        self._cancel_active()

    def _cancel_active(self) -> None:
        """Signal the active utterance to stop; ``update()`` reaps it later."""
        proc = self._active_proc
        self._active_proc = None
        if proc is None:
            return
        try:
            proc.terminate()
        except OSError:
            return
        self._stopping.append((proc, time.monotonic()))

    def _reap_stopping(self) -> None:
        still_running: list[tuple[Any, float]] = []
        for proc, terminated_at_s in self._stopping:
            if proc.poll() is not None:
                continue
            if (time.monotonic() - terminated_at_s) > self._kill_after_s:
                try:
                    proc.kill()
                except OSError:
                    pass
                continue
            still_running.append((proc, terminated_at_s))
        self._stopping = still_running

    @staticmethod
    def _resolve_backends() -> list[str]:
        forced = os.environ.get(TTS_BACKEND_ENV, "").strip().lower()
        if forced in SUPPORTED_BACKENDS and OfflineTtsSpeaker._backend_available(forced):
            return [forced]

        candidates: list[str] = []
        if sys.platform == "darwin":
            candidates.append("say")
        if os.name == "nt":
            candidates.append("powershell")
        candidates.extend(("pyttsx3-subprocess", "espeak"))

        resolved: list[str] = []
        for name in candidates:
            if name not in resolved and OfflineTtsSpeaker._backend_available(name):
                resolved.append(name)
        return resolved

    @staticmethod
    def _backend_available(name: str) -> bool:
        if name == "say":
            return (shutil.which("say") is not None) or Path("/usr/bin/say").exists()
        if name == "powershell":
            return (shutil.which("powershell") is not None) or (shutil.which("pwsh") is not None)
        if name == "pyttsx3-subprocess":
            return importlib.util.find_spec("pyttsx3") is not None
        if name == "espeak":
            return shutil.which("espeak") is not None
        return False

    def _drop_current_backend(self) -> None:
        backend = self._backend
        logger.warning("Speech backend %s failed to launch; dropping it", backend)
        self._backends = [name for name in self._backends if name != backend]
        self._backend = self._backends[0] if self._backends else None
        self._enabled = self._backend is not None

    def _command_for(self, backend: str, text: str) -> list[str] | None:
        if backend == "pyttsx3-subprocess":
            script = (
                "import sys\n"
                "txt=' '.join(sys.argv[2:]).strip()\n"
                "voice=sys.argv[1]\n"
                "import pyttsx3\n"
                "e=pyttsx3.init()\n"
                "e.setProperty('rate', 160)\n"
                "if voice:\n"
                "    e.setProperty('voice', voice)\n"
                "e.say(txt)\n"
                "e.runAndWait()\n"
            )
            return [sys.executable, "-c", script, self._voice, text]

        if backend == "say":
            cmd = [shutil.which("say") or "/usr/bin/say", "-r", "160"]
            if self._voice:
                cmd.extend(("-v", self._voice))
            return [*cmd, text]

        if backend == "powershell":
            ps_bin = shutil.which("powershell") or shutil.which("pwsh")
            if ps_bin is None:
                return None
            script = (
                "Add-Type -AssemblyName System.Speech; "
                "$s=New-Object System.Speech.Synthesis.SpeechSynthesizer; "
                "$s.Rate=0; "
                "$txt=($args -join ' '); "
                "$s.Speak($txt);"
            )
            return [ps_bin, "-NoProfile", "-NonInteractive", "-Command", script, text]

        if backend == "espeak":
            return ["espeak", "-s", "160", "-v", self._voice or "cmn", text]
        return None

    def _launch_process(self, text: str) -> Any | None:
        backend = self._backend
        if backend is None:
            return None
        cmd = self._command_for(backend, text)
        if cmd is None:
            return None
        try:
            return self._popen(cmd, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL)
        except OSError:
            logger.debug("Failed to start %s", backend, exc_info=True)
            return None


def build_speaker() -> OfflineTtsSpeaker | NullSpeaker:
    speaker = OfflineTtsSpeaker()
    return speaker if speaker.enabled else NullSpeaker()
