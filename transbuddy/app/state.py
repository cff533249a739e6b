from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RecordingState(str, Enum):
    IDLE = "idle"
    LISTENING = "listening"
    FINALIZING = "finalizing"
    ERROR = "error"


@dataclass
class RecordingStateTracker:
    state: RecordingState = RecordingState.IDLE
    last_error: str | None = None

    @property
    def is_recording(self) -> bool:
        return self.state == RecordingState.LISTENING

    def set_listening(self) -> None:
        self.state = RecordingState.LISTENING
        self.last_error = None

    def set_finalizing(self) -> None:
        if self.state == RecordingState.LISTENING:
            self.state = RecordingState.FINALIZING

    def set_idle(self) -> None:
        self.state = RecordingState.IDLE

    def set_error(self, detail: str) -> None:
        self.state = RecordingState.ERROR
        self.last_error = detail
