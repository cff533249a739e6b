from __future__ import annotations

from dataclasses import dataclass


@dataclass
class TranscriptState:
    final_text: str = ""
    interim_text: str = ""
    last_dispatched_length: int = 0
    translated_text: str = ""

    def reset(self) -> None:
        self.final_text = ""
        self.interim_text = ""
        self.last_dispatched_length = 0
        self.translated_text = ""

    def append_final(self, text: str) -> str:
        text = (text or "").strip()
        if text:
            self.final_text = f"{self.final_text} {text}" if self.final_text else text
        self.interim_text = ""
        return self.final_text

    def with_interim(self) -> str:
        """Final text followed by the current interim fragment."""
        return " ".join(part for part in (self.final_text, self.interim_text.strip()) if part)

    def new_suffix(self, result: str, min_growth: int = 5) -> str:
        """
        Text appended to the translation since the last spoken update.

        Returns "" (and keeps the mark) unless the result grew by more than
        `min_growth` characters; shrinking or rewritten results never yield
        a negative slice.
        """
        if len(result) <= self.last_dispatched_length + min_growth:
            return ""
        suffix = result[self.last_dispatched_length:].strip()
        self.last_dispatched_length = len(result)
        return suffix
