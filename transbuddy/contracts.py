from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

@dataclass(frozen=True)
class TranslationRequest:
    text: str
    # "auto" lets the provider detect; provider-facing requests carry None instead
    source_lang: Optional[str] = "auto"
    target_lang: str = "en"
    is_interim: bool = False

@dataclass(frozen=True)
class TranslationResult:
    source_text: str
    translated_text: str
    provider: str
    source_lang: Optional[str] = None
    target_lang: Optional[str] = None

@dataclass(frozen=True)
class TranslationOutcome:
    request: TranslationRequest
    text: str
    is_fallback: bool = False

@dataclass(frozen=True)
class ASRSegment:
    text: str
    t0: float
    t1: float
    is_final: bool = True
    language: Optional[str] = None

@dataclass(frozen=True)
class AudioChunk:
    """
    Raw PCM16 audio chunk captured from a live source (e.g., microphone).
    pcm16: little-endian signed 16-bit PCM bytes (interleaved if channels > 1).
    """
    pcm16: bytes
    sample_rate: int
    channels: int
    start_time: float  # seconds since stream start
    duration: float    # seconds
