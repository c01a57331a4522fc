"""Environment-driven configuration.

Sections mirror how the rest of the code reads settings, e.g.
``config.ai.openai_model`` or ``config.audio.commit_every_chunks``.
A ``.env`` file in the working directory is loaded first if present.
"""

import os
from dataclasses import dataclass, field
from typing import Mapping, Optional

from dotenv import load_dotenv

from callbridge.core.constants import AudioConstants


def _get_int(env: Mapping[str, str], name: str, default: int, minimum: int = 0) -> int:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from e
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _get_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError as e:
        raise ValueError(f"{name} must be a number, got {raw!r}") from e
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return value


@dataclass
class SystemConfig:
    """Logging settings."""

    log_level: str = "INFO"
    log_format: str = "console"  # console | json


@dataclass
class AIConfig:
    """Realtime model connection settings."""

    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-realtime-preview"
    realtime_url: str = "wss://api.openai.com/v1/realtime"
    agent_prompt_file: Optional[str] = None
    connect_timeout: float = 10.0
    response_modalities: tuple[str, ...] = ("audio", "text")


@dataclass
class AudioConfig:
    """Audio format and turn-taking settings."""

    telephony_sr: int = AudioConstants.TELEPHONY_SAMPLE_RATE
    model_sr: int = AudioConstants.MODEL_SAMPLE_RATE
    commit_every_chunks: int = AudioConstants.COMMIT_EVERY_CHUNKS
    pending_output_max_frames: int = AudioConstants.PENDING_OUTPUT_MAX_FRAMES


@dataclass
class ServerConfig:
    """Inbound listener settings."""

    host: str = "0.0.0.0"
    port: int = 8080
    ws_path: str = "/ws/twilio"
    start_timeout: float = 30.0  # 0 disables the deadline


@dataclass
class Config:
    """Application configuration."""

    system: SystemConfig = field(default_factory=SystemConfig)
    ai: AIConfig = field(default_factory=AIConfig)
    audio: AudioConfig = field(default_factory=AudioConfig)
    server: ServerConfig = field(default_factory=ServerConfig)

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Config":
        """Build configuration from environment variables.

        Args:
            env: Mapping to read from (defaults to ``os.environ``)

        Returns:
            Config instance

        Raises:
            ValueError: If a value is malformed or out of range
        """
        if env is None:
            env = os.environ

        log_format = env.get("LOG_FORMAT", "console").lower()
        if log_format not in ("console", "json"):
            raise ValueError(f"LOG_FORMAT must be 'console' or 'json', got {log_format!r}")

        modalities = tuple(
            m.strip() for m in env.get("RESPONSE_MODALITIES", "audio,text").split(",") if m.strip()
        )
        unknown = set(modalities) - {"audio", "text"}
        if not modalities or unknown:
            raise ValueError(f"RESPONSE_MODALITIES must list audio and/or text, got {modalities}")

        ws_path = env.get("WS_PATH", "/ws/twilio")
        if not ws_path.startswith("/"):
            raise ValueError(f"WS_PATH must start with '/', got {ws_path!r}")

        return cls(
            system=SystemConfig(
                log_level=env.get("LOG_LEVEL", "INFO"),
                log_format=log_format,
            ),
            ai=AIConfig(
                openai_api_key=env.get("OPENAI_API_KEY") or None,
                openai_model=env.get("OPENAI_REALTIME_MODEL") or AIConfig.openai_model,
                realtime_url=env.get("OPENAI_REALTIME_URL") or AIConfig.realtime_url,
                agent_prompt_file=env.get("AGENT_PROMPT_FILE") or None,
                connect_timeout=_get_float(env, "CONNECT_TIMEOUT", AIConfig.connect_timeout),
                response_modalities=modalities,
            ),
            audio=AudioConfig(
                telephony_sr=_get_int(env, "TELEPHONY_SAMPLE_RATE", AudioConstants.TELEPHONY_SAMPLE_RATE, 1),
                model_sr=_get_int(env, "MODEL_SAMPLE_RATE", AudioConstants.MODEL_SAMPLE_RATE, 1),
                commit_every_chunks=_get_int(env, "COMMIT_EVERY_CHUNKS", AudioConstants.COMMIT_EVERY_CHUNKS, 1),
                pending_output_max_frames=_get_int(
                    env, "PENDING_OUTPUT_MAX_FRAMES", AudioConstants.PENDING_OUTPUT_MAX_FRAMES, 1
                ),
            ),
            server=ServerConfig(
                host=env.get("HOST", "0.0.0.0"),
                port=_get_int(env, "PORT", ServerConfig.port, 0),
                ws_path=ws_path,
                start_timeout=_get_float(env, "START_TIMEOUT", ServerConfig.start_timeout),
            ),
        )


load_dotenv()
config = Config.from_env()
