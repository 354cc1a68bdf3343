from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    data_dir: Path = Path.home() / ".cardsmith"
    sqlite_filename: str = "cardsmith.db"
    ollama_url: str = "http://localhost:11434/api/generate"
    ollama_model: str = "llama3.2"
    generation_timeout: float = 300.0  # seconds, per file
    markdown_extensions: tuple[str, ...] = (".md", ".markdown")
    revisit_intervals: tuple[int, ...] = (1, 3, 7, 9)
    show_progress: bool = True
    log_level: str = "INFO"

    model_config = {"env_prefix": "CARDSMITH_", "env_file": ".env", "extra": "ignore"}

    @field_validator("ollama_url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError(f"ollama_url must be an http(s) URL, got {value!r}")
        return value

    @field_validator("revisit_intervals")
    @classmethod
    def _check_intervals(cls, value: tuple[int, ...]) -> tuple[int, ...]:
        if not value or any(v < 1 for v in value):
            raise ValueError("revisit_intervals must be a non-empty set of positive day counts")
        return tuple(sorted(set(value)))

    @field_validator("markdown_extensions")
    @classmethod
    def _normalize_extensions(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(ext.lower() if ext.startswith(".") else f".{ext.lower()}" for ext in value)

    @property
    def sqlite_path(self) -> Path:
        return self.data_dir / self.sqlite_filename


def load_settings(**overrides) -> Settings:
    return Settings(**overrides)
