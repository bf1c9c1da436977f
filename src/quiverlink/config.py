"""Configuration settings for quiverlink.

Workspace layout (relative paths resolve against the workspace root):
- images/: rendered diagram artifacts
- .quiverlink/cache.json: url -> artifact records
- .quiverlink/logs/: JSONL run logs
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="QUIVERLINK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # State directory for cache and logs (default: .quiverlink under the workspace root)
    state_dir: Path = Field(default=Path(".quiverlink"))

    # Where rendered artifacts are written
    images_dir: Path = Field(default=Path("images"))

    # Cache file; defaults to <state_dir>/cache.json
    cache_file: Path | None = None

    # Renderer: "svg" (built in) or "command" (external program)
    renderer: str = "svg"
    render_command: list[str] = Field(default_factory=list)
    render_timeout: float = 60.0

    # Artifact extension; defaults to the renderer's native format
    image_format: str | None = None

    # Write JSONL run logs under <state_dir>/logs
    write_run_log: bool = True

    @field_validator("renderer")
    @classmethod
    def _known_renderer(cls, value: str) -> str:
        value = value.strip().lower()
        if value not in ("svg", "command"):
            msg = f"unknown renderer '{value}' (expected 'svg' or 'command')"
            raise ValueError(msg)
        return value

    def state_path(self, root: Path) -> Path:
        """Absolute state directory for a workspace."""
        return root / self.state_dir

    def cache_path(self, root: Path) -> Path:
        """Absolute cache file path for a workspace."""
        if self.cache_file is not None:
            return root / self.cache_file
        return self.state_path(root) / "cache.json"

    def images_path(self, root: Path) -> Path:
        """Absolute artifact directory for a workspace."""
        return root / self.images_dir

    @property
    def artifact_extension(self) -> str:
        if self.image_format:
            return self.image_format.lstrip(".")
        return "svg" if self.renderer == "svg" else "png"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings cache (useful for testing)."""
    global _settings
    _settings = None
