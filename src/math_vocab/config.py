"""Configuration management with environment variables and .env overrides."""

from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.console import Console
from rich.table import Table

# ---------------------------------------------------------------------------
# Sub-config models
# ---------------------------------------------------------------------------


class RecognitionConfig(BaseSettings):
    """Term recognition confidence heuristics."""

    model_config = SettingsConfigDict(env_prefix="RECOGNITION_")

    base_confidence: float = Field(default=0.6, description="Starting confidence for every match")
    context_window: int = Field(
        default=20, description="Characters inspected on each side for math context"
    )
    math_context_bonus: float = Field(
        default=0.2, description="Bonus when math symbols/keywords surround the match"
    )
    math_markup_bonus: float = Field(default=0.15, description="Bonus inside $...$ or \\begin{...}")
    emphasis_bonus: float = Field(default=0.1, description="Bonus inside emphasis or headings")
    list_bonus: float = Field(default=0.05, description="Bonus inside a list item")
    long_term_bonus: float = Field(default=0.05, description="Bonus for long term names")
    long_term_length: int = Field(default=3, description="Name length that counts as long")
    alias_factor: float = Field(
        default=0.9, description="Multiplier applied to alias matches"
    )
    usage_boost_per_use: float = Field(
        default=0.01, description="Confidence boost per recorded historical use"
    )
    usage_boost_cap: float = Field(default=0.2, description="Maximum usage-based boost")


class RankingConfig(BaseSettings):
    """Suggestion ranking weights and feedback behaviour."""

    model_config = SettingsConfigDict(env_prefix="RANKING_")

    relevance_weight: float = Field(default=0.30, description="Default relevance weight")
    context_weight: float = Field(default=0.25, description="Default context weight")
    preference_weight: float = Field(default=0.20, description="Default preference weight")
    quality_weight: float = Field(default=0.15, description="Default quality weight")
    novelty_weight: float = Field(default=0.10, description="Default novelty weight")

    # Feedback drift bounds
    weight_min: float = Field(default=0.05, description="Lower clamp for any single weight")
    weight_max: float = Field(default=0.5, description="Upper clamp for any single weight")
    feedback_step: float = Field(default=0.01, description="Weight nudge per feedback record")
    feedback_history_size: int = Field(
        default=100, description="Feedback records kept per query prefix"
    )

    # Re-ranking passes
    category_diversity_bonus: float = Field(
        default=0.1, description="Bonus for a category not yet seen higher in the list"
    )
    type_diversity_bonus: float = Field(
        default=0.05, description="Bonus for a suggestion type not yet seen higher in the list"
    )
    personalization_cap: float = Field(
        default=0.1, description="Maximum combined personalization nudge"
    )

    # Response cache
    cache_size: int = Field(default=128, description="Cached rankings (0 disables the cache)")
    cache_ttl_seconds: float = Field(default=300.0, description="Seconds a cached ranking stays valid")


# ---------------------------------------------------------------------------
# Main AppConfig with SECTIONS registry
# ---------------------------------------------------------------------------

# Maps section key → AppConfig attribute name.
SECTIONS: dict[str, str] = {
    "recognition": "recognition",
    "ranking": "ranking",
}


class AppConfig(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", description="Logging level")
    dictionary_path: Optional[Path] = Field(
        default=None, description="CSV dictionary to use instead of the built-in one"
    )

    # Sub-configs
    recognition: RecognitionConfig = Field(default_factory=RecognitionConfig)
    ranking: RankingConfig = Field(default_factory=RankingConfig)

    @classmethod
    def load(cls, env_file: Optional[Path] = None) -> "AppConfig":
        """Load configuration from environment and .env file."""
        from dotenv import load_dotenv

        if env_file and env_file.exists():
            load_dotenv(env_file)
        else:
            # Try to find .env in current directory or parent directories
            load_dotenv()

        return cls(
            recognition=RecognitionConfig(),
            ranking=RankingConfig(),
        )


# ---------------------------------------------------------------------------
# Global config singleton
# ---------------------------------------------------------------------------

_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.load()
    return _config


def set_config(config: AppConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config


def print_config_summary(
    config: Optional[AppConfig] = None, console: Optional[Console] = None
) -> None:
    """Print every configuration section as a table.

    Args:
        config: Configuration to show (defaults to the global instance)
        console: Console to print to (defaults to a new stdout console)
    """
    app_config = config or get_config()
    console = console or Console()

    console.print("\n[bold blue]=== math-vocab Configuration ===[/bold blue]")

    table = Table(show_header=True, header_style="bold blue")
    table.add_column("Section", style="cyan", width=12)
    table.add_column("Setting", style="green")
    table.add_column("Value", style="magenta", justify="right")
    table.add_column("Env", style="dim")

    for section, attr in SECTIONS.items():
        sub = getattr(app_config, attr)
        prefix = sub.model_config.get("env_prefix", "")
        for name, value in sub.model_dump().items():
            table.add_row(section, name, str(value), f"{prefix}{name.upper()}")

    console.print(table)
    console.print()
