"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional, Sequence

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .domain.exceptions import ConfigurationError, InputError
from .domain.models import DEFAULT_MAX_RESULTS, WorkingHours


class DefaultsConfig(BaseModel):
    """Default settings for search."""
    duration_minutes: int = 30
    max_results: int = DEFAULT_MAX_RESULTS
    # Kept as strings: unparsable values fall back to 09:00-17:00
    working_hours_start: str = "09:00"
    working_hours_end: str = "17:00"

    @field_validator("duration_minutes", "max_results")
    @classmethod
    def validate_positive(cls, value: int) -> int:
        """Ensure counts and durations are positive."""
        if value <= 0:
            raise ValueError(f"must be greater than zero, got {value}")
        return value

    def working_hours(self) -> WorkingHours:
        """Get the configured working hours."""
        return WorkingHours.parse(self.working_hours_start, self.working_hours_end)


class Colleague(BaseModel):
    """Colleague whose calendar can be checked."""
    name: str  # Used as alias
    email: str


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "Europe/Berlin"
    graph_base_url: str = "https://graph.microsoft.com/v1.0"
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    colleagues: List[Colleague] = Field(default_factory=list)

    @field_validator("colleagues")
    @classmethod
    def validate_colleagues(cls, value: List[Colleague]) -> List[Colleague]:
        """Ensure colleague aliases are unique."""
        seen_names: set[str] = set()
        for colleague in value:
            name_key = colleague.name.lower()
            if name_key in seen_names:
                raise ValueError(f"Duplicate colleague name detected: {colleague.name}")
            seen_names.add(name_key)
        return value

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            ConfigurationError: If the file is missing, unreadable or invalid
        """
        if not config_path.exists():
            raise ConfigurationError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigurationError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ConfigurationError("Config file must contain a mapping at the root level.")

        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigurationError(f"Invalid configuration in {config_path}:\n{exc}") from exc

    def find_colleague_by_name(self, name: str) -> Colleague | None:
        """Find a colleague by their name (alias)."""
        for colleague in self.colleagues:
            if colleague.name.lower() == name.lower():
                return colleague
        return None

    def resolve_participant(self, identifier: str) -> str:
        """
        Resolve a participant identifier (alias or email) to a calendar id.

        Raises:
            InputError: If identifier cannot be resolved
        """
        if "@" in identifier:
            return identifier.lower()

        colleague = self.find_colleague_by_name(identifier)
        if colleague:
            return colleague.email.lower()

        raise InputError(
            f"Unknown participant identifier: '{identifier}'. "
            f"Use an email address or a configured name."
        )

    def resolve_participants(self, identifiers: Sequence[str]) -> List[str]:
        """Resolve several identifiers, reporting all unknown ones at once."""
        resolved: List[str] = []
        unknown: List[str] = []

        for identifier in identifiers:
            try:
                email = self.resolve_participant(identifier)
            except InputError:
                unknown.append(identifier)
                continue

            if email not in resolved:
                resolved.append(email)

        if unknown:
            missing = ", ".join(sorted(set(unknown)))
            raise InputError(
                f"Unknown participant identifier(s): {missing}. "
                "Ensure they exist in the configuration or provide valid email addresses."
            )

        return resolved


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """
    Load the configuration.

    An explicitly given path must exist. Without one, the default location
    is used if present and built-in defaults otherwise.
    """
    if config_path is not None:
        return AppConfig.load_from_yaml(config_path)

    default_path = get_default_config_path()
    if default_path.exists():
        return AppConfig.load_from_yaml(default_path)

    return AppConfig()
