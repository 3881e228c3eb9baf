"""
Configuration management using Pydantic models loaded from YAML.
"""

import datetime
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.models import AvailabilityTemplate, BreakPeriod, PastDatePolicy
from .domain.time_arithmetic import is_valid_time, to_minutes


def _check_time(value: str) -> str:
    if not is_valid_time(value):
        raise ValueError(f"Time must be in HH:mm format, got {value!r}")
    return value


class BreakConfig(BaseModel):
    """A recurring break applied to every generated day."""
    start_time: str
    end_time: str
    label: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _check_time(value)

    @model_validator(mode="after")
    def validate_order(self) -> "BreakConfig":
        if self.end_time <= self.start_time:
            raise ValueError(f"Break {self.start_time}-{self.end_time} must end after it starts")
        return self

    def to_domain(self) -> BreakPeriod:
        return BreakPeriod(
            start=to_minutes(self.start_time),
            end=to_minutes(self.end_time),
            label=self.label,
        )


class DefaultsConfig(BaseModel):
    """Default working hours for ad hoc slot generation."""
    start_time: str = "09:00"
    end_time: str = "17:00"
    slot_duration: int = 30
    grace_period: int = 0
    buffer_minutes: int = 0

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _check_time(value)

    @field_validator("slot_duration")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure slot duration is within 5 and 120 minutes."""
        if not 5 <= value <= 120:
            raise ValueError(f"slot_duration must be between 5 and 120, got {value}")
        return value

    @field_validator("grace_period", "buffer_minutes")
    @classmethod
    def validate_minutes(cls, value: int) -> int:
        if not 0 <= value <= 60:
            raise ValueError(f"Value must be between 0 and 60 minutes, got {value}")
        return value

    @model_validator(mode="after")
    def validate_hours_order(self) -> "DefaultsConfig":
        """Ensure the configured window opens before it closes."""
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be later than start_time")
        return self


class TemplateConfig(BaseModel):
    """A named availability template declared in the config file."""
    name: str
    working_days: List[int]  # 0=Sunday, 6=Saturday
    start_time: str
    end_time: str
    slot_duration: int = Field(default=30, ge=5, le=120)
    buffer_minutes: int = Field(default=0, ge=0, le=60)
    breaks: List[BreakConfig] = Field(default_factory=list)
    valid_from: Optional[datetime.date] = None
    valid_to: Optional[datetime.date] = None
    is_default: bool = False
    description: Optional[str] = None

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        return _check_time(value)

    @field_validator("working_days")
    @classmethod
    def validate_working_days(cls, value: List[int]) -> List[int]:
        """Ensure weekdays are in valid range and deduplicated."""
        invalid_days = [day for day in value if day not in range(7)]
        if invalid_days:
            raise ValueError(f"working_days must be between 0 and 6, got {invalid_days}")
        # Preserve order while removing duplicates
        return list(dict.fromkeys(value))

    def to_domain(self, doctor_id: Optional[str] = None) -> AvailabilityTemplate:
        return AvailabilityTemplate(
            name=self.name,
            working_days=tuple(self.working_days),
            start=to_minutes(self.start_time),
            end=to_minutes(self.end_time),
            slot_duration=self.slot_duration,
            buffer_minutes=self.buffer_minutes,
            breaks=tuple(b.to_domain() for b in self.breaks),
            valid_from=self.valid_from,
            valid_to=self.valid_to,
            is_default=self.is_default,
            doctor_id=doctor_id,
            description=self.description,
        )


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "UTC"
    past_dates: PastDatePolicy = PastDatePolicy.ALLOW
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    breaks: List[BreakConfig] = Field(default_factory=list)
    templates: List[TemplateConfig] = Field(default_factory=list)

    @field_validator("templates")
    @classmethod
    def validate_templates(cls, value: List[TemplateConfig]) -> List[TemplateConfig]:
        """Ensure template names are unique and at most one is the default."""
        seen_names: set[str] = set()
        for template in value:
            key = template.name.lower()
            if key in seen_names:
                raise ValueError(f"Duplicate template name detected: {template.name}")
            seen_names.add(key)
        if sum(1 for t in value if t.is_default) > 1:
            raise ValueError("Only one template may be marked is_default")
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
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        return cls(**data)

    def break_periods(self) -> List[BreakPeriod]:
        return [b.to_domain() for b in self.breaks]

    def find_template(self, name: str) -> Optional[TemplateConfig]:
        """Find a configured template by name (case-insensitive)."""
        for template in self.templates:
            if template.name.lower() == name.lower():
                return template
        return None


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    config_path = Path.cwd() / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        config_path = Path(__file__).parent.parent / "config.yaml"

    return config_path


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load the config file if there is one, otherwise fall back to defaults."""
    path = config_path or get_default_config_path()
    if config_path is None and not path.exists():
        return AppConfig()
    return AppConfig.load_from_yaml(path)
