"""
Configuration management for Rover Mission

All parameters are configurable and can be overridden via:
1. config/default.yaml
2. Environment variables (prefixed with ROVERMISSION_)
"""

import os
import yaml
from dataclasses import dataclass, field
from typing import Optional
from pathlib import Path


@dataclass
class ActionConfig:
    """Navigation action server"""
    server_name: str = "move_base"
    action_type: str = "move_base_msgs/MoveBaseAction"

    # Seconds before an unanswered goal is reported ABORTED (0 = never)
    goal_timeout_s: float = 0.0

    # Seconds to wait for the server after cancel() before reporting
    # PREEMPTED locally (0 = wait for the server indefinitely)
    cancel_timeout_s: float = 10.0


@dataclass
class TransformConfig:
    """GPS to UTM conversion service"""
    service_name: str = "gps_to_utm"
    service_type: str = "spear_rover/GpsToUtm"


@dataclass
class FramesConfig:
    """Reference frames for navigation goals"""
    relative_frame: str = "base_link"
    gps_frame: str = "utm"


@dataclass
class PlaceholderConfig:
    """States built for unrecognized mission steps"""
    delay_s: float = 1.0


@dataclass
class FactoryConfig:
    """Mission state factory"""
    # Reject malformed coordinates instead of using nan
    strict_parameters: bool = False


@dataclass
class LoggingConfig:
    """Logging"""
    level: str = "INFO"
    log_file: str = ""


@dataclass
class SimulationConfig:
    """Simulated action server"""
    goal_duration_s: float = 2.0
    result_status: int = 3              # SUCCEEDED


@dataclass
class Config:
    """Main configuration container"""

    action: ActionConfig = field(default_factory=ActionConfig)
    transform: TransformConfig = field(default_factory=TransformConfig)
    frames: FramesConfig = field(default_factory=FramesConfig)
    placeholder: PlaceholderConfig = field(default_factory=PlaceholderConfig)
    factory: FactoryConfig = field(default_factory=FactoryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    simulation: SimulationConfig = field(default_factory=SimulationConfig)

    SECTIONS = ('action', 'transform', 'frames', 'placeholder',
                'factory', 'logging', 'simulation')

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "Config":
        """Load configuration from YAML file and environment"""
        config = cls()

        # Load from file if exists
        if config_path is None:
            config_path = Path(__file__).parent.parent / "config" / "default.yaml"

        if Path(config_path).exists():
            with open(config_path, 'r') as f:
                yaml_config = yaml.safe_load(f)
                if yaml_config:
                    config._update_from_dict(yaml_config)

        # Override from environment variables
        config._update_from_env()

        return config

    def _update_from_dict(self, d: dict):
        """Update config from dictionary (e.g., YAML)"""
        for section_name, section_data in d.items():
            if section_name in self.SECTIONS and isinstance(section_data, dict):
                section = getattr(self, section_name)
                for key, value in section_data.items():
                    if hasattr(section, key):
                        setattr(section, key, value)

    def _update_from_env(self, environ=None):
        """Override config from ROVERMISSION_<SECTION>_<KEY> variables"""
        prefix = "ROVERMISSION_"
        environ = os.environ if environ is None else environ

        for key, value in environ.items():
            if not key.startswith(prefix):
                continue
            # Section names contain no underscore, keys may
            section_name, _, param_name = key[len(prefix):].lower().partition("_")
            if section_name not in self.SECTIONS:
                continue
            section = getattr(self, section_name)
            if hasattr(section, param_name):
                setattr(section, param_name, _coerce(getattr(section, param_name), value))

    def to_dict(self) -> dict:
        """Nested dictionary of every section"""
        return {
            name: dict(getattr(self, name).__dict__)
            for name in self.SECTIONS
        }

    def save(self, config_path: str):
        """Save current configuration to YAML file"""
        with open(config_path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)


def _coerce(current, value: str):
    """Convert an environment string to the type of the current value"""
    if isinstance(current, bool):
        return value.lower() in ("true", "1", "yes")
    if isinstance(current, int):
        return int(value)
    if isinstance(current, float):
        return float(value)
    return value


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance"""
    global _config
    if _config is None:
        _config = Config.load()
    return _config


def set_config(config: Config):
    """Set the global configuration instance"""
    global _config
    _config = config
