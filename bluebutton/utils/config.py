"""
Configuration Management

Handles loading and validation of configuration from YAML files,
with environment overrides for the model endpoint.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import yaml


def _default_regions_path() -> str:
    return str(Path.home() / '.local' / 'share' / 'bluebutton' / 'saved_regions.json')


@dataclass
class OllamaConfig:
    """Vision model endpoint configuration."""
    host: str = 'http://localhost:11434'
    model: str = 'qwen2.5vl:3b'
    timeout: float = 120.0
    temperature: float = 0.1
    top_p: float = 0.9
    num_predict: int = 200
    content_num_predict: int = 50  # One-sentence main content answers


@dataclass
class CaptureConfig:
    """Screenshot configuration."""
    save_screenshots: bool = True
    screenshot_dir: str = 'logs/screenshots'
    capture_delay_seconds: int = 3  # Time to switch windows before capture


@dataclass
class InteractionConfig:
    """Mouse interaction configuration."""
    click_countdown_seconds: int = 5
    quick_click_countdown_seconds: int = 3
    position_tolerance_px: int = 5
    settle_delay: float = 0.3  # Wait after moving before re-reading the cursor
    press_release_gap: float = 0.05


@dataclass
class RegionsConfig:
    """Saved region storage configuration."""
    storage_path: str = field(default_factory=_default_regions_path)


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = 'INFO'
    log_dir: Optional[str] = 'logs'
    colored: bool = True
    action_log_dir: str = 'logs/actions'


@dataclass
class Config:
    """Main configuration container."""
    ollama: OllamaConfig = field(default_factory=OllamaConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    interaction: InteractionConfig = field(default_factory=InteractionConfig)
    regions: RegionsConfig = field(default_factory=RegionsConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Create Config from dictionary."""
        return cls(
            ollama=OllamaConfig(**data.get('ollama', {})),
            capture=CaptureConfig(**data.get('capture', {})),
            interaction=InteractionConfig(**data.get('interaction', {})),
            regions=RegionsConfig(**data.get('regions', {})),
            logging=LoggingConfig(**data.get('logging', {})),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert Config to dictionary."""
        return {
            'ollama': self.ollama.__dict__,
            'capture': self.capture.__dict__,
            'interaction': self.interaction.__dict__,
            'regions': self.regions.__dict__,
            'logging': self.logging.__dict__,
        }


def apply_env_overrides(config: Config) -> Config:
    """Let OLLAMA_HOST, OLLAMA_MODEL and BLUEBUTTON_LOG_LEVEL win over the file."""
    config.ollama.host = os.getenv('OLLAMA_HOST', config.ollama.host)
    config.ollama.model = os.getenv('OLLAMA_MODEL', config.ollama.model)
    config.logging.level = os.getenv('BLUEBUTTON_LOG_LEVEL', config.logging.level)
    return config


def load_config(config_path: Optional[str] = None) -> Config:
    """
    Load configuration from YAML file.

    Args:
        config_path: Path to config file. If None, uses default locations.

    Returns:
        Config object with loaded settings.
    """
    if config_path is None:
        possible_paths = [
            Path('config/config.yaml'),
            Path.home() / '.config' / 'bluebutton' / 'config.yaml',
        ]
        for path in possible_paths:
            if path.exists():
                config_path = str(path)
                break

    config = Config()
    if config_path and Path(config_path).exists():
        with open(config_path, 'r') as f:
            data = yaml.safe_load(f)
            config = Config.from_dict(data or {})

    return apply_env_overrides(config)


def save_config(config: Config, config_path: str) -> None:
    """
    Save configuration to YAML file.

    Args:
        config: Config object to save.
        config_path: Path to save the config file.
    """
    path = Path(config_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, 'w') as f:
        yaml.dump(config.to_dict(), f, default_flow_style=False, sort_keys=False)
