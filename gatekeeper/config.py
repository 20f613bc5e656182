"""Configuration management for Gatekeeper"""

from pydantic_settings import BaseSettings
from pydantic import ConfigDict
from typing import Optional, List
import yaml
import os


class GateConfig(BaseSettings):
    """Block decision and address resolution configuration"""
    # Header sources checked in order before the connection address
    address_headers: List[str] = ["client-ip", "x-forwarded-for"]
    reverse_dns: bool = True  # Resolve hostnames for hostname rules
    record_visits: bool = True  # Append a visit row per check

    model_config = ConfigDict(
        env_prefix="GATEKEEPER_GATE_",
        env_file=".env"
    )


class WebConfig(BaseSettings):
    """Web server configuration"""
    host: str = "0.0.0.0"
    port: int = 8080


class LoggingConfig(BaseSettings):
    """Logging configuration"""
    level: str = "INFO"
    file: Optional[str] = None  # Also log to this file when set

    model_config = ConfigDict(
        env_prefix="GATEKEEPER_LOG_",
        env_file=".env"
    )


class Config(BaseSettings):
    """Main application configuration"""
    gate: GateConfig = GateConfig()
    web: WebConfig = WebConfig()
    logging: LoggingConfig = LoggingConfig()

    model_config = ConfigDict(
        env_file=".env",
        env_nested_delimiter="__"
    )

    @classmethod
    def from_yaml(cls, yaml_path: str = "config.yaml") -> "Config":
        """Load configuration from YAML file"""
        if not os.path.exists(yaml_path):
            # Return default configuration
            return cls()

        with open(yaml_path, "r") as f:
            yaml_data = yaml.safe_load(f)

        if yaml_data is None:
            return cls()

        # Convert nested dict to Config object
        return cls(**yaml_data)


# Global config instance
config: Optional[Config] = None


def get_config() -> Config:
    """Get global configuration instance"""
    global config
    if config is None:
        # Try to load from YAML, fallback to env vars
        config = Config.from_yaml(os.getenv("GATEKEEPER_CONFIG", "config.yaml"))
    return config


def reload_config():
    """Reload configuration from file"""
    global config
    config = Config.from_yaml(os.getenv("GATEKEEPER_CONFIG", "config.yaml"))
    return config
