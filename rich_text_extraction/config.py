"""
Configuration management for the rte command-line tool.

Supports both global (~/.config/rte/config.toml) and local (rte.toml)
configurations. Library functions never read this module: the CLI turns the
loaded values into explicit fetcher and option objects.
"""
import logging
import os
import tomli
import tomli_w
from pathlib import Path
from typing import Dict, Any, Optional
from dataclasses import dataclass, field, asdict

from rich_text_extraction.metadata import MetadataFetcher, DEFAULT_USER_AGENT
from rich_text_extraction.models import FetchOptions

logger = logging.getLogger(__name__)


@dataclass
class RteConfig:
    """
    rte configuration with sensible defaults.

    Configuration hierarchy (highest to lowest priority):
    1. Command-line arguments
    2. Environment variables (RTE_*)
    3. Local config file (./rte.toml or ./.rterc)
    4. User config file (~/.config/rte/config.toml)
    5. System defaults
    """

    # Network settings
    timeout: int = field(default=15)  # Request timeout in seconds
    user_agent: str = field(default=DEFAULT_USER_AGENT)
    max_redirects: int = field(default=3)
    verify_ssl: bool = field(default=True)

    # Metadata cache
    cache_key_prefix: str = field(default="")
    cache_ttl: int = field(default=3600)
    negative_cache_ttl: int = field(default=0)  # 0 = never cache failed fetches

    # Enrichment
    max_workers: int = field(default=1)
    enrichment_deadline: int = field(default=0)  # 0 = no overall deadline

    # Display settings
    output_format: str = field(default="table")  # table, json
    excerpt_length: int = field(default=300)

    log_level: str = field(default="WARNING")

    @classmethod
    def load(cls, config_file: Optional[Path] = None) -> "RteConfig":
        """
        Load configuration from files and environment.

        Args:
            config_file: Specific config file to load (overrides search)

        Returns:
            Merged configuration object
        """
        config = cls()

        user_config_path = Path.home() / ".config" / "rte" / "config.toml"
        if user_config_path.exists():
            config._merge(cls._load_toml(user_config_path))

        local_paths = [
            Path.cwd() / "rte.toml",
            Path.cwd() / ".rterc",
        ]

        for path in local_paths:
            if path.exists():
                config._merge(cls._load_toml(path))
                break

        if config_file and config_file.exists():
            config._merge(cls._load_toml(config_file))

        config._apply_env_vars()

        return config

    @staticmethod
    def _load_toml(path: Path) -> Dict[str, Any]:
        """Load TOML configuration file."""
        with open(path, "rb") as f:
            return tomli.load(f)

    def _merge(self, data: Dict[str, Any]):
        """Merge configuration data into this instance."""
        for key, value in data.items():
            if hasattr(self, key):
                setattr(self, key, value)

    def _apply_env_vars(self):
        """Apply environment variables with RTE_ prefix."""
        prefix = "RTE_"
        for key, value in os.environ.items():
            if key.startswith(prefix):
                config_key = key[len(prefix):].lower()
                if hasattr(self, config_key):
                    # Convert string values to appropriate types
                    current_value = getattr(self, config_key)
                    if isinstance(current_value, bool):
                        setattr(self, config_key, value.lower() in ("true", "1", "yes"))
                    elif isinstance(current_value, int):
                        try:
                            setattr(self, config_key, int(value))
                        except ValueError:
                            logger.warning(f"Ignoring {key}={value!r}: expected an integer")
                    else:
                        setattr(self, config_key, value)

    def save(self, path: Optional[Path] = None):
        """
        Save current configuration to TOML file.

        Args:
            path: Path to save to (defaults to user config)
        """
        if path is None:
            path = Path.home() / ".config" / "rte" / "config.toml"

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "wb") as f:
            tomli_w.dump(asdict(self), f)

    def make_fetcher(self) -> MetadataFetcher:
        """Build a MetadataFetcher from the network settings."""
        return MetadataFetcher(
            timeout=self.timeout,
            user_agent=self.user_agent,
            max_redirects=self.max_redirects,
            verify_ssl=self.verify_ssl,
        )

    def fetch_options(self) -> FetchOptions:
        """Build per-call fetch options from the cache settings."""
        return FetchOptions(
            key_prefix=self.cache_key_prefix or None,
            expires_in=self.cache_ttl or None,
            negative_ttl=self.negative_cache_ttl or None,
        )

    def deadline(self) -> Optional[float]:
        return self.enrichment_deadline or None


# Global configuration instance
_config: Optional[RteConfig] = None


def get_config(reload: bool = False, config_file: Optional[Path] = None) -> RteConfig:
    """
    Get the global configuration instance.

    Args:
        reload: Force reload configuration from files
        config_file: Specific config file to load

    Returns:
        Global configuration instance
    """
    global _config
    if _config is None or reload:
        _config = RteConfig.load(config_file)
    return _config


def init_config(config_file: Optional[Path] = None, **kwargs) -> RteConfig:
    """
    Initialize configuration with command-line overrides.

    Args:
        config_file: Specific config file to load
        **kwargs: Other configuration overrides

    Returns:
        Configured instance
    """
    config = get_config(reload=config_file is not None, config_file=config_file)

    for key, value in kwargs.items():
        if hasattr(config, key) and value is not None:
            setattr(config, key, value)

    return config
