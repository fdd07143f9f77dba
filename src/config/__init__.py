"""Configuration module — exports Settings and load_config.

No module-level settings instance lives here: ``src.main`` builds one at
startup and injects it into every provider.
"""

from src.config.loader import load_config
from src.config.settings import Settings

__all__ = ["Settings", "load_config"]
