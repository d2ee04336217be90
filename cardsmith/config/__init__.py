from cardsmith.config.loader import load_sources
from cardsmith.config.settings import Settings

__all__ = ["Settings", "load_sources"]
