from .settings import Settings, get_settings, clear_settings_cache

__all__ = ["Settings", "get_settings", "clear_settings_cache"]
