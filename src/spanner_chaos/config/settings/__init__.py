"""Config settings – environment-based configuration."""
from spanner_chaos.config.settings.base import Settings
from spanner_chaos.config.settings.harness import HarnessSettings
from spanner_chaos.config.settings.loaders import DotenvSettingsLoader, EnvSettingsLoader, SettingsLoader

__all__ = ["DotenvSettingsLoader", "EnvSettingsLoader", "HarnessSettings", "Settings", "SettingsLoader"]
