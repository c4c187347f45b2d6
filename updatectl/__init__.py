"""
updatectl - keep deployed projects in step with their git upstream.

A small daemon that, on a fixed interval, pulls every configured project,
rebuilds the ones that received new commits and redeploys them according to
their type (docker, pm2 or static).
"""

from .models import DeployType, ProjectDefinition, UpdatectlConfig
from .settings import UpdatectlSettings, get_settings, reload_settings

__version__ = "0.1.0"
__all__ = [
    "DeployType",
    "ProjectDefinition",
    "UpdatectlConfig",
    "UpdatectlSettings",
    "get_settings",
    "reload_settings",
]
