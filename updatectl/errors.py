"""
updatectl errors.
"""

class UpdatectlError(Exception):
    """Base exception for all updatectl errors."""
    pass

class ConfigurationError(UpdatectlError):
    """Errors reading or validating the project configuration."""
    pass

class ProjectNotFoundError(UpdatectlError):
    """A project name given on the command line is not configured."""
    pass
