"""
Pydantic models for the updatectl configuration.

The YAML file keeps the camelCase keys of the original tool
(``intervalMinutes``, ``buildCommand``); the models expose snake_case
attributes and accept either spelling.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class DeployType(str, Enum):
    """Deployment kinds understood by the dispatcher."""
    DOCKER = "docker"   # Build command performs the redeploy
    PM2 = "pm2"         # Restart the pm2 process named after the project
    STATIC = "static"   # Nothing to do after the build
    OTHER = "other"     # Anything unrecognized

    @classmethod
    def parse(cls, raw: str) -> "DeployType":
        """Map a raw type string onto the enum, falling back to OTHER.

        Matching is exact: "PM2" or " pm2" are unknown types.
        """
        for member in (cls.DOCKER, cls.PM2, cls.STATIC):
            if member.value == raw:
                return member
        return cls.OTHER


class ProjectDefinition(BaseModel):
    """A single deployable project.

    Attributes:
        name: Unique project identifier, also used as the pm2 process name
        path: Location of the git working copy
        repo: Upstream repository URL (informational)
        type: Raw deployment type string as written in the config
        build_command: Shell command run after new commits land ("" = none)
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., description="Unique project identifier")
    path: str = Field(..., description="Working copy location")
    repo: str = Field(default="", description="Upstream repository URL")
    type: str = Field(default="", description="Deployment type (missing = unknown)")
    build_command: str = Field(
        default="", alias="buildCommand", description="Build/deploy shell command"
    )

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("project name must not be empty")
        return value.strip()

    @field_validator("build_command", "repo", "type", mode="before")
    @classmethod
    def _none_as_empty(cls, value):
        return "" if value is None else value

    @property
    def deploy_type(self) -> DeployType:
        return DeployType.parse(self.type)

    @property
    def has_build_command(self) -> bool:
        return bool(self.build_command.strip())


class UpdatectlConfig(BaseModel):
    """Top-level contents of updatectl.yaml."""

    model_config = ConfigDict(populate_by_name=True)

    interval_minutes: int = Field(
        default=10, ge=1, alias="intervalMinutes", description="Minutes between pass starts"
    )
    projects: List[ProjectDefinition] = Field(default_factory=list)

    @field_validator("projects", mode="before")
    @classmethod
    def _none_as_empty_list(cls, value):
        return [] if value is None else value

    @model_validator(mode="after")
    def _unique_names(self) -> "UpdatectlConfig":
        seen = set()
        duplicates = []
        for project in self.projects:
            if project.name in seen and project.name not in duplicates:
                duplicates.append(project.name)
            seen.add(project.name)
        if duplicates:
            raise ValueError(f"duplicate project names: {', '.join(duplicates)}")
        return self

    def get_project(self, name: str) -> ProjectDefinition | None:
        """Return the project called ``name``, or None."""
        for project in self.projects:
            if project.name == name:
                return project
        return None
