"""
Configuration data models for pubsync.

These models define the structure of .pubsync.json and
~/.config/pubsync/config.json, with validation via Pydantic.
"""

from pydantic import BaseModel, Field, field_validator

from pubsync.core.changeset.models import RenamePolicy


class ContentConfig(BaseModel):
    """
    Which files count as publishable content.
    """
    suffix: str = Field(
        default=".org",
        min_length=1,
        description="Filename suffix identifying content files (case-insensitive)"
    )
    rename_policy: RenamePolicy = Field(
        default=RenamePolicy.SPLIT,
        description="'split' treats renames as retract+publish; 'ignore' drops them"
    )

    @field_validator("suffix")
    @classmethod
    def validate_suffix(cls, v: str) -> str:
        if not v.startswith("."):
            return f".{v}"
        return v


class PublishConfig(BaseModel):
    """
    Default publish target.
    """
    remote: str = Field(
        default="origin",
        min_length=1,
        description="Remote to push to in single-branch mode"
    )
    branch: str = Field(
        default="main",
        min_length=1,
        description="Branch to push in single-branch mode"
    )
    all_branches: bool = Field(
        default=False,
        description="Push every local branch to every remote instead"
    )
    timeout_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Cancel a push still running after this many seconds"
    )


class GitConfig(BaseModel):
    """
    How git is invoked.
    """
    binary: str = Field(
        default="git",
        min_length=1,
        description="git executable name or path"
    )
    command_timeout: float = Field(
        default=60.0,
        gt=0,
        description="Timeout in seconds for synchronous git commands"
    )


class PubsyncConfig(BaseModel):
    """
    Root configuration.

    Example:
        >>> config = PubsyncConfig()
        >>> config.content.suffix
        '.org'
    """
    content: ContentConfig = Field(default_factory=ContentConfig)
    publish: PublishConfig = Field(default_factory=PublishConfig)
    git: GitConfig = Field(default_factory=GitConfig)
