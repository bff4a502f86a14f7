"""Build metadata sent to the remote build service with every build request.

Project files, native version strings, VCS state and the user session are
read through a ``ProjectReaders`` object supplied by the caller.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from importlib.metadata import PackageNotFoundError, version
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)

DEFAULT_RELEASE_CHANNEL = "default"
DEFAULT_DISTRIBUTION = "store"


class Platform(str, Enum):
    ANDROID = "android"
    IOS = "ios"


class CredentialsSource(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


class ProjectReaders(Protocol):
    """Async readers for local project state."""

    async def read_app_version(self, platform: Platform, project_dir: str, exp: dict) -> str | None: ...

    async def read_app_build_version(
        self, platform: Platform, project_dir: str, exp: dict,
    ) -> str | int | None: ...

    async def read_app_identifier(self, platform: Platform, project_dir: str, exp: dict) -> str: ...

    async def read_native_channel(self, platform: Platform, project_dir: str) -> str | None: ...

    async def read_native_release_channel(self, platform: Platform, project_dir: str) -> str | None: ...

    def is_updates_installed(self, project_dir: str) -> bool: ...

    async def get_commit_hash(self) -> str | None: ...

    async def ensure_logged_in(self) -> dict: ...


@dataclass
class BuildProfile:
    distribution: str | None = None
    channel: str | None = None
    release_channel: str | None = None
    enterprise_provisioning: str | None = None


@dataclass
class BuildContext:
    platform: Platform
    project_dir: str
    exp: dict
    build_profile_name: str
    build_profile: BuildProfile
    readers: ProjectReaders
    workflow: str = "managed"
    tracking_context: dict = field(default_factory=dict)


class BuildMetadata(BaseModel):
    """Metadata payload of a build request.

    ``to_payload()`` gives the camelCase wire form with unset fields left out.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    tracking_context: dict = Field(default_factory=dict)
    app_version: str | None = None
    app_build_version: str | None = None
    cli_version: str | None = None
    workflow: str | None = None
    credentials_source: CredentialsSource | None = None
    sdk_version: str | None = None
    runtime_version: str | None = None
    channel: str | None = None
    release_channel: str | None = None
    distribution: str = DEFAULT_DISTRIBUTION
    app_name: str | None = None
    app_identifier: str | None = None
    build_profile: str | None = None
    git_commit_hash: str | None = None
    username: str | None = None
    ios_enterprise_provisioning: str | None = None

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


def get_cli_version() -> str | None:
    try:
        return version("mobuild")
    except PackageNotFoundError:
        logger.debug("mobuild is not installed, cli version unknown")
        return None


def get_username(exp: dict, user: dict) -> str | None:
    """Owner of the project, falling back to the logged-in user."""
    return exp.get("owner") or user.get("username")


async def collect_metadata(
    ctx: BuildContext, *, credentials_source: CredentialsSource | None = None,
) -> BuildMetadata:
    readers = ctx.readers
    build_version = await readers.read_app_build_version(ctx.platform, ctx.project_dir, ctx.exp)

    ios_enterprise_provisioning = None
    if ctx.platform == Platform.IOS:
        ios_enterprise_provisioning = ctx.build_profile.enterprise_provisioning

    return BuildMetadata(
        tracking_context=ctx.tracking_context,
        app_version=await readers.read_app_version(ctx.platform, ctx.project_dir, ctx.exp),
        app_build_version=str(build_version) if build_version is not None else None,
        cli_version=get_cli_version(),
        workflow=ctx.workflow,
        credentials_source=credentials_source,
        sdk_version=ctx.exp.get("sdkVersion"),
        runtime_version=ctx.exp.get("runtimeVersion"),
        **await resolve_channel_or_release_channel(ctx),
        distribution=ctx.build_profile.distribution or DEFAULT_DISTRIBUTION,
        app_name=ctx.exp.get("name"),
        app_identifier=await readers.read_app_identifier(ctx.platform, ctx.project_dir, ctx.exp),
        build_profile=ctx.build_profile_name,
        git_commit_hash=await readers.get_commit_hash(),
        username=get_username(ctx.exp, await readers.ensure_logged_in()),
        ios_enterprise_provisioning=ios_enterprise_provisioning,
    )


async def resolve_channel_or_release_channel(ctx: BuildContext) -> dict[str, str]:
    """Pick ``channel`` or ``release_channel``; empty when updates are not installed.

    Order: profile channel, profile release channel, native channel, native
    release channel (falling back to "default").
    """
    if not ctx.readers.is_updates_installed(ctx.project_dir):
        return {}
    if ctx.build_profile.channel:
        return {"channel": ctx.build_profile.channel}
    if ctx.build_profile.release_channel:
        return {"release_channel": ctx.build_profile.release_channel}

    channel = await ctx.readers.read_native_channel(ctx.platform, ctx.project_dir)
    if channel:
        return {"channel": channel}

    release_channel = await ctx.readers.read_native_release_channel(ctx.platform, ctx.project_dir)
    return {"release_channel": release_channel or DEFAULT_RELEASE_CHANNEL}
