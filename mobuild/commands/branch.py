"""Branch command: list update branches of a project.

Handles:
- branch list [--json]

Each branch is shown with its most recent update group.
"""

import json
import logging
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from mobuild.graphql.client import GraphqlClient

logger = logging.getLogger(__name__)

BRANCHES_LIMIT = 10_000
UPDATES_PER_BRANCH = 10

UPDATE_COLUMNS = [
    "update description",
    "update runtime version",
    "update group ID",
    "platforms",
]

BRANCHES_BY_APP = """
query BranchesByAppQuery($appId: String!, $limit: Int!, $updatesLimit: Int!) {
    app {
        byId(appId: $appId) {
            id
            updateBranches(offset: 0, limit: $limit) {
                id
                name
                updates(offset: 0, limit: $updatesLimit) {
                    id
                    actor {
                        __typename
                        id
                        ... on User {
                            username
                        }
                        ... on Robot {
                            firstName
                        }
                    }
                    createdAt
                    message
                    runtimeVersion
                    group
                    platform
                }
            }
        }
    }
}
"""


class _Record(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class Actor(_Record):
    typename: str = Field("", alias="__typename")
    id: str
    username: str | None = None
    first_name: str | None = None


class Update(_Record):
    id: str
    actor: Actor | None = None
    created_at: datetime
    message: str | None = None
    runtime_version: str | None = None
    group: str | None = None
    platform: str | None = None


class UpdateBranch(_Record):
    id: str
    name: str
    updates: tuple[Update, ...] = ()


async def list_branches(
    client: GraphqlClient, project_id: str, *, limit: int = BRANCHES_LIMIT,
) -> list[UpdateBranch]:
    """List the project's branches, each with its most recent updates."""
    data = await client.query(
        BRANCHES_BY_APP,
        {"appId": project_id, "limit": limit, "updatesLimit": UPDATES_PER_BRANCH},
    )
    app = (data.get("app") or {}).get("byId") or {}
    return [UpdateBranch.model_validate(b) for b in app.get("updateBranches") or []]


def get_actor_display_name(actor: Actor | None) -> str:
    if actor is None:
        return "unknown"
    if actor.typename == "User":
        return actor.username or "unknown"
    if actor.typename == "Robot":
        return f"{actor.first_name} (robot)" if actor.first_name else "robot"
    return "unknown"


def format_time_ago(when: datetime, now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    seconds = max(int((now - when).total_seconds()), 0)
    for unit, size in (("day", 86400), ("hour", 3600), ("minute", 60)):
        if seconds >= size:
            count = seconds // size
            return f"{count} {unit}{'s' if count != 1 else ''} ago"
    return "less than a minute ago"


def format_update(update: Update | None, now: datetime | None = None) -> str:
    """One-line description of an update, or N/A."""
    if update is None:
        return "N/A"
    message = f'"{update.message}" ' if update.message else ""
    return (
        f"{message}({format_time_ago(update.created_at, now)} "
        f"by {get_actor_display_name(update.actor)})"
    )


def get_platforms_for_group(updates: tuple[Update, ...], group: str | None) -> str:
    """Comma-separated platforms published in ``group``."""
    if group is None:
        return "N/A"
    platforms = sorted({u.platform for u in updates if u.group == group and u.platform})
    return ", ".join(platforms) if platforms else "N/A"


def branch_row(branch: UpdateBranch, now: datetime | None = None) -> list[str]:
    latest = branch.updates[0] if branch.updates else None
    return [
        branch.name,
        format_update(latest, now),
        (latest.runtime_version if latest else None) or "N/A",
        (latest.group if latest else None) or "N/A",
        get_platforms_for_group(branch.updates, latest.group if latest else None),
    ]


def render_table(head: list[str], rows: list[list[str]]) -> str:
    widths = [len(h) for h in head]
    for row in rows:
        widths = [max(w, len(cell)) for w, cell in zip(widths, row)]

    def line(cells: list[str]) -> str:
        return "  ".join(c.ljust(w) for c, w in zip(cells, widths)).rstrip()

    out = [line(head), line(["-" * w for w in widths])]
    out.extend(line(row) for row in rows)
    return "\n".join(out)


def render_branches_table(branches: list[UpdateBranch], now: datetime | None = None) -> str:
    return render_table(
        ["branch", *UPDATE_COLUMNS],
        [branch_row(b, now) for b in branches],
    )


async def execute(args, client: GraphqlClient, config: dict) -> int:
    """Execute ``branch list``. Returns exit code."""
    project_id = config.get("project", {}).get("id")
    if not project_id:
        raise ValueError("'project.id' is required to list branches")

    branches = await list_branches(client, project_id)
    logger.info("branch list project=%s count=%d", project_id, len(branches))

    if args.json:
        print(json.dumps(
            [b.model_dump(mode="json", by_alias=True) for b in branches], indent=2,
        ))
        return 0

    print("Branches with their most recent update group:")
    print(render_branches_table(branches))
    if len(branches) >= BRANCHES_LIMIT:
        logger.warning(
            "Showing first %d branches, some results might be omitted.", BRANCHES_LIMIT,
        )
    return 0
