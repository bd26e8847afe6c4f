"""Command group: item creation (task, epic, area, resource)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import click

from obsvault.commands._base import VaultGroup
from obsvault.domain.types import MAINTENANCE_FREQUENCIES, PRIORITIES

if TYPE_CHECKING:
    from obsvault.commands._context import AppContext


def _request(item_type: str, title: str, **fields: Any) -> dict[str, Any]:
    """Build a create request, dropping options the user did not give."""
    request: dict[str, Any] = {"type": item_type, "title": title}
    for key, value in fields.items():
        if value is None or value == ():
            continue
        request[key] = list(value) if isinstance(value, tuple) else value
    return request


_CREATE_EXAMPLES = """\
  obsvault create task "Fix login bug" --area Work --priority High --due 2025-09-01
  obsvault create epic "Website Relaunch" --area Marketing
  obsvault create area "Health" --purpose "Keep fit and rested"
  obsvault create resource "Python Docs" --areas Work --key-topic typing ..."""


@click.group(cls=VaultGroup, examples=_CREATE_EXAMPLES)
def create() -> None:
    """Create tasks, epics, areas, and resources."""


@create.command(
    examples="""\
  obsvault create task "Test Task"
  obsvault create task "Fix login bug" --area Work --priority High --due 2025-09-01
  obsvault create task "Draft post" --project "Website Relaunch" --tags writing"""
)
@click.argument("title")
@click.option("--status", default=None, help="Initial status (default: To Do).")
@click.option("--area", default=None, help="Area the task belongs to.")
@click.option("--due", "due_date", default=None, help="Due date (YYYY-MM-DD).")
@click.option("--priority", type=click.Choice(PRIORITIES), default=None, help="Priority.")
@click.option("--project", "parent_projects", multiple=True, help="Parent project (repeatable).")
@click.option("--tags", multiple=True, help="Tags (repeatable).")
@click.option("--content", default=None, help="Description text.")
@click.pass_obj
def task(
    app: AppContext,
    title: str,
    status: str | None,
    area: str | None,
    due_date: str | None,
    priority: str | None,
    parent_projects: tuple[str, ...],
    tags: tuple[str, ...],
    content: str | None,
) -> None:
    """Create a new task."""
    request = _request(
        "Task",
        title,
        status=status,
        area=area,
        dueDate=due_date,
        priority=priority,
        parentProjects=parent_projects,
        tags=tags,
        content=content,
    )
    app.emit(app.store.create_item(request))


@create.command(
    examples="""\
  obsvault create epic "Website Relaunch" --area Marketing --due 2025-12-01"""
)
@click.argument("title")
@click.option("--area", required=True, help="Area the epic belongs to.")
@click.option("--status", default=None, help="Initial status (default: Planning).")
@click.option("--due", "due_date", default=None, help="Due date (YYYY-MM-DD).")
@click.option("--image", default=None, help="Cover image URL.")
@click.option("--tags", multiple=True, help="Tags (repeatable).")
@click.option("--content", default=None, help="Description text.")
@click.pass_obj
def epic(
    app: AppContext,
    title: str,
    area: str,
    status: str | None,
    due_date: str | None,
    image: str | None,
    tags: tuple[str, ...],
    content: str | None,
) -> None:
    """Create a new epic."""
    request = _request(
        "Epic",
        title,
        area=area,
        status=status,
        dueDate=due_date,
        image=image,
        tags=tags,
        content=content,
    )
    app.emit(app.store.create_item(request))


@create.command(
    examples="""\
  obsvault create area "Health" --purpose "Keep fit and rested" --maintenance Daily --pinned"""
)
@click.argument("title")
@click.option("--purpose", default=None, help="Why this area exists (10+ characters).")
@click.option(
    "--maintenance",
    type=click.Choice(MAINTENANCE_FREQUENCIES),
    default=None,
    help="Review frequency (default: Weekly).",
)
@click.option("--pinned", is_flag=True, help="Pin the area.")
@click.option("--status", default=None, help="Initial status (default: Active).")
@click.option("--tags", multiple=True, help="Tags (repeatable).")
@click.option("--content", default=None, help="Description text.")
@click.pass_obj
def area(
    app: AppContext,
    title: str,
    purpose: str | None,
    maintenance: str | None,
    pinned: bool,
    status: str | None,
    tags: tuple[str, ...],
    content: str | None,
) -> None:
    """Create a new area."""
    request = _request(
        "Area",
        title,
        purpose=purpose,
        maintenance=maintenance,
        pinned=pinned or None,
        status=status,
        tags=tags,
        content=content,
    )
    app.emit(app.store.create_item(request))


@create.command(
    examples="""\
  obsvault create resource "Python Docs" --areas Work \\
      --purpose "Reference for the standard library" \\
      --overview "Official documentation for Python 3" \\
      --key-topic typing --key-topic asyncio \\
      --usage "Look things up before asking" --maintenance Monthly"""
)
@click.argument("title")
@click.option("--areas", multiple=True, help="Related area (repeatable, at least one).")
@click.option("--purpose", default=None, help="Why this resource is kept (10+ characters).")
@click.option("--overview", "content_overview", default=None, help="Content overview.")
@click.option("--key-topic", "key_topics", multiple=True, help="Key topic (repeatable).")
@click.option("--usage", "usage_notes", default=None, help="Usage notes (10+ characters).")
@click.option("--maintenance", default=None, help="Review frequency.")
@click.option("--pinned", is_flag=True, help="Pin the resource.")
@click.option("--status", default=None, help="Initial status (default: Active).")
@click.option("--tags", multiple=True, help="Tags (repeatable).")
@click.option("--content", default=None, help="Description text.")
@click.pass_obj
def resource(
    app: AppContext,
    title: str,
    areas: tuple[str, ...],
    purpose: str | None,
    content_overview: str | None,
    key_topics: tuple[str, ...],
    usage_notes: str | None,
    maintenance: str | None,
    pinned: bool,
    status: str | None,
    tags: tuple[str, ...],
    content: str | None,
) -> None:
    """Create a new resource."""
    request = _request(
        "Resource",
        title,
        areas=areas,
        purpose=purpose,
        contentOverview=content_overview,
        keyTopics=key_topics,
        usageNotes=usage_notes,
        maintenance=maintenance,
        pinned=pinned or None,
        status=status,
        tags=tags,
        content=content,
    )
    app.emit(app.store.create_item(request))
