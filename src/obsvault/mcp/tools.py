"""MCP tool definitions: scan, create, update, search, plus get/delete/list.

Each tool has a ``*_impl`` function testable without the mcp package.
The impl functions take a :class:`VaultStore` and plain arguments and
return one text block. Missing required arguments are reported here, as
``Error: ...`` text, before the store is called.
``register_tools()`` wraps them with FastMCP decorators.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from obsvault.domain.items import BaseItem, Task, item_areas, item_due_date
from obsvault.domain.types import ItemType
from obsvault.services.queries import outstanding_tasks
from obsvault.services.result import ServiceResult
from obsvault.services.store import VaultStore

# Tool-level argument names that differ from item field names.
_ARGUMENT_ALIASES = {"description": "content"}


def _error_text(result: ServiceResult) -> str:
    """Render a failed result as ``Error: message`` plus field errors."""
    if result.error is None:
        return f"Error: {result.op} failed"
    lines = [f"Error: {result.error.message}"]
    for err in result.error.detail.get("errors", []):
        lines.append(f"  - {err['field']}: {err['message']}")
    for entry in result.data.get("failed", []):
        lines.append(f"  - {entry['id']}: {entry['message']}")
    return "\n".join(lines)


def _task_line(n: int, task: Task) -> str:
    due = task.due_date or "No Due Date"
    area = task.area or "Unassigned"
    projects = task.parent_projects
    line = f"{n}. **{task.title}** ({task.status}) - Due: {due} - Area: {area}"
    if projects:
        line += f" - Project: {projects[0]}"
    return line


def _rename_arguments(values: dict[str, Any]) -> dict[str, Any]:
    return {_ARGUMENT_ALIASES.get(k, k): v for k, v in values.items()}


def retarget_store(store: VaultStore, vault_path: str | None) -> VaultStore:
    """Return a store for *vault_path*, reusing *store* when it already
    serves that directory."""
    if not vault_path:
        return store
    target = Path(vault_path).expanduser()
    if target.resolve() == store.root.resolve():
        return store
    settings = store.settings.model_copy(update={"vault_root": target})
    return VaultStore(settings)


# ---------------------------------------------------------------------------
# Core tools (4)
# ---------------------------------------------------------------------------


def scan_vault_impl(store: VaultStore) -> str:
    """Rescan the vault and list the top outstanding tasks."""
    result = store.scan_vault()
    if not result.ok:
        return _error_text(result)

    tasks = outstanding_tasks(result.data["items"])
    limit = store.settings.tools.outstanding_limit
    listing = "\n".join(_task_line(n, t) for n, t in enumerate(tasks[:limit], start=1))
    return (
        f"Vault: {store.root}\n\n"
        f"Top {limit} Outstanding Tasks:\n\n"
        f"{listing or 'No outstanding tasks.'}\n\n"
        f"Summary:\n   Total outstanding tasks: {len(tasks)}"
    )


def create_task_impl(
    store: VaultStore,
    title: str | None,
    area: str | None,
    *,
    due_date: str | None = None,
    priority: str | None = None,
    parent_projects: list[str] | None = None,
    tags: list[str] | None = None,
    description: str | None = None,
) -> str:
    """Create a Task; ``title`` and ``area`` are required."""
    if not title:
        return "Error: title is required"
    if not area:
        return "Error: area is required"

    request: dict[str, Any] = {"type": "Task", "title": title, "area": area}
    optional = {
        "dueDate": due_date,
        "priority": priority,
        "parentProjects": parent_projects,
        "tags": tags,
        "content": description,
    }
    request.update({k: v for k, v in optional.items() if v is not None})

    result = store.create_item(request)
    if not result.ok:
        return _error_text(result)
    item: BaseItem = result.data["item"]
    return (
        f'Task "{item.title}" created successfully!\n\n'
        f"ID: {item.id}\nPath: {result.data['path']}"
    )


def update_task_impl(store: VaultStore, task_id: str | None, updates: dict[str, Any] | None) -> str:
    """Apply *updates* to an item; ``taskId`` and a non-empty ``updates`` are required."""
    if not task_id:
        return "Error: taskId is required"
    if not updates:
        return "Error: updates must contain at least one field"

    result = store.update_item(task_id, _rename_arguments(updates))
    if not result.ok:
        return _error_text(result)
    fields = ", ".join(result.data["updated_fields"])
    text = f"Task updated successfully!\n\nUpdated fields: {fields}"
    for warning in result.warnings:
        text += f"\nWarning: {warning}"
    return text


def search_tasks_impl(
    store: VaultStore,
    query: str | None,
    *,
    status: str | None = None,
    area: str | None = None,
    tags: list[str] | None = None,
    limit: int | None = None,
) -> str:
    """Fuzzy-search Tasks; ``query`` is required."""
    if query is None:
        return "Error: query is required"

    ensured = store.ensure_index()
    if ensured is not None and not ensured.ok:
        return _error_text(ensured)

    request: dict[str, Any] = {"query": query, "type": str(ItemType.TASK)}
    optional = {"status": status, "area": area, "tags": tags, "limit": limit}
    request.update({k: v for k, v in optional.items() if v is not None})
    result = store.search_items(request)
    if not result.ok:
        return _error_text(result)

    items: list[BaseItem] = result.data["items"]
    lines = []
    for n, item in enumerate(items, start=1):
        area_name = ", ".join(item_areas(item)) or "Unassigned"
        lines.append(f"{n}. **{item.title}** ({item.status}) - {area_name}")
    listing = "\n".join(lines) or "No matching tasks."
    return f'Search Results for "{query}":\n\n{listing}\n\nFound {result.data["total"]} tasks.'


# ---------------------------------------------------------------------------
# Item tools (3)
# ---------------------------------------------------------------------------


def get_item_impl(store: VaultStore, item_id: str | None) -> str:
    if not item_id:
        return "Error: itemId is required"
    result = store.get_item(item_id)
    if not result.ok:
        return _error_text(result)

    item: BaseItem = result.data["item"]
    lines = [f"**{item.title}** ({item.type})", f"ID: {item.id}", f"Status: {item.status}"]
    if isinstance(item, Task):
        lines.append(f"Priority: {item.priority}")
    due = item_due_date(item)
    if due:
        lines.append(f"Due: {due}")
    if item.tags:
        lines.append(f"Tags: {', '.join(item.tags)}")
    if item.content:
        lines.extend(["", item.content])
    return "\n".join(lines)


def delete_item_impl(store: VaultStore, item_id: str | None) -> str:
    if not item_id:
        return "Error: itemId is required"
    result = store.delete_item(item_id)
    if not result.ok:
        return _error_text(result)
    return f"Item {item_id} deleted."


def list_items_impl(
    store: VaultStore,
    *,
    item_type: str | None = None,
    area: str | None = None,
    status: str | None = None,
    tags: list[str] | None = None,
    sort_by: str | None = None,
    sort_order: str | None = None,
    limit: int | None = None,
    offset: int | None = None,
) -> str:
    """List items with filters, sorting, and paging."""
    request = {
        "type": item_type,
        "area": area,
        "status": status,
        "tags": tags,
        "sortBy": sort_by,
        "sortOrder": sort_order,
        "limit": limit,
        "offset": offset,
    }
    result = store.list_items({k: v for k, v in request.items() if v is not None})
    if not result.ok:
        return _error_text(result)

    d = result.data
    lines = [
        f"{n}. **{item.title}** ({item.type}, {item.status}) - {item.id}"
        for n, item in enumerate(d["items"], start=d["offset"] + 1)
    ]
    footer = f"Showing {len(d['items'])} of {d['total']} items."
    if d["has_more"]:
        footer += f" More available from offset {d['offset'] + d['limit']}."
    return "\n".join([*lines, "", footer]) if lines else footer


def register_tools(server: Any, store: VaultStore) -> None:
    """Register all 7 MCP tools on the FastMCP server.

    ``scan_vault`` may point the server at another vault; later calls use
    that vault until the next re-target.
    """
    current = {"store": store}

    @server.tool()  # type: ignore[untyped-decorator]
    def scan_vault(vaultPath: str | None = None) -> str:  # noqa: N803
        """Scan an Obsidian vault and return outstanding tasks."""
        current["store"] = retarget_store(current["store"], vaultPath)
        return scan_vault_impl(current["store"])

    @server.tool()  # type: ignore[untyped-decorator]
    def create_task(
        title: str,
        area: str,
        dueDate: str | None = None,  # noqa: N803
        priority: str | None = None,
        parentProjects: list[str] | None = None,  # noqa: N803
        tags: list[str] | None = None,
        description: str | None = None,
    ) -> str:
        """Create a new task in the Obsidian vault."""
        return create_task_impl(
            current["store"],
            title,
            area,
            due_date=dueDate,
            priority=priority,
            parent_projects=parentProjects,
            tags=tags,
            description=description,
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def update_task(taskId: str, updates: dict[str, Any]) -> str:  # noqa: N803
        """Update an existing task in the Obsidian vault."""
        return update_task_impl(current["store"], taskId, updates)

    @server.tool()  # type: ignore[untyped-decorator]
    def search_tasks(
        query: str,
        status: str | None = None,
        area: str | None = None,
        tags: list[str] | None = None,
        limit: int | None = None,
    ) -> str:
        """Search for tasks in the Obsidian vault."""
        return search_tasks_impl(
            current["store"], query, status=status, area=area, tags=tags, limit=limit
        )

    @server.tool()  # type: ignore[untyped-decorator]
    def get_item(itemId: str) -> str:  # noqa: N803
        """Show one item by ID."""
        return get_item_impl(current["store"], itemId)

    @server.tool()  # type: ignore[untyped-decorator]
    def delete_item(itemId: str) -> str:  # noqa: N803
        """Delete an item by ID."""
        return delete_item_impl(current["store"], itemId)

    @server.tool()  # type: ignore[untyped-decorator]
    def list_items(
        type: str | None = None,  # noqa: A002
        area: str | None = None,
        status: str | None = None,
        tags: list[str] | None = None,
        sortBy: str | None = None,  # noqa: N803
        sortOrder: str | None = None,  # noqa: N803
        limit: int | None = None,
        offset: int | None = None,
    ) -> str:
        """List items with filters, sorting, and paging."""
        return list_items_impl(
            current["store"],
            item_type=type,
            area=area,
            status=status,
            tags=tags,
            sort_by=sortBy,
            sort_order=sortOrder,
            limit=limit,
            offset=offset,
        )
