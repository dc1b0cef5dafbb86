"""Workspace discovery from the client's ``storage/root-state.json``."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from slack_unread.extraction.errors import WorkspaceParseFailed

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorkspaceIcon:
    image_34: str | None = None
    image_44: str | None = None
    image_68: str | None = None

    @property
    def best_url(self) -> str | None:
        return self.image_44 or self.image_34 or self.image_68


@dataclass(frozen=True)
class WorkspaceMetadata:
    """One signed-in workspace. ``domain`` selects the API subdomain."""

    id: str
    domain: str
    name: str
    url: str
    order: int | None = None
    icon: WorkspaceIcon | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WorkspaceMetadata:
        icon_data = data.get("icon")
        icon = None
        if isinstance(icon_data, dict):
            icon = WorkspaceIcon(
                image_34=icon_data.get("image_34"),
                image_44=icon_data.get("image_44"),
                image_68=icon_data.get("image_68"),
            )
        return cls(
            id=data["id"],
            domain=data["domain"],
            name=data["name"],
            url=data["url"],
            order=data.get("order"),
            icon=icon,
        )


def parse_workspaces(raw: str | bytes) -> list[WorkspaceMetadata]:
    """Parse root-state JSON into workspaces sorted by ``order``.

    Missing ``order`` counts as 0. The sort is stable, so ties keep the
    order the workspaces appear in the file.

    Args:
        raw: Contents of root-state.json.

    Returns:
        Workspaces, active one first. Empty if the document has none.

    Raises:
        WorkspaceParseFailed: If the document is not valid JSON, or a
            workspace entry lacks a required field.
    """
    try:
        root = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise WorkspaceParseFailed() from exc

    if not isinstance(root, dict):
        raise WorkspaceParseFailed()

    entries = root.get("workspaces") or {}
    if not isinstance(entries, dict):
        raise WorkspaceParseFailed()

    try:
        workspaces = [WorkspaceMetadata.from_dict(entry) for entry in entries.values()]
    except (KeyError, TypeError, AttributeError) as exc:
        raise WorkspaceParseFailed() from exc

    return sorted(workspaces, key=lambda ws: ws.order or 0)


def load_workspaces(root_state_path: Path) -> list[WorkspaceMetadata]:
    """Read and parse root-state.json.

    Raises:
        WorkspaceParseFailed: If the file cannot be read or parsed.
    """
    try:
        raw = root_state_path.read_bytes()
    except OSError as exc:
        logger.warning("Cannot read %s: %s", root_state_path, exc)
        raise WorkspaceParseFailed() from exc

    workspaces = parse_workspaces(raw)
    if not workspaces:
        logger.info("No workspaces listed in %s", root_state_path.name)
    return workspaces
