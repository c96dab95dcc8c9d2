"""Node-type catalog with role resolution.

Roles are resolved once per node type when the catalog is loaded, so the
editor never has to re-derive entry/exit status from names while editing.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, Mapping

from dialflow.editor.models import NodeRole, NodeType

log = logging.getLogger(__name__)

__all__ = ["NodeTypeCatalog", "resolve_role"]

ENTRY_CATEGORIES = frozenset({"extension"})
EXIT_CATEGORIES = frozenset({"terminal"})
ENTRY_NAME_MARKERS = ("entry",)
EXIT_NAME_MARKERS = ("exit", "hangup")


def resolve_role(category: str | None, name: str | None) -> NodeRole:
    """Classify a node type as entry, exit or interior.

    Category wins over name; entry is checked before exit.
    """
    category = (category or "").lower()
    name = (name or "").lower()
    if category in ENTRY_CATEGORIES or any(m in name for m in ENTRY_NAME_MARKERS):
        return NodeRole.ENTRY
    if category in EXIT_CATEGORIES or any(m in name for m in EXIT_NAME_MARKERS):
        return NodeRole.EXIT
    return NodeRole.INTERIOR


def _record_role(rec: Mapping[str, Any]) -> NodeRole:
    explicit = rec.get("role")
    if explicit:
        try:
            return NodeRole(str(explicit).lower())
        except ValueError:
            log.warning(
                "Node type %s has unknown role %r; inferring from category/name",
                rec.get("id"),
                explicit,
            )
    return resolve_role(rec.get("category"), rec.get("name"))


class NodeTypeCatalog:
    """Read-only lookup of node types by id."""

    def __init__(self, node_types: Iterable[NodeType] = ()) -> None:
        self._types: dict[int, NodeType] = {}
        for nt in node_types:
            self._types[nt.type_id] = nt

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]]) -> NodeTypeCatalog:
        """Build a catalog from raw API records.

        Accepts the dialplan ``/node-types`` shape (``id``, ``name``,
        ``category``, ``defaultParams``). An explicit ``role`` key
        overrides the heuristic.
        """
        types = []
        for rec in records:
            role = _record_role(rec)
            types.append(
                NodeType(
                    type_id=int(rec["id"]),
                    name=str(rec.get("name", "")),
                    category=str(rec.get("category") or ""),
                    role=role,
                    description=str(rec.get("description") or ""),
                    default_params=dict(rec.get("defaultParams") or {}),
                )
            )
        catalog = cls(types)
        log.info(
            "Loaded %d node types (%d entry, %d exit)",
            len(catalog),
            len(catalog.by_role(NodeRole.ENTRY)),
            len(catalog.by_role(NodeRole.EXIT)),
        )
        return catalog

    def get(self, type_id: int) -> NodeType | None:
        return self._types.get(type_id)

    def role_of(self, type_id: int) -> NodeRole:
        """Role for ``type_id``; unknown types are treated as interior."""
        nt = self._types.get(type_id)
        if nt is None:
            log.warning("Unknown node type %s, treating as interior", type_id)
            return NodeRole.INTERIOR
        return nt.role

    def by_role(self, role: NodeRole) -> list[NodeType]:
        return [nt for nt in self._types.values() if nt.role == role]

    def __contains__(self, type_id: object) -> bool:
        return type_id in self._types

    def __iter__(self) -> Iterator[NodeType]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)
