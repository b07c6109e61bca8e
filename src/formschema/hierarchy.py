"""
Flat field list -> navigable tree.

The tree is a projection of Module.fields and is rebuilt from scratch on
every edit. The builder is total: orphans, cycles and duplicate ids never
make it fail, they are recorded on the Hierarchy so a broken module can
still be shown and repaired.
"""
from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Iterator, List, Optional, Sequence, Set, Tuple
import asyncio
import logging

from .model import Field, Module

logger = logging.getLogger(__name__)


@dataclass
class HierarchyNode:
    field: Field
    depth: int = 0
    path: str = ""
    children: List["HierarchyNode"] = field(default_factory=list)

    @property
    def id(self) -> str:
        return self.field.id

    @property
    def parent_id(self) -> Optional[str]:
        return self.field.parent_id

    def descendants(self) -> Iterator["HierarchyNode"]:
        """Depth-first, pre-order."""
        for child in self.children:
            yield child
            yield from child.descendants()

    def ancestors(self, hierarchy: "Hierarchy") -> Iterator["HierarchyNode"]:
        """Closest first. Uses the tree's effective parents, so broken links are not followed."""
        parent_id = hierarchy.effective_parents.get(self.id)
        while parent_id is not None:
            node = hierarchy.nodes[parent_id]
            yield node
            parent_id = hierarchy.effective_parents.get(parent_id)

    def __repr__(self) -> str:
        return f"HierarchyNode({self.field.field_type} [{self.id}] depth={self.depth}, children={len(self.children)})"


@dataclass(frozen=True)
class HierarchyMetrics:
    total_fields: int
    root_fields: int
    max_depth: int
    average_depth: float
    conditional_fields: int
    complexity_score: float


@dataclass
class Hierarchy:
    roots: List[HierarchyNode] = field(default_factory=list)
    nodes: Dict[str, HierarchyNode] = field(default_factory=dict)
    # parent actually used in the tree (None for roots, orphans and cycle breaks)
    effective_parents: Dict[str, Optional[str]] = field(default_factory=dict)
    orphans: List[str] = field(default_factory=list)
    cycle_breaks: List[str] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)

    def get(self, field_id: Optional[str]) -> Optional[HierarchyNode]:
        if field_id is None:
            return None
        return self.nodes.get(field_id)

    def walk(self) -> Iterator[HierarchyNode]:
        for root in self.roots:
            yield root
            yield from root.descendants()

    def metrics(self) -> HierarchyMetrics:
        if not self.nodes:
            return HierarchyMetrics(0, 0, 0, 0.0, 0, 0.0)
        placed = list(self.walk())
        total = len(placed)
        max_depth = max(n.depth for n in placed)
        average_depth = sum(n.depth for n in placed) / total
        conditional = sum(1 for n in placed if n.field.relationship.is_conditional)
        parents = [n for n in placed if n.children]
        avg_children = (sum(len(n.children) for n in parents) / len(parents)) if parents else 0.0
        score = total * 1.0 + max_depth * 5.0 + conditional * 3.0 + avg_children * 2.0
        return HierarchyMetrics(
            total_fields=total,
            root_fields=len(self.roots),
            max_depth=max_depth,
            average_depth=round(average_depth, 2),
            conditional_fields=conditional,
            complexity_score=round(score, 2),
        )


@dataclass(frozen=True)
class HierarchyReport:
    errors: List[str]
    warnings: List[str]

    @property
    def is_valid(self) -> bool:
        return not self.errors


# ----- building -----

def build_hierarchy(module: Module) -> Hierarchy:
    """Pure, deterministic. Children and roots are sorted by (order, id)."""
    h = Hierarchy()
    fields: Dict[str, Field] = {}
    for f in module.fields:
        if f.id in fields:
            h.duplicates.append(f.id)
            continue
        fields[f.id] = f

    # 1) resolve declared parents
    parents: Dict[str, Optional[str]] = {}
    for fid, f in fields.items():
        if f.parent_id is None:
            parents[fid] = None
        elif f.parent_id not in fields:
            logger.warning("Field '%s' references non-existent parent '%s'; treating it as a root.", fid, f.parent_id)
            h.orphans.append(fid)
            parents[fid] = None
        else:
            parents[fid] = f.parent_id

    # 2) break cycles: walk up from each field; a revisited field becomes a root
    grounded: Set[str] = set()
    for fid in fields:
        chain: List[str] = []
        on_chain: Set[str] = set()
        cur: Optional[str] = fid
        while cur is not None and cur not in grounded:
            if cur in on_chain:
                logger.warning("Circular parent reference at field '%s'; treating it as a root.", cur)
                h.cycle_breaks.append(cur)
                parents[cur] = None
                break
            chain.append(cur)
            on_chain.add(cur)
            cur = parents[cur]
        grounded.update(chain)
    h.effective_parents = parents

    # 3) attach + sort
    for fid, f in fields.items():
        h.nodes[fid] = HierarchyNode(field=f)
    for fid, node in h.nodes.items():
        parent_id = parents[fid]
        if parent_id is None:
            h.roots.append(node)
        else:
            h.nodes[parent_id].children.append(node)

    _sort_and_measure(h.roots, depth=0, prefix="")
    logger.debug(
        "Built hierarchy for module %s: %d fields, %d roots",
        module.id, len(h.nodes), len(h.roots),
    )
    return h


async def build_hierarchy_async(module: Module) -> Hierarchy:
    """Coroutine wrapper for callers that sit in an event loop."""
    await asyncio.sleep(0)
    return build_hierarchy(module)


def _sort_and_measure(nodes: List[HierarchyNode], depth: int, prefix: str) -> None:
    # iterative so deep trees don't hit the recursion limit
    stack: List[Tuple[List[HierarchyNode], int, str]] = [(nodes, depth, prefix)]
    while stack:
        level, d, pre = stack.pop()
        level.sort(key=lambda n: n.field.sort_key())
        for node in level:
            node.depth = d
            node.path = f"{pre}.{node.id}" if pre else node.id
            if node.children:
                stack.append((node.children, d + 1, node.path))


def flatten(roots: Sequence[HierarchyNode]) -> List[Field]:
    """Fields in depth-first pre-order."""
    out: List[Field] = []
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        out.append(node.field)
        stack.extend(reversed(node.children))
    return out


# ----- structural queries used by the editor -----

def descendant_ids(fields: Iterable[Field], field_id: str) -> Set[str]:
    """field_id plus everything below it, breadth-first over parent links."""
    by_parent: Dict[Optional[str], List[str]] = {}
    for f in fields:
        by_parent.setdefault(f.parent_id, []).append(f.id)
    ids = {field_id}
    queue = deque([field_id])
    while queue:
        current = queue.popleft()
        for child_id in by_parent.get(current, ()):
            if child_id not in ids:
                ids.add(child_id)
                queue.append(child_id)
    return ids


def has_circular_reference(f: Field, by_id: Dict[str, Field]) -> bool:
    """True when following parent ids upward from f leads back to f itself."""
    seen: Set[str] = set()
    current = by_id.get(f.parent_id) if f.parent_id is not None else None
    while current is not None:
        if current.id == f.id:
            return True
        if current.id in seen:
            # a loop further up that f only hangs off
            return False
        seen.add(current.id)
        current = by_id.get(current.parent_id) if current.parent_id is not None else None
    return False


def check_hierarchy(module: Module) -> HierarchyReport:
    errors: List[str] = []
    warnings: List[str] = []
    seen: Set[str] = set()
    by_id: Dict[str, Field] = {}
    for f in module.fields:
        if not f.id or not f.id.strip():
            errors.append("Field has empty ID")
        if f.id in seen:
            errors.append(f"Duplicate field ID: '{f.id}'")
            continue
        seen.add(f.id)
        by_id[f.id] = f
        if f.parent_id == f.id:
            errors.append(f"Field '{f.id}' references itself as parent")

    for f in by_id.values():
        if f.parent_id is not None and f.parent_id not in by_id:
            warnings.append(f"Field '{f.id}' references non-existent parent '{f.parent_id}'")

    for f in by_id.values():
        if f.parent_id != f.id and has_circular_reference(f, by_id):
            errors.append(f"Circular reference detected involving field '{f.id}'")

    return HierarchyReport(errors, warnings)


def repair_hierarchy(module: Module) -> Module:
    """
    Detach fields whose parent link is broken: self-references, unknown
    parents, and the cycle-breaking fields the builder would pick.
    """
    h = build_hierarchy(module)
    to_detach = set(h.orphans) | set(h.cycle_breaks)
    if not to_detach:
        return module
    fixed = []
    for f in module.fields:
        if f.id in to_detach and f.parent_id is not None:
            logger.warning("Clearing parent reference '%s' from field '%s'", f.parent_id, f.id)
            f = replace(f, parent_id=None)
        fixed.append(f)
    return replace(module, fields=tuple(fixed))
