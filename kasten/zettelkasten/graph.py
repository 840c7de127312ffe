"""Zettel graph: nodes keyed by ID, edges labelled with a connection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from ..models import Connection, Zettel, ZettelID


@dataclass
class ZettelGraph:
    """Directed graph of zettels built from their link queries.

    Only the builder and the cache construct graphs, through `from_zettels`
    and `from_dict`.
    """

    nodes: dict[ZettelID, Zettel] = field(default_factory=dict)
    edges: dict[ZettelID, dict[ZettelID, Connection]] = field(default_factory=dict)  # src -> dst -> conn
    reverse_edges: dict[ZettelID, set[ZettelID]] = field(default_factory=dict)  # dst -> srcs

    @classmethod
    def from_zettels(
        cls,
        zettels: Iterable[Zettel],
        connections: Iterable[tuple[ZettelID, ZettelID, Connection]],
    ) -> "ZettelGraph":
        """Build graph from zettels and (source, target, connection) triples.

        Connections to unknown zettels and self-links are dropped. Repeated
        connections between the same pair are combined.
        """
        graph = cls()

        # Add all nodes first
        for zettel in sorted(zettels, key=lambda z: z.id):
            graph.nodes[zettel.id] = zettel

        for src, dst, conn in connections:
            if src == dst or src not in graph.nodes or dst not in graph.nodes:
                continue
            graph._connect(src, dst, conn)

        return graph

    def _connect(self, src: ZettelID, dst: ZettelID, conn: Connection) -> None:
        targets = self.edges.setdefault(src, {})
        existing = targets.get(dst)
        targets[dst] = conn if existing is None else existing.combine(conn)
        self.reverse_edges.setdefault(dst, set()).add(src)

    def has_zettel(self, zid: ZettelID) -> bool:
        return zid in self.nodes

    def get_zettel(self, zid: ZettelID) -> Zettel | None:
        return self.nodes.get(zid)

    def get_zettels(self) -> list[Zettel]:
        """All zettels in canonical (ID) order."""
        return [self.nodes[zid] for zid in sorted(self.nodes)]

    def connection(self, src: ZettelID, dst: ZettelID) -> Connection | None:
        return self.edges.get(src, {}).get(dst)

    def downlinks(self, zid: ZettelID) -> list[tuple[Connection, Zettel]]:
        """Zettels this one links to."""
        targets = self.edges.get(zid, {})
        return [(targets[dst], self.nodes[dst]) for dst in sorted(targets)]

    def backlinks(self, zid: ZettelID) -> list[tuple[Connection, Zettel]]:
        """Zettels linking to this one."""
        return [
            (self.edges[src][zid], self.nodes[src])
            for src in sorted(self.reverse_edges.get(zid, set()))
        ]

    def orphans(self) -> list[ZettelID]:
        """Zettels with no connections in either direction."""
        return [
            zid
            for zid in sorted(self.nodes)
            if not self.edges.get(zid) and not self.reverse_edges.get(zid)
        ]

    def top_level(self) -> list[ZettelID]:
        """Zettels that no other zettel branches into (folgezettel roots)."""
        return [
            zid
            for zid in sorted(self.nodes)
            if not any(
                self.edges[src][zid] == Connection.FOLGEZETTEL
                for src in self.reverse_edges.get(zid, set())
            )
        ]

    def folgezettel_cycles(self) -> list[list[ZettelID]]:
        """Find cycles in the folgezettel subgraph using Tarjan's SCC algorithm.

        Only returns components with more than one node.
        """
        index_counter = [0]
        stack: list[ZettelID] = []
        lowlinks: dict[ZettelID, int] = {}
        index: dict[ZettelID, int] = {}
        on_stack: dict[ZettelID, bool] = {}
        sccs: list[list[ZettelID]] = []

        def branches(node: ZettelID) -> list[ZettelID]:
            return sorted(
                dst for dst, conn in self.edges.get(node, {}).items() if conn == Connection.FOLGEZETTEL
            )

        def strongconnect(root: ZettelID) -> None:
            # Frames are (node, remaining branches); folgezettel chains may exceed the recursion limit
            work = [(root, iter(branches(root)))]
            visit(root)
            while work:
                node, children = work[-1]
                for dep in children:
                    if dep not in index:
                        visit(dep)
                        work.append((dep, iter(branches(dep))))
                        break
                    if on_stack.get(dep, False):
                        lowlinks[node] = min(lowlinks[node], index[dep])
                else:
                    work.pop()
                    if work:
                        parent = work[-1][0]
                        lowlinks[parent] = min(lowlinks[parent], lowlinks[node])
                    if lowlinks[node] == index[node]:
                        scc = []
                        while True:
                            w = stack.pop()
                            on_stack[w] = False
                            scc.append(w)
                            if w == node:
                                break
                        if len(scc) > 1:
                            sccs.append(sorted(scc))

        def visit(node: ZettelID) -> None:
            index[node] = index_counter[0]
            lowlinks[node] = index_counter[0]
            index_counter[0] += 1
            stack.append(node)
            on_stack[node] = True

        for node in sorted(self.nodes):
            if node not in index:
                strongconnect(node)

        return sccs

    def to_dict(self) -> dict[str, Any]:
        return {
            "zettels": [z.to_dict() for z in self.get_zettels()],
            "edges": [
                {"source": src.slug, "target": dst.slug, "connection": conn.value}
                for src in sorted(self.edges)
                for dst, conn in sorted(self.edges[src].items())
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ZettelGraph":
        return cls.from_zettels(
            (Zettel.from_dict(z) for z in data.get("zettels", [])),
            (
                (ZettelID(e["source"]), ZettelID(e["target"]), Connection(e["connection"]))
                for e in data.get("edges", [])
            ),
        )
