"""
Graph inputs for alignment.
Wraps networkx graphs behind the read-only capability the optimizer consumes.
"""
import logging
from pathlib import Path
from typing import Hashable, List, Optional, Protocol, Sequence, Tuple, Union

import networkx as nx
import numpy as np

logger = logging.getLogger(__name__)

Vertex = Hashable
Edge = Tuple[Vertex, Vertex]


class GraphLike(Protocol):
    """Read-only graph capability used by fitness providers."""

    def vertices(self) -> Sequence[Vertex]:
        ...

    def edges(self) -> Sequence[Edge]:
        ...

    def has_edge(self, u: Vertex, v: Vertex) -> bool:
        ...


class AlignmentGraph:
    """Immutable undirected simple graph backed by networkx."""

    def __init__(self, graph: nx.Graph, name: Optional[str] = None):
        """
        Initialize from a networkx graph.

        The input is copied into an undirected simple graph and frozen, so later
        changes to the caller's graph never leak into a running alignment.
        Self-loops are dropped.

        Args:
            graph: Any networkx graph (directed graphs are symmetrized)
            name: Optional label used in logs and reports
        """
        simple = nx.Graph(graph)
        loops = list(nx.selfloop_edges(simple))
        if loops:
            logger.warning(f"Dropping {len(loops)} self-loop(s) from graph {name or ''}".rstrip())
            simple.remove_edges_from(loops)

        self.name = name or str(graph.graph.get("name", "") or "graph")
        self._graph = nx.freeze(simple)
        # Insertion order keeps iteration reproducible across processes.
        self._vertices: List[Vertex] = list(self._graph.nodes)
        self._edges: List[Edge] = list(self._graph.edges)

    @classmethod
    def from_edge_list(cls, path: Union[str, Path], name: Optional[str] = None) -> "AlignmentGraph":
        """
        Load a graph from a whitespace separated edge-list file.

        Each line holds ``u v``; ``#`` starts a comment. Vertex ids are read as
        strings. Isolated vertices cannot be expressed in this format.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Edge list not found: {path}")

        graph = nx.read_edgelist(path, comments="#", nodetype=str, data=False)
        logger.debug(f"Loaded {path}: {graph.number_of_nodes()} vertices, {graph.number_of_edges()} edges")
        return cls(graph, name=name or path.stem)

    def vertices(self) -> List[Vertex]:
        return self._vertices

    def edges(self) -> List[Edge]:
        return self._edges

    def has_edge(self, u: Vertex, v: Vertex) -> bool:
        return self._graph.has_edge(u, v)

    @property
    def num_vertices(self) -> int:
        return len(self._vertices)

    @property
    def num_edges(self) -> int:
        return len(self._edges)

    def degree(self, v: Vertex) -> int:
        return self._graph.degree(v)

    def to_networkx(self) -> nx.Graph:
        """Return a mutable copy of the underlying graph."""
        return nx.Graph(self._graph)

    def __repr__(self) -> str:
        return f"AlignmentGraph(name={self.name!r}, vertices={self.num_vertices}, edges={self.num_edges})"


def random_graph(
    num_vertices: int,
    num_edges: int,
    seed: Union[int, np.random.RandomState, None] = None,
    name: Optional[str] = None,
) -> AlignmentGraph:
    """
    Generate a uniform random undirected simple graph.

    Vertices are labelled ``v0 .. v{n-1}``.

    Args:
        num_vertices: Number of vertices
        num_edges: Number of edges
        seed: Seed or RandomState for reproducible generation

    Returns:
        AlignmentGraph with exactly ``num_edges`` edges
    """
    if num_vertices < 0 or num_edges < 0:
        raise ValueError("Vertex and edge counts must be non-negative.")
    max_edges = num_vertices * (num_vertices - 1) // 2
    if num_edges > max_edges:
        raise ValueError(
            "The number of edges exceeds the maximum possible edges for the given number of vertices "
            f"({num_edges} > {max_edges})."
        )

    graph = nx.gnm_random_graph(num_vertices, num_edges, seed=seed)
    graph = nx.relabel_nodes(graph, {i: f"v{i}" for i in graph.nodes})
    return AlignmentGraph(graph, name=name or f"random_{num_vertices}_{num_edges}")
