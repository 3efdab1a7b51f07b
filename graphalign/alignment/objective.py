"""
Objective function for graph alignment.
Counts edges of the source graph conserved under a vertex mapping.
"""

import logging
from typing import Any, Dict, Hashable, Mapping

import numpy as np

from graphalign.alignment.chromosome import Chromosome
from graphalign.errors import ConfigurationError
from graphalign.graphs.network import GraphLike

logger = logging.getLogger(__name__)


def is_conserved_edge(graph2: GraphLike, mapping: Mapping[Hashable, Hashable], u: Hashable, v: Hashable) -> bool:
    """True if both endpoints are mapped and their images are adjacent in graph2."""
    return u in mapping and v in mapping and graph2.has_edge(mapping[u], mapping[v])


class EdgeOverlapObjective:
    """Fitness provider based on edge overlap between two graphs."""

    def __init__(self, graph1: GraphLike, graph2: GraphLike, target_rate: float = 0.8):
        """
        Initialize objective function.

        Args:
            graph1: Source graph (mapping keys are its vertices)
            graph2: Target graph (mapping values are its vertices)
            target_rate: Fraction of max(|E1|, |E2|) at which a run may stop early
        """
        if target_rate < 0:
            raise ConfigurationError(f"target_rate must be non-negative, got {target_rate}")

        self.graph1 = graph1
        self.graph2 = graph2
        self.target_rate = float(target_rate)

        self._source_vertices = list(graph1.vertices())
        self._target_vertices = list(graph2.vertices())
        self._source_edges = list(graph1.edges())
        self._target_edge_count = len(graph2.edges())
        self._target_fitness = max(len(self._source_edges), self._target_edge_count) * self.target_rate

        logger.info(
            f"Objective initialized: |V1|={len(self._source_vertices)}, |E1|={len(self._source_edges)}, "
            f"|V2|={len(self._target_vertices)}, |E2|={self._target_edge_count}, "
            f"target={self._target_fitness:g}"
        )

    @property
    def target_fitness(self) -> float:
        return self._target_fitness

    @property
    def mapping_size(self) -> int:
        """Number of source vertices every random chromosome maps."""
        return min(len(self._source_vertices), len(self._target_vertices))

    def random_chromosome(self, rng: np.random.RandomState) -> Chromosome:
        """Random injective mapping of the first min(|V1|, |V2|) source vertices."""
        order = rng.permutation(len(self._target_vertices))
        size = self.mapping_size
        mapping = {
            self._source_vertices[j]: self._target_vertices[int(order[j])]
            for j in range(size)
        }
        return Chromosome(mapping)

    def calculate_fitness(self, mapping: Mapping[Hashable, Hashable]) -> float:
        """
        Count conserved edges.

        Edges of graph1 with an unmapped endpoint do not contribute; mapping keys
        that are not graph1 vertices are ignored.

        Returns:
            Float overlap (higher is better)
        """
        overlap = sum(1 for a, b in self._source_edges if is_conserved_edge(self.graph2, mapping, a, b))
        return float(overlap)

    def calculate_metrics(self, mapping: Mapping[Hashable, Hashable]) -> Dict[str, Any]:
        """
        Calculate detailed alignment metrics for analysis.

        Returns:
            Dict with conserved_edges, source_edges, target_edges, induced_edges,
            edge_correctness, s3 (symmetric substructure score) and mapped_vertices.
        """
        conserved = int(self.calculate_fitness(mapping))
        source_edges = len(self._source_edges)

        image = set(mapping.values())
        induced = sum(1 for u, v in self.graph2.edges() if u in image and v in image)

        edge_correctness = conserved / source_edges if source_edges else 0.0
        s3_denominator = source_edges + induced - conserved
        s3 = conserved / s3_denominator if s3_denominator > 0 else 0.0

        return {
            "conserved_edges": conserved,
            "source_edges": source_edges,
            "target_edges": self._target_edge_count,
            "induced_edges": int(induced),
            "edge_correctness": float(edge_correctness),
            "s3": float(s3),
            "mapped_vertices": len(mapping),
            "target_fitness": float(self._target_fitness),
        }
