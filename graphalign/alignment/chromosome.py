"""
Chromosome: a candidate vertex mapping with a lazily cached fitness.
"""
from typing import Dict, Hashable, Mapping, Optional

from deap import base

from graphalign.errors import InvalidStateError


class OverlapFitness(base.Fitness):
    """Single-objective, maximized edge-overlap fitness."""

    weights = (1.0,)


class Chromosome:
    """
    Candidate mapping from source-graph vertices to target-graph vertices.

    The fitness is cached in a DEAP ``Fitness``; it is valid only while it
    describes the current mapping. Every in-place change of the mapping must go
    through ``swap``/``assign`` or be followed by ``invalidate``.
    """

    __slots__ = ("mapping", "_fitness")

    def __init__(self, mapping: Mapping[Hashable, Hashable], fitness: Optional[float] = None):
        self.mapping: Dict[Hashable, Hashable] = dict(mapping)
        self._fitness = OverlapFitness()
        if fitness is not None:
            self._fitness.values = (float(fitness),)

    @property
    def evaluated(self) -> bool:
        return self._fitness.valid

    @property
    def fitness(self) -> float:
        if not self._fitness.valid:
            raise InvalidStateError("Fitness not evaluated yet.")
        return self._fitness.values[0]

    @fitness.setter
    def fitness(self, value: float):
        self._fitness.values = (float(value),)

    def invalidate(self):
        """Drop the cached fitness after the mapping changed."""
        if self._fitness.valid:
            del self._fitness.values

    def swap(self, key1: Hashable, key2: Hashable):
        """Exchange the values of two keys and invalidate the fitness."""
        mapping = self.mapping
        mapping[key1], mapping[key2] = mapping[key2], mapping[key1]
        self.invalidate()

    def assign(self, key: Hashable, value: Hashable):
        self.mapping[key] = value
        self.invalidate()

    def copy(self) -> "Chromosome":
        """Independent copy with the same mapping and cached fitness state."""
        clone = Chromosome(self.mapping)
        if self._fitness.valid:
            clone._fitness.values = self._fitness.values
        return clone

    def __len__(self) -> int:
        return len(self.mapping)

    def __repr__(self) -> str:
        fit = f"{self._fitness.values[0]:g}" if self._fitness.valid else "unevaluated"
        return f"Chromosome(size={len(self.mapping)}, fitness={fit})"


def sort_population(population):
    """Sort in place by fitness, best first. Stable for ties."""
    population.sort(key=lambda chromosome: chromosome.fitness, reverse=True)
    return population
