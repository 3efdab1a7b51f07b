"""
Crossover operators for graph alignment.

Implements tournament parent selection followed by Partially Mapped Crossover
(PMX) on vertex mappings. PMX keeps each child injective whenever both parents
are injective over the same key set.
"""

import logging
from typing import Dict, Hashable, List, Sequence

import numpy as np

from graphalign.alignment.chromosome import Chromosome
from graphalign.errors import ConfigurationError, DomainMismatchError

logger = logging.getLogger(__name__)


class PartiallyMappedCrossover:
    """Tournament selection + PMX recombination."""

    def __init__(self, tournament_size: int = 3, crossover_rate: float = 0.85):
        """
        Args:
            tournament_size: Number of draws (with replacement) per tournament
            crossover_rate: Probability that a selected pair is recombined
        """
        if tournament_size < 1:
            raise ConfigurationError(f"tournament_size must be >= 1, got {tournament_size}")
        if not 0.0 <= crossover_rate <= 1.0:
            raise ConfigurationError(f"crossover_rate must be in [0, 1], got {crossover_rate}")
        self.tournament_size = int(tournament_size)
        self.crossover_rate = float(crossover_rate)

    def crossover(
        self,
        population: Sequence[Chromosome],
        offspring_size: int,
        rng: np.random.RandomState,
    ) -> List[Chromosome]:
        """
        Generate offspring from the current population.

        Args:
            population: Evaluated population
            offspring_size: Number of offspring to generate
            rng: Random source

        Returns:
            List of ``offspring_size`` chromosomes. Recombined children are
            unevaluated; pairs that skip recombination keep their parents' fitness.
        """
        selected = self.tournament_select(population, offspring_size, rng)
        offspring: List[Chromosome] = []

        size = len(selected)
        if size % 2 != 0:
            offspring.append(selected[-1])
            size -= 1

        for i in range(0, size, 2):
            parent1 = selected[i]
            parent2 = selected[i + 1]

            if rng.random() < self.crossover_rate:
                offspring.append(Chromosome(self.pmx(parent1.mapping, parent2.mapping, rng)))
                offspring.append(Chromosome(self.pmx(parent2.mapping, parent1.mapping, rng)))
            else:
                offspring.append(parent1)
                offspring.append(parent2)

        return offspring

    def tournament_select(
        self,
        population: Sequence[Chromosome],
        k: int,
        rng: np.random.RandomState,
    ) -> List[Chromosome]:
        """Select ``k`` copies of best-of-``tournament_size`` random draws."""
        if not population:
            return []

        n = len(population)
        selected = []
        while len(selected) < k:
            best = population[int(rng.randint(n))]
            for _ in range(1, self.tournament_size):
                candidate = population[int(rng.randint(n))]
                if candidate.fitness > best.fitness:
                    best = candidate
            selected.append(best.copy())
        return selected

    def pmx(
        self,
        parent1: Dict[Hashable, Hashable],
        parent2: Dict[Hashable, Hashable],
        rng: np.random.RandomState,
    ) -> Dict[Hashable, Hashable]:
        """
        Partially Mapped Crossover of two mappings.

        The segment between two random cut points (over parent1's key order) is
        copied from parent1; remaining keys take parent2's value, following
        parent1's value->key chain while the value is already used.

        Raises:
            DomainMismatchError: if the parents do not share the same key set
        """
        if parent1.keys() != parent2.keys():
            raise DomainMismatchError("PMX parents must map the same set of source vertices.")

        keys = list(parent1)
        if not keys:
            return {}

        point1 = int(rng.randint(len(keys)))
        point2 = int(rng.randint(len(keys)))
        if point1 > point2:
            point1, point2 = point2, point1

        child = {keys[i]: parent1[keys[i]] for i in range(point1, point2 + 1)}
        used = set(child.values())
        owner = {value: key for key, value in parent1.items()}

        for key in keys:
            if key in child:
                continue
            value = parent2[key]
            while value in used:
                origin = owner.get(value)
                if origin is None:
                    raise DomainMismatchError(f"Value {value!r} is not held by the first parent.")
                value = parent2[origin]
            child[key] = value
            used.add(value)

        # Keep parent1's key order.
        return {key: child[key] for key in keys}
