"""
Local search improvement for graph alignment.

Best-improvement swap hill climbing over a random key order.
"""

import logging

import numpy as np

from graphalign.alignment.chromosome import Chromosome
from graphalign.errors import ConfigurationError

logger = logging.getLogger(__name__)

# Fraction of the target fitness above which every generation gets local search.
NEAR_TARGET_FRACTION = 0.9


class LocalSearchImprovement:
    """Swap-based hill climbing applied to the generation's best chromosome."""

    def __init__(self, interval: int = 10):
        """
        Args:
            interval: Run local search every ``interval`` generations
        """
        if interval <= 0:
            raise ConfigurationError(f"interval must be > 0, got {interval}")
        self.interval = int(interval)

    def is_improvement_needed(self, chromosome: Chromosome, provider, generation: int, stagnant_generations: int) -> bool:
        """Periodic trigger, or every generation once the best is close to the target."""
        if generation % self.interval == 0:
            return True
        return chromosome.fitness >= provider.target_fitness * NEAR_TARGET_FRACTION

    def improve(self, chromosome: Chromosome, provider, rng: np.random.RandomState) -> Chromosome:
        """
        Hill climb from ``chromosome`` without modifying it.

        Each key in a shuffled order is tried against every other remaining key;
        the best strictly improving swap is committed and its partner leaves the
        pool together with the key itself.

        Returns:
            New evaluated chromosome with fitness >= the input's
        """
        mapping = dict(chromosome.mapping)
        best_fitness = (
            chromosome.fitness if chromosome.evaluated else provider.calculate_fitness(mapping)
        )
        start_fitness = best_fitness

        keys = list(mapping)
        remaining = [keys[int(i)] for i in rng.permutation(len(keys))]

        while remaining:
            k1 = remaining.pop(0)
            best_partner = None

            for k2 in remaining:
                mapping[k1], mapping[k2] = mapping[k2], mapping[k1]
                fitness = provider.calculate_fitness(mapping)
                mapping[k1], mapping[k2] = mapping[k2], mapping[k1]

                if fitness > best_fitness:
                    best_fitness = fitness
                    best_partner = k2

            if best_partner is not None:
                mapping[k1], mapping[best_partner] = mapping[best_partner], mapping[k1]
                remaining.remove(best_partner)

        if best_fitness > start_fitness:
            logger.debug(f"Local search: {start_fitness:g} -> {best_fitness:g}")
        return Chromosome(mapping, fitness=best_fitness)
