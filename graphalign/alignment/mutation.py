"""
Adaptive swap mutation.

The mutation rate grows with the number of stagnant generations so the search
spreads out when progress stalls.
"""

import logging
from typing import Sequence

import numpy as np

from graphalign.alignment.chromosome import Chromosome
from graphalign.errors import ConfigurationError

logger = logging.getLogger(__name__)


class SwapMutation:
    """Swap the targets of two distinct source vertices."""

    def __init__(self, base_mutation_rate: float = 0.15, stagnant_rate: float = 0.5):
        if not 0.0 <= base_mutation_rate <= 1.0:
            raise ConfigurationError(f"base_mutation_rate must be in [0, 1], got {base_mutation_rate}")
        if stagnant_rate < 0:
            raise ConfigurationError(f"stagnant_rate must be non-negative, got {stagnant_rate}")
        self.base_mutation_rate = float(base_mutation_rate)
        self.stagnant_rate = float(stagnant_rate)

    def mutation_rate(self, stagnant_generations: int) -> float:
        """Effective rate for the given stagnation, capped at 1."""
        return min(1.0, self.base_mutation_rate * (1 + stagnant_generations * self.stagnant_rate))

    def mutate(
        self,
        population: Sequence[Chromosome],
        stagnant_generations: int,
        rng: np.random.RandomState,
    ) -> int:
        """
        Mutate chromosomes in place.

        Returns:
            Number of chromosomes that were swapped
        """
        rate = self.mutation_rate(stagnant_generations)
        mutated = 0

        for chromosome in population:
            if rng.random() >= rate:
                continue
            keys = list(chromosome.mapping)
            n = len(keys)
            if n < 2:
                continue

            i = int(rng.randint(n))
            j = int(rng.randint(n - 1))
            if j >= i:
                j += 1
            chromosome.swap(keys[i], keys[j])
            mutated += 1

        if mutated:
            logger.debug(f"Mutated {mutated}/{len(population)} chromosomes at rate {rate:.3f}")
        return mutated
