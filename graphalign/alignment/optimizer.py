"""
Genetic algorithm for graph alignment.
Fully seeded for reproducibility: a single RandomState drives every operator.

Features:
- Pluggable fitness provider, crossover, mutation and improvement operators
- Elitism: the best chromosomes of each generation survive unmodified
- Stagnation tracking feeding the adaptive mutation rate
- Catastrophe: partial population reset after prolonged stagnation
- Early stopping once the provider's target fitness is reached
- Diversity tracking: genotypic (mapping distance) and phenotypic per generation
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Hashable, List, Optional, Protocol, Sequence

import numpy as np
from deap import tools

from graphalign.alignment.chromosome import Chromosome, sort_population
from graphalign.errors import ConfigurationError

logger = logging.getLogger(__name__)

Mapping = Dict[Hashable, Hashable]


class FitnessProvider(Protocol):
    @property
    def target_fitness(self) -> float:
        ...

    def random_chromosome(self, rng: np.random.RandomState) -> Chromosome:
        ...

    def calculate_fitness(self, mapping: Mapping) -> float:
        ...


class CrossoverOperator(Protocol):
    def crossover(
        self, population: Sequence[Chromosome], offspring_size: int, rng: np.random.RandomState
    ) -> List[Chromosome]:
        ...


class MutationOperator(Protocol):
    def mutation_rate(self, stagnant_generations: int) -> float:
        ...

    def mutate(
        self, population: Sequence[Chromosome], stagnant_generations: int, rng: np.random.RandomState
    ) -> Any:
        ...


class ImprovementOperator(Protocol):
    def is_improvement_needed(
        self, chromosome: Chromosome, provider: FitnessProvider, generation: int, stagnant_generations: int
    ) -> bool:
        ...

    def improve(self, chromosome: Chromosome, provider: FitnessProvider, rng: np.random.RandomState) -> Chromosome:
        ...


@dataclass
class AlignmentResult:
    """Outcome of a GA run."""

    mapping: Mapping
    fitness: float
    target_fitness: float
    generations: int
    reached_target: bool
    fitness_history: List[float] = field(default_factory=list)
    generation_stats: List[Dict[str, Any]] = field(default_factory=list)
    catastrophes: int = 0
    improvements: int = 0
    evaluations: int = 0


class GeneticAlgorithm:
    """Seeded genetic algorithm searching for a high-overlap vertex mapping."""

    def __init__(
        self,
        fitness_provider: FitnessProvider,
        crossover_operator: CrossoverOperator,
        mutation_operator: MutationOperator,
        improvement_operator: ImprovementOperator,
        seed: Optional[int] = None,
        rng: Optional[np.random.RandomState] = None,
        population_size: int = 100,
        elitism_count: int = 5,
        max_generations: int = 1000,
        reset_rate: float = 0.3,
        catastrophe_threshold: int = 100,
    ):
        """
        Initialize GA.

        Args:
            fitness_provider: Creates random chromosomes and scores mappings
            crossover_operator: Produces offspring from the population
            mutation_operator: Mutates offspring in place
            improvement_operator: Local search applied to the generation best
            seed: Random seed (ignored when ``rng`` is given)
            rng: Random source shared by every operator
            population_size: Population size
            elitism_count: Number of best chromosomes kept unmodified
            max_generations: Number of generations
            reset_rate: Fraction of slots refilled during a catastrophe (0-1)
            catastrophe_threshold: Stagnant generations before a catastrophe
        """
        if population_size <= 0:
            raise ConfigurationError(f"population_size must be > 0, got {population_size}")
        if not 0 <= elitism_count < population_size:
            raise ConfigurationError(
                f"elitism_count must satisfy 0 <= elitism_count < population_size, "
                f"got {elitism_count} with population_size={population_size}"
            )
        if max_generations <= 0:
            raise ConfigurationError(f"max_generations must be > 0, got {max_generations}")
        if not 0.0 <= reset_rate <= 1.0:
            raise ConfigurationError(f"reset_rate must be in [0, 1], got {reset_rate}")
        if catastrophe_threshold <= 0:
            raise ConfigurationError(f"catastrophe_threshold must be > 0, got {catastrophe_threshold}")

        self.fitness_provider = fitness_provider
        self.crossover_operator = crossover_operator
        self.mutation_operator = mutation_operator
        self.improvement_operator = improvement_operator

        self.seed = seed
        self.population_size = int(population_size)
        self.elitism_count = int(elitism_count)
        self.max_generations = int(max_generations)
        self.reset_rate = float(reset_rate)
        self.catastrophe_threshold = int(catastrophe_threshold)

        # Seeded RNG
        self.rng = rng if rng is not None else np.random.RandomState(seed)

        self._evaluations = 0
        self._diversity_rng = np.random.RandomState(seed if seed is not None else 0)

    def _initialize_population(self) -> List[Chromosome]:
        """Create ``population_size`` random chromosomes."""
        return [self.fitness_provider.random_chromosome(self.rng) for _ in range(self.population_size)]

    def _evaluate_population(self, population: List[Chromosome]) -> List[Chromosome]:
        """Evaluate chromosomes with a stale fitness, then sort best first."""
        for chromosome in population:
            if not chromosome.evaluated:
                chromosome.fitness = self.fitness_provider.calculate_fitness(chromosome.mapping)
                self._evaluations += 1
        return sort_population(population)

    def _trigger_catastrophe(self, population: List[Chromosome], global_best: Chromosome) -> List[Chromosome]:
        """Refill random slots with fresh chromosomes, keeping a copy of the global best."""
        reset_count = int(self.population_size * self.reset_rate)
        for _ in range(reset_count):
            population[int(self.rng.randint(self.population_size))] = self.fitness_provider.random_chromosome(
                self.rng
            )

        population[int(self.rng.randint(self.population_size))] = global_best.copy()
        return self._evaluate_population(population)

    def _compute_genotypic_diversity(self, population: List[Chromosome]) -> float:
        """Mean pairwise fraction of source vertices mapped differently (sampled)."""
        if len(population) < 2:
            return 0.0
        # Sample pairs for efficiency (cap at 200 pairs)
        n = len(population)
        max_pairs = min(200, n * (n - 1) // 2)
        total_dist = 0.0
        count = 0
        indices = list(range(n))
        self._diversity_rng.shuffle(indices)
        for i in range(n):
            for j in range(i + 1, n):
                a = population[indices[i]].mapping
                b = population[indices[j]].mapping
                if a:
                    differing = sum(1 for key, value in a.items() if b.get(key) != value)
                    total_dist += differing / len(a)
                count += 1
                if count >= max_pairs:
                    return total_dist / count
        return total_dist / max(1, count)

    @staticmethod
    def _compute_phenotypic_diversity(population: List[Chromosome]) -> float:
        """Compute standard deviation of fitness values (phenotypic diversity)."""
        fits = [c.fitness for c in population if c.evaluated]
        if len(fits) < 2:
            return 0.0
        return float(np.std(fits))

    def optimize(
        self,
        progress_callback: Optional[Callable[[int, float, float], None]] = None,
        generation_callback: Optional[Callable[[int, Mapping, float, Dict[str, Any]], None]] = None,
    ) -> AlignmentResult:
        """
        Run GA optimization.

        Args:
            progress_callback: Optional callback (generation, best_fitness, mean_fitness)
            generation_callback: Optional callback executed once per generation with
                                (generation_idx, best_mapping_snapshot, global_best_fitness, stats).
                                Errors in either callback are caught and logged.

        Returns:
            AlignmentResult with the global best mapping and per-generation history
        """
        target_fitness = float(self.fitness_provider.target_fitness)
        logger.info(
            f"Starting GA optimization (pop={self.population_size}, gen={self.max_generations}, "
            f"elitism={self.elitism_count}, reset_rate={self.reset_rate:.0%}, "
            f"catastrophe_after={self.catastrophe_threshold}, target={target_fitness:g})"
        )

        self._evaluations = 0
        # Diversity sampling draws from its own stream, independent of self.rng.
        self._diversity_rng = np.random.RandomState(self.seed if self.seed is not None else 0)
        population = self._initialize_population()
        self._evaluate_population(population)

        global_best = population[0].copy()
        stagnant = 0
        catastrophes = 0
        improvements = 0
        reached_target = False
        generations_run = 0

        fitness_history: List[float] = []
        generation_stats: List[Dict[str, Any]] = []

        for generation in range(self.max_generations):
            catastrophe = False
            if stagnant >= self.catastrophe_threshold:
                logger.info(
                    f"Catastrophe at gen {generation + 1}: {stagnant} stagnant generations, "
                    f"reinitializing {int(self.population_size * self.reset_rate)} slots"
                )
                population = self._trigger_catastrophe(population, global_best)
                stagnant = 0
                catastrophes += 1
                catastrophe = True

            mutation_rate = self.mutation_operator.mutation_rate(stagnant)
            offspring = self.crossover_operator.crossover(
                population, self.population_size - self.elitism_count, self.rng
            )
            self.mutation_operator.mutate(offspring, stagnant, self.rng)

            # Elites come from the previous, already sorted population.
            offspring.extend(tools.selBest(population, self.elitism_count, fit_attr="fitness"))
            population = self._evaluate_population(offspring)

            current_best = population[0]
            improved = False
            if self.improvement_operator.is_improvement_needed(
                current_best, self.fitness_provider, generation, stagnant
            ):
                candidate = self.improvement_operator.improve(current_best, self.fitness_provider, self.rng)
                if candidate.fitness > current_best.fitness:
                    logger.debug(
                        f"Local search improved gen {generation + 1}: "
                        f"{current_best.fitness:g} -> {candidate.fitness:g}"
                    )
                    population[0] = candidate
                    current_best = candidate
                    improved = True
                    improvements += 1

            if current_best.fitness > global_best.fitness:
                global_best = current_best.copy()
                stagnant = 0
            else:
                stagnant += 1

            fits = [c.fitness for c in population]
            current_mean = float(np.mean(fits))
            gen_stat = {
                "generation": generation + 1,
                "best_fitness": float(current_best.fitness),
                "mean_fitness": current_mean,
                "std_fitness": float(np.std(fits)),
                "global_best_fitness": float(global_best.fitness),
                "target_fitness": target_fitness,
                "stagnant_generations": stagnant,
                "mutation_rate": float(mutation_rate),
                "catastrophe": catastrophe,
                "improved": improved,
                "genotypic_diversity": float(self._compute_genotypic_diversity(population)),
                "phenotypic_diversity": float(self._compute_phenotypic_diversity(population)),
            }
            fitness_history.append(float(global_best.fitness))
            generation_stats.append(gen_stat)
            generations_run = generation + 1

            logger.info(
                f"Gen {generation + 1}/{self.max_generations}: best={current_best.fitness:g}, "
                f"mean={current_mean:.2f}, global={global_best.fitness:g}/{target_fitness:g}, "
                f"stagnant={stagnant}, div={gen_stat['genotypic_diversity']:.2f}"
            )

            if progress_callback:
                try:
                    progress_callback(generation + 1, float(current_best.fitness), current_mean)
                except Exception as e:
                    logger.warning("Progress callback failed at gen %s: %s", generation + 1, e)

            if generation_callback:
                try:
                    generation_callback(
                        generation + 1,
                        dict(global_best.mapping),
                        float(global_best.fitness),
                        dict(gen_stat),
                    )
                except Exception as e:
                    logger.warning("Generation callback failed at gen %s: %s", generation + 1, e)

            if global_best.fitness >= target_fitness:
                reached_target = True
                logger.info(f"Target fitness reached at gen {generation + 1}. Early stopping.")
                break

        logger.info(
            f"GA complete: best fitness = {global_best.fitness:g} / {target_fitness:g} "
            f"after {generations_run} generations ({catastrophes} catastrophes, {improvements} improvements)"
        )

        return AlignmentResult(
            mapping=dict(global_best.mapping),
            fitness=float(global_best.fitness),
            target_fitness=target_fitness,
            generations=generations_run,
            reached_target=reached_target,
            fitness_history=fitness_history,
            generation_stats=generation_stats,
            catastrophes=catastrophes,
            improvements=improvements,
            evaluations=self._evaluations,
        )

    def find_best_mapping(self) -> Mapping:
        """Run the optimization and return only the best mapping."""
        return self.optimize().mapping
