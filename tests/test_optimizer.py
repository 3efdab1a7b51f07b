"""Tests for the alignment genetic algorithm."""

import networkx as nx
import numpy as np
import pytest

from graphalign.alignment.chromosome import Chromosome
from graphalign.alignment.crossover import PartiallyMappedCrossover
from graphalign.alignment.local_search import LocalSearchImprovement
from graphalign.alignment.mutation import SwapMutation
from graphalign.alignment.objective import EdgeOverlapObjective
from graphalign.alignment.optimizer import AlignmentResult, GeneticAlgorithm
from graphalign.errors import ConfigurationError
from graphalign.graphs.network import AlignmentGraph, random_graph

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _make_ga(graph1, graph2, target_rate=0.8, interval=10, **kwargs):
    objective = EdgeOverlapObjective(graph1, graph2, target_rate=target_rate)
    return GeneticAlgorithm(
        fitness_provider=objective,
        crossover_operator=PartiallyMappedCrossover(tournament_size=3, crossover_rate=0.85),
        mutation_operator=SwapMutation(base_mutation_rate=0.15, stagnant_rate=0.5),
        improvement_operator=LocalSearchImprovement(interval=interval),
        **kwargs,
    )


@pytest.fixture
def random_pair():
    return random_graph(12, 20, seed=1), random_graph(12, 20, seed=2)


class _NoGainImprover:
    """Improvement operator that always runs but never finds anything better."""

    def __init__(self):
        self.calls = 0

    def is_improvement_needed(self, chromosome, provider, generation, stagnant_generations):
        return True

    def improve(self, chromosome, provider, rng):
        self.calls += 1
        return chromosome.copy()


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


class TestGAConfiguration:
    def test_defaults(self, random_pair):
        ga = _make_ga(*random_pair, seed=1)
        assert ga.population_size == 100
        assert ga.elitism_count == 5
        assert ga.max_generations == 1000
        assert ga.reset_rate == 0.3
        assert ga.catastrophe_threshold == 100

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"population_size": 0},
            {"population_size": 5, "elitism_count": 5},
            {"elitism_count": -1},
            {"max_generations": 0},
            {"reset_rate": 1.5},
            {"reset_rate": -0.1},
            {"catastrophe_threshold": 0},
        ],
    )
    def test_invalid_configuration_fails_before_running(self, random_pair, kwargs):
        with pytest.raises(ConfigurationError):
            _make_ga(*random_pair, seed=1, **kwargs)

    def test_injected_rng_is_used(self, random_pair):
        rng = np.random.RandomState(0)
        ga = _make_ga(*random_pair, rng=rng)
        assert ga.rng is rng


# ---------------------------------------------------------------------------
# Optimization behaviour
# ---------------------------------------------------------------------------


class TestGAOptimize:
    def test_isomorphic_graphs_reach_perfect_overlap_and_stop_early(self):
        g = nx.Graph()
        g.add_edges_from([("a", "b"), ("b", "c"), ("c", "d"), ("d", "a"), ("a", "c")])
        graph = AlignmentGraph(g)
        ga = _make_ga(
            graph,
            graph,
            target_rate=1.0,
            interval=1,
            seed=7,
            population_size=20,
            elitism_count=2,
            max_generations=200,
        )

        result = ga.optimize()

        assert isinstance(result, AlignmentResult)
        assert result.reached_target
        assert result.fitness == 5.0
        assert result.generations < 200
        assert len(result.fitness_history) == result.generations
        assert sorted(result.mapping.values()) == ["a", "b", "c", "d"]

    def test_global_best_is_non_decreasing(self, random_pair):
        ga = _make_ga(*random_pair, target_rate=2.0, seed=3, population_size=20, max_generations=30)
        result = ga.optimize()

        history = result.fitness_history
        assert len(history) == 30
        assert all(b >= a for a, b in zip(history, history[1:]))
        assert result.fitness == history[-1]

    def test_same_seed_reproduces_run(self, random_pair):
        first = _make_ga(*random_pair, seed=11, population_size=16, max_generations=15).optimize()
        second = _make_ga(*random_pair, seed=11, population_size=16, max_generations=15).optimize()

        assert first.mapping == second.mapping
        assert first.fitness == second.fitness
        assert first.fitness_history == second.fitness_history
        assert first.generation_stats == second.generation_stats

    def test_result_mapping_is_injective_and_scored(self, random_pair):
        graph1, graph2 = random_pair
        ga = _make_ga(graph1, graph2, seed=5, population_size=12, max_generations=10)
        result = ga.optimize()

        assert set(result.mapping) <= set(graph1.vertices())
        assert len(set(result.mapping.values())) == len(result.mapping)
        assert result.fitness == ga.fitness_provider.calculate_fitness(result.mapping)
        assert result.evaluations > 0

    def test_find_best_mapping_returns_mapping(self, random_pair):
        ga = _make_ga(*random_pair, seed=5, population_size=10, max_generations=5)
        mapping = ga.find_best_mapping()
        assert isinstance(mapping, dict)
        assert len(mapping) == 12

    def test_generation_stats_fields(self, random_pair):
        ga = _make_ga(*random_pair, target_rate=2.0, seed=2, population_size=10, max_generations=4)
        stats = ga.optimize().generation_stats

        assert [s["generation"] for s in stats] == [1, 2, 3, 4]
        expected = {
            "best_fitness",
            "mean_fitness",
            "std_fitness",
            "global_best_fitness",
            "target_fitness",
            "stagnant_generations",
            "mutation_rate",
            "catastrophe",
            "improved",
            "genotypic_diversity",
            "phenotypic_diversity",
        }
        assert expected.issubset(stats[0].keys())
        assert 0.0 <= stats[0]["genotypic_diversity"] <= 1.0

    def test_non_improving_local_search_is_not_adopted(self, random_pair):
        graph1, graph2 = random_pair
        improver = _NoGainImprover()
        ga = GeneticAlgorithm(
            fitness_provider=EdgeOverlapObjective(graph1, graph2, target_rate=2.0),
            crossover_operator=PartiallyMappedCrossover(),
            mutation_operator=SwapMutation(),
            improvement_operator=improver,
            seed=0,
            population_size=10,
            max_generations=5,
        )

        result = ga.optimize()

        assert improver.calls == 5
        assert result.improvements == 0
        assert not any(s["improved"] for s in result.generation_stats)


# ---------------------------------------------------------------------------
# Catastrophe
# ---------------------------------------------------------------------------


class TestCatastrophe:
    def test_catastrophe_keeps_global_best(self):
        graph = random_graph(10, 15, seed=4)
        ga = _make_ga(graph, graph, seed=4, population_size=12, elitism_count=1, reset_rate=1.0)

        population = ga._evaluate_population(ga._initialize_population())
        identity = {v: v for v in graph.vertices()}
        global_best = Chromosome(identity, fitness=ga.fitness_provider.calculate_fitness(identity))

        population = ga._trigger_catastrophe(population, global_best)

        assert len(population) == 12
        assert population[0].fitness >= global_best.fitness
        assert all(c.evaluated for c in population)
        assert any(c is not global_best and c.mapping == identity for c in population)

    def test_catastrophes_trigger_on_stagnation(self, random_pair):
        ga = _make_ga(
            *random_pair,
            target_rate=2.0,
            seed=9,
            population_size=10,
            max_generations=40,
            catastrophe_threshold=1,
            reset_rate=1.0,
        )
        result = ga.optimize()

        assert result.catastrophes > 0
        assert sum(1 for s in result.generation_stats if s["catastrophe"]) == result.catastrophes
        history = result.fitness_history
        assert all(b >= a for a, b in zip(history, history[1:]))


# ---------------------------------------------------------------------------
# Observer hooks
# ---------------------------------------------------------------------------


class TestCallbacks:
    def test_callbacks_receive_each_generation(self, random_pair):
        progress = []
        generations = []

        def on_progress(gen, best, mean):
            progress.append((gen, best, mean))

        def on_generation(gen, mapping, best, stats):
            generations.append((gen, dict(mapping), best, stats["generation"]))

        ga = _make_ga(*random_pair, target_rate=2.0, seed=1, population_size=10, max_generations=6)
        result = ga.optimize(progress_callback=on_progress, generation_callback=on_generation)

        assert [p[0] for p in progress] == [1, 2, 3, 4, 5, 6]
        assert [g[0] for g in generations] == [1, 2, 3, 4, 5, 6]
        assert [g[3] for g in generations] == [1, 2, 3, 4, 5, 6]
        assert generations[-1][1] == result.mapping
        assert generations[-1][2] == result.fitness

    def test_failing_callbacks_do_not_abort_run(self, random_pair):
        def broken(*_args):
            raise RuntimeError("observer exploded")

        ga = _make_ga(*random_pair, target_rate=2.0, seed=1, population_size=10, max_generations=5)
        result = ga.optimize(progress_callback=broken, generation_callback=broken)

        assert result.generations == 5


# ---------------------------------------------------------------------------
# Elitism and local-search adoption
# ---------------------------------------------------------------------------


class _WeakOffspringCrossover:
    """Records each population it sees and returns empty-mapping offspring."""

    def __init__(self):
        self.seen = []
        self.offspring = []

    def crossover(self, population, offspring_size, rng):
        self.seen.append([(c, dict(c.mapping), c.fitness) for c in population])
        children = [Chromosome({}, fitness=0.0) for _ in range(offspring_size)]
        self.offspring.extend(children)
        return children


class _BoostImprover:
    """Returns a copy of the generation best with a strictly higher fitness."""

    def __init__(self, gain=0.5):
        self.gain = gain
        self.returned = []

    def is_improvement_needed(self, chromosome, provider, generation, stagnant_generations):
        return True

    def improve(self, chromosome, provider, rng):
        better = Chromosome(dict(chromosome.mapping), fitness=chromosome.fitness + self.gain)
        self.returned.append(better)
        return better


def _engine(graph_pair, crossover, improver, **kwargs):
    graph1, graph2 = graph_pair
    return GeneticAlgorithm(
        fitness_provider=EdgeOverlapObjective(graph1, graph2, target_rate=2.0),
        crossover_operator=crossover,
        mutation_operator=SwapMutation(),
        improvement_operator=improver,
        seed=3,
        population_size=10,
        **kwargs,
    )


class TestElitism:
    def test_previous_elites_survive_unmodified(self, random_pair):
        crossover = _WeakOffspringCrossover()
        ga = _engine(random_pair, crossover, _NoGainImprover(), elitism_count=3, max_generations=2)

        ga.optimize()

        first, second = crossover.seen
        assert len(second) == 10
        for elite, mapping, fitness in first[:3]:
            survivors = [c for c, _, _ in second if c is elite]
            assert len(survivors) == 1
            assert survivors[0].mapping == mapping
            assert survivors[0].fitness == fitness

        offspring_ids = {id(c) for c in crossover.offspring}
        assert sum(1 for c, _, _ in second if id(c) in offspring_ids) == 7

    def test_zero_elitism_keeps_only_offspring(self, random_pair):
        crossover = _WeakOffspringCrossover()
        ga = _engine(random_pair, crossover, _NoGainImprover(), elitism_count=0, max_generations=2)

        ga.optimize()

        offspring_ids = {id(c) for c in crossover.offspring}
        second = crossover.seen[1]
        assert len(second) == 10
        assert all(id(c) in offspring_ids for c, _, _ in second)


class TestLocalSearchAdoption:
    def test_strictly_better_candidate_replaces_generation_best(self, random_pair):
        crossover = _WeakOffspringCrossover()
        improver = _BoostImprover()
        ga = _engine(random_pair, crossover, improver, elitism_count=2, max_generations=3)

        result = ga.optimize()

        assert len(improver.returned) == 3
        assert result.improvements == 3
        assert all(s["improved"] for s in result.generation_stats)

        # The adopted candidate heads the population handed to the next generation.
        assert crossover.seen[1][0][0] is improver.returned[0]
        assert crossover.seen[2][0][0] is improver.returned[1]

        for stats, adopted in zip(result.generation_stats, improver.returned):
            assert stats["best_fitness"] == adopted.fitness
            assert stats["global_best_fitness"] == adopted.fitness
            assert stats["stagnant_generations"] == 0
        assert result.fitness == improver.returned[-1].fitness
        assert result.mapping == improver.returned[-1].mapping


class TestDiversityStatistics:
    def test_diversity_sampling_does_not_change_the_search(self, random_pair, monkeypatch):
        baseline = _make_ga(*random_pair, target_rate=2.0, seed=13, population_size=12, max_generations=12).optimize()

        monkeypatch.setattr(GeneticAlgorithm, "_compute_genotypic_diversity", lambda self, population: 0.0)
        without = _make_ga(*random_pair, target_rate=2.0, seed=13, population_size=12, max_generations=12).optimize()

        assert baseline.mapping == without.mapping
        assert baseline.fitness_history == without.fitness_history
        assert [s["mutation_rate"] for s in baseline.generation_stats] == [
            s["mutation_rate"] for s in without.generation_stats
        ]
