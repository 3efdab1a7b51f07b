"""Tests for tournament selection and partially mapped crossover."""

import numpy as np
import pytest

from graphalign.alignment.chromosome import Chromosome
from graphalign.alignment.crossover import PartiallyMappedCrossover
from graphalign.errors import ConfigurationError, DomainMismatchError

KEYS = [f"k{i}" for i in range(8)]


def _random_parent(rng, values):
    order = rng.permutation(len(values))
    return {key: values[int(order[i])] for i, key in enumerate(KEYS)}


class TestPMX:
    def test_child_keeps_parent1_keys_and_is_duplicate_free(self):
        rng = np.random.RandomState(3)
        operator = PartiallyMappedCrossover()
        values = list(range(8))

        for _ in range(200):
            parent1 = _random_parent(rng, values)
            parent2 = _random_parent(rng, values)
            child = operator.pmx(parent1, parent2, rng)

            assert list(child) == list(parent1)
            assert len(set(child.values())) == len(child)

    def test_parents_with_different_value_sets(self):
        rng = np.random.RandomState(5)
        operator = PartiallyMappedCrossover()

        for _ in range(200):
            parent1 = _random_parent(rng, list(range(0, 8)))
            parent2 = _random_parent(rng, list(range(4, 12)))
            child = operator.pmx(parent1, parent2, rng)

            assert set(child) == set(parent1)
            assert len(set(child.values())) == len(child)
            assert set(child.values()) <= set(parent1.values()) | set(parent2.values())

    def test_identical_parents_give_identical_child(self):
        rng = np.random.RandomState(0)
        parent = _random_parent(rng, list(range(8)))
        child = PartiallyMappedCrossover().pmx(parent, dict(parent), rng)
        assert child == parent

    def test_key_set_mismatch_raises(self):
        operator = PartiallyMappedCrossover()
        with pytest.raises(DomainMismatchError):
            operator.pmx({"a": 1, "b": 2}, {"a": 1, "c": 2}, np.random.RandomState(0))

    def test_empty_parents(self):
        assert PartiallyMappedCrossover().pmx({}, {}, np.random.RandomState(0)) == {}


class TestCrossover:
    @staticmethod
    def _population(n=6):
        rng = np.random.RandomState(1)
        return [
            Chromosome(_random_parent(rng, list(range(8))), fitness=float(i))
            for i in range(n)
        ]

    @pytest.mark.parametrize("offspring_size", [1, 4, 5, 9])
    def test_offspring_size_is_exact(self, offspring_size):
        operator = PartiallyMappedCrossover(tournament_size=2, crossover_rate=0.85)
        offspring = operator.crossover(self._population(), offspring_size, np.random.RandomState(2))
        assert len(offspring) == offspring_size

    def test_zero_rate_copies_selected_parents(self):
        population = self._population()
        operator = PartiallyMappedCrossover(tournament_size=3, crossover_rate=0.0)

        offspring = operator.crossover(population, 6, np.random.RandomState(4))

        assert all(child.evaluated for child in offspring)
        for child in offspring:
            assert all(child is not member for member in population)
            assert any(child.mapping == member.mapping for member in population)

    def test_full_rate_recombines_every_pair(self):
        operator = PartiallyMappedCrossover(tournament_size=2, crossover_rate=1.0)
        offspring = operator.crossover(self._population(), 5, np.random.RandomState(4))

        # Odd selection: the last one is carried over with its fitness.
        assert [child.evaluated for child in offspring] == [True, False, False, False, False]

    def test_large_tournament_selects_best(self):
        population = [
            Chromosome({"a": 1, "b": 2}, fitness=1.0),
            Chromosome({"a": 2, "b": 1}, fitness=5.0),
        ]
        operator = PartiallyMappedCrossover(tournament_size=60)
        selected = operator.tournament_select(population, 10, np.random.RandomState(0))

        assert len(selected) == 10
        assert all(c.fitness == 5.0 for c in selected)
        assert all(c is not population[1] for c in selected)

    def test_tournament_larger_than_population(self):
        population = [Chromosome({"a": 1}, fitness=2.0)]
        operator = PartiallyMappedCrossover(tournament_size=5)
        assert len(operator.crossover(population, 3, np.random.RandomState(0))) == 3

    @pytest.mark.parametrize(
        "kwargs",
        [{"tournament_size": 0}, {"crossover_rate": -0.1}, {"crossover_rate": 1.5}],
    )
    def test_invalid_configuration(self, kwargs):
        with pytest.raises(ConfigurationError):
            PartiallyMappedCrossover(**kwargs)
