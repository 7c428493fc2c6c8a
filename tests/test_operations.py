"""
Tests for population management and genetic operators.

Tests random initialisation, opposition-based learning, tournament
selection, single-point crossover, reset mutation and datacenter windows.
"""

import unittest

import numpy as np

from taskopt.crossover import single_point_crossover
from taskopt.data_models import Individual, Task
from taskopt.exceptions import DimensionMismatchError, InvalidInputError, PopulationFullError
from taskopt.fitness import FitnessEvaluator
from taskopt.mutation import uniform_reset_mutation
from taskopt.population import (
    Population,
    build_opposition_set,
    datacenter_window,
    initialize_population,
    initialize_random,
    merge_and_truncate,
    opposite_genes,
)
from taskopt.selection import select_parents, tournament_select


def make_evaluator(task_count=6, worker_count=3, convention="cost"):
    tasks = [Task(f"t{i}", "berat") for i in range(task_count)]
    return FitnessEvaluator(tasks, worker_count, convention=convention)


class TestPopulation(unittest.TestCase):
    """Test Population container and initialisation."""

    def setUp(self):
        self.rng = np.random.default_rng(42)

    def test_initialize_random_shape(self):
        population = initialize_random(8, 5, 3, self.rng)
        self.assertEqual(len(population), 8)
        self.assertTrue(population.is_full)
        for i, ind in enumerate(population):
            self.assertEqual(ind.id, i)
            self.assertEqual(len(ind), 5)
            self.assertTrue(all(0 <= g < 3 for g in ind.genes))
            self.assertFalse(ind.is_evaluated)

    def test_initialize_random_rejects_empty(self):
        with self.assertRaises(InvalidInputError):
            initialize_random(0, 5, 3, self.rng)

    def test_append_beyond_capacity(self):
        population = Population(capacity=1)
        population.append(Individual(genes=[0]))
        with self.assertRaises(PopulationFullError):
            population.append(Individual(genes=[1]))

    def test_constructor_over_capacity(self):
        with self.assertRaises(PopulationFullError):
            Population([Individual(genes=[0]), Individual(genes=[1])], capacity=1)

    def test_initialize_population_is_evaluated(self):
        evaluator = make_evaluator()
        population = initialize_population(10, 6, 3, evaluator, self.rng)
        self.assertEqual(len(population), 10)
        self.assertTrue(all(ind.is_evaluated for ind in population))

    def test_sort_and_best(self):
        evaluator = make_evaluator(task_count=2, worker_count=2)
        population = Population([Individual(genes=[0, 0]), Individual(genes=[0, 1])])
        evaluator.evaluate_all(population)
        self.assertEqual(population.best(evaluator).genes, [0, 1])
        population.sort(evaluator)
        self.assertEqual(population[0].genes, [0, 1])


class TestOpposition(unittest.TestCase):
    """Test opposition-based learning."""

    def test_opposite_genes(self):
        self.assertEqual(opposite_genes([0, 1, 2, 2], 3), [2, 1, 0, 0])
        self.assertEqual(opposite_genes([0, 0], 1), [0, 0])

    def test_build_opposition_set(self):
        population = Population([Individual(genes=[0, 3], id=0), Individual(genes=[1, 2], id=1)])
        opposite = build_opposition_set(population, 4)
        self.assertEqual([ind.genes for ind in opposite], [[3, 0], [2, 1]])
        self.assertEqual([ind.id for ind in opposite], [2, 3])
        self.assertTrue(all(not ind.is_evaluated for ind in opposite))

    def test_merge_and_truncate_keeps_best(self):
        evaluator = make_evaluator(task_count=4, worker_count=2)
        # All tasks on one worker is the worst cost; the opposite is equally bad
        primary = Population([Individual(genes=[0, 0, 0, 0]), Individual(genes=[0, 0, 1, 1])])
        opposite = build_opposition_set(primary, 2)
        merged = merge_and_truncate(primary, opposite, 2, evaluator)
        self.assertEqual(len(merged), 2)
        self.assertEqual(merged.capacity, 2)
        self.assertEqual(merged[0].genes, [0, 0, 1, 1])
        self.assertEqual(merged[1].genes, [1, 1, 0, 0])

    def test_initialize_with_opposition(self):
        evaluator = make_evaluator()
        rng = np.random.default_rng(3)
        population = initialize_population(6, 6, 3, evaluator, rng, use_opposition=True)
        self.assertEqual(len(population), 6)
        fitness = [ind.fitness for ind in population]
        self.assertEqual(fitness, sorted(fitness))
        # Both the random set and its opposites were scored
        self.assertEqual(evaluator.evaluations, 12)


class TestSelection(unittest.TestCase):
    """Test tournament selection."""

    def setUp(self):
        self.evaluator = make_evaluator(task_count=2, worker_count=2)
        self.population = [
            Individual(genes=[0, 0], fitness=10.0, id=0),
            Individual(genes=[0, 1], fitness=1.0, id=1),
            Individual(genes=[1, 1], fitness=10.0, id=2),
        ]

    def test_large_tournament_finds_best(self):
        rng = np.random.default_rng(42)
        winner = tournament_select(self.population, self.evaluator, rng, tournament_size=60)
        self.assertEqual(winner.id, 1)

    def test_winner_is_member(self):
        rng = np.random.default_rng(0)
        for _ in range(20):
            winner = tournament_select(self.population, self.evaluator, rng)
            self.assertTrue(any(winner is ind for ind in self.population))

    def test_select_parents_returns_pair(self):
        rng = np.random.default_rng(1)
        parents = select_parents(self.population, self.evaluator, rng)
        self.assertEqual(len(parents), 2)

    def test_empty_population(self):
        with self.assertRaises(InvalidInputError):
            tournament_select([], self.evaluator, np.random.default_rng(0))


class TestCrossover(unittest.TestCase):
    """Test single-point crossover."""

    def setUp(self):
        self.parent_a = Individual(genes=[0, 0, 0, 0, 0, 0], fitness=1.0)
        self.parent_b = Individual(genes=[2, 2, 2, 2, 2, 2], fitness=2.0)

    def test_always_recombines_at_rate_one(self):
        rng = np.random.default_rng(42)
        for _ in range(20):
            child_a, child_b = single_point_crossover(self.parent_a, self.parent_b, 1.0, rng)
            self.assertEqual(len(child_a), 6)
            self.assertEqual(len(child_b), 6)
            self.assertIsNone(child_a.fitness)
            # Child A is a prefix of A followed by a suffix of B
            point = child_a.genes.index(2) if 2 in child_a.genes else 6
            self.assertEqual(child_a.genes, [0] * point + [2] * (6 - point))
            self.assertEqual(child_b.genes, [2] * point + [0] * (6 - point))

    def test_copies_at_rate_zero(self):
        rng = np.random.default_rng(42)
        child_a, child_b = single_point_crossover(self.parent_a, self.parent_b, 0.0, rng)
        self.assertEqual(child_a.genes, self.parent_a.genes)
        self.assertEqual(child_b.genes, self.parent_b.genes)
        self.assertIsNot(child_a.genes, self.parent_a.genes)

    def test_parents_untouched(self):
        rng = np.random.default_rng(7)
        single_point_crossover(self.parent_a, self.parent_b, 1.0, rng)
        self.assertEqual(self.parent_a.genes, [0] * 6)
        self.assertEqual(self.parent_b.genes, [2] * 6)

    def test_length_mismatch(self):
        with self.assertRaises(DimensionMismatchError):
            single_point_crossover(self.parent_a, Individual(genes=[1, 1]), 1.0, np.random.default_rng(0))


class TestMutation(unittest.TestCase):
    """Test uniform reset mutation."""

    def test_rate_zero_changes_nothing(self):
        ind = Individual(genes=[1, 2, 0], fitness=4.0)
        mutated = uniform_reset_mutation(ind, 3, 0.0, np.random.default_rng(0))
        self.assertEqual(mutated, 0)
        self.assertEqual(ind.genes, [1, 2, 0])
        self.assertEqual(ind.fitness, 4.0)

    def test_rate_one_redraws_every_gene(self):
        ind = Individual(genes=[0] * 50, fitness=4.0)
        mutated = uniform_reset_mutation(ind, 4, 1.0, np.random.default_rng(0))
        self.assertEqual(mutated, 50)
        self.assertIsNone(ind.fitness)
        self.assertTrue(all(0 <= g < 4 for g in ind.genes))

    def test_window_limits_replacements(self):
        ind = Individual(genes=[0] * 50)
        uniform_reset_mutation(ind, 20, 1.0, np.random.default_rng(5), window=(9, 17))
        self.assertTrue(all(9 <= g <= 17 for g in ind.genes))


class TestDatacenterWindow(unittest.TestCase):

    def test_single_datacenter_covers_small_pool(self):
        self.assertEqual(datacenter_window(1, 6), (0, 5))

    def test_later_datacenters(self):
        self.assertEqual(datacenter_window(2, 20), (9, 17))
        self.assertEqual(datacenter_window(3, 20), (18, 19))

    def test_out_of_range(self):
        with self.assertRaises(InvalidInputError):
            datacenter_window(3, 10)
        with self.assertRaises(InvalidInputError):
            datacenter_window(0, 10)


if __name__ == '__main__':
    unittest.main()
