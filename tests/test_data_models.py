"""
Tests for data models and the exception hierarchy.

Covers task/worker coercion, chromosome access contracts and the
population serialization format.
"""

import unittest

import numpy as np

from taskopt.data_models import Individual, OptimizationResult, Task, WorkerSpec
from taskopt.exceptions import (
    DimensionMismatchError,
    GeneIndexError,
    InvalidInputError,
    OptimizerError,
    UnevaluatedFitnessError,
)


class TestTask(unittest.TestCase):
    """Test Task coercion."""

    def test_from_mapping(self):
        task = Task.from_value({"name": "t1", "type": "cpu", "weight": "berat"}, 0)
        self.assertEqual(task.name, "t1")
        self.assertEqual(task.weight, "berat")
        self.assertEqual(task.type, "cpu")

    def test_from_weight_label(self):
        task = Task.from_value("heavy", 3)
        self.assertEqual(task.name, "task_3")
        self.assertEqual(task.weight, "heavy")
        self.assertIsNone(task.type)

    def test_missing_weight(self):
        with self.assertRaises(InvalidInputError):
            Task.from_value({"name": "t1"}, 0)

    def test_wrong_type(self):
        with self.assertRaises(InvalidInputError):
            Task.from_value(42, 0)

    def test_to_dict_omits_missing_type(self):
        self.assertEqual(Task("t", "sedang").to_dict(), {"name": "t", "weight": "sedang"})


class TestWorkerSpec(unittest.TestCase):
    """Test WorkerSpec coercion."""

    def test_camel_case_cost(self):
        spec = WorkerSpec.from_value({"mips": 600, "costPerMips": 0.6, "ram": 1024}, 2)
        self.assertEqual(spec.id, 2)
        self.assertEqual(spec.mips, 600.0)
        self.assertEqual(spec.cost_per_mips, 0.6)
        self.assertEqual(spec.ram, 1024.0)
        self.assertEqual(spec.bw, 1000.0)

    def test_missing_mips(self):
        with self.assertRaises(InvalidInputError):
            WorkerSpec.from_value({"cost_per_mips": 0.5}, 0)

    def test_missing_cost(self):
        with self.assertRaises(InvalidInputError):
            WorkerSpec.from_value({"mips": 500}, 0)

    def test_non_positive_mips(self):
        with self.assertRaises(InvalidInputError):
            WorkerSpec.from_value({"mips": 0, "cost_per_mips": 0.5}, 0)

    def test_malformed_number(self):
        with self.assertRaises(InvalidInputError):
            WorkerSpec.from_value({"mips": "fast", "cost_per_mips": 0.5}, 0)


class TestIndividual(unittest.TestCase):
    """Test chromosome contracts."""

    def test_with_length_zero_filled(self):
        ind = Individual.with_length(4)
        self.assertEqual(ind.genes, [0, 0, 0, 0])
        self.assertIsNone(ind.fitness)

    def test_with_length_random_in_range(self):
        rng = np.random.default_rng(42)
        ind = Individual.with_length(100, worker_count=3, rng=rng)
        self.assertEqual(len(ind), 100)
        self.assertTrue(all(0 <= g < 3 for g in ind.genes))
        self.assertTrue(all(isinstance(g, int) for g in ind.genes))

    def test_gene_index_out_of_range(self):
        ind = Individual(genes=[0, 1, 2])
        with self.assertRaises(GeneIndexError):
            ind.get_gene(3)
        with self.assertRaises(GeneIndexError):
            ind.set_gene(-1, 0)
        # Also an IndexError for callers that catch the builtin
        with self.assertRaises(IndexError):
            ind.get_gene(10)

    def test_set_gene_invalidates_fitness(self):
        ind = Individual(genes=[0, 1, 2], fitness=1.5)
        ind.set_gene(1, 2)
        self.assertEqual(ind.get_gene(1), 2)
        self.assertFalse(ind.is_evaluated)

    def test_set_genes_length_mismatch(self):
        ind = Individual(genes=[0, 1, 2], fitness=1.0)
        with self.assertRaises(DimensionMismatchError):
            ind.set_genes([0, 1])
        self.assertEqual(ind.fitness, 1.0)

    def test_require_fitness(self):
        ind = Individual(genes=[0])
        with self.assertRaises(UnevaluatedFitnessError):
            ind.require_fitness()
        ind.fitness = 0.0
        self.assertEqual(ind.require_fitness(), 0.0)

    def test_clone_is_independent(self):
        ind = Individual(genes=[0, 1], fitness=2.0, id=7, velocity=[0.1, 0.2])
        copy = ind.clone()
        copy.genes[0] = 1
        copy.velocity[0] = 9.0
        self.assertEqual(ind.genes, [0, 1])
        self.assertEqual(ind.velocity, [0.1, 0.2])
        self.assertEqual(copy.fitness, 2.0)
        self.assertEqual(copy.id, 7)

    def test_to_dict_layout(self):
        data = Individual(genes=[2, 0], fitness=3.0).to_dict()
        self.assertEqual(data, {"position": [2, 0], "velocity": [0.0, 0.0], "fitness": 3.0})

    def test_from_dict_accepts_aliases(self):
        self.assertEqual(Individual.from_dict({"position": [1, 2]}).genes, [1, 2])
        self.assertEqual(Individual.from_dict({"genes": [0]}).genes, [0])
        self.assertEqual(Individual.from_dict({"chromosome": [3], "fitness": 1.0}).fitness, 1.0)
        with self.assertRaises(InvalidInputError):
            Individual.from_dict({"fitness": 1.0})


class TestOptimizationResult(unittest.TestCase):

    def test_tasks_per_worker(self):
        result = OptimizationResult(assignment=[0, 2, 2, 0, 2], best_fitness=1.0,
                                    convention="cost", driver="ga")
        self.assertEqual(result.tasks_per_worker(4), [2, 0, 3, 0])


class TestExceptions(unittest.TestCase):

    def test_hierarchy(self):
        for error in (InvalidInputError, DimensionMismatchError, GeneIndexError, UnevaluatedFitnessError):
            self.assertTrue(issubclass(error, OptimizerError))
        self.assertTrue(issubclass(InvalidInputError, ValueError))
        self.assertTrue(issubclass(DimensionMismatchError, ValueError))


if __name__ == '__main__':
    unittest.main()
