from __future__ import annotations

import numpy as np
import pytest

from layered_neat.config import ReproductionConfig
from layered_neat.errors import GenomeContractError
from layered_neat.genes import INPUT, OUTPUT
from layered_neat.population import Population


@pytest.fixture
def population():
    return Population(5, 2, 2, rng=np.random.default_rng(42))


def test_new_population_shares_node_layout(population):
    assert len(population) == 5
    assert population.generation == 1

    first = population.genomes[0]
    assert first.layers == [[2, 3], [0, 1]]
    assert all(first.nodes[i].kind == OUTPUT for i in (0, 1))
    assert all(first.nodes[i].kind == INPUT for i in (2, 3))

    for genome in population.genomes:
        genome.validate()
        assert genome.layers == first.layers
        assert len(genome.connections) == 2 * 2
        assert {nid: n.bias for nid, n in genome.nodes.items()} == {
            nid: n.bias for nid, n in first.nodes.items()
        }

    assert population.genomes[0].nodes is not population.genomes[1].nodes
    assert population.genomes[0].nodes[0] is not population.genomes[1].nodes[0]


def test_best_index_prefers_strictly_fitter(population):
    population.genomes[1].fitness = 1.0
    population.genomes[3].fitness = 2.0
    population.genomes[4].fitness = 2.0
    assert population.best_index() == 3
    assert population.fittest() is population.genomes[3]


def test_best_index_tie_keeps_first(population):
    assert population.best_index() == 0


def test_best_index_accounts_for_complexity(population, rng):
    population.genomes[1].fitness = 1.5
    population.genomes[2].fitness = 1.5
    population.genomes[1].mutate_new_node(rng)
    population.genomes[1].fitness = 1.5
    assert population.best_index() == 2


def test_next_generation_keeps_first_of_tied_parents(population):
    parent = population.genomes[0].clone()

    population.next_generation(False)

    assert population.generation == 2
    assert len(population) == 5
    assert population.genomes[-1] == parent
    assert population.genomes[-1].fitness == 0.0


def test_next_generation_breeds_from_fittest(population):
    population.genomes[3].reward(100.0)
    expected = population.genomes[3].clone()
    expected.fitness = 0.0

    population.next_generation(False)

    elite = population.genomes[-1]
    assert elite == expected
    for child in population.genomes[:-1]:
        child.validate()
        assert child.fitness in (0.0, -1.0, -2.0)
        assert child is not elite
        assert child.nodes is not elite.nodes


def test_next_generation_with_local_maximum(population):
    population.genomes[2].reward(50.0)

    population.next_generation(True)

    assert population.generation == 2
    assert len(population) == 5
    assert population.genomes[-1].fitness == 0.0
    for genome in population.genomes:
        genome.validate()


def test_restart_honours_mutation_counts():
    pop = Population(
        4,
        2,
        2,
        rng=np.random.default_rng(5),
        reproduction=ReproductionConfig(offspring_mutations=(0, 0), restart_mutations=(0, 0)),
    )
    parent_candidates = [g.clone() for g in pop.genomes]
    pop.next_generation(True)
    assert all(g == pop.genomes[0] for g in pop.genomes)
    assert any(pop.genomes[0] == c for c in parent_candidates)


def test_same_seed_reproduces_generations():
    def run(seed: int) -> Population:
        pop = Population(6, 3, 2, rng=np.random.default_rng(seed))
        for gen in range(4):
            for i, genome in enumerate(pop.genomes):
                genome.update([1.0, float(i), -1.0])
                genome.reward(float(i % 3))
            pop.next_generation(gen == 2)
        return pop

    a = run(11)
    b = run(11)
    assert a.generation == b.generation == 5
    assert a.genomes == b.genomes


def test_empty_population_rejects_next_generation():
    pop = Population(0, 2, 2, rng=np.random.default_rng(0))
    assert len(pop) == 0
    with pytest.raises(GenomeContractError):
        pop.next_generation(False)
    with pytest.raises(GenomeContractError):
        pop.best_index()


@pytest.mark.parametrize("size, num_inputs, num_outputs", [(-1, 2, 2), (1, 0, 2), (1, 2, 0), (3, 0, 0)])
def test_invalid_sizes_are_rejected(size, num_inputs, num_outputs):
    with pytest.raises(GenomeContractError):
        Population(size, num_inputs, num_outputs)
