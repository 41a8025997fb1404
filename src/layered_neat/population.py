from __future__ import annotations

import copy

import numpy as np

from .config import MutationConfig, ReproductionConfig
from .errors import GenomeContractError
from .genes import INPUT, OUTPUT, NodeGene
from .genome import Genome
from .sampling import random_delta


def _count_in(rng: np.random.Generator, bounds: tuple[int, int]) -> int:
    low, high = bounds
    return int(rng.integers(low, high + 1))


class Population:
    """Flat, fixed-size population evolved by cloning and mutating one parent.

    ``genomes[i]`` stays index-aligned with whatever task instance the driver
    pairs it with. Each generation keeps an unmutated copy of the parent in
    the last slot.
    """

    def __init__(
        self,
        size: int,
        num_inputs: int,
        num_outputs: int,
        rng: np.random.Generator | None = None,
        mutation: MutationConfig | None = None,
        reproduction: ReproductionConfig | None = None,
    ):
        if size < 0 or num_inputs < 1 or num_outputs < 1:
            raise GenomeContractError(
                f"need size >= 0 and at least one input and output (size={size}, inputs={num_inputs}, outputs={num_outputs})"
            )

        self.rng = rng if rng is not None else np.random.default_rng()
        self.mutation = mutation or MutationConfig()
        self.reproduction = reproduction or ReproductionConfig()
        self.generation = 1

        # Output ids are minted first so output i has id i.
        next_id = 0
        output_layer: list[NodeGene] = []
        for _ in range(num_outputs):
            output_layer.append(
                NodeGene(
                    node_id=next_id,
                    kind=OUTPUT,
                    bias=random_delta(self.rng, self.mutation.delta_draws),
                    activation="identity",
                )
            )
            next_id += 1

        input_layer: list[NodeGene] = []
        for _ in range(num_inputs):
            input_layer.append(
                NodeGene(
                    node_id=next_id,
                    kind=INPUT,
                    bias=random_delta(self.rng, self.mutation.delta_draws),
                    activation="identity",
                )
            )
            next_id += 1

        self.genomes: list[Genome] = [
            Genome.new(copy.deepcopy(input_layer), copy.deepcopy(output_layer), self.rng, self.mutation)
            for _ in range(size)
        ]

    def __len__(self) -> int:
        return len(self.genomes)

    def fitness_scores(self) -> list[float]:
        return [g.calculate_fitness() for g in self.genomes]

    def best_index(self) -> int:
        """Index of the fittest genome; the earliest one wins ties."""
        scores = self.fitness_scores()
        if not scores:
            raise GenomeContractError("population is empty")

        best = 0
        for i, score in enumerate(scores):
            if score > scores[best]:
                best = i
        return best

    def fittest(self) -> Genome:
        return self.genomes[self.best_index()]

    def next_generation(self, local_maximum: bool) -> None:
        if not self.genomes:
            raise GenomeContractError("population is empty")

        self.generation += 1

        if local_maximum:
            # Plateau: restart from a random member instead of the best one.
            parent = self.genomes[int(self.rng.integers(len(self.genomes)))].clone()
            for _ in range(_count_in(self.rng, self.reproduction.restart_mutations)):
                parent.mutate(self.rng, self.mutation)
        else:
            parent = self.genomes[self.best_index()].clone()

        parent.fitness = 0.0

        new_genomes: list[Genome] = []
        for _ in range(len(self.genomes) - 1):
            child = parent.clone()
            for _ in range(_count_in(self.rng, self.reproduction.offspring_mutations)):
                child.mutate(self.rng, self.mutation)
            new_genomes.append(child)
        new_genomes.append(parent.clone())

        self.genomes = new_genomes
