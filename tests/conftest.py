from __future__ import annotations

import numpy as np
import pytest

from layered_neat.genes import HIDDEN, INPUT, OUTPUT, ConnectionGene, NodeGene
from layered_neat.genome import Genome


def make_node(node_id: int, kind: str, bias: float = 0.0, activation: str = "none", value: float = 0.0) -> NodeGene:
    return NodeGene(node_id=node_id, kind=kind, bias=bias, activation=activation, value=value)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def single_pair_genome(rng):
    """One input (id 0) wired to one output (id 1), pass-through activations."""
    return Genome.new([make_node(0, INPUT)], [make_node(1, OUTPUT)], rng)


@pytest.fixture
def hidden_genome(single_pair_genome):
    """``single_pair_genome`` plus hidden node 2 on the path 0 -> 2 -> 1."""
    g = single_pair_genome
    g.layers.insert(1, [2])
    g.nodes[2] = make_node(2, HIDDEN)
    g.connections.append(ConnectionGene(src=0, dst=2, weight=0.0))
    g.connections.append(ConnectionGene(src=2, dst=1, weight=0.0))
    g.next_id = 3
    return g


@pytest.fixture
def wide_genome(rng):
    """Three inputs, two outputs, grown a little so every operator has material."""
    inputs = [make_node(i, INPUT, activation="identity") for i in range(3)]
    outputs = [make_node(3 + i, OUTPUT, activation="identity") for i in range(2)]
    g = Genome.new(inputs, outputs, rng)
    for _ in range(4):
        g.mutate_new_node(rng)
    g.fitness = 0.0
    return g
