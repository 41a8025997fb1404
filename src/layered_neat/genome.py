from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Callable, Sequence

import numpy as np

from .activations import random_activation
from .config import MutationConfig
from .errors import GenomeContractError
from .genes import HIDDEN, INPUT, OUTPUT, ConnectionGene, NodeGene
from .sampling import random_delta

_DEFAULT_MUTATION = MutationConfig()


@dataclass
class Genome:
    """One population member: a layered feed-forward network plus its fitness.

    ``layers[0]`` holds the input node ids and ``layers[-1]`` the output node
    ids; anything in between is hidden. ``connections`` is ordered and the
    evaluator walks it front to back.
    """

    layers: list[list[int]]
    nodes: dict[int, NodeGene]
    connections: list[ConnectionGene]
    fitness: float = 0.0
    next_id: int = 0

    @classmethod
    def new(
        cls,
        input_nodes: Sequence[NodeGene],
        output_nodes: Sequence[NodeGene],
        rng: np.random.Generator,
        cfg: MutationConfig | None = None,
    ) -> "Genome":
        cfg = cfg or _DEFAULT_MUTATION

        connections: list[ConnectionGene] = []
        for src in input_nodes:
            if src.kind != INPUT:
                continue
            for dst in output_nodes:
                if dst.kind != OUTPUT:
                    continue
                connections.append(
                    ConnectionGene(
                        src=src.node_id,
                        dst=dst.node_id,
                        weight=random_delta(rng, cfg.delta_draws),
                    )
                )

        nodes: dict[int, NodeGene] = {}
        for node in [*input_nodes, *output_nodes]:
            nodes[node.node_id] = copy.deepcopy(node)

        return cls(
            layers=[
                [n.node_id for n in input_nodes],
                [n.node_id for n in output_nodes],
            ],
            nodes=nodes,
            connections=connections,
            fitness=0.0,
            next_id=max(nodes, default=-1) + 1,
        )

    def clone(self) -> "Genome":
        return Genome(
            layers=[list(layer) for layer in self.layers],
            nodes=copy.deepcopy(self.nodes),
            connections=copy.deepcopy(self.connections),
            fitness=self.fitness,
            next_id=self.next_id,
        )

    @property
    def input_ids(self) -> list[int]:
        return self.layers[0]

    @property
    def output_ids(self) -> list[int]:
        return self.layers[-1]

    @property
    def hidden_layers(self) -> list[list[int]]:
        return self.layers[1:-1]

    def node_count(self) -> int:
        return sum(len(layer) for layer in self.layers)

    def complexity(self) -> tuple[int, int]:
        return sum(len(layer) for layer in self.hidden_layers), len(self.connections)

    def has_connection(self, src: int, dst: int) -> bool:
        return any(c.src == src and c.dst == dst for c in self.connections)

    def update(self, input_values: Sequence[float]) -> int:
        """Feed one input vector through the network and return the chosen output index."""
        if len(self.layers) < 2 or not self.output_ids:
            raise GenomeContractError("genome needs an input layer and a non-empty output layer")

        values = [float(v) for v in input_values]
        if len(values) != len(self.input_ids):
            raise GenomeContractError(
                f"expected {len(self.input_ids)} input values, got {len(values)}"
            )

        for node_id, value in zip(self.input_ids, values):
            self._node(node_id).add_value(value)

        self.forward()
        choice = self._select_output()
        self.reset_values()
        return choice

    def forward(self) -> None:
        # Single pass in stored order: a source contributes whatever it has
        # accumulated at the moment its connection is visited.
        for conn in self.connections:
            src = self._node(conn.src)
            dst = self._node(conn.dst)
            dst.add_value(src.output())

    def _select_output(self) -> int:
        best_index = 0
        best_value = 0.0
        for i, node_id in enumerate(self.output_ids):
            value = self._node(node_id).output()
            if i == 0 or value > best_value:
                best_index = i
                best_value = value
        return best_index

    def reset_values(self) -> None:
        for node in self.nodes.values():
            node.value = 0.0

    def reward(self, delta: float) -> None:
        self.fitness += delta

    def calculate_fitness(self) -> float:
        return self.fitness - self.node_count() - len(self.connections)

    def mutate(self, rng: np.random.Generator, cfg: MutationConfig | None = None) -> str:
        cfg = cfg or _DEFAULT_MUTATION

        names = list(cfg.operator_weights)
        weights = np.asarray([cfg.operator_weights[n] for n in names], dtype=float)
        if not names or np.any(weights < 0.0) or weights.sum() <= 0.0:
            raise ValueError(f"Invalid mutation operator weights: {cfg.operator_weights}")

        choice = names[int(rng.choice(len(names), p=weights / weights.sum()))]
        operators = self._operators()
        if choice not in operators:
            raise ValueError(f"Unknown mutation operator: {choice!r}")
        operators[choice](rng, cfg)
        return choice

    def _operators(self) -> dict[str, Callable[[np.random.Generator, MutationConfig], None]]:
        return {
            "weight": self.mutate_weight,
            "bias": self.mutate_bias,
            "node": self.mutate_new_node,
            "conn": self.mutate_new_connection,
            "squash": self.mutate_squash,
            "rnode": self.mutate_remove_node,
            "rconn": self.mutate_remove_connection,
        }

    def mutate_weight(self, rng: np.random.Generator, cfg: MutationConfig | None = None) -> None:
        cfg = cfg or _DEFAULT_MUTATION
        if not self.connections:
            return
        conn = self.connections[int(rng.integers(len(self.connections)))]
        conn.weight += random_delta(rng, cfg.delta_draws)

    def mutate_bias(self, rng: np.random.Generator, cfg: MutationConfig | None = None) -> None:
        cfg = cfg or _DEFAULT_MUTATION
        node = self._node(self._pick(self._random_layer(rng), rng))
        node.bias += random_delta(rng, cfg.delta_draws)

    def mutate_squash(self, rng: np.random.Generator, cfg: MutationConfig | None = None) -> None:
        node = self._node(self._pick(self._random_layer(rng), rng))
        node.activation = random_activation(rng)

    def mutate_new_node(self, rng: np.random.Generator, cfg: MutationConfig | None = None) -> None:
        cfg = cfg or _DEFAULT_MUTATION
        if len(self.layers) < 2:
            raise GenomeContractError("genome needs at least an input and an output layer")

        # Split point 0 opens a new hidden layer right after the inputs; any
        # other split point grows that existing hidden layer.
        layer_no = int(rng.integers(len(self.layers) - 1))
        src = self._pick(self.layers[layer_no - 1] if layer_no else self.layers[0], rng)
        dst = self._pick(self.layers[layer_no + 1], rng)

        self.fitness -= cfg.new_node_penalty

        node_id = self._mint_id()
        self.nodes[node_id] = NodeGene(
            node_id=node_id,
            kind=HIDDEN,
            bias=random_delta(rng, cfg.delta_draws),
            activation=random_activation(rng),
        )
        if layer_no == 0:
            self.layers.insert(1, [node_id])
        else:
            self.layers[layer_no].append(node_id)

        self._insert_connection(
            ConnectionGene(src=src, dst=node_id, weight=random_delta(rng, cfg.delta_draws))
        )
        self._insert_connection(
            ConnectionGene(src=node_id, dst=dst, weight=random_delta(rng, cfg.delta_draws))
        )

    def mutate_new_connection(self, rng: np.random.Generator, cfg: MutationConfig | None = None) -> None:
        cfg = cfg or _DEFAULT_MUTATION
        n_layers = len(self.layers)
        if n_layers < 2:
            raise GenomeContractError("genome needs at least an input and an output layer")

        # Bounded search: give up instead of enumerating every free pair.
        for _ in range(n_layers + 1):
            from_idx = int(rng.integers(n_layers - 1))
            to_idx = int(rng.integers(from_idx + 1, n_layers))
            src = self._pick(self.layers[from_idx], rng)
            dst = self._pick(self.layers[to_idx], rng)
            if self.has_connection(src, dst):
                continue
            self._insert_connection(
                ConnectionGene(src=src, dst=dst, weight=random_delta(rng, cfg.delta_draws))
            )
            return

    def mutate_remove_node(self, rng: np.random.Generator, cfg: MutationConfig | None = None) -> None:
        if len(self.layers) <= 2:
            return

        layer_idx = int(rng.integers(1, len(self.layers) - 1))
        layer = self.layers[layer_idx]
        if not layer:
            raise GenomeContractError(f"hidden layer {layer_idx} is empty")

        if len(layer) == 1:
            node_id = layer[0]
            del self.layers[layer_idx]
        else:
            node_id = layer.pop(int(rng.integers(len(layer))))

        if node_id not in self.nodes:
            raise GenomeContractError(f"layer references missing node {node_id}")
        del self.nodes[node_id]

        self.connections = [
            c for c in self.connections if c.src != node_id and c.dst != node_id
        ]

    def mutate_remove_connection(self, rng: np.random.Generator, cfg: MutationConfig | None = None) -> None:
        if not self.connections:
            return
        del self.connections[int(rng.integers(len(self.connections)))]

    def _node(self, node_id: int) -> NodeGene:
        try:
            return self.nodes[node_id]
        except KeyError:
            raise GenomeContractError(f"node {node_id} is not in the node table") from None

    def _mint_id(self) -> int:
        node_id = self.next_id
        self.next_id += 1
        return node_id

    def _random_layer(self, rng: np.random.Generator) -> list[int]:
        if not self.layers:
            raise GenomeContractError("genome has no layers")
        return self.layers[int(rng.integers(len(self.layers)))]

    @staticmethod
    def _pick(layer: list[int], rng: np.random.Generator) -> int:
        if not layer:
            raise GenomeContractError("cannot pick a node from an empty layer")
        return layer[int(rng.integers(len(layer)))]

    def _insert_connection(self, conn: ConnectionGene) -> None:
        # Goes in front of the first connection leaving the same source.
        for i, existing in enumerate(self.connections):
            if existing.src == conn.src:
                self.connections.insert(i, conn)
                return
        self.connections.append(conn)

    def validate(self) -> None:
        """Raise :class:`GenomeContractError` if the structural invariants do not hold."""
        if len(self.layers) < 2:
            raise GenomeContractError(f"expected at least 2 layers, got {len(self.layers)}")

        seen: set[int] = set()
        last = len(self.layers) - 1
        for idx, layer in enumerate(self.layers):
            if not layer and 0 < idx < last:
                raise GenomeContractError(f"hidden layer {idx} is empty")
            for node_id in layer:
                if node_id in seen:
                    raise GenomeContractError(f"node {node_id} appears in more than one layer slot")
                seen.add(node_id)
                node = self._node(node_id)
                if node.node_id != node_id:
                    raise GenomeContractError(f"node table key {node_id} holds node {node.node_id}")
                expected = INPUT if idx == 0 else OUTPUT if idx == last else HIDDEN
                if node.kind != expected:
                    raise GenomeContractError(
                        f"node {node_id} of kind {node.kind!r} sits in a layer reserved for {expected!r}"
                    )

        if seen != set(self.nodes):
            missing = sorted(set(self.nodes) - seen)
            raise GenomeContractError(f"nodes {missing} are not placed in any layer")

        pairs: set[tuple[int, int]] = set()
        for conn in self.connections:
            self._node(conn.src)
            self._node(conn.dst)
            if (conn.src, conn.dst) in pairs:
                raise GenomeContractError(f"duplicate connection {conn.src} -> {conn.dst}")
            pairs.add((conn.src, conn.dst))

        if self.nodes and self.next_id <= max(self.nodes):
            raise GenomeContractError(f"next_id {self.next_id} would reuse an existing node id")
