from __future__ import annotations

from dataclasses import dataclass

from .activations import activation_value

INPUT = "input"
HIDDEN = "hidden"
OUTPUT = "output"

NODE_KINDS = (INPUT, HIDDEN, OUTPUT)


@dataclass
class NodeGene:
    node_id: int
    kind: str
    bias: float = 0.0
    activation: str = "identity"
    value: float = 0.0

    def output(self) -> float:
        return activation_value(self.activation, self.value + self.bias)

    def add_value(self, value: float) -> None:
        self.value += value


@dataclass
class ConnectionGene:
    src: int
    dst: int
    weight: float
    # Gating is not evaluated; -1 marks the gate as disabled.
    gater: int = -1
