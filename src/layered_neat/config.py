from __future__ import annotations

import math
from dataclasses import dataclass, field

MUTATION_OPERATORS: tuple[str, ...] = ("weight", "bias", "node", "conn", "squash", "rnode", "rconn")


def _equal_operator_weights() -> dict[str, float]:
    return {name: 1.0 for name in MUTATION_OPERATORS}


@dataclass
class MutationConfig:
    operator_weights: dict[str, float] = field(default_factory=_equal_operator_weights)
    delta_draws: int = 6
    new_node_penalty: float = 1.0


@dataclass
class ReproductionConfig:
    # Inclusive (low, high) ranges for the number of mutations applied.
    offspring_mutations: tuple[int, int] = (1, 2)
    restart_mutations: tuple[int, int] = (1, 3)


@dataclass
class LightGameConfig:
    board_size: int = 9
    rounds_factor: float = 1.5
    repeat_limit: int = 4
    tile_on_reward: float = 1.0
    tile_off_reward: float = -1.0
    repeat_penalty: float = -1.0
    cell_px: int = 48

    @property
    def side(self) -> int:
        return int(math.isqrt(self.board_size))

    @property
    def cells(self) -> int:
        return self.side * self.side

    @property
    def rounds_per_generation(self) -> int:
        return int(math.ceil(self.cells * self.rounds_factor))


@dataclass
class EvolutionConfig:
    pop_size: int = 50
    generations: int = 100
    seed: int = 0
    stagnation_generations: int = 1000
    mutation: MutationConfig = field(default_factory=MutationConfig)
    reproduction: ReproductionConfig = field(default_factory=ReproductionConfig)
    game: LightGameConfig = field(default_factory=LightGameConfig)

    @property
    def input_size(self) -> int:
        return self.game.cells

    @property
    def output_size(self) -> int:
        return self.game.cells
