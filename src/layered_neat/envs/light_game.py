from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import numpy as np
from PIL import Image, ImageDraw

from ..config import LightGameConfig
from ..genome import Genome


class Board:
    """Square grid of lights; the player wins once every tile is on."""

    def __init__(self, size: int):
        side = int(np.floor(np.sqrt(size)))
        if side < 1:
            raise ValueError(f"Board needs at least one tile, got size={size}")
        self.tiles = np.zeros((side, side), dtype=np.uint8)

    @property
    def side(self) -> int:
        return int(self.tiles.shape[0])

    @property
    def cells(self) -> int:
        return int(self.tiles.size)

    def check_finish(self) -> tuple[bool, int]:
        total = int(self.tiles.sum())
        return total == self.cells, total

    def update_tile(self, index: int) -> bool:
        """Toggle tile ``index`` (row-major) and report whether it is now on."""
        row, col = divmod(int(index), self.side)
        self.tiles[row, col] ^= 1
        return bool(self.tiles[row, col])

    def as_inputs(self) -> list[float]:
        return [float(v) for v in self.tiles.reshape(-1)]

    def render(self, cell_px: int = 48) -> Image.Image:
        size = self.side * cell_px
        img = Image.new("RGB", (size, size), "white")
        draw = ImageDraw.Draw(img)
        for row in range(self.side):
            for col in range(self.side):
                x0, y0 = col * cell_px, row * cell_px
                fill = "black" if self.tiles[row, col] else "white"
                draw.rectangle([x0, y0, x0 + cell_px - 1, y0 + cell_px - 1], fill=fill, outline="gray")
        return img


@dataclass
class RepeatTracker:
    last_index: int | None = None
    repeats: int = 0

    def record(self, index: int) -> None:
        if index == self.last_index:
            self.repeats += 1
        else:
            self.last_index = index
            self.repeats = 0


@dataclass
class EpisodeResult:
    reward: float
    tiles_on: int
    steps: int
    frames: list[Image.Image] = field(default_factory=list)


class LightGameEvaluator:
    def __init__(self, cfg: LightGameConfig):
        self.cfg = cfg

    def new_board(self) -> Board:
        return Board(self.cfg.board_size)

    def step(self, genome: Genome, board: Board, tracker: RepeatTracker) -> float:
        """Advance one tick for ``genome`` on ``board``; returns the reward handed out."""
        finished, _ = board.check_finish()
        if finished:
            return 0.0

        if tracker.repeats > self.cfg.repeat_limit:
            genome.reward(self.cfg.repeat_penalty)
            return self.cfg.repeat_penalty

        index = genome.update(board.as_inputs())
        if board.update_tile(index):
            reward = self.cfg.tile_on_reward
        else:
            reward = self.cfg.tile_off_reward
        genome.reward(reward)
        tracker.record(index)
        return reward

    def play(self, genome: Genome, rounds: int | None = None, capture_frames: bool = False) -> EpisodeResult:
        """Run one genome alone on a fresh board; the genome itself is not touched."""
        player = genome.clone()
        player.fitness = 0.0
        board = self.new_board()
        tracker = RepeatTracker()
        rounds = self.cfg.rounds_per_generation if rounds is None else rounds

        frames: list[Image.Image] = []
        if capture_frames:
            frames.append(board.render(self.cfg.cell_px))

        total = 0.0
        steps = 0
        for steps in range(1, rounds + 1):
            total += self.step(player, board, tracker)
            if capture_frames:
                frames.append(board.render(self.cfg.cell_px))
            if board.check_finish()[0]:
                break

        return EpisodeResult(
            reward=total,
            tiles_on=board.check_finish()[1],
            steps=steps,
            frames=frames,
        )


def save_gif(frames: list[Image.Image], path: Path, duration_ms: int = 200) -> None:
    if not frames:
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    frames[0].save(path, save_all=True, append_images=frames[1:], duration=duration_ms, loop=0)
