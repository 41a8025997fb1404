from __future__ import annotations

import csv
import json
from pathlib import Path

import numpy as np

from .config import EvolutionConfig
from .envs.light_game import Board, LightGameEvaluator, RepeatTracker, save_gif
from .genome import Genome
from .population import Population


class LightGameTrainer:
    """Drives a :class:`Population` on the light game, one tick at a time."""

    def __init__(self, cfg: EvolutionConfig, out_dir: Path | None = None, verbose: bool = True):
        if cfg.pop_size < 1:
            raise ValueError(f"pop_size must be positive, got {cfg.pop_size}")
        if cfg.generations < 1:
            raise ValueError(f"generations must be positive, got {cfg.generations}")

        self.cfg = cfg
        self.verbose = verbose
        self.out_dir = out_dir
        if self.out_dir is not None:
            self.out_dir.mkdir(parents=True, exist_ok=True)

        self.rng = np.random.default_rng(cfg.seed)
        self.population = Population(
            cfg.pop_size,
            cfg.input_size,
            cfg.output_size,
            rng=self.rng,
            mutation=cfg.mutation,
            reproduction=cfg.reproduction,
        )
        self.evaluator = LightGameEvaluator(cfg.game)

        # Best tile count reached inside the current stagnation window.
        self.best_tiles = 0
        self.all_time_best_tiles = 0
        self.last_improved_generation = self.population.generation

        self.history: list[dict[str, float]] = []
        # Champion of the most recently recorded generation.
        self.champion: Genome | None = None
        self.champion_generation = 0

    def run(self) -> Genome:
        for gen in range(self.cfg.generations):
            generation = self.population.generation
            self.play_generation()
            local_maximum = self._stagnated()
            self._record_generation(generation, local_maximum)
            if self.out_dir is not None:
                self._write_live_progress(generation, status=f"completed_generation_{generation}")

            if gen == self.cfg.generations - 1:
                break
            if local_maximum:
                self.best_tiles = 0
            self.population.next_generation(local_maximum)
            if local_maximum:
                self.last_improved_generation = self.population.generation

        return self.champion.clone()

    def play_generation(self) -> None:
        boards = [self.evaluator.new_board() for _ in self.population.genomes]
        trackers = [RepeatTracker() for _ in self.population.genomes]

        for _ in range(self.cfg.game.rounds_per_generation):
            for genome, board, tracker in zip(self.population.genomes, boards, trackers):
                self._observe(board)
                self.evaluator.step(genome, board, tracker)

        for board in boards:
            self._observe(board)

    def _observe(self, board: Board) -> None:
        _, total = board.check_finish()
        if total > self.best_tiles:
            self.best_tiles = total
            self.last_improved_generation = self.population.generation
        self.all_time_best_tiles = max(self.all_time_best_tiles, self.best_tiles)

    def _stagnated(self) -> bool:
        gap = self.population.generation - self.last_improved_generation
        return gap > self.cfg.stagnation_generations

    def _record_generation(self, generation: int, local_maximum: bool) -> None:
        genomes = self.population.genomes
        scores = np.asarray(self.population.fitness_scores(), dtype=float)
        raw = np.asarray([g.fitness for g in genomes], dtype=float)
        best = self.population.fittest()
        best_hidden, best_conn = best.complexity()

        record = {
            "generation": float(generation),
            "best_fitness": float(np.max(scores)),
            "mean_fitness": float(np.mean(scores)),
            "best_raw_fitness": float(np.max(raw)),
            "best_tiles": float(self.best_tiles),
            "all_time_best_tiles": float(self.all_time_best_tiles),
            "mean_hidden_nodes": float(np.mean([g.complexity()[0] for g in genomes])),
            "mean_connections": float(np.mean([g.complexity()[1] for g in genomes])),
            "champ_hidden_nodes": float(best_hidden),
            "champ_connections": float(best_conn),
            "champ_layers": float(len(best.layers)),
            "local_maximum": float(local_maximum),
        }
        self.history.append(record)
        self.champion = best.clone()
        self.champion_generation = generation

        if self.verbose:
            print(
                f"[gen {generation:04d}] "
                f"best={record['best_fitness']:.2f} "
                f"mean={record['mean_fitness']:.2f} "
                f"tiles={self.best_tiles}/{self.cfg.game.cells} "
                f"all_time={self.all_time_best_tiles} "
                f"hidden={best_hidden} conns={best_conn}"
                + (" restart" if local_maximum else "")
            )

    def activation_usage(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for genome in self.population.genomes:
            for layer in genome.hidden_layers:
                for node_id in layer:
                    name = genome.nodes[node_id].activation
                    counts[name] = counts.get(name, 0) + 1
        return counts

    def save_artifacts(self, champion: Genome) -> dict[str, Path]:
        if self.out_dir is None:
            raise ValueError("LightGameTrainer was created without an out_dir")

        artifacts: dict[str, Path] = {}
        history_csv = self.out_dir / "history.csv"
        self.write_history_csv(history_csv)
        artifacts["history_csv"] = history_csv
        artifacts["progress_json"] = self.out_dir / "progress.json"

        episode = self.evaluator.play(champion, capture_frames=True)
        gif_path = self.out_dir / "gifs" / "champion.gif"
        save_gif(episode.frames, gif_path)
        artifacts["gif_champion"] = gif_path

        self._write_live_progress(
            self.history[-1]["generation"] if self.history else -1,
            status="finished",
            champion_tiles=episode.tiles_on,
        )
        return artifacts

    def write_history_csv(self, path: Path) -> None:
        if not self.history:
            return
        fieldnames = list(self.history[0].keys())
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=fieldnames)
            writer.writeheader()
            for row in self.history:
                writer.writerow(row)

    def _write_live_progress(self, generation: float, status: str, champion_tiles: int | None = None) -> None:
        progress = {
            "generation_completed": int(generation),
            "generations_total": self.cfg.generations,
            "status": status,
            "out_dir": str(self.out_dir),
            "best_fitness": self.history[-1]["best_fitness"] if self.history else None,
            "mean_fitness": self.history[-1]["mean_fitness"] if self.history else None,
            "all_time_best_tiles": self.all_time_best_tiles,
        }
        if champion_tiles is not None:
            progress["champion_tiles"] = champion_tiles
        with (self.out_dir / "progress.json").open("w", encoding="utf-8") as f:
            json.dump(progress, f, indent=2)
            f.flush()
