from __future__ import annotations

import csv
import json

import pytest

from layered_neat.cli import main
from layered_neat.config import EvolutionConfig, LightGameConfig
from layered_neat.evolution import LightGameTrainer
from layered_neat.reporting import build_complexification_commentary, write_markdown_report
from layered_neat.visualization import plot_activation_usage, plot_genome, plot_history


def _small_config(**overrides) -> EvolutionConfig:
    params = dict(pop_size=4, generations=3, seed=3, game=LightGameConfig(board_size=4))
    params.update(overrides)
    return EvolutionConfig(**params)


def test_config_derives_sizes_from_board():
    cfg = EvolutionConfig(game=LightGameConfig(board_size=10, rounds_factor=1.5))
    assert cfg.input_size == cfg.output_size == 9
    assert cfg.game.rounds_per_generation == 14


def test_trainer_runs_and_records_history():
    trainer = LightGameTrainer(_small_config(), verbose=False)
    champion = trainer.run()

    assert len(trainer.history) == 3
    assert [h["generation"] for h in trainer.history] == [1.0, 2.0, 3.0]
    assert trainer.population.generation == 3
    assert len(trainer.population) == 4
    assert 0 < trainer.all_time_best_tiles <= 4
    champion.validate()
    assert len(champion.input_ids) == 4


def test_trainer_keeps_only_the_latest_champion():
    trainer = LightGameTrainer(_small_config(generations=5), verbose=False)
    assert trainer.champion is None

    champion = trainer.run()

    assert trainer.champion_generation == 5
    assert champion == trainer.champion
    assert champion is not trainer.champion
    assert not hasattr(trainer, "champion_snapshots")


def test_trainer_is_reproducible():
    a = LightGameTrainer(_small_config(), verbose=False)
    b = LightGameTrainer(_small_config(), verbose=False)
    a.run()
    b.run()
    assert a.history == b.history
    assert a.population.genomes == b.population.genomes


def test_trainer_prints_progress(capsys):
    LightGameTrainer(_small_config(generations=1), verbose=True).run()
    assert "[gen 0001]" in capsys.readouterr().out


def test_stagnation_triggers_restart_flag():
    trainer = LightGameTrainer(_small_config(stagnation_generations=0), verbose=False)
    trainer.play_generation()
    assert not trainer._stagnated()

    trainer.last_improved_generation = trainer.population.generation - 1
    assert trainer._stagnated()


def test_trainer_rejects_bad_config():
    with pytest.raises(ValueError):
        LightGameTrainer(_small_config(pop_size=0), verbose=False)
    with pytest.raises(ValueError):
        LightGameTrainer(_small_config(generations=0), verbose=False)


def test_save_artifacts(tmp_path):
    trainer = LightGameTrainer(_small_config(), out_dir=tmp_path, verbose=False)
    champion = trainer.run()
    artifacts = trainer.save_artifacts(champion)

    assert artifacts["history_csv"].exists()
    assert artifacts["gif_champion"].exists()
    with artifacts["history_csv"].open(encoding="utf-8") as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 3

    progress = json.loads(artifacts["progress_json"].read_text(encoding="utf-8"))
    assert progress["status"] == "finished"
    assert progress["generations_total"] == 3


def test_save_artifacts_requires_out_dir():
    trainer = LightGameTrainer(_small_config(generations=1), verbose=False)
    with pytest.raises(ValueError):
        trainer.save_artifacts(trainer.run())


def test_plots_and_report(tmp_path):
    trainer = LightGameTrainer(_small_config(), verbose=False)
    champion = trainer.run()
    for _ in range(3):
        champion.mutate_new_node(trainer.rng)

    plot_history(trainer.history, tmp_path / "history.png")
    plot_genome(champion, tmp_path / "genome.png")
    plot_activation_usage({"tanh": 2, "relu": 1}, tmp_path / "usage.png")
    for name in ("history.png", "genome.png", "usage.png"):
        assert (tmp_path / name).exists()

    commentary = build_complexification_commentary(trainer.history, champion)
    assert "Champion hidden activations" in commentary

    report = tmp_path / "report.md"
    write_markdown_report(report, trainer.history, champion, {"plots_dir": tmp_path})
    assert "Light Game Report" in report.read_text(encoding="utf-8")


def test_commentary_without_history(single_pair_genome):
    assert build_complexification_commentary([], single_pair_genome) == "No generation history was recorded."


def test_cli_end_to_end(tmp_path, capsys):
    main(
        [
            "--pop-size", "3",
            "--generations", "2",
            "--board-size", "4",
            "--out-root", str(tmp_path),
            "--quiet",
        ]
    )
    run_dirs = list(tmp_path.iterdir())
    assert len(run_dirs) == 1
    run_dir = run_dirs[0]
    assert (run_dir / "report.md").exists()
    assert (run_dir / "plots" / "champion_network.png").exists()
    assert "Run complete" in capsys.readouterr().out
