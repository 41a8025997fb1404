from __future__ import annotations

import argparse
import datetime as dt
from pathlib import Path

from .config import EvolutionConfig, LightGameConfig
from .evolution import LightGameTrainer
from .reporting import write_markdown_report
from .visualization import plot_activation_usage, plot_genome, plot_history


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Evolve layered NEAT networks on the light game")
    p.add_argument("--pop-size", type=int, default=50)
    p.add_argument("--generations", type=int, default=100)
    p.add_argument("--board-size", type=int, default=9)
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--stagnation", type=int, default=1000, help="generations without progress before a restart")
    p.add_argument("--out-root", type=str, default="artifacts")
    p.add_argument("--quiet", action="store_true")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    cfg = EvolutionConfig(
        pop_size=args.pop_size,
        generations=args.generations,
        seed=args.seed,
        stagnation_generations=args.stagnation,
        game=LightGameConfig(board_size=args.board_size),
    )

    ts = dt.datetime.now().strftime("%Y%m%d_%H%M%S")
    out_dir = Path(args.out_root).resolve() / f"light_game_{ts}"

    trainer = LightGameTrainer(cfg=cfg, out_dir=out_dir, verbose=not args.quiet)
    champion = trainer.run()
    artifacts = trainer.save_artifacts(champion)

    plots_dir = out_dir / "plots"
    plot_history(trainer.history, plots_dir / "fitness_complexity.png")
    plot_genome(champion, plots_dir / "champion_network.png", title="Champion Topology")
    plot_activation_usage(trainer.activation_usage(), plots_dir / "final_activation_usage.png")

    report_path = out_dir / "report.md"
    write_markdown_report(
        path=report_path,
        history=trainer.history,
        champion=champion,
        artifacts={**artifacts, "plots_dir": plots_dir},
    )

    print(f"Run complete: {out_dir}")
    for name, p in sorted({**artifacts, "report": report_path}.items()):
        print(f"{name}: {p}")


if __name__ == "__main__":
    main()
