from __future__ import annotations

from pathlib import Path

import matplotlib.pyplot as plt
import numpy as np

from .genes import HIDDEN, INPUT, OUTPUT
from .genome import Genome

NODE_COLORS = {INPUT: "#2ca02c", HIDDEN: "#9467bd", OUTPUT: "#ff7f0e"}


def _series(history: list[dict[str, float]], key: str) -> np.ndarray:
    return np.asarray([h[key] for h in history], dtype=float)


def _finish(fig: plt.Figure, path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    plt.close(fig)


def plot_history(history: list[dict[str, float]], path: Path) -> None:
    """Fitness, tiles lit, and champion/population size per generation.

    Generations that triggered a local-maximum restart are marked with
    vertical lines on every panel.
    """
    if not history:
        return

    gens = _series(history, "generation")
    restart_gens = gens[_series(history, "local_maximum") > 0]

    fig, ((ax_fit, ax_tiles), (ax_nodes, ax_conn)) = plt.subplots(2, 2, figsize=(12, 8), sharex=True)

    ax_fit.plot(gens, _series(history, "best_fitness"), label="best (penalised)")
    ax_fit.plot(gens, _series(history, "best_raw_fitness"), label="best (raw)", linestyle=":")
    ax_fit.plot(gens, _series(history, "mean_fitness"), label="mean (penalised)", alpha=0.7)
    ax_fit.set_title("Fitness")
    ax_fit.legend(loc="best", fontsize=8)

    ax_tiles.step(gens, _series(history, "best_tiles"), where="post", label="this window")
    ax_tiles.step(gens, _series(history, "all_time_best_tiles"), where="post", label="all time")
    ax_tiles.set_title("Tiles lit")
    ax_tiles.legend(loc="best", fontsize=8)

    ax_nodes.plot(gens, _series(history, "mean_hidden_nodes"), label="population mean")
    ax_nodes.plot(gens, _series(history, "champ_hidden_nodes"), label="champion")
    ax_nodes.plot(gens, _series(history, "champ_layers"), label="champion layers", linestyle="--")
    ax_nodes.set_title("Hidden nodes")
    ax_nodes.set_xlabel("generation")
    ax_nodes.legend(loc="best", fontsize=8)

    ax_conn.plot(gens, _series(history, "mean_connections"), label="population mean")
    ax_conn.plot(gens, _series(history, "champ_connections"), label="champion")
    ax_conn.set_title("Connections")
    ax_conn.set_xlabel("generation")
    ax_conn.legend(loc="best", fontsize=8)

    for ax in (ax_fit, ax_tiles, ax_nodes, ax_conn):
        for x in restart_gens:
            ax.axvline(x, color="#d62728", alpha=0.25, linewidth=1)
        ax.grid(True, alpha=0.3)

    _finish(fig, path)


def _layer_positions(genome: Genome) -> dict[int, tuple[float, float]]:
    pos: dict[int, tuple[float, float]] = {}
    for col, layer in enumerate(genome.layers):
        if len(layer) == 1:
            rows = [0.5]
        else:
            rows = np.linspace(0.05, 0.95, len(layer)).tolist()
        for row, node_id in zip(rows, layer):
            pos[node_id] = (float(col), float(row))
    return pos


def plot_genome(genome: Genome, path: Path, title: str = "Genome Topology") -> None:
    """Draw the network one column per layer, inputs on the left."""
    pos = _layer_positions(genome)

    width = max(6.0, 2.2 * len(genome.layers))
    fig, ax = plt.subplots(figsize=(width, 6))

    for conn in genome.connections:
        x1, y1 = pos[conn.src]
        x2, y2 = pos[conn.dst]
        # Edges that skip over a layer are drawn fainter.
        alpha = 0.7 if x2 - x1 == 1 else 0.3
        color = "#1f77b4" if conn.weight >= 0 else "#d62728"
        ax.plot([x1, x2], [y1, y2], color=color, alpha=alpha, linewidth=0.5 + min(2.0, abs(conn.weight)))

    for node_id, (x, y) in pos.items():
        node = genome.nodes[node_id]
        ax.scatter([x], [y], s=140, color=NODE_COLORS[node.kind], edgecolors="black", zorder=3)
        label = node.activation if node.kind == HIDDEN else str(node_id)
        ax.annotate(label, (x, y), textcoords="offset points", xytext=(0, 9), ha="center", fontsize=7)

    ax.set_title(f"{title} ({genome.node_count()} nodes, {len(genome.connections)} connections)")
    ax.set_xticks(range(len(genome.layers)))
    ax.set_xticklabels(["in"] + [f"h{i}" for i in range(1, len(genome.layers) - 1)] + ["out"])
    ax.set_yticks([])
    ax.set_xlim(-0.5, len(genome.layers) - 0.5)
    ax.set_ylim(-0.05, 1.1)

    _finish(fig, path)


def plot_activation_usage(activation_counts: dict[str, int], path: Path) -> None:
    if not activation_counts:
        return
    names = sorted(activation_counts, key=activation_counts.get, reverse=True)

    fig, ax = plt.subplots(figsize=(8, 4))
    ax.barh(names, [activation_counts[n] for n in names], color=NODE_COLORS[HIDDEN])
    ax.invert_yaxis()
    ax.set_xlabel("hidden nodes across the population")
    ax.set_title("Hidden activation usage")
    ax.grid(True, axis="x", alpha=0.3)

    _finish(fig, path)
