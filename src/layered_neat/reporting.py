from __future__ import annotations

from collections import Counter
from pathlib import Path

from .genome import Genome


def _change(history: list[dict[str, float]], key: str) -> str:
    first, last = history[0][key], history[-1][key]
    return f"{first:.2f} → {last:.2f} ({last - first:+.2f})"


def build_complexification_commentary(history: list[dict[str, float]], champion: Genome) -> str:
    """Summarise how network size and fitness moved over the run."""
    if not history:
        return "No generation history was recorded."

    restart_gens = [int(h["generation"]) for h in history if h["local_maximum"]]
    hidden = Counter(champion.nodes[nid].activation for layer in champion.hidden_layers for nid in layer)

    out = [
        "### Complexification Notes",
        "",
        f"- Best fitness: {_change(history, 'best_fitness')}.",
        f"- Mean hidden nodes: {_change(history, 'mean_hidden_nodes')}.",
        f"- Mean connections: {_change(history, 'mean_connections')}.",
    ]
    if restart_gens:
        shown = ", ".join(str(g) for g in restart_gens[:10])
        more = f" and {len(restart_gens) - 10} more" if len(restart_gens) > 10 else ""
        out.append(f"- Local-maximum restarts at generation {shown}{more}.")
    else:
        out.append("- No local-maximum restarts.")

    if not hidden:
        out.append("- Champion never grew a hidden node.")
    else:
        out.append(
            "- Champion hidden activations: "
            + ", ".join(f"{name} x{count}" for name, count in sorted(hidden.items()))
            + "."
        )
        out.append(
            "- Champion hidden layer sizes: "
            + " / ".join(str(len(layer)) for layer in champion.hidden_layers)
            + "."
        )
    return "\n".join(out)


def write_markdown_report(
    path: Path,
    history: list[dict[str, float]],
    champion: Genome,
    artifacts: dict[str, Path],
) -> None:
    best_tiles = int(max((h["all_time_best_tiles"] for h in history), default=0))

    doc = [
        "# Layered NEAT Light Game Report",
        "",
        "| metric | value |",
        "|---|---|",
        f"| generations | {len(history)} |",
        f"| all-time best tiles lit | {best_tiles} |",
        f"| champion layers | {len(champion.layers)} |",
        f"| champion nodes | {champion.node_count()} |",
        f"| champion connections | {len(champion.connections)} |",
        f"| champion penalised fitness | {champion.calculate_fitness():.2f} |",
        "",
        build_complexification_commentary(history, champion),
        "",
        "## Files",
        "",
    ]
    doc.extend(f"- {name}: `{p}`" for name, p in sorted(artifacts.items()))
    doc.append("")

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("\n".join(doc), encoding="utf-8")
