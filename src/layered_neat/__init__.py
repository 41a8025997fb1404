"""Layered NEAT: topology and weight evolution for small feed-forward networks."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .config import EvolutionConfig
from .errors import GenomeContractError
from .genome import Genome
from .population import Population

if TYPE_CHECKING:
    from .evolution import LightGameTrainer

__all__ = ["EvolutionConfig", "Genome", "GenomeContractError", "LightGameTrainer", "Population"]


def __getattr__(name: str):
    if name == "LightGameTrainer":
        from .evolution import LightGameTrainer as _LightGameTrainer

        return _LightGameTrainer
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
