from __future__ import annotations


class GenomeContractError(ValueError, AssertionError):
    """A caller or genome broke a precondition the core does not recover from.

    Raised for malformed genomes (dangling node references, empty layers),
    input vectors of the wrong length and an empty population.
    """
