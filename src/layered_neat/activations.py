from __future__ import annotations

import jax.numpy as jnp
import numpy as np

SELU_ALPHA = 1.67326
SELU_LAMBDA = 1.0507

ACTIVATION_OPTIONS: tuple[str, ...] = (
    "identity",
    "logistic",
    "tanh",
    "binary_step",
    "relu",
    "softsign",
    "gaussian",
    "sinusoidal",
    "bent_identity",
    "selu",
)

# "none" is a plain pass-through and is never picked by mutation.
ALL_ACTIVATIONS: tuple[str, ...] = ("none",) + ACTIVATION_OPTIONS


def apply_activation(name: str, x: jnp.ndarray) -> jnp.ndarray:
    x = jnp.asarray(x, dtype=jnp.float32)
    if name in ("identity", "none"):
        return x
    if name == "logistic":
        return jax_sigmoid(x)
    if name == "tanh":
        return jnp.tanh(x)
    if name == "binary_step":
        return jnp.where(x > 0.0, 1.0, 0.0).astype(jnp.float32)
    if name == "relu":
        return jnp.maximum(0.0, x)
    if name == "softsign":
        return x / (1.0 + jnp.abs(x))
    if name == "gaussian":
        return jnp.exp(-(x * x))
    if name == "sinusoidal":
        return jnp.sin(x)
    if name == "bent_identity":
        return (jnp.sqrt(x * x + 1.0) - 1.0) / 2.0 + x
    if name == "selu":
        return jnp.where(x < 0.0, SELU_LAMBDA * SELU_ALPHA * (jnp.exp(x) - 1.0), SELU_LAMBDA * x)
    raise ValueError(f"Unknown activation: {name!r}")


def activation_value(name: str, x: float) -> float:
    """Scalar form of :func:`apply_activation` used by the genome evaluator.

    Works on plain floats with numpy so the per-node inner loop never
    dispatches into jax.
    """
    x = float(x)
    if name in ("identity", "none"):
        return x
    if name == "logistic":
        return float(1.0 / (1.0 + np.exp(-x)))
    if name == "tanh":
        return float(np.tanh(x))
    if name == "binary_step":
        return 1.0 if x > 0.0 else 0.0
    if name == "relu":
        return max(0.0, x)
    if name == "softsign":
        return x / (1.0 + abs(x))
    if name == "gaussian":
        return float(np.exp(-(x * x)))
    if name == "sinusoidal":
        return float(np.sin(x))
    if name == "bent_identity":
        return float((np.sqrt(x * x + 1.0) - 1.0) / 2.0 + x)
    if name == "selu":
        if x < 0.0:
            return float(SELU_LAMBDA * SELU_ALPHA * (np.exp(x) - 1.0))
        return SELU_LAMBDA * x
    raise ValueError(f"Unknown activation: {name!r}")


def random_activation(rng: np.random.Generator) -> str:
    return ACTIVATION_OPTIONS[int(rng.integers(len(ACTIVATION_OPTIONS)))]


def jax_sigmoid(x: jnp.ndarray) -> jnp.ndarray:
    return 1.0 / (1.0 + jnp.exp(-x))
