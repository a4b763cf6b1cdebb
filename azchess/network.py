"""A small fully connected policy/value network with a plain binary weight format."""

from __future__ import annotations

import struct
from pathlib import Path
from typing import Sequence

import numpy as np

VALUE_OUTPUTS = 3  # win, draw, loss
_HEADER = struct.Struct("<3i")
_WEIGHT_DTYPE = np.dtype("<f4")
_LOG_EPSILON = 1e-12


def softmax(values) -> np.ndarray:
    """Softmax over the last axis, shifted by the maximum for stability."""
    array = np.asarray(values, dtype=np.float32)
    if array.shape[-1] == 0:
        raise ValueError("softmax of an empty sequence")
    shifted = np.exp(array - array.max(axis=-1, keepdims=True))
    return shifted / shifted.sum(axis=-1, keepdims=True)


class NeuralNetwork:
    """One hidden ReLU layer feeding a softmax policy head and a win/draw/loss head."""

    def __init__(
        self,
        input_size: int,
        hidden_size: int,
        policy_size: int,
        *,
        seed: int | None = None,
    ) -> None:
        for name, size in (
            ("input_size", input_size),
            ("hidden_size", hidden_size),
            ("policy_size", policy_size),
        ):
            if size < 0:
                raise ValueError(f"{name} must not be negative, got {size}")
        self.input_size = input_size
        self.hidden_size = hidden_size
        self.policy_size = policy_size
        rng = np.random.default_rng(seed)
        self.weights_input_hidden = rng.normal(
            0.0, 0.1, (input_size, hidden_size)
        ).astype(np.float32)
        self.weights_hidden_policy = rng.normal(
            0.0, 0.1, (hidden_size, policy_size)
        ).astype(np.float32)
        self.weights_hidden_value = rng.normal(
            0.0, 0.1, (hidden_size, VALUE_OUTPUTS)
        ).astype(np.float32)

    def _prepare(self, inputs) -> np.ndarray:
        vector = np.asarray(inputs, dtype=np.float32).reshape(-1)
        if vector.size < self.input_size:
            raise ValueError(
                f"network expects {self.input_size} inputs, got {vector.size}"
            )
        return vector[: self.input_size]

    def evaluate(self, inputs) -> tuple[np.ndarray, np.ndarray]:
        """Return (policy probabilities, win/draw/loss probabilities) for one input.

        Only the first ``input_size`` values of ``inputs`` are used.
        """
        vector = self._prepare(inputs)
        hidden = np.maximum(vector @ self.weights_input_hidden, 0.0)
        policy = softmax(hidden @ self.weights_hidden_policy)
        value = softmax(hidden @ self.weights_hidden_value)
        return policy, value

    def train(
        self,
        inputs: Sequence,
        target_policies: Sequence,
        target_values: Sequence,
        learning_rate: float,
    ) -> float:
        """Take one gradient step on the batch; returns the cross-entropy loss before it."""
        count = len(inputs)
        if len(target_policies) != count or len(target_values) != count:
            raise ValueError("inputs and targets must have the same length")
        print(f"Training network on {count} positions...")
        if count == 0:
            print("Network training completed")
            return 0.0

        x = np.stack([self._prepare(item) for item in inputs])
        policy_targets = np.asarray(target_policies, dtype=np.float32).reshape(count, -1)
        value_targets = np.asarray(target_values, dtype=np.float32).reshape(count, -1)
        if policy_targets.shape[1] != self.policy_size:
            raise ValueError(f"policy targets must have {self.policy_size} entries")
        if value_targets.shape[1] != VALUE_OUTPUTS:
            raise ValueError(f"value targets must have {VALUE_OUTPUTS} entries")

        pre_hidden = x @ self.weights_input_hidden
        hidden = np.maximum(pre_hidden, 0.0)
        policy = softmax(hidden @ self.weights_hidden_policy)
        value = softmax(hidden @ self.weights_hidden_value)

        loss = -(
            (policy_targets * np.log(policy + _LOG_EPSILON)).sum()
            + (value_targets * np.log(value + _LOG_EPSILON)).sum()
        ) / count

        grad_policy = (
            policy * policy_targets.sum(axis=1, keepdims=True) - policy_targets
        ) / count
        grad_value = (
            value * value_targets.sum(axis=1, keepdims=True) - value_targets
        ) / count
        grad_hidden = (
            grad_policy @ self.weights_hidden_policy.T
            + grad_value @ self.weights_hidden_value.T
        ) * (pre_hidden > 0)

        rate = np.float32(learning_rate)
        self.weights_hidden_policy -= rate * (hidden.T @ grad_policy)
        self.weights_hidden_value -= rate * (hidden.T @ grad_value)
        self.weights_input_hidden -= rate * (x.T @ grad_hidden)

        print("Network training completed")
        return float(loss)

    def save(self, filename) -> None:
        """Write the sizes as three int32 values followed by the float32 weights."""
        path = Path(filename)
        with path.open("wb") as stream:
            stream.write(_HEADER.pack(self.input_size, self.hidden_size, self.policy_size))
            for weights in (
                self.weights_input_hidden,
                self.weights_hidden_policy,
                self.weights_hidden_value,
            ):
                stream.write(weights.astype(_WEIGHT_DTYPE).tobytes())
        print(f"Network saved to {filename}")

    @classmethod
    def load(cls, filename) -> NeuralNetwork:
        """Read a network written by :meth:`save`."""
        data = Path(filename).read_bytes()
        if len(data) < _HEADER.size:
            raise ValueError(f"{filename}: file too short for a network header")
        input_size, hidden_size, policy_size = _HEADER.unpack_from(data)
        if min(input_size, hidden_size, policy_size) < 0:
            raise ValueError(f"{filename}: negative layer size in header")
        shapes = (
            (input_size, hidden_size),
            (hidden_size, policy_size),
            (hidden_size, VALUE_OUTPUTS),
        )
        expected = _HEADER.size + sum(r * c for r, c in shapes) * _WEIGHT_DTYPE.itemsize
        if len(data) < expected:
            raise ValueError(
                f"{filename}: expected {expected} bytes of network data, got {len(data)}"
            )
        network = cls(0, 0, 0)
        network.input_size = input_size
        network.hidden_size = hidden_size
        network.policy_size = policy_size
        offset = _HEADER.size
        arrays = []
        for rows, cols in shapes:
            size = rows * cols
            array = np.frombuffer(data, dtype=_WEIGHT_DTYPE, count=size, offset=offset)
            arrays.append(array.astype(np.float32).reshape(rows, cols))
            offset += size * _WEIGHT_DTYPE.itemsize
        (
            network.weights_input_hidden,
            network.weights_hidden_policy,
            network.weights_hidden_value,
        ) = arrays
        print(f"Network loaded from {filename}")
        return network