"""
persistence.py - Binary model files for the linear agent

Layout (little-endian, 124 bytes):
    magic     4 bytes   b"C4RL"
    version   uint32    MODEL_VERSION
    features  uint32    NUM_FEATURES
    weights   float64 x NUM_FEATURES, in feature-index order

A file that does not match is reported as "no usable model"; loading never
raises for bad or missing files.
"""

import os
from typing import Optional

import numpy as np
from filelock import FileLock

from c4rl.ai.features import NUM_FEATURES
from c4rl.debug import debug

MAGIC = b"C4RL"
MODEL_VERSION = 2

HEADER_DTYPE = np.dtype([('magic', 'S4'), ('version', '<u4'), ('features', '<u4')])
WEIGHT_DTYPE = np.dtype('<f8')
MODEL_FILE_SIZE = HEADER_DTYPE.itemsize + NUM_FEATURES * WEIGHT_DTYPE.itemsize


def encode_weights(weights: np.ndarray) -> bytes:
    weights = np.asarray(weights, dtype=WEIGHT_DTYPE)
    if weights.shape != (NUM_FEATURES,):
        raise ValueError(f"Expected {NUM_FEATURES} weights, got shape {weights.shape}")

    header = np.array([(MAGIC, MODEL_VERSION, NUM_FEATURES)], dtype=HEADER_DTYPE)
    return header.tobytes() + weights.tobytes()


def decode_weights(data: bytes) -> Optional[np.ndarray]:
    """Parse a model file's bytes, or return None if they are not a usable model."""
    if len(data) < HEADER_DTYPE.itemsize:
        debug.warning("Model file too short for header", "persistence")
        return None

    header = np.frombuffer(data, dtype=HEADER_DTYPE, count=1)[0]
    if bytes(header['magic']) != MAGIC:
        debug.warning(f"Bad model magic {bytes(header['magic'])!r}", "persistence")
        return None

    version, features = int(header['version']), int(header['features'])
    if version != MODEL_VERSION or features != NUM_FEATURES:
        debug.warning(f"Incompatible model: version {version}, {features} features", "persistence")
        return None

    if len(data) < MODEL_FILE_SIZE:
        debug.warning(f"Truncated model: {len(data)} of {MODEL_FILE_SIZE} bytes", "persistence")
        return None

    weights = np.frombuffer(data, dtype=WEIGHT_DTYPE, count=NUM_FEATURES,
                            offset=HEADER_DTYPE.itemsize)
    return weights.astype(np.float64)


def save_weights(weights: np.ndarray, path: str) -> bool:
    """
    Write weights to path atomically.

    Returns:
        True on success, False if the file could not be written
    """
    payload = encode_weights(weights)

    directory = os.path.dirname(path)
    try:
        if directory:
            os.makedirs(directory, exist_ok=True)

        with FileLock(f"{path}.lock"):
            temp_path = f"{path}.tmp"
            with open(temp_path, 'wb') as f:
                f.write(payload)
            os.replace(temp_path, path)
    except OSError as e:
        debug.error(f"Error saving model to {path}: {e}", "persistence")
        return False

    debug.info(f"Saved model to {path}", "persistence")
    return True


def load_weights(path: str) -> Optional[np.ndarray]:
    """
    Read weights from path.

    Returns:
        The weight vector, or None if the file is missing or not a usable model
    """
    try:
        with open(path, 'rb') as f:
            data = f.read(MODEL_FILE_SIZE)
    except OSError as e:
        debug.warning(f"Cannot read model {path}: {e}", "persistence")
        return None

    weights = decode_weights(data)
    if weights is not None:
        debug.info(f"Loaded model from {path}", "persistence")
    return weights
