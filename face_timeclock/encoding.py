from __future__ import annotations

from typing import Mapping, Optional

import numpy as np

from .exceptions import EncodingError


def descriptor_to_mapping(descriptor: np.ndarray) -> dict[str, float]:
    """Serialize a descriptor into the index -> value map used for storage."""
    vector = np.asarray(descriptor, dtype=np.float64).reshape(-1)
    return {str(index): float(value) for index, value in enumerate(vector)}


def mapping_to_descriptor(
    mapping: Mapping[str, float],
    expected_size: Optional[int] = None,
) -> np.ndarray:
    """Rebuild a descriptor from its stored map.

    The stored map carries no ordering of its own, so entries are placed by
    their numeric key rather than by iteration order.
    """
    if not mapping:
        raise EncodingError("Face encoding is empty.")

    try:
        indexed = sorted((int(key), float(value)) for key, value in mapping.items())
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"Face encoding has a non-numeric entry: {exc}") from exc

    indices = [index for index, _ in indexed]
    if indices != list(range(len(indexed))):
        raise EncodingError("Face encoding indices must be contiguous and start at 0.")

    if expected_size is not None and len(indexed) != expected_size:
        raise EncodingError(
            f"Face encoding has {len(indexed)} values, expected {expected_size}."
        )

    return np.array([value for _, value in indexed], dtype=np.float64)
