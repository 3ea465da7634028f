from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from .config import AMBIGUITY_MARGIN, MATCH_THRESHOLD
from .exceptions import DescriptorError
from .logger import setup_logger
from .types import EnrolledFace, MatchResult


def euclidean_distances(query: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    if matrix.shape[1] != query.shape[0]:
        raise DescriptorError(
            f"Descriptor size mismatch: query has {query.shape[0]} values, "
            f"roster has {matrix.shape[1]}."
        )
    return np.sqrt(np.sum((matrix - query) ** 2, axis=1))


class DescriptorMatcher:
    """Nearest-neighbour lookup of a face descriptor in an enrolled roster.

    Only candidates strictly closer than ``threshold`` are considered at all.
    When the runner-up among them sits within ``ambiguity_margin`` of the best
    one, the best match is still returned but with half the confidence.
    """

    def __init__(self, threshold: float = MATCH_THRESHOLD, ambiguity_margin: float = AMBIGUITY_MARGIN):
        if threshold <= 0.0:
            raise ValueError("threshold must be positive.")
        self.threshold = threshold
        self.ambiguity_margin = ambiguity_margin
        self.logger = setup_logger(self.__class__.__name__)

    def match(self, query: np.ndarray, roster: Sequence[EnrolledFace]) -> Optional[MatchResult]:
        if not roster:
            return None

        query = np.asarray(query, dtype=np.float64).reshape(-1)
        matrix = np.vstack([face.descriptor for face in roster]).astype(np.float64)
        distances = euclidean_distances(query, matrix)

        within = np.flatnonzero(distances < self.threshold)
        if within.size == 0:
            return None

        ranked = within[np.argsort(distances[within], kind="stable")]
        best_idx = int(ranked[0])
        best_distance = float(distances[best_idx])
        confidence = max(0.0, (self.threshold - best_distance) / self.threshold)

        ambiguous = False
        if ranked.size > 1:
            margin = float(distances[ranked[1]]) - best_distance
            if margin < self.ambiguity_margin:
                ambiguous = True
                confidence *= 0.5
                self.logger.warning(
                    "Ambiguous match for %s: margin %.3f to %s",
                    roster[best_idx].employee_id,
                    margin,
                    roster[int(ranked[1])].employee_id,
                )

        return MatchResult(
            employee_id=roster[best_idx].employee_id,
            distance=best_distance,
            confidence=confidence,
            ambiguous=ambiguous,
        )
