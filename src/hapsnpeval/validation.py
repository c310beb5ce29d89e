from __future__ import annotations

import logging

from .models import AlignedHaplotypes

logger = logging.getLogger(__name__)


class HapEvalError(Exception):
    """Base class for alignment evaluation errors."""


class AlignmentFormatError(HapEvalError):
    """Raised when the alignment does not hold two true and two test records."""


class AlignmentReadError(HapEvalError):
    """Raised when the alignment file fails mid-read."""


class AlignmentLengthError(HapEvalError):
    """Raised when the four aligned sequences differ in length."""


def check_equal_lengths(haplotypes: AlignedHaplotypes) -> int:
    """Ensure all four sequences share one width; return that width."""
    lengths = [len(s) for s in haplotypes.sequences()]
    if len(set(lengths)) == 1:
        return lengths[0]

    detail = ", ".join(
        f"{header or '?'}={n}" for header, n in zip(haplotypes.headers(), lengths)
    )
    raise AlignmentLengthError(
        "Aligned sequences must all have the same length (" + detail + "). "
        "Check that the input is a multiple sequence alignment, not raw sequences."
    )
