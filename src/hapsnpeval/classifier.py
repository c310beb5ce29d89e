"""Column classification and phase tracking.

The classifier walks the four aligned sequences once, left to right. Each
column is classified by its true-haplotype site type:

- homozygous (``t1 == t2``): test gaps are false indels, discordant test
  bases are false SNPs;
- heterozygous SNP (``t1 != t2``, no gap): each test haplotype is matched to a
  true allele and a phase switch is counted whenever the match flips relative
  to the previous heterozygous SNP;
- true indel (``t1 != t2`` with a gap): no phase tracking, but a test symbol
  matching neither true symbol is a false SNP.

Phase state is the only information carried between columns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, Tuple

from tqdm import tqdm

from .models import (
    GAP,
    AlignedHaplotypes,
    EvalMetrics,
    EventKind,
    PhaseState,
    PositionEvent,
    SiteCounts,
)
from .validation import check_equal_lengths

logger = logging.getLogger(__name__)

EventSink = Callable[[PositionEvent], None]


@dataclass
class ClassificationResult:
    metrics: EvalMetrics = field(default_factory=EvalMetrics)
    sites: SiteCounts = field(default_factory=SiteCounts)


def _track_phase(
    state: PhaseState,
    symbol: str,
    true_one: str,
    true_two: str,
) -> Tuple[PhaseState, Optional[EventKind]]:
    """Return the new phase state and the event (if any) for one test haplotype at a het SNP."""
    if symbol == true_one:
        event = EventKind.SWITCH if state is PhaseState.TRACKS_HAP_B else None
        return PhaseState.TRACKS_HAP_A, event
    if symbol == true_two:
        event = EventKind.SWITCH if state is PhaseState.TRACKS_HAP_A else None
        return PhaseState.TRACKS_HAP_B, event
    return state, EventKind.BAD_CALL


def classify_columns(
    true_one: str,
    true_two: str,
    test_one: str,
    test_two: str,
    *,
    on_event: Optional[EventSink] = None,
    progress: bool = False,
) -> ClassificationResult:
    """Classify every alignment column and accumulate per-haplotype error counters.

    The four sequences must have equal length; see ``evaluate_alignment`` for the
    checked entry point. ``on_event`` receives each ``PositionEvent`` as soon as it
    is produced.
    """
    result = ClassificationResult()
    metrics = result.metrics
    sites = result.sites
    phases: List[PhaseState] = [PhaseState.UNASSIGNED, PhaseState.UNASSIGNED]

    def emit(pos: int, kind: EventKind, hap: Optional[int] = None) -> None:
        if on_event is not None:
            on_event(PositionEvent(position=pos, kind=kind, haplotype=hap))

    columns: Iterable[Tuple[str, str, str, str]] = zip(true_one, true_two, test_one, test_two)
    if progress:
        columns = tqdm(columns, total=len(true_one), unit="col", desc="Classifying columns")

    for i, (t1, t2, s1, s2) in enumerate(columns):
        pos = i + 1
        sites.width += 1

        if t1 == t2:
            sites.homozygous += 1
            if s1 == GAP or s2 == GAP:
                # The haplotype holding a base opposite a gap is charged.
                if s1 != GAP:
                    metrics.test_one.false_indels += 1
                    emit(pos, EventKind.FALSE_INDEL, 1)
                if s2 != GAP:
                    metrics.test_two.false_indels += 1
                    emit(pos, EventKind.FALSE_INDEL, 2)
            elif s1 != s2:
                if s1 != t1:
                    metrics.test_one.false_snps += 1
                    emit(pos, EventKind.FALSE_SNP, 1)
                else:
                    metrics.test_two.false_snps += 1
                    emit(pos, EventKind.FALSE_SNP, 2)

        elif t1 != GAP and t2 != GAP:
            sites.het_snps += 1
            for hap, symbol in ((1, s1), (2, s2)):
                counters = metrics.for_haplotype(hap)
                phases[hap - 1], kind = _track_phase(phases[hap - 1], symbol, t1, t2)
                if kind is EventKind.SWITCH:
                    counters.switches += 1
                    emit(pos, kind, hap)
                elif kind is EventKind.BAD_CALL:
                    counters.bad_calls += 1
                    emit(pos, kind, hap)

        else:
            sites.true_indels += 1
            emit(pos, EventKind.TRUE_INDEL)
            for hap, symbol in ((1, s1), (2, s2)):
                if symbol != t1 and symbol != t2:
                    metrics.for_haplotype(hap).false_snps += 1
                    emit(pos, EventKind.TRUE_INDEL_FALSE_SNP, hap)

    logger.debug(
        "Classified %d columns: %d homozygous, %d heterozygous SNPs, %d true indels",
        sites.width,
        sites.homozygous,
        sites.het_snps,
        sites.true_indels,
    )
    return result


def evaluate_alignment(
    haplotypes: AlignedHaplotypes,
    *,
    on_event: Optional[EventSink] = None,
    progress: bool = False,
) -> ClassificationResult:
    """Check the equal-length precondition, then classify the alignment."""
    check_equal_lengths(haplotypes)
    return classify_columns(
        haplotypes.true_one,
        haplotypes.true_two,
        haplotypes.test_one,
        haplotypes.test_two,
        on_event=on_event,
        progress=progress,
    )
