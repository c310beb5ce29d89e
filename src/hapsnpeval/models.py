from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

GAP = "-"


class PhaseState(Enum):
    """Which true haplotype a test haplotype matched at the last heterozygous SNP."""

    UNASSIGNED = 0
    TRACKS_HAP_A = 1
    TRACKS_HAP_B = 2


class EventKind(Enum):
    FALSE_INDEL = "false_indel"
    FALSE_SNP = "false_snp"
    SWITCH = "switch"
    BAD_CALL = "bad_call"
    TRUE_INDEL = "true_indel"
    TRUE_INDEL_FALSE_SNP = "true_indel_false_snp"


@dataclass(frozen=True)
class PositionEvent:
    """A classification outcome at one alignment column.

    Attributes
    ----------
    position:
        1-based alignment column.
    kind:
        What was observed at the column.
    haplotype:
        Test haplotype (1 or 2) the event is charged to, or None for
        column-level events (true indels).
    """

    position: int
    kind: EventKind
    haplotype: Optional[int] = None

    @property
    def message(self) -> str:
        k = self.kind
        pos = self.position
        if k is EventKind.FALSE_INDEL:
            return f"False indel at position {pos}"
        if k is EventKind.FALSE_SNP:
            return f"False SNP at position {pos}"
        if k is EventKind.SWITCH:
            return f"Test haplotype {self.haplotype} switches at position {pos}"
        if k is EventKind.BAD_CALL:
            return (
                f"Test haplotype {self.haplotype} doesn't match either true haplotype "
                f"at position {pos}"
            )
        if k is EventKind.TRUE_INDEL:
            return f"True indel at position {pos}"
        return f"False SNP due to test haplotype {self.haplotype} at position {pos}"


@dataclass
class HaplotypeMetrics:
    """Error counters for one test haplotype."""

    switches: int = 0
    false_snps: int = 0
    false_indels: int = 0
    bad_calls: int = 0


@dataclass
class EvalMetrics:
    """Counters for both test haplotypes of one run."""

    test_one: HaplotypeMetrics = field(default_factory=HaplotypeMetrics)
    test_two: HaplotypeMetrics = field(default_factory=HaplotypeMetrics)

    def for_haplotype(self, hap: int) -> HaplotypeMetrics:
        if hap == 1:
            return self.test_one
        if hap == 2:
            return self.test_two
        raise ValueError(f"Test haplotype must be 1 or 2, got {hap}")


@dataclass
class SiteCounts:
    """Column tallies by true-haplotype site type."""

    width: int = 0
    homozygous: int = 0
    het_snps: int = 0
    true_indels: int = 0


@dataclass(frozen=True)
class AlignedHaplotypes:
    """The four aligned records of one evaluation run."""

    true_one_header: str
    true_two_header: str
    test_one_header: str
    test_two_header: str
    true_one: str
    true_two: str
    test_one: str
    test_two: str

    @property
    def width(self) -> int:
        return len(self.true_one)

    def sequences(self) -> tuple[str, str, str, str]:
        return (self.true_one, self.true_two, self.test_one, self.test_two)

    def headers(self) -> tuple[str, str, str, str]:
        return (
            self.true_one_header,
            self.true_two_header,
            self.test_one_header,
            self.test_two_header,
        )
