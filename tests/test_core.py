from typing import List

import pytest

from hapsnpeval.classifier import _track_phase, classify_columns, evaluate_alignment
from hapsnpeval.models import AlignedHaplotypes, EventKind, PhaseState, PositionEvent
from hapsnpeval.validation import AlignmentLengthError


def counters(result) -> tuple:
    m = result.metrics
    return (
        m.test_one.switches,
        m.test_two.switches,
        m.test_one.false_snps,
        m.test_two.false_snps,
        m.test_one.false_indels,
        m.test_two.false_indels,
        m.test_one.bad_calls,
        m.test_two.bad_calls,
    )


def run(t1: str, t2: str, s1: str, s2: str):
    events: List[PositionEvent] = []
    result = classify_columns(t1, t2, s1, s2, on_event=events.append)
    return result, events


def test_empty_alignment_all_zero():
    result, events = run("", "", "", "")
    assert counters(result) == (0,) * 8
    assert events == []
    assert result.sites.width == 0


def test_end_to_end_two_het_columns():
    result, events = run("AC", "GT", "AT", "GC")
    assert counters(result) == (1, 1, 0, 0, 0, 0, 0, 0)
    assert [(e.position, e.kind, e.haplotype) for e in events] == [
        (2, EventKind.SWITCH, 1),
        (2, EventKind.SWITCH, 2),
    ]
    assert events[0].message == "Test haplotype 1 switches at position 2"


def test_switch_counting_is_order_dependent():
    # Test haplotype 1 matches A, B, A, B; test haplotype 2 matches A, A, B, B.
    result, _ = run("AAAA", "GGGG", "AGAG", "AAGG")
    assert result.metrics.test_one.switches == 3
    assert result.metrics.test_two.switches == 1


def test_first_het_match_is_not_a_switch():
    result, _ = run("A", "G", "G", "A")
    assert counters(result) == (0,) * 8


def test_homozygous_concordant_column():
    result, events = run("C", "C", "C", "C")
    assert counters(result) == (0,) * 8
    assert events == []
    assert result.sites.homozygous == 1


def test_homozygous_false_indel_charged_to_ungapped_haplotype():
    result, events = run("C", "C", "-", "C")
    assert counters(result) == (0, 0, 0, 0, 0, 1, 0, 0)
    assert events == [PositionEvent(position=1, kind=EventKind.FALSE_INDEL, haplotype=2)]
    assert events[0].message == "False indel at position 1"

    result, _ = run("C", "C", "C", "-")
    assert result.metrics.test_one.false_indels == 1
    assert result.metrics.test_two.false_indels == 0


def test_homozygous_double_gap_counts_nothing():
    result, events = run("T", "T", "-", "-")
    assert counters(result) == (0,) * 8
    assert events == []


def test_homozygous_false_snp():
    result, events = run("T", "T", "G", "T")
    assert result.metrics.test_one.false_snps == 1
    assert result.metrics.test_two.false_snps == 0
    assert events[0].message == "False SNP at position 1"

    result, _ = run("T", "T", "T", "A")
    assert result.metrics.test_two.false_snps == 1
    assert result.metrics.test_one.false_snps == 0


def test_bad_call_leaves_phase_unchanged():
    # Column 2 is a bad call for test haplotype 1; column 3 returns to A with no switch.
    result, events = run("AAA", "GGG", "ACA", "GGG")
    assert result.metrics.test_one.bad_calls == 1
    assert result.metrics.test_one.switches == 0
    assert events[0].kind is EventKind.BAD_CALL
    assert events[0].message == (
        "Test haplotype 1 doesn't match either true haplotype at position 2"
    )


def test_track_phase_bad_call_keeps_state():
    for state in PhaseState:
        new_state, kind = _track_phase(state, "T", "A", "G")
        assert new_state is state
        assert kind is EventKind.BAD_CALL


def test_track_phase_transitions():
    assert _track_phase(PhaseState.UNASSIGNED, "A", "A", "G") == (PhaseState.TRACKS_HAP_A, None)
    assert _track_phase(PhaseState.TRACKS_HAP_A, "G", "A", "G") == (
        PhaseState.TRACKS_HAP_B,
        EventKind.SWITCH,
    )
    assert _track_phase(PhaseState.TRACKS_HAP_B, "A", "A", "G") == (
        PhaseState.TRACKS_HAP_A,
        EventKind.SWITCH,
    )
    assert _track_phase(PhaseState.TRACKS_HAP_B, "G", "A", "G") == (PhaseState.TRACKS_HAP_B, None)


def test_haplotypes_tracked_independently():
    # Test haplotype 2 makes a bad call at column 2; haplotype 1 switches there.
    result, _ = run("AA", "GG", "AG", "GT")
    assert result.metrics.test_one.switches == 1
    assert result.metrics.test_two.switches == 0
    assert result.metrics.test_two.bad_calls == 1


def test_true_indel_no_phase_tracking():
    # Columns: het A/G, true indel, het A/G. The indel column does not move phase.
    result, events = run("AAA", "G-G", "A-A", "GAG")
    assert counters(result) == (0,) * 8
    assert result.sites.true_indels == 1
    assert result.sites.het_snps == 2
    assert [e.kind for e in events] == [EventKind.TRUE_INDEL]
    assert events[0].message == "True indel at position 2"


def test_true_indel_false_snps_counted_for_each_haplotype():
    result, events = run("A", "-", "C", "T")
    assert result.metrics.test_one.false_snps == 1
    assert result.metrics.test_two.false_snps == 1
    assert [(e.kind, e.haplotype) for e in events] == [
        (EventKind.TRUE_INDEL, None),
        (EventKind.TRUE_INDEL_FALSE_SNP, 1),
        (EventKind.TRUE_INDEL_FALSE_SNP, 2),
    ]
    assert events[2].message == "False SNP due to test haplotype 2 at position 1"


def test_runs_are_idempotent():
    args = ("ACGTA-C", "GCTTA-T", "AC-TAGC", "GCGTC-T")
    first, first_events = run(*args)
    second, second_events = run(*args)
    assert counters(first) == counters(second)
    assert first_events == second_events


def test_no_sink_is_fine():
    result = classify_columns("AC", "GT", "AT", "GC")
    assert result.metrics.test_one.switches == 1


def _haplotypes(t1: str, t2: str, s1: str, s2: str) -> AlignedHaplotypes:
    return AlignedHaplotypes(
        true_one_header="true_a",
        true_two_header="true_b",
        test_one_header="asm_1",
        test_two_header="asm_2",
        true_one=t1,
        true_two=t2,
        test_one=s1,
        test_two=s2,
    )


def test_evaluate_alignment_rejects_unequal_lengths():
    with pytest.raises(AlignmentLengthError, match="asm_2=2"):
        evaluate_alignment(_haplotypes("ACG", "ACG", "ACG", "AC"))


def test_evaluate_alignment_with_progress():
    result = evaluate_alignment(_haplotypes("AC", "GT", "AT", "GC"), progress=True)
    assert result.metrics.test_two.switches == 1
    assert result.sites.width == 2
