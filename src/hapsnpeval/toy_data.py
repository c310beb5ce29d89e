from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Tuple

from .utils import ensure_outdir, write_json

TOY_TRUE_PREFIX = "true_"


def _write_fasta(path: Path, records: List[Tuple[str, str]], wrap: int = 60) -> None:
    lines: List[str] = []
    for header, seq in records:
        lines.append(f">{header}")
        for i in range(0, len(seq), wrap):
            lines.append(seq[i : i + wrap])
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")


def _toy_columns() -> Tuple[str, str, str, str]:
    """Build a 130-column alignment with a known set of errors.

    Columns (1-based):
    - 10, 30, 50, 70, 90: heterozygous SNPs A/G. Test haplotype 1 matches
      A, A, G, G, A (switches at 50 and 90); test haplotype 2 matches G, G, G, G, G.
    - 20: homozygous C, test haplotype 1 carries T (false SNP).
    - 40: homozygous T, test haplotype 2 gapped (false indel on haplotype 1).
    - 60: true indel (gap on true haplotype B).
    - 80: heterozygous SNP C/T. Test haplotype 1 stays on B (T); test
      haplotype 2 carries A (bad call).
    """
    backbone = ("ACGTTGCA" * 20)[:130]
    t1 = list(backbone)
    t2 = list(backbone)
    s1 = list(backbone)
    s2 = list(backbone)

    for col, hap_one in zip([10, 30, 50, 70, 90], ["A", "A", "G", "G", "A"]):
        i = col - 1
        t1[i], t2[i] = "A", "G"
        s1[i] = hap_one
        s2[i] = "G"

    t1[19] = t2[19] = s2[19] = "C"
    s1[19] = "T"

    t1[39] = t2[39] = s1[39] = "T"
    s2[39] = "-"

    t1[59] = s1[59] = s2[59] = "G"
    t2[59] = "-"

    t1[79], t2[79] = "C", "T"
    s1[79], s2[79] = "T", "A"

    return "".join(t1), "".join(t2), "".join(s1), "".join(s2)


def make_toy_data(*, outdir: str | Path) -> Dict[str, object]:
    """Write a tiny aligned FASTA with known error counts for demos/tests.

    Returns
    -------
    dict
        Path to the alignment, the true prefix to use, and the expected counters.
    """
    outdir_p = ensure_outdir(outdir)
    t1, t2, s1, s2 = _toy_columns()

    aln_path = outdir_p / "toy_alignment.fa"
    _write_fasta(
        aln_path,
        [
            ("assembly_hap1 reconstructed", s1),
            (f"{TOY_TRUE_PREFIX}hapA simulated", t1),
            ("assembly_hap2 reconstructed", s2),
            (f"{TOY_TRUE_PREFIX}hapB simulated", t2),
        ],
    )

    summary: Dict[str, object] = {
        "alignment": str(aln_path),
        "true_prefix": TOY_TRUE_PREFIX,
        "expected": {
            "test_one": {"switches": 2, "false_snps": 1, "false_indels": 1, "bad_calls": 0},
            "test_two": {"switches": 0, "false_snps": 0, "false_indels": 0, "bad_calls": 1},
        },
        "outdir": str(outdir_p),
    }

    write_json(outdir_p / "toy_summary.json", summary)
    return summary
