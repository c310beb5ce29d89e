from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Tuple

import pysam

from .models import AlignedHaplotypes
from .validation import AlignmentFormatError, AlignmentReadError

logger = logging.getLogger(__name__)


def _full_header(record: pysam.FastxRecord) -> str:
    """Rebuild the header text after '>' from pysam's name/comment split.

    pysam drops the whitespace character that ends the name, so it is read
    back as one space; a tab there cannot be matched by a prefix containing a tab.
    """
    name = record.name or ""
    comment = record.comment
    if comment:
        return f"{name} {comment}"
    return name


def is_true_header(header: str, true_prefix: str) -> bool:
    """A record is a true haplotype if the prefix occurs anywhere in its header."""
    return true_prefix in header


def load_haplotype_alignment(path: str | Path, true_prefix: str) -> AlignedHaplotypes:
    """Read an aligned FASTA and split it into the true and test haplotype pairs.

    The first two records whose header contains ``true_prefix`` are the true
    haplotypes, the first two other records are the test haplotypes; both in
    order of appearance. Any further records are ignored.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    AlignmentReadError
        If reading fails part way through the file.
    AlignmentFormatError
        If fewer than two true or two test records are present.
    """
    if not true_prefix:
        raise ValueError("true_prefix must be a non-empty string")

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Alignment file not found: {p}")

    true_records: List[Tuple[str, str]] = []
    test_records: List[Tuple[str, str]] = []
    ignored = 0

    logger.info("Reading alignment: %s", p)
    try:
        with pysam.FastxFile(str(p)) as fh:
            for rec in fh:
                header = _full_header(rec)
                seq = rec.sequence or ""
                bucket = true_records if is_true_header(header, true_prefix) else test_records
                if len(bucket) < 2:
                    bucket.append((header, seq))
                else:
                    ignored += 1
                    logger.warning("Ignoring extra alignment record: %s", header)
    except (OSError, ValueError) as e:
        # pysam reports truncated or corrupt streams as ValueError.
        raise AlignmentReadError(f"An error occurred while reading {p}: {e}") from e

    if len(true_records) < 2:
        raise AlignmentFormatError(
            f"Expected 2 true haplotype records with headers containing '{true_prefix}', "
            f"found {len(true_records)}."
        )
    if len(test_records) < 2:
        raise AlignmentFormatError(
            f"Expected 2 test haplotype records (headers without '{true_prefix}'), "
            f"found {len(test_records)}."
        )

    logger.info(
        "True haplotypes: %s, %s; test haplotypes: %s, %s (%d ignored)",
        true_records[0][0],
        true_records[1][0],
        test_records[0][0],
        test_records[1][0],
        ignored,
    )

    return AlignedHaplotypes(
        true_one_header=true_records[0][0],
        true_two_header=true_records[1][0],
        test_one_header=test_records[0][0],
        test_two_header=test_records[1][0],
        true_one=true_records[0][1],
        true_two=true_records[1][1],
        test_one=test_records[0][1],
        test_two=test_records[1][1],
    )
