"""
Footprint file I/O for the footprint pipeline.

This module provides:
1. save_footprint_records - Header + one tab-delimited line per record
2. load_footprint_records - Strict reader (malformed lines are errors)
3. generate_footprint_report - Human-readable summary

Output format (tab-delimited, UTF-8):
    Tumor_Barcode  Hugo_Symbol  Peptide_Start  Peptide_End  Self_Peptide  Neo_Peptide
    Patient_Allele  Footprint_Type  Neo_Binding_Qty  Neo_Binding_Pct
    Self_Binding_Qty  Self_Binding_Pct  Footprint_Index
"""

import logging
from collections import Counter
from pathlib import Path
from typing import Iterable, List

import numpy as np

from .core import FootprintRecord, MalformedRecordLineError

logger = logging.getLogger(__name__)


def save_footprint_records(records: Iterable[FootprintRecord], output_path: Path) -> int:
    """
    Write footprint records to a flat file, replacing any existing file.

    Records are written in the order given; callers sort first.

    Args:
        records: Footprint records to write
        output_path: Output file path

    Returns:
        Number of records written
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    count = 0
    with open(output_path, 'w', encoding='utf-8', newline='\n') as f:
        f.write(FootprintRecord.header())
        f.write('\n')
        for record in records:
            f.write(record.format())
            f.write('\n')
            count += 1

    logger.info(f"Saved {count} footprint records to {output_path}")
    return count


def load_footprint_records(input_path: Path) -> List[FootprintRecord]:
    """
    Read footprint records written by save_footprint_records().

    Args:
        input_path: Footprint file path

    Returns:
        Records in file order

    Raises:
        MalformedRecordLineError: If the header is wrong or any line fails
            to parse (nothing is skipped)
    """
    input_path = Path(input_path)
    records = []

    with open(input_path, 'r', encoding='utf-8') as f:
        header = f.readline().rstrip('\r\n')
        if header != FootprintRecord.header():
            raise MalformedRecordLineError(f"{input_path}:1: unexpected header {header!r}")

        for line_number, line in enumerate(f, start=2):
            try:
                records.append(FootprintRecord.parse(line))
            except MalformedRecordLineError as e:
                raise MalformedRecordLineError(f"{input_path}:{line_number}: {e}") from e

    logger.info(f"Loaded {len(records)} footprint records from {input_path}")
    return records


def generate_footprint_report(records: List[FootprintRecord]) -> str:
    """
    Generate a human-readable summary report.

    Args:
        records: Footprint records (any order)

    Returns:
        Formatted report string
    """
    lines = []
    lines.append("=" * 70)
    lines.append("Allele Footprint Report")
    lines.append("=" * 70)

    lines.append(f"\nRecords: {len(records)}")
    if not records:
        lines.append("=" * 70)
        return '\n'.join(lines)

    tumors = {r.pair_record.tumor_barcode for r in records}
    pairs = {r.pair_record for r in records}
    alleles = Counter(r.patient_allele.key for r in records)
    types = Counter(r.footprint_type.name for r in records)

    lines.append(f"  Tumors: {len(tumors)}")
    lines.append(f"  Peptide pairs: {len(pairs)}")
    lines.append(f"  Alleles: {len(alleles)}")
    lines.append(f"  Footprint types: {', '.join(f'{name} ({n})' for name, n in sorted(types.items()))}")

    index = np.array([r.footprint_index for r in records], dtype=float)
    finite = index[np.isfinite(index)]

    lines.append(f"\nFootprint Index:")
    if finite.size:
        lines.append(f"  Mean: {finite.mean():.4f}")
        lines.append(f"  Median: {np.median(finite):.4f}")
        lines.append(f"  Range: {finite.min():.4f} - {finite.max():.4f}")
    lines.append(f"  Positive: {int((index > 0).sum())}")
    lines.append(f"  Negative: {int((index < 0).sum())}")
    lines.append(f"  Zero: {int((index == 0).sum())}")

    lines.append(f"\nMost frequent alleles:")
    for allele, n in sorted(alleles.items(), key=lambda item: (-item[1], item[0]))[:5]:
        lines.append(f"  {allele}: {n}")

    lines.append("=" * 70)

    return '\n'.join(lines)
