"""
Tests for the FootprintRecord flat-file format.
"""

import pytest

from neo_footprint.footprint_pipeline import (
    Allele,
    BindRecord,
    FootprintRecord,
    FootprintType,
    MalformedRecordLineError,
    PeptidePairRecord,
)


def _record(barcode="Tumor", symbol="GENE", start=1, end=9, allele="A0201",
            footprint_type=FootprintType.LOG_AFFINITY, index=-1.528):
    pair = PeptidePairRecord.instance(barcode, symbol, start, end, "FLASPMHAV", "FQASPMHAV")
    return FootprintRecord.create(
        pair_record=pair,
        patient_allele=Allele.instance(allele),
        footprint_type=footprint_type,
        neo_bind_record=BindRecord("FQASPMHAV", 432.5787, 2.4),
        self_bind_record=BindRecord("FLASPMHAV", 150.0, 0.9),
        footprint_index=index,
    )


class TestFootprintRecordFormat:
    """Test formatting to one delimited line."""

    def test_header_has_thirteen_columns(self):
        columns = FootprintRecord.header().split("\t")
        assert len(columns) == FootprintRecord.FIELD_COUNT == 13
        assert columns[:6] == list(PeptidePairRecord.COLUMNS)
        assert columns[6:] == [
            "Patient_Allele", "Footprint_Type",
            "Neo_Binding_Qty", "Neo_Binding_Pct",
            "Self_Binding_Qty", "Self_Binding_Pct",
            "Footprint_Index",
        ]

    def test_format_precision(self):
        line = _record(index=-1.52834).format()
        assert line == (
            "Tumor\tGENE\t1\t9\tFLASPMHAV\tFQASPMHAV\t"
            "A0201\tLOG_AFFINITY\t432.58\t2.40\t150.00\t0.90\t-1.5283"
        )

    def test_no_line_terminator(self):
        assert not _record().format().endswith("\n")


class TestFootprintRecordParse:
    """Test parsing delimited lines."""

    def test_parse_formatted_record(self):
        original = _record(index=-1.52834)
        parsed = FootprintRecord.parse(original.format())

        assert parsed.pair_record == original.pair_record
        assert parsed.patient_allele == original.patient_allele
        assert parsed.footprint_type is FootprintType.LOG_AFFINITY
        assert parsed.neo_binding_qty == pytest.approx(432.58, abs=0.005)
        assert parsed.self_binding_pct == pytest.approx(0.9, abs=0.005)
        assert parsed.footprint_index == pytest.approx(-1.5283, abs=5e-5)

    def test_parse_tolerates_line_terminator(self):
        line = _record().format() + "\r\n"
        assert FootprintRecord.parse(line).pair_record.neo_peptide.sequence == "FQASPMHAV"

    def test_too_few_fields(self):
        with pytest.raises(MalformedRecordLineError, match="Expected 13 fields, found 12"):
            FootprintRecord.parse("\t".join(["x"] * 12))

    def test_too_many_fields(self):
        with pytest.raises(MalformedRecordLineError, match="found 14"):
            FootprintRecord.parse(_record().format() + "\textra")

    @pytest.mark.parametrize("position, value", [
        (2, "one"),            # Peptide_Start
        (5, "FQ1SPMHAV"),      # Neo_Peptide
        (6, "Z99"),            # Patient_Allele
        (7, "LOG_UNKNOWN"),    # Footprint_Type
        (8, "abc"),            # Neo_Binding_Qty
        (12, ""),              # Footprint_Index
    ])
    def test_unconvertible_field(self, position, value):
        fields = _record().format().split("\t")
        fields[position] = value
        with pytest.raises(MalformedRecordLineError):
            FootprintRecord.parse("\t".join(fields))


class TestFootprintRecordOrdering:
    """Test the total order used for the output file."""

    def test_sort_order(self):
        records = [
            _record(barcode="T2"),
            _record(barcode="T1", symbol="KRAS", allele="A0201"),
            _record(barcode="T1", symbol="KRAS", allele="A0101", footprint_type=FootprintType.LOG_STABILITY),
            _record(barcode="T1", symbol="KRAS", allele="A0101"),
            _record(barcode="T1", symbol="BRAF", start=20, end=28),
        ]
        ordered = sorted(records, key=FootprintRecord.sort_key)

        assert [(r.pair_record.tumor_barcode, r.pair_record.hugo_symbol,
                 r.patient_allele.key, r.footprint_type.name) for r in ordered] == [
            ("T1", "BRAF", "A0201", "LOG_AFFINITY"),
            ("T1", "KRAS", "A0101", "LOG_AFFINITY"),
            ("T1", "KRAS", "A0101", "LOG_STABILITY"),
            ("T1", "KRAS", "A0201", "LOG_AFFINITY"),
            ("T2", "GENE", "A0201", "LOG_AFFINITY"),
        ]

    def test_start_position_sorts_numerically(self):
        late = _record(start=10, end=18)
        early = _record(start=9, end=17)
        assert sorted([late, early], key=FootprintRecord.sort_key) == [early, late]
