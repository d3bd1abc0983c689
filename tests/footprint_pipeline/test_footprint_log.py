"""
Tests for footprint file I/O and reporting.
"""

import pytest

from neo_footprint.footprint_pipeline import (
    LOG_AFFINITY,
    FootprintRecord,
    MalformedRecordLineError,
    generate_footprint_report,
    load_footprint_records,
    save_footprint_records,
)


@pytest.fixture
def records(prediction_lookup, reference_pairs, a0101, a0201):
    return LOG_AFFINITY.compute_alleles(prediction_lookup, {a0101, a0201}, reference_pairs)


class TestSaveFootprintRecords:
    """Test writing footprint files."""

    def test_header_and_lines(self, records, temp_data_dir):
        path = temp_data_dir / "nested" / "footprint.tsv"
        count = save_footprint_records(records, path)

        lines = path.read_text(encoding='utf-8').split('\n')
        assert count == 4
        assert lines[0] == FootprintRecord.header()
        assert lines[1:5] == [r.format() for r in records]
        assert lines[5] == ""

    def test_overwrites_existing_file(self, records, temp_data_dir):
        path = temp_data_dir / "footprint.tsv"
        path.write_text("stale content\n" * 10, encoding='utf-8')

        save_footprint_records(records[:1], path)

        assert len(path.read_text(encoding='utf-8').splitlines()) == 2

    def test_empty_file_has_header(self, temp_data_dir):
        path = temp_data_dir / "footprint.tsv"
        assert save_footprint_records([], path) == 0
        assert path.read_text(encoding='utf-8') == FootprintRecord.header() + "\n"


class TestLoadFootprintRecords:
    """Test reading footprint files."""

    def test_load_saved_records(self, records, temp_data_dir):
        path = temp_data_dir / "footprint.tsv"
        save_footprint_records(records, path)

        loaded = load_footprint_records(path)

        assert [r.pair_record for r in loaded] == [r.pair_record for r in records]
        assert [r.patient_allele for r in loaded] == [r.patient_allele for r in records]
        for original, reread in zip(records, loaded):
            assert reread.footprint_index == pytest.approx(original.footprint_index, abs=5e-5)

    def test_wrong_header(self, temp_data_dir):
        path = temp_data_dir / "footprint.tsv"
        path.write_text("Tumor_Barcode\tHugo_Symbol\n", encoding='utf-8')
        with pytest.raises(MalformedRecordLineError, match="footprint.tsv:1"):
            load_footprint_records(path)

    def test_malformed_line_reports_position(self, records, temp_data_dir):
        path = temp_data_dir / "footprint.tsv"
        save_footprint_records(records, path)
        with open(path, 'a', encoding='utf-8') as f:
            f.write("Tumor\tGENE\t1\n")

        with pytest.raises(MalformedRecordLineError, match="footprint.tsv:6"):
            load_footprint_records(path)


class TestFootprintReport:
    """Test the summary report."""

    def test_report_counts(self, records):
        report = generate_footprint_report(records)

        assert "Allele Footprint Report" in report
        assert "Records: 4" in report
        assert "Tumors: 1" in report
        assert "Peptide pairs: 2" in report
        assert "Alleles: 2" in report
        assert "LOG_AFFINITY (4)" in report
        assert "Negative: 4" in report
        assert "Positive: 0" in report

    def test_empty_report(self):
        report = generate_footprint_report([])
        assert "Records: 0" in report
        assert "Footprint Index" not in report
