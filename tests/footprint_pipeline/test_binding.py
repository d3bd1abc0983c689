"""
Tests for file-backed binding predictions.
"""

import threading

import pytest

from neo_footprint.footprint_pipeline import (
    Allele,
    BindingMethod,
    ConfigurationError,
    NeoPeptide,
    PredictionFileLookup,
    SelfPeptide,
    TableLoadError,
    load_prediction_file,
)


def _write(path, text):
    path.write_text(text, encoding='utf-8')
    return path


class TestLoadPredictionFile:
    """Test reading prediction files."""

    def test_load_fixture(self, test_data_dir):
        index = load_prediction_file(test_data_dir / "affinity.tsv")

        # Full allele names are normalized to short keys
        assert set(index) == {Allele("A0101"), Allele("A0201")}
        record = index[Allele("A0201")]["FQASPMHAV"]
        assert record.strength == pytest.approx(432.5787)
        assert record.percentile == pytest.approx(2.4)

    def test_missing_file(self, temp_data_dir):
        with pytest.raises(TableLoadError, match="not found"):
            load_prediction_file(temp_data_dir / "absent.tsv")

    def test_missing_column(self, temp_data_dir):
        path = _write(temp_data_dir / "bad.tsv", "Allele\tPeptide\tStrength\nA0101\tFLASPMHAV\t1.0\n")
        with pytest.raises(TableLoadError, match="Percentile"):
            load_prediction_file(path)

    def test_non_numeric_strength(self, temp_data_dir):
        path = _write(
            temp_data_dir / "bad.tsv",
            "Allele\tPeptide\tStrength\tPercentile\nA0101\tFLASPMHAV\thigh\t1.0\n"
        )
        with pytest.raises(TableLoadError, match="non-numeric"):
            load_prediction_file(path)

    def test_invalid_allele(self, temp_data_dir):
        path = _write(
            temp_data_dir / "bad.tsv",
            "Allele\tPeptide\tStrength\tPercentile\nnonsense\tFLASPMHAV\t1.0\t1.0\n"
        )
        with pytest.raises(TableLoadError, match="Invalid prediction"):
            load_prediction_file(path)

    def test_duplicates_keep_last(self, temp_data_dir):
        path = _write(
            temp_data_dir / "dup.tsv",
            "Allele\tPeptide\tStrength\tPercentile\n"
            "A0101\tFLASPMHAV\t1.0\t1.0\n"
            "A0101\tflaspmhav\t2.0\t3.0\n"
        )
        index = load_prediction_file(path)
        assert index[Allele("A0101")]["FLASPMHAV"].strength == 2.0


class TestPredictionFileLookup:
    """Test the BindingLookup over prediction files."""

    def test_lookup_returns_requested_peptides(self, prediction_lookup):
        bind_map = prediction_lookup.lookup(
            BindingMethod.NET_MHC_STAB_PAN,
            Allele("A0101"),
            [NeoPeptide("FQASPMHAV"), SelfPeptide("FLASPMHAV")]
        )

        assert bind_map.allele == Allele("A0101")
        assert bind_map.method is BindingMethod.NET_MHC_STAB_PAN
        assert set(bind_map) == {"FQASPMHAV", "FLASPMHAV"}
        assert bind_map.require("FQASPMHAV").strength == pytest.approx(0.8781)

    def test_unknown_peptide_is_omitted(self, prediction_lookup):
        bind_map = prediction_lookup.lookup(
            BindingMethod.NET_MHC_PAN, Allele("A0101"), [NeoPeptide("KKKKKKKKK")]
        )
        assert len(bind_map) == 0

    def test_unknown_allele_is_empty(self, prediction_lookup):
        bind_map = prediction_lookup.lookup(
            BindingMethod.NET_MHC_PAN, Allele("C0702"), [NeoPeptide("FQASPMHAV")]
        )
        assert len(bind_map) == 0

    def test_method_without_file(self, test_data_dir):
        lookup = PredictionFileLookup({BindingMethod.NET_MHC_PAN: test_data_dir / "affinity.tsv"})
        with pytest.raises(ConfigurationError, match="stability"):
            lookup.preload(BindingMethod.NET_MHC_STAB_PAN)

    def test_file_loaded_once(self, test_data_dir, monkeypatch):
        import neo_footprint.footprint_pipeline.binding as binding

        loads = []
        original = binding.load_prediction_file

        def counting_load(path):
            loads.append(path)
            return original(path)

        monkeypatch.setattr(binding, "load_prediction_file", counting_load)
        lookup = PredictionFileLookup({BindingMethod.NET_MHC_PAN: test_data_dir / "affinity.tsv"})

        threads = [
            threading.Thread(
                target=lookup.lookup,
                args=(BindingMethod.NET_MHC_PAN, Allele("A0101"), [NeoPeptide("FQASPMHAV")])
            )
            for _ in range(8)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(loads) == 1

    def test_loaded_index_is_read_without_lock(self, test_data_dir):
        lookup = PredictionFileLookup({BindingMethod.NET_MHC_PAN: test_data_dir / "affinity.tsv"})
        lookup.preload(BindingMethod.NET_MHC_PAN)
        lookup._lock = None

        bind_map = lookup.lookup(BindingMethod.NET_MHC_PAN, Allele("A0101"), [NeoPeptide("FQASPMHAV")])

        assert len(bind_map) == 1
