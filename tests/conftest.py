"""Pytest configuration and fixtures for neo_footprint tests."""
import pytest
from pathlib import Path
import tempfile
from typing import List

import yaml

from neo_footprint.footprint_pipeline import (
    Allele,
    BindingLookup,
    BindingMethod,
    BindRecord,
    BindRecordMap,
    PeptidePairRecord,
    PredictionFileLookup,
)

# Test directories (isolated from main project)
TEST_DIR = Path(__file__).parent
TEST_DATA_DIR = TEST_DIR / "data"


class CountingLookup(BindingLookup):
    """Wraps another lookup and records every batch request."""

    def __init__(self, delegate: BindingLookup):
        self.delegate = delegate
        self.calls: List[tuple] = []

    def lookup(self, method, allele, peptides):
        self.calls.append((method, allele, tuple(p.sequence for p in peptides)))
        return self.delegate.lookup(method, allele, peptides)


class StaticLookup(BindingLookup):
    """In-memory lookup: {(method, allele key): {sequence: (strength, percentile)}}."""

    def __init__(self, predictions):
        self.predictions = predictions

    def lookup(self, method, allele, peptides):
        known = self.predictions.get((method, allele.key), {})
        records = {}
        for peptide in peptides:
            if peptide.sequence in known:
                strength, percentile = known[peptide.sequence]
                records[peptide.sequence] = BindRecord(peptide.sequence, strength, percentile)
        return BindRecordMap(allele, method, records)


@pytest.fixture
def test_data_dir():
    """Provide path to test data directory."""
    return TEST_DATA_DIR


@pytest.fixture
def temp_data_dir():
    """Create a temporary data directory for a single test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def prediction_lookup():
    """Lookup over the affinity and stability fixture files."""
    return PredictionFileLookup({
        BindingMethod.NET_MHC_PAN: TEST_DATA_DIR / "affinity.tsv",
        BindingMethod.NET_MHC_STAB_PAN: TEST_DATA_DIR / "stability.tsv",
    })


@pytest.fixture
def counting_lookup(prediction_lookup):
    """Prediction-file lookup that records its calls."""
    return CountingLookup(prediction_lookup)


@pytest.fixture
def static_lookup_factory():
    """Build an in-memory lookup from a predictions dict."""
    return StaticLookup


@pytest.fixture
def reference_pairs():
    """Two peptide pairs with known footprint values for A0101 and A0201."""
    return [
        PeptidePairRecord.instance("Tumor", "GENE", 1, 9, "FLASPMHAV", "FQASPMHAV"),
        PeptidePairRecord.instance("Tumor", "GENE", 1, 9, "FTDSPMHAV", "FADSPMHAL"),
    ]


@pytest.fixture
def a0101():
    return Allele.instance("A0101")


@pytest.fixture
def a0201():
    return Allele.instance("A0201")


@pytest.fixture
def write_config(temp_data_dir):
    """
    Write a YAML config over the fixture tables.

    Returns a factory: write_config(footprint_type, **overrides) -> config path.
    Output files go to the temporary directory.
    """
    def _write(footprint_type="LOG_AFFINITY", name="footprint.yaml", **overrides):
        config = {
            'footprint': {
                'footprint_file': str(temp_data_dir / "out" / "footprint.tsv"),
                'footprint_type': footprint_type,
            },
            'inputs': {
                'peptide_pair_file': str(TEST_DATA_DIR / "peptide_pairs.tsv"),
                'tumor_patient_file': str(TEST_DATA_DIR / "tumor_patient.tsv"),
                'patient_genotype_file': str(TEST_DATA_DIR / "patient_genotype.tsv"),
            },
            'binding': {
                'affinity_file': str(TEST_DATA_DIR / "affinity.tsv"),
                'stability_file': str(TEST_DATA_DIR / "stability.tsv"),
            },
            'performance': {
                'n_jobs': 1,
            },
        }
        for key, value in overrides.items():
            section, field_name = key.split('__')
            config.setdefault(section, {})[field_name] = value

        config_path = temp_data_dir / name
        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(config, f)
        return config_path

    return _write
