"""
Neo-peptide Footprint Index

Scores how differently a patient's HLA alleles are predicted to bind
tumor neo-peptides versus their wild-type self-peptides, for a whole
tumor cohort.
"""

__version__ = "0.1.0"

from .footprint_pipeline import (
    FootprintDriver,
    FootprintRecord,
    FootprintType,
    load_config_from_yaml,
    load_footprint_records,
    run_footprint,
)

__all__ = [
    "FootprintDriver",
    "FootprintRecord",
    "FootprintType",
    "load_config_from_yaml",
    "load_footprint_records",
    "run_footprint",
]
