"""
Allele footprint index pipeline.

This package computes, for every patient in a tumor cohort, how differently
each of the patient's HLA alleles is predicted to bind a neo-peptide
versus its self-peptide counterpart.

Quick Start:
    >>> from neo_footprint.footprint_pipeline import load_config_from_yaml, FootprintDriver
    >>> config = load_config_from_yaml("footprint.yaml")
    >>> result = FootprintDriver(config).run_full()

Public API:
    - Core data structures and interfaces (from core submodule)
    - Pipeline implementations (from top-level modules)
"""

# Re-export core API
from .core import (
    # Data structures
    DELIM,
    Allele,
    Peptide,
    NeoPeptide,
    SelfPeptide,
    PeptidePair,
    PeptidePairRecord,
    BindingMethod,
    BindRecord,
    BindRecordMap,
    FootprintType,
    FootprintRecord,
    Genotype,
    FootprintConfig,

    # Interfaces
    BindingLookup,
    FootprintStrategy,
    CohortProcessor,

    # Configuration
    load_config_from_yaml,
    create_default_config,
    save_config_to_yaml,

    # Exceptions
    FootprintPipelineError,
    ConfigurationError,
    TableLoadError,
    MissingGenotypeError,
    MissingBindingRecordError,
    MalformedRecordLineError,
)

# Implementation modules
from .strategy import (
    LogRatioIndex,
    LogAffinityIndex,
    LogStabilityIndex,
    LOG_AFFINITY,
    LOG_STABILITY,
    get_strategy,
    distinct_peptides,
)
from .binding import PredictionFileLookup, load_prediction_file
from .tables import PeptidePairTable, TumorGenotypeTable
from .footprint_log import (
    save_footprint_records,
    load_footprint_records,
    generate_footprint_report,
)
from .orchestrator import (
    FootprintDriver,
    FootprintResult,
    PatientOutcome,
    run_footprint,
)

__all__ = [
    # Data structures
    'DELIM',
    'Allele',
    'Peptide',
    'NeoPeptide',
    'SelfPeptide',
    'PeptidePair',
    'PeptidePairRecord',
    'BindingMethod',
    'BindRecord',
    'BindRecordMap',
    'FootprintType',
    'FootprintRecord',
    'Genotype',
    'FootprintConfig',

    # Interfaces
    'BindingLookup',
    'FootprintStrategy',
    'CohortProcessor',

    # Configuration
    'load_config_from_yaml',
    'create_default_config',
    'save_config_to_yaml',

    # Exceptions
    'FootprintPipelineError',
    'ConfigurationError',
    'TableLoadError',
    'MissingGenotypeError',
    'MissingBindingRecordError',
    'MalformedRecordLineError',

    # Strategies
    'LogRatioIndex',
    'LogAffinityIndex',
    'LogStabilityIndex',
    'LOG_AFFINITY',
    'LOG_STABILITY',
    'get_strategy',
    'distinct_peptides',

    # Binding predictions
    'PredictionFileLookup',
    'load_prediction_file',

    # Tables
    'PeptidePairTable',
    'TumorGenotypeTable',

    # Footprint file I/O
    'save_footprint_records',
    'load_footprint_records',
    'generate_footprint_report',

    # Orchestrator
    'FootprintDriver',
    'FootprintResult',
    'PatientOutcome',
    'run_footprint',
]
