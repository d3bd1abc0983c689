"""
Core module for the footprint pipeline.

Public API exports:
- Data structures (dataclasses)
- Abstract interfaces
- Configuration management
- Custom exceptions
"""

# Data structures
from .dataclasses import (
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
)

# Interfaces
from .interfaces import (
    BindingLookup,
    FootprintStrategy,
    CohortProcessor,
)

# Configuration
from .config import (
    load_config_from_yaml,
    create_default_config,
    save_config_to_yaml,
)

# Exceptions
from .exceptions import (
    FootprintPipelineError,
    ConfigurationError,
    TableLoadError,
    MissingGenotypeError,
    MissingBindingRecordError,
    MalformedRecordLineError,
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
]
