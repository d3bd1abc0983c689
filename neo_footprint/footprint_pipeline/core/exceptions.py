"""
Custom exceptions for the footprint pipeline.
"""


class FootprintPipelineError(Exception):
    """Base exception for all footprint pipeline errors."""
    pass


class ConfigurationError(FootprintPipelineError):
    """Raised when a required configuration value is absent or malformed."""
    pass


class TableLoadError(FootprintPipelineError):
    """Raised when an input table file is missing or malformed."""
    pass


class MissingGenotypeError(FootprintPipelineError):
    """Raised when a tumor barcode has no patient genotype."""
    pass


class MissingBindingRecordError(FootprintPipelineError):
    """
    Raised when a binding map has no prediction for a requested peptide.

    Because predictions are requested in one batch per allele, a single
    missing peptide invalidates the whole batch for that patient.
    """
    pass


class MalformedRecordLineError(FootprintPipelineError):
    """Raised when a persisted footprint line cannot be parsed."""
    pass
