"""
Abstract base classes defining interfaces for pipeline components.

This enables:
1. Dependency injection for testing (e.g., in-memory binding lookups)
2. Easy swapping of implementations (e.g., live predictors vs. cached files)
3. Clear separation of concerns
"""

from abc import ABC, abstractmethod
from typing import Collection, Dict, List, Sequence

from .dataclasses import (
    Allele,
    BindingMethod,
    BindRecord,
    BindRecordMap,
    FootprintRecord,
    FootprintType,
    Peptide,
    PeptidePairRecord,
)


class BindingLookup(ABC):
    """
    Interface for batched binding predictions.

    Implementations:
    - PredictionFileLookup: Reads precomputed predictions from TSV files

    A lookup may be expensive (external predictor), so callers request
    every peptide they need for an allele in a single call.
    """

    @abstractmethod
    def lookup(
        self,
        method: BindingMethod,
        allele: Allele,
        peptides: Collection[Peptide]
    ) -> BindRecordMap:
        """
        Fetch binding predictions for a batch of peptides.

        Args:
            method: Predictor to consult (affinity or stability)
            allele: HLA allele presenting the peptides
            peptides: Distinct peptides to predict

        Returns:
            BindRecordMap with an entry for every predicted peptide; peptides
            without a prediction are absent (callers use require())

        Raises:
            ConfigurationError: If the predictor is not available
        """
        pass


class FootprintStrategy(ABC):
    """
    Interface for footprint index calculation.

    Implementations:
    - LogAffinityIndex: log2(self IC50 / neo IC50)
    - LogStabilityIndex: log2(neo half-life / self half-life)
    """

    @property
    @abstractmethod
    def footprint_type(self) -> FootprintType:
        """The enumerated type produced by this strategy."""
        pass

    @property
    @abstractmethod
    def binding_method(self) -> BindingMethod:
        """The predictor this strategy requests bindings from."""
        pass

    @abstractmethod
    def compute_index(self, neo_record: BindRecord, self_record: BindRecord) -> float:
        """
        Combine neo and self binding predictions into a scalar index.

        Args:
            neo_record: Neo-peptide prediction
            self_record: Self-peptide prediction

        Returns:
            Signed base-2 log ratio
        """
        pass

    @abstractmethod
    def compute(
        self,
        lookup: BindingLookup,
        allele: Allele,
        pairs: Sequence[PeptidePairRecord]
    ) -> List[FootprintRecord]:
        """
        Compute footprint records for one allele over many peptide pairs.

        Args:
            lookup: Source of binding predictions
            allele: Patient HLA allele
            pairs: Peptide pairs to score

        Returns:
            One FootprintRecord per pair (no ordering guarantee)

        Raises:
            MissingBindingRecordError: If a requested peptide has no prediction
        """
        pass

    @abstractmethod
    def compute_alleles(
        self,
        lookup: BindingLookup,
        alleles: Collection[Allele],
        pairs: Sequence[PeptidePairRecord]
    ) -> List[FootprintRecord]:
        """
        Compute footprint records for several alleles over the same pairs.

        Args:
            lookup: Source of binding predictions
            alleles: Unique patient HLA alleles
            pairs: Peptide pairs to score

        Returns:
            Concatenated per-allele results (no cross-allele deduplication)

        Raises:
            MissingBindingRecordError: If a requested peptide has no prediction
        """
        pass


class CohortProcessor(ABC):
    """
    Interface for whole-cohort orchestration.

    Implementations:
    - FootprintDriver: Parallel per-patient fan-out with sorted fan-in
    """

    @abstractmethod
    def run(self) -> Dict:
        """
        Compute and write footprint records for every patient in the cohort.

        Returns:
            Summary dictionary with statistics

        Raises:
            TableLoadError: If an input table cannot be loaded
            OSError: If the footprint file cannot be written
        """
        pass

    @abstractmethod
    def process_barcode(self, barcode: str) -> List[FootprintRecord]:
        """
        Compute footprint records for a single tumor barcode.

        Args:
            barcode: Tumor barcode present in the peptide-pair table

        Returns:
            Footprint records for every allele and peptide pair of the patient

        Raises:
            MissingGenotypeError: If the patient has no genotype
            MissingBindingRecordError: If a peptide has no prediction
        """
        pass
