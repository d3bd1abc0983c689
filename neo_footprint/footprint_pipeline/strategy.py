"""
Footprint index strategies.

Each FootprintType is bound to exactly one strategy singleton:

    LOG_AFFINITY  -> LogAffinityIndex  (NetMHCpan IC50 affinities)
    LOG_STABILITY -> LogStabilityIndex (NetMHCstabpan half-lives)

A strategy requests binding predictions once per allele for every distinct
peptide in the patient's pair list, then scores each pair from that batch.
"""

import logging
from typing import Collection, Dict, Iterable, List, Sequence

import numpy as np

from .core import (
    Allele,
    BindingLookup,
    BindingMethod,
    BindRecord,
    FootprintRecord,
    FootprintStrategy,
    FootprintType,
    Peptide,
    PeptidePairRecord,
)

logger = logging.getLogger(__name__)


def distinct_peptides(pairs: Iterable[PeptidePairRecord]) -> List[Peptide]:
    """Return every distinct neo and self peptide (first-seen order)."""
    peptides: Dict[str, Peptide] = {}
    for pair in pairs:
        for peptide in pair.peptides():
            peptides.setdefault(peptide.sequence, peptide)
    return list(peptides.values())


class LogRatioIndex(FootprintStrategy):
    """
    Shared batching logic for log-ratio footprint indexes.

    Subclasses define the footprint type, the binding method and the ratio
    orientation in compute_index().
    """

    def compute(
        self,
        lookup: BindingLookup,
        allele: Allele,
        pairs: Sequence[PeptidePairRecord]
    ) -> List[FootprintRecord]:
        if not pairs:
            return []

        peptides = distinct_peptides(pairs)
        bind_map = lookup.lookup(self.binding_method, allele, peptides)

        records = []
        for pair in pairs:
            neo_record = bind_map.require(pair.neo_peptide)
            self_record = bind_map.require(pair.self_peptide)

            index = self.compute_index(neo_record, self_record)
            if not np.isfinite(index):
                logger.warning(
                    f"{self.footprint_type.name}: non-finite index {index} for {allele} "
                    f"{pair.tumor_barcode}/{pair.hugo_symbol} "
                    f"(neo {neo_record.strength}, self {self_record.strength})"
                )

            records.append(FootprintRecord.create(
                pair_record=pair,
                patient_allele=allele,
                footprint_type=self.footprint_type,
                neo_bind_record=neo_record,
                self_bind_record=self_record,
                footprint_index=index,
            ))

        logger.debug(f"{self.footprint_type.name}: {len(records)} records for {allele}")
        return records

    def compute_alleles(
        self,
        lookup: BindingLookup,
        alleles: Collection[Allele],
        pairs: Sequence[PeptidePairRecord]
    ) -> List[FootprintRecord]:
        """
        Compute footprint records for every allele (no cross-allele dedup).

        Returns:
            Concatenated per-allele results, alleles in sorted order
        """
        records = []
        for allele in sorted(alleles):
            records.extend(self.compute(lookup, allele, pairs))
        return records

    @staticmethod
    def _log2_ratio(numerator: float, denominator: float) -> float:
        # A zero or negative quantity yields +/-inf or nan for that pair only
        with np.errstate(divide='ignore', invalid='ignore'):
            return float(np.log2(np.float64(numerator) / np.float64(denominator)))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class LogAffinityIndex(LogRatioIndex):
    """
    log2(a_SELF / a_NEO) with affinities expressed as IC50 concentrations.

    A lower IC50 means stronger binding, so the self-peptide affinity is in
    the numerator (the inverse of the stability orientation).
    """

    @property
    def footprint_type(self) -> FootprintType:
        return FootprintType.LOG_AFFINITY

    @property
    def binding_method(self) -> BindingMethod:
        return BindingMethod.NET_MHC_PAN

    def compute_index(self, neo_record: BindRecord, self_record: BindRecord) -> float:
        return self._log2_ratio(self_record.strength, neo_record.strength)


class LogStabilityIndex(LogRatioIndex):
    """log2(h_NEO / h_SELF) with stabilities expressed as complex half-lives."""

    @property
    def footprint_type(self) -> FootprintType:
        return FootprintType.LOG_STABILITY

    @property
    def binding_method(self) -> BindingMethod:
        return BindingMethod.NET_MHC_STAB_PAN

    def compute_index(self, neo_record: BindRecord, self_record: BindRecord) -> float:
        return self._log2_ratio(neo_record.strength, self_record.strength)


LOG_AFFINITY = LogAffinityIndex()
LOG_STABILITY = LogStabilityIndex()

_STRATEGIES = {
    FootprintType.LOG_AFFINITY: LOG_AFFINITY,
    FootprintType.LOG_STABILITY: LOG_STABILITY,
}


def get_strategy(footprint_type: FootprintType) -> LogRatioIndex:
    """Return the singleton strategy for a footprint type."""
    return _STRATEGIES[footprint_type]
