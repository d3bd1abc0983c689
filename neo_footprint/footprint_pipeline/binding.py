"""
File-backed binding predictions.

Predictions from NetMHCpan (affinity) and NetMHCstabpan (stability) are
computed upstream and stored as tab-delimited files, one per method:

    Allele    Peptide      Strength    Percentile
    A0101     FLASPMHAV    12000.0     45.00

Strength is the IC50 concentration (nM) for affinity files and the
peptide-MHC half-life (hours) for stability files. Each file is read once,
on first use, and shared read-only by every worker thread afterwards.
"""

import logging
import threading
from pathlib import Path
from typing import Collection, Dict, Mapping, Optional

import pandas as pd

from .core import (
    Allele,
    BindingLookup,
    BindingMethod,
    BindRecord,
    BindRecordMap,
    ConfigurationError,
    FootprintConfig,
    Peptide,
    TableLoadError,
)

logger = logging.getLogger(__name__)

PREDICTION_COLUMNS = ('Allele', 'Peptide', 'Strength', 'Percentile')

# allele -> peptide sequence -> prediction
PredictionIndex = Dict[Allele, Dict[str, BindRecord]]


def load_prediction_file(path: Path) -> PredictionIndex:
    """
    Load a prediction file into a per-allele index.

    Args:
        path: Tab-delimited prediction file

    Returns:
        Dict mapping Allele -> {peptide sequence -> BindRecord}

    Raises:
        TableLoadError: If the file is missing or malformed
    """
    path = Path(path)
    if not path.exists():
        raise TableLoadError(f"Prediction file not found: {path}")

    try:
        df = pd.read_csv(path, sep='\t', dtype=str, comment='#')
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise TableLoadError(f"Failed to read prediction file {path}: {e}")

    missing = [column for column in PREDICTION_COLUMNS if column not in df.columns]
    if missing:
        raise TableLoadError(f"Prediction file {path} is missing columns: {missing}")

    df = df.dropna(subset=['Allele', 'Peptide'])
    for column in ('Strength', 'Percentile'):
        df[column] = pd.to_numeric(df[column], errors='coerce')
    bad_rows = df[df['Strength'].isna() | df['Percentile'].isna()]
    if len(bad_rows) > 0:
        raise TableLoadError(
            f"Prediction file {path} has {len(bad_rows)} rows with non-numeric values "
            f"(first at peptide {bad_rows['Peptide'].iloc[0]})"
        )

    df['Peptide'] = df['Peptide'].str.strip().str.upper()
    duplicates = df.duplicated(subset=['Allele', 'Peptide'], keep='last')
    if duplicates.any():
        logger.warning(f"{path.name}: {int(duplicates.sum())} duplicate predictions; keeping the last")
        df = df[~duplicates]

    index: PredictionIndex = {}
    alleles: Dict[str, Allele] = {}
    try:
        for row in df.itertuples(index=False):
            allele = alleles.get(row.Allele)
            if allele is None:
                allele = alleles[row.Allele] = Allele.instance(row.Allele)
            index.setdefault(allele, {})[row.Peptide] = BindRecord(
                peptide=row.Peptide,
                strength=float(row.Strength),
                percentile=float(row.Percentile),
            )
    except ValueError as e:
        raise TableLoadError(f"Invalid prediction in {path}: {e}")

    logger.info(f"Loaded {len(df)} predictions for {len(index)} alleles from {path}")
    return index


class PredictionFileLookup(BindingLookup):
    """
    BindingLookup backed by precomputed prediction files.

    Usage:
        >>> lookup = PredictionFileLookup({BindingMethod.NET_MHC_PAN: Path("affinity.tsv")})
        >>> bind_map = lookup.lookup(BindingMethod.NET_MHC_PAN, Allele.instance("A0201"), peptides)
    """

    def __init__(self, prediction_files: Mapping[BindingMethod, Path]):
        """
        Initialize lookup.

        Args:
            prediction_files: Prediction file for each available method
        """
        self.prediction_files = {method: Path(path) for method, path in prediction_files.items()}

        self._indexes: Dict[BindingMethod, PredictionIndex] = {}
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config: FootprintConfig) -> 'PredictionFileLookup':
        return cls(config.prediction_files())

    def preload(self, method: BindingMethod) -> None:
        """
        Load the prediction file for a method now rather than on first lookup.

        Raises:
            ConfigurationError: If no file is configured for the method
            TableLoadError: If the file cannot be loaded
        """
        self._index(method)

    def lookup(
        self,
        method: BindingMethod,
        allele: Allele,
        peptides: Collection[Peptide]
    ) -> BindRecordMap:
        predictions = self._index(method).get(allele, {})

        records = {}
        for peptide in peptides:
            record = predictions.get(peptide.sequence)
            if record is not None:
                records[peptide.sequence] = record

        if len(records) < len(peptides):
            logger.debug(
                f"{method.name}/{allele}: {len(peptides) - len(records)} "
                f"of {len(peptides)} peptides have no prediction"
            )

        return BindRecordMap(allele, method, records)

    def _index(self, method: BindingMethod) -> PredictionIndex:
        index: Optional[PredictionIndex] = self._indexes.get(method)
        if index is not None:
            return index

        # Exactly-once load; the cache is re-checked under the lock
        with self._lock:
            index = self._indexes.get(method)
            if index is None:
                path = self.prediction_files.get(method)
                if path is None:
                    raise ConfigurationError(
                        f"No {method.quantity} prediction file configured for {method.name}"
                    )
                index = self._indexes[method] = load_prediction_file(path)
            return index
