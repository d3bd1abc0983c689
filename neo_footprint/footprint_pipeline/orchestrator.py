"""
Cohort orchestrator for the footprint pipeline.

This module implements the driver that computes footprint indexes for a
whole patient cohort:
1. Load the peptide-pair and tumor-genotype tables
2. Sort tumor barcodes (reproducible order)
3. Compute footprints per barcode in parallel; a failing barcode
   contributes no records and does not stop the run
4. Concatenate and sort all records by a total order
5. Write the footprint file (and an optional JSON run summary)
"""

import json
import logging
import time
from dataclasses import dataclass, field, asdict
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Union

from joblib import Parallel, delayed
from tqdm import tqdm

from .core import (
    BindingLookup,
    CohortProcessor,
    FootprintConfig,
    FootprintRecord,
    load_config_from_yaml,
)
from .binding import PredictionFileLookup
from .footprint_log import save_footprint_records
from .tables import PeptidePairTable, TumorGenotypeTable

logger = logging.getLogger(__name__)


@dataclass
class PatientOutcome:
    """Result of processing one tumor barcode: records, or the failure cause."""
    barcode: str
    records: List[FootprintRecord] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def empty(self) -> bool:
        """True if the barcode succeeded but produced no records."""
        return not self.failed and not self.records


@dataclass
class FootprintResult:
    """Result of running the cohort footprint calculation."""
    success: bool
    footprint_type: str
    footprint_file: Path
    total_barcodes: int
    processed_barcodes: int
    total_records: int
    total_time_seconds: float
    failed_barcodes: Dict[str, str] = field(default_factory=dict)
    empty_barcodes: List[str] = field(default_factory=list)
    metadata: Dict = field(default_factory=dict)

    def to_dict(self) -> Dict:
        result = asdict(self)
        result['footprint_file'] = str(self.footprint_file)
        return result


class FootprintDriver(CohortProcessor):
    """
    Computes allele footprint index scores for a patient cohort.

    Usage:
        >>> config = load_config_from_yaml("footprint.yaml")
        >>> driver = FootprintDriver(config)
        >>> result = driver.run_full()
    """

    def __init__(
        self,
        config: FootprintConfig,
        lookup: Optional[BindingLookup] = None
    ):
        """
        Initialize driver.

        Args:
            config: Validated footprint configuration
            lookup: Binding prediction source (default: the configured
                prediction files)
        """
        self.config = config
        self.footprint_type = config.footprint_type
        self.strategy = config.footprint_type.strategy

        self._lookup = lookup

        self.peptide_pair_table: Optional[PeptidePairTable] = None
        self.tumor_genotype_table: Optional[TumorGenotypeTable] = None
        self.tumor_barcodes: List[str] = []
        self.footprint_records: List[FootprintRecord] = []

    def _init_lookup(self) -> BindingLookup:
        """Initialize binding lookup."""
        if self._lookup is None:
            self._lookup = PredictionFileLookup.from_config(self.config)
        return self._lookup

    def run(self) -> Dict:
        """Run the cohort calculation (interface method)."""
        return self.run_full().to_dict()

    def run_full(self) -> FootprintResult:
        """
        Run the cohort calculation and write the footprint file.

        Returns:
            FootprintResult with statistics

        Raises:
            TableLoadError: If an input table or prediction file cannot be loaded
            OSError: If the output cannot be written
        """
        start_time = time.time()

        self._load_tables()
        self._sort_barcodes()
        outcomes = self._process_barcodes()
        self._write_footprints()

        failed = {o.barcode: o.error for o in outcomes if o.failed}
        empty = [o.barcode for o in outcomes if o.empty]

        result = FootprintResult(
            success=True,
            footprint_type=self.footprint_type.name,
            footprint_file=self.config.footprint_file,
            total_barcodes=len(outcomes),
            processed_barcodes=len(outcomes) - len(failed),
            total_records=len(self.footprint_records),
            total_time_seconds=time.time() - start_time,
            failed_barcodes=failed,
            empty_barcodes=empty,
            metadata={
                'timestamp': datetime.now().isoformat(),
                'binding_method': self.strategy.binding_method.name,
            }
        )

        if self.config.summary_file:
            self._write_summary(result, self.config.summary_file)

        if failed:
            logger.warning(f"{len(failed)} of {len(outcomes)} tumors failed and were skipped")

        logger.info("DONE!")
        return result

    def _load_tables(self) -> None:
        self.peptide_pair_table = PeptidePairTable.load(self.config.peptide_pair_file)
        self.tumor_genotype_table = TumorGenotypeTable.load(
            self.config.tumor_patient_file,
            self.config.patient_genotype_file
        )

        # Prediction files are inputs too: a bad file aborts before any
        # parallel work instead of failing every barcode
        lookup = self._init_lookup()
        if isinstance(lookup, PredictionFileLookup):
            lookup.preload(self.strategy.binding_method)

    def _sort_barcodes(self) -> None:
        self.tumor_barcodes = sorted(self.peptide_pair_table.view_barcodes())

    def _process_barcodes(self) -> List[PatientOutcome]:
        results = Parallel(n_jobs=self.config.n_jobs, prefer="threads", return_as="generator")(
            delayed(self._process_barcode_safely)(barcode) for barcode in self.tumor_barcodes
        )
        if self.config.progress:
            results = tqdm(results, total=len(self.tumor_barcodes), desc="Processing tumors")

        # Every task has finished once the generator is exhausted
        outcomes: List[PatientOutcome] = list(results)

        logger.info("Concatenating footprint records...")
        records = []
        for outcome in outcomes:
            records.extend(outcome.records)

        logger.info("Sorting footprint records...")
        records.sort(key=FootprintRecord.sort_key)
        self.footprint_records = records

        return outcomes

    def process_barcode(self, barcode: str) -> List[FootprintRecord]:
        genotype = self.tumor_genotype_table.require(barcode)
        patient_alleles = genotype.view_unique_alleles()
        pairs = self.peptide_pair_table.lookup(barcode)

        return self.strategy.compute_alleles(self._init_lookup(), patient_alleles, pairs)

    def _process_barcode_safely(self, barcode: str) -> PatientOutcome:
        logger.info(f"Processing [{barcode}]...")

        try:
            records = self.process_barcode(barcode)
        except Exception as e:
            logger.warning(f"Skipping [{barcode}]: {type(e).__name__}: {e}")
            return PatientOutcome(barcode=barcode, error=f"{type(e).__name__}: {e}")

        if not records:
            logger.info(f"No footprint records for [{barcode}]")
        return PatientOutcome(barcode=barcode, records=records)

    def _write_footprints(self) -> None:
        logger.info(f"Writing [{self.config.footprint_file}]...")
        save_footprint_records(self.footprint_records, self.config.footprint_file)

    @staticmethod
    def _write_summary(result: FootprintResult, summary_path: Path) -> None:
        summary_path = Path(summary_path)
        summary_path.parent.mkdir(parents=True, exist_ok=True)
        with open(summary_path, 'w', encoding='utf-8') as f:
            json.dump(result.to_dict(), f, indent=2, default=str)
        logger.info(f"Saved run summary to {summary_path}")


def run_footprint(
    *config_paths: Union[str, Path],
    lookup: Optional[BindingLookup] = None
) -> FootprintResult:
    """
    Convenience function to run the driver from configuration files.

    Args:
        config_paths: One or more YAML configuration files (later override earlier)
        lookup: Optional binding prediction source

    Returns:
        FootprintResult
    """
    config = load_config_from_yaml(*config_paths)
    driver = FootprintDriver(config, lookup=lookup)
    return driver.run_full()
