"""
Cohort input tables.

PeptidePairTable: tumor barcode -> neo/self peptide pairs
    Tumor_Barcode  Hugo_Symbol  Peptide_Start  Peptide_End  Self_Peptide  Neo_Peptide

TumorGenotypeTable: tumor barcode -> patient -> HLA genotype
    tumor_patient_file:    Tumor_Barcode  Patient_ID
    patient_genotype_file: Patient_ID     Genotype (e.g. "A0101,A0201,B0702,B0801,C0701,C0702")

Both tables are read-only after loading.
"""

import logging
from pathlib import Path
from typing import Dict, FrozenSet, List, Sequence

import pandas as pd

from .core import (
    Genotype,
    MissingGenotypeError,
    PeptidePairRecord,
    TableLoadError,
)

logger = logging.getLogger(__name__)

TUMOR_PATIENT_COLUMNS = ('Tumor_Barcode', 'Patient_ID')
PATIENT_GENOTYPE_COLUMNS = ('Patient_ID', 'Genotype')


def read_table(path: Path, columns: Sequence[str]) -> pd.DataFrame:
    """
    Read a tab-delimited table as strings and check its columns.

    Raises:
        TableLoadError: If the file is missing, unreadable or lacks a column
    """
    path = Path(path)
    if not path.exists():
        raise TableLoadError(f"Table file not found: {path}")

    try:
        df = pd.read_csv(path, sep='\t', dtype=str, comment='#', keep_default_na=False)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise TableLoadError(f"Failed to read {path}: {e}")
    df = df.fillna('')

    missing = [column for column in columns if column not in df.columns]
    if missing:
        raise TableLoadError(f"{path} is missing columns: {missing}")

    return df


class PeptidePairTable:
    """Peptide pairs grouped by tumor barcode."""

    def __init__(self, records: Dict[str, List[PeptidePairRecord]]):
        self._records = {barcode: list(pairs) for barcode, pairs in records.items()}

    @classmethod
    def load(cls, path: Path) -> 'PeptidePairTable':
        """
        Load a peptide-pair file.

        Args:
            path: Tab-delimited file with the PeptidePairRecord columns

        Raises:
            TableLoadError: If the file is missing or a row is malformed
        """
        df = read_table(path, PeptidePairRecord.COLUMNS)

        records: Dict[str, List[PeptidePairRecord]] = {}
        columns = list(PeptidePairRecord.COLUMNS)
        for line_number, fields in enumerate(df[columns].itertuples(index=False, name=None), start=2):
            fields = tuple(value.strip() for value in fields)
            try:
                record = PeptidePairRecord.parse(fields)
            except ValueError as e:
                raise TableLoadError(f"{path}:{line_number}: invalid peptide pair: {e}")
            records.setdefault(record.tumor_barcode, []).append(record)

        table = cls(records)
        logger.info(f"Loaded {table.count_pairs()} peptide pairs for {len(table)} tumors from {path}")
        return table

    def view_barcodes(self) -> FrozenSet[str]:
        return frozenset(self._records)

    def lookup(self, barcode: str) -> List[PeptidePairRecord]:
        """Return the peptide pairs for a barcode (empty if absent)."""
        return list(self._records.get(barcode, []))

    def count_pairs(self) -> int:
        return sum(len(pairs) for pairs in self._records.values())

    def __len__(self) -> int:
        return len(self._records)


class TumorGenotypeTable:
    """Maps tumor barcodes to the HLA genotype of the patient they came from."""

    def __init__(self, tumor_patients: Dict[str, str], patient_genotypes: Dict[str, Genotype]):
        self._tumor_patients = dict(tumor_patients)
        self._patient_genotypes = dict(patient_genotypes)

    @classmethod
    def load(cls, tumor_patient_file: Path, patient_genotype_file: Path) -> 'TumorGenotypeTable':
        """
        Load the tumor-patient map and the patient genotypes.

        Raises:
            TableLoadError: If either file is missing or malformed
        """
        tumor_df = read_table(tumor_patient_file, TUMOR_PATIENT_COLUMNS)
        tumor_patients: Dict[str, str] = {}
        for barcode, patient in tumor_df[list(TUMOR_PATIENT_COLUMNS)].itertuples(index=False, name=None):
            barcode, patient = barcode.strip(), patient.strip()
            if not barcode or not patient:
                continue
            previous = tumor_patients.setdefault(barcode, patient)
            if previous != patient:
                raise TableLoadError(
                    f"{tumor_patient_file}: tumor {barcode} maps to both {previous} and {patient}"
                )

        genotype_df = read_table(patient_genotype_file, PATIENT_GENOTYPE_COLUMNS)
        patient_genotypes: Dict[str, Genotype] = {}
        for patient, text in genotype_df[list(PATIENT_GENOTYPE_COLUMNS)].itertuples(index=False, name=None):
            patient = patient.strip()
            if not patient:
                continue
            if not text.strip():
                logger.warning(f"{patient_genotype_file}: empty genotype for patient {patient}; skipping")
                continue
            if patient in patient_genotypes:
                raise TableLoadError(f"{patient_genotype_file}: duplicate genotype for patient {patient}")
            try:
                patient_genotypes[patient] = Genotype.parse(text)
            except ValueError as e:
                raise TableLoadError(f"{patient_genotype_file}: invalid genotype for {patient}: {e}")

        logger.info(
            f"Loaded {len(tumor_patients)} tumors and {len(patient_genotypes)} genotypes "
            f"from {tumor_patient_file} and {patient_genotype_file}"
        )
        return cls(tumor_patients, patient_genotypes)

    def patient_of(self, barcode: str) -> str:
        """
        Raises:
            MissingGenotypeError: If the barcode is not mapped to a patient
        """
        try:
            return self._tumor_patients[barcode]
        except KeyError:
            raise MissingGenotypeError(f"No patient mapped to tumor {barcode}") from None

    def require(self, barcode: str) -> Genotype:
        """
        Return the genotype of the patient a tumor came from.

        Raises:
            MissingGenotypeError: If the tumor or the patient genotype is unknown
        """
        patient = self.patient_of(barcode)
        try:
            return self._patient_genotypes[patient]
        except KeyError:
            raise MissingGenotypeError(f"No genotype for patient {patient} (tumor {barcode})") from None

    def __contains__(self, barcode: str) -> bool:
        patient = self._tumor_patients.get(barcode)
        return patient is not None and patient in self._patient_genotypes

    def __len__(self) -> int:
        return len(self._tumor_patients)
