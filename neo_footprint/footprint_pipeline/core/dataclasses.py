"""
Core data structures for the footprint pipeline.

These immutable dataclasses represent the values that flow through a
cohort run:
1. Allele / Genotype - Patient HLA alleles
2. Peptide / PeptidePair / PeptidePairRecord - Neo/self peptide targets
3. BindRecord / BindRecordMap - Batched binding predictions for one allele
4. FootprintRecord - One computed footprint index (the output unit)
5. FootprintConfig - Resolved process configuration
"""

import re
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import ClassVar, Dict, FrozenSet, Iterator, List, Optional, Sequence, Tuple, Union

from .exceptions import MalformedRecordLineError, MissingBindingRecordError

# Field delimiter for all flat files written by the pipeline
DELIM = '\t'

AMINO_ACIDS = frozenset('ACDEFGHIKLMNPQRSTVWY')

_ALLELE_PATTERN = re.compile(
    r'^(?:HLA-)?([A-Z]+\d?)\*?(\d{2,3}):?(\d{2,3})(?::\d+)*[A-Z]?$'
)


@dataclass(frozen=True, order=True)
class Allele:
    """
    One HLA allele, identified by its short key (e.g., "A0101").

    Use Allele.instance() to build from any common nomenclature:
    "HLA-A*01:01", "A*01:01", "A01:01" and "A0101" are the same allele.
    """
    key: str

    @classmethod
    def instance(cls, name: str) -> 'Allele':
        """
        Parse an allele name into its canonical short-key form.

        Raises:
            ValueError: If the name is not a recognizable HLA allele
        """
        match = _ALLELE_PATTERN.match(name.strip().upper())
        if match is None:
            raise ValueError(f"Invalid HLA allele: '{name}'")
        gene, group, protein = match.groups()
        return cls(f"{gene}{group}{protein}")

    def short_key(self) -> str:
        return self.key

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True, order=True)
class Peptide:
    """A short amino-acid sequence (one-letter codes, upper case)."""
    sequence: str

    def __post_init__(self):
        """Normalize case and reject non-standard residues."""
        sequence = self.sequence.strip().upper()
        if not sequence:
            raise ValueError("Peptide sequence must not be empty")
        invalid = set(sequence) - AMINO_ACIDS
        if invalid:
            raise ValueError(
                f"Invalid residues {sorted(invalid)} in peptide '{self.sequence}'"
            )
        object.__setattr__(self, 'sequence', sequence)

    def __len__(self) -> int:
        return len(self.sequence)

    def __str__(self) -> str:
        return self.sequence


@dataclass(frozen=True, order=True)
class NeoPeptide(Peptide):
    """Tumor-derived (mutated) peptide."""


@dataclass(frozen=True, order=True)
class SelfPeptide(Peptide):
    """Wild-type (germline) peptide."""


@dataclass(frozen=True)
class PeptidePair:
    """Associates exactly one self-peptide with exactly one neo-peptide."""
    self_peptide: SelfPeptide
    neo_peptide: NeoPeptide

    def peptides(self) -> Tuple[Peptide, Peptide]:
        """Return (neo, self) peptides."""
        return self.neo_peptide, self.self_peptide


@dataclass(frozen=True)
class PeptidePairRecord(PeptidePair):
    """
    A peptide pair with cohort provenance.

    Flat-file columns (in order):
        Tumor_Barcode, Hugo_Symbol, Peptide_Start, Peptide_End,
        Self_Peptide, Neo_Peptide
    """
    tumor_barcode: str
    hugo_symbol: str
    peptide_start: int
    peptide_end: int

    COLUMNS: ClassVar[Tuple[str, ...]] = (
        'Tumor_Barcode',
        'Hugo_Symbol',
        'Peptide_Start',
        'Peptide_End',
        'Self_Peptide',
        'Neo_Peptide',
    )
    FIELD_COUNT: ClassVar[int] = 6

    @classmethod
    def instance(
        cls,
        tumor_barcode: str,
        hugo_symbol: str,
        peptide_start: int,
        peptide_end: int,
        self_peptide: Union[SelfPeptide, str],
        neo_peptide: Union[NeoPeptide, str]
    ) -> 'PeptidePairRecord':
        """Create a record, wrapping plain sequence strings as needed."""
        if not isinstance(self_peptide, SelfPeptide):
            self_peptide = SelfPeptide(str(self_peptide))
        if not isinstance(neo_peptide, NeoPeptide):
            neo_peptide = NeoPeptide(str(neo_peptide))
        if peptide_end < peptide_start:
            raise ValueError(
                f"Peptide range [{peptide_start}, {peptide_end}] is reversed"
            )
        return cls(
            self_peptide=self_peptide,
            neo_peptide=neo_peptide,
            tumor_barcode=tumor_barcode,
            hugo_symbol=hugo_symbol,
            peptide_start=int(peptide_start),
            peptide_end=int(peptide_end),
        )

    @classmethod
    def header(cls, delim: str = DELIM) -> str:
        return delim.join(cls.COLUMNS)

    @classmethod
    def parse(cls, fields: Sequence[str], offset: int = 0) -> 'PeptidePairRecord':
        """
        Build a record from split flat-file fields.

        Args:
            fields: Split line fields
            offset: Index of the Tumor_Barcode field

        Raises:
            ValueError: If a field cannot be converted
        """
        barcode, symbol, start, end, self_seq, neo_seq = fields[offset:offset + cls.FIELD_COUNT]
        return cls.instance(barcode, symbol, int(start), int(end), self_seq, neo_seq)

    def format(self, delim: str = DELIM) -> str:
        return delim.join([
            self.tumor_barcode,
            self.hugo_symbol,
            str(self.peptide_start),
            str(self.peptide_end),
            self.self_peptide.sequence,
            self.neo_peptide.sequence,
        ])

    def sort_key(self) -> Tuple:
        """Provenance ordering: barcode, gene, range, then peptides."""
        return (
            self.tumor_barcode,
            self.hugo_symbol,
            self.peptide_start,
            self.peptide_end,
            self.self_peptide.sequence,
            self.neo_peptide.sequence,
        )


class BindingMethod(Enum):
    """External binding predictors, one per footprint type."""
    NET_MHC_PAN = 'affinity'
    NET_MHC_STAB_PAN = 'stability'

    @property
    def quantity(self) -> str:
        """Name of the binding quantity this predictor reports."""
        return self.value


@dataclass(frozen=True)
class BindRecord:
    """
    A single binding prediction for one (allele, peptide) combination.

    strength is an IC50 concentration (nM) for affinity predictors or a
    peptide-MHC half-life (hours) for stability predictors.
    """
    peptide: str
    strength: float
    percentile: float


class BindRecordMap(Mapping):
    """
    Immutable mapping from peptide sequence to BindRecord for one allele.

    Keys are plain sequences, so NeoPeptide, SelfPeptide and str lookups
    all resolve to the same prediction.
    """

    def __init__(
        self,
        allele: Allele,
        method: BindingMethod,
        records: Optional[Dict[str, BindRecord]] = None
    ):
        self.allele = allele
        self.method = method
        self._records: Dict[str, BindRecord] = dict(records or {})

    @staticmethod
    def _key(peptide: Union[Peptide, str]) -> str:
        return peptide.sequence if isinstance(peptide, Peptide) else peptide

    def __getitem__(self, peptide: Union[Peptide, str]) -> BindRecord:
        return self._records[self._key(peptide)]

    def __contains__(self, peptide) -> bool:
        return self._key(peptide) in self._records

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def require(self, peptide: Union[Peptide, str]) -> BindRecord:
        """
        Return the prediction for a peptide.

        Raises:
            MissingBindingRecordError: If the map has no entry for the peptide
        """
        key = self._key(peptide)
        try:
            return self._records[key]
        except KeyError:
            raise MissingBindingRecordError(
                f"No {self.method.quantity} prediction for peptide {key} "
                f"and allele {self.allele}"
            ) from None


class FootprintType(Enum):
    """
    Calculation types for the single-allele footprint index.

    LOG_AFFINITY:  log2(a_SELF / a_NEO), affinities as IC50 concentrations.
                   Lower IC50 means stronger binding, so the self-peptide
                   is in the numerator.
    LOG_STABILITY: log2(h_NEO / h_SELF), stabilities as complex half-lives.
    """
    LOG_AFFINITY = 'LOG_AFFINITY'
    LOG_STABILITY = 'LOG_STABILITY'

    @property
    def binding_method(self) -> BindingMethod:
        if self is FootprintType.LOG_AFFINITY:
            return BindingMethod.NET_MHC_PAN
        return BindingMethod.NET_MHC_STAB_PAN

    @property
    def strategy(self):
        """The singleton FootprintStrategy bound to this type."""
        from ..strategy import get_strategy
        return get_strategy(self)

    @classmethod
    def from_name(cls, name: str) -> 'FootprintType':
        """
        Resolve a footprint type by enumeration name.

        Raises:
            ValueError: If the name is not a footprint type
        """
        try:
            return cls[str(name).strip().upper()]
        except KeyError:
            valid = ', '.join(member.name for member in cls)
            raise ValueError(f"Unknown footprint type '{name}' (expected one of: {valid})") from None


@dataclass(frozen=True)
class FootprintRecord:
    """
    Result of a footprint index calculation for one allele and peptide pair.

    Serialized as one tab-delimited line: the six peptide-pair columns
    followed by Patient_Allele, Footprint_Type, Neo_Binding_Qty,
    Neo_Binding_Pct, Self_Binding_Qty, Self_Binding_Pct, Footprint_Index.
    """
    pair_record: PeptidePairRecord
    patient_allele: Allele
    footprint_type: FootprintType
    neo_binding_qty: float
    neo_binding_pct: float
    self_binding_qty: float
    self_binding_pct: float
    footprint_index: float

    COLUMNS: ClassVar[Tuple[str, ...]] = PeptidePairRecord.COLUMNS + (
        'Patient_Allele',
        'Footprint_Type',
        'Neo_Binding_Qty',
        'Neo_Binding_Pct',
        'Self_Binding_Qty',
        'Self_Binding_Pct',
        'Footprint_Index',
    )
    FIELD_COUNT: ClassVar[int] = PeptidePairRecord.FIELD_COUNT + 7

    @classmethod
    def create(
        cls,
        pair_record: PeptidePairRecord,
        patient_allele: Allele,
        footprint_type: FootprintType,
        neo_bind_record: BindRecord,
        self_bind_record: BindRecord,
        footprint_index: float
    ) -> 'FootprintRecord':
        """Create a record from the neo and self binding predictions."""
        return cls(
            pair_record=pair_record,
            patient_allele=patient_allele,
            footprint_type=footprint_type,
            neo_binding_qty=float(neo_bind_record.strength),
            neo_binding_pct=float(neo_bind_record.percentile),
            self_binding_qty=float(self_bind_record.strength),
            self_binding_pct=float(self_bind_record.percentile),
            footprint_index=float(footprint_index),
        )

    @classmethod
    def header(cls) -> str:
        return DELIM.join(cls.COLUMNS)

    @classmethod
    def parse(cls, line: str) -> 'FootprintRecord':
        """
        Parse a record from one delimited line.

        Raises:
            MalformedRecordLineError: If the line has the wrong field count
                or a field cannot be converted
        """
        fields = line.rstrip('\r\n').split(DELIM)
        if len(fields) != cls.FIELD_COUNT:
            raise MalformedRecordLineError(
                f"Expected {cls.FIELD_COUNT} fields, found {len(fields)}: {line!r}"
            )

        n = PeptidePairRecord.FIELD_COUNT
        try:
            return cls(
                pair_record=PeptidePairRecord.parse(fields, 0),
                patient_allele=Allele.instance(fields[n]),
                footprint_type=FootprintType.from_name(fields[n + 1]),
                neo_binding_qty=float(fields[n + 2]),
                neo_binding_pct=float(fields[n + 3]),
                self_binding_qty=float(fields[n + 4]),
                self_binding_pct=float(fields[n + 5]),
                footprint_index=float(fields[n + 6]),
            )
        except ValueError as e:
            raise MalformedRecordLineError(f"Invalid footprint record {line!r}: {e}") from e

    def format(self) -> str:
        """Format this record as one delimited line (no line terminator)."""
        return DELIM.join([
            self.pair_record.format(DELIM),
            self.patient_allele.short_key(),
            self.footprint_type.name,
            f"{self.neo_binding_qty:.2f}",
            f"{self.neo_binding_pct:.2f}",
            f"{self.self_binding_qty:.2f}",
            f"{self.self_binding_pct:.2f}",
            f"{self.footprint_index:.4f}",
        ])

    def sort_key(self) -> Tuple:
        """Total order: pair provenance, then allele, then footprint type."""
        return self.pair_record.sort_key() + (
            self.patient_allele.key,
            self.footprint_type.name,
        )


@dataclass(frozen=True)
class Genotype:
    """The HLA alleles of one patient (homozygous loci appear twice)."""
    alleles: Tuple[Allele, ...]

    @classmethod
    def parse(cls, text: str) -> 'Genotype':
        """
        Parse a comma- or whitespace-separated allele list.

        Raises:
            ValueError: If the list is empty or an allele is malformed
        """
        names = [name for name in re.split(r'[,\s]+', text.strip()) if name]
        if not names:
            raise ValueError("Genotype must contain at least one allele")
        return cls(tuple(Allele.instance(name) for name in names))

    def view_unique_alleles(self) -> FrozenSet[Allele]:
        return frozenset(self.alleles)

    def __len__(self) -> int:
        return len(self.alleles)


@dataclass(frozen=True)
class FootprintConfig:
    """
    Process configuration for a cohort footprint run.

    Resolved once at startup (see config.load_config_from_yaml) and passed
    explicitly to the driver; nothing reads it from global state.
    """
    # Output
    footprint_file: Optional[Path] = None
    footprint_type: Optional[FootprintType] = None

    # Input tables
    peptide_pair_file: Optional[Path] = None
    tumor_patient_file: Optional[Path] = None
    patient_genotype_file: Optional[Path] = None

    # Binding prediction files (one per binding method)
    affinity_file: Optional[Path] = None
    stability_file: Optional[Path] = None

    # Performance parameters
    n_jobs: int = -1
    progress: bool = False

    # Optional run summary (JSON)
    summary_file: Optional[Path] = None

    REQUIRED_FIELDS: ClassVar[Tuple[str, ...]] = (
        'footprint_file',
        'footprint_type',
        'peptide_pair_file',
        'tumor_patient_file',
        'patient_genotype_file',
    )
    PATH_FIELDS: ClassVar[Tuple[str, ...]] = (
        'footprint_file',
        'peptide_pair_file',
        'tumor_patient_file',
        'patient_genotype_file',
        'affinity_file',
        'stability_file',
        'summary_file',
    )

    def prediction_file(self, method: BindingMethod) -> Optional[Path]:
        """Return the prediction file configured for a binding method."""
        if method is BindingMethod.NET_MHC_PAN:
            return self.affinity_file
        return self.stability_file

    def prediction_files(self) -> Dict[BindingMethod, Path]:
        """Return all configured prediction files keyed by method."""
        files = {}
        for method in BindingMethod:
            path = self.prediction_file(method)
            if path is not None:
                files[method] = path
        return files

    def validate(self) -> List[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            Empty list if valid, otherwise list of error messages
        """
        errors = []

        for name in self.REQUIRED_FIELDS:
            if getattr(self, name) is None:
                errors.append(f"{name} is required")

        for name in self.PATH_FIELDS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, Path):
                errors.append(f"{name} must be a Path object, got {type(value)}")

        if self.footprint_type is not None:
            if not isinstance(self.footprint_type, FootprintType):
                errors.append(f"footprint_type must be a FootprintType, got {self.footprint_type!r}")
            else:
                method = self.footprint_type.binding_method
                if self.prediction_file(method) is None:
                    errors.append(
                        f"{self.footprint_type.name} requires a {method.quantity} prediction file "
                        f"(binding.{method.quantity}_file)"
                    )

        if not isinstance(self.n_jobs, int) or self.n_jobs == 0:
            errors.append(f"n_jobs must be a nonzero integer, got {self.n_jobs!r}")

        return errors

    @classmethod
    def from_dict(cls, config_dict: Dict) -> 'FootprintConfig':
        """
        Create config from a flat dictionary (e.g., loaded from YAML).

        Converts string paths to Path objects and the footprint type name
        to a FootprintType.

        Raises:
            ValueError: If the footprint type name is unknown
        """
        values = dict(config_dict)

        for field_name in cls.PATH_FIELDS:
            if values.get(field_name) is not None:
                values[field_name] = Path(values[field_name])

        footprint_type = values.get('footprint_type')
        if footprint_type is not None and not isinstance(footprint_type, FootprintType):
            values['footprint_type'] = FootprintType.from_name(footprint_type)

        return cls(**values)
