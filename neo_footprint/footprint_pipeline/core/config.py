"""
Configuration management for the footprint pipeline.

Supports loading one or more YAML files; later files override earlier ones.
"""

from pathlib import Path
from typing import Any, Dict, Optional, Union
import yaml

from .dataclasses import FootprintConfig, FootprintType
from .exceptions import ConfigurationError

# YAML section -> {yaml key: FootprintConfig field}
_SECTIONS: Dict[str, Dict[str, str]] = {
    'footprint': {
        'footprint_file': 'footprint_file',
        'footprint_type': 'footprint_type',
    },
    'inputs': {
        'peptide_pair_file': 'peptide_pair_file',
        'tumor_patient_file': 'tumor_patient_file',
        'patient_genotype_file': 'patient_genotype_file',
    },
    'binding': {
        'affinity_file': 'affinity_file',
        'stability_file': 'stability_file',
    },
    'performance': {
        'n_jobs': 'n_jobs',
        'progress': 'progress',
    },
    'output': {
        'summary_file': 'summary_file',
    },
}


def load_config_from_yaml(*yaml_paths: Union[str, Path]) -> FootprintConfig:
    """
    Load footprint configuration from one or more YAML files.

    Args:
        yaml_paths: YAML configuration files, applied in order

    Returns:
        FootprintConfig object

    Raises:
        ConfigurationError: If a file is missing, YAML is invalid or
            config validation fails

    Example YAML:
        footprint:
          footprint_file: out/footprint.tsv
          footprint_type: LOG_STABILITY

        inputs:
          peptide_pair_file: data/peptide_pairs.tsv
          tumor_patient_file: data/tumor_patient.tsv
          patient_genotype_file: data/patient_genotype.tsv

        binding:
          affinity_file: data/netmhcpan.tsv
          stability_file: data/netmhcstabpan.tsv

        performance:
          n_jobs: -1
    """
    if not yaml_paths:
        raise ConfigurationError("At least one configuration file is required")

    config_dict: Dict[str, Any] = {}
    for yaml_path in yaml_paths:
        config_dict.update(_read_yaml_file(Path(yaml_path)))

    try:
        config = FootprintConfig.from_dict(config_dict)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid config parameters: {e}")

    errors = config.validate()
    if errors:
        raise ConfigurationError(f"Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

    return config


def _read_yaml_file(yaml_path: Path) -> Dict[str, Any]:
    """Read one YAML file into a flat dict with paths resolved."""
    if not yaml_path.exists():
        raise ConfigurationError(f"Config file not found: {yaml_path}")

    try:
        with open(yaml_path, 'r', encoding='utf-8') as f:
            raw_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse YAML {yaml_path}: {e}")

    if raw_config is None:
        return {}
    if not isinstance(raw_config, dict):
        raise ConfigurationError(f"Config file {yaml_path} must contain a mapping")

    flattened = _flatten_yaml_config(raw_config, source=yaml_path)

    # Relative paths are relative to the file that set them
    base_dir = yaml_path.resolve().parent
    for field_name in FootprintConfig.PATH_FIELDS:
        value = flattened.get(field_name)
        if value is not None:
            path = Path(str(value)).expanduser()
            flattened[field_name] = path if path.is_absolute() else base_dir / path

    return flattened


def _flatten_yaml_config(raw_config: Dict, source: Optional[Path] = None) -> Dict:
    """
    Flatten nested YAML structure to match FootprintConfig fields.

    Converts:
        {
          "footprint": {"footprint_type": "LOG_AFFINITY"},
          "performance": {"n_jobs": 4}
        }
    To:
        {
          "footprint_type": "LOG_AFFINITY",
          "n_jobs": 4
        }
    """
    flattened = {}

    for section, values in raw_config.items():
        if section not in _SECTIONS:
            raise ConfigurationError(f"Unknown config section '{section}' in {source}")
        if values is None:
            continue
        if not isinstance(values, dict):
            raise ConfigurationError(f"Config section '{section}' in {source} must be a mapping")

        for key, value in values.items():
            field_name = _SECTIONS[section].get(key)
            if field_name is None:
                raise ConfigurationError(f"Unknown config key '{section}.{key}' in {source}")
            flattened[field_name] = value

    return flattened


def create_default_config(
    data_dir: Path,
    footprint_type: FootprintType = FootprintType.LOG_AFFINITY,
    n_jobs: int = -1
) -> FootprintConfig:
    """
    Create a configuration using the standard file names under one directory.

    Args:
        data_dir: Directory holding input tables and receiving output
        footprint_type: Footprint calculation type
        n_jobs: Worker count for per-patient processing (-1 = all cores)

    Returns:
        FootprintConfig with default settings
    """
    data_dir = Path(data_dir)

    config = FootprintConfig(
        footprint_file=data_dir / "footprint.tsv",
        footprint_type=footprint_type,
        peptide_pair_file=data_dir / "peptide_pairs.tsv",
        tumor_patient_file=data_dir / "tumor_patient.tsv",
        patient_genotype_file=data_dir / "patient_genotype.tsv",
        affinity_file=data_dir / "affinity.tsv",
        stability_file=data_dir / "stability.tsv",
        n_jobs=n_jobs,
    )

    errors = config.validate()
    if errors:
        raise ConfigurationError(f"Default config validation failed:\n" + "\n".join(f"  - {e}" for e in errors))

    return config


def save_config_to_yaml(config: FootprintConfig, output_path: Path) -> None:
    """
    Save configuration to a YAML file.

    Args:
        config: FootprintConfig to save
        output_path: Where to save YAML file
    """
    def _str(path: Optional[Path]) -> Optional[str]:
        return str(path) if path is not None else None

    yaml_dict = {
        'footprint': {
            'footprint_file': _str(config.footprint_file),
            'footprint_type': config.footprint_type.name if config.footprint_type else None,
        },
        'inputs': {
            'peptide_pair_file': _str(config.peptide_pair_file),
            'tumor_patient_file': _str(config.tumor_patient_file),
            'patient_genotype_file': _str(config.patient_genotype_file),
        },
        'binding': {
            'affinity_file': _str(config.affinity_file),
            'stability_file': _str(config.stability_file),
        },
        'performance': {
            'n_jobs': config.n_jobs,
            'progress': config.progress,
        },
    }

    if config.summary_file:
        yaml_dict['output'] = {'summary_file': str(config.summary_file)}

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w', encoding='utf-8') as f:
        yaml.dump(yaml_dict, f, default_flow_style=False, sort_keys=False, indent=2)
