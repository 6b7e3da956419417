"""
Configuration management for the growth-rate expression pipeline.

Supports loading configurations from YAML files for:
- Dataset specifications (source location, layout, nutrient codes)
- Model and significance parameters
- Visualization settings
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml


class Config:
    """
    Central configuration class for the growth-rate expression pipeline.

    Attributes:
        base_dir: Root directory of the project
        data_dir: Directory containing cached input data
        output_dir: Directory for results and figures
        dataset: Current dataset configuration
        data_params: Source and layout parameters used by the loader
        model_params: Linear model and significance parameters
        viz_params: Visualization settings
    """

    def __init__(
        self,
        config_file: Optional[str] = None,
        dataset: str = "Brauer2008"
    ):
        """
        Initialize configuration.

        Args:
            config_file: Path to YAML config file. If None, uses defaults.
            dataset: Name of dataset to use (e.g., "Brauer2008")
        """
        self.base_dir = Path(__file__).parent.parent.parent
        self.dataset_name = dataset

        self._init_defaults()

        # Dataset settings first so a user file can override them
        self._load_dataset_config(dataset)

        if config_file:
            self._load_yaml(config_file)

    def _init_defaults(self):
        """Initialize default configuration values."""
        # Directories
        self.data_dir = self.base_dir / "data"
        self.output_dir = self.base_dir / "results"
        self.figures_dir = self.output_dir / "plots"
        self.tables_dir = self.output_dir / "tables"

        # Source layout
        self.data_params = {
            "url": "http://varianceexplained.org/files/Brauer2008_DataSet1.tds",
            "sep": "\t",
            "name_column": "NAME",
            "name_delimiter": "||",
            "name_fields": ["name", "BP", "MF", "systematic_name", "number"],
            "drop_columns": ["GID", "YORF", "GWEIGHT"],
            "nutrient_names": {
                "G": "Glucose",
                "L": "Leucine",
                "P": "Phosphate",
                "S": "Sulfate",
                "N": "Ammonia",
                "U": "Uracil"
            },
            "expected_replicates": 6,
            "key_separator": "_"
        }

        # Model parameters
        self.model_params = {
            "intercept": False,
            "fdr_method": "fdr_bh",
            "fdr_by": ["term", "nutrient"],
            "fdr_threshold": 0.05,
            "top_n": 3,
            "gene_set_process": "leucine biosynthesis"
        }

        # Visualization parameters
        self.viz_params = {
            "dpi": 300,
            "format": "pdf",
            "figure_sizes": {
                "single": (6, 5),
                "wide": (10, 6),
                "tall": (6, 8)
            },
            "font_sizes": {
                "title": 12,
                "label": 11,
                "tick": 10,
                "legend": 9
            },
            "colors": {
                "Glucose": "#3498db",
                "Leucine": "#e74c3c",
                "Phosphate": "#2ecc71",
                "Sulfate": "#f1c40f",
                "Ammonia": "#9b59b6",
                "Uracil": "#e67e22"
            }
        }

    def _load_yaml(self, config_file: str):
        """Load configuration from YAML file."""
        config_path = Path(config_file)
        if not config_path.is_absolute():
            config_path = self.base_dir / config_file

        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path, 'r') as f:
            config_data = yaml.safe_load(f) or {}
        self._update_from_dict(config_data)

    def _load_dataset_config(self, dataset: str):
        """Load dataset-specific configuration."""
        dataset_config_path = self.base_dir / "configs" / "datasets" / f"{dataset}.yaml"

        if dataset_config_path.exists():
            with open(dataset_config_path, 'r') as f:
                self.dataset = yaml.safe_load(f) or {}
            self._update_from_dict(self.dataset)
        else:
            self.dataset = self._get_default_dataset_config(dataset)

    def _get_default_dataset_config(self, dataset: str) -> Dict[str, Any]:
        """Get default configuration for known datasets."""
        datasets = {
            "Brauer2008": {
                "name": "Brauer2008",
                "description": "Yeast expression across six limiting nutrients and six growth rates",
                "reference": "Brauer et al. (2008), Mol Biol Cell 19(1):352-367",
                "n_nutrients": 6,
                "n_rates": 6
            }
        }
        return datasets.get(dataset, {"name": dataset})

    def _update_from_dict(self, config_dict: Dict[str, Any]):
        """Update configuration from dictionary."""
        if "data_params" in config_dict:
            self.data_params.update(config_dict["data_params"])
        if "model_params" in config_dict:
            self.model_params.update(config_dict["model_params"])
        if "viz_params" in config_dict:
            self.viz_params.update(config_dict["viz_params"])

    def get_output_path(self, filename: str, subdir: str = "plots") -> Path:
        """Get output path for results."""
        if subdir == "plots":
            return self.figures_dir / filename
        elif subdir == "tables":
            return self.tables_dir / filename
        return self.output_dir / subdir / filename

    def set_output_dir(self, output_dir: Path):
        """Point all result paths at a different root directory."""
        self.output_dir = Path(output_dir)
        self.figures_dir = self.output_dir / "plots"
        self.tables_dir = self.output_dir / "tables"

    def ensure_output_dirs(self):
        """Create output directories if they don't exist."""
        self.figures_dir.mkdir(parents=True, exist_ok=True)
        self.tables_dir.mkdir(parents=True, exist_ok=True)

    def __repr__(self) -> str:
        return (
            f"Config(dataset='{self.dataset_name}', "
            f"base_dir='{self.base_dir}')"
        )


def load_config(
    config_file: Optional[str] = None,
    dataset: str = "Brauer2008"
) -> Config:
    """
    Load configuration for the analysis pipeline.

    Args:
        config_file: Path to custom YAML configuration file
        dataset: Dataset name to use

    Returns:
        Config object with all settings loaded

    Example:
        >>> config = load_config(dataset="Brauer2008")
        >>> config.data_params["expected_replicates"]
        6
    """
    return Config(config_file=config_file, dataset=dataset)
