"""
Base data loader class providing common functionality.
"""

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Union
from urllib.parse import urlparse

import pandas as pd

logger = logging.getLogger(__name__)

REMOTE_SCHEMES = ("http", "https", "ftp", "s3")


class DataLoader(ABC):
    """
    Abstract base class for data loaders.

    Provides common interface for loading tabular sources that may live on
    disk or behind a URL.
    """

    def __init__(self, config: Any):
        """
        Initialize data loader with configuration.

        Args:
            config: Configuration object with paths and parameters
        """
        self.config = config
        self._cache: Dict[str, pd.DataFrame] = {}

    @abstractmethod
    def load(self, source: Union[str, Path], **kwargs) -> pd.DataFrame:
        """
        Load data from a file or URL.

        Args:
            source: Path or URL of the data
            **kwargs: Additional loading parameters

        Returns:
            Loaded data as DataFrame
        """
        pass

    @staticmethod
    def is_remote(source: Union[str, Path]) -> bool:
        """Whether the source is a URL rather than a local path."""
        return urlparse(str(source)).scheme in REMOTE_SCHEMES

    def _resolve_path(self, file_path: Union[str, Path]) -> Path:
        """Resolve file path relative to base directory if not absolute."""
        path = Path(file_path)
        if not path.is_absolute():
            path = self.config.base_dir / path
        return path

    def _validate_file(self, file_path: Path) -> None:
        """Validate that file exists and is readable."""
        if not file_path.exists():
            raise FileNotFoundError(f"Data file not found: {file_path}")
        if not file_path.is_file():
            raise ValueError(f"Path is not a file: {file_path}")

    def _resolve_source(self, source: Union[str, Path]) -> str:
        """Return a URL untouched, or a validated absolute local path."""
        if self.is_remote(source):
            return str(source)
        path = self._resolve_path(source)
        self._validate_file(path)
        return str(path)

    def clear_cache(self) -> None:
        """Clear the data cache."""
        self._cache.clear()
        logger.debug("Data cache cleared")
