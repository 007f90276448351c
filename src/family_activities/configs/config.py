# src/family_activities/configs/config.py
import yaml
from pathlib import Path
from functools import lru_cache


class Config:
    """
    Static configuration for the extraction core.
    """

    # This points to src/family_activities/configs/
    CONFIG_DIR = Path(__file__).parent.resolve()
    # This points to src/family_activities/
    PACKAGE_ROOT = CONFIG_DIR.parent

    EXTRACTION_CONFIG_PATH = CONFIG_DIR / "extraction.yaml"

    @classmethod
    @lru_cache
    def load_extraction_config(cls) -> dict:
        """Loads the YAML vocabularies used by segmentation and normalization."""
        if not cls.EXTRACTION_CONFIG_PATH.exists():
            raise FileNotFoundError(f"Missing config at {cls.EXTRACTION_CONFIG_PATH}")

        with open(cls.EXTRACTION_CONFIG_PATH, "r", encoding="utf-8") as f:
            return yaml.safe_load(f)

    @classmethod
    def get_section(cls, name: str) -> dict | list:
        """Returns one top-level section of the extraction config."""
        config = cls.load_extraction_config()
        if name not in config:
            raise KeyError(f"Section '{name}' missing from {cls.EXTRACTION_CONFIG_PATH.name}")
        return config[name]
