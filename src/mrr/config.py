# file: src/mrr/config.py
"""
Pipeline configuration.

Paths can come from the environment (prod) or a .env file (local).
Use a PipelineConfig object so every run logs the same config.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

OUTPUT_FORMATS = ("parquet", "csv")


@dataclass(frozen=True)
class PipelineConfig:
    # Input
    input_path: str = "data/raw/subscriptions.csv"

    # IO
    data_dir: str = "data"
    artifacts_dir: str = "artifacts"
    output_format: str = "parquet"
    overwrite: bool = False

    # Gates
    validate_output: bool = True

    def __post_init__(self) -> None:
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"output_format must be one of {OUTPUT_FORMATS}, got {self.output_format!r}"
            )

    def run_id(self) -> str:
        return datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")

    def data_path(self) -> Path:
        return Path(self.data_dir)

    def artifacts_path(self) -> Path:
        return Path(self.artifacts_dir)

    def clean_path(self) -> Path:
        return self.data_path() / "subscriptions.parquet"

    def output_path(self) -> Path:
        return self.artifacts_path() / f"mrr.{self.output_format}"

    def summary_path(self) -> Path:
        return self.artifacts_path() / f"mrr_summary.{self.output_format}"

    def metadata_path(self) -> Path:
        return self.artifacts_path() / "metadata.json"


def load_config(
    input_path: Optional[str] = None,
    overwrite: bool = False,
    validate_output: bool = True,
) -> PipelineConfig:
    """
    Load config from environment.

    Reads MRR_INPUT_PATH, MRR_DATA_DIR, MRR_ARTIFACTS_DIR and
    MRR_OUTPUT_FORMAT from a .env file or environment variables.
    Explicit arguments win over the environment.
    """
    load_dotenv()

    defaults = PipelineConfig()
    return PipelineConfig(
        input_path=input_path or os.getenv("MRR_INPUT_PATH", defaults.input_path),
        data_dir=os.getenv("MRR_DATA_DIR", defaults.data_dir),
        artifacts_dir=os.getenv("MRR_ARTIFACTS_DIR", defaults.artifacts_dir),
        output_format=os.getenv("MRR_OUTPUT_FORMAT", defaults.output_format).lower(),
        overwrite=overwrite,
        validate_output=validate_output,
    )
