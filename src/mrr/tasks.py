# file: src/mrr/tasks.py
"""
Idempotent file-level MRR tasks.

These tasks are designed to be:
- deterministic for a given input table
- atomic on write
- safe to rerun (overwrite flag controls)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Optional

import pandas as pd

from src.mrr.config import PipelineConfig
from src.mrr.io_utils import atomic_write_json, atomic_write_table, ensure_dir, read_table
from src.mrr.pipeline import compute_mrr
from src.mrr.prepare import prepare_subscriptions
from src.mrr.summary import summarize_mrr
from src.mrr.validate import validate_mrr_output

logger = logging.getLogger(__name__)


def ingest_subscriptions(config: PipelineConfig) -> str:
    """
    Task 1: Read the raw subscription table and save data/subscriptions.parquet
    """
    clean_path = config.clean_path()
    ensure_dir(clean_path.parent)

    if clean_path.exists() and not config.overwrite:
        logger.info(f"[ingest] clean exists, skipping: {clean_path}")
        return str(clean_path)

    df_raw = read_table(config.input_path)
    df_clean = prepare_subscriptions(df_raw)

    atomic_write_table(df_clean, clean_path)
    logger.info(f"[ingest] wrote clean: {clean_path} ({len(df_clean)} rows)")
    return str(clean_path)


def compute_mrr_table(clean_path: str, config: PipelineConfig) -> str:
    """
    Task 2: Compute MRR and save artifacts/mrr.<fmt> + artifacts/mrr_summary.<fmt>
    """
    output_path = config.output_path()
    ensure_dir(output_path.parent)

    if output_path.exists() and not config.overwrite:
        logger.info(f"[compute] output exists, skipping: {output_path}")
        return str(output_path)

    periods = pd.read_parquet(clean_path)
    df_mrr = compute_mrr(periods, validate=config.validate_output)
    df_summary = summarize_mrr(df_mrr)

    # compute_mrr raises before anything is written
    atomic_write_table(df_mrr, output_path)
    atomic_write_table(df_summary, config.summary_path())

    logger.info(f"[compute] wrote mrr: {output_path} ({len(df_mrr)} rows)")
    logger.info(f"[compute] wrote summary: {config.summary_path()} ({len(df_summary)} months)")
    return str(output_path)


def publish_metadata(
    clean_path: str,
    output_path: str,
    config: PipelineConfig,
    run_id: Optional[str] = None,
) -> Dict:
    """
    Task 3: Save artifacts/metadata.json describing the run
    """
    periods = pd.read_parquet(clean_path)
    df_mrr = read_table(output_path)
    report = validate_mrr_output(df_mrr)

    month_range = [None, None]
    if not df_mrr.empty:
        months = pd.to_datetime(df_mrr["date_month"])
        month_range = [months.min().date().isoformat(), months.max().date().isoformat()]

    metadata = {
        "run_id": run_id or config.run_id(),
        "published_at": datetime.now(timezone.utc).isoformat(),
        "input_path": str(config.input_path),
        "output_path": str(output_path),
        "n_periods": int(len(periods)),
        "n_customers": int(df_mrr["customer_id"].nunique()) if not df_mrr.empty else 0,
        "n_rows": int(len(df_mrr)),
        "month_range": month_range,
        "validation": {"ok": report.ok, "message": report.message},
    }

    atomic_write_json(metadata, config.metadata_path())
    logger.info(f"[publish] wrote metadata: {config.metadata_path()}")
    return metadata


def run_full_pipeline(config: PipelineConfig) -> Dict:
    """Run ingest -> compute -> publish and return the run metadata."""
    run_id = config.run_id()
    logger.info(f"[pipeline] run_id={run_id} config={config}")

    clean_path = ingest_subscriptions(config)
    output_path = compute_mrr_table(clean_path, config)
    metadata = publish_metadata(clean_path, output_path, config, run_id=run_id)

    logger.info(f"[pipeline] done: {metadata['n_rows']} rows, validation={metadata['validation']['ok']}")
    return metadata
