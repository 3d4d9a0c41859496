"""
File-level tasks, config and CLI.

Run with:
    pytest tests/mrr/test_tasks.py -v
"""

from __future__ import annotations

import json
import logging

import pandas as pd
import pytest
from typer.testing import CliRunner

from src.mrr.cli import app
from src.mrr.config import PipelineConfig, load_config
from src.mrr.io_utils import read_table
from src.mrr.schema import InvalidPeriod
from src.mrr.tasks import compute_mrr_table, ingest_subscriptions, run_full_pipeline

RAW_CSV = """subscription_id,customer_id,start_date,end_date,monthly_amount
S1,C,2021-01-01,2021-03-01,10
S2,E,2021-01-01,2021-03-01,10
S3,E,2021-06-01,2021-08-01,15
"""


@pytest.fixture
def raw_csv(tmp_path):
    path = tmp_path / "subscriptions.csv"
    path.write_text(RAW_CSV)
    return path


@pytest.fixture
def config(tmp_path, raw_csv):
    return PipelineConfig(
        input_path=str(raw_csv),
        data_dir=str(tmp_path / "data"),
        artifacts_dir=str(tmp_path / "artifacts"),
        overwrite=True,
    )


class TestConfig:
    """PipelineConfig paths and env loading"""

    def test_paths(self, config):
        assert config.clean_path().name == "subscriptions.parquet"
        assert config.output_path().name == "mrr.parquet"
        assert config.summary_path().name == "mrr_summary.parquet"
        assert config.metadata_path().name == "metadata.json"

    def test_unknown_output_format(self):
        with pytest.raises(ValueError, match="output_format"):
            PipelineConfig(output_format="xlsx")

    def test_load_config_from_env(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MRR_INPUT_PATH", "in.csv")
        monkeypatch.setenv("MRR_ARTIFACTS_DIR", "out")
        monkeypatch.setenv("MRR_OUTPUT_FORMAT", "CSV")

        cfg = load_config()

        assert cfg.input_path == "in.csv"
        assert cfg.artifacts_dir == "out"
        assert cfg.output_path().name == "mrr.csv"

    def test_explicit_input_wins(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("MRR_INPUT_PATH", "in.csv")
        assert load_config(input_path="other.csv").input_path == "other.csv"


class TestTasks:
    """ingest -> compute -> publish"""

    def test_full_pipeline(self, config):
        metadata = run_full_pipeline(config)

        assert metadata["validation"] == {"ok": True, "message": "OK"}
        assert metadata["n_periods"] == 3
        assert metadata["n_customers"] == 2
        assert metadata["n_rows"] == 11
        assert metadata["month_range"] == ["2021-01-01", "2021-08-01"]

        assert config.output_path().exists()
        assert config.summary_path().exists()
        on_disk = json.loads(config.metadata_path().read_text())
        assert on_disk["run_id"] == metadata["run_id"]

        mrr = read_table(config.output_path())
        assert mrr.loc[mrr["customer_id"] == "E", "change_category"].tolist()[5] == "REACTIVATION"

    def test_csv_output(self, tmp_path, raw_csv):
        cfg = PipelineConfig(
            input_path=str(raw_csv),
            data_dir=str(tmp_path / "data"),
            artifacts_dir=str(tmp_path / "artifacts"),
            output_format="csv",
        )
        metadata = run_full_pipeline(cfg)

        assert cfg.output_path().suffix == ".csv"
        assert metadata["validation"]["ok"] is True

    def test_skip_when_exists(self, config, caplog):
        run_full_pipeline(config)
        rerun = PipelineConfig(**{**config.__dict__, "overwrite": False})

        with caplog.at_level(logging.INFO):
            run_full_pipeline(rerun)

        assert "[ingest] clean exists, skipping" in caplog.text
        assert "[compute] output exists, skipping" in caplog.text

    def test_rerun_is_byte_identical(self, config):
        cfg = PipelineConfig(**{**config.__dict__, "output_format": "csv"})
        run_full_pipeline(cfg)
        first = cfg.output_path().read_bytes()
        run_full_pipeline(cfg)
        assert cfg.output_path().read_bytes() == first

    @pytest.mark.fail_loud
    def test_invalid_period_writes_nothing(self, tmp_path):
        bad = tmp_path / "bad.csv"
        bad.write_text(RAW_CSV + "S4,X,2021-05-01,2021-02-01,10\n")
        cfg = PipelineConfig(
            input_path=str(bad),
            data_dir=str(tmp_path / "data"),
            artifacts_dir=str(tmp_path / "artifacts"),
        )

        clean_path = ingest_subscriptions(cfg)
        with pytest.raises(InvalidPeriod):
            compute_mrr_table(clean_path, cfg)

        assert not cfg.output_path().exists()
        assert not cfg.summary_path().exists()

    @pytest.mark.fail_loud
    def test_missing_input(self, tmp_path):
        cfg = PipelineConfig(input_path=str(tmp_path / "nope.csv"), data_dir=str(tmp_path / "data"))
        with pytest.raises(FileNotFoundError):
            ingest_subscriptions(cfg)


class TestCli:
    """Typer commands"""

    def test_run_and_check(self, monkeypatch, tmp_path, raw_csv):
        monkeypatch.chdir(tmp_path)
        runner = CliRunner()

        result = runner.invoke(app, ["run", "--input", str(raw_csv), "--overwrite"])
        assert result.exit_code == 0, result.output
        assert "MRR Pipeline Results" in result.output

        result = runner.invoke(app, ["check", "artifacts/mrr.parquet"])
        assert result.exit_code == 0
        assert "PASS" in result.output

    def test_check_fails_on_bad_table(self, tmp_path):
        bad = pd.DataFrame({
            "date_month": pd.to_datetime(["2021-01-01", "2021-02-01"]),
            "customer_id": ["C", "C"],
            "mrr": [10.0, 10.0],
            "mrr_change": [10.0, 3.0],
            "change_category": ["NEW", None],
        })
        path = tmp_path / "bad.parquet"
        bad.to_parquet(path, index=False)

        result = CliRunner().invoke(app, ["check", str(path)])
        assert result.exit_code == 1
        assert "FAIL" in result.output
