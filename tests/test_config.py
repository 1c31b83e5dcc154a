"""Tests for finsight.config -- config.toml loading and initialization."""

from __future__ import annotations

import tomllib
from decimal import Decimal
from pathlib import Path

import pytest

from finsight.config import CONFIG_FILENAME, config_to_toml, initialize, load_config
from finsight.models import AppConfig


class TestLoadConfig:
    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path)

    def test_empty_file_gives_defaults(self, tmp_path: Path):
        (tmp_path / CONFIG_FILENAME).write_text("")
        assert load_config(tmp_path) == AppConfig()

    def test_fast_config(self, tmp_project_dir: Path):
        config = load_config(tmp_project_dir)
        assert config.api_base_url == "http://backend.test"
        assert config.api_timeout == 5.0
        assert config.upload_step_delay_ms == 0
        assert config.poll_interval_ms == 1
        assert config.max_duration_ms == 3
        assert config.delete_redirect_delay_ms == 0
        # Untouched keys keep their defaults.
        assert config.max_upload_bytes == 10 * 1024 * 1024
        assert config.transactions_page_size == 100

    def test_extensions_normalized(self, tmp_path: Path):
        (tmp_path / CONFIG_FILENAME).write_text('[upload]\nallowed_extensions = [".PDF", "csv"]\n')
        assert load_config(tmp_path).allowed_extensions == ["pdf", "csv"]

    def test_filter_bounds(self, tmp_path: Path):
        (tmp_path / CONFIG_FILENAME).write_text("[filters]\namount_min = 0\namount_max = 1000.5\n")
        config = load_config(tmp_path)
        assert config.filter_amount_min == Decimal("0")
        assert config.filter_amount_max == Decimal("1000.5")

    def test_infinite_filter_bounds(self, tmp_path: Path):
        (tmp_path / CONFIG_FILENAME).write_text("[filters]\namount_min = -inf\namount_max = inf\n")
        config = load_config(tmp_path)
        assert config.filter_amount_min == Decimal("-Infinity")
        assert config.filter_amount_max == Decimal("Infinity")

    @pytest.mark.parametrize(
        "line", ["amount_min = nan", "amount_max = nan", 'amount_max = "lots"']
    )
    def test_non_numeric_filter_bound(self, tmp_path: Path, line: str):
        (tmp_path / CONFIG_FILENAME).write_text(f"[filters]\n{line}\n")
        with pytest.raises(ValueError, match="filters.amount_"):
            load_config(tmp_path)

    @pytest.mark.parametrize("section", ["upload", "processing"])
    def test_invalid_mode(self, tmp_path: Path, section: str):
        (tmp_path / CONFIG_FILENAME).write_text(f'[{section}]\nmode = "magic"\n')
        with pytest.raises(ValueError, match=f"{section}.mode"):
            load_config(tmp_path)

    def test_invalid_toml(self, tmp_path: Path):
        (tmp_path / CONFIG_FILENAME).write_text("[api\n")
        with pytest.raises(tomllib.TOMLDecodeError):
            load_config(tmp_path)


class TestInitialize:
    def test_creates_default_config(self, tmp_path: Path):
        path = initialize(tmp_path / "project")
        assert path == tmp_path / "project" / CONFIG_FILENAME
        assert path.read_text(encoding="utf-8").startswith("# FinSight configuration")
        assert load_config(path.parent) == AppConfig()

    def test_does_not_overwrite(self, tmp_path: Path):
        path = tmp_path / CONFIG_FILENAME
        path.write_text('[api]\nbase_url = "http://mine"\n')
        initialize(tmp_path)
        assert load_config(tmp_path).api_base_url == "http://mine"

    def test_round_trip_custom_values(self, tmp_path: Path):
        config = AppConfig(
            upload_mode="api",
            processing_mode="api",
            filter_amount_min=Decimal("-250"),
            filter_amount_max=Decimal("99.5"),
            fetch_transactions=False,
        )
        (tmp_path / CONFIG_FILENAME).write_text(config_to_toml(config))
        assert load_config(tmp_path) == config
