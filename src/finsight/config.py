"""Configuration loading and project initialization.

Reads ``config.toml`` using stdlib ``tomllib`` and writes the default file
using ``tomli_w``.  Depends only on ``models.py``.
"""

from __future__ import annotations

import tomllib
from decimal import Decimal, InvalidOperation
from pathlib import Path

import tomli_w

from finsight.models import AppConfig

CONFIG_FILENAME = "config.toml"

_HEADER = """\
# FinSight configuration
#
# upload.mode / processing.mode: "simulated" drives the lifecycle from a
# timer only; "api" uploads the file and polls the backend status endpoint.

"""


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(root: Path) -> AppConfig:
    """Load ``config.toml`` from *root* and return an :class:`AppConfig`.

    Every key is optional; missing keys keep the :class:`AppConfig`
    defaults.

    Args:
        root: Directory containing ``config.toml``.

    Returns:
        A fully-populated :class:`AppConfig` instance.

    Raises:
        FileNotFoundError: If ``config.toml`` does not exist.
        ValueError: If a mode is not ``"simulated"`` or ``"api"``, or an
            amount bound is not a number.
    """
    data = _read_toml(Path(root) / CONFIG_FILENAME)
    defaults = AppConfig()

    api = data.get("api", {})
    upload = data.get("upload", {})
    processing = data.get("processing", {})
    results = data.get("results", {})
    filters = data.get("filters", {})

    config = AppConfig(
        api_base_url=api.get("base_url", defaults.api_base_url),
        api_timeout=float(api.get("timeout_seconds", defaults.api_timeout)),
        allowed_extensions=[
            str(ext).lower().lstrip(".")
            for ext in upload.get("allowed_extensions", defaults.allowed_extensions)
        ],
        max_upload_bytes=int(upload.get("max_size_bytes", defaults.max_upload_bytes)),
        upload_step_delay_ms=int(upload.get("step_delay_ms", defaults.upload_step_delay_ms)),
        upload_mode=upload.get("mode", defaults.upload_mode),
        processing_mode=processing.get("mode", defaults.processing_mode),
        poll_interval_ms=int(processing.get("poll_interval_ms", defaults.poll_interval_ms)),
        max_duration_ms=int(processing.get("max_duration_ms", defaults.max_duration_ms)),
        export_dir=results.get("export_dir", defaults.export_dir),
        delete_redirect_delay_ms=int(
            results.get("delete_redirect_delay_ms", defaults.delete_redirect_delay_ms)
        ),
        fetch_transactions=bool(results.get("fetch_transactions", defaults.fetch_transactions)),
        transactions_page_size=int(
            results.get("transactions_page_size", defaults.transactions_page_size)
        ),
        filter_amount_min=_amount(filters, "amount_min", defaults.filter_amount_min),
        filter_amount_max=_amount(filters, "amount_max", defaults.filter_amount_max),
    )

    for key, mode in (("upload.mode", config.upload_mode), ("processing.mode", config.processing_mode)):
        if mode not in ("simulated", "api"):
            raise ValueError(f"Invalid {key} {mode!r}: expected 'simulated' or 'api'")

    return config


def config_to_toml(config: AppConfig) -> str:
    """Serialize *config* to the ``config.toml`` layout."""
    data = {
        "api": {
            "base_url": config.api_base_url,
            "timeout_seconds": config.api_timeout,
        },
        "upload": {
            "allowed_extensions": list(config.allowed_extensions),
            "max_size_bytes": config.max_upload_bytes,
            "step_delay_ms": config.upload_step_delay_ms,
            "mode": config.upload_mode,
        },
        "processing": {
            "mode": config.processing_mode,
            "poll_interval_ms": config.poll_interval_ms,
            "max_duration_ms": config.max_duration_ms,
        },
        "results": {
            "export_dir": config.export_dir,
            "delete_redirect_delay_ms": config.delete_redirect_delay_ms,
            "fetch_transactions": config.fetch_transactions,
            "transactions_page_size": config.transactions_page_size,
        },
        "filters": {
            "amount_min": _toml_number(config.filter_amount_min),
            "amount_max": _toml_number(config.filter_amount_max),
        },
    }
    return _HEADER + tomli_w.dumps(data)


def initialize(target_dir: Path) -> Path:
    """Write a default ``config.toml`` into *target_dir*.

    Idempotent: an existing ``config.toml`` is **not** overwritten.

    Returns:
        The path of the config file.
    """
    target_dir = Path(target_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / CONFIG_FILENAME
    if not path.exists():
        path.write_text(config_to_toml(AppConfig()), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _read_toml(path: Path) -> dict:
    """Read and parse a TOML file."""
    with open(path, "rb") as f:
        return tomllib.load(f)


def _amount(filters: dict, key: str, default: Decimal) -> Decimal:
    """Read an amount bound; infinities are allowed, NaN is not."""
    raw = filters.get(key, default)
    try:
        amount = Decimal(str(raw))
    except InvalidOperation as exc:
        raise ValueError(f"Invalid filters.{key} {raw!r}: expected a number") from exc
    if amount.is_nan():
        raise ValueError(f"Invalid filters.{key} {raw!r}: expected a number")
    return amount


def _toml_number(value: Decimal) -> int | float:
    """TOML has no decimal type; keep whole amounts as integers."""
    if not value.is_finite():
        return float(value)
    return int(value) if value == value.to_integral_value() else float(value)
