# SMB Facturation - Invoicing core for French SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for SMB Facturation.

This module is responsible for:
- loading the application configuration from a TOML file,
- providing defaults when no configuration file is available,
- exposing typed dataclasses used by the rest of the application.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import]

from .db import DatabaseConfig

DEFAULT_CONFIG_FILENAME = "smb_facturation_config.toml"
DEFAULT_DB_PATH = "data/db/smb_facturation.sqlite"
DEFAULT_ALLOWED_TAX_RATES: tuple[float, ...] = (0.0, 2.1, 5.5, 10.0, 20.0)


@dataclass(frozen=True)
class CompanyConfig:
    """
    Identity and invoicing defaults of the issuing company.

    These values are printed on invoices and used as defaults when a new
    invoice is created (VAT rate, payment delay).
    """

    name: str = ""
    siret: str = ""
    vat_number: str = ""
    iban: str = ""
    bic: str = ""
    email: str = ""
    phone: str = ""
    street: str = ""
    postal_code: str = ""
    city: str = ""
    country: str = ""
    invoice_prefix: str = ""
    default_tax_rate: float = 20.0
    payment_delay_days: int = 30

    @property
    def full_address(self) -> str:
        """Multi-line postal address, country included."""
        components: list[str] = []
        if self.street:
            components.append(self.street)
        city_line = " ".join(p for p in (self.postal_code, self.city) if p)
        if city_line:
            components.append(city_line)
        if self.country:
            components.append(self.country)
        return "\n".join(components)


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for SMB Facturation.

    This aggregates:
    - the issuing company (identity, invoice prefix, defaults),
    - the allowed VAT rates,
    - the database configuration (where the invoice counter is stored),
    - the currency and display options.
    """

    company: CompanyConfig
    allowed_tax_rates: tuple[float, ...]
    default_discount_percent: float
    currency: str
    database: DatabaseConfig
    amount_decimals: int


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    """Return a sub-table, or an empty mapping if missing or not a table."""
    value = raw.get(name) or {}
    if not isinstance(value, Mapping):
        return {}
    return value


def _to_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{key}' in the configuration. Expected a number."
        ) from exc


def _to_int(value: Any, key: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{key}' in the configuration. Expected an integer."
        ) from exc


def _parse_company(company_data: Mapping[str, Any]) -> CompanyConfig:
    """
    Build a CompanyConfig from the raw [company] table.

    Text fields default to empty strings; numeric fields are validated.

    Raises:
        ValueError: if default_tax_rate or payment_delay_days is not numeric,
            or if payment_delay_days is negative.
    """
    text_fields = (
        "name",
        "siret",
        "vat_number",
        "iban",
        "bic",
        "email",
        "phone",
        "street",
        "postal_code",
        "city",
        "country",
        "invoice_prefix",
    )
    texts = {key: str(company_data.get(key) or "").strip() for key in text_fields}

    default_tax_rate = _to_float(
        company_data.get("default_tax_rate", 20.0), "company.default_tax_rate"
    )
    payment_delay_days = _to_int(
        company_data.get("payment_delay_days", 30), "company.payment_delay_days"
    )
    if payment_delay_days < 0:
        raise ValueError("company.payment_delay_days cannot be negative.")

    return CompanyConfig(
        **texts,
        default_tax_rate=default_tax_rate,
        payment_delay_days=payment_delay_days,
    )


def _parse_allowed_tax_rates(invoicing_data: Mapping[str, Any]) -> tuple[float, ...]:
    """
    Read invoicing.allowed_tax_rates.

    Raises:
        ValueError: if the value is not a non-empty list of numbers.
    """
    raw_rates = invoicing_data.get("allowed_tax_rates")
    if raw_rates is None:
        return DEFAULT_ALLOWED_TAX_RATES

    if not isinstance(raw_rates, list) or not raw_rates:
        raise ValueError(
            "invoicing.allowed_tax_rates must be a non-empty list of numbers."
        )

    return tuple(
        _to_float(rate, "invoicing.allowed_tax_rates") for rate in raw_rates
    )


def default_app_config(base_dir: Optional[Path] = None) -> AppConfig:
    """
    Return the configuration used when no TOML file is available.

    The database path is resolved against `base_dir` (current directory by
    default).
    """
    root = (base_dir or Path.cwd()).resolve()
    return AppConfig(
        company=CompanyConfig(),
        allowed_tax_rates=DEFAULT_ALLOWED_TAX_RATES,
        default_discount_percent=0.0,
        currency="EUR",
        database=DatabaseConfig(engine="sqlite", path=(root / DEFAULT_DB_PATH)),
        amount_decimals=2,
    )


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the SMB Facturation application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [company]
        Identity of the issuing company (name, siret, vat_number, iban, bic,
        address fields), invoice_prefix, default_tax_rate and
        payment_delay_days.

    [invoicing]
        allowed_tax_rates (list of percentages) and
        default_discount_percent.

    [accounting]
        currency (e.g. "EUR").

    [database]
        Database engine and SQLite file path.

    [display]
        amount_decimals used by the CLI when printing amounts.

    Every section is optional. All file paths in the TOML are resolved
    relative to the directory of the TOML file itself.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML configuration file. Defaults to
        'smb_facturation_config.toml' in the current directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILENAME).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Company
    company = _parse_company(_section(raw, "company"))

    # 2) Invoicing rules
    invoicing_section = _section(raw, "invoicing")
    allowed_tax_rates = _parse_allowed_tax_rates(invoicing_section)
    default_discount = _to_float(
        invoicing_section.get("default_discount_percent", 0.0),
        "invoicing.default_discount_percent",
    )

    # 3) Accounting section
    accounting_section = _section(raw, "accounting")
    currency = str(accounting_section.get("currency") or "EUR")

    # 4) Database section
    database_section = _section(raw, "database")
    db_engine = str(database_section.get("engine") or "sqlite")
    db_path_raw = database_section.get("path") or DEFAULT_DB_PATH
    db_path = (base_dir / str(db_path_raw)).resolve()

    # 5) Display options
    display_section = _section(raw, "display")
    try:
        amount_decimals = int(display_section.get("amount_decimals", 2))
    except (TypeError, ValueError):
        amount_decimals = 2

    return AppConfig(
        company=company,
        allowed_tax_rates=allowed_tax_rates,
        default_discount_percent=default_discount,
        currency=currency,
        database=DatabaseConfig(engine=db_engine, path=db_path),
        amount_decimals=amount_decimals,
    )
