import logging
import os
import subprocess
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

from smb_facturation.config import CompanyConfig
from smb_facturation.validators import (
    DEFAULT_TAX_RATES,
    is_valid_iban,
    is_valid_tax_id,
    is_valid_tax_rate,
    is_valid_vat_number,
    validate_company,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("73282932000074", True),
        ("732 829 320 00074", True),
        ("732.829.320.00074", True),
        ("123456789", False),
        ("73282932000075", False),
        ("7328293200007A", False),
        ("", False),
    ],
)
def test_is_valid_tax_id(value: str, expected: bool) -> None:
    assert is_valid_tax_id(value) is expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("FR23334175221", True),
        ("FR 23 334175221", True),
        ("fr23334175221", True),
        ("FRAB334175221", True),
        ("DE123456789", False),
        ("FR123456", False),
        ("FR233341752211", False),
        ("FR2333417522A", False),
        ("", False),
    ],
)
def test_is_valid_vat_number(value: str, expected: bool) -> None:
    """Format-only check: FR + 2 alphanumeric + 9 digits."""
    assert is_valid_vat_number(value) is expected


@pytest.mark.parametrize(
    "value, expected",
    [
        ("FR1420041010050500013M02606", True),
        ("FR14 2004 1010 0505 0001 3M02 606", True),
        ("fr1420041010050500013m02606", True),
        ("GB82WEST12345698765432", True),
        ("FR1520041010050500013M02606", False),
        ("FR14200410", False),
        ("FR14-2004-1010-0505-0001-3M02-606", False),
        ("", False),
    ],
)
def test_is_valid_iban(value: str, expected: bool) -> None:
    assert is_valid_iban(value) is expected


@pytest.mark.parametrize(
    "rate", [0.0, 2.1, 5.5, 10.0, 20.0, 20, 5.500000001, 2.05, 9.95, 19.95, -0.04]
)
def test_allowed_tax_rates(rate: float) -> None:
    assert is_valid_tax_rate(rate)


@pytest.mark.parametrize(
    "rate", [15.0, -5.0, 25.0, 19.6, 2.15, 5.55, 2.049, float("nan"), float("inf")]
)
def test_rejected_tax_rates(rate: float) -> None:
    assert not is_valid_tax_rate(rate)


def test_custom_allowed_tax_rates() -> None:
    assert is_valid_tax_rate(8.5, allowed_rates=[0.0, 8.5])
    assert not is_valid_tax_rate(20.0, allowed_rates=[0.0, 8.5])
    assert 20.0 in DEFAULT_TAX_RATES


def test_validators_log_at_debug_level(caplog) -> None:
    with caplog.at_level(logging.DEBUG, logger="smb_facturation.validators"):
        is_valid_iban("FR1420041010050500013M02606")

    assert any("IBAN validation completed" in r.getMessage() for r in caplog.records)


def test_validate_company_all_good() -> None:
    company = CompanyConfig(
        name="ExoTROPIC",
        siret="73282932000074",
        vat_number="FR23334175221",
        iban="FR1420041010050500013M02606",
        default_tax_rate=20.0,
    )
    assert validate_company(company) == []


def test_validate_company_reports_each_problem() -> None:
    company = CompanyConfig(
        name="ExoTROPIC",
        siret="123 45 67 89",
        vat_number="",
        iban="FR1520041010050500013M02606",
        default_tax_rate=19.6,
    )

    problems = validate_company(company)

    assert len(problems) == 4
    assert problems[0].startswith("SIRET")
    assert problems[1] == "VAT number is missing."
    assert problems[2].startswith("IBAN")
    assert "19.6" in problems[3]


def test_validate_company_accepts_any_object_with_identifiers() -> None:
    company = SimpleNamespace(
        siret="73282932000074",
        vat_number="FR23334175221",
        iban="FR1420041010050500013M02606",
        default_tax_rate=20.0,
    )
    assert validate_company(company) == []


def test_validators_import_without_pandas_or_sqlite() -> None:
    """The validators only need the standard library."""
    src_dir = Path(__file__).resolve().parents[1] / "src"
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(
        p for p in (str(src_dir), env.get("PYTHONPATH", "")) if p
    )
    code = (
        "import sys, smb_facturation.validators; "
        "print(sorted(m for m in ('pandas', 'sqlite3') if m in sys.modules))"
    )

    result = subprocess.run(
        [sys.executable, "-c", code],
        env=env,
        capture_output=True,
        text=True,
        check=True,
    )

    assert result.stdout.strip() == "[]"
