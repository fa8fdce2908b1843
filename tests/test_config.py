from pathlib import Path

import pytest

from smb_facturation.config import (
    DEFAULT_ALLOWED_TAX_RATES,
    default_app_config,
    load_app_config,
)


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "smb_facturation_config.toml"
    path.write_text(text, encoding="utf-8")
    return path


def test_load_full_config(tmp_path) -> None:
    path = _write(
        tmp_path,
        """
[company]
name = "ExoTROPIC"
siret = "73282932000074"
vat_number = "FR23334175221"
iban = "FR1420041010050500013M02606"
street = "1 Rue de l'Exemple"
postal_code = "97100"
city = "Basse-Terre"
country = "Guadeloupe"
invoice_prefix = "F"
default_tax_rate = 8.5
payment_delay_days = 45

[invoicing]
allowed_tax_rates = [0, 2.1, 8.5]
default_discount_percent = 5

[accounting]
currency = "EUR"

[database]
path = "db/invoices.sqlite"

[display]
amount_decimals = 3
""",
    )

    config = load_app_config(str(path))

    assert config.company.name == "ExoTROPIC"
    assert config.company.invoice_prefix == "F"
    assert config.company.default_tax_rate == 8.5
    assert config.company.payment_delay_days == 45
    assert config.company.full_address == (
        "1 Rue de l'Exemple\n97100 Basse-Terre\nGuadeloupe"
    )
    assert config.allowed_tax_rates == (0.0, 2.1, 8.5)
    assert config.default_discount_percent == 5.0
    assert config.database.engine == "sqlite"
    assert config.database.path == (tmp_path / "db" / "invoices.sqlite").resolve()
    assert config.amount_decimals == 3


def test_empty_config_uses_defaults(tmp_path) -> None:
    config = load_app_config(str(_write(tmp_path, "")))

    assert config.company.default_tax_rate == 20.0
    assert config.company.payment_delay_days == 30
    assert config.allowed_tax_rates == DEFAULT_ALLOWED_TAX_RATES
    assert config.currency == "EUR"
    assert config.database.path.name == "smb_facturation.sqlite"


def test_missing_config_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        load_app_config(str(tmp_path / "missing.toml"))


def test_invalid_toml(tmp_path) -> None:
    with pytest.raises(ValueError):
        load_app_config(str(_write(tmp_path, "[company\nname = ")))


@pytest.mark.parametrize(
    "text",
    [
        '[company]\ndefault_tax_rate = "twenty"\n',
        "[company]\npayment_delay_days = -1\n",
        "[invoicing]\nallowed_tax_rates = []\n",
        '[invoicing]\nallowed_tax_rates = ["a"]\n',
    ],
)
def test_invalid_values(tmp_path, text: str) -> None:
    with pytest.raises(ValueError):
        load_app_config(str(_write(tmp_path, text)))


def test_default_app_config(tmp_path) -> None:
    config = default_app_config(tmp_path)

    assert config.company.name == ""
    assert config.database.path == (
        tmp_path / "data" / "db" / "smb_facturation.sqlite"
    ).resolve()
