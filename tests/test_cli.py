from pathlib import Path

import pytest

from smb_facturation.cli import main


def _write_config(tmp_path: Path, siret: str = "732 829 320 00074") -> Path:
    config_path = tmp_path / "smb_facturation_config.toml"
    config_path.write_text(
        f"""
[company]
name = "ExoTROPIC"
siret = "{siret}"
vat_number = "FR23334175221"
iban = "FR14 2004 1010 0505 0001 3M02 606"
email = "entreprise@example.com"
default_tax_rate = 20.0

[invoicing]
allowed_tax_rates = [0.0, 2.1, 5.5, 10.0, 20.0]

[database]
engine = "sqlite"
path = "db/test.sqlite"
""",
        encoding="utf-8",
    )
    return config_path


def test_version(capsys) -> None:
    assert main(["--version"]) == 0
    assert "smb_facturation version" in capsys.readouterr().out


def test_totals(tmp_path, capsys) -> None:
    config_path = _write_config(tmp_path)
    lines_path = tmp_path / "lines.csv"
    lines_path.write_text(
        "designation,quantity,unit_price\nA,2,10\nB,1,11\n", encoding="utf-8"
    )

    code = main(["--config", str(config_path), "totals", "--lines", str(lines_path)])

    out = capsys.readouterr().out
    assert code == 0
    assert "Subtotal (HT):  31.00 EUR" in out
    assert "6.20 EUR" in out
    assert "Total due (TTC): 37.20 EUR" in out


def test_totals_warns_on_unknown_rate(tmp_path, capsys) -> None:
    config_path = _write_config(tmp_path)
    lines_path = tmp_path / "lines.csv"
    lines_path.write_text("designation,quantity,unit_price\nA,1,100\n", encoding="utf-8")

    main(
        [
            "--config",
            str(config_path),
            "totals",
            "--lines",
            str(lines_path),
            "--tax-rate",
            "19.6",
        ]
    )

    out = capsys.readouterr().out
    assert "Warning: VAT rate 19.6 is not an allowed rate." in out
    assert "Total due (TTC): 119.60 EUR" in out


def test_number_then_numbers(tmp_path, capsys) -> None:
    config_path = _write_config(tmp_path)
    base = ["--config", str(config_path)]

    main(base + ["number", "--client-name", "dupont", "--client-company", "acme",
                 "--date", "2025-02-03"])
    main(base + ["number", "--client-name", "Martin", "--date", "2025-02-04"])
    out = capsys.readouterr().out.splitlines()
    assert out == ["02/25-0001-AD", "02/25-0002-M"]

    main(base + ["numbers"])
    listing = capsys.readouterr().out
    assert "02/25-0002-M" in listing
    assert "Total issued: 2" in listing
    assert "Next sequence: 0003" in listing

    # the database lives next to the config file
    assert (tmp_path / "db" / "test.sqlite").is_file()


def test_reset_sequence_refuses_duplicate_number(tmp_path, capsys) -> None:
    config_path = _write_config(tmp_path)
    base = ["--config", str(config_path)]
    issue = base + ["number", "--client-name", "Martin", "--date", "2025-02-04"]

    main(issue)
    main(base + ["reset-sequence"])
    assert "Next sequence: 0001" in capsys.readouterr().out

    with pytest.raises(SystemExit, match="already issued"):
        main(issue)


def test_number_invalid_date(tmp_path) -> None:
    config_path = _write_config(tmp_path)
    with pytest.raises(SystemExit, match="Invalid date format"):
        main(["--config", str(config_path), "number", "--date", "03/02/2025"])


@pytest.mark.parametrize(
    "kind, value, expected",
    [
        ("siret", "73282932000074", 0),
        ("siret", "73282932000075", 1),
        ("vat", "FR23334175221", 0),
        ("vat", "DE123456789", 1),
        ("iban", "FR1420041010050500013M02606", 0),
        ("iban", "FR1420041010050500013M02607", 1),
        ("tax-rate", "5.5", 0),
        ("tax-rate", "7", 1),
        ("tax-rate", "abc", 1),
    ],
)
def test_validate(tmp_path, capsys, kind: str, value: str, expected: int) -> None:
    config_path = _write_config(tmp_path)

    code = main(["--config", str(config_path), "validate", kind, value])

    assert code == expected
    out = capsys.readouterr().out
    assert ("invalid" in out) == bool(expected)


def test_check_company(tmp_path, capsys) -> None:
    assert main(["--config", str(_write_config(tmp_path)), "check-company"]) == 0
    assert "all identifiers are valid" in capsys.readouterr().out


def test_check_company_reports_problems(tmp_path, capsys) -> None:
    config_path = _write_config(tmp_path, siret="123")

    assert main(["--config", str(config_path), "check-company"]) == 1
    out = capsys.readouterr().out
    assert "1 problem(s) found" in out
    assert "SIRET" in out


def test_stats(tmp_path, capsys) -> None:
    config_path = _write_config(tmp_path)
    csv_path = tmp_path / "invoices.csv"
    csv_path.write_text(
        "invoice_number,issue_date,payment_date,status,client,designation,"
        "product,quantity,unit_price\n"
        "01/25-0001-AD,2025-01-10,2025-01-20,Payée,Acme - Dupont,Ananas,ANA,4,10\n"
        "02/25-0002-M,2025-02-03,,Envoyée,Martin,Mangues,MAN,5,2\n",
        encoding="utf-8",
    )

    code = main(
        [
            "--config",
            str(config_path),
            "stats",
            "--invoices",
            str(csv_path),
            "--from-date",
            "2025-01-01",
            "--to-date",
            "2025-12-31",
        ]
    )

    out = capsys.readouterr().out
    assert code == 0
    assert "Applied period: Custom period" in out
    assert "2025-01" in out
    assert "Month-over-month growth: -75.0 %" in out
    assert "Acme - Dupont" in out
    assert "Average payment delay: 10 days" in out
    assert "Payée" in out


def test_stats_missing_file(tmp_path) -> None:
    config_path = _write_config(tmp_path)
    with pytest.raises(SystemExit, match="not found"):
        main(["--config", str(config_path), "stats", "--invoices", "nope.csv"])


def test_missing_config_file(tmp_path) -> None:
    with pytest.raises(SystemExit):
        main(["--config", str(tmp_path / "missing.toml"), "numbers"])
