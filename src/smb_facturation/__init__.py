# SMB Facturation - Invoicing core for French SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
SMB Facturation
---------------

A Python invoicing core designed for Small and Medium-sized Businesses
(SMBs) operating in France. The project provides pure, easily testable
building blocks and a thin command-line interface on top of them.

Main capabilities:
- invoice totals (HT, TVA, remise, TTC) from invoice lines,
- sequential invoice numbering ("MM/YY-NNNN-XX") with explicit counter state,
- business identifier validation (SIRET, French VAT number, IBAN, VAT rates),
- explicit invoice lifecycle transitions (sent, paid, overdue, cancelled),
- sales statistics (monthly revenue, top clients, top products, payment delay),
- a small SQLite store for the invoice counter and issued numbers.

SMB Facturation separates computation (calculator, numbering, validators),
configuration (TOML), and presentation (CLI), making it suitable for
scripting, automation and integration in larger invoicing tools.


Version: 0.1.0

Usage:
    python -m smb_facturation.cli --help
"""

__all__ = ["calculator", "numbering", "validators", "invoices", "stats"]

__version__ = "0.1.0"
