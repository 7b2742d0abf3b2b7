"""
Ledger services package.

- wallet_ledger: balance mutation primitives shared by every engine
- reports: balances, history, integrity check and earnings summary
"""

from rewardledger.services.ledger.reports import (
    EarningsSummary,
    IntegrityReport,
    LedgerReports,
    TransferReceipt,
    TypeTotal,
    WalletBalance,
)
from rewardledger.services.ledger.wallet_ledger import (
    WalletLedger,
    parse_amount,
    parse_wallet,
)

__all__ = [
    "EarningsSummary",
    "IntegrityReport",
    "LedgerReports",
    "TransferReceipt",
    "TypeTotal",
    "WalletBalance",
    "WalletLedger",
    "parse_amount",
    "parse_wallet",
]
