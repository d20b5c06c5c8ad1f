"""Transfer reconciliation -- wallet/vault transfer ledger from balance deltas."""

from vaultwatch.reconcile.aggregate import dedupe_transfers, total_sent_to
from vaultwatch.reconcile.classifier import TransferClassifier
from vaultwatch.reconcile.discovery import find_holding_account
from vaultwatch.reconcile.history import HistoryScanner, ScanResult, SeenSignatures
from vaultwatch.reconcile.reconciler import TransferReconciler

__all__ = [
    "HistoryScanner",
    "ScanResult",
    "SeenSignatures",
    "TransferClassifier",
    "TransferReconciler",
    "dedupe_transfers",
    "find_holding_account",
    "total_sent_to",
]
