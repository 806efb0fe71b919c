from __future__ import annotations
from dataclasses import dataclass

@dataclass
class ReconcileStats:
    scanned_wallets: int = 0
    consistent_wallets: int = 0
    mismatched_wallets: int = 0
