"""
Blockchain Interaction Package
Handles artifact loading, transaction submission and receipt tracking
"""

from .contract_manager import ContractManager
from .transaction_builder import TransactionBuilder
from .receipt_waiter import ReceiptWaiter

__all__ = ['ContractManager', 'TransactionBuilder', 'ReceiptWaiter']
