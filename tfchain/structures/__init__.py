"""
Index structures: per-group level tables and the bulk-load walk.
"""

from tfchain.structures.chain_ledger import ChainLedger
from tfchain.structures.topo_sort import Component, TopologicalSort

__all__ = [
    "ChainLedger",
    "Component",
    "TopologicalSort",
]
