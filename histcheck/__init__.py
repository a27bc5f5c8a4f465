"""
histcheck

Correctness oracles for histories recorded while a distributed SQL database
runs under induced faults (network partitions, clock skew):
- Set uniqueness (no lost, phantom or duplicated elements)
- Monotonic sequences, global and partitioned
- Bank conservation (account count and total balance)
"""

__version__ = "0.1.0"

from histcheck.config import Settings, get_settings

__all__ = ["__version__", "Settings", "get_settings"]
