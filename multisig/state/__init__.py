"""
multisig.state — storage substrate interface, journaling and typed views.
"""

from .journal import JournaledKV
from .kv import KVStore, MemoryKV

__all__ = ["KVStore", "MemoryKV", "JournaledKV"]
