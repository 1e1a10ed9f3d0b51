"""
multisig — account-level multi-signature authorization engine.

A set of signing keys jointly approves requests (ordered action lists targeting
one account). Once a configurable quorum of distinct keys has confirmed a
request, it is removed and its actions are handed to the host's execution
capability.

This package exposes only lightweight metadata at import time. The contract,
runtime components and the local host live in their own modules:

    from multisig.contract import MultisigContract
    from multisig.adapters.host import LocalHost
"""

from .version import __version__, build_label, git_describe

__all__ = ["__version__", "build_label", "git_describe"]
