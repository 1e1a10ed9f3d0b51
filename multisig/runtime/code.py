"""
multisig.runtime.code — the contract code blob redeployed by DeployContract.

The payload is a build artifact of the contract itself, so it is injected by
whoever assembles the host (packaging step, config) as a `CodeResource`
handle. Execution logic only ever calls `load()`.
"""

from __future__ import annotations

import hashlib
from pathlib import Path
from typing import Optional, Union

from ..config import MultisigConfig


class CodeResourceError(Exception):
    """The configured code payload cannot be resolved."""


class CodeResource:
    def __init__(self, *, path: Optional[Path] = None, data: Optional[bytes] = None) -> None:
        if (path is None) == (data is None):
            raise ValueError("exactly one of path or data is required")
        self._path = path
        self._data = bytes(data) if data is not None else None

    @classmethod
    def from_bytes(cls, data: bytes) -> "CodeResource":
        return cls(data=data)

    @classmethod
    def from_path(cls, path: Union[Path, str]) -> "CodeResource":
        return cls(path=Path(path).expanduser())

    @classmethod
    def from_config(cls, cfg: MultisigConfig) -> Optional["CodeResource"]:
        if cfg.contract_code_path is None:
            return None
        return cls.from_path(cfg.contract_code_path)

    def load(self) -> bytes:
        """Read the payload (file contents are read once and kept)."""
        if self._data is None:
            if self._path is None:
                raise CodeResourceError("contract code has no source")
            try:
                self._data = self._path.read_bytes()
            except OSError as e:
                raise CodeResourceError(f"cannot read contract code {self._path}: {e}") from e
        return self._data

    def digest(self) -> str:
        return hashlib.sha256(self.load()).hexdigest()

    def __repr__(self) -> str:
        src = str(self._path) if self._path is not None else f"{len(self._data or b'')} bytes"
        return f"CodeResource({src})"


__all__ = ["CodeResource", "CodeResourceError"]
