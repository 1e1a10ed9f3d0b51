"""
multisig.config — runtime configuration for the multisig engine.

This module centralizes knobs for:
  • Admission control (default per-key active request cap)
  • Deletion cooldown (ledger time, nanoseconds)
  • The redeployment payload used by DeployContract actions
  • Host-side logging and metrics toggles

Configuration may be provided via environment variables. Safe defaults are chosen so a
local developer run works out of the box.

Environment variables (all optional):
  MULTISIG_ACTIVE_REQUESTS_LIMIT   -> integer > 0 (default: 12)
  MULTISIG_REQUEST_COOLDOWN        -> duration, e.g. "900s", "15m", "900000000000ns";
                                      bare integers are nanoseconds (default: 15m)
  MULTISIG_CONTRACT_CODE           -> path to the contract code blob redeployed by
                                      DeployContract (default: unset)
  MULTISIG_LOG_LEVEL               -> logging level name for the local host (default: INFO)
  MULTISIG_METRICS                 -> 0/1/true/false (default: 1)

Programmatic usage:
    from multisig.config import get_config
    cfg = get_config()
    cfg.request_cooldown_ns
"""

from __future__ import annotations

import os
import re
from dataclasses import asdict, dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

# ----------------------------- constants -----------------------------------

DEFAULT_ACTIVE_REQUESTS_LIMIT = 12

NS_PER_SECOND = 1_000_000_000

# 15 minutes of ledger time.
DEFAULT_REQUEST_COOLDOWN_NS = 900 * NS_PER_SECOND

# ----------------------------- helpers -------------------------------------


_BOOL_TRUE = {"1", "true", "t", "yes", "y", "on"}
_BOOL_FALSE = {"0", "false", "f", "no", "n", "off"}


def _bool_env(value: Optional[str], default: bool) -> bool:
    if value is None:
        return default
    v = value.strip().lower()
    if v in _BOOL_TRUE:
        return True
    if v in _BOOL_FALSE:
        return False
    return bool(v) if v != "" else default


_DURATION_RE = re.compile(r"^\s*(\d+)\s*(ns|us|ms|s|m|h)?\s*$", re.IGNORECASE)

_DURATION_MULT = {
    "ns": 1,
    "us": 1_000,
    "ms": 1_000_000,
    "s": NS_PER_SECOND,
    "m": 60 * NS_PER_SECOND,
    "h": 3600 * NS_PER_SECOND,
}


def _parse_duration_ns(s: Union[str, int]) -> int:
    """
    Parse human-friendly durations into nanoseconds:
      "900s", "15m", "1h", "900000000000", 900000000000 -> ns (int)

    Units: ns, us, ms, s, m, h (case-insensitive). No unit means nanoseconds.
    """
    if isinstance(s, int):
        if s < 0:
            raise ValueError("duration must be non-negative")
        return s

    m = _DURATION_RE.match(str(s))
    if not m:
        raise ValueError(f"invalid duration: {s!r}")
    unit = (m.group(2) or "ns").lower()
    return int(m.group(1)) * _DURATION_MULT[unit]


# ------------------------------ dataclasses ---------------------------------


@dataclass(frozen=True)
class MultisigConfig:
    active_requests_limit: int = DEFAULT_ACTIVE_REQUESTS_LIMIT
    request_cooldown_ns: int = DEFAULT_REQUEST_COOLDOWN_NS
    contract_code_path: Optional[Path] = None
    log_level: str = "INFO"
    metrics_enabled: bool = True

    def to_dict(self) -> Dict[str, object]:
        d = asdict(self)
        d["contract_code_path"] = (
            str(self.contract_code_path) if self.contract_code_path is not None else None
        )
        return d


# ------------------------------ loader --------------------------------------


def _validate(cfg: MultisigConfig) -> MultisigConfig:
    if cfg.active_requests_limit <= 0:
        raise ValueError("active_requests_limit must be > 0")
    if cfg.request_cooldown_ns < 0:
        raise ValueError("request_cooldown_ns must be ≥ 0")
    if not cfg.log_level.strip():
        raise ValueError("log_level must be a non-empty level name")
    return cfg


def load_config(
    env: Optional[Mapping[str, str]] = None,
    *,
    overrides: Optional[Mapping[str, Union[str, int, bool, Path, None]]] = None,
) -> MultisigConfig:
    """
    Build a MultisigConfig from environment and optional overrides.

    Args:
        env: mapping to read variables from (default: os.environ)
        overrides: explicit field overrides; keys support:
          'active_requests_limit', 'request_cooldown_ns', 'contract_code_path',
          'log_level', 'metrics_enabled'
    """
    env = os.environ if env is None else env
    overrides = dict(overrides or {})

    code_path: Optional[Path] = None
    raw_code = overrides.get("contract_code_path", env.get("MULTISIG_CONTRACT_CODE"))
    if raw_code:
        code_path = Path(raw_code).expanduser()  # type: ignore[arg-type]

    if "request_cooldown_ns" in overrides:
        cooldown = _parse_duration_ns(overrides["request_cooldown_ns"])  # type: ignore[arg-type]
    else:
        cooldown = _parse_duration_ns(
            env.get("MULTISIG_REQUEST_COOLDOWN", DEFAULT_REQUEST_COOLDOWN_NS)
        )

    cfg = MultisigConfig(
        active_requests_limit=int(
            overrides.get(
                "active_requests_limit",
                env.get("MULTISIG_ACTIVE_REQUESTS_LIMIT", DEFAULT_ACTIVE_REQUESTS_LIMIT),
            )
        ),
        request_cooldown_ns=cooldown,
        contract_code_path=code_path,
        log_level=str(overrides.get("log_level", env.get("MULTISIG_LOG_LEVEL", "INFO"))).upper(),
        metrics_enabled=(
            bool(overrides["metrics_enabled"])
            if "metrics_enabled" in overrides
            else _bool_env(env.get("MULTISIG_METRICS"), True)
        ),
    )
    return _validate(cfg)


@lru_cache(maxsize=1)
def get_config() -> MultisigConfig:
    """
    Cached global config. Suitable for application bootstraps and module-level consumers.
    """
    return load_config()


def summary(cfg: Optional[MultisigConfig] = None) -> str:
    """
    Return a human-friendly one-line summary of the multisig knobs.
    """
    cfg = cfg or get_config()
    secs, rem = divmod(cfg.request_cooldown_ns, NS_PER_SECOND)
    cooldown = f"{secs}s" if rem == 0 else f"{cfg.request_cooldown_ns}ns"
    return (
        "multisig{"
        f"limit={cfg.active_requests_limit}, cooldown={cooldown}, "
        f"code={cfg.contract_code_path or '-'}, log={cfg.log_level}, "
        f"metrics={int(cfg.metrics_enabled)}"
        "}"
    )


__all__ = [
    "DEFAULT_ACTIVE_REQUESTS_LIMIT",
    "DEFAULT_REQUEST_COOLDOWN_NS",
    "NS_PER_SECOND",
    "MultisigConfig",
    "load_config",
    "get_config",
    "summary",
]
