"""Run configuration, timing records and protocol constants."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from enum import Enum, IntEnum

BIT61_MASK = 0x1FFFFFFFFFFFFFFF
SYMSECBITS = 128


class Role(IntEnum):
    """Which side of the protocol a node plays."""

    SERVER = 0
    CLIENT = 1


class PsmType(Enum):
    """Protocol variant."""

    SMPAQ1 = "SMPAQ1"
    SMPAQ2 = "SMPAQ2"


@dataclass
class Timings:
    """Per-phase durations in milliseconds."""

    vrf: float = 0.0
    base_ots_sci: float = 0.0
    base_ots_libote: float = 0.0
    base_ots_libote2: float = 0.0
    oprf1: float = 0.0
    oprf2: float = 0.0
    hint_transmission: float = 0.0
    hint_computation: float = 0.0
    encrypt: float = 0.0
    decrypt: float = 0.0
    psm: float = 0.0
    total: float = 0.0
    total_without_ot: float = 0.0
    search: float = 0.0
    wholeoprf: float = 0.0
    addtime: float = 0.0
    secondoprftime: float = 0.0
    clientime: float = 0.0
    servertime: float = 0.0


@dataclass
class PsiAnalyticsContext:
    """Everything one protocol instance needs to know and records about itself."""

    port: int = 7777
    role: Role = Role.SERVER
    bitlen: int = 58
    cneles: int = 1
    sneles: int = 1024
    nbins: int = 1024
    cnbins: int = 1
    snbins: int = 8
    nfuns: int = 3
    radix: int = 5
    epsilon: float = 1.0
    ffuns: int = 3
    fepsilon: float = 1.27
    address: str = "0.0.0.0"
    sci_io_start: list[int] = field(default_factory=list)
    index: int = 0
    n: int = 8
    g: int = 5
    sent_bytes_oprf: int = 0
    recv_bytes_oprf: int = 0
    sent_bytes_hint: int = 0
    recv_bytes_hint: int = 0
    sent_bytes_sci: int = 0
    recv_bytes_sci: int = 0
    sent_bytes: int = 0
    recv_bytes: int = 0
    psm_type: PsmType = PsmType.SMPAQ1
    timings: Timings = field(default_factory=Timings)

    def copy(self) -> "PsiAnalyticsContext":
        """Return an independent deep copy."""
        return copy.deepcopy(self)