"""Leader election: order nodes by a hash of their signed timestamp."""

from __future__ import annotations

import hashlib
import time
from dataclasses import dataclass

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec


def to_hex(data: bytes) -> str:
    return data.hex()


def hash_signature(signature: str) -> int:
    """Fold the SHA-256 of signature into a value between 1 and 100."""
    value = 0
    for byte in hashlib.sha256(signature.encode()).digest():
        value = (value + byte) % 100 + 1
    return value


@dataclass
class _Node:
    id: int
    signature: str
    timestamp: str
    hash_value: int
    public_key: ec.EllipticCurvePublicKey
    verify_result: bool


class Vrf:
    """Produces a random ordering of node ids."""

    def sequence(self, n: int = 10) -> list[int]:
        """Return the ids 0..n-1 sorted by each node's signature hash."""
        algorithm = ec.ECDSA(hashes.SHA256())
        nodes = []
        for node_id in range(n):
            private_key = ec.generate_private_key(ec.SECP256K1())
            public_key = private_key.public_key()
            timestamp = str(int(time.time()))
            message = timestamp.encode()
            signature = private_key.sign(message, algorithm)
            try:
                public_key.verify(signature, message, algorithm)
                verified = True
            except InvalidSignature:
                verified = False
            signature_hex = to_hex(signature)
            nodes.append(
                _Node(
                    id=node_id,
                    signature=signature_hex,
                    timestamp=timestamp,
                    hash_value=hash_signature(signature_hex),
                    public_key=public_key,
                    verify_result=verified,
                )
            )
        nodes.sort(key=lambda node: node.hash_value)
        return [node.id for node in nodes]