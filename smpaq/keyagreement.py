"""Diffie-Hellman key agreement."""

from __future__ import annotations

from cryptography.hazmat.primitives.asymmetric import dh


def compute_shared_secret(
    private_key: dh.DHPrivateKey, peer_public_key: dh.DHPublicKey
) -> list[int]:
    """Derive the shared secret and fold it into one signed 32-bit integer."""
    secret = private_key.exchange(peer_public_key)
    value = int.from_bytes(secret, "big") & 0xFFFFFFFF
    if value >= 1 << 31:
        value -= 1 << 32
    return [value]


def generate_key(parameters: dh.DHParameters) -> dh.DHPrivateKey:
    return parameters.generate_private_key()


class KeyAgreement:
    """Group parameters plus a lazily created default key."""

    def __init__(self, key_size: int = 1024, parameters: dh.DHParameters | None = None) -> None:
        if parameters is None:
            parameters = dh.generate_parameters(generator=2, key_size=key_size)
        self.parameters = parameters
        self._key: dh.DHPrivateKey | None = None

    def key(self, create_new: bool = False) -> dh.DHPrivateKey:
        """The cached key, or a fresh uncached one when create_new is set."""
        if create_new:
            return generate_key(self.parameters)
        if self._key is None:
            self._key = generate_key(self.parameters)
        return self._key

    def keys(self, n: int) -> list[dh.DHPrivateKey]:
        return [self.key(True) for _ in range(n)]