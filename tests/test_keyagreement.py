import pytest
from cryptography.hazmat.primitives.asymmetric import dh

from smpaq.keyagreement import KeyAgreement, compute_shared_secret, generate_key

_GROUP_PRIME = int(
    "FFFFFFFFFFFFFFFFC90FDAA22168C234C4C6628B80DC1CD1"
    "29024E088A67CC74020BBEA63B139B22514A08798E3404DD"
    "EF9519B3CD3A431B302B0A6DF25F14374FE1356D6D51C245"
    "E485B576625E7EC6F44C42E9A637ED6B0BFF5CB6F406B7ED"
    "EE386BFB5A899FA5AE9F24117C4B1FE649286651ECE65381"
    "FFFFFFFFFFFFFFFF",
    16,
)


@pytest.fixture(scope="module")
def parameters():
    return dh.DHParameterNumbers(_GROUP_PRIME, 2).parameters()


def test_shared_secret_is_symmetric(parameters):
    alice = generate_key(parameters)
    bob = generate_key(parameters)
    first = compute_shared_secret(alice, bob.public_key())
    second = compute_shared_secret(bob, alice.public_key())
    assert first == second
    assert len(first) == 1
    assert -(1 << 31) <= first[0] < (1 << 31)


def test_cached_key_is_reused(parameters):
    agreement = KeyAgreement(parameters=parameters)
    first = agreement.key()
    second = agreement.key()
    assert second.private_numbers().x == first.private_numbers().x
    assert second.parameters().parameter_numbers().p == _GROUP_PRIME
    peer = generate_key(parameters)
    assert compute_shared_secret(first, peer.public_key()) == compute_shared_secret(
        peer, second.public_key()
    )


def test_create_new_does_not_replace_cache(parameters):
    agreement = KeyAgreement(parameters=parameters)
    cached = agreement.key()
    fresh = agreement.key(True)
    assert fresh.private_numbers().x != cached.private_numbers().x
    assert agreement.key() is cached


def test_keys_are_distinct(parameters):
    agreement = KeyAgreement(parameters=parameters)
    keys = agreement.keys(3)
    assert len(keys) == 3
    assert len({key.private_numbers().x for key in keys}) == 3