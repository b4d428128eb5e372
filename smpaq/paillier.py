"""Paillier additively homomorphic encryption over fixed primes."""

from __future__ import annotations

import math
import secrets
from typing import Iterable

_P = int(
    "170369836905864867684309212653434262426987938535888948303343979225024835886168078093796818886592237348510637694670620820366525714457605719170269197764594241739848193424434938416550394419857471465453775845544086337932975312352204971593851342578781185058634405681854702110933438192294613993510873668567928731243"
)
_Q = int(
    "149768149729033307895505028003794196818268474299954831138524826553669917000883960981312528977336320600301799133665793752383828006419796280219516217446131872011208294375626716112087760647019520809744249184210808530036172164648089977300270273261641176103449053170269377444096575049406585536331422165063744966029"
)


def l_function(x: int, n: int) -> int:
    return (x - 1) // n


def encrypt_number(m: int, n: int, g: int) -> int:
    """Encrypt m under the public key (n, g) with fresh randomness."""
    n_square = n * n
    r = secrets.randbelow(n)
    return (pow(g, m, n_square) * pow(r, n, n_square)) % n_square


def decrypt_number(c: int, n: int, lambda_: int, lambda_inverse: int) -> int:
    return (l_function(pow(c, lambda_, n * n), n) * lambda_inverse) % n


def encrypt(numbers: Iterable[int], n: int, g: int) -> list[int]:
    return [encrypt_number(number, n, g) for number in numbers]


def random_numbers(count: int = 8) -> list[int]:
    """count random integers between 1 and 10000 inclusive."""
    return [secrets.randbelow(10000) + 1 for _ in range(count)]


class Paillier:
    """Key pair built from the fixed primes."""

    def __init__(self, bit_length: int = 1024) -> None:
        self.bit_length = bit_length
        self.p = _P
        self.q = _Q
        self.n = self.p * self.q
        self.phi = (self.p - 1) * (self.q - 1)
        self.lambda_ = self.phi // math.gcd(self.p - 1, self.q - 1)
        self.lambda_inverse = pow(self.lambda_, -1, self.n)
        self.g = self.n + 1
        self.r = secrets.randbelow(self.n)

    def encrypted_sum(self, values: Iterable[int]) -> int:
        """Ciphertext of the sum of values, built homomorphically."""
        n_square = self.n * self.n
        total = encrypt_number(0, self.n, self.g)
        for value in values:
            total = (total * encrypt_number(value, self.n, self.g)) % n_square
        return total