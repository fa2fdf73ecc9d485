# Copyright 2023 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
import math

from tf_bfv.python.bfv_errors import NonInvertibleError

# Deterministic Miller-Rabin witnesses. Testing against the first twelve primes
# is exact for every n < 3.3 * 10^24, which covers all 64-bit moduli.
_MILLER_RABIN_BASES = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37)


def is_prime(n):
    if n < 2:
        return False
    for p in _MILLER_RABIN_BASES:
        if n % p == 0:
            return n == p

    d = n - 1
    s = 0
    while d % 2 == 0:
        d //= 2
        s += 1

    for a in _MILLER_RABIN_BASES:
        x = pow(a, d, n)
        if x == 1 or x == n - 1:
            continue
        for _ in range(s - 1):
            x = x * x % n
            if x == n - 1:
                break
        else:
            return False
    return True


def generate_prime(num_bits, ntt_factor, upper_bound):
    """Returns the largest prime p with 2^(num_bits - 1) <= p < upper_bound,
    p < 2^num_bits and p = 1 mod ntt_factor, or None if the range holds no
    such prime.

    The search walks downward over the candidates congruent to 1 modulo
    `ntt_factor`, so repeated calls with the same arguments return the same
    prime and lowering `upper_bound` to a previous result yields the next
    smaller one.
    """
    if num_bits < 2 or ntt_factor < 1:
        return None

    lower_bound = 1 << (num_bits - 1)
    candidate = min(1 << num_bits, upper_bound) - 1
    if candidate < lower_bound:
        return None

    # Round down to the nearest value congruent to 1 mod ntt_factor.
    candidate -= (candidate - 1) % ntt_factor
    while candidate >= lower_bound:
        if is_prime(candidate):
            return candidate
        candidate -= ntt_factor
    return None


def mod_inverse(value, modulus):
    """Returns value^-1 mod modulus after checking that it exists."""
    value %= modulus
    if math.gcd(value, modulus) != 1:
        raise NonInvertibleError(
            f"{value} is not invertible modulo {modulus}, they share the factor "
            f"{math.gcd(value, modulus)}."
        )
    return pow(value, -1, modulus)


def primitive_root_of_unity(order, modulus):
    """Returns the smallest-generator primitive `order`-th root of unity modulo
    the prime `modulus`. `order` must be a power of two dividing modulus - 1."""
    if (modulus - 1) % order != 0:
        raise ValueError(
            f"Modulus {modulus} has no primitive {order}-th root of unity."
        )
    if order == 1:
        return 1

    cofactor = (modulus - 1) // order
    for x in range(2, modulus):
        root = pow(x, cofactor, modulus)
        # For a power-of-two order, root is primitive iff root^(order/2) = -1.
        if pow(root, order // 2, modulus) == modulus - 1:
            return root
    raise ValueError(f"No primitive {order}-th root of unity modulo {modulus}.")
