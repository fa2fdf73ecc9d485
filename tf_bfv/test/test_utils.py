#!/usr/bin/python
#
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

# Primes congruent to 1 mod 16, i.e. NTT friendly for degree 8.
SMALL_NTT_PRIMES_DEGREE_8 = [97, 113, 193, 241, 257, 337]


def negacyclic_multiply(a, b, modulus):
    """Schoolbook product of two polynomials in Z_modulus[X] / (X^n + 1)."""
    n = len(a)
    result = [0] * n
    for i in range(n):
        for j in range(n):
            if i + j < n:
                result[i + j] += a[i] * b[j]
            else:
                result[i + j - n] -= a[i] * b[j]
    return [c % modulus for c in result]


def encode_with_noise(message, noise, big_q, plaintext_modulus):
    """Returns [floor(Q / t) * message + noise]_Q, the value a BFV decryption
    would see before scaling down."""
    delta = big_q // plaintext_modulus
    return (delta * message + noise) % big_q


def scale_and_round(residues, tables, plaintext_modulus, b):
    """Recovers [round(t * x / Q)]_t from the residues of x using the split
    decryption tables and two accumulators per input.

    Each residue is split as x_i = x_hi * 2^b + x_lo. The low half is weighed
    by the plain tables and the high half by the 2^b shifted ones, so every
    floating point term stays below about 2^b.
    """
    low_mask = (1 << b) - 1
    rational_sum = 0
    fractional_sum = 0.0
    for x, rational, brational, fractional, bfractional in zip(
        residues,
        tables.rational,
        tables.brational,
        tables.fractional,
        tables.bfractional,
    ):
        x_lo = x & low_mask
        x_hi = x >> b
        rational_sum += x_lo * rational + x_hi * brational
        fractional_sum += x_lo * fractional + x_hi * bfractional

    return (rational_sum + math.floor(fractional_sum + 0.5)) % plaintext_modulus
