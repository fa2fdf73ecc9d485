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
import tensorflow as tf
import tf_bfv.python.nb_theory as nb_theory
from tf_bfv.python.bfv_errors import InsufficientPrimesError
from tf_bfv.python.ring import create_ring_context64

logger = tf.get_logger()


def generate_ciphertext_moduli(moduli_sizes, degree, max_retries=None):
    """Picks one distinct NTT-friendly prime per requested bit size, in order.

    Each prime is the largest prime of its size that is congruent to 1 mod
    2 * degree. When that prime was already taken by an earlier size, the
    search restarts strictly below it. The number of such restarts for one
    size is capped by `max_retries`, or by default by the number of primes
    accepted so far plus one. Since the search only moves downward, every
    restart skips a distinct earlier prime and the default cap is never hit
    by a well-formed request.
    """
    ntt_factor = 2 * degree
    ciphertext_moduli = []
    for size in moduli_sizes:
        upper_bound = 1 << size
        retry_cap = (
            max_retries if max_retries is not None else len(ciphertext_moduli) + 1
        )
        retries = 0
        while True:
            prime = nb_theory.generate_prime(size, ntt_factor, upper_bound)
            if prime is None:
                raise InsufficientPrimesError(
                    f"Not enough {size}-bit primes congruent to 1 mod {ntt_factor} "
                    f"below {upper_bound}. Already selected {ciphertext_moduli}."
                )
            if prime not in ciphertext_moduli:
                logger.debug(f"Selected {size}-bit ciphertext modulus {prime}.")
                ciphertext_moduli.append(prime)
                break

            retries += 1
            if retries > retry_cap:
                raise InsufficientPrimesError(
                    f"Gave up searching for a {size}-bit prime after {retry_cap} "
                    f"duplicates. Already selected {ciphertext_moduli}."
                )
            logger.warning(
                f"{size}-bit prime {prime} is already in the modulus chain, "
                "searching below it."
            )
            upper_bound = prime

    return ciphertext_moduli


def create_level_contexts(ciphertext_moduli, degree):
    """Returns one ring context per level. Level 0 uses every modulus and each
    following level drops the last generated one."""
    moduli_count = len(ciphertext_moduli)
    with tf.name_scope("create_level_contexts"):
        return [
            create_ring_context64(ciphertext_moduli[: moduli_count - i], degree)
            for i in range(moduli_count)
        ]
