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
import tensorflow as tf
import tf_bfv


class TestModulusChain(tf.test.TestCase):
    def _check_primes(self, moduli, moduli_sizes, degree):
        self.assertEqual(len(moduli), len(moduli_sizes))
        self.assertEqual(len(set(moduli)), len(moduli))
        for prime, size in zip(moduli, moduli_sizes):
            self.assertTrue(tf_bfv.is_prime(prime))
            self.assertGreaterEqual(prime, 1 << (size - 1))
            self.assertLess(prime, 1 << size)
            self.assertEqual(prime % (2 * degree), 1)

    def test_generate_moduli(self):
        for moduli_sizes, degree in [
            ([30, 30], 8),
            ([60, 50, 40], 1024),
            ([17, 20, 23, 26], 16),
        ]:
            with self.subTest(moduli_sizes=moduli_sizes, degree=degree):
                moduli = tf_bfv.generate_ciphertext_moduli(moduli_sizes, degree)
                self._check_primes(moduli, moduli_sizes, degree)

    def test_duplicate_sizes_search_downward(self):
        moduli = tf_bfv.generate_ciphertext_moduli([40, 40, 40], 64)
        self._check_primes(moduli, [40, 40, 40], 64)
        self.assertGreater(moduli[0], moduli[1])
        self.assertGreater(moduli[1], moduli[2])
        self.assertEqual(moduli[0], tf_bfv.generate_prime(40, 128, 1 << 40))
        self.assertEqual(moduli[1], tf_bfv.generate_prime(40, 128, moduli[0]))

    def test_deterministic(self):
        a = tf_bfv.generate_ciphertext_moduli([50, 45, 50], 256)
        b = tf_bfv.generate_ciphertext_moduli([50, 45, 50], 256)
        self.assertEqual(a, b)

    def test_no_prime_in_range(self):
        # 2 * degree = 2048 is larger than every 4-bit number.
        with self.assertRaises(tf_bfv.InsufficientPrimesError):
            tf_bfv.generate_ciphertext_moduli([4], 1024)

    def test_range_exhausted_by_duplicates(self):
        # 17 is the only 5-bit prime congruent to 1 mod 16.
        self.assertEqual(tf_bfv.generate_ciphertext_moduli([5], 8), [17])
        with self.assertRaises(tf_bfv.InsufficientPrimesError):
            tf_bfv.generate_ciphertext_moduli([5, 5], 8)

    def test_retry_cap(self):
        with self.assertRaisesRegex(tf_bfv.InsufficientPrimesError, "duplicates"):
            tf_bfv.generate_ciphertext_moduli([30, 30], 8, max_retries=0)

        moduli = tf_bfv.generate_ciphertext_moduli([30, 30, 30], 8, max_retries=2)
        self._check_primes(moduli, [30, 30, 30], 8)

    def test_level_contexts(self):
        moduli = tf_bfv.generate_ciphertext_moduli([30, 35, 40, 45], 8)
        levels = tf_bfv.create_level_contexts(moduli, 8)

        self.assertLen(levels, len(moduli))
        for i, context in enumerate(levels):
            self.assertEqual(context.moduli_list(), moduli[: len(moduli) - i])
            self.assertEqual(context.degree, 8)
        self.assertEqual(levels[-1].moduli_list(), [moduli[0]])


if __name__ == "__main__":
    tf.test.main()
