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


class TestNbTheory(tf.test.TestCase):
    def test_is_prime(self):
        primes = [2, 3, 17, 7681, 12289, 2**31 - 1, 2**61 - 1, 18446744073709551557]
        composites = [0, 1, 4, 561, 1105, 7681 * 12289, 2**61 + 1, 2**64 - 1]
        for p in primes:
            self.assertTrue(tf_bfv.is_prime(p), f"{p} should be prime")
        for c in composites:
            self.assertFalse(tf_bfv.is_prime(c), f"{c} should be composite")

    def test_generate_prime_is_largest_in_range(self):
        num_bits = 12
        ntt_factor = 16
        prime = tf_bfv.generate_prime(num_bits, ntt_factor, 1 << num_bits)

        expected = max(
            p
            for p in range(1 << (num_bits - 1), 1 << num_bits)
            if p % ntt_factor == 1 and tf_bfv.is_prime(p)
        )
        self.assertEqual(prime, expected)

    def test_generate_prime_respects_upper_bound(self):
        for num_bits in [20, 30, 40, 50, 60]:
            with self.subTest(num_bits=num_bits):
                first = tf_bfv.generate_prime(num_bits, 2048, 1 << num_bits)
                second = tf_bfv.generate_prime(num_bits, 2048, first)

                for p in [first, second]:
                    self.assertTrue(tf_bfv.is_prime(p))
                    self.assertEqual(p % 2048, 1)
                    self.assertEqual(p.bit_length(), num_bits)
                self.assertLess(second, first)

    def test_generate_prime_exhausted(self):
        # No 4-bit number is congruent to 1 mod 2048.
        self.assertIsNone(tf_bfv.generate_prime(4, 2048, 1 << 4))
        # 17 is the only 5-bit prime congruent to 1 mod 16.
        self.assertEqual(tf_bfv.generate_prime(5, 16, 1 << 5), 17)
        self.assertIsNone(tf_bfv.generate_prime(5, 16, 17))

    def test_mod_inverse(self):
        self.assertEqual(tf_bfv.mod_inverse(3, 7), 5)
        q = (2**61 - 1) * 12289
        inv = tf_bfv.mod_inverse(65537, q)
        self.assertEqual(inv * 65537 % q, 1)

    def test_mod_inverse_not_coprime(self):
        with self.assertRaises(tf_bfv.NonInvertibleError):
            tf_bfv.mod_inverse(6, 9)
        with self.assertRaises(tf_bfv.NonInvertibleError):
            tf_bfv.mod_inverse(97, 97 * 113)


if __name__ == "__main__":
    tf.test.main()
