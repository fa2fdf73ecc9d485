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
from tf_bfv.python.ring import Representation
from tf_bfv.python.ring import ring_element_from_constant

logger = tf.get_logger()


def compute_encryption_tables(level_contexts, plaintext_modulus):
    """Computes, for each level with ciphertext modulus Q, [Q]_t and the
    constant [(-t)^-1]_Q in the evaluation representation.

    Encryption scales the message by -t^-1 mod Q. Keeping the constant in the
    evaluation representation spares one forward NTT per encryption.
    """
    ql_modt = []
    neg_t_inv_modql = []
    for level, context in enumerate(level_contexts):
        q = context.modulus()

        ql_modt.append(q % plaintext_modulus)

        # Raises NonInvertibleError unless gcd(t, Q) = 1.
        neg_t_inv_modq = nb_theory.mod_inverse((q - plaintext_modulus) % q, q)
        neg_t_inv_modq = ring_element_from_constant(
            neg_t_inv_modq, context, Representation.COEFFICIENT
        )
        neg_t_inv_modql.append(
            neg_t_inv_modq.change_representation(Representation.EVALUATION)
        )
        logger.debug(f"Computed encryption constants for level {level}.")

    return tf.constant(ql_modt, dtype=tf.uint64), neg_t_inv_modql
