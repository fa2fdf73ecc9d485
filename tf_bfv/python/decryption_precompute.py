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

logger = tf.get_logger()


def shift_bits(moduli_sizes):
    """Returns b, half the largest requested modulus size. Every level shares
    the same b, even levels whose own moduli are smaller."""
    return max(moduli_sizes) // 2


def _ragged(rows, dtype):
    flat = [value for row in rows for value in row]
    return tf.RaggedTensor.from_row_lengths(
        values=tf.constant(flat, dtype=dtype),
        row_lengths=tf.constant([len(row) for row in rows], dtype=tf.int64),
    )


def compute_decryption_tables(level_contexts, plaintext_modulus, b):
    """Computes the scale-and-round tables used by decryption.

    Decryption recovers [round(t * x / Q)]_t from the residues x_i of x by
    summing x_i * t * [qhat_i^-1]_qi / q_i over all moduli. For each q_i the
    summand's factor is split into an integer part mod t (`rational`) and a
    fraction in [0, 1) (`fractional`). The same split is stored for the factor
    multiplied by 2^b (`brational`, `bfractional`) so a consumer can write
    x_i = x_hi * 2^b + x_lo and keep both floating point accumulators bounded
    by roughly 2^b times the number of moduli.

    Returns four tf.RaggedTensors indexed [level, modulus].
    """
    t = plaintext_modulus
    shift = 1 << b

    t_qlhat_inv_modql_divql_modt = []
    t_bqlhat_inv_modql_divql_modt = []
    t_qlhat_inv_modql_divql_frac = []
    t_bqlhat_inv_modql_divql_frac = []
    for level, context in enumerate(level_contexts):
        ql = context.modulus()

        rationals = []
        brationals = []
        fractionals = []
        bfractionals = []
        for qi in context.moduli_list():
            # [qihat^-1]_qi
            qihat_inv = nb_theory.mod_inverse(ql // qi, qi)
            bqihat_inv = qihat_inv * shift % qi

            # [floor(t * qihat_inv / qi)]_t
            rationals.append(qihat_inv * t // qi % t)
            brationals.append(bqihat_inv * t // qi % t)

            # ((t * qihat_inv) mod qi) / qi, correctly rounded.
            fractionals.append(qihat_inv * t % qi / qi)
            bfractionals.append(bqihat_inv * t % qi / qi)

        t_qlhat_inv_modql_divql_modt.append(rationals)
        t_bqlhat_inv_modql_divql_modt.append(brationals)
        t_qlhat_inv_modql_divql_frac.append(fractionals)
        t_bqlhat_inv_modql_divql_frac.append(bfractionals)
        logger.debug(f"Computed decryption tables for level {level}.")

    return (
        _ragged(t_qlhat_inv_modql_divql_modt, tf.uint64),
        _ragged(t_bqlhat_inv_modql_divql_modt, tf.uint64),
        _ragged(t_qlhat_inv_modql_divql_frac, tf.float64),
        _ragged(t_bqlhat_inv_modql_divql_frac, tf.float64),
    )
