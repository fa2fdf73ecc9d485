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
import collections
import typing
import tensorflow as tf
import tf_bfv.python.nb_theory as nb_theory
from tf_bfv.python.bfv_errors import InvalidConfigurationError
from tf_bfv.python.decryption_precompute import compute_decryption_tables
from tf_bfv.python.decryption_precompute import shift_bits
from tf_bfv.python.encryption_precompute import compute_encryption_tables
from tf_bfv.python.modulus_chain import create_level_contexts
from tf_bfv.python.modulus_chain import generate_ciphertext_moduli
from tf_bfv.python.ring import RingContext64
from tf_bfv.python.ring import RingElement64

logger = tf.get_logger()

# Largest supported ciphertext prime size. 2^size must still be an exclusive
# upper bound representable as a uint64.
MAX_MODULUS_BITS = 63
MIN_MODULUS_BITS = 2

EncryptionTables = collections.namedtuple(
    "EncryptionTables", ["ql_modt", "neg_t_inv_modql"]
)
DecryptionTables = collections.namedtuple(
    "DecryptionTables", ["rational", "brational", "fractional", "bfractional"]
)


class BfvParameters64(tf.experimental.ExtensionType):
    """Public parameters of a leveled RNS BFV scheme.

    Level i covers the first num_levels - i ciphertext moduli, so level 0 has
    full precision and the last level only holds the first generated prime.
    Every table is indexed by level first. Instances are immutable.
    """

    moduli: tf.Tensor
    moduli_sizes: typing.Tuple[int, ...]
    degree: int
    plaintext_modulus: int
    level_contexts: typing.Tuple[RingContext64, ...]

    # Encryption
    ql_modt: tf.Tensor
    neg_t_inv_modql: typing.Tuple[RingElement64, ...]

    # Decryption
    t_qlhat_inv_modql_divql_modt: tf.RaggedTensor
    t_bqlhat_inv_modql_divql_modt: tf.RaggedTensor
    t_qlhat_inv_modql_divql_frac: tf.RaggedTensor
    t_bqlhat_inv_modql_divql_frac: tf.RaggedTensor
    max_bit_size_by2: int

    id_str: str

    @property
    def num_levels(self):
        return len(self.level_contexts)

    def moduli_list(self):
        return [int(q) for q in self.moduli.numpy()]

    def _check_level(self, level):
        if level < 0 or level >= self.num_levels:
            raise ValueError(
                f"Level must be in [0, {self.num_levels - 1}]. Got {level}."
            )

    def context_at_level(self, level):
        self._check_level(level)
        return self.level_contexts[level]

    def encryption_tables_at_level(self, level):
        self._check_level(level)
        return EncryptionTables(
            ql_modt=int(self.ql_modt[level].numpy()),
            neg_t_inv_modql=self.neg_t_inv_modql[level],
        )

    def decryption_tables_at_level(self, level):
        self._check_level(level)
        return DecryptionTables(
            rational=self.t_qlhat_inv_modql_divql_modt[level].numpy().tolist(),
            brational=self.t_bqlhat_inv_modql_divql_modt[level].numpy().tolist(),
            fractional=self.t_qlhat_inv_modql_divql_frac[level].numpy().tolist(),
            bfractional=self.t_bqlhat_inv_modql_divql_frac[level].numpy().tolist(),
        )


def _is_int(value):
    return isinstance(value, int) and not isinstance(value, bool)


def _validate_plaintext_modulus_and_degree(plaintext_modulus, degree):
    if not _is_int(plaintext_modulus) or plaintext_modulus <= 1:
        raise InvalidConfigurationError(
            f"Plaintext modulus must be an integer greater than 1. Got {plaintext_modulus}."
        )
    if plaintext_modulus >= 1 << 64:
        raise InvalidConfigurationError(
            f"Plaintext modulus must fit in 64 bits. Got {plaintext_modulus}."
        )
    if not _is_int(degree) or degree < 1 or degree & (degree - 1) != 0:
        raise InvalidConfigurationError(
            f"Polynomial degree must be a power of two. Got {degree}."
        )


def _validate_moduli_sizes(moduli_sizes):
    if len(moduli_sizes) == 0:
        raise InvalidConfigurationError("At least one modulus size is required.")
    for size in moduli_sizes:
        if not _is_int(size) or not MIN_MODULUS_BITS <= size <= MAX_MODULUS_BITS:
            raise InvalidConfigurationError(
                f"Modulus sizes must be integers in [{MIN_MODULUS_BITS}, "
                f"{MAX_MODULUS_BITS}]. Got {size}."
            )


def _validate_moduli(moduli, degree):
    if len(moduli) == 0:
        raise InvalidConfigurationError("At least one ciphertext modulus is required.")
    if len(set(moduli)) != len(moduli):
        raise InvalidConfigurationError(f"Ciphertext moduli must be distinct. Got {moduli}.")
    for q in moduli:
        if not _is_int(q) or not nb_theory.is_prime(q):
            raise InvalidConfigurationError(f"Ciphertext modulus {q} is not prime.")
        if not MIN_MODULUS_BITS <= q.bit_length() <= MAX_MODULUS_BITS:
            raise InvalidConfigurationError(
                f"Ciphertext modulus {q} must have between {MIN_MODULUS_BITS} "
                f"and {MAX_MODULUS_BITS} bits."
            )
        if q % (2 * degree) != 1:
            raise InvalidConfigurationError(
                f"Ciphertext modulus {q} is not congruent to 1 mod {2 * degree}."
            )


def _check_invariants(moduli, degree, level_contexts):
    moduli_count = len(moduli)
    if len(set(moduli)) != moduli_count:
        raise InvalidConfigurationError(f"Ciphertext moduli are not distinct: {moduli}.")
    if any(q % (2 * degree) != 1 for q in moduli):
        raise InvalidConfigurationError(
            f"Ciphertext moduli are not NTT friendly for degree {degree}: {moduli}."
        )
    if len(level_contexts) != moduli_count:
        raise InvalidConfigurationError(
            f"Expected {moduli_count} levels, got {len(level_contexts)}."
        )
    for level, context in enumerate(level_contexts):
        if context.moduli_list() != moduli[: moduli_count - level]:
            raise InvalidConfigurationError(
                f"Level {level} moduli {context.moduli_list()} are not a prefix "
                f"of the modulus chain {moduli}."
            )


def _assemble_parameters(moduli, moduli_sizes, plaintext_modulus, degree, id_str):
    with tf.name_scope("assemble_bfv_parameters64"):
        level_contexts = create_level_contexts(moduli, degree)
        _check_invariants(moduli, degree, level_contexts)

        ql_modt, neg_t_inv_modql = compute_encryption_tables(
            level_contexts, plaintext_modulus
        )

        b = shift_bits(moduli_sizes)
        (
            t_qlhat_inv_modql_divql_modt,
            t_bqlhat_inv_modql_divql_modt,
            t_qlhat_inv_modql_divql_frac,
            t_bqlhat_inv_modql_divql_frac,
        ) = compute_decryption_tables(level_contexts, plaintext_modulus, b)

        params = BfvParameters64(
            moduli=tf.constant(moduli, dtype=tf.uint64),
            moduli_sizes=tuple(moduli_sizes),
            degree=degree,
            plaintext_modulus=plaintext_modulus,
            level_contexts=tuple(level_contexts),
            ql_modt=ql_modt,
            neg_t_inv_modql=tuple(neg_t_inv_modql),
            t_qlhat_inv_modql_divql_modt=t_qlhat_inv_modql_divql_modt,
            t_bqlhat_inv_modql_divql_modt=t_bqlhat_inv_modql_divql_modt,
            t_qlhat_inv_modql_divql_frac=t_qlhat_inv_modql_divql_frac,
            t_bqlhat_inv_modql_divql_frac=t_bqlhat_inv_modql_divql_frac,
            max_bit_size_by2=b,
            id_str=id_str,
        )

    logger.info(
        f"Created BFV parameters with {len(moduli)} levels, degree {degree}, "
        f"plaintext modulus {plaintext_modulus} and moduli {moduli}."
    )
    return params


def create_bfv_parameters64(
    moduli_sizes,
    plaintext_modulus,
    degree,
    max_retries=None,
    read_from_cache=False,
    cache_path=None,
):
    """Generates one prime per entry of `moduli_sizes` and builds the level
    chain along with the encryption and decryption tables.

    Raises InvalidConfigurationError, InsufficientPrimesError or
    NonInvertibleError instead of returning incomplete parameters.
    """
    moduli_sizes = list(moduli_sizes)
    _validate_moduli_sizes(moduli_sizes)
    _validate_plaintext_modulus_and_degree(plaintext_modulus, degree)

    if read_from_cache and cache_path == None:
        raise InvalidConfigurationError(
            "A `cache_path` must be provided when `read_from_cache` is True."
        )

    id_str = str(hash((tuple(moduli_sizes), plaintext_modulus, degree)))
    if cache_path != None:
        moduli_cache_path = cache_path + "/" + id_str + "_moduli"

    if read_from_cache:
        try:
            cached_moduli = tf.io.parse_tensor(
                tf.io.read_file(moduli_cache_path), out_type=tf.uint64
            )
        except tf.errors.NotFoundError as e:
            raise InvalidConfigurationError(
                f"No cached moduli found at {moduli_cache_path}."
            ) from e
        moduli = [int(q) for q in cached_moduli.numpy()]
        _validate_moduli(moduli, degree)
        if [q.bit_length() for q in moduli] != moduli_sizes:
            raise InvalidConfigurationError(
                f"Cached moduli {moduli} do not match the sizes {moduli_sizes}."
            )
        logger.debug(f"Read ciphertext moduli from {moduli_cache_path}.")
    else:
        moduli = generate_ciphertext_moduli(moduli_sizes, degree, max_retries)

    params = _assemble_parameters(
        moduli, moduli_sizes, plaintext_modulus, degree, id_str
    )

    if cache_path != None and not read_from_cache:
        tf.io.write_file(
            moduli_cache_path,
            tf.io.serialize_tensor(tf.constant(moduli, dtype=tf.uint64)),
        )

    return params


def create_bfv_parameters_from_moduli64(main_moduli, plaintext_modulus, degree):
    """Builds the parameters over caller chosen primes. The primes play the
    role of generated ones, in the given order, and their bit lengths are
    taken as the requested sizes."""
    moduli = list(main_moduli)
    _validate_plaintext_modulus_and_degree(plaintext_modulus, degree)
    _validate_moduli(moduli, degree)

    moduli_sizes = [q.bit_length() for q in moduli]
    id_str = str(hash((tuple(moduli), plaintext_modulus, degree)))
    return _assemble_parameters(
        moduli, moduli_sizes, plaintext_modulus, degree, id_str
    )
