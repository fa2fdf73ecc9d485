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
import tensorflow as tf
import tf_bfv.python.nb_theory as nb_theory


class Representation:
    """Tags the domain a ring element's residues live in."""

    # Polynomial coefficients, i.e. the value domain.
    COEFFICIENT = "coefficient"
    # Evaluations at the odd powers of a primitive 2N-th root of unity, i.e.
    # the negacyclic NTT (transform) domain.
    EVALUATION = "evaluation"


_REPRESENTATIONS = (Representation.COEFFICIENT, Representation.EVALUATION)


def _bit_reverse(value, num_bits):
    result = 0
    for _ in range(num_bits):
        result = (result << 1) | (value & 1)
        value >>= 1
    return result


def _forward_ntt(values, modulus, psi_powers):
    # Cooley-Tukey butterflies, standard order in, bit-reversed order out.
    # psi_powers[k] holds psi^bitrev(k) so no separate pre-multiplication by
    # powers of psi is needed for the negacyclic wrap.
    a = list(values)
    n = len(a)
    t = n
    m = 1
    while m < n:
        t //= 2
        for i in range(m):
            j1 = 2 * i * t
            s = psi_powers[m + i]
            for j in range(j1, j1 + t):
                u = a[j]
                v = a[j + t] * s % modulus
                a[j] = (u + v) % modulus
                a[j + t] = (u - v) % modulus
        m *= 2
    return a


def _inverse_ntt(values, modulus, psi_inv_powers, degree_inv):
    # Gentleman-Sande butterflies, bit-reversed order in, standard order out.
    a = list(values)
    n = len(a)
    t = 1
    m = n
    while m > 1:
        j1 = 0
        h = m // 2
        for i in range(h):
            s = psi_inv_powers[h + i]
            for j in range(j1, j1 + t):
                u = a[j]
                v = a[j + t]
                a[j] = (u + v) % modulus
                a[j + t] = (u - v) * s % modulus
            j1 += 2 * t
        t *= 2
        m = h
    return [x * degree_inv % modulus for x in a]


class RingContext64(tf.experimental.ExtensionType):
    """The ring Z_Q[X] / (X^degree + 1) in RNS form, where Q is the product of
    `moduli`, together with the per-modulus NTT tables."""

    moduli: tf.Tensor
    degree: int
    _psi_powers: tf.Tensor
    _psi_inv_powers: tf.Tensor
    _degree_inv: tf.Tensor

    @property
    def num_moduli(self):
        return int(self.moduli.shape[0])

    def moduli_list(self):
        return [int(q) for q in self.moduli.numpy()]

    def modulus(self):
        """Product of all moduli as an arbitrary precision integer."""
        return math.prod(self.moduli_list())

    def is_compatible(self, other):
        return (
            isinstance(other, RingContext64)
            and self.degree == other.degree
            and self.moduli_list() == other.moduli_list()
        )


def create_ring_context64(moduli, degree):
    moduli = [int(q) for q in moduli]
    if len(moduli) == 0:
        raise ValueError("A ring context needs at least one modulus.")
    if degree < 1 or degree & (degree - 1) != 0:
        raise ValueError(f"Ring degree must be a power of two. Got {degree}.")

    log_n = degree.bit_length() - 1
    psi_powers = []
    psi_inv_powers = []
    degree_inv = []
    for q in moduli:
        psi = nb_theory.primitive_root_of_unity(2 * degree, q)
        psi_inv = nb_theory.mod_inverse(psi, q)
        psi_powers.append(
            [pow(psi, _bit_reverse(k, log_n), q) for k in range(degree)]
        )
        psi_inv_powers.append(
            [pow(psi_inv, _bit_reverse(k, log_n), q) for k in range(degree)]
        )
        degree_inv.append(nb_theory.mod_inverse(degree, q))

    with tf.name_scope("create_ring_context64"):
        return RingContext64(
            moduli=tf.constant(moduli, dtype=tf.uint64),
            degree=degree,
            _psi_powers=tf.constant(psi_powers, dtype=tf.uint64),
            _psi_inv_powers=tf.constant(psi_inv_powers, dtype=tf.uint64),
            _degree_inv=tf.constant(degree_inv, dtype=tf.uint64),
        )


class RingElement64(tf.experimental.ExtensionType):
    """A polynomial of a RingContext64, stored as one row of residues per
    modulus. The representation tag is part of the value; arithmetic never
    mixes representations implicitly."""

    _raw_tensor: tf.Tensor
    _context: RingContext64
    _representation: str

    @property
    def context(self):
        return self._context

    @property
    def representation(self):
        return self._representation

    def residues(self):
        """Returns the residues as nested Python ints, [num_moduli][degree]."""
        return self._raw_tensor.numpy().tolist()

    def change_representation(self, representation):
        """Returns this element converted to `representation`. The element
        itself is left untouched."""
        if representation not in _REPRESENTATIONS:
            raise ValueError(f"Unknown representation {representation}.")
        if representation == self._representation:
            return self

        moduli = self._context.moduli_list()
        rows = self.residues()
        if representation == Representation.EVALUATION:
            psi_powers = self._context._psi_powers.numpy().tolist()
            rows = [
                _forward_ntt(row, q, psi)
                for row, q, psi in zip(rows, moduli, psi_powers)
            ]
        else:
            psi_inv_powers = self._context._psi_inv_powers.numpy().tolist()
            degree_inv = self._context._degree_inv.numpy().tolist()
            rows = [
                _inverse_ntt(row, q, psi_inv, n_inv)
                for row, q, psi_inv, n_inv in zip(
                    rows, moduli, psi_inv_powers, degree_inv
                )
            ]

        return RingElement64(
            _raw_tensor=tf.constant(rows, dtype=tf.uint64),
            _context=self._context,
            _representation=representation,
        )

    def to_integers(self):
        """CRT-reconstructs every coefficient as an integer in [0, Q)."""
        if self._representation != Representation.COEFFICIENT:
            raise ValueError(
                "Integers can only be read from the coefficient representation. "
                "Call change_representation first."
            )

        moduli = self._context.moduli_list()
        big_q = self._context.modulus()
        crt_basis = []
        for q in moduli:
            qhat = big_q // q
            crt_basis.append(qhat * nb_theory.mod_inverse(qhat, q) % big_q)

        rows = self.residues()
        return [
            sum(row[j] * basis for row, basis in zip(rows, crt_basis)) % big_q
            for j in range(self._context.degree)
        ]

    def _combine(self, other, op, name):
        if not isinstance(other, RingElement64):
            raise ValueError(f"Unsupported type for {name}. Got {type(other)}.")
        if self._representation != other._representation:
            raise ValueError(
                f"Cannot {name} a {self._representation} element with a "
                f"{other._representation} element. Convert one of them first."
            )
        if not self._context.is_compatible(other._context):
            raise ValueError(f"Cannot {name} elements of different ring contexts.")

        moduli = self._context.moduli_list()
        rows = [
            [op(x, y) % q for x, y in zip(row_a, row_b)]
            for row_a, row_b, q in zip(self.residues(), other.residues(), moduli)
        ]
        return RingElement64(
            _raw_tensor=tf.constant(rows, dtype=tf.uint64),
            _context=self._context,
            _representation=self._representation,
        )

    def __add__(self, other):
        return self._combine(other, lambda x, y: x + y, "add")

    def __sub__(self, other):
        return self._combine(other, lambda x, y: x - y, "subtract")

    def __mul__(self, other):
        if self._representation != Representation.EVALUATION:
            raise ValueError(
                "Ring elements are multiplied pointwise in the evaluation "
                "representation. Convert both operands first."
            )
        return self._combine(other, lambda x, y: x * y, "multiply")

    def __neg__(self):
        moduli = self._context.moduli_list()
        rows = [[-x % q for x in row] for row, q in zip(self.residues(), moduli)]
        return RingElement64(
            _raw_tensor=tf.constant(rows, dtype=tf.uint64),
            _context=self._context,
            _representation=self._representation,
        )


def ring_element_from_integers(
    values, context, representation=Representation.COEFFICIENT
):
    """Reduces `values`, one arbitrary precision integer per slot, into every
    modulus of `context`. The values are interpreted in `representation`."""
    if representation not in _REPRESENTATIONS:
        raise ValueError(f"Unknown representation {representation}.")
    if len(values) != context.degree:
        raise ValueError(
            f"Expected {context.degree} values, got {len(values)}."
        )

    rows = [[int(v) % q for v in values] for q in context.moduli_list()]
    return RingElement64(
        _raw_tensor=tf.constant(rows, dtype=tf.uint64),
        _context=context,
        _representation=representation,
    )


def ring_element_from_constant(
    value, context, representation=Representation.COEFFICIENT
):
    """Returns the constant polynomial `value`. A constant evaluates to itself
    at every root, so in the evaluation representation every slot holds it."""
    if representation == Representation.EVALUATION:
        values = [value] * context.degree
    else:
        values = [value] + [0] * (context.degree - 1)
    return ring_element_from_integers(values, context, representation)
