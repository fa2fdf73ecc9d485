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
from __future__ import absolute_import

from tf_bfv.python.bfv_parameters import BfvParameters64
from tf_bfv.python.bfv_parameters import create_bfv_parameters64
from tf_bfv.python.bfv_parameters import create_bfv_parameters_from_moduli64
from tf_bfv.python.bfv_parameters import EncryptionTables
from tf_bfv.python.bfv_parameters import DecryptionTables

from tf_bfv.python.bfv_errors import BfvParameterError
from tf_bfv.python.bfv_errors import InvalidConfigurationError
from tf_bfv.python.bfv_errors import InsufficientPrimesError
from tf_bfv.python.bfv_errors import NonInvertibleError

from tf_bfv.python.modulus_chain import generate_ciphertext_moduli
from tf_bfv.python.modulus_chain import create_level_contexts

from tf_bfv.python.encryption_precompute import compute_encryption_tables

from tf_bfv.python.decryption_precompute import compute_decryption_tables
from tf_bfv.python.decryption_precompute import shift_bits

from tf_bfv.python.ring import Representation
from tf_bfv.python.ring import RingContext64
from tf_bfv.python.ring import RingElement64
from tf_bfv.python.ring import create_ring_context64
from tf_bfv.python.ring import ring_element_from_constant
from tf_bfv.python.ring import ring_element_from_integers

from tf_bfv.python.nb_theory import is_prime
from tf_bfv.python.nb_theory import generate_prime
from tf_bfv.python.nb_theory import mod_inverse
