"""
Translators from abstract sort, value and operator requests to Z3.
"""

from .op_translator import EXTRA_OP_KINDS, DISPATCH_TABLE, OpSpec, OpTranslator, unsupported_op_kinds
from .sort_translator import SortTranslator
from .value_translator import ValueTranslator, bv_numeral_to_int

__all__ = [
    "EXTRA_OP_KINDS",
    "DISPATCH_TABLE",
    "OpSpec",
    "OpTranslator",
    "unsupported_op_kinds",
    "SortTranslator",
    "ValueTranslator",
    "bv_numeral_to_int",
]
