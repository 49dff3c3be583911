"""
Kinds shared between the fuzzing harness and the Z3 backend.

Sort kinds, theories, special values and numeral bases are closed sets and
modelled as enums. Operator kinds are plain strings so that backends can
register their own kinds next to the canonical ones.
"""
from enum import Enum


class SortKind(Enum):
    """Abstract sort kinds."""
    ARRAY = "SORT_ARRAY"
    BAG = "SORT_BAG"
    BOOL = "SORT_BOOL"
    BV = "SORT_BV"
    DT = "SORT_DT"
    FF = "SORT_FF"
    FP = "SORT_FP"
    FUN = "SORT_FUN"
    INT = "SORT_INT"
    REAL = "SORT_REAL"
    REGLAN = "SORT_REGLAN"
    RM = "SORT_RM"
    SEQ = "SORT_SEQ"
    SET = "SORT_SET"
    STRING = "SORT_STRING"
    UNINTERPRETED = "SORT_UNINTERPRETED"
    ANY = "SORT_ANY"

    def __str__(self) -> str:
        return self.value


class Theory(Enum):
    """Theories a backend may declare in its profile."""
    ARRAY = "THEORY_ARRAY"
    BAG = "THEORY_BAG"
    BOOL = "THEORY_BOOL"
    BV = "THEORY_BV"
    DT = "THEORY_DT"
    FF = "THEORY_FF"
    FP = "THEORY_FP"
    INT = "THEORY_INT"
    QUANT = "THEORY_QUANT"
    REAL = "THEORY_REAL"
    SEQ = "THEORY_SEQ"
    SET = "THEORY_SET"
    STRING = "THEORY_STRING"
    UF = "THEORY_UF"

    def __str__(self) -> str:
        return self.value


class SpecialValueKind(Enum):
    """Named constants per theory family."""
    BV_ZERO = "SPECIAL_VALUE_BV_ZERO"
    BV_ONE = "SPECIAL_VALUE_BV_ONE"
    BV_ONES = "SPECIAL_VALUE_BV_ONES"
    BV_MIN_SIGNED = "SPECIAL_VALUE_BV_MIN_SIGNED"
    BV_MAX_SIGNED = "SPECIAL_VALUE_BV_MAX_SIGNED"
    FP_NAN = "SPECIAL_VALUE_FP_NAN"
    FP_POS_INF = "SPECIAL_VALUE_FP_POS_INF"
    FP_NEG_INF = "SPECIAL_VALUE_FP_NEG_INF"
    FP_POS_ZERO = "SPECIAL_VALUE_FP_POS_ZERO"
    FP_NEG_ZERO = "SPECIAL_VALUE_FP_NEG_ZERO"
    RM_RNA = "SPECIAL_VALUE_RM_RNA"
    RM_RNE = "SPECIAL_VALUE_RM_RNE"
    RM_RTN = "SPECIAL_VALUE_RM_RTN"
    RM_RTP = "SPECIAL_VALUE_RM_RTP"
    RM_RTZ = "SPECIAL_VALUE_RM_RTZ"

    def __str__(self) -> str:
        return self.value


class Base(Enum):
    """Numeral bases for bit-vector literals (value is the radix)."""
    BIN = 2
    DEC = 10
    HEX = 16


# Arity marker for n-ary operators (at least two arguments).
N_ARGS = -1


class Op:
    """Canonical operator kinds.

    Kinds are strings; `Op.ALL` holds every canonical kind so that a backend
    can report the ones it has no dispatch path for.
    """
    # Core
    DISTINCT = "OP_DISTINCT"
    EQUAL = "OP_EQUAL"
    ITE = "OP_ITE"

    # Boolean
    AND = "OP_AND"
    OR = "OP_OR"
    NOT = "OP_NOT"
    XOR = "OP_XOR"
    IMPLIES = "OP_IMPLIES"

    # Arrays
    ARRAY_SELECT = "OP_ARRAY_SELECT"
    ARRAY_STORE = "OP_ARRAY_STORE"

    # Bit-vectors
    BV_EXTRACT = "OP_BV_EXTRACT"
    BV_REPEAT = "OP_BV_REPEAT"
    BV_ROTATE_LEFT = "OP_BV_ROTATE_LEFT"
    BV_ROTATE_RIGHT = "OP_BV_ROTATE_RIGHT"
    BV_SIGN_EXTEND = "OP_BV_SIGN_EXTEND"
    BV_ZERO_EXTEND = "OP_BV_ZERO_EXTEND"
    BV_ADD = "OP_BV_ADD"
    BV_AND = "OP_BV_AND"
    BV_ASHR = "OP_BV_ASHR"
    BV_COMP = "OP_BV_COMP"
    BV_CONCAT = "OP_BV_CONCAT"
    BV_LSHR = "OP_BV_LSHR"
    BV_MULT = "OP_BV_MULT"
    BV_NAND = "OP_BV_NAND"
    BV_NEG = "OP_BV_NEG"
    BV_NOR = "OP_BV_NOR"
    BV_NOT = "OP_BV_NOT"
    BV_OR = "OP_BV_OR"
    BV_SDIV = "OP_BV_SDIV"
    BV_SGE = "OP_BV_SGE"
    BV_SGT = "OP_BV_SGT"
    BV_SHL = "OP_BV_SHL"
    BV_SLE = "OP_BV_SLE"
    BV_SLT = "OP_BV_SLT"
    BV_SMOD = "OP_BV_SMOD"
    BV_SREM = "OP_BV_SREM"
    BV_SUB = "OP_BV_SUB"
    BV_UDIV = "OP_BV_UDIV"
    BV_UGE = "OP_BV_UGE"
    BV_UGT = "OP_BV_UGT"
    BV_ULE = "OP_BV_ULE"
    BV_ULT = "OP_BV_ULT"
    BV_UREM = "OP_BV_UREM"
    BV_XNOR = "OP_BV_XNOR"
    BV_XOR = "OP_BV_XOR"

    # Floating point
    FP_ABS = "OP_FP_ABS"
    FP_ADD = "OP_FP_ADD"
    FP_DIV = "OP_FP_DIV"
    FP_EQ = "OP_FP_EQ"
    FP_FMA = "OP_FP_FMA"
    FP_FP = "OP_FP_FP"
    FP_GEQ = "OP_FP_GEQ"
    FP_GT = "OP_FP_GT"
    FP_IS_INF = "OP_FP_IS_INF"
    FP_IS_NAN = "OP_FP_IS_NAN"
    FP_IS_NEG = "OP_FP_IS_NEG"
    FP_IS_NORMAL = "OP_FP_IS_NORMAL"
    FP_IS_POS = "OP_FP_IS_POS"
    FP_IS_SUBNORMAL = "OP_FP_IS_SUBNORMAL"
    FP_IS_ZERO = "OP_FP_IS_ZERO"
    FP_LEQ = "OP_FP_LEQ"
    FP_LT = "OP_FP_LT"
    FP_MAX = "OP_FP_MAX"
    FP_MIN = "OP_FP_MIN"
    FP_MUL = "OP_FP_MUL"
    FP_NEG = "OP_FP_NEG"
    FP_REM = "OP_FP_REM"
    FP_RTI = "OP_FP_RTI"
    FP_SQRT = "OP_FP_SQRT"
    FP_SUB = "OP_FP_SUB"
    FP_TO_FP_FROM_BV = "OP_FP_TO_FP_FROM_BV"
    FP_TO_FP_FROM_FP = "OP_FP_TO_FP_FROM_FP"
    FP_TO_FP_FROM_REAL = "OP_FP_TO_FP_FROM_REAL"
    FP_TO_FP_FROM_SBV = "OP_FP_TO_FP_FROM_SBV"
    FP_TO_FP_FROM_UBV = "OP_FP_TO_FP_FROM_UBV"
    FP_TO_REAL = "OP_FP_TO_REAL"
    FP_TO_SBV = "OP_FP_TO_SBV"
    FP_TO_UBV = "OP_FP_TO_UBV"

    # Integers
    INT_ABS = "OP_INT_ABS"
    INT_ADD = "OP_INT_ADD"
    INT_DIV = "OP_INT_DIV"
    INT_GE = "OP_INT_GE"
    INT_GT = "OP_INT_GT"
    INT_IS_DIV = "OP_INT_IS_DIV"
    INT_LE = "OP_INT_LE"
    INT_LT = "OP_INT_LT"
    INT_MOD = "OP_INT_MOD"
    INT_MUL = "OP_INT_MUL"
    INT_NEG = "OP_INT_NEG"
    INT_SUB = "OP_INT_SUB"
    INT_TO_REAL = "OP_INT_TO_REAL"

    # Reals
    REAL_ADD = "OP_REAL_ADD"
    REAL_DIV = "OP_REAL_DIV"
    REAL_GE = "OP_REAL_GE"
    REAL_GT = "OP_REAL_GT"
    REAL_IS_INT = "OP_REAL_IS_INT"
    REAL_LE = "OP_REAL_LE"
    REAL_LT = "OP_REAL_LT"
    REAL_MUL = "OP_REAL_MUL"
    REAL_NEG = "OP_REAL_NEG"
    REAL_SUB = "OP_REAL_SUB"
    REAL_TO_INT = "OP_REAL_TO_INT"

    # Quantifiers
    FORALL = "OP_FORALL"
    EXISTS = "OP_EXISTS"

    # Strings
    STR_AT = "OP_STR_AT"
    STR_CONCAT = "OP_STR_CONCAT"
    STR_CONTAINS = "OP_STR_CONTAINS"
    STR_FROM_INT = "OP_STR_FROM_INT"
    STR_INDEXOF = "OP_STR_INDEXOF"
    STR_IS_DIGIT = "OP_STR_IS_DIGIT"
    STR_LE = "OP_STR_LE"
    STR_LEN = "OP_STR_LEN"
    STR_LT = "OP_STR_LT"
    STR_PREFIXOF = "OP_STR_PREFIXOF"
    STR_REPLACE = "OP_STR_REPLACE"
    STR_REPLACE_ALL = "OP_STR_REPLACE_ALL"
    STR_SUBSTR = "OP_STR_SUBSTR"
    STR_SUFFIXOF = "OP_STR_SUFFIXOF"
    STR_TO_INT = "OP_STR_TO_INT"

    # Uninterpreted functions
    UF_APPLY = "OP_UF_APPLY"

    ALL = frozenset(
        v for k, v in list(vars().items())
        if k.isupper() and isinstance(v, str)
    )
