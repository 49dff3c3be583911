"""
Value translator: literals and special values for Z3.

Bit-vector numerals are converted to an exact integer and range-checked
against the bit-width before reaching Z3, whatever base they were given in.
Numerals are also accepted in the SMT-LIB form Z3 prints values in, e.g.
`(- 42)`, `(- (/ 1.0 3.0))` or `#x05`.
"""
import logging
import re
from fractions import Fraction
from typing import Optional, Union

import z3

from ..errors import MurxlaConfigError, check_config
from ..handles import Z3Sort, Z3Term
from ..kinds import Base, SpecialValueKind

logger = logging.getLogger(__name__)

_DIGITS = {
    Base.BIN: re.compile(r"[01]+"),
    Base.DEC: re.compile(r"-?[0-9]+"),
    Base.HEX: re.compile(r"[0-9a-fA-F]+"),
}

_INT = re.compile(r"-?[0-9]+")
_DECIMAL = re.compile(r"-?[0-9]+(\.[0-9]+)?")
_FRACTION = re.compile(r"-?[0-9]+/[0-9]+")
_SMT_NEG = re.compile(r"\(\s*-\s+(.+)\)")
_SMT_DIV = re.compile(r"\(\s*/\s+([0-9.]+)\s+([0-9.]+)\s*\)")
_SMT_BV_INDEXED = re.compile(r"\(\s*_\s+bv([0-9]+)\s+([0-9]+)\s*\)")


def _parse_int(text: str) -> Optional[int]:
    """Parse `n`, `-n` or `(- n)`; None if malformed."""
    m = _SMT_NEG.fullmatch(text)
    if m:
        n = _parse_int(m.group(1).strip())
        return None if n is None else -n
    if _INT.fullmatch(text):
        return int(text)
    return None


def _parse_real(text: str) -> Optional[Fraction]:
    """Parse `n`, `n.m`, `n/d`, `(/ a b)` and `(- x)`; None if malformed."""
    m = _SMT_NEG.fullmatch(text)
    if m:
        r = _parse_real(m.group(1).strip())
        return None if r is None else -r
    m = _SMT_DIV.fullmatch(text)
    if m:
        num, den = m.groups()
        if not (_DECIMAL.fullmatch(num) and _DECIMAL.fullmatch(den)):
            return None
        check_config(Fraction(den) != 0, f"Division by zero in real numeral '{text}'")
        return Fraction(num) / Fraction(den)
    if _FRACTION.fullmatch(text):
        check_config(int(text.split("/")[1]) != 0, f"Division by zero in real numeral '{text}'")
        return Fraction(text)
    if _DECIMAL.fullmatch(text):
        return Fraction(text)
    return None


def bv_numeral_to_int(value: str, base: Base, width: int) -> int:
    """Convert a bit-vector numeral to its unsigned value at `width` bits.

    Args:
        value: Numeral digits without prefix (decimal may be negative)
        base: Base the digits are given in
        width: Bit-width of the target sort

    Returns:
        Integer in [0, 2**width)

    Raises:
        MurxlaConfigError: If the digits are malformed or the value does not
            fit into `width` bits.
    """
    check_config(isinstance(base, Base), f"Unsupported numeral base '{base}'")
    check_config(width > 0, f"Invalid bit-width {width}")
    text = value.strip()
    check_config(_DIGITS[base].fullmatch(text) is not None,
                 f"Malformed {base.name} numeral '{value}' for bit-vector of width {width}")

    n = int(text, base.value)
    if n < 0:
        check_config(n >= -(1 << (width - 1)),
                     f"Numeral '{value}' does not fit into a bit-vector of width {width}")
        n += 1 << width
    else:
        check_config(n < (1 << width),
                     f"Numeral '{value}' does not fit into a bit-vector of width {width}")
    return n


class ValueTranslator:
    """Builds Z3 literals and special values in one Z3 context."""

    def __init__(self, ctx: z3.Context):
        self.ctx = ctx

    def mk_value(self, sort: Z3Sort, value: Union[bool, str]) -> Z3Term:
        """Create a Boolean, integer, real or string literal.

        Args:
            sort: Target sort
            value: bool (or "true"/"false") for Boolean sorts, a decimal
                numeral for Int/Real, the string contents for String. Int
                also accepts "(- n)"; Real accepts "n/d", "n.m", "(/ a b)"
                and "(- x)" around any of these.

        Returns:
            Wrapped Z3 literal
        """
        if isinstance(value, bool) or sort.is_bool():
            check_config(sort.is_bool(),
                         f"Unexpected sort of kind '{sort.kind}' as argument to mk_value, "
                         f"expected Boolean sort")
            if not isinstance(value, bool):
                check_config(value.strip() in ("true", "false"),
                             f"Malformed Boolean value '{value}'")
                value = value.strip() == "true"
            return Z3Term(z3.BoolVal(value, self.ctx))

        if sort.is_int():
            n = _parse_int(value.strip())
            check_config(n is not None, f"Malformed integer numeral '{value}'")
            return Z3Term(z3.IntVal(n, self.ctx))
        if sort.is_real():
            r = _parse_real(value.strip())
            check_config(r is not None, f"Malformed real numeral '{value}'")
            return Z3Term(z3.RealVal(str(r), self.ctx))
        if sort.is_string():
            return Z3Term(z3.StringVal(value, self.ctx))

        raise MurxlaConfigError(
            f"Unexpected sort of kind '{sort.kind}' as argument to mk_value, "
            f"expected Integer, Real or String sort")

    def mk_value_rational(self, sort: Z3Sort, num: str, den: str) -> Z3Term:
        """Create the real quotient num/den of two integer literals."""
        check_config(sort.is_real(),
                     f"Unexpected sort of kind '{sort.kind}' as argument to mk_value, "
                     f"expected Real sort")
        for part in (num, den):
            check_config(re.fullmatch(r"-?[0-9]+", part.strip()) is not None,
                         f"Malformed integer numeral '{part}' in rational value")
        numerator = z3.IntVal(num.strip(), self.ctx)
        denominator = z3.IntVal(den.strip(), self.ctx)
        return Z3Term(z3.ToReal(numerator) / z3.ToReal(denominator))

    def mk_bv_value(self, sort: Z3Sort, value: str, base: Base) -> Z3Term:
        """Create a bit-vector literal from a numeral in the given base."""
        check_config(sort.is_bv(),
                     f"Unexpected sort of kind '{sort.kind}' as argument to mk_value, "
                     f"expected bit-vector sort")
        n = bv_numeral_to_int(value, base, sort.get_bv_size())
        return Z3Term(z3.BitVecVal(n, Z3Sort.get_z3_sort(sort)))

    def mk_bv_literal(self, sort: Z3Sort, value: str) -> Z3Term:
        """Create a bit-vector literal from its SMT-LIB form.

        Accepts `#b` with exactly width digits, `#x` with width/4 digits and
        `(_ bvN width)`.
        """
        check_config(sort.is_bv(),
                     f"Unexpected sort of kind '{sort.kind}' as argument to mk_value, "
                     f"expected bit-vector sort")
        width = sort.get_bv_size()
        text = value.strip()
        if text.startswith("#b"):
            digits = text[2:]
            check_config(len(digits) == width,
                         f"Expected {width} binary digits in '{value}'")
            return self.mk_bv_value(sort, digits, Base.BIN)
        if text.startswith("#x"):
            digits = text[2:]
            check_config(width % 4 == 0 and len(digits) == width // 4,
                         f"Hexadecimal literal '{value}' does not match bit-width {width}")
            return self.mk_bv_value(sort, digits, Base.HEX)
        m = _SMT_BV_INDEXED.fullmatch(text)
        check_config(m is not None,
                     f"Missing numeral base for bit-vector value '{value}' of sort kind '{sort.kind}'")
        check_config(int(m.group(2)) == width,
                     f"Bit-vector literal '{value}' does not match bit-width {width}")
        return self.mk_bv_value(sort, m.group(1), Base.DEC)

    def mk_special_value(self, sort: Z3Sort, value: SpecialValueKind) -> Z3Term:
        """Create a special value of the given sort.

        Args:
            sort: Bit-vector, floating-point or rounding-mode sort
            value: Special value kind matching the sort family

        Returns:
            Wrapped Z3 term
        """
        if sort.is_bv():
            return self._mk_bv_special(sort, value)
        if sort.is_fp():
            return self._mk_fp_special(sort, value)
        if sort.is_rm():
            return self._mk_rm_special(value)
        logger.debug("no special value %s for sort %s", value, sort)
        raise MurxlaConfigError(f"Unsupported sort of kind '{sort.kind}' for special value '{value}'")

    def _mk_bv_special(self, sort: Z3Sort, value: SpecialValueKind) -> Z3Term:
        bw = sort.get_bv_size()
        if value == SpecialValueKind.BV_ZERO:
            digits = "0"
        elif value == SpecialValueKind.BV_ONE:
            digits = "1"
        elif value == SpecialValueKind.BV_ONES:
            digits = "1" * bw
        elif value == SpecialValueKind.BV_MIN_SIGNED:
            digits = "1" + "0" * (bw - 1)
        elif value == SpecialValueKind.BV_MAX_SIGNED:
            digits = "0" + "1" * (bw - 1)
        else:
            raise MurxlaConfigError(f"Unsupported special value kind '{value}' for {sort.kind}")
        return self.mk_bv_value(sort, digits, Base.BIN)

    def _mk_fp_special(self, sort: Z3Sort, value: SpecialValueKind) -> Z3Term:
        z3_sort = Z3Sort.get_z3_sort(sort)
        if value == SpecialValueKind.FP_NAN:
            return Z3Term(z3.fpNaN(z3_sort))
        if value in (SpecialValueKind.FP_POS_INF, SpecialValueKind.FP_NEG_INF):
            return Z3Term(z3.fpInfinity(z3_sort, value == SpecialValueKind.FP_NEG_INF))
        if value in (SpecialValueKind.FP_POS_ZERO, SpecialValueKind.FP_NEG_ZERO):
            return Z3Term(z3.fpZero(z3_sort, value == SpecialValueKind.FP_NEG_ZERO))
        raise MurxlaConfigError(f"Unsupported special value kind '{value}' for {sort.kind}")

    def _mk_rm_special(self, value: SpecialValueKind) -> Z3Term:
        rm = {
            SpecialValueKind.RM_RNA: z3.RNA,
            SpecialValueKind.RM_RNE: z3.RNE,
            SpecialValueKind.RM_RTN: z3.RTN,
            SpecialValueKind.RM_RTP: z3.RTP,
            SpecialValueKind.RM_RTZ: z3.RTZ,
        }.get(value)
        if rm is None:
            raise MurxlaConfigError(f"Unsupported special value kind '{value}' for rounding mode sort")
        return Z3Term(rm(self.ctx))
