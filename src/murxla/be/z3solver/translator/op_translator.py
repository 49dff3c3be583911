"""
Operator translator: canonical operator kinds to Z3 constructors.

Dispatch goes through a table keyed by operator kind. Each entry fixes the
number of term arguments and indices the kind takes, so arity checks and the
"unsupported kind" case are single table lookups.
"""
import functools
import logging
import operator
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import z3

from ..errors import MurxlaConfigError, check_config
from ..handles import Z3Sort, Z3Term
from ..kinds import N_ARGS, Op, SortKind, Theory

logger = logging.getLogger(__name__)

Builder = Callable[[z3.Context, List[z3.ExprRef], List[int]], z3.ExprRef]


@dataclass(frozen=True)
class OpSpec:
    """Dispatch entry for one operator kind.

    Attributes:
        kind: Operator kind
        arity: Number of term arguments, or N_ARGS for two or more
        n_indices: Number of integer indices
        build: Creates the Z3 term from native arguments and indices
    """
    kind: str
    arity: int
    n_indices: int
    build: Builder


@dataclass(frozen=True)
class ExtraOpKind:
    """A Z3-specific operator kind announced to the harness."""
    kind: str
    arity: int
    n_indices: int
    sort_kind: SortKind
    sort_kind_args: Tuple[SortKind, ...]
    theory: Theory


# Z3-specific operator kinds
OP_BV_EXT_ROTATE_LEFT = "z3-OP_BV_EXT_ROTATE_LEFT"
OP_BV_EXT_ROTATE_RIGHT = "z3-OP_BV_EXT_ROTATE_RIGHT"
OP_BV_REDAND = "z3-OP_BV_REDAND"
OP_BV_REDOR = "z3-OP_BV_REDOR"

EXTRA_OP_KINDS = (
    ExtraOpKind(OP_BV_EXT_ROTATE_LEFT, 2, 0, SortKind.BV, (SortKind.BV,), Theory.BV),
    ExtraOpKind(OP_BV_EXT_ROTATE_RIGHT, 2, 0, SortKind.BV, (SortKind.BV,), Theory.BV),
    ExtraOpKind(OP_BV_REDAND, 1, 0, SortKind.BV, (SortKind.BV,), Theory.BV),
    ExtraOpKind(OP_BV_REDOR, 1, 0, SortKind.BV, (SortKind.BV,), Theory.BV),
)


def _unary(fn) -> Builder:
    return lambda ctx, args, indices: fn(args[0])


def _binary(fn) -> Builder:
    return lambda ctx, args, indices: fn(args[0], args[1])


def _ternary(fn) -> Builder:
    return lambda ctx, args, indices: fn(args[0], args[1], args[2])


def _left_fold(fn) -> Builder:
    """((a0 fn a1) fn a2) ... fn an, one binary native call per step."""
    return lambda ctx, args, indices: functools.reduce(fn, args)


def _bv_native(mk) -> Builder:
    """Binary bit-vector operator only exposed by Z3's low-level API."""
    def build(ctx, args, indices):
        a, b = args
        return z3.BitVecRef(mk(ctx.ref(), a.as_ast(), b.as_ast()), ctx)
    return build


def _str_native(mk) -> Builder:
    """Lexicographic string comparison via Z3's low-level API."""
    def build(ctx, args, indices):
        a, b = args
        return z3.BoolRef(mk(ctx.ref(), a.as_ast(), b.as_ast()), ctx)
    return build


def _bv_rotate(mk) -> Builder:
    def build(ctx, args, indices):
        a = args[0]
        return z3.BitVecRef(mk(ctx.ref(), indices[0], a.as_ast()), ctx)
    return build


def _mk_extract(ctx, args, indices):
    a = args[0]
    high, low = indices
    check_config(z3.is_bv(a), f"Expected bit-vector argument to {Op.BV_EXTRACT}")
    check_config(a.size() > high >= low,
                 f"Invalid indices ({high}, {low}) for {Op.BV_EXTRACT} on width {a.size()}")
    return z3.Extract(high, low, a)


def _mk_repeat(ctx, args, indices):
    check_config(indices[0] >= 1, f"Invalid repeat count {indices[0]} for {Op.BV_REPEAT}")
    return z3.RepeatBitVec(indices[0], args[0])


def _mk_quantifier(forall: bool) -> Builder:
    def build(ctx, args, indices):
        variables, body = list(args[:-1]), args[-1]
        for v in variables:
            check_config(z3.is_const(v) and v.decl().kind() == z3.Z3_OP_UNINTERPRETED,
                         f"Expected bound variable in quantifier, got '{v}'")
        if forall:
            return z3.ForAll(variables, body)
        return z3.Exists(variables, body)
    return build


def _mk_apply(ctx, args, indices):
    fun, actuals = args[0], args[1:]
    # Functions are Z3 arrays, so application is a (multi-dimensional) select
    if fun.sort().kind() == z3.Z3_ARRAY_SORT:
        return z3.Select(fun, *actuals)
    raise MurxlaConfigError(
        f"Expected function-sorted first argument to {Op.UF_APPLY}, got sort '{fun.sort()}'")


def _fp(fn) -> Builder:
    """Floating-point constructor, bound to the translator's context.

    Z3's fp* helpers fall back to the global context unless `ctx` is given.
    """
    return lambda ctx, args, indices: fn(*args, ctx=ctx)


def _mk_to_fp(fn) -> Builder:
    """to_fp conversion taking the rounding mode (if any) plus one term."""
    def build(ctx, args, indices):
        sort = z3.FPSort(indices[0], indices[1], ctx)
        return fn(*args, sort, ctx=ctx)
    return build


def _mk_fp_to_bv(fn) -> Builder:
    def build(ctx, args, indices):
        rm, a = args
        return fn(rm, a, z3.BitVecSort(indices[0], ctx), ctx=ctx)
    return build


def _build_table() -> Dict[str, OpSpec]:
    specs = [
        # Core
        OpSpec(Op.DISTINCT, N_ARGS, 0, lambda ctx, args, indices: z3.Distinct(*args)),
        OpSpec(Op.EQUAL, 2, 0, _binary(operator.eq)),
        OpSpec(Op.ITE, 3, 0, _ternary(z3.If)),

        # Boolean
        OpSpec(Op.AND, N_ARGS, 0, _left_fold(z3.And)),
        OpSpec(Op.OR, N_ARGS, 0, _left_fold(z3.Or)),
        OpSpec(Op.NOT, 1, 0, _unary(z3.Not)),
        OpSpec(Op.XOR, 2, 0, _binary(z3.Xor)),
        OpSpec(Op.IMPLIES, 2, 0, _binary(z3.Implies)),

        # Arrays
        OpSpec(Op.ARRAY_SELECT, 2, 0, _binary(z3.Select)),
        OpSpec(Op.ARRAY_STORE, 3, 0, _ternary(z3.Store)),

        # Bit-vectors
        OpSpec(Op.BV_EXTRACT, 1, 2, _mk_extract),
        OpSpec(Op.BV_REPEAT, 1, 1, _mk_repeat),
        OpSpec(Op.BV_ROTATE_LEFT, 1, 1, _bv_rotate(z3.Z3_mk_rotate_left)),
        OpSpec(Op.BV_ROTATE_RIGHT, 1, 1, _bv_rotate(z3.Z3_mk_rotate_right)),
        OpSpec(Op.BV_SIGN_EXTEND, 1, 1, lambda ctx, args, indices: z3.SignExt(indices[0], args[0])),
        OpSpec(Op.BV_ZERO_EXTEND, 1, 1, lambda ctx, args, indices: z3.ZeroExt(indices[0], args[0])),
        OpSpec(Op.BV_ADD, 2, 0, _binary(operator.add)),
        OpSpec(Op.BV_AND, 2, 0, _binary(operator.and_)),
        OpSpec(Op.BV_ASHR, 2, 0, _binary(operator.rshift)),
        OpSpec(Op.BV_CONCAT, 2, 0, _binary(z3.Concat)),
        OpSpec(Op.BV_LSHR, 2, 0, _binary(z3.LShR)),
        OpSpec(Op.BV_MULT, 2, 0, _binary(operator.mul)),
        OpSpec(Op.BV_NAND, 2, 0, _bv_native(z3.Z3_mk_bvnand)),
        OpSpec(Op.BV_NEG, 1, 0, _unary(operator.neg)),
        OpSpec(Op.BV_NOR, 2, 0, _bv_native(z3.Z3_mk_bvnor)),
        OpSpec(Op.BV_NOT, 1, 0, _unary(operator.invert)),
        OpSpec(Op.BV_OR, 2, 0, _binary(operator.or_)),
        OpSpec(Op.BV_SDIV, 2, 0, _binary(operator.truediv)),
        OpSpec(Op.BV_SGE, 2, 0, _binary(operator.ge)),
        OpSpec(Op.BV_SGT, 2, 0, _binary(operator.gt)),
        OpSpec(Op.BV_SHL, 2, 0, _binary(operator.lshift)),
        OpSpec(Op.BV_SLE, 2, 0, _binary(operator.le)),
        OpSpec(Op.BV_SLT, 2, 0, _binary(operator.lt)),
        OpSpec(Op.BV_SMOD, 2, 0, _bv_native(z3.Z3_mk_bvsmod)),
        OpSpec(Op.BV_SREM, 2, 0, _binary(z3.SRem)),
        OpSpec(Op.BV_SUB, 2, 0, _binary(operator.sub)),
        OpSpec(Op.BV_UDIV, 2, 0, _binary(z3.UDiv)),
        OpSpec(Op.BV_UGE, 2, 0, _binary(z3.UGE)),
        OpSpec(Op.BV_UGT, 2, 0, _binary(z3.UGT)),
        OpSpec(Op.BV_ULE, 2, 0, _binary(z3.ULE)),
        OpSpec(Op.BV_ULT, 2, 0, _binary(z3.ULT)),
        OpSpec(Op.BV_UREM, 2, 0, _binary(z3.URem)),
        OpSpec(Op.BV_XNOR, 2, 0, _bv_native(z3.Z3_mk_bvxnor)),
        OpSpec(Op.BV_XOR, 2, 0, _binary(operator.xor)),

        # Floating point
        OpSpec(Op.FP_ABS, 1, 0, _fp(z3.fpAbs)),
        OpSpec(Op.FP_ADD, 3, 0, _fp(z3.fpAdd)),
        OpSpec(Op.FP_DIV, 3, 0, _fp(z3.fpDiv)),
        OpSpec(Op.FP_EQ, 2, 0, _fp(z3.fpEQ)),
        OpSpec(Op.FP_FMA, 4, 0, _fp(z3.fpFMA)),
        OpSpec(Op.FP_FP, 3, 0, _fp(z3.fpFP)),
        OpSpec(Op.FP_GEQ, 2, 0, _fp(z3.fpGEQ)),
        OpSpec(Op.FP_GT, 2, 0, _fp(z3.fpGT)),
        OpSpec(Op.FP_IS_INF, 1, 0, _fp(z3.fpIsInf)),
        OpSpec(Op.FP_IS_NAN, 1, 0, _fp(z3.fpIsNaN)),
        OpSpec(Op.FP_IS_NEG, 1, 0, _fp(z3.fpIsNegative)),
        OpSpec(Op.FP_IS_NORMAL, 1, 0, _fp(z3.fpIsNormal)),
        OpSpec(Op.FP_IS_POS, 1, 0, _fp(z3.fpIsPositive)),
        OpSpec(Op.FP_IS_SUBNORMAL, 1, 0, _fp(z3.fpIsSubnormal)),
        OpSpec(Op.FP_IS_ZERO, 1, 0, _fp(z3.fpIsZero)),
        OpSpec(Op.FP_LEQ, 2, 0, _fp(z3.fpLEQ)),
        OpSpec(Op.FP_LT, 2, 0, _fp(z3.fpLT)),
        OpSpec(Op.FP_MAX, 2, 0, _fp(z3.fpMax)),
        OpSpec(Op.FP_MIN, 2, 0, _fp(z3.fpMin)),
        OpSpec(Op.FP_MUL, 3, 0, _fp(z3.fpMul)),
        OpSpec(Op.FP_NEG, 1, 0, _fp(z3.fpNeg)),
        OpSpec(Op.FP_REM, 2, 0, _fp(z3.fpRem)),
        OpSpec(Op.FP_RTI, 2, 0, _fp(z3.fpRoundToIntegral)),
        OpSpec(Op.FP_SQRT, 2, 0, _fp(z3.fpSqrt)),
        OpSpec(Op.FP_SUB, 3, 0, _fp(z3.fpSub)),
        OpSpec(Op.FP_TO_FP_FROM_BV, 1, 2, _mk_to_fp(z3.fpBVToFP)),
        OpSpec(Op.FP_TO_FP_FROM_FP, 2, 2, _mk_to_fp(z3.fpFPToFP)),
        OpSpec(Op.FP_TO_FP_FROM_REAL, 2, 2, _mk_to_fp(z3.fpRealToFP)),
        OpSpec(Op.FP_TO_FP_FROM_SBV, 2, 2, _mk_to_fp(z3.fpSignedToFP)),
        OpSpec(Op.FP_TO_FP_FROM_UBV, 2, 2, _mk_to_fp(z3.fpUnsignedToFP)),
        OpSpec(Op.FP_TO_REAL, 1, 0, _fp(z3.fpToReal)),
        OpSpec(Op.FP_TO_SBV, 2, 1, _mk_fp_to_bv(z3.fpToSBV)),
        OpSpec(Op.FP_TO_UBV, 2, 1, _mk_fp_to_bv(z3.fpToUBV)),

        # Integers
        OpSpec(Op.INT_ABS, 1, 0, _unary(z3.Abs)),
        OpSpec(Op.INT_ADD, N_ARGS, 0, _left_fold(operator.add)),
        OpSpec(Op.INT_DIV, N_ARGS, 0, _left_fold(operator.truediv)),
        OpSpec(Op.INT_GE, 2, 0, _binary(operator.ge)),
        OpSpec(Op.INT_GT, 2, 0, _binary(operator.gt)),
        OpSpec(Op.INT_LE, 2, 0, _binary(operator.le)),
        OpSpec(Op.INT_LT, 2, 0, _binary(operator.lt)),
        OpSpec(Op.INT_MOD, 2, 0, _binary(operator.mod)),
        OpSpec(Op.INT_MUL, N_ARGS, 0, _left_fold(operator.mul)),
        OpSpec(Op.INT_NEG, 1, 0, _unary(operator.neg)),
        OpSpec(Op.INT_SUB, N_ARGS, 0, _left_fold(operator.sub)),
        OpSpec(Op.INT_TO_REAL, 1, 0, _unary(z3.ToReal)),

        # Reals
        OpSpec(Op.REAL_ADD, N_ARGS, 0, _left_fold(operator.add)),
        OpSpec(Op.REAL_DIV, N_ARGS, 0, _left_fold(operator.truediv)),
        OpSpec(Op.REAL_GE, 2, 0, _binary(operator.ge)),
        OpSpec(Op.REAL_GT, 2, 0, _binary(operator.gt)),
        OpSpec(Op.REAL_IS_INT, 1, 0, _unary(z3.IsInt)),
        OpSpec(Op.REAL_LE, 2, 0, _binary(operator.le)),
        OpSpec(Op.REAL_LT, 2, 0, _binary(operator.lt)),
        OpSpec(Op.REAL_MUL, N_ARGS, 0, _left_fold(operator.mul)),
        OpSpec(Op.REAL_NEG, 1, 0, _unary(operator.neg)),
        OpSpec(Op.REAL_SUB, N_ARGS, 0, _left_fold(operator.sub)),
        OpSpec(Op.REAL_TO_INT, 1, 0, _unary(z3.ToInt)),

        # Quantifiers
        OpSpec(Op.FORALL, N_ARGS, 0, _mk_quantifier(True)),
        OpSpec(Op.EXISTS, N_ARGS, 0, _mk_quantifier(False)),

        # Strings
        OpSpec(Op.STR_AT, 2, 0, lambda ctx, args, indices: args[0].at(args[1])),
        OpSpec(Op.STR_CONCAT, N_ARGS, 0, _left_fold(z3.Concat)),
        OpSpec(Op.STR_CONTAINS, 2, 0, _binary(z3.Contains)),
        OpSpec(Op.STR_FROM_INT, 1, 0, _unary(z3.IntToStr)),
        OpSpec(Op.STR_INDEXOF, 3, 0, _ternary(z3.IndexOf)),
        OpSpec(Op.STR_LE, 2, 0, _str_native(z3.Z3_mk_str_le)),
        OpSpec(Op.STR_LEN, 1, 0, _unary(z3.Length)),
        OpSpec(Op.STR_LT, 2, 0, _str_native(z3.Z3_mk_str_lt)),
        OpSpec(Op.STR_PREFIXOF, 2, 0, _binary(z3.PrefixOf)),
        OpSpec(Op.STR_REPLACE, 3, 0, _ternary(z3.Replace)),
        OpSpec(Op.STR_SUBSTR, 3, 0, _ternary(z3.SubString)),
        OpSpec(Op.STR_SUFFIXOF, 2, 0, _binary(z3.SuffixOf)),
        OpSpec(Op.STR_TO_INT, 1, 0, _unary(z3.StrToInt)),

        # Uninterpreted functions
        OpSpec(Op.UF_APPLY, N_ARGS, 0, _mk_apply),

        # Z3-specific
        OpSpec(OP_BV_EXT_ROTATE_LEFT, 2, 0, _binary(z3.RotateLeft)),
        OpSpec(OP_BV_EXT_ROTATE_RIGHT, 2, 0, _binary(z3.RotateRight)),
        OpSpec(OP_BV_REDAND, 1, 0, _unary(z3.BVRedAnd)),
        OpSpec(OP_BV_REDOR, 1, 0, _unary(z3.BVRedOr)),
    ]
    return {s.kind: s for s in specs}


DISPATCH_TABLE: Dict[str, OpSpec] = _build_table()


def unsupported_op_kinds() -> List[str]:
    """Canonical operator kinds without a Z3 dispatch path."""
    return sorted(k for k in Op.ALL if k not in DISPATCH_TABLE)


class OpTranslator:
    """Translates (kind, args, indices) requests into Z3 terms."""

    def __init__(self, ctx: z3.Context):
        self.ctx = ctx
        self._table = DISPATCH_TABLE

    def mk_term(self, kind: str, args: Sequence[Z3Term], indices: Sequence[int] = ()) -> Z3Term:
        """Create a term of the given operator kind.

        Args:
            kind: Operator kind
            args: Term arguments
            indices: Integer indices of parameterized kinds

        Returns:
            Wrapped Z3 term

        Raises:
            MurxlaConfigError: If the kind is not supported, the number of
                arguments or indices does not match the kind, or Z3 rejects
                the arguments.
        """
        spec = self._table.get(kind)
        if spec is None:
            logger.debug("no dispatch path for operator kind %s", kind)
            raise MurxlaConfigError(f"Unsupported operator kind '{kind}' in Z3Solver.mk_term")

        n_args = len(args)
        if spec.arity == N_ARGS:
            check_config(n_args >= 2,
                         f"Expected at least 2 arguments to '{kind}', got {n_args}")
        else:
            check_config(n_args == spec.arity,
                         f"Expected {spec.arity} arguments to '{kind}', got {n_args}")
        check_config(len(indices) == spec.n_indices,
                     f"Expected {spec.n_indices} indices to '{kind}', got {len(indices)}")
        for idx in indices:
            check_config(isinstance(idx, int) and idx >= 0,
                         f"Invalid index '{idx}' to '{kind}', expected a non-negative integer")

        if kind == Op.UF_APPLY:
            self._check_apply_arity(args)

        z3_args = Z3Term.terms_to_z3_terms(args)
        try:
            result = spec.build(self.ctx, z3_args, list(indices))
        except z3.Z3Exception as e:
            raise MurxlaConfigError(f"Z3 rejected arguments to '{kind}': {e}") from e
        return self._wrap_result(result, args)

    def mk_fun(self, name: str, args: Sequence[Z3Term], body: Z3Term) -> Z3Term:
        """Define a function as a Z3 lambda over the bound variables `args`.

        Z3 lambdas are anonymous, `name` only identifies the function in logs.
        The domain sorts are recorded on the returned term's sort.
        """
        check_config(len(args) >= 1, f"Function '{name}' needs at least one argument")
        z3_args = Z3Term.terms_to_z3_terms(args)
        for a in z3_args:
            check_config(z3.is_const(a) and a.decl().kind() == z3.Z3_OP_UNINTERPRETED,
                         f"Expected variable as argument of function '{name}', got '{a}'")
        z3_body = Z3Term.get_z3_term(body)
        try:
            fun = z3.Lambda(z3_args, z3_body)
        except z3.Z3Exception as e:
            raise MurxlaConfigError(f"Z3 rejected function '{name}': {e}") from e
        sort = Z3Sort(fun.sort(), fun_domain=[a.get_sort() for a in args])
        logger.debug("function %s encoded as lambda of sort %s", name, sort)
        return Z3Term(fun, sort)

    def _check_apply_arity(self, args: Sequence[Z3Term]) -> None:
        fun_sort = args[0].tracked_sort
        if fun_sort is not None and fun_sort.is_fun():
            arity = fun_sort.get_fun_arity()
            check_config(len(args) - 1 == arity,
                         f"Expected {arity} arguments to function in '{Op.UF_APPLY}', "
                         f"got {len(args) - 1}")

    @staticmethod
    def _wrap_result(result: z3.ExprRef, args: Sequence[Z3Term]) -> Z3Term:
        """Wrap `result`, keeping function identity for function-sorted results."""
        tracked: Optional[Z3Sort] = None
        native_sort = result.sort()
        if native_sort.kind() == z3.Z3_ARRAY_SORT:
            for a in args:
                s = a.tracked_sort
                if s is not None and s.is_fun() and z3.eq(s.native, native_sort):
                    tracked = s
                    break
        return Z3Term(result, tracked)
