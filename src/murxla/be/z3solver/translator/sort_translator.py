"""
Sort translator from abstract sort requests to Z3 sorts.
"""
import logging
from typing import Sequence

import z3

from ..errors import MurxlaConfigError, check_config
from ..handles import Z3Sort
from ..kinds import SortKind

logger = logging.getLogger(__name__)


class SortTranslator:
    """Builds Z3 sorts in one Z3 context.

    Mapping:
        Bool / Int / Real / String -> BoolSort / IntSort / RealSort / StringSort
        RoundingMode -> FPRMSortRef
        BV(w) -> BitVecSort(w)
        FP(e, s) -> FPSort(e, s)
        Array(i, e) -> ArraySort(i, e)
        Fun(d1..dn -> r) -> ArraySort(d1..dn, r), domain kept on the wrapper
        uninterpreted name -> DeclareSort(name)
    """

    def __init__(self, ctx: z3.Context):
        """Initialize sort translator.

        Args:
            ctx: Z3 context all sorts are created in
        """
        self.ctx = ctx

    def mk_sort(self, kind: SortKind, *sizes: int) -> Z3Sort:
        """Create a nullary or size-parameterized sort.

        Args:
            kind: Sort kind
            sizes: No size for Bool/Int/Real/RM/String, the bit-width for BV,
                exponent and significand size for FP

        Returns:
            Wrapped Z3 sort
        """
        if not sizes:
            return self._mk_nullary_sort(kind)
        if len(sizes) == 1:
            check_config(kind == SortKind.BV,
                         f"Unsupported sort kind '{kind}' with one size argument, "
                         f"expected {SortKind.BV}")
            check_config(sizes[0] > 0, f"Invalid bit-width {sizes[0]} for {kind}")
            return Z3Sort(z3.BitVecSort(sizes[0], self.ctx))
        if len(sizes) == 2:
            check_config(kind == SortKind.FP,
                         f"Unsupported sort kind '{kind}' with two size arguments, "
                         f"expected {SortKind.FP}")
            esize, ssize = sizes
            check_config(esize > 1 and ssize > 1,
                         f"Invalid floating-point format ({esize}, {ssize}) for {kind}")
            return Z3Sort(z3.FPSort(esize, ssize, self.ctx))
        raise MurxlaConfigError(f"Unsupported sort kind '{kind}' with {len(sizes)} size arguments")

    def _mk_nullary_sort(self, kind: SortKind) -> Z3Sort:
        if kind == SortKind.BOOL:
            return Z3Sort(z3.BoolSort(self.ctx))
        if kind == SortKind.INT:
            return Z3Sort(z3.IntSort(self.ctx))
        if kind == SortKind.REAL:
            return Z3Sort(z3.RealSort(self.ctx))
        if kind == SortKind.RM:
            rm_sort = z3.Z3_mk_fpa_rounding_mode_sort(self.ctx.ref())
            return Z3Sort(z3.FPRMSortRef(rm_sort, self.ctx))
        if kind == SortKind.STRING:
            return Z3Sort(z3.StringSort(self.ctx))
        logger.debug("rejecting nullary sort kind %s", kind)
        raise MurxlaConfigError(f"Unsupported sort kind '{kind}' as argument to mk_sort")

    def mk_uninterpreted_sort(self, name: str) -> Z3Sort:
        """Create an uninterpreted sort with the given name."""
        return Z3Sort(z3.DeclareSort(name, self.ctx))

    def mk_composite_sort(self, kind: SortKind, sorts: Sequence[Z3Sort]) -> Z3Sort:
        """Create a sort parameterized by other sorts.

        Args:
            kind: ARRAY (index sort, element sort) or FUN (domain sorts...,
                codomain sort)
            sorts: Parameter sorts

        Returns:
            Wrapped Z3 sort. Function sorts are Z3 array sorts with the domain
            list recorded on the wrapper.
        """
        z3_sorts = Z3Sort.sorts_to_z3_sorts(sorts)

        if kind == SortKind.ARRAY:
            check_config(len(sorts) == 2,
                         f"Expected 2 sorts for {kind}, got {len(sorts)}")
            return Z3Sort(z3.ArraySort(z3_sorts[0], z3_sorts[1]))

        if kind == SortKind.FUN:
            check_config(len(sorts) >= 2,
                         f"Expected at least 2 sorts for {kind}, got {len(sorts)}")
            return self.mk_fun_sort(list(sorts[:-1]), sorts[-1])

        raise MurxlaConfigError(f"Unsupported sort kind '{kind}' as argument to mk_sort with sorts")

    def mk_fun_sort(self, domain: Sequence[Z3Sort], codomain: Z3Sort) -> Z3Sort:
        """Create the (array-encoded) function sort domain -> codomain."""
        z3_domain = Z3Sort.sorts_to_z3_sorts(domain)
        z3_codomain = Z3Sort.get_z3_sort(codomain)
        # z3.ArraySort switches to the n-dimensional constructor for arity > 1
        native = z3.ArraySort(*z3_domain, z3_codomain)
        return Z3Sort(native, fun_domain=domain)

    def get_sort(self, term_sort: Z3Sort, sort_kind: SortKind) -> Z3Sort:
        """Resolve the sort of a term, honouring the harness's kind hint.

        A function-sorted term built without tracking (e.g. returned by the
        engine) is only recognisable through the hint; its domain is then
        read off every dimension of the native array sort.
        """
        if sort_kind == SortKind.FUN and term_sort.is_array():
            native = term_sort.native
            arity = z3.Z3_get_array_arity(native.ctx_ref(), native.ast)
            domain = [Z3Sort(native.domain_n(i)) for i in range(arity)]
            return Z3Sort(native, fun_domain=domain)
        return term_sort
