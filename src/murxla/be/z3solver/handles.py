"""
Wrappers around native Z3 sort and term handles.

Identity (hash, equality, printing) always delegates to the native object.
Z3 represents functions as (multi-dimensional) arrays, so a sort created as
a function sort carries its domain sorts out-of-band; that is the
only way `is_fun` and `is_array` can be told apart.
"""
from typing import Any, List, Optional, Sequence

import z3

from .errors import check_contract
from .kinds import SortKind


class Z3Sort:
    """Wraps one `z3.SortRef`.

    Attributes:
        fun_domain: Domain sorts if this sort was created as a function
            sort, None otherwise.
    """

    def __init__(self, sort: z3.SortRef, fun_domain: Optional[Sequence["Z3Sort"]] = None):
        check_contract(isinstance(sort, z3.SortRef),
                       f"Expected a Z3 sort, got {type(sort).__name__}")
        self._sort = sort
        self.fun_domain: Optional[List["Z3Sort"]] = (
            list(fun_domain) if fun_domain is not None else None)

    @staticmethod
    def get_z3_sort(sort: Any) -> z3.SortRef:
        """Get the wrapped Z3 sort, failing if `sort` is not a Z3Sort."""
        check_contract(isinstance(sort, Z3Sort),
                       f"Expected a Z3Sort, got {type(sort).__name__}")
        return sort._sort

    @staticmethod
    def sorts_to_z3_sorts(sorts: Sequence["Z3Sort"]) -> List[z3.SortRef]:
        return [Z3Sort.get_z3_sort(s) for s in sorts]

    @property
    def native(self) -> z3.SortRef:
        return self._sort

    def hash(self) -> int:
        return self._sort.hash()

    def equals(self, other: Any) -> bool:
        if not isinstance(other, Z3Sort):
            return False
        return z3.eq(self._sort, other._sort)

    def to_string(self) -> str:
        return self._sort.sexpr()

    def __hash__(self) -> int:
        return self.hash()

    def __eq__(self, other: Any) -> bool:
        return self.equals(other)

    def __ne__(self, other: Any) -> bool:
        return not self.equals(other)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Z3Sort({self.to_string()})"

    def _z3_kind(self) -> int:
        return self._sort.kind()

    def is_array(self) -> bool:
        return self._z3_kind() == z3.Z3_ARRAY_SORT and self.fun_domain is None

    def is_bool(self) -> bool:
        return self._z3_kind() == z3.Z3_BOOL_SORT

    def is_bv(self) -> bool:
        return self._z3_kind() == z3.Z3_BV_SORT

    def is_dt(self) -> bool:
        return self._z3_kind() == z3.Z3_DATATYPE_SORT

    def is_fp(self) -> bool:
        return self._z3_kind() == z3.Z3_FLOATING_POINT_SORT

    def is_fun(self) -> bool:
        return self._z3_kind() == z3.Z3_ARRAY_SORT and self.fun_domain is not None

    def is_int(self) -> bool:
        return self._z3_kind() == z3.Z3_INT_SORT

    def is_real(self) -> bool:
        return self._z3_kind() == z3.Z3_REAL_SORT

    def is_rm(self) -> bool:
        return self._z3_kind() == z3.Z3_ROUNDING_MODE_SORT

    def is_string(self) -> bool:
        return (self._z3_kind() == z3.Z3_SEQ_SORT
                and isinstance(self._sort, z3.SeqSortRef)
                and self._sort.is_string())

    def is_uninterpreted(self) -> bool:
        return self._z3_kind() == z3.Z3_UNINTERPRETED_SORT

    @property
    def kind(self) -> SortKind:
        """The abstract sort kind of this sort."""
        if self.is_fun():
            return SortKind.FUN
        if self.is_array():
            return SortKind.ARRAY
        if self.is_bool():
            return SortKind.BOOL
        if self.is_bv():
            return SortKind.BV
        if self.is_dt():
            return SortKind.DT
        if self.is_fp():
            return SortKind.FP
        if self.is_int():
            return SortKind.INT
        if self.is_real():
            return SortKind.REAL
        if self.is_rm():
            return SortKind.RM
        if self.is_string():
            return SortKind.STRING
        if self.is_uninterpreted():
            return SortKind.UNINTERPRETED
        if self._z3_kind() == z3.Z3_SEQ_SORT:
            return SortKind.SEQ
        if self._z3_kind() == z3.Z3_RE_SORT:
            return SortKind.REGLAN
        return SortKind.ANY

    def get_bv_size(self) -> int:
        check_contract(self.is_bv(), f"Sort {self} is not a bit-vector sort")
        return self._sort.size()

    def get_fp_exp_size(self) -> int:
        check_contract(self.is_fp(), f"Sort {self} is not a floating-point sort")
        return self._sort.ebits()

    def get_fp_sig_size(self) -> int:
        check_contract(self.is_fp(), f"Sort {self} is not a floating-point sort")
        return self._sort.sbits()

    def get_dt_name(self) -> str:
        check_contract(self.is_dt(), f"Sort {self} is not a datatype sort")
        return self._sort.name()

    def get_array_index_sort(self) -> "Z3Sort":
        check_contract(self.is_array(), f"Sort {self} is not an array sort")
        return Z3Sort(self._sort.domain())

    def get_array_element_sort(self) -> "Z3Sort":
        check_contract(self.is_array(), f"Sort {self} is not an array sort")
        return Z3Sort(self._sort.range())

    def get_fun_arity(self) -> int:
        check_contract(self.is_fun(), f"Sort {self} is not a function sort")
        return len(self.fun_domain)

    def get_fun_domain_sorts(self) -> List["Z3Sort"]:
        check_contract(self.is_fun(), f"Sort {self} is not a function sort")
        return list(self.fun_domain)

    def get_fun_codomain_sort(self) -> "Z3Sort":
        check_contract(self.is_fun(), f"Sort {self} is not a function sort")
        return Z3Sort(self._sort.range())


class Z3Term:
    """Wraps one `z3.ExprRef`.

    Kind predicates are answered by the term's sort. If the term is known to
    be function-sorted, the tracked function sort is kept with it.
    """

    def __init__(self, term: z3.ExprRef, sort: Optional[Z3Sort] = None):
        check_contract(isinstance(term, z3.ExprRef),
                       f"Expected a Z3 expression, got {type(term).__name__}")
        self._term = term
        self._sort = sort

    @staticmethod
    def get_z3_term(term: Any) -> z3.ExprRef:
        """Get the wrapped Z3 term, failing if `term` is not a Z3Term."""
        check_contract(isinstance(term, Z3Term),
                       f"Expected a Z3Term, got {type(term).__name__}")
        return term._term

    @staticmethod
    def terms_to_z3_terms(terms: Sequence["Z3Term"]) -> List[z3.ExprRef]:
        return [Z3Term.get_z3_term(t) for t in terms]

    @staticmethod
    def z3_terms_to_terms(terms: Sequence[z3.ExprRef]) -> List["Z3Term"]:
        return [Z3Term(t) for t in terms]

    @property
    def native(self) -> z3.ExprRef:
        return self._term

    @property
    def tracked_sort(self) -> Optional[Z3Sort]:
        """The sort recorded at construction time, if any."""
        return self._sort

    def get_sort(self) -> Z3Sort:
        if self._sort is not None:
            return self._sort
        return Z3Sort(self._term.sort())

    def hash(self) -> int:
        return self._term.hash()

    def equals(self, other: Any) -> bool:
        if not isinstance(other, Z3Term):
            return False
        return z3.eq(self._term, other._term)

    def to_string(self) -> str:
        return self._term.sexpr()

    def __hash__(self) -> int:
        return self.hash()

    def __eq__(self, other: Any) -> bool:
        return self.equals(other)

    def __ne__(self, other: Any) -> bool:
        return not self.equals(other)

    def __str__(self) -> str:
        return self.to_string()

    def __repr__(self) -> str:
        return f"Z3Term({self.to_string()})"

    def is_array(self) -> bool:
        return self.get_sort().is_array()

    def is_bool(self) -> bool:
        return self.get_sort().is_bool()

    def is_bv(self) -> bool:
        return self.get_sort().is_bv()

    def is_fp(self) -> bool:
        return self.get_sort().is_fp()

    def is_fun(self) -> bool:
        return self.get_sort().is_fun()

    def is_int(self) -> bool:
        return self.get_sort().is_int()

    def is_real(self) -> bool:
        return self.get_sort().is_real()

    def is_rm(self) -> bool:
        return self.get_sort().is_rm()

    def is_string(self) -> bool:
        return self.get_sort().is_string()

    def get_bv_size(self) -> int:
        return self.get_sort().get_bv_size()

    def get_fp_exp_size(self) -> int:
        return self.get_sort().get_fp_exp_size()

    def get_fp_sig_size(self) -> int:
        return self.get_sort().get_fp_sig_size()
