"""
Interfaces at the boundary between the fuzzing harness and a backend.
"""
from typing import List, Optional, Protocol, Sequence

from ..handles import Z3Sort, Z3Term
from ..kinds import Base, SortKind, SpecialValueKind, Theory
from .result import SolverResult


class FSM(Protocol):
    """The harness's action state machine, as seen by a backend."""

    def disable_action(self, kind: str) -> None:
        """Remove the action `kind` from the set the harness may pick."""
        ...


class OpKindManager(Protocol):
    """The harness's registry of operator kinds."""

    def add_op_kind(self,
                    kind: str,
                    arity: int,
                    n_indices: int,
                    sort_kind: SortKind,
                    sort_kind_args: List[SortKind],
                    theory: Theory) -> None:
        """Register a backend-specific operator kind.

        Args:
            kind: Operator kind name
            arity: Number of arguments (N_ARGS for n-ary)
            n_indices: Number of integer indices
            sort_kind: Sort kind of the result
            sort_kind_args: Sort kinds of the arguments
            theory: Theory the operator belongs to
        """
        ...


class SolverBackend(Protocol):
    """Protocol defining the interface a backend offers the harness.

    Construction and interrogation go through backend-specific handle
    wrappers; session control works on one solving context at a time.
    """

    # Session control

    def new_solver(self) -> None:
        ...

    def delete_solver(self) -> None:
        ...

    def is_initialized(self) -> bool:
        ...

    def get_name(self) -> str:
        ...

    def get_profile(self) -> str:
        """Get the JSON capability profile of the backend."""
        ...

    def set_opt(self, opt: str, value: str) -> None:
        ...

    def assert_formula(self, t: Z3Term) -> None:
        ...

    def check_sat(self) -> SolverResult:
        ...

    def check_sat_assuming(self, assumptions: Sequence[Z3Term]) -> SolverResult:
        ...

    def get_unsat_assumptions(self) -> List[Z3Term]:
        ...

    def get_unsat_core(self) -> List[Z3Term]:
        ...

    def get_value(self, terms: Sequence[Z3Term]) -> List[Z3Term]:
        ...

    def push(self, n_levels: int) -> None:
        ...

    def pop(self, n_levels: int) -> None:
        ...

    def reset(self) -> None:
        ...

    def reset_assertions(self) -> None:
        ...

    def reset_sat(self) -> None:
        ...

    def print_model(self) -> None:
        ...

    # Construction

    def mk_sort(self, kind: SortKind, *sizes: int) -> Z3Sort:
        ...

    def mk_const(self, sort: Z3Sort, name: str) -> Z3Term:
        ...

    def mk_var(self, sort: Z3Sort, name: str) -> Z3Term:
        ...

    def mk_fun(self, name: str, args: Sequence[Z3Term], body: Z3Term) -> Z3Term:
        ...

    def mk_value(self, sort: Z3Sort, value, base: Optional[Base] = None) -> Z3Term:
        ...

    def mk_special_value(self, sort: Z3Sort, value: SpecialValueKind) -> Z3Term:
        ...

    def mk_term(self, kind: str, args: Sequence[Z3Term], indices: Sequence[int]) -> Z3Term:
        ...

    def get_sort(self, term: Z3Term, sort_kind: SortKind) -> Z3Sort:
        ...

    # Capability negotiation

    def disable_unsupported_actions(self, fsm: FSM) -> None:
        ...

    def configure_opmgr(self, opmgr: OpKindManager) -> None:
        ...
