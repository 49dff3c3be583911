"""
Z3 backend for the murxla API fuzzer.

This package adapts the Z3 SMT solver to the solver-agnostic interface the
fuzzing harness drives: sort/term handles, operator dispatch, special values
and a solving context with push/pop, options, models and unsat cores.
"""

__version__ = "0.1.0"

from .errors import MurxlaConfigError, MurxlaContractError, MurxlaException
from .handles import Z3Sort, Z3Term
from .kinds import N_ARGS, Base, Op, SortKind, SpecialValueKind, Theory
from .profile import profile_dict, profile_json
from .solver import SolverBackend, SolverResult, Z3Solver

__all__ = [
    "MurxlaConfigError",
    "MurxlaContractError",
    "MurxlaException",
    "Z3Sort",
    "Z3Term",
    "N_ARGS",
    "Base",
    "Op",
    "SortKind",
    "SpecialValueKind",
    "Theory",
    "profile_dict",
    "profile_json",
    "SolverBackend",
    "SolverResult",
    "Z3Solver",
]
