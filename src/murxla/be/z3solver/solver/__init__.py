"""Solving-context layer of the Z3 backend."""

from .base import FSM, OpKindManager, SolverBackend
from .result import SolverResult
from .z3_solver import ModelCache, Z3Solver

__all__ = [
    "FSM",
    "OpKindManager",
    "SolverBackend",
    "SolverResult",
    "ModelCache",
    "Z3Solver",
]
