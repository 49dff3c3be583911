"""
Satisfiability result types.
"""
from enum import Enum


class SolverResult(Enum):
    """Result from a satisfiability check."""
    SAT = "sat"
    UNSAT = "unsat"
    UNKNOWN = "unknown"

    def __str__(self) -> str:
        return self.value
