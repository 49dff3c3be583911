"""
Capability profile of the Z3 backend.

The harness reads this document at startup to prune theories and sort kinds
the backend does not support.
"""
import json
from typing import Any, Dict, List

from .kinds import SortKind, Theory

INCLUDED_THEORIES = (
    Theory.ARRAY,
    Theory.BOOL,
    Theory.BV,
    Theory.FP,
    Theory.INT,
    Theory.QUANT,
    Theory.REAL,
    Theory.STRING,
    Theory.UF,
)

EXCLUDED_THEORIES = (
    Theory.BAG,
    Theory.DT,
    Theory.FF,
    Theory.SEQ,
    Theory.SET,
)

EXCLUDED_SORTS = (
    SortKind.BAG,
    SortKind.DT,
    SortKind.FF,
    SortKind.REGLAN,
    SortKind.SEQ,
    SortKind.SET,
)


def profile_dict() -> Dict[str, Any]:
    """Return the profile as a plain dictionary."""
    def names(items) -> List[str]:
        return [str(i) for i in items]

    return {
        "theories": {
            "include": names(INCLUDED_THEORIES),
            "exclude": names(EXCLUDED_THEORIES),
        },
        "sorts": {
            "exclude": names(EXCLUDED_SORTS),
        },
    }


def profile_json() -> str:
    """Return the profile as the JSON document handed to the harness."""
    return json.dumps(profile_dict(), indent=2)
