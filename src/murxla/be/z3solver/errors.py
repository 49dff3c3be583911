"""
Error types raised by the Z3 backend adapter.

Configuration errors report requests this backend cannot realize (wrong sort
family, unsupported operator or special value, malformed indices). Contract
violations report a broken harness/adapter invariant and are not meant to be
recovered from.
"""


class MurxlaException(Exception):
    """Base class for adapter exceptions"""


class MurxlaConfigError(MurxlaException):
    """The request is not realizable by this backend."""


class MurxlaContractError(MurxlaException):
    """An internal invariant between harness and adapter is broken."""


def check_config(cond: bool, msg: str) -> None:
    """Raise a MurxlaConfigError with `msg` unless `cond` holds."""
    if not cond:
        raise MurxlaConfigError(msg)


def check_contract(cond: bool, msg: str) -> None:
    """Raise a MurxlaContractError with `msg` unless `cond` holds."""
    if not cond:
        raise MurxlaContractError(msg)
