"""
Option configuration for the Z3 backend.

Maps the harness's canonical option names onto Z3 solver parameters and
parses option overrides from the environment.
"""
import os
import re
from typing import Dict, Mapping, Optional, Union

from .errors import MurxlaConfigError

OPT_INCREMENTAL = "incremental"
OPT_PRODUCE_MODELS = "produce-models"
OPT_PRODUCE_UNSAT_ASSUMPTIONS = "produce-unsat-assumptions"
OPT_PRODUCE_UNSAT_CORES = "produce-unsat-cores"

# Canonical option -> Z3 parameter. None: Z3 provides it unconditionally.
CANONICAL_OPTIONS: Dict[str, Optional[str]] = {
    OPT_INCREMENTAL: None,
    OPT_PRODUCE_MODELS: "model",
    OPT_PRODUCE_UNSAT_ASSUMPTIONS: "unsat_core",
    OPT_PRODUCE_UNSAT_CORES: "unsat_core",
}

# Users can set extra solver options as "key=value;key=value".
ENV_OPTIONS = "MURXLA_Z3_OPTIONS"

ParamValue = Union[bool, int, float, str]


def to_param_key(opt: str) -> Optional[str]:
    """Return the Z3 parameter key for option `opt`.

    Canonical names are mapped; any other name is passed through unchanged.
    Returns None for canonical options Z3 does not need to be told about.
    """
    if opt in CANONICAL_OPTIONS:
        return CANONICAL_OPTIONS[opt]
    return opt


def to_param_value(value: str) -> ParamValue:
    """Convert an option value string into the Python type Z3 expects."""
    s = value.strip()
    if s in ("true", "false"):
        return s == "true"
    if re.fullmatch(r"-?\d+", s):
        return int(s)
    if re.fullmatch(r"-?\d+\.\d*", s):
        return float(s)
    return s


def parse_option_string(text: str) -> Dict[str, str]:
    """Parse `key=value;key=value` into an ordered dict of options."""
    out: Dict[str, str] = {}
    for item in text.split(";"):
        item = item.strip()
        if not item:
            continue
        if "=" not in item:
            raise MurxlaConfigError(f"Malformed option '{item}', expected key=value")
        key, value = item.split("=", 1)
        key = key.strip()
        if not key:
            raise MurxlaConfigError(f"Malformed option '{item}', empty option name")
        out[key] = value.strip()
    return out


def options_from_env(environ: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Return the options given in $MURXLA_Z3_OPTIONS (empty if unset)."""
    env = os.environ if environ is None else environ
    text = env.get(ENV_OPTIONS)
    if not text:
        return {}
    return parse_option_string(text)
