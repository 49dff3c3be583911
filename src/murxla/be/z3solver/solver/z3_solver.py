"""
Z3 solving-context manager.

Owns the native context/solver/model triple of one fuzzing session and
exposes construction, push/pop scoping, option configuration, satisfiability
checks, unsat cores and model queries to the harness.
"""
import logging
from typing import Dict, List, Optional, Sequence, Union

import z3

from .. import config
from ..errors import MurxlaConfigError, check_config, check_contract
from ..handles import Z3Sort, Z3Term
from ..kinds import Base, SortKind, SpecialValueKind
from ..profile import profile_json
from ..translator.op_translator import EXTRA_OP_KINDS, OpTranslator, unsupported_op_kinds
from ..translator.sort_translator import SortTranslator
from ..translator.value_translator import ValueTranslator
from .base import FSM, OpKindManager
from .result import SolverResult

logger = logging.getLogger(__name__)

# Harness actions Z3 cannot serve through this adapter
UNSUPPORTED_ACTIONS = ("get-proof", "term-get-children")


class ModelCache:
    """Lazily built model with an explicit dirty flag.

    Every state-changing operation marks the cache dirty; the model is only
    rebuilt on the next request after a SAT result.
    """

    def __init__(self):
        self._model: Optional[z3.ModelRef] = None
        self._dirty = True

    @property
    def dirty(self) -> bool:
        return self._dirty

    def invalidate(self) -> None:
        self._dirty = True

    def get(self, solver: z3.Solver) -> z3.ModelRef:
        """Return the cached model, fetching it from `solver` if dirty."""
        if self._dirty or self._model is None:
            self._model = solver.model()
            self._dirty = False
        return self._model

    def clear(self) -> None:
        self._model = None
        self._dirty = True


class Z3Solver:
    """Z3 backend of the fuzzing harness.

    Usage:
        with Z3Solver() as s:
            x = s.mk_const(s.mk_sort(SortKind.BOOL), "x")
            s.assert_formula(x)
            assert s.check_sat() == SolverResult.SAT
    """

    NAME = "Z3"

    def __init__(self):
        self._ctx: Optional[z3.Context] = None
        self._solver: Optional[z3.Solver] = None
        self._model = ModelCache()

        # Options set by the harness, in order; applied on (re)creation
        self._options: Dict[str, str] = {}

        self._depth = 0
        self._last_result: Optional[SolverResult] = None
        self._last_assumptions: List[Z3Term] = []
        # tracking literal -> asserted formula
        self._tracked: Dict[Z3Term, Z3Term] = {}
        self._n_trackers = 0
        # formulas asserted since the last reset
        self._n_asserted = 0

        self._sorts: Optional[SortTranslator] = None
        self._values: Optional[ValueTranslator] = None
        self._ops: Optional[OpTranslator] = None

    def __enter__(self) -> "Z3Solver":
        self.new_solver()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.is_initialized():
            self.delete_solver()

    # Session lifecycle

    def new_solver(self) -> None:
        """Create the native context and solver and apply pending options.

        Raises:
            MurxlaContractError: If the solver is already initialized.
            MurxlaConfigError: If Z3 rejects a queued or environment option;
                the solver is left uninitialized.
        """
        check_contract(not self.is_initialized(), "Solver is already initialized")
        self._ctx = z3.Context()
        self._solver = z3.Solver(ctx=self._ctx)
        self._sorts = SortTranslator(self._ctx)
        self._values = ValueTranslator(self._ctx)
        self._ops = OpTranslator(self._ctx)
        self._depth = 0
        try:
            self._apply_options()
        except MurxlaConfigError:
            self.delete_solver()
            raise
        logger.debug("created Z3 solver (options: %s)", self._options)

    def delete_solver(self) -> None:
        """Release solver, model and context, in that order."""
        check_contract(self.is_initialized(), "Solver is not initialized")
        self._solver = None
        self._model.clear()
        self._ctx = None
        self._sorts = self._values = self._ops = None
        self._clear_assertion_state()
        logger.debug("deleted Z3 solver")

    def is_initialized(self) -> bool:
        """Whether a native solver exists, i.e. between new_solver and delete_solver."""
        return self._solver is not None

    def get_name(self) -> str:
        return self.NAME

    def get_profile(self) -> str:
        """Return the capability profile as a JSON document."""
        return profile_json()

    @property
    def depth(self) -> int:
        """Current push/pop depth."""
        return self._depth

    # Options

    def set_opt(self, opt: str, value: str) -> None:
        """Set a canonical or Z3-specific option.

        Before `new_solver` the option is queued and applied on creation.
        On an initialized solver the option is checked against the solver's
        parameter descriptions first, and only recorded if Z3 accepts it.
        Unsat cores cannot be enabled once formulas have been asserted, since
        earlier assertions would have no tracking literal.

        Args:
            opt: Canonical option name or Z3 parameter name
            value: Option value as given on the command line

        Raises:
            MurxlaConfigError: If Z3 does not know the parameter, rejects the
                value, or cores are enabled after the first assertion.
        """
        logger.debug("set option %s=%s", opt, value)
        if self.is_initialized():
            check_config(not (opt == config.OPT_PRODUCE_UNSAT_CORES and value == "true"
                              and self._n_asserted > 0),
                         f"Cannot enable '{opt}' after {self._n_asserted} formulas "
                         f"have been asserted")
            self._apply_option(opt, value)
        self._options[opt] = value

    def _apply_options(self) -> None:
        for opt, value in list(self._options.items()):
            self._apply_option(opt, value)
        for opt, value in config.options_from_env().items():
            logger.debug("option %s=%s from $%s", opt, value, config.ENV_OPTIONS)
            self.set_opt(opt, value)

    def _apply_option(self, opt: str, value: str) -> None:
        key = config.to_param_key(opt)
        if key is None:
            return
        param_value = config.to_param_value(value)
        try:
            # Solver.set does not reject unknown parameter names
            params = z3.ParamsRef(self._ctx)
            params.set(key, param_value)
            params.validate(self._solver.param_descrs())
            self._solver.set(key, param_value)
        except z3.Z3Exception as e:
            logger.debug("Z3 rejected option %s=%s", opt, value)
            raise MurxlaConfigError(f"Z3 rejected option '{opt}={value}': {e}") from e

    def get_option_name_incremental(self) -> str:
        return config.OPT_INCREMENTAL

    def get_option_name_model_gen(self) -> str:
        return config.OPT_PRODUCE_MODELS

    def get_option_name_unsat_assumptions(self) -> str:
        return config.OPT_PRODUCE_UNSAT_ASSUMPTIONS

    def get_option_name_unsat_cores(self) -> str:
        return config.OPT_PRODUCE_UNSAT_CORES

    def option_incremental_enabled(self) -> bool:
        return True

    def option_model_gen_enabled(self) -> bool:
        return self._options.get(config.OPT_PRODUCE_MODELS, "true") != "false"

    def option_unsat_assumptions_enabled(self) -> bool:
        return True

    def option_unsat_cores_enabled(self) -> bool:
        return self._options.get(config.OPT_PRODUCE_UNSAT_CORES) == "true"

    # Construction

    def mk_sort(self, kind: SortKind, *sizes: int) -> Z3Sort:
        """Create a nullary or size-parameterized sort.

        Args:
            kind: Sort kind
            sizes: Bit-width for BV, exponent and significand size for FP

        Returns:
            Wrapped Z3 sort
        """
        return self._sort_translator().mk_sort(kind, *sizes)

    def mk_uninterpreted_sort(self, name: str) -> Z3Sort:
        return self._sort_translator().mk_uninterpreted_sort(name)

    def mk_composite_sort(self, kind: SortKind, sorts: Sequence[Z3Sort]) -> Z3Sort:
        """Create an ARRAY or FUN sort from its parameter sorts.

        Args:
            kind: SORT_ARRAY or SORT_FUN
            sorts: Index and element sort, or domain sorts then codomain

        Returns:
            Wrapped Z3 sort
        """
        return self._sort_translator().mk_composite_sort(kind, sorts)

    def mk_const(self, sort: Z3Sort, name: str) -> Z3Term:
        """Create a free constant; function sorts stay attached to it."""
        self._check_initialized()
        const = z3.Const(name, Z3Sort.get_z3_sort(sort))
        return Z3Term(const, sort if sort.is_fun() else None)

    def mk_var(self, sort: Z3Sort, name: str) -> Z3Term:
        """Create a variable to be bound by a quantifier or function."""
        return self.mk_const(sort, name)

    def mk_fun(self, name: str, args: Sequence[Z3Term], body: Z3Term) -> Z3Term:
        """Define a function from bound variables and a body.

        Args:
            name: Function name, used for logging only
            args: Variables created with `mk_var`
            body: Function body over `args`

        Returns:
            Function-sorted term
        """
        self._check_initialized()
        return self._ops.mk_fun(name, args, body)

    def mk_value(self, sort: Z3Sort, value: Union[bool, str], base: Optional[Base] = None) -> Z3Term:
        """Create a literal.

        Numerals may also be given in the SMT-LIB form Z3 prints them in,
        so the string of a value term can be fed back in.

        Args:
            sort: Sort of the literal
            value: bool, or a numeral/string literal
            base: Numeral base, given for bit-vector literals only

        Returns:
            Wrapped Z3 literal

        Raises:
            MurxlaConfigError: If the value is malformed or does not match
                the sort.
        """
        self._check_initialized()
        if base is not None:
            return self._values.mk_bv_value(sort, value, base)
        if sort.is_bv() and not isinstance(value, bool):
            return self._values.mk_bv_literal(sort, value)
        return self._values.mk_value(sort, value)

    def mk_value_rational(self, sort: Z3Sort, num: str, den: str) -> Z3Term:
        """Create the real value num/den."""
        self._check_initialized()
        return self._values.mk_value_rational(sort, num, den)

    def mk_special_value(self, sort: Z3Sort, value: SpecialValueKind) -> Z3Term:
        """Create a special value, e.g. NaN or the minimum signed bit-vector.

        Args:
            sort: Bit-vector, floating-point or rounding-mode sort
            value: Special value kind of the sort's family

        Returns:
            Wrapped Z3 term
        """
        self._check_initialized()
        return self._values.mk_special_value(sort, value)

    def mk_term(self, kind: str, args: Sequence[Z3Term], indices: Sequence[int] = ()) -> Z3Term:
        """Create a term of operator kind `kind`.

        Args:
            kind: Canonical or Z3-specific operator kind
            args: Term arguments
            indices: Integer indices of parameterized kinds

        Returns:
            Wrapped Z3 term

        Raises:
            MurxlaConfigError: If the kind is unsupported or the arguments do
                not fit it.
        """
        self._check_initialized()
        return self._ops.mk_term(kind, args, indices)

    def get_sort(self, term: Z3Term, sort_kind: SortKind) -> Z3Sort:
        """Return the sort of `term`, read as a function sort if `sort_kind` is FUN."""
        return self._sort_translator().get_sort(term.get_sort(), sort_kind)

    # Assertions and checks

    def assert_formula(self, t: Z3Term) -> None:
        """Assert a Boolean term at the current level.

        With unsat cores enabled the formula is tracked by a fresh literal.

        Args:
            t: Boolean term

        Raises:
            MurxlaConfigError: If `t` is not Boolean.
        """
        self._check_initialized()
        check_config(t.is_bool(), f"Expected Boolean term to assert, got sort kind '{t.get_sort().kind}'")
        native = Z3Term.get_z3_term(t)
        if self.option_unsat_cores_enabled():
            tracker = z3.Bool(f"_murxla_track_{self._n_trackers}", self._ctx)
            self._n_trackers += 1
            self._solver.assert_and_track(native, tracker)
            self._tracked[Z3Term(tracker)] = t
        else:
            self._solver.add(native)
        self._n_asserted += 1
        self._state_changed()

    def check_sat(self) -> SolverResult:
        """Check satisfiability of the current assertions.

        Returns:
            SAT, UNSAT or UNKNOWN
        """
        self._check_initialized()
        self._state_changed()
        self._last_assumptions = []
        self._last_result = self._to_result(self._solver.check())
        logger.debug("check-sat: %s", self._last_result)
        return self._last_result

    def check_sat_assuming(self, assumptions: Sequence[Z3Term]) -> SolverResult:
        """Check satisfiability under Boolean assumptions.

        Args:
            assumptions: Boolean terms assumed for this check only

        Returns:
            SAT, UNSAT or UNKNOWN

        Raises:
            MurxlaConfigError: If an assumption is not Boolean.
        """
        self._check_initialized()
        for a in assumptions:
            check_config(a.is_bool(), f"Expected Boolean assumption, got sort kind '{a.get_sort().kind}'")
        self._state_changed()
        self._last_assumptions = list(assumptions)
        natives = Z3Term.terms_to_z3_terms(assumptions)
        self._last_result = self._to_result(self._solver.check(*natives))
        logger.debug("check-sat-assuming (%d assumptions): %s", len(natives), self._last_result)
        return self._last_result

    @staticmethod
    def _to_result(r: z3.CheckSatResult) -> SolverResult:
        if r == z3.sat:
            return SolverResult.SAT
        elif r == z3.unsat:
            return SolverResult.UNSAT
        return SolverResult.UNKNOWN

    def _native_core(self) -> List[Z3Term]:
        check_contract(self._last_result == SolverResult.UNSAT,
                       "Unsat core requested without preceding UNSAT result")
        return Z3Term.z3_terms_to_terms(list(self._solver.unsat_core()))

    def get_unsat_assumptions(self) -> List[Z3Term]:
        """Return the assumptions of the last check that are in the core.

        Raises:
            MurxlaContractError: If the last check was not UNSAT.
        """
        core = set(self._native_core())
        return [a for a in self._last_assumptions if a in core]

    def is_unsat_assumption(self, t: Z3Term) -> bool:
        return t in set(self._native_core())

    def get_unsat_core(self) -> List[Z3Term]:
        """Return the asserted formulas in the unsat core.

        Returns:
            The terms passed to `assert_formula` whose tracking literals are
            in Z3's core

        Raises:
            MurxlaContractError: If unsat cores are disabled or the last
                check was not UNSAT.
        """
        check_contract(self.option_unsat_cores_enabled(),
                       f"Unsat core requested without '{config.OPT_PRODUCE_UNSAT_CORES}' enabled")
        return [self._tracked[c] for c in self._native_core() if c in self._tracked]

    def get_value(self, terms: Sequence[Z3Term]) -> List[Z3Term]:
        """Evaluate `terms` in the model of the last SAT check.

        The model is built on the first request and reused until the
        assertion state changes.

        Args:
            terms: Terms to evaluate

        Returns:
            One value term per input term, in order

        Raises:
            MurxlaContractError: If the last check was not SAT or the
                assertion state changed since.
        """
        self._check_initialized()
        check_contract(self._last_result == SolverResult.SAT,
                       "Model requested without preceding SAT result")
        model = self._model.get(self._solver)
        values = []
        for t in terms:
            v = model.eval(Z3Term.get_z3_term(t), model_completion=True)
            tracked = t.tracked_sort
            values.append(Z3Term(v, tracked if tracked is not None and tracked.is_fun() else None))
        return values

    def print_model(self) -> None:
        """Write the model of the last SAT check to stdout."""
        self._check_initialized()
        check_contract(self._last_result == SolverResult.SAT,
                       "Model requested without preceding SAT result")
        print(self._model.get(self._solver).sexpr())

    # Scoping and resets

    def push(self, n_levels: int = 1) -> None:
        """Open `n_levels` assertion levels."""
        self._check_initialized()
        for _ in range(n_levels):
            self._solver.push()
            self._depth += 1
        self._state_changed()

    def pop(self, n_levels: int = 1) -> None:
        """Close `n_levels` assertion levels.

        Args:
            n_levels: Number of levels, at most the current depth

        Raises:
            MurxlaContractError: If `n_levels` exceeds the current depth.
        """
        self._check_initialized()
        check_contract(n_levels <= self._depth,
                       f"Cannot pop {n_levels} levels at depth {self._depth}")
        for _ in range(n_levels):
            self._solver.pop()
            self._depth -= 1
        self._state_changed()

    def reset(self) -> None:
        """Drop assertions and options; the context is kept."""
        self._check_initialized()
        self._options.clear()
        self._solver = z3.Solver(ctx=self._ctx)
        self._clear_assertion_state()
        self._apply_options()
        logger.debug("reset Z3 solver")

    def reset_assertions(self) -> None:
        """Drop assertions; options stay in effect."""
        self._check_initialized()
        self._solver.reset()
        self._clear_assertion_state()
        logger.debug("reset assertions")

    def reset_sat(self) -> None:
        self._model.invalidate()

    def _clear_assertion_state(self) -> None:
        self._depth = 0
        self._tracked.clear()
        self._n_asserted = 0
        self._state_changed()

    def _state_changed(self) -> None:
        self._model.invalidate()
        self._last_result = None

    # Capability negotiation

    def disable_unsupported_actions(self, fsm: FSM) -> None:
        """Disable the harness actions listed in UNSUPPORTED_ACTIONS."""
        for action in UNSUPPORTED_ACTIONS:
            fsm.disable_action(action)

    def configure_opmgr(self, opmgr: OpKindManager) -> None:
        """Register the Z3-specific operator kinds with the harness.

        Args:
            opmgr: The harness's operator kind registry
        """
        for op in EXTRA_OP_KINDS:
            opmgr.add_op_kind(op.kind, op.arity, op.n_indices,
                              op.sort_kind, list(op.sort_kind_args), op.theory)

    def get_unsupported_op_kinds(self) -> List[str]:
        return unsupported_op_kinds()

    def _check_initialized(self) -> None:
        check_contract(self.is_initialized(), "Solver is not initialized")

    def _sort_translator(self) -> SortTranslator:
        self._check_initialized()
        return self._sorts
