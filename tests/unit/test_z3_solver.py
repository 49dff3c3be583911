"""
Tests for the Z3 solving-context manager.
"""
import json

import pytest
import z3

from murxla.be.z3solver import (
    Base,
    MurxlaConfigError,
    MurxlaContractError,
    Op,
    SolverResult,
    SortKind,
    Z3Solver,
)
from murxla.be.z3solver.solver import ModelCache


class RecordingFSM:
    def __init__(self):
        self.disabled = []

    def disable_action(self, kind):
        self.disabled.append(kind)


class RecordingOpMgr:
    def __init__(self):
        self.kinds = {}

    def add_op_kind(self, kind, arity, n_indices, sort_kind, sort_kind_args, theory):
        self.kinds[kind] = (arity, n_indices, sort_kind, sort_kind_args, theory)


def _bool_const(s, name):
    return s.mk_const(s.mk_sort(SortKind.BOOL), name)


def _int_const(s, name):
    return s.mk_const(s.mk_sort(SortKind.INT), name)


def _int(s, value):
    return s.mk_value(s.mk_sort(SortKind.INT), str(value))


def test_lifecycle():
    """Test new/delete and the context manager protocol."""
    s = Z3Solver()
    assert not s.is_initialized()
    assert s.get_name() == "Z3"

    s.new_solver()
    assert s.is_initialized()
    with pytest.raises(MurxlaContractError):
        s.new_solver()
    s.delete_solver()
    assert not s.is_initialized()

    with pytest.raises(MurxlaContractError):
        s.delete_solver()
    with pytest.raises(MurxlaContractError):
        s.mk_sort(SortKind.BOOL)

    with Z3Solver() as s2:
        assert s2.is_initialized()
    assert not s2.is_initialized()


def test_push_pop(solver):
    """Test push/pop for backtracking."""
    x = _bool_const(solver, "x")
    solver.assert_formula(x)

    solver.push(1)
    solver.assert_formula(solver.mk_term(Op.NOT, [x]))
    assert solver.check_sat() == SolverResult.UNSAT
    assert solver.depth == 1

    solver.pop(1)
    assert solver.check_sat() == SolverResult.SAT
    assert solver.depth == 0


def test_push_pop_multiple_levels(solver):
    solver.push(3)
    assert solver.depth == 3
    solver.pop(2)
    assert solver.depth == 1

    with pytest.raises(MurxlaContractError):
        solver.pop(2)


def test_get_value(solver):
    x = _int_const(solver, "x")
    solver.assert_formula(solver.mk_term(Op.EQUAL, [x, _int(solver, 42)]))

    assert solver.check_sat() == SolverResult.SAT
    v, = solver.get_value([x])

    assert v.native.as_long() == 42


def test_model_is_cached_until_state_changes(solver):
    """Two get_value calls agree; a new assertion requires a new check."""
    x = _int_const(solver, "x")
    solver.assert_formula(solver.mk_term(Op.INT_GT, [x, _int(solver, 0)]))
    assert solver.check_sat() == SolverResult.SAT

    v1, = solver.get_value([x])
    v2, = solver.get_value([x])
    assert v1 == v2

    solver.assert_formula(solver.mk_term(Op.EQUAL, [x, _int(solver, 7)]))
    with pytest.raises(MurxlaContractError):
        solver.get_value([x])

    assert solver.check_sat() == SolverResult.SAT
    v3, = solver.get_value([x])
    assert v3.native.as_long() == 7


@pytest.mark.parametrize("change", [
    lambda s, x: s.push(1),
    lambda s, x: s.pop(1),
    lambda s, x: s.assert_formula(x),
    lambda s, x: s.reset_assertions(),
    lambda s, x: s.reset(),
])
def test_state_changes_invalidate_model(solver, change):
    """Any change of the assertion state drops the last result and its model."""
    solver.push(1)
    x = _bool_const(solver, "x")
    solver.assert_formula(x)
    assert solver.check_sat() == SolverResult.SAT
    solver.get_value([x])

    change(solver, x)

    with pytest.raises(MurxlaContractError):
        solver.get_value([x])


def test_reset_sat_keeps_result(solver):
    """reset_sat only drops the cached model."""
    x = _bool_const(solver, "x")
    solver.assert_formula(x)
    assert solver.check_sat() == SolverResult.SAT

    solver.reset_sat()
    v, = solver.get_value([x])

    assert z3.is_true(v.native)


def test_model_cache():
    """Test dirty flag handling of the model cache."""
    x = z3.Bool('x')
    native = z3.Solver()
    native.add(x)
    assert native.check() == z3.sat

    cache = ModelCache()
    assert cache.dirty
    m1 = cache.get(native)
    assert not cache.dirty
    assert cache.get(native) is m1

    cache.invalidate()
    assert cache.dirty
    assert cache.get(native) is not m1

    cache.clear()
    assert cache.dirty


def test_get_value_without_sat(solver):
    x = _bool_const(solver, "x")
    with pytest.raises(MurxlaContractError):
        solver.get_value([x])

    solver.assert_formula(solver.mk_term(Op.AND, [x, solver.mk_term(Op.NOT, [x])]))
    assert solver.check_sat() == SolverResult.UNSAT
    with pytest.raises(MurxlaContractError):
        solver.get_value([x])
    with pytest.raises(MurxlaContractError):
        solver.print_model()


def test_print_model(solver, capsys):
    x = _bool_const(solver, "x")
    solver.assert_formula(x)
    assert solver.check_sat() == SolverResult.SAT

    solver.print_model()

    out = capsys.readouterr().out
    assert "x" in out
    assert "true" in out


def test_unsat_assumptions(solver):
    """The assumption responsible for unsatisfiability is reported."""
    a = _bool_const(solver, "a")
    b = _bool_const(solver, "b")
    solver.assert_formula(solver.mk_term(Op.NOT, [a]))

    assert solver.check_sat_assuming([a, b]) == SolverResult.UNSAT

    assert a in solver.get_unsat_assumptions()
    assert solver.is_unsat_assumption(a)
    assert solver.check_sat_assuming([b]) == SolverResult.SAT
    with pytest.raises(MurxlaContractError):
        solver.get_unsat_assumptions()


def test_unsat_core():
    """Asserted formulas are mapped back from their tracking literals."""
    s = Z3Solver()
    s.set_opt("produce-unsat-cores", "true")
    with s:
        assert s.option_unsat_cores_enabled()
        x = _int_const(s, "x")
        y = _int_const(s, "y")
        f1 = s.mk_term(Op.INT_GT, [x, _int(s, 5)])
        f2 = s.mk_term(Op.INT_LT, [x, _int(s, 3)])
        f3 = s.mk_term(Op.INT_GT, [y, _int(s, 0)])
        for f in (f1, f2, f3):
            s.assert_formula(f)

        assert s.check_sat() == SolverResult.UNSAT
        core = s.get_unsat_core()

        assert f1 in core
        assert f2 in core


def test_unsat_core_requires_option(solver):
    x = _bool_const(solver, "x")
    solver.assert_formula(x)
    solver.assert_formula(solver.mk_term(Op.NOT, [x]))
    assert solver.check_sat() == SolverResult.UNSAT

    with pytest.raises(MurxlaContractError):
        solver.get_unsat_core()


def test_option_names_and_defaults(solver):
    assert solver.get_option_name_incremental() == "incremental"
    assert solver.get_option_name_model_gen() == "produce-models"
    assert solver.get_option_name_unsat_assumptions() == "produce-unsat-assumptions"
    assert solver.get_option_name_unsat_cores() == "produce-unsat-cores"

    assert solver.option_incremental_enabled()
    assert solver.option_model_gen_enabled()
    assert solver.option_unsat_assumptions_enabled()
    assert not solver.option_unsat_cores_enabled()


def test_set_opt(solver):
    """Canonical options are mapped, others passed through to Z3."""
    solver.set_opt("incremental", "false")
    assert solver.option_incremental_enabled()

    solver.set_opt("produce-models", "false")
    assert not solver.option_model_gen_enabled()

    solver.set_opt("timeout", "1000")

    with pytest.raises(MurxlaConfigError, match="no_such_z3_option"):
        solver.set_opt("no_such_z3_option", "1")
    with pytest.raises(MurxlaConfigError, match="timeout"):
        solver.set_opt("timeout", "soon")


def test_rejected_option_is_not_recorded(solver):
    """A rejected option leaves the solver usable and is not re-applied on reset."""
    with pytest.raises(MurxlaConfigError):
        solver.set_opt("no_such_z3_option", "true")

    assert solver.check_sat() == SolverResult.SAT
    solver.reset_assertions()
    solver.reset()
    assert solver.check_sat() == SolverResult.SAT


def test_bad_queued_option_leaves_solver_uninitialized():
    s = Z3Solver()
    s.set_opt("no_such_z3_option", "1")

    with pytest.raises(MurxlaConfigError):
        s.new_solver()
    assert not s.is_initialized()


def test_unsat_cores_cannot_be_enabled_after_assertions(solver):
    """Formulas asserted before cores are enabled would be missing from the core."""
    solver.assert_formula(_bool_const(solver, "x"))

    with pytest.raises(MurxlaConfigError, match="produce-unsat-cores"):
        solver.set_opt("produce-unsat-cores", "true")
    assert not solver.option_unsat_cores_enabled()

    solver.reset_assertions()
    solver.set_opt("produce-unsat-cores", "true")
    assert solver.option_unsat_cores_enabled()


def test_options_queued_before_new_solver():
    s = Z3Solver()
    s.set_opt("produce-unsat-cores", "true")
    s.set_opt("timeout", "500")
    assert s.option_unsat_cores_enabled()

    with s:
        assert s.option_unsat_cores_enabled()
        assert s.check_sat() == SolverResult.SAT


def test_reset_clears_options_reset_assertions_keeps_them(solver):
    solver.set_opt("produce-unsat-cores", "true")

    solver.reset_assertions()
    assert solver.option_unsat_cores_enabled()

    solver.reset()
    assert not solver.option_unsat_cores_enabled()
    assert solver.check_sat() == SolverResult.SAT


def test_reset_assertions(solver):
    x = _bool_const(solver, "x")
    solver.push(2)
    solver.assert_formula(x)
    solver.assert_formula(solver.mk_term(Op.NOT, [x]))
    assert solver.check_sat() == SolverResult.UNSAT

    solver.reset_assertions()

    assert solver.depth == 0
    assert solver.check_sat() == SolverResult.SAT


def test_options_from_environment(monkeypatch):
    monkeypatch.setenv("MURXLA_Z3_OPTIONS", "timeout=1000;produce-models=false")

    with Z3Solver() as s:
        assert not s.option_model_gen_enabled()


def test_bad_option_from_environment(monkeypatch):
    monkeypatch.setenv("MURXLA_Z3_OPTIONS", "no_such_z3_option=1")

    with pytest.raises(MurxlaConfigError):
        Z3Solver().new_solver()


def test_assert_non_boolean(solver):
    x = _int_const(solver, "x")
    with pytest.raises(MurxlaConfigError, match="SORT_INT"):
        solver.assert_formula(x)
    with pytest.raises(MurxlaConfigError):
        solver.check_sat_assuming([x])


def test_function_application_sat(solver):
    """f(x, y) = (x + y) > 10 holds for (5, 6) and not for (1, 1)."""
    int_sort = solver.mk_sort(SortKind.INT)
    x = solver.mk_var(int_sort, "x")
    y = solver.mk_var(int_sort, "y")
    body = solver.mk_term(Op.INT_GT, [solver.mk_term(Op.INT_ADD, [x, y]), _int(solver, 10)])
    f = solver.mk_fun("f", [x, y], body)

    app = solver.mk_term(Op.UF_APPLY, [f, _int(solver, 5), _int(solver, 6)])
    solver.assert_formula(app)
    assert solver.check_sat() == SolverResult.SAT
    v, = solver.get_value([app])
    assert z3.is_true(v.native)

    solver.reset_assertions()
    solver.assert_formula(solver.mk_term(Op.UF_APPLY, [f, _int(solver, 1), _int(solver, 1)]))
    assert solver.check_sat() == SolverResult.UNSAT


def test_uninterpreted_function_const(solver):
    """A constant of function sort is applied like a defined function."""
    int_sort = solver.mk_sort(SortKind.INT)
    fun_sort = solver.mk_composite_sort(SortKind.FUN, [int_sort, int_sort, int_sort])
    g = solver.mk_const(fun_sort, "g")

    assert g.is_fun()
    assert solver.get_sort(g, SortKind.FUN).get_fun_arity() == 2

    app = solver.mk_term(Op.UF_APPLY, [g, _int(solver, 1), _int(solver, 2)])
    solver.assert_formula(solver.mk_term(Op.EQUAL, [app, _int(solver, 3)]))
    assert solver.check_sat() == SolverResult.SAT
    v, = solver.get_value([app])
    assert v.native.as_long() == 3


def test_multi_arg_division(solver):
    """Division over three arguments is ((100 / 10) / 2)."""
    d = solver.mk_term(Op.INT_DIV, [_int(solver, 100), _int(solver, 10), _int(solver, 2)])
    assert solver.check_sat() == SolverResult.SAT

    v, = solver.get_value([d])

    assert v.native.as_long() == 5


def test_values_and_to_string(solver):
    bv8 = solver.mk_sort(SortKind.BV, 8)
    t = solver.mk_value(bv8, "ff", Base.HEX)

    assert t == solver.mk_value(bv8, "-1", Base.DEC)
    assert t.to_string() == t.native.sexpr()
    assert bv8.to_string() == "(_ BitVec 8)"
    with pytest.raises(MurxlaConfigError):
        solver.mk_value(bv8, "1")

    r = solver.mk_value_rational(solver.mk_sort(SortKind.REAL), "1", "2")
    assert r.is_real()


@pytest.mark.parametrize("kind,value", [
    (SortKind.BOOL, "false"),
    (SortKind.INT, "42"),
    (SortKind.INT, "-42"),
    (SortKind.REAL, "2.5"),
    (SortKind.REAL, "-1/3"),
    (SortKind.REAL, "-2"),
])
def test_value_string_round_trip(solver, kind, value):
    """The string of a value term is accepted back as a value of its sort."""
    sort = solver.mk_sort(kind)
    t = solver.mk_value(sort, value)

    assert solver.mk_value(sort, t.to_string()) == t


@pytest.mark.parametrize("width,value", [
    (1, "1"),
    (5, "5"),
    (8, "5"),
    (8, "-3"),
    (65, "36893488147419103231"),
])
def test_bv_value_string_round_trip(solver, width, value):
    sort = solver.mk_sort(SortKind.BV, width)
    t = solver.mk_value(sort, value, Base.DEC)

    assert solver.mk_value(sort, t.to_string()) == t


def test_smtlib_numerals(solver):
    """Numerals in Z3's printed form denote the same values as plain ones."""
    int_sort = solver.mk_sort(SortKind.INT)
    real_sort = solver.mk_sort(SortKind.REAL)
    bv8 = solver.mk_sort(SortKind.BV, 8)
    bv5 = solver.mk_sort(SortKind.BV, 5)

    assert solver.mk_value(int_sort, "(- 42)") == solver.mk_value(int_sort, "-42")
    assert solver.mk_value(real_sort, "(- (/ 1.0 3.0))") == solver.mk_value(real_sort, "-1/3")
    assert solver.mk_value(real_sort, "(/ 5.0 2.0)") == solver.mk_value(real_sort, "2.5")
    assert solver.mk_value(bv8, "#x05") == solver.mk_value(bv8, "5", Base.DEC)
    assert solver.mk_value(bv5, "#b00101") == solver.mk_value(bv5, "5", Base.DEC)
    assert solver.mk_value(bv8, "(_ bv5 8)") == solver.mk_value(bv8, "5", Base.DEC)

    for sort, value in [
        (bv8, "#x5"),
        (bv8, "#b101"),
        (bv5, "#x05"),
        (bv8, "(_ bv5 4)"),
        (int_sort, "(- 4.0)"),
        (real_sort, "(/ 1.0 0.0)"),
        (real_sort, "(* 1.0 3.0)"),
    ]:
        with pytest.raises(MurxlaConfigError):
            solver.mk_value(sort, value)


def test_profile(solver):
    profile = json.loads(solver.get_profile())

    assert "THEORY_BV" in profile["theories"]["include"]
    assert "THEORY_UF" in profile["theories"]["include"]
    assert "THEORY_DT" in profile["theories"]["exclude"]
    assert "SORT_DT" in profile["sorts"]["exclude"]


def test_capability_negotiation(solver):
    fsm = RecordingFSM()
    opmgr = RecordingOpMgr()

    solver.disable_unsupported_actions(fsm)
    solver.configure_opmgr(opmgr)

    assert "get-proof" in fsm.disabled
    assert set(opmgr.kinds) == {
        "z3-OP_BV_EXT_ROTATE_LEFT",
        "z3-OP_BV_EXT_ROTATE_RIGHT",
        "z3-OP_BV_REDAND",
        "z3-OP_BV_REDOR",
    }
    assert opmgr.kinds["z3-OP_BV_REDAND"][0] == 1
    assert Op.BV_COMP in solver.get_unsupported_op_kinds()
