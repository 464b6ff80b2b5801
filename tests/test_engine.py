import threading
import time

import pytest

from chrono_assembly.atoms import build_atoms, match_atom_model
from chrono_assembly.description import load_description
from chrono_assembly.engine import ActiveMate
from chrono_assembly.errors import MateConstructionError
from chrono_assembly.models import MateState

from conftest import FakeBody, FakeOracle

DT = 0.01


def _tick_until(engine, mate, state, limit=50):
    for _ in range(limit):
        engine.on_update(DT)
        if mate.committed_state is state:
            return
    raise AssertionError(f"{mate.name} never reached {state}")


def _seated_mate(engine):
    socket, peg = engine.atoms
    return engine.table.get(socket.female_mate_points[0], peg.male_mate_points[0])


def test_atoms_are_matched_by_longest_name_prefix(peg_description):
    peg_description["atom_models"].append(
        {"type": "peg_long", "mate_points": [{"type": "peg", "gender": "male", "pose": [0, 0, -0.1]}]}
    )
    atom_models = load_description(peg_description).atom_models
    bodies = [FakeBody("peg_long_1"), FakeBody("peg_2"), FakeBody("floor")]

    atoms = build_atoms(bodies, atom_models, FakeOracle())

    assert [a.name for a in atoms] == ["peg_long_1", "peg_2"]
    assert atoms[0].model.type == "peg_long"
    assert atoms[1].model.type == "peg"
    assert [a.index for a in atoms] == [0, 1]
    assert match_atom_model("floor", atom_models) is None


def test_scan_creates_one_mate_per_compatible_pair(make_engine, seated_pair, factory):
    engine = make_engine(seated_pair)
    engine.scan_once()

    # 4 symmetric female points on the socket, 1 male point on the peg
    assert len(engine.table) == 4
    assert len(factory.created) == 4
    assert all(c.events == ["init", "detach"] for c in factory.created)
    mate = _seated_mate(engine)
    assert mate.name == "socket_0_m0_to_peg_0_m0"
    assert mate.constraint.parent is seated_pair[0]
    assert mate.constraint.child is seated_pair[1]
    assert mate.baseline_stiffness == {"erp": 0.8}


def test_mate_identity_is_stable_across_scans(make_engine, seated_pair, factory):
    engine = make_engine(seated_pair)
    engine.scan_once()
    first = {id(m) for m in engine.mates}

    for _ in range(3):
        engine.scan_once()
        engine.on_update(DT)

    assert {id(m) for m in engine.mates} == first
    assert factory.attempts == 4
    assert _seated_mate(engine) is engine.mates[0]


def test_no_mates_between_parts_of_one_atom(make_engine, peg_description):
    peg_description["atom_models"][0]["mate_points"].append(
        {"type": "peg", "gender": "male", "pose": [0, 0, 0.05]}
    )
    engine = make_engine([FakeBody("socket_0")], peg_description)
    assert engine.scan_once() == 0
    assert len(engine.table) == 0


def test_scanner_debounces_unconsumed_requests(make_engine, seated_pair):
    engine = make_engine(seated_pair)

    assert engine.scan_once() == 1
    mate = _seated_mate(engine)
    assert mate.pending_state is MateState.MATING

    # Request still pending: the next cycle must not schedule anything
    assert engine.scan_once() == 0
    assert engine.pending_mates() == [mate]

    assert engine.on_update(DT)
    assert mate.pending_state is MateState.NONE
    assert mate.committed_state is MateState.MATING
    assert engine.pending_mates() == []

    _tick_until(engine, mate, MateState.MATED)
    seated_pair[1].move_to((0.2, 0.0, 0.1))
    assert engine.scan_once() == 1
    assert mate.pending_state is MateState.UNMATING
    assert engine.scan_once() == 0


def test_committed_states_follow_the_lifecycle(make_engine, seated_pair):
    engine = make_engine(seated_pair)
    mate = None
    history = []

    def record():
        if mate is not None and (not history or history[-1] is not mate.committed_state):
            history.append(mate.committed_state)

    for tick in range(120):
        if tick == 60:
            seated_pair[1].move_to((0.2, 0.0, 0.1))
        if tick % 5 == 0:
            engine.scan_once()
            mate = _seated_mate(engine)
        record()
        engine.on_update(DT)
        record()

    assert history == [
        MateState.UNMATED,
        MateState.MATING,
        MateState.MATED,
        MateState.UNMATING,
        MateState.UNMATED,
    ]
    assert mate.constraint.events == ["init", "detach", "attach", "detach"]


def test_commit_step_defers_while_scanner_holds_lock(make_engine):
    bodies = [
        FakeBody("socket_0"),
        FakeBody("socket_1", (1.0, 0.0, 0.0)),
        FakeBody("peg_0", (0.0, 0.0, 0.1)),
        FakeBody("peg_1", (5.0, 0.0, 0.1)),
    ]
    engine = make_engine(bodies)
    socket_0, socket_1, peg_0, peg_1 = engine.atoms

    engine.scan_once()
    engine.on_update(DT)
    ramping = engine.table.get(socket_0.female_mate_points[0], peg_0.male_mate_points[0])
    assert ramping.committed_state is MateState.MATING

    bodies[3].move_to((1.0, 0.0, 0.1))
    assert engine.scan_once() == 1
    waiting = engine.table.get(socket_1.female_mate_points[0], peg_1.male_mate_points[0])
    progress = ramping.ramp_progress

    with engine.update_lock:
        started = time.monotonic()
        assert engine.on_update(DT) is False
        assert time.monotonic() - started < 0.5
        assert engine.pending_count == 1
        assert waiting.pending_state is MateState.MATING
        assert waiting.committed_state is MateState.UNMATED
        assert ramping.ramp_progress > progress

    assert engine.deferred_ticks == 1
    assert engine.on_update(DT) is True
    assert waiting.committed_state is MateState.MATING
    assert engine.pending_count == 0


def test_construction_failure_disables_pair(make_engine, seated_pair, peg_description, factory, caplog):
    peg_description["mate_models"][0]["joint"]["type"] = "broken"
    engine = make_engine(seated_pair, peg_description)

    assert engine.scan_once() == 0
    assert factory.attempts == 4
    assert len(engine.table) == 0
    assert len(engine.failed_pairs) == 4
    assert all(isinstance(e, MateConstructionError) for e in engine.failed_pairs.values())
    assert "Unsupported joint kind" in caplog.text

    engine.scan_once()
    assert factory.attempts == 4


def test_active_mates_lists_mated_pairs(make_engine, seated_pair):
    engine = make_engine(seated_pair)
    engine.scan_once()
    engine.on_update(DT)
    assert engine.active_mates() == []

    _tick_until(engine, _seated_mate(engine), MateState.MATED)
    assert engine.active_mates() == [ActiveMate("socket_0", "peg_0", "socket_0_m0_to_peg_0_m0")]


def test_sim_time_accumulates_from_ticks(make_engine, seated_pair):
    engine = make_engine(seated_pair)
    for _ in range(4):
        engine.on_update(0.25)
    assert engine.sim_time == pytest.approx(1.0)


def test_scanner_thread_mates_pairs_and_stops(make_engine, seated_pair, peg_description):
    peg_description["autostart_scanner"] = True
    engine = make_engine(seated_pair, peg_description)

    deadline = time.monotonic() + 10.0
    try:
        while not engine.active_mates() and time.monotonic() < deadline:
            engine.on_update(0.005)
            time.sleep(0.001)
        assert engine.running
    finally:
        engine.stop()

    assert not engine.running
    assert engine.active_mates() == [ActiveMate("socket_0", "peg_0", "socket_0_m0_to_peg_0_m0")]


def test_context_manager_joins_scanner(make_engine, seated_pair):
    engine = make_engine(seated_pair)
    with engine:
        assert engine.running
    assert not engine.running


def test_unexpected_factory_error_only_disables_that_pair(make_engine, factory, peg_description):
    peg_description["autostart_scanner"] = True
    bodies = [
        FakeBody("socket_0"),
        FakeBody("socket_1", (1.0, 0.0, 0.0)),
        FakeBody("peg_0", (0.0, 0.0, 0.1)),
        FakeBody("peg_1", (1.0, 0.0, 0.1)),
    ]
    factory.missing_setter_for.add("peg_0")
    engine = make_engine(bodies, peg_description)

    deadline = time.monotonic() + 10.0
    try:
        while not engine.active_mates() and time.monotonic() < deadline:
            engine.on_update(0.005)
            time.sleep(0.001)
        assert engine.running
    finally:
        engine.stop()

    assert engine.active_mates() == [ActiveMate("socket_1", "peg_1", "socket_1_m0_to_peg_1_m0")]
    failed = engine.failed_pairs
    assert len(failed) == 8
    assert all(male.atom.name == "peg_0" for _, male in failed)
    assert all(isinstance(exc.__cause__, AttributeError) for exc in failed.values())


def test_autostart_does_not_restart_a_stopped_scanner(make_engine, seated_pair, peg_description):
    peg_description["autostart_scanner"] = True
    engine = make_engine(seated_pair, peg_description)

    engine.on_update(DT)
    assert engine.running
    engine.stop()

    engine.on_update(DT)
    assert not engine.running


def test_stop_timeout_keeps_busy_scanner_referenced(make_engine, seated_pair):
    engine = make_engine(seated_pair)
    with engine.update_lock:
        engine.start()
        # Advance simulated time until the scanner blocks on the lock held above
        for _ in range(20):
            engine.on_update(0.02)
            time.sleep(0.01)
        engine.stop(timeout=0.05)
        assert engine.running
        engine.start()
        assert [t.name for t in threading.enumerate()].count("mate-scanner") == 1

    engine.stop()
    assert not engine.running
