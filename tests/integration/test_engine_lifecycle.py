
import sys
import os
import unittest
import logging
from unittest.mock import MagicMock

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

import pytest

from test_utils import make_mon, make_sides, start_battle, move, switch, index_of
from turnsim.battle_engine import BattleNotInitializedError, Engine
from turnsim.samples import sample_sides


def play(engine, turns):
    """Drive the sample teams with a fixed script and return every result."""
    script = [
        [move("p1", "charizard", "flamethrower"), move("p2", "pelipper", "hurricane")],
        [move("p1", "charizard", "u_turn"), move("p2", "pelipper", "surf")],
        [move("p1", "skarmory", "stealth_rock"), move("p2", "pelipper", "tailwind")],
        [move("p1", "skarmory", "aerial_ace"), move("p2", "pelipper", "u_turn")],
    ]
    return [engine.process_turn(script[i % len(script)]) for i in range(turns)]


class TestDeterminism(unittest.TestCase):
    def test_same_seed_same_battle(self):
        engine_a = Engine(seed=1234)
        state_a = engine_a.initialize_battle(sample_sides())
        engine_b = Engine(seed=1234)
        state_b = engine_b.initialize_battle(sample_sides())

        results_a = play(engine_a, 4)
        results_b = play(engine_b, 4)

        self.assertEqual([r.events for r in results_a], [r.events for r in results_b])
        self.assertEqual(
            [[(e.type, e.payload) for e in r.anim] for r in results_a],
            [[(e.type, e.payload) for e in r.anim] for r in results_b],
        )
        self.assertEqual(state_a.fingerprint(), state_b.fingerprint())

    def test_seed_passed_to_initialize_wins(self):
        engine_a = Engine(seed=1)
        engine_a.initialize_battle(sample_sides(), seed=77)
        engine_b = Engine(seed=77)
        engine_b.initialize_battle(sample_sides())
        self.assertEqual([engine_a.rng() for _ in range(5)], [engine_b.rng() for _ in range(5)])

    def test_lcg_values_in_unit_interval(self):
        engine = Engine(seed=5)
        engine.initialize_battle(sample_sides())
        for _ in range(200):
            value = engine.rng()
            self.assertGreaterEqual(value, 0.0)
            self.assertLess(value, 1.0)

    def test_unseeded_engine_still_runs(self):
        engine = Engine()
        state = engine.initialize_battle(sample_sides())
        self.assertIsNone(state.rng_seed)
        play(engine, 2)
        self.assertEqual(state.turn, 2)


class TestEntryPoints(unittest.TestCase):
    def test_uninitialized_engine_raises(self):
        engine = Engine(seed=1)
        with self.assertRaises(BattleNotInitializedError):
            engine.process_turn([])
        with self.assertRaises(BattleNotInitializedError):
            engine.force_switch("p1", 0)

    def test_initialize_requires_two_sides(self):
        engine = Engine(seed=1)
        sides = make_sides([make_mon("a")], [make_mon("b")])
        with self.assertRaises(ValueError):
            engine.initialize_battle(sides[:1])

    def test_initialize_announces_leads(self):
        engine, state = start_battle([make_mon("a")], [make_mon("b")])
        self.assertIn("Player sent out A!", state.log)
        self.assertIn("Rival sent out B!", state.log)
        self.assertEqual(state.turn, 0)

    def test_turn_counter_advances_once_per_turn(self):
        engine, state = start_battle([make_mon("a")], [make_mon("b")])
        engine.process_turn([])
        engine.process_turn([])
        self.assertEqual(state.turn, 2)

    def test_force_switch_does_not_advance_turn(self):
        engine, state = start_battle([make_mon("a"), make_mon("b"), make_mon("c")], [make_mon("x")])
        engine.process_turn([])
        for index in (1, 2, 0):
            result = engine.force_switch("p1", index)
            self.assertEqual(state.sides[0].active_index, index)
            self.assertTrue(any("sent out" in line for line in result.events))
        self.assertEqual(state.turn, 1)

    def test_force_switch_to_fainted_member_is_noop(self):
        bench = make_mon("bench")
        engine, state = start_battle([make_mon("lead"), bench], [make_mon("x")])
        bench.current_hp = 0
        with self.assertLogs(level="WARNING"):
            result = engine.force_switch("p1", 1)
        self.assertEqual(result.events, [])
        self.assertEqual(state.sides[0].active_index, 0)

    def test_force_switch_clamps_index(self):
        engine, state = start_battle([make_mon("a"), make_mon("b")], [make_mon("x")])
        engine.force_switch("p1", 9)
        self.assertEqual(state.sides[0].active_index, 1)

    def test_unknown_actor_is_skipped(self):
        engine, state = start_battle([make_mon("a", types=["Fire"])], [make_mon("b", types=["Fire"])], rng=0.5)
        with self.assertLogs(level="WARNING"):
            result = engine.process_turn([move("p1", "ghost", "tackle"), move("p2", "b", "tackle")])
        self.assertNotEqual(index_of(result.events, "B used Tackle!"), -1)
        self.assertEqual(index_of(result.events, "Ghost"), -1)

    def test_switch_with_bad_index_is_skipped(self):
        engine, state = start_battle([make_mon("a", types=["Fire"]), make_mon("c")], [make_mon("x", types=["Fire"])], rng=0.5)
        for bad in (None, "x"):
            with self.assertLogs(level="WARNING"):
                result = engine.process_turn([switch("p1", "a", bad), move("p2", "x", "tackle")])
            self.assertEqual(state.sides[0].active_index, 0)
            self.assertNotEqual(index_of(result.events, "X used Tackle!"), -1)

    def test_force_switch_with_bad_index_is_noop(self):
        engine, state = start_battle([make_mon("a"), make_mon("c")], [make_mon("x")])
        with self.assertLogs(level="WARNING"):
            result = engine.force_switch("p1", None)
        self.assertEqual(result.events, [])
        self.assertEqual(state.sides[0].active_index, 0)

    def test_fainted_actor_is_skipped(self):
        a = make_mon("a", types=["Fire"])
        engine, state = start_battle([a], [make_mon("b", types=["Fire"])])
        a.current_hp = 0
        result = engine.process_turn([move("p1", "a", "tackle")])
        self.assertEqual(index_of(result.events, "A used Tackle!"), -1)

    def test_log_accumulates_across_calls(self):
        engine, state = start_battle([make_mon("a", types=["Fire"])], [make_mon("b", types=["Fire"])], rng=0.5)
        before = len(state.log)
        result = engine.process_turn([move("p1", "a", "tackle")])
        self.assertEqual(state.log[before:], result.events)
        self.assertIs(result.state, state)


class TestTargeting(unittest.TestCase):
    def test_stale_target_redirects_to_replacement(self):
        lead = make_mon("lead", types=["Fire"])
        bench = make_mon("bench", types=["Fire"])
        attacker = make_mon("attacker", types=["Fire"])
        engine, state = start_battle([attacker], [lead, bench], rng=0.5)

        engine.process_turn([
            move("p1", "attacker", "tackle", target_side_id="p2", target_pokemon_id="lead"),
            switch("p2", "lead", 1),
        ])
        self.assertEqual(lead.current_hp, 100)
        self.assertEqual(bench.current_hp, 100 - 17)

    def test_switch_with_stale_pokemon_is_skipped(self):
        engine, state = start_battle([make_mon("a"), make_mon("b")], [make_mon("x")])
        with self.assertLogs(level="WARNING"):
            engine.process_turn([switch("p1", "b", 0)])
        self.assertEqual(state.sides[0].active_index, 0)


class TestPPAndStruggle(unittest.TestCase):
    def test_pp_decrements_once(self):
        a = make_mon("a", types=["Fire"])
        engine, state = start_battle([a], [make_mon("b", types=["Fire"])], rng=0.5)
        engine.process_turn([move("p1", "a", "tackle")])
        self.assertEqual(a.volatile.pp["tackle"], 34)

    def test_pressure_costs_two(self):
        a = make_mon("a", types=["Fire"])
        engine, state = start_battle([a], [make_mon("b", types=["Fire"], ability="pressure")], rng=0.5)
        engine.process_turn([move("p1", "a", "tackle")])
        self.assertEqual(a.volatile.pp["tackle"], 33)

    def test_struggle_when_out_of_pp(self):
        a = make_mon("a", types=["Fire"])
        b = make_mon("b", types=["Fire"])
        engine, state = start_battle([a], [b], rng=0.5)
        a.volatile.pp["tackle"] = 0

        result = engine.process_turn([move("p1", "a", "tackle")])
        self.assertNotEqual(index_of(result.events, "A used Struggle!"), -1)
        self.assertNotEqual(index_of(result.events, "A is damaged by recoil! (-25)"), -1)
        self.assertEqual(a.current_hp, 75)
        self.assertLess(b.current_hp, 100)

    def test_empty_move_with_pp_elsewhere_does_nothing(self):
        a = make_mon("a", types=["Fire"], moves=("tackle", "ember"))
        engine, state = start_battle([a], [make_mon("b", types=["Water"])], rng=0.5)
        a.volatile.pp["tackle"] = 0

        result = engine.process_turn([move("p1", "a", "tackle")])
        self.assertIn("A has no PP left for Tackle!", result.events)
        self.assertEqual(index_of(result.events, "A used"), -1)

    def test_unknown_move_is_skipped_while_pp_remains(self):
        a = make_mon("a", types=["Fire"])
        b = make_mon("b", types=["Fire"])
        engine, state = start_battle([a], [b], rng=0.5)
        with self.assertLogs(level="WARNING"):
            result = engine.process_turn([move("p1", "a", "hyper_beam")])
        self.assertEqual(index_of(result.events, "A used"), -1)
        self.assertEqual(b.current_hp, 100)
        self.assertEqual(a.current_hp, 100)
        self.assertEqual(a.volatile.pp["tackle"], 35)

    def test_unknown_move_struggles_when_nothing_has_pp(self):
        a = make_mon("a", types=["Fire"])
        engine, state = start_battle([a], [make_mon("b", types=["Fire"])], rng=0.5)
        a.volatile.pp["tackle"] = 0
        result = engine.process_turn([move("p1", "a", "hyper_beam")])
        self.assertNotEqual(index_of(result.events, "A used Struggle!"), -1)
        self.assertLess(a.current_hp, 100)


class TestPivot(unittest.TestCase):
    def test_u_turn_switches_user_out(self):
        lead = make_mon("lead", types=["Fire"], moves=("u_turn",))
        bench = make_mon("bench", types=["Fire"])
        engine, state = start_battle([lead, bench], [make_mon("foe")], rng=0.5)

        result = engine.process_turn([move("p1", "lead", "u_turn")])
        self.assertLess(index_of(result.events, "It dealt"), index_of(result.events, "Lead went back to Player!"))
        self.assertNotEqual(index_of(result.events, "Player sent out Bench!"), -1)
        self.assertIs(state.sides[0].active, bench)
        # PP survives the switch-out.
        self.assertEqual(lead.volatile.pp["u_turn"], 19)

    def test_life_orb_recoil_applies_before_pivot(self):
        lead = make_mon("lead", types=["Fire"], moves=("u_turn",), item="life_orb")
        bench = make_mon("bench", types=["Fire"])
        engine, state = start_battle([lead, bench], [make_mon("foe")], rng=0.5)

        result = engine.process_turn([move("p1", "lead", "u_turn")])
        self.assertEqual(lead.current_hp, 90)
        self.assertLess(index_of(result.events, "lost some of its HP"), index_of(result.events, "went back"))

    def test_no_pivot_without_healthy_bench(self):
        lead = make_mon("lead", types=["Fire"], moves=("u_turn",))
        bench = make_mon("bench", types=["Fire"])
        engine, state = start_battle([lead, bench], [make_mon("foe")], rng=0.5)
        bench.current_hp = 0

        engine.process_turn([move("p1", "lead", "u_turn")])
        self.assertIs(state.sides[0].active, lead)


class TestObservers(unittest.TestCase):
    def test_switch_in_observer_sees_leads(self):
        engine = Engine(seed=1)
        observer = engine.on_switch_in(MagicMock())
        state = engine.initialize_battle(make_sides([make_mon("a")], [make_mon("b")]))
        self.assertEqual(observer.call_count, 2)
        first = observer.call_args_list[0][0]
        self.assertEqual(first[0].id, "a")
        self.assertIs(first[1], state)

    def test_move_observer_runs_before_damage(self):
        engine, state = start_battle([make_mon("a", types=["Fire"])], [make_mon("b", types=["Fire"])], rng=0.5)
        seen = []
        engine.on_move_execute(lambda mv, user, target, st, log: seen.append((mv.id, user.id, target.current_hp)))
        engine.process_turn([move("p1", "a", "tackle")])
        self.assertEqual(seen, [("tackle", "a", 100)])

    def test_extra_status_provider_runs_after_default(self):
        a = make_mon("a")
        engine, state = start_battle([a], [make_mon("b")])
        a.status = "burn"
        provider = engine.on_status_tick(MagicMock())

        engine.process_turn([])
        self.assertEqual(a.current_hp, 94)
        provider.assert_called_once()
        args = provider.call_args[0]
        self.assertIs(args[0], a)
        self.assertEqual(args[1], "burn")
        self.assertIs(args[2], state)

    def test_status_provider_writes_through_turn_log(self):
        a = make_mon("a")
        engine, state = start_battle([a], [make_mon("b")])
        a.status = "burn"

        @engine.on_status_tick
        def smoulder(pokemon, status, st, log):
            log.append(f"{pokemon.name} is smouldering!")
            log.emit("status:smoulder", {"target": pokemon.id})

        result = engine.process_turn([])
        self.assertIn("A is smouldering!", result.events)
        self.assertIn("A is smouldering!", state.log)
        smoulder_anims = [e for e in result.anim if e.type == "status:smoulder"]
        self.assertEqual(len(smoulder_anims), 1)
        self.assertEqual(smoulder_anims[0].payload, {"target": "a"})

    def test_disabling_default_residuals(self):
        a = make_mon("a")
        engine, state = start_battle([a], [make_mon("b")], status_residuals=False)
        a.status = "burn"
        engine.process_turn([])
        self.assertEqual(a.current_hp, 100)


class TestFaints(unittest.TestCase):
    def test_faint_is_announced_once(self):
        foe = make_mon("foe", types=["Fire"])
        engine, state = start_battle([make_mon("a", types=["Fire"])], [foe], rng=0.5)
        foe.current_hp = 1

        first = engine.process_turn([move("p1", "a", "tackle")])
        second = engine.process_turn([])
        self.assertEqual(sum(1 for line in first.events if line == "Foe fainted!"), 1)
        self.assertNotIn("Foe fainted!", second.events)
        self.assertEqual(sum(1 for e in first.anim if e.type == "pokemon:faint"), 1)


@pytest.mark.parametrize("status,turns,expected_hp", [
    ("burn", 1, 94),
    ("poison", 1, 88),
    ("toxic", 1, 94),
    ("toxic", 2, 82),
    ("toxic", 3, 64),
])
def test_status_residuals(status, turns, expected_hp):
    a = make_mon("a")
    engine, state = start_battle([a], [make_mon("b")])
    a.status = status
    for _ in range(turns):
        engine.process_turn([])
    assert a.current_hp == expected_hp


def test_toxic_counter_resets_on_switch_in():
    a = make_mon("a")
    engine, state = start_battle([a, make_mon("b")], [make_mon("x")])
    a.status = "toxic"
    engine.process_turn([])
    engine.process_turn([])
    engine.process_turn([switch("p1", "a", 1)])
    engine.process_turn([switch("p1", "b", 0)])
    # Status persists; the counter starts again from one.
    assert a.status == "toxic"
    assert a.current_hp == 100 - 6 - 12 - 6


def test_sleep_lasts_two_turns():
    sleeper = make_mon("sleeper", types=["Fire"])
    engine, state = start_battle([sleeper], [make_mon("foe", types=["Fire"])], rng=0.5)
    sleeper.status = "sleep"
    sleeper.volatile.sleep_turns = 2

    events = []
    for _ in range(3):
        events.extend(engine.process_turn([move("p1", "sleeper", "tackle")]).events)
    assert events.count("Sleeper is fast asleep.") == 2
    assert "Sleeper woke up!" in events
    assert events.count("Sleeper used Tackle!") == 1


if __name__ == "__main__":
    unittest.main()
