
import sys
import os
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from test_utils import make_mon, start_battle, move
from turnsim.battle_engine.state import Move

CHILL = Move("chill", "Chill", "Ice", "Special", power=60, pp=10)


def damage_dealt(result):
    for line in result.events:
        if line.startswith("It dealt "):
            return int(line.split()[2])
    return None


class TestCriticalHits(unittest.TestCase):
    def test_base_crit_chance(self):
        engine, state = start_battle([make_mon("a", types=["Fire"])], [make_mon("b")], rng=[0.5, 0.03])
        result = engine.process_turn([move("p1", "a", "tackle")])
        self.assertIn("A critical hit!", result.events)
        self.assertEqual(damage_dealt(result), 25)

    def test_no_crit_above_threshold(self):
        engine, state = start_battle([make_mon("a", types=["Fire"])], [make_mon("b")], rng=[0.5, 0.05])
        result = engine.process_turn([move("p1", "a", "tackle")])
        self.assertNotIn("A critical hit!", result.events)
        self.assertEqual(damage_dealt(result), 17)

    def test_high_crit_ratio(self):
        engine, state = start_battle([make_mon("a", types=["Fire"], moves=("stone_edge",))], [make_mon("b")], rng=[0.5, 0.1])
        result = engine.process_turn([move("p1", "a", "stone_edge")])
        self.assertIn("A critical hit!", result.events)

    def test_always_crit_move(self):
        engine, state = start_battle([make_mon("a", types=["Fire"], moves=("frost_breath",))], [make_mon("b")], rng=0.5)
        result = engine.process_turn([move("p1", "a", "frost_breath")])
        self.assertIn("A critical hit!", result.events)
        self.assertEqual(damage_dealt(result), 37)

    def test_always_crit_move_still_draws(self):
        # accuracy, crit, roll: the crit draw is spent even though the result is fixed
        def frost_breath_damage(script):
            engine, state = start_battle([make_mon("a", types=["Fire"], moves=("frost_breath",))], [make_mon("b")], rng=script)
            return damage_dealt(engine.process_turn([move("p1", "a", "frost_breath")]))

        low_roll = frost_breath_damage([0.5, 0.99, 0.0])
        high_roll = frost_breath_damage([0.5, 0.0, 0.99])
        self.assertLess(low_roll, high_roll)

    def test_sniper_boosts_crits(self):
        engine, state = start_battle([make_mon("a", types=["Fire"], ability="sniper")], [make_mon("b")], rng=[0.5, 0.03])
        result = engine.process_turn([move("p1", "a", "tackle")])
        self.assertEqual(damage_dealt(result), 37)


class TestScreens(unittest.TestCase):
    def _special_battle(self, move_id):
        user = make_mon("a", types=["Fire"], moves=("frost_breath",))
        user.moves.append(CHILL)
        engine, state = start_battle([user], [make_mon("b")], rng=0.5)
        state.sides[1].conditions.light_screen = 5
        return engine.process_turn([move("p1", "a", move_id)])

    def test_light_screen_halves_non_crit(self):
        self.assertEqual(damage_dealt(self._special_battle("chill")), 12)

    def test_crit_ignores_light_screen(self):
        self.assertEqual(damage_dealt(self._special_battle("frost_breath")), 37)

    def test_reflect_halves_physical(self):
        engine, state = start_battle([make_mon("a", types=["Fire"])], [make_mon("b")], rng=0.5)
        state.sides[1].conditions.reflect = 5
        self.assertEqual(damage_dealt(engine.process_turn([move("p1", "a", "tackle")])), 8)

    def test_crit_ignores_reflect(self):
        engine, state = start_battle([make_mon("a", types=["Fire"])], [make_mon("b")], rng=[0.5, 0.03])
        state.sides[1].conditions.reflect = 5
        self.assertEqual(damage_dealt(engine.process_turn([move("p1", "a", "tackle")])), 25)

    def test_reflect_does_not_touch_special(self):
        user = make_mon("a", types=["Fire"])
        user.moves.append(CHILL)
        engine, state = start_battle([user], [make_mon("b")], rng=0.5)
        state.sides[1].conditions.reflect = 5
        self.assertEqual(damage_dealt(engine.process_turn([move("p1", "a", "chill")])), 25)

    def test_screen_duration_and_expiry(self):
        user = make_mon("a", moves=("reflect",))
        engine, state = start_battle([user], [make_mon("b")], rng=0.5)
        result = engine.process_turn([move("p1", "a", "reflect")])
        self.assertIn("Reflect made Player's team stronger!", result.events)
        self.assertEqual(state.sides[0].conditions.reflect, 5)

        events = []
        for _ in range(5):
            events.extend(engine.process_turn([]).events)
        self.assertEqual(state.sides[0].conditions.reflect, 0)
        self.assertEqual(events.count("Player's Reflect wore off!"), 1)

    def test_light_clay_extends_screens(self):
        user = make_mon("a", moves=("light_screen",), item="light_clay")
        engine, state = start_battle([user], [make_mon("b")], rng=0.5)
        engine.process_turn([move("p1", "a", "light_screen")])
        self.assertEqual(state.sides[0].conditions.light_screen, 8)


if __name__ == "__main__":
    unittest.main()
