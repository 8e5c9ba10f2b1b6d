
import sys
import os
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '../..')))

from test_utils import make_mon, start_battle, move, switch, index_of


class TestSubstitute(unittest.TestCase):
    def setUp(self):
        self.user = make_mon("decoy", moves=("substitute", "tackle"), spe=60)
        self.foe = make_mon("foe", types=["Fire"], moves=("tackle", "will_o_wisp"))
        self.engine, self.state = start_battle([self.user, make_mon("bench")], [self.foe], rng=0.5)

    def test_substitute_costs_a_quarter(self):
        result = self.engine.process_turn([move("p1", "decoy", "substitute")])
        self.assertIn("Decoy put in a substitute!", result.events)
        self.assertEqual(self.user.current_hp, 75)
        self.assertEqual(self.user.volatile.substitute_hp, 25)

    def test_substitute_absorbs_then_breaks(self):
        result = self.engine.process_turn([move("p1", "decoy", "substitute"), move("p2", "foe", "tackle")])
        self.assertIn("The substitute took damage for Decoy!", result.events)
        self.assertEqual(self.user.volatile.substitute_hp, 8)
        self.assertEqual(self.user.current_hp, 75)

        result = self.engine.process_turn([move("p2", "foe", "tackle")])
        self.assertIn("Decoy's substitute faded!", result.events)
        self.assertIn("It dealt 8 damage.", result.events)
        # Overflow is not carried into the holder.
        self.assertEqual(self.user.current_hp, 75)
        self.assertEqual(self.user.volatile.substitute_hp, 0)
        self.assertTrue(any(e.type == "substitute:break" for e in result.anim))

    def test_substitute_blocks_status(self):
        self.engine.process_turn([move("p1", "decoy", "substitute")])
        result = self.engine.process_turn([move("p2", "foe", "will_o_wisp")])
        self.assertIn("But it failed!", result.events)
        self.assertEqual(self.user.status, "none")

    def test_not_enough_hp(self):
        self.user.current_hp = 25
        result = self.engine.process_turn([move("p1", "decoy", "substitute")])
        self.assertIn("But it does not have enough HP left to make a substitute!", result.events)
        self.assertEqual(self.user.volatile.substitute_hp, 0)

    def test_only_one_substitute(self):
        self.engine.process_turn([move("p1", "decoy", "substitute")])
        result = self.engine.process_turn([move("p1", "decoy", "substitute")])
        self.assertIn("Decoy already has a substitute!", result.events)
        self.assertEqual(self.user.current_hp, 75)

    def test_substitute_cleared_on_switch(self):
        self.engine.process_turn([move("p1", "decoy", "substitute")])
        self.engine.process_turn([switch("p1", "decoy", 1)])
        self.assertEqual(self.user.volatile.substitute_hp, 0)


class TestSwitchOutReset(unittest.TestCase):
    def test_volatiles_reset_but_pp_and_status_persist(self):
        user = make_mon("user", moves=("tackle", "swords_dance"), item="choice_band")
        foe = make_mon("foe", moves=("taunt",), spe=80)
        engine, state = start_battle([user, make_mon("bench")], [foe], rng=0.5)

        engine.process_turn([move("p1", "user", "tackle"), move("p2", "foe", "taunt")])
        user.status = "paralysis"
        self.assertEqual(user.volatile.taunt_turns, 2)
        self.assertEqual(user.volatile.choice_locked_move_id, "tackle")

        engine.force_switch("p1", 1)
        self.assertEqual(user.volatile.taunt_turns, 0)
        self.assertIsNone(user.volatile.choice_locked_move_id)
        self.assertIsNone(user.volatile.last_move_id)
        self.assertEqual(user.volatile.pp["tackle"], 34)
        self.assertEqual(user.status, "paralysis")

    def test_sleep_counter_survives_switch(self):
        sleeper = make_mon("sleeper")
        engine, state = start_battle([sleeper, make_mon("bench")], [make_mon("foe")])
        sleeper.status = "sleep"
        sleeper.volatile.sleep_turns = 2

        engine.force_switch("p1", 1)
        engine.force_switch("p1", 0)
        self.assertEqual(sleeper.volatile.sleep_turns, 2)

    def test_withdraw_message_for_healthy_member_only(self):
        lead = make_mon("lead")
        engine, state = start_battle([lead, make_mon("bench")], [make_mon("foe")])
        result = engine.force_switch("p1", 1)
        self.assertLess(index_of(result.events, "Player withdrew Lead!"), index_of(result.events, "Player sent out Bench!"))

        state.sides[0].active.current_hp = 0
        result = engine.force_switch("p1", 0)
        self.assertEqual(index_of(result.events, "withdrew"), -1)


if __name__ == "__main__":
    unittest.main()
