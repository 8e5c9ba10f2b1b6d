import os
import sys
import argparse
import logging
import random

# Add project root to path
BASE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.append(BASE_DIR)

from turnsim.battle_engine import Engine
from turnsim.battle_engine.state import MoveAction
from turnsim.calc_client import CalcClient
from turnsim.samples import sample_sides


def choose_actions(state, picker):
    actions = []
    for side in state.sides:
        mon = side.active
        usable = [m for m in mon.moves if mon.pp_left(m) > 0]
        move_id = picker.choice(usable).id if usable else "struggle"
        actions.append(MoveAction(side.id, mon.id, move_id))
    return actions


def replace_fainted(engine, state):
    results = []
    for side in state.sides:
        if not side.active.fainted:
            continue
        for index, mon in enumerate(side.roster):
            if not mon.fainted:
                results.append(engine.force_switch(side.id, index))
                break
    return results


def main():
    parser = argparse.ArgumentParser(description="Play a seeded sample battle and print the turn log.")
    parser.add_argument("--seed", type=int, default=42, help="RNG seed for the engine and the move picker")
    parser.add_argument("--turns", type=int, default=20, help="Maximum number of turns to play")
    parser.add_argument("--calc-url", default=None, help="Optional damage-calc service URL")
    parser.add_argument("--verbose", action="store_true", help="Show engine debug logging")
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(levelname)s: %(message)s")

    calc_client = CalcClient(args.calc_url) if args.calc_url else None
    engine = Engine(seed=args.seed, calc_client=calc_client)
    picker = random.Random(args.seed)

    state = engine.initialize_battle(sample_sides())
    for line in state.log:
        print(line)

    for _ in range(args.turns):
        result = engine.process_turn(choose_actions(state, picker))
        print(f"\n--- Turn {state.turn} ---")
        for line in result.events:
            print(f"  {line}")
        for switch in replace_fainted(engine, state):
            for line in switch.events:
                print(f"  {line}")
        for line in engine.get_state_log_lines():
            print(line)

        if any(all(m.fainted for m in side.roster) for side in state.sides):
            break

    winners = [side.name for side in state.sides if not all(m.fainted for m in side.roster)]
    print("\n" + "=" * 30)
    if len(winners) == 1:
        print(f"WINNER: {winners[0]} after {state.turn} turns")
    else:
        print(f"No winner after {state.turn} turns")
    print("=" * 30)


if __name__ == "__main__":
    main()
