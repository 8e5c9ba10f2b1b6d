from dataclasses import dataclass
import math

from turnsim.mechanics import Mechanics


@dataclass
class DamageResult:
    damage: int
    effectiveness: float
    stab: float
    roll: float


class DamageCalculator:
    def __init__(self, calc_client=None):
        self.calc_client = calc_client

    def base_damage(self, level, power, attack, defense):
        if self.calc_client is not None:
            remote = self.calc_client.base_damage(level, power, attack, defense)
            if remote is not None:
                return remote
        step = Mechanics.trunc(2 * level / 5 + 2)
        step = Mechanics.trunc(step * power * attack / max(1, defense))
        return math.floor(step / 50) + 2

    def calculate(self, user, target, move_type, power, attack, defense, rng) -> DamageResult:
        """
        Base damage for one hit. ``rng`` is drawn exactly once for the roll,
        including when the target is immune, so the random stream does not
        depend on the matchup.
        """
        base = self.base_damage(user.level, power, attack, defense)
        stab = 1.5 if move_type in user.types else 1.0
        effectiveness = Mechanics.type_effectiveness(move_type, target.types)
        roll = 0.85 + rng() * 0.15

        if effectiveness == 0:
            return DamageResult(0, effectiveness, stab, roll)

        damage = Mechanics.scale(base, stab)
        damage = Mechanics.scale(damage, effectiveness)
        damage = Mechanics.scale(damage, roll)
        return DamageResult(max(1, damage), effectiveness, stab, roll)
