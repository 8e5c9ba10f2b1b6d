import math


class Mechanics:
    """Shared arithmetic for the battle engine.

    Every multiply/divide step in a damage or stat pipeline goes through
    ``scale`` or ``fraction`` so that results are truncated toward zero
    after each individual step.
    """

    @staticmethod
    def trunc(value):
        return int(math.trunc(value))

    @staticmethod
    def scale(value, multiplier):
        return int(math.trunc(value * multiplier))

    @staticmethod
    def fraction(value, numerator, denominator):
        """Truncated ``value * numerator / denominator``."""
        if denominator == 0:
            return 0
        return int(math.trunc(value * numerator / denominator))

    @staticmethod
    def stage_multiplier(stage, accuracy=False):
        """
        Nonlinear stage table. Battle stats use base 2 ((2+s)/2, 2/(2-s));
        accuracy and evasion use base 3.
        """
        stage = max(-6, min(6, stage))
        base = 3 if accuracy else 2
        if stage >= 0:
            return (base + stage) / base
        return base / (base - stage)

    @staticmethod
    def apply_stage(value, stage):
        return Mechanics.scale(value, Mechanics.stage_multiplier(stage))

    @staticmethod
    def type_effectiveness(move_type, defender_types):
        from turnsim.battle_engine.state import TYPE_CHART

        chart = TYPE_CHART.get(move_type, {})
        eff = 1.0
        for t in defender_types:
            eff *= chart.get(t, 1.0)
        return eff

    @staticmethod
    def clamp(value, low, high):
        return max(low, min(high, value))
