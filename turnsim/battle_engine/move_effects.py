"""
Move effect closures and the utility surface they mutate the battle through.

An effect receives a ``MoveContext`` and owns the whole move: the engine's
generic damage path does not run for moves that define ``on_use``. Effects
that also deal damage call ``ctx.utils.strike(ctx)`` for the generic path.
"""

from dataclasses import dataclass
from typing import Dict

from turnsim.mechanics import Mechanics
from .state import Move, Pokemon, TurnLog

STAT_LABELS = {
    "atk": "Attack",
    "def": "Defense",
    "spa": "Sp. Atk",
    "spd": "Sp. Def",
    "spe": "Speed",
    "acc": "accuracy",
    "eva": "evasiveness",
}


class EngineUtils:
    """The mutation surface handed to move effects and ability/item hooks."""

    def __init__(self, engine, log: TurnLog):
        self.engine = engine
        self.log = log

    @property
    def state(self):
        return self.engine.state

    # HP and status

    def deal_damage(self, mon: Pokemon, amount: int) -> int:
        amount = max(0, min(int(amount), mon.current_hp))
        mon.current_hp -= amount
        return amount

    def heal(self, mon: Pokemon, amount: int) -> int:
        if mon.fainted:
            return 0
        amount = max(0, min(int(amount), mon.max_hp - mon.current_hp))
        mon.current_hp += amount
        if amount > 0:
            self.emit_anim("heal", {"target": mon.id, "amount": amount})
        return amount

    def apply_status(self, mon: Pokemon, status: str, message=None) -> bool:
        return self.engine.apply_status(mon, status, self.log, message=message)

    def modify_stat_stages(self, mon: Pokemon, changes: Dict[str, int]) -> Dict[str, int]:
        applied = {}
        for stat, delta in changes.items():
            current = mon.stages.get(stat, 0)
            updated = Mechanics.clamp(current + delta, -6, 6)
            mon.stages[stat] = updated
            applied[stat] = updated - current
        return applied

    # Stat pipeline

    def get_effective_speed(self, mon: Pokemon) -> int:
        return self.engine.effective_speed(mon)

    def get_effective_attack(self, mon: Pokemon, stat="atk", move=None) -> int:
        return self.engine.effective_attack(mon, stat, move)

    # Presentation and randomness

    def emit_anim(self, type: str, payload=None):
        if self.log is not None:
            self.log.emit(type, payload)

    def rng(self) -> float:
        return self.engine.rng()

    # Field and sides

    def set_field_effect(self, slot: str, effect_id: str, holder=None, base=5) -> int:
        return self.engine.set_field_effect(slot, effect_id, self.log, holder=holder, base=base)

    def end_field_effect(self, slot: str):
        self.engine.end_field_effect(slot, self.log)

    def side_of(self, mon: Pokemon):
        return self.state.side_of(mon)

    def opponent_side(self, mon: Pokemon):
        side = self.side_of(mon)
        return self.state.opponent_of(side) if side else None

    def opponent_active(self, mon: Pokemon):
        side = self.opponent_side(mon)
        return side.active if side else None

    def weather(self) -> str:
        return self.engine.effective_weather()

    def magic_room_active(self) -> bool:
        return self.engine.magic_room_active()

    def holds_umbrella(self, mon: Pokemon) -> bool:
        return mon.item == "utility_umbrella" and not self.magic_room_active()

    def is_grounded(self, mon: Pokemon) -> bool:
        return self.engine.is_grounded(mon)

    def move_type(self, move: Move, user: Pokemon) -> str:
        return self.engine.resolve_move_type(move)

    # Move helpers

    def check_accuracy(self, move: Move, user: Pokemon, target: Pokemon) -> bool:
        return self.engine.check_accuracy(move, user, target, self.log)

    def strike(self, ctx) -> int:
        return self.engine.strike(ctx)


@dataclass
class MoveContext:
    move: Move
    user: Pokemon
    target: Pokemon
    utils: EngineUtils
    dealt: int = 0
    pivot: bool = False
    skip_pp: bool = False

    @property
    def log(self) -> TurnLog:
        return self.utils.log

    def fail(self):
        self.log.append("But it failed!")
        self.utils.emit_anim("move:fail", {"user": self.user.id, "move": self.move.id})

    def target_protected(self) -> bool:
        if self.target is not self.user and self.target.volatile.protect:
            self.log.append(f"{self.target.name} protected itself!")
            self.utils.emit_anim("move:blocked", {"target": self.target.id, "move": self.move.id})
            return True
        return False


def announce_stage_changes(ctx: MoveContext, mon: Pokemon, requested, applied):
    for stat, wanted in requested.items():
        delta = applied.get(stat, 0)
        label = STAT_LABELS.get(stat, stat)
        if delta == 0:
            direction = "higher" if wanted > 0 else "lower"
            ctx.log.append(f"{mon.name}'s {label} won't go any {direction}!")
            continue
        if delta > 0:
            verb = {1: "rose!", 2: "rose sharply!"}.get(delta, "rose drastically!")
        else:
            verb = {-1: "fell!", -2: "harshly fell!"}.get(delta, "severely fell!")
        ctx.log.append(f"{mon.name}'s {label} {verb}")
        ctx.utils.emit_anim("stat:change", {"target": mon.id, "stat": stat, "delta": delta})


def boost_user(changes):
    def effect(ctx: MoveContext):
        applied = ctx.utils.modify_stat_stages(ctx.user, changes)
        announce_stage_changes(ctx, ctx.user, changes, applied)

    return effect


# --- Field ---------------------------------------------------------------------


def set_weather(weather_id):
    def effect(ctx: MoveContext):
        ctx.utils.set_field_effect("weather", weather_id, holder=ctx.user)

    return effect


def set_terrain(terrain_id):
    def effect(ctx: MoveContext):
        ctx.utils.set_field_effect("terrain", terrain_id, holder=ctx.user)

    return effect


def trick_room(ctx: MoveContext):
    room = ctx.utils.state.field.room
    if room.active and room.id == "trick_room":
        ctx.utils.end_field_effect("room")
        return
    ctx.utils.set_field_effect("room", "trick_room", holder=ctx.user)


def magic_room(ctx: MoveContext):
    ctx.utils.set_field_effect("magic_room", "magic_room", holder=ctx.user)


def wonder_room(ctx: MoveContext):
    ctx.utils.set_field_effect("wonder_room", "wonder_room", holder=ctx.user)


# --- Protection and substitutes -------------------------------------------------


def protect(ctx: MoveContext):
    v = ctx.user.volatile
    chance = 1 / (3 ** v.protect_chain)
    if ctx.utils.rng() <= chance:
        v.protect = True
        v.protect_chain += 1
        ctx.log.append(f"{ctx.user.name} braced itself!")
        ctx.utils.emit_anim("move:protect", {"user": ctx.user.id})
    else:
        v.protect_chain = 0
        ctx.log.append(f"{ctx.user.name} failed to Protect!")
        ctx.utils.emit_anim("move:fail", {"user": ctx.user.id, "move": ctx.move.id})


def substitute(ctx: MoveContext):
    user = ctx.user
    cost = max(1, Mechanics.fraction(user.max_hp, 1, 4))
    if user.volatile.substitute_hp > 0:
        ctx.log.append(f"{user.name} already has a substitute!")
        return
    if user.current_hp <= cost:
        ctx.log.append("But it does not have enough HP left to make a substitute!")
        return
    ctx.utils.deal_damage(user, cost)
    user.volatile.substitute_hp = cost
    ctx.log.append(f"{user.name} put in a substitute!")
    ctx.utils.emit_anim("substitute:create", {"user": user.id, "hp": cost})


def recover(ctx: MoveContext):
    user = ctx.user
    if user.current_hp >= user.max_hp:
        ctx.log.append(f"{user.name}'s HP is full!")
        return
    healed = ctx.utils.heal(user, Mechanics.fraction(user.max_hp, 1, 2))
    ctx.log.append(f"{user.name} restored its HP. (+{healed})")


def magnet_rise(ctx: MoveContext):
    ctx.user.volatile.magnet_rise_turns = 5
    ctx.log.append(f"{ctx.user.name} levitated with electromagnetism!")
    ctx.utils.emit_anim("status:magnetrise", {"target": ctx.user.id})


# --- Disruption ----------------------------------------------------------------


def taunt(ctx: MoveContext):
    if ctx.target_protected():
        return
    ctx.target.volatile.taunt_turns = 3
    ctx.log.append(f"{ctx.target.name} fell for the Taunt!")
    ctx.utils.emit_anim("status:taunt", {"target": ctx.target.id})


def encore(ctx: MoveContext):
    if ctx.target_protected():
        return
    target = ctx.target
    last = target.volatile.last_move_id
    if not last or target.find_move(last) is None:
        ctx.log.append(f"{target.name} has nothing to encore!")
        return
    target.volatile.encore_turns = 3
    target.volatile.encore_move_id = last
    ctx.log.append(f"{target.name} received an encore!")
    ctx.utils.emit_anim("status:encore", {"target": target.id, "move": last})


def disable(ctx: MoveContext):
    if ctx.target_protected():
        return
    target = ctx.target
    last = target.volatile.last_move_id
    move = target.find_move(last)
    if move is None:
        ctx.fail()
        return
    target.volatile.disabled_turns = 3
    target.volatile.disabled_move_id = last
    ctx.log.append(f"{target.name}'s {move.name} was disabled!")
    ctx.utils.emit_anim("status:disable", {"target": target.id, "move": last})


def torment(ctx: MoveContext):
    if ctx.target_protected():
        return
    ctx.target.volatile.torment_turns = 3
    ctx.log.append(f"{ctx.target.name} was subjected to torment!")
    ctx.utils.emit_anim("status:torment", {"target": ctx.target.id})


def inflict(status, respect_type_immunity=False):
    def effect(ctx: MoveContext):
        if ctx.target_protected():
            return
        if respect_type_immunity and Mechanics.type_effectiveness(ctx.move.type, ctx.target.types) == 0:
            ctx.log.append(f"It doesn't affect {ctx.target.name}...")
            return
        if not ctx.utils.check_accuracy(ctx.move, ctx.user, ctx.target):
            return
        if not ctx.utils.apply_status(ctx.target, status):
            ctx.fail()

    return effect


# --- Hazards -----------------------------------------------------------------


def _foe_side(ctx: MoveContext):
    return ctx.utils.side_of(ctx.target) or ctx.utils.opponent_side(ctx.user)


def stealth_rock(ctx: MoveContext):
    side = _foe_side(ctx)
    if side.hazards.stealth_rock:
        ctx.fail()
        return
    side.hazards.stealth_rock = True
    ctx.log.append(f"Pointed stones float in the air around {side.name}'s team!")
    ctx.utils.emit_anim("hazard:stealth-rock:set", {"side": side.id})


def spikes(ctx: MoveContext):
    side = _foe_side(ctx)
    if side.hazards.spikes >= 3:
        ctx.fail()
        return
    side.hazards.spikes += 1
    ctx.log.append(f"Spikes were scattered on the ground all around {side.name}'s team!")
    ctx.utils.emit_anim("hazard:spikes:set", {"side": side.id, "layers": side.hazards.spikes})


def toxic_spikes(ctx: MoveContext):
    side = _foe_side(ctx)
    if side.hazards.toxic_spikes >= 2:
        ctx.fail()
        return
    side.hazards.toxic_spikes += 1
    ctx.log.append(f"Poison spikes were scattered on the ground all around {side.name}'s team!")
    ctx.utils.emit_anim("hazard:toxic-spikes:set", {"side": side.id, "layers": side.hazards.toxic_spikes})


def sticky_web(ctx: MoveContext):
    side = _foe_side(ctx)
    if side.hazards.sticky_web:
        ctx.fail()
        return
    side.hazards.sticky_web = True
    ctx.log.append(f"A sticky web has been laid out on the ground around {side.name}'s team!")
    ctx.utils.emit_anim("hazard:sticky-web:set", {"side": side.id})


def rapid_spin(ctx: MoveContext):
    ctx.utils.strike(ctx)
    if ctx.user.fainted:
        return
    side = ctx.utils.side_of(ctx.user)
    if side.hazards.any():
        side.hazards.clear()
        ctx.log.append(f"{ctx.user.name} blew away the hazards on its side!")
        ctx.utils.emit_anim("hazard:clear", {"side": side.id})
    changes = {"spe": 1}
    announce_stage_changes(ctx, ctx.user, changes, ctx.utils.modify_stat_stages(ctx.user, changes))


def defog(ctx: MoveContext):
    for side in ctx.utils.state.sides:
        if side.hazards.any():
            side.hazards.clear()
            ctx.log.append(f"The hazards around {side.name}'s team were blown away!")
            ctx.utils.emit_anim("hazard:clear", {"side": side.id})


# --- Side conditions -------------------------------------------------------------


def tailwind(ctx: MoveContext):
    side = ctx.utils.side_of(ctx.user)
    side.conditions.tailwind = max(1, side.conditions.tailwind) + 4
    ctx.log.append(f"The Tailwind blew from behind {side.name}'s team!")
    ctx.utils.emit_anim("side:tailwind:start", {"side": side.id})


def screen(condition, label):
    def effect(ctx: MoveContext):
        side = ctx.utils.side_of(ctx.user)
        base = ctx.utils.engine.triggers.modify_duration(ctx.user, f"screen:{condition}", 5, ctx.utils)
        remaining = getattr(side.conditions, condition)
        setattr(side.conditions, condition, max(1, remaining) + base)
        ctx.log.append(f"{label} made {side.name}'s team stronger!")
        ctx.utils.emit_anim(f"side:{condition}:start", {"side": side.id})

    return effect


reflect = screen("reflect", "Reflect")
light_screen = screen("light_screen", "Light Screen")
