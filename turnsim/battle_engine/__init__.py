from dataclasses import dataclass
from typing import Callable, List, Optional
import logging
import random

from turnsim.mechanics import Mechanics
from .state import (
    BattleState,
    Field,
    Move,
    MoveAction,
    Pokemon,
    Side,
    SwitchAction,
    TurnLog,
    TurnResult,
    STATUSES,
    TYPE_CHART,
)
from .catalog import CHOICE_ITEMS, Catalog, default_catalog
from .triggers import TriggerHandler
from .damage import DamageCalculator
from .move_effects import EngineUtils, MoveContext
from .residuals import apply_status_residuals

STRUGGLE = Move("struggle", "Struggle", "Normal", "Physical", power=50, accuracy=None)

CRIT_CHANCES = {0: 1 / 24, 1: 1 / 8, 2: 1 / 2}

WEATHER_SUPPRESSORS = ("cloud_nine", "air_lock")
ABSORB_ABILITIES = {"water_absorb": "Water", "volt_absorb": "Electric", "flash_fire": "Fire"}
WEATHER_BALL_TYPES = {"sun": "Fire", "rain": "Water", "sandstorm": "Rock", "hail": "Ice", "snow": "Ice"}

STATUS_TYPE_IMMUNITY = {
    "burn": ("Fire",),
    "poison": ("Poison", "Steel"),
    "toxic": ("Poison", "Steel"),
    "paralysis": ("Electric",),
    "freeze": ("Ice",),
}
STATUS_MESSAGES = {
    "burn": "{} was burned!",
    "poison": "{} was poisoned!",
    "toxic": "{} was badly poisoned!",
    "paralysis": "{} is paralyzed! It may be unable to move!",
    "sleep": "{} fell asleep!",
    "freeze": "{} was frozen solid!",
}

FIELD_START_MESSAGES = {
    "rain": "It started to rain!",
    "sun": "The sunlight turned harsh!",
    "sandstorm": "A sandstorm kicked up!",
    "hail": "It started to hail!",
    "snow": "It started to snow!",
    "grassy": "Grass grew to cover the battlefield!",
    "electric": "An electric current ran across the battlefield!",
    "psychic": "The battlefield got weird!",
    "misty": "Mist swirled around the battlefield!",
    "trick_room": "The dimensions were twisted!",
    "magic_room": "It created a bizarre area in which held items lose their effects!",
    "wonder_room": "It created a bizarre area in which Defense and Sp. Def stats are swapped!",
}
FIELD_END_MESSAGES = {
    "rain": "The rain stopped.",
    "sun": "The harsh sunlight faded.",
    "sandstorm": "The sandstorm subsided.",
    "hail": "The hail stopped.",
    "snow": "The snow stopped.",
    "grassy": "The grass disappeared from the battlefield.",
    "electric": "The electricity disappeared from the battlefield.",
    "psychic": "The weirdness disappeared from the battlefield.",
    "misty": "The mist disappeared from the battlefield.",
    "trick_room": "The twisted dimensions returned to normal!",
    "magic_room": "Magic Room wore off, and held items' effects returned to normal!",
    "wonder_room": "Wonder Room wore off, and Defense and Sp. Def stats returned to normal!",
}
FIELD_ANIM_PREFIX = {"weather": "weather", "terrain": "terrain", "room": "room", "magic_room": "room", "wonder_room": "room"}

SIDE_CONDITION_END = {
    "tailwind": "{}'s Tailwind petered out!",
    "reflect": "{}'s Reflect wore off!",
    "light_screen": "{}'s Light Screen wore off!",
}

VOLATILE_EXPIRY = {
    "magnet_rise": ("{} came back down to the ground.", "status:magnetrise:end"),
    "taunt": ("{} is no longer taunted.", "status:taunt:end"),
    "encore": ("{}'s Encore ended!", "status:encore:end"),
    "disable": ("{}'s move is no longer disabled!", "status:disable:end"),
    "torment": ("{} is no longer tormented.", "status:torment:end"),
}

SPIKES_FRACTIONS = {1: (1, 8), 2: (1, 6), 3: (1, 4)}


class BattleNotInitializedError(RuntimeError):
    pass


@dataclass
class HitResult:
    damage: int = 0
    effectiveness: float = 1.0
    crit: bool = False
    immune: bool = False
    absorbed: bool = False


class Engine:
    def __init__(
        self,
        seed: Optional[int] = None,
        deterministic_ties: bool = False,
        catalog: Optional[Catalog] = None,
        calc_client=None,
        status_residuals: bool = True,
    ):
        self.seed = seed
        self.deterministic_ties = deterministic_ties
        self.catalog = catalog if catalog is not None else default_catalog()
        self.triggers = TriggerHandler(self.catalog)
        self.damage_calculator = DamageCalculator(calc_client)
        self.state: Optional[BattleState] = None

        self._random = random.Random()
        self._fainted_announced = set()
        self._move_observers: List[Callable] = []
        self._switch_in_observers: List[Callable] = []
        self._status_tick_providers: List[Callable] = []
        if status_residuals:
            self._status_tick_providers.append(apply_status_residuals)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def on_move_execute(self, handler):
        """handler(move, user, target, state, log), called before the move mutates anything."""
        self._move_observers.append(handler)
        return handler

    def on_status_tick(self, handler):
        """handler(pokemon, status, state, log), called at end of turn for each statused active."""
        self._status_tick_providers.append(handler)
        return handler

    def on_switch_in(self, handler):
        """handler(pokemon, state, log), called first in every switch-in pipeline."""
        self._switch_in_observers.append(handler)
        return handler

    # ------------------------------------------------------------------
    # Randomness
    # ------------------------------------------------------------------

    def rng(self) -> float:
        state = self.state
        if state is None or state.rng_seed is None:
            return self._random.random()
        seed = (state.rng_seed * 1664525 + 1013904223) % 0xFFFFFFFF
        state.rng_seed = seed
        return (seed & 0xFFFFFFF) / 0x10000000

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def initialize_battle(self, sides: List[Side], seed: Optional[int] = None) -> BattleState:
        if len(sides) != 2:
            raise ValueError(f"initialize_battle expects exactly two sides, got {len(sides)}")

        state = BattleState(sides=list(sides), rng_seed=seed if seed is not None else self.seed)
        self.state = state
        self._fainted_announced = set()

        log = TurnLog(state)
        for side in state.sides:
            side.active_index = side.clamp_index(side.active_index)
            for mon in side.roster:
                self._init_pp(mon)
        for side in state.sides:
            log.append(f"{side.name} sent out {side.active.name}!")
            self._switch_in(side, side.active, log)
        self._announce_faints(log)
        return state

    def force_switch(self, side_id: str, to_index: int) -> TurnResult:
        state = self._require_state()
        log = TurnLog(state)
        side = state.find_side(side_id)
        if side is None:
            logging.warning(f"force_switch: unknown side {side_id!r}")
            return log.result()

        try:
            index = side.clamp_index(to_index)
        except (TypeError, ValueError):
            logging.warning(f"force_switch: bad roster index {to_index!r}")
            return log.result()
        incoming = side.roster[index]
        if incoming.fainted:
            logging.warning(f"force_switch: {incoming.name} has fainted and cannot switch in")
            return log.result()

        if index == side.active_index:
            self._switch_in(side, incoming, log)
        else:
            self._switch(side, index, log)
        self._announce_faints(log)
        return log.result()

    def process_turn(self, actions: List) -> TurnResult:
        state = self._require_state()
        state.turn += 1
        log = TurnLog(state)
        logging.debug(f"Processing turn {state.turn} with {len(actions)} actions")

        queue = []
        for action in actions:
            actor = self._resolve_actor(action)
            if actor is None:
                logging.warning(f"Skipping action with unknown actor: {action}")
                continue
            if actor.current_hp <= 0:
                logging.debug(f"Skipping action from fainted {actor.name}")
                continue
            queue.append((action, actor))

        for action, actor in self._order_actions(queue):
            if isinstance(action, SwitchAction):
                self._execute_switch(action, log)
            else:
                self._execute_move_action(action, actor, log)
            self._announce_faints(log)

        self._end_of_turn(log)
        return log.result()

    def _require_state(self) -> BattleState:
        if self.state is None:
            raise BattleNotInitializedError("initialize_battle must be called before any other entry point")
        return self.state

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def _resolve_actor(self, action) -> Optional[Pokemon]:
        if not isinstance(action, (MoveAction, SwitchAction)):
            return None
        return self.state.find_pokemon(action.side_id, action.pokemon_id)

    def _order_key(self, action, actor):
        speed = self.effective_speed(actor)
        if self.state.field.room.active and self.state.field.room.id == "trick_room":
            speed = -speed
        if isinstance(action, SwitchAction):
            return (1, 0, speed)
        move = actor.find_move(self._planned_move_id(actor, action.move_id))
        priority = move.priority if move is not None else 0
        return (0, priority, speed)

    def _order_actions(self, queue):
        keyed = [(self._order_key(action, actor), action, actor) for action, actor in queue]
        keyed.sort(key=lambda entry: entry[0], reverse=True)

        ordered = []
        i = 0
        while i < len(keyed):
            j = i
            while j + 1 < len(keyed) and keyed[j + 1][0] == keyed[i][0]:
                j += 1
            group = [(action, actor) for _, action, actor in keyed[i:j + 1]]
            if len(group) > 1 and not self.deterministic_ties:
                # Fisher-Yates: a two-way tie costs exactly one draw.
                for k in range(len(group) - 1, 0, -1):
                    swap = int(self.rng() * (k + 1))
                    group[k], group[swap] = group[swap], group[k]
            ordered.extend(group)
            i = j + 1

        logging.debug("Action order: " + ", ".join(actor.name for _, actor in ordered))
        return ordered

    # ------------------------------------------------------------------
    # Switching
    # ------------------------------------------------------------------

    def _execute_switch(self, action: SwitchAction, log: TurnLog):
        side = self.state.find_side(action.side_id)
        if side is None:
            logging.warning(f"Switch skipped: unknown side {action.side_id!r}")
            return
        if side.active.id != action.pokemon_id:
            logging.warning(f"Switch skipped: {action.pokemon_id!r} is no longer active on {side.id}")
            return
        try:
            index = side.clamp_index(action.to_index)
        except (TypeError, ValueError):
            logging.warning(f"Switch skipped: bad roster index {action.to_index!r}")
            return
        if index == side.active_index:
            logging.warning(f"Switch skipped: {side.active.name} is already active")
            return
        if side.roster[index].fainted:
            logging.warning(f"Switch skipped: {side.roster[index].name} has fainted")
            return
        self._switch(side, index, log)

    def _switch(self, side: Side, index: int, log: TurnLog):
        outgoing = side.active
        outgoing.reset_on_switch_out()
        if not outgoing.fainted:
            log.append(f"{side.name} withdrew {outgoing.name}!")
        side.active_index = index
        incoming = side.active
        log.append(f"{side.name} sent out {incoming.name}!")
        log.emit("switch", {"side": side.id, "from": outgoing.id, "to": incoming.id})
        self._switch_in(side, incoming, log)

    def _switch_in(self, side: Side, mon: Pokemon, log: TurnLog):
        for handler in self._switch_in_observers:
            handler(mon, self.state, log)

        utils = EngineUtils(self, log)
        self.triggers.run_switch_in(mon, utils)

        self._init_pp(mon)
        mon.volatile.toxic_counter = 0
        mon.volatile.substitute_hp = 0

        if not mon.fainted:
            self._apply_hazards(side, mon, log, utils)

    def _init_pp(self, mon: Pokemon):
        for move in mon.moves:
            mon.volatile.pp.setdefault(move.id, move.max_pp)

    def _apply_hazards(self, side: Side, mon: Pokemon, log: TurnLog, utils: EngineUtils):
        hazards = side.hazards
        if not hazards.any():
            return
        if mon.item == "heavy_duty_boots" and not self.magic_room_active():
            return

        if hazards.stealth_rock:
            eff = Mechanics.type_effectiveness("Rock", mon.types)
            damage = self.stealth_rock_damage(mon.max_hp, eff)
            if damage > 0:
                dealt = utils.deal_damage(mon, damage)
                log.append(f"{mon.name} is hurt by Stealth Rock! (-{dealt})")
                log.emit("hazard:stealth-rock", {"target": mon.id, "damage": dealt})

        grounded = self.is_grounded(mon)
        if not grounded or mon.fainted:
            return

        if hazards.spikes > 0:
            num, den = SPIKES_FRACTIONS[min(3, hazards.spikes)]
            dealt = utils.deal_damage(mon, max(1, Mechanics.fraction(mon.max_hp, num, den)))
            log.append(f"{mon.name} is hurt by the spikes! (-{dealt})")
            log.emit("hazard:spikes", {"target": mon.id, "damage": dealt, "layers": hazards.spikes})

        if hazards.toxic_spikes > 0 and not mon.fainted:
            if mon.has_type("Poison"):
                hazards.toxic_spikes = 0
                log.append(f"{mon.name} absorbed the Toxic Spikes!")
                log.emit("hazard:toxic-spikes:absorb", {"target": mon.id, "side": side.id})
            elif mon.status == "none":
                status = "toxic" if hazards.toxic_spikes >= 2 else "poison"
                verb = "badly poisoned" if status == "toxic" else "poisoned"
                if self.apply_status(mon, status, log, message=f"{mon.name} was {verb} by the Toxic Spikes!"):
                    log.emit("hazard:toxic-spikes", {"target": mon.id, "status": status})

        if hazards.sticky_web and not mon.fainted:
            applied = utils.modify_stat_stages(mon, {"spe": -1})
            log.append(f"{mon.name} was caught in a sticky web!")
            log.emit("hazard:sticky-web", {"target": mon.id, "delta": applied.get("spe", 0)})

    @staticmethod
    def stealth_rock_damage(max_hp: int, effectiveness: float) -> int:
        """1/8 of max HP scaled by Rock effectiveness, capped at 1/4."""
        if effectiveness == 0:
            return 0
        return max(1, Mechanics.scale(max_hp, min(0.25, 0.125 * effectiveness)))

    # ------------------------------------------------------------------
    # Move actions
    # ------------------------------------------------------------------

    def _planned_move_id(self, actor: Pokemon, move_id: str) -> str:
        v = actor.volatile
        if v.solar_beam_charging and actor.find_move("solar_beam") is not None:
            return "solar_beam"
        if v.encore_turns > 0 and v.encore_move_id:
            move_id = v.encore_move_id
        locked = v.choice_locked_move_id
        if locked and actor.item in CHOICE_ITEMS and not self.magic_room_active() and actor.find_move(locked):
            move_id = locked
        return move_id

    def _resolve_target(self, action: MoveAction, actor: Pokemon) -> Optional[Pokemon]:
        state = self.state
        if action.target_side_id is None:
            target_side = state.opponent_of(state.find_side(action.side_id))
        else:
            target_side = state.find_side(action.target_side_id)
        if target_side is None:
            logging.warning(f"Move skipped: unknown target side {action.target_side_id!r}")
            return None
        if action.target_pokemon_id is None:
            return target_side.active
        target = target_side.find(action.target_pokemon_id)
        if target is None:
            logging.warning(f"Move skipped: unknown target {action.target_pokemon_id!r}")
            return None
        if target is not target_side.active:
            # The original target left the field; the move hits whoever replaced it.
            return target_side.active
        return target

    def _can_act(self, actor: Pokemon, log: TurnLog) -> bool:
        v = actor.volatile
        if actor.status == "sleep":
            if v.sleep_turns > 0:
                v.sleep_turns -= 1
                log.append(f"{actor.name} is fast asleep.")
                log.emit("status:sleep", {"target": actor.id})
                return False
            actor.status = "none"
            log.append(f"{actor.name} woke up!")
        elif actor.status == "freeze":
            if self.rng() < 0.2:
                actor.status = "none"
                log.append(f"{actor.name} thawed out!")
            else:
                log.append(f"{actor.name} is frozen solid!")
                log.emit("status:freeze", {"target": actor.id})
                return False
        elif actor.status == "paralysis":
            if self.rng() < 0.25:
                log.append(f"{actor.name} is fully paralyzed!")
                log.emit("status:paralysis", {"target": actor.id})
                return False
        return True

    def _execute_move_action(self, action: MoveAction, actor: Pokemon, log: TurnLog):
        side = self.state.find_side(action.side_id)
        if side is None or side.active is not actor:
            logging.warning(f"Move skipped: {actor.name} is no longer active")
            return
        if actor.fainted:
            return

        target = self._resolve_target(action, actor)
        if target is None:
            return

        move_id = self._planned_move_id(actor, action.move_id)
        move = actor.find_move(move_id)
        has_pp = any(actor.pp_left(m) > 0 for m in actor.moves)
        if move is None:
            if has_pp:
                logging.warning(f"Move skipped: {actor.name} does not know {move_id!r}")
                return
            move = STRUGGLE
        elif actor.pp_left(move) <= 0:
            if has_pp:
                log.append(f"{actor.name} has no PP left for {move.name}!")
                return
            move = STRUGGLE
        struggling = move is STRUGGLE

        if move.is_damaging and target.fainted and target is not actor:
            logging.debug(f"{move.name} skipped: {target.name} has already fainted")
            return

        if not self._can_act(actor, log):
            return

        v = actor.volatile
        log.append(f"{actor.name} used {move.name}!")
        log.emit("move:start", {"user": actor.id, "move": move.id, "target": target.id})

        if v.taunt_turns > 0 and move.category == "Status":
            log.append(f"{actor.name} can't use {move.name} after the taunt!")
            log.emit("status:taunt:block", {"user": actor.id, "move": move.id})
            return
        if v.disabled_turns > 0 and move.id == v.disabled_move_id:
            log.append(f"{actor.name}'s {move.name} is disabled!")
            log.emit("status:disable:block", {"user": actor.id, "move": move.id})
            return
        if v.torment_turns > 0 and not struggling and move.id == v.last_move_id:
            log.append(f"{actor.name} can't use the same move twice in a row due to the torment!")
            log.emit("status:torment:block", {"user": actor.id, "move": move.id})
            return

        v.last_move_id = move.id
        ctx = self._execute_move(move, actor, target, log)

        if struggling and not actor.fainted:
            recoil = ctx.utils.deal_damage(actor, max(1, Mechanics.fraction(actor.max_hp, 1, 4)))
            log.append(f"{actor.name} is damaged by recoil! (-{recoil})")

        if not struggling:
            if actor.item in CHOICE_ITEMS and not self.magic_room_active() and not v.choice_locked_move_id:
                v.choice_locked_move_id = move.id
            if not ctx.skip_pp:
                cost = 2 if target is not actor and target.ability == "pressure" else 1
                v.pp[move.id] = max(0, actor.pp_left(move) - cost)

        if ctx.dealt > 0 and actor.item == "life_orb" and not self.magic_room_active() and not actor.fainted:
            recoil = ctx.utils.deal_damage(actor, max(1, Mechanics.fraction(actor.max_hp, 1, 10)))
            log.append(f"{actor.name} lost some of its HP! (-{recoil})")
            log.emit("item:life-orb", {"target": actor.id, "damage": recoil})

        self._announce_faints(log)
        if ctx.pivot and not actor.fainted:
            self._pivot(actor, log)

    def _execute_move(self, move: Move, user: Pokemon, target: Pokemon, log: TurnLog) -> MoveContext:
        for handler in self._move_observers:
            handler(move, user, target, self.state, log)

        ctx = MoveContext(move, user, target, EngineUtils(self, log))
        if move.on_use is not None:
            move.on_use(ctx)
        elif move.is_damaging:
            self.strike(ctx)
        else:
            log.append("But nothing happened!")
        return ctx

    def _pivot(self, user: Pokemon, log: TurnLog):
        side = self.state.side_of(user)
        for index, mon in enumerate(side.roster):
            if index != side.active_index and not mon.fainted:
                log.append(f"{user.name} went back to {side.name}!")
                log.emit("move:pivot", {"user": user.id, "to": mon.id})
                self._switch(side, index, log)
                return

    # ------------------------------------------------------------------
    # Damage pipeline
    # ------------------------------------------------------------------

    def strike(self, ctx: MoveContext) -> int:
        """Generic damaging path. Returns the total damage dealt (substitute included)."""
        move, user, target, log = ctx.move, ctx.user, ctx.target, ctx.log
        if target.fainted:
            log.append("But there was no target...")
            return 0
        if self._charging(ctx):
            return 0
        if ctx.target_protected():
            return 0

        power = self.resolve_move_power(move)
        move_type = self.resolve_move_type(move)
        if not self.check_accuracy(move, user, target, log):
            return 0

        hits = self._hit_count(move)
        total = landed = 0
        crit = False
        effectiveness = 1.0
        for _ in range(hits):
            if user.fainted or target.fainted:
                break
            hit = self._hit(ctx, power, move_type)
            if hit.absorbed:
                return total
            if hit.immune:
                log.append(f"It doesn't affect {target.name}...")
                log.emit("move:immune", {"target": target.id, "move": move.id})
                return total
            total += hit.damage
            landed += 1
            crit = crit or hit.crit
            effectiveness = hit.effectiveness

        if move.multi_hit is not None:
            log.append(f"It dealt {total} damage in {landed} hit{'s' if landed != 1 else ''}.")
        else:
            log.append(f"It dealt {total} damage.")
        if crit:
            log.append("A critical hit!")
        if effectiveness > 1:
            log.append("It's super effective!")
        elif effectiveness < 1:
            log.append("It's not very effective...")

        ctx.dealt += total
        if move.switches_user_out and total > 0 and not user.fainted:
            ctx.pivot = True
        return total

    def _charging(self, ctx: MoveContext) -> bool:
        if ctx.move.id != "solar_beam":
            return False
        v = ctx.user.volatile
        if v.solar_beam_charging:
            v.solar_beam_charging = False
            ctx.skip_pp = True
            return False
        if self.effective_weather() == "sun":
            return False
        v.solar_beam_charging = True
        ctx.log.append(f"{ctx.user.name} absorbed light!")
        ctx.log.emit("move:charge", {"user": ctx.user.id, "move": ctx.move.id})
        return True

    def resolve_move_type(self, move: Move) -> str:
        if move.id == "weather_ball":
            return WEATHER_BALL_TYPES.get(self.effective_weather(), move.type)
        return move.type

    def resolve_move_power(self, move: Move) -> int:
        if move.id == "weather_ball" and self.effective_weather() in WEATHER_BALL_TYPES:
            return move.power * 2
        return move.power

    def _hit_count(self, move: Move) -> int:
        if move.multi_hit is None:
            return 1
        if isinstance(move.multi_hit, int):
            return max(1, move.multi_hit)
        low, high = move.multi_hit
        return low + int(self.rng() * (high - low + 1))

    def _roll_crit(self, move: Move) -> bool:
        roll = self.rng()
        if move.crit_ratio >= 3:
            return True
        return roll < CRIT_CHANCES[max(0, move.crit_ratio)]

    def _hit(self, ctx: MoveContext, power: int, move_type: str) -> HitResult:
        move, user, target, log, utils = ctx.move, ctx.user, ctx.target, ctx.log, ctx.utils

        if target is not user and ABSORB_ABILITIES.get(target.ability) == move_type:
            ability = self.catalog.ability(target.ability)
            if target.ability == "flash_fire":
                target.volatile.flash_fire_boost = True
                log.append(f"{target.name}'s Flash Fire raised the power of its Fire-type moves!")
            else:
                healed = utils.heal(target, max(1, Mechanics.fraction(target.max_hp, 1, 4)))
                if healed:
                    log.append(f"{target.name}'s {ability.name} restored its HP. (+{healed})")
                else:
                    log.append(f"{target.name}'s {ability.name} made {move.name} useless!")
            log.emit(f"ability:{target.ability}", {"target": target.id})
            return HitResult(absorbed=True)

        if move.category == "Physical":
            atk_stat, def_stat = "atk", "def"
        else:
            atk_stat, def_stat = "spa", "spd"
        attack = self.effective_attack(user, atk_stat, move, utils)
        defense = self.effective_defense(target, def_stat, move, utils)
        crit = self._roll_crit(move)

        if move_type == "Ground" and not self.is_grounded(target):
            return HitResult(immune=True)

        result = self.damage_calculator.calculate(user, target, move_type, power, attack, defense, self.rng)
        if result.effectiveness == 0:
            return HitResult(immune=True, effectiveness=0)

        damage = result.damage
        if crit:
            damage = Mechanics.scale(damage, 1.5)
        damage = self.triggers.modify_damage(user, damage, move, target, crit, utils)
        damage = self._field_damage_modifiers(damage, move, move_type, user, target)
        if not crit and self._screened(target, move):
            damage = Mechanics.fraction(damage, 1, 2)
        damage = max(1, damage)

        dealt = self._land_hit(target, damage, log, utils)
        log.emit("move:hit", {"user": user.id, "target": target.id, "move": move.id, "damage": dealt, "crit": crit})
        return HitResult(damage=dealt, effectiveness=result.effectiveness, crit=crit)

    def _field_damage_modifiers(self, damage, move, move_type, user, target):
        weather = self.effective_weather()
        umbrella = target.item == "utility_umbrella" and not self.magic_room_active()
        if weather == "sun" and not umbrella:
            if move_type == "Fire":
                damage = Mechanics.scale(damage, 1.5)
            elif move_type == "Water":
                damage = Mechanics.scale(damage, 1.5 if move.id == "hydro_steam" else 0.5)
        elif weather == "rain" and not umbrella:
            if move_type == "Water":
                damage = Mechanics.scale(damage, 1.5)
            elif move_type == "Fire":
                damage = Mechanics.scale(damage, 0.5)
        if move.id == "solar_beam" and weather in ("rain", "sandstorm", "hail", "snow"):
            damage = Mechanics.fraction(damage, 1, 2)

        terrain = self.state.field.terrain
        if terrain.active:
            boosted = {"grassy": "Grass", "electric": "Electric", "psychic": "Psychic"}.get(terrain.id)
            if boosted == move_type and self.is_grounded(user):
                damage = Mechanics.scale(damage, 1.3)
            if terrain.id == "misty" and move_type == "Dragon" and self.is_grounded(target):
                damage = Mechanics.fraction(damage, 1, 2)
        return damage

    def _screened(self, target: Pokemon, move: Move) -> bool:
        side = self.state.side_of(target)
        if side is None:
            return False
        if move.category == "Physical":
            return side.conditions.reflect > 0
        return side.conditions.light_screen > 0

    def _land_hit(self, target: Pokemon, damage: int, log: TurnLog, utils: EngineUtils) -> int:
        v = target.volatile
        if v.substitute_hp > 0:
            absorbed = min(damage, v.substitute_hp)
            v.substitute_hp -= absorbed
            log.append(f"The substitute took damage for {target.name}!")
            log.emit("substitute:hit", {"target": target.id, "damage": absorbed})
            if v.substitute_hp == 0:
                log.append(f"{target.name}'s substitute faded!")
                log.emit("substitute:break", {"target": target.id})
            return absorbed

        if target.current_hp == target.max_hp and damage >= target.current_hp:
            if target.item == "focus_sash" and not self.magic_room_active():
                damage = target.current_hp - 1
                target.item = None
                log.append(f"{target.name} hung on using its Focus Sash!")
                log.emit("item:focus-sash", {"target": target.id})
            elif target.ability == "sturdy":
                damage = target.current_hp - 1
                log.append(f"{target.name} endured the hit!")
                log.emit("ability:sturdy", {"target": target.id})

        dealt = utils.deal_damage(target, damage)
        if dealt > 0 and target.item == "air_balloon" and not self.magic_room_active():
            target.item = None
            log.append(f"{target.name}'s Air Balloon popped!")
            log.emit("item:air-balloon:pop", {"target": target.id})
        return dealt

    def check_accuracy(self, move: Move, user: Pokemon, target: Pokemon, log: TurnLog) -> bool:
        if move.accuracy is None:
            return True
        if "no_guard" in (user.ability, target.ability):
            return True

        accuracy = Mechanics.scale(move.accuracy, Mechanics.stage_multiplier(user.stages.get("acc", 0), accuracy=True))
        accuracy = Mechanics.trunc(accuracy / Mechanics.stage_multiplier(target.stages.get("eva", 0), accuracy=True))

        weather = self.effective_weather()
        magic_room = self.magic_room_active()
        umbrella = target.item == "utility_umbrella" and not magic_room
        if move.id in ("thunder", "hurricane") and not umbrella:
            if weather == "rain":
                accuracy = 100
            elif weather == "sun":
                accuracy = Mechanics.fraction(accuracy, 1, 2)
        if target.ability == "snow_cloak" and weather in ("hail", "snow"):
            accuracy = Mechanics.scale(accuracy, 0.8)
        if target.item in ("bright_powder", "lax_incense") and not magic_room:
            accuracy = Mechanics.scale(accuracy, 0.9)

        utils = EngineUtils(self, log)
        accuracy = self.triggers.modify_accuracy(user, accuracy, move, target, utils)
        accuracy = Mechanics.clamp(accuracy, 1, 100)

        if self.rng() * 100 >= accuracy:
            log.append(f"{user.name}'s attack missed!")
            log.emit("move:miss", {"user": user.id, "target": target.id, "move": move.id})
            return False
        return True

    # ------------------------------------------------------------------
    # Stat pipeline
    # ------------------------------------------------------------------

    def effective_attack(self, mon: Pokemon, stat="atk", move=None, utils=None) -> int:
        utils = utils or EngineUtils(self, None)
        value = Mechanics.apply_stage(mon.stat(stat), mon.stages.get(stat, 0))
        if stat == "atk" and mon.status == "burn":
            value = Mechanics.fraction(value, 1, 2)
        return self.triggers.modify_attack(mon, stat, value, move, utils)

    def effective_defense(self, mon: Pokemon, stat="def", move=None, utils=None) -> int:
        utils = utils or EngineUtils(self, None)
        if self.state.field.wonder_room.active:
            stat = "spd" if stat == "def" else "def"
        value = Mechanics.apply_stage(mon.stat(stat), mon.stages.get(stat, 0))
        weather = self.effective_weather()
        if stat == "spd" and weather == "sandstorm" and mon.has_type("Rock"):
            value = Mechanics.scale(value, 1.5)
        elif stat == "def" and weather == "snow" and mon.has_type("Ice"):
            value = Mechanics.scale(value, 1.5)
        return self.triggers.modify_defense(mon, stat, value, move, utils)

    def effective_speed(self, mon: Pokemon, utils=None) -> int:
        utils = utils or EngineUtils(self, None)
        value = Mechanics.apply_stage(mon.stat("spe"), mon.stages.get("spe", 0))
        if mon.status == "paralysis":
            value = Mechanics.fraction(value, 1, 2)
        value = self.triggers.modify_speed(mon, value, utils)
        side = self.state.side_of(mon) if self.state else None
        if side is not None and side.conditions.tailwind > 0:
            value *= 2
        return value

    # ------------------------------------------------------------------
    # Field queries and mutation
    # ------------------------------------------------------------------

    def effective_weather(self) -> str:
        weather = self.state.field.weather
        if not weather.active:
            return "none"
        for mon in self.state.actives():
            if mon.ability in WEATHER_SUPPRESSORS and not mon.fainted:
                return "none"
        return weather.id

    def magic_room_active(self) -> bool:
        return self.state is not None and self.state.field.magic_room.active

    def is_grounded(self, mon: Pokemon) -> bool:
        magic_room = self.magic_room_active()
        if mon.item == "iron_ball" and not magic_room:
            return True
        if mon.has_type("Flying") or mon.ability == "levitate":
            return False
        if mon.volatile.magnet_rise_turns > 0:
            return False
        if mon.item == "air_balloon" and not magic_room:
            return False
        return True

    def set_field_effect(self, slot: str, effect_id: str, log: TurnLog, holder=None, base=5) -> int:
        """
        Install ``effect_id`` in a field slot. Re-applying the active effect
        adds the new duration to the remainder; anything else starts fresh.
        The setting turn's own end-of-turn tick is included in both cases.
        """
        effect = self.state.field.slot(slot)
        utils = EngineUtils(self, log)
        turns = self.triggers.modify_duration(holder, f"{slot}:{effect_id}", base, utils)
        remainder = effect.turns_left if effect.active and effect.id == effect_id else 0
        effect.id = effect_id
        effect.turns_left = max(1, remainder) + turns

        if log is not None:
            log.append(FIELD_START_MESSAGES.get(effect_id, f"{effect_id} started!"))
            log.emit(f"{FIELD_ANIM_PREFIX[slot]}:{effect_id}:start", {"turns": effect.turns_left})
        return effect.turns_left

    def end_field_effect(self, slot: str, log: TurnLog):
        effect = self.state.field.slot(slot)
        ended = effect.id
        effect.clear()
        if ended == "none" or log is None:
            return
        log.append(FIELD_END_MESSAGES.get(ended, f"{ended} ended."))
        log.emit(f"{FIELD_ANIM_PREFIX[slot]}:{ended}:end")

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    def apply_status(self, mon: Pokemon, status: str, log: TurnLog, message=None) -> bool:
        if status not in STATUSES or status == "none":
            return False
        if mon.fainted or mon.status != "none" or mon.volatile.substitute_hp > 0:
            return False
        if mon.has_type(*STATUS_TYPE_IMMUNITY.get(status, ())):
            return False

        terrain = self.state.field.terrain
        if terrain.active and self.is_grounded(mon):
            if terrain.id == "misty":
                log.append(f"{mon.name} surrounds itself with a protective mist!")
                return False
            if terrain.id == "electric" and status == "sleep":
                return False

        mon.status = status
        if status == "sleep":
            mon.volatile.sleep_turns = 2
        if status == "toxic":
            mon.volatile.toxic_counter = 0
        log.append(message or STATUS_MESSAGES[status].format(mon.name))
        log.emit(f"status:{status}:start", {"target": mon.id})

        if mon.item == "lum_berry" and not self.magic_room_active():
            mon.status = "none"
            mon.volatile.sleep_turns = 0
            mon.item = None
            log.append(f"{mon.name}'s Lum Berry cured its status!")
            log.emit("item:lum-berry", {"target": mon.id})
        return True

    # ------------------------------------------------------------------
    # End of turn
    # ------------------------------------------------------------------

    def _end_of_turn(self, log: TurnLog):
        state = self.state
        utils = EngineUtils(self, log)

        for side in state.sides:
            mon = side.active
            if mon.fainted:
                continue
            if mon.status != "none":
                for provider in self._status_tick_providers:
                    if mon.fainted:
                        break
                    provider(mon, mon.status, state, log)
            if mon.fainted:
                continue
            self.triggers.run_end_of_turn(mon, utils)
            if mon.fainted:
                continue
            for ended in mon.volatile.tick():
                message, anim = VOLATILE_EXPIRY[ended]
                log.append(message.format(mon.name))
                log.emit(anim, {"target": mon.id})
        self._announce_faints(log)

        self._weather_residuals(log, utils)
        self._announce_faints(log)

        self._tick_field(log)

    def _weather_residuals(self, log: TurnLog, utils: EngineUtils):
        weather = self.effective_weather()
        terrain = self.state.field.terrain
        for side in self.state.sides:
            mon = side.active
            if mon.fainted:
                continue
            if weather in ("sandstorm", "hail") and not self._weather_immune(mon, weather):
                dealt = utils.deal_damage(mon, max(1, Mechanics.fraction(mon.max_hp, 1, 16)))
                verb = "buffeted by the sandstorm" if weather == "sandstorm" else "pelted by hail"
                log.append(f"{mon.name} is {verb}! (-{dealt})")
                log.emit(f"weather:{weather}:damage", {"target": mon.id, "damage": dealt})
            if (
                terrain.active
                and terrain.id == "grassy"
                and not mon.fainted
                and mon.current_hp < mon.max_hp
                and self.is_grounded(mon)
            ):
                healed = utils.heal(mon, max(1, Mechanics.fraction(mon.max_hp, 1, 16)))
                log.append(f"{mon.name}'s HP was restored by the Grassy Terrain. (+{healed})")

    def _weather_immune(self, mon: Pokemon, weather: str) -> bool:
        if mon.ability == "overcoat":
            return True
        if mon.item == "safety_goggles" and not self.magic_room_active():
            return True
        if weather == "sandstorm":
            return mon.has_type("Rock", "Ground", "Steel") or mon.ability in ("sand_force", "sand_rush")
        return mon.has_type("Ice") or mon.ability in ("ice_body", "snow_cloak", "slush_rush")

    def _tick_field(self, log: TurnLog):
        field = self.state.field
        for slot in Field.SLOTS:
            effect = field.slot(slot)
            if effect.turns_left > 0:
                effect.turns_left -= 1
                if effect.turns_left == 0:
                    self.end_field_effect(slot, log)

        for side in self.state.sides:
            for condition, message in SIDE_CONDITION_END.items():
                remaining = getattr(side.conditions, condition)
                if remaining <= 0:
                    continue
                remaining -= 1
                setattr(side.conditions, condition, remaining)
                if remaining == 0:
                    log.append(message.format(side.name))
                    log.emit(f"side:{condition}:end", {"side": side.id})

    def _announce_faints(self, log: TurnLog):
        for side in self.state.sides:
            for mon in side.roster:
                if mon.fainted and id(mon) not in self._fainted_announced:
                    self._fainted_announced.add(id(mon))
                    log.append(f"{mon.name} fainted!")
                    log.emit("pokemon:faint", {"target": mon.id, "side": side.id})

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def get_state_log_lines(self, state: Optional[BattleState] = None) -> List[str]:
        state = state or self._require_state()
        lines = [f"  Turn {state.turn}"]
        for side in state.sides:
            mon = side.active
            lines.append(f"  {side.name} Active: {mon.name} ({mon.current_hp}/{mon.max_hp} HP)")

        field_info = []
        for slot in Field.SLOTS:
            effect = state.field.slot(slot)
            if effect.active:
                field_info.append(f"{slot.replace('_', ' ').title()}: {effect.id} ({effect.turns_left} turns left)")
        for side in state.sides:
            effs = []
            if side.hazards.stealth_rock:
                effs.append("Stealth Rock")
            if side.hazards.spikes:
                effs.append(f"Spikes(x{side.hazards.spikes})")
            if side.hazards.toxic_spikes:
                effs.append(f"Toxic Spikes(x{side.hazards.toxic_spikes})")
            if side.hazards.sticky_web:
                effs.append("Sticky Web")
            for condition, turns in vars(side.conditions).items():
                if turns:
                    effs.append(f"{condition.replace('_', ' ').title()}({turns}t)")
            if effs:
                field_info.append(f"{side.name} Field: {', '.join(effs)}")
        if field_info:
            lines.append(f"  Field Effects: {' | '.join(field_info)}")

        for side in state.sides:
            mon = side.active
            s_str = []
            for s in ["atk", "def", "spa", "spd", "spe"]:
                stage = mon.stages.get(s, 0)
                s_str.append(f"{s.upper()}:{mon.stat(s)}{'+' if stage >= 0 else ''}{stage}")
            lines.append(f"  {side.name} Stats: {' '.join(s_str)}")
            if mon.status != "none":
                lines.append(f"  {side.name} Status: {mon.status.upper()}")
        return lines


__all__ = [
    "BattleNotInitializedError",
    "BattleState",
    "Catalog",
    "Engine",
    "MoveAction",
    "STRUGGLE",
    "SwitchAction",
    "TYPE_CHART",
    "TurnResult",
    "default_catalog",
]
