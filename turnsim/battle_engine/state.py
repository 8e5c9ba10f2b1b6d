
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple, Union
import copy

# Gen 6+ type chart, attacking type -> defending type -> multiplier
TYPE_CHART = {
    "Normal": {"Rock": 0.5, "Ghost": 0.0, "Steel": 0.5},
    "Fire": {"Fire": 0.5, "Water": 0.5, "Grass": 2.0, "Ice": 2.0, "Bug": 2.0, "Rock": 0.5, "Dragon": 0.5, "Steel": 2.0},
    "Water": {"Fire": 2.0, "Water": 0.5, "Grass": 0.5, "Ground": 2.0, "Rock": 2.0, "Dragon": 0.5},
    "Electric": {"Water": 2.0, "Electric": 0.5, "Grass": 0.5, "Ground": 0.0, "Flying": 2.0, "Dragon": 0.5},
    "Grass": {
        "Fire": 0.5, "Water": 2.0, "Grass": 0.5, "Poison": 0.5, "Ground": 2.0,
        "Flying": 0.5, "Bug": 0.5, "Rock": 2.0, "Dragon": 0.5, "Steel": 0.5,
    },
    "Ice": {"Fire": 0.5, "Water": 0.5, "Grass": 2.0, "Ice": 0.5, "Ground": 2.0, "Flying": 2.0, "Dragon": 2.0, "Steel": 0.5},
    "Fighting": {
        "Normal": 2.0, "Ice": 2.0, "Poison": 0.5, "Flying": 0.5, "Psychic": 0.5, "Bug": 0.5,
        "Rock": 2.0, "Ghost": 0.0, "Dark": 2.0, "Steel": 2.0, "Fairy": 0.5,
    },
    "Poison": {"Grass": 2.0, "Poison": 0.5, "Ground": 0.5, "Rock": 0.5, "Ghost": 0.5, "Steel": 0.0, "Fairy": 2.0},
    "Ground": {"Fire": 2.0, "Electric": 2.0, "Grass": 0.5, "Poison": 2.0, "Flying": 0.0, "Bug": 0.5, "Rock": 2.0, "Steel": 2.0},
    "Flying": {"Electric": 0.5, "Grass": 2.0, "Fighting": 2.0, "Bug": 2.0, "Rock": 0.5, "Steel": 0.5},
    "Psychic": {"Fighting": 2.0, "Poison": 2.0, "Psychic": 0.5, "Dark": 0.0, "Steel": 0.5},
    "Bug": {
        "Fire": 0.5, "Grass": 2.0, "Fighting": 0.5, "Poison": 0.5, "Flying": 0.5,
        "Psychic": 2.0, "Ghost": 0.5, "Dark": 2.0, "Steel": 0.5, "Fairy": 0.5,
    },
    "Rock": {"Fire": 2.0, "Ice": 2.0, "Fighting": 0.5, "Ground": 0.5, "Flying": 2.0, "Bug": 2.0, "Steel": 0.5},
    "Ghost": {"Normal": 0.0, "Psychic": 2.0, "Ghost": 2.0, "Dark": 0.5},
    "Dragon": {"Dragon": 2.0, "Steel": 0.5, "Fairy": 0.0},
    "Dark": {"Fighting": 0.5, "Psychic": 2.0, "Ghost": 2.0, "Dark": 0.5, "Fairy": 0.5},
    "Steel": {"Fire": 0.5, "Water": 0.5, "Electric": 0.5, "Ice": 2.0, "Rock": 2.0, "Steel": 0.5, "Fairy": 2.0},
    "Fairy": {"Fire": 0.5, "Fighting": 2.0, "Poison": 0.5, "Dragon": 2.0, "Dark": 2.0, "Steel": 0.5},
}

STAT_NAMES = ("hp", "atk", "def", "spa", "spd", "spe")
STAGE_NAMES = ("atk", "def", "spa", "spd", "spe", "acc", "eva")
STATUSES = ("burn", "poison", "toxic", "paralysis", "sleep", "freeze", "none")

DEFAULT_PP = 10


def fresh_stages() -> Dict[str, int]:
    return {s: 0 for s in STAGE_NAMES}


@dataclass(frozen=True)
class Move:
    id: str
    name: str
    type: str
    category: str  # Physical | Special | Status
    power: Optional[int] = None
    accuracy: Optional[int] = 100  # None never misses
    priority: int = 0
    crit_ratio: int = 0
    multi_hit: Optional[Union[int, Tuple[int, int]]] = None
    pp: Optional[int] = None
    on_use: Optional[Callable] = None
    switches_user_out: bool = False

    @property
    def max_pp(self) -> int:
        return self.pp if self.pp is not None else DEFAULT_PP

    @property
    def is_damaging(self) -> bool:
        return self.category != "Status" and bool(self.power)


# Volatile fields that survive a switch-out. Everything else returns to its default.
KEPT_ON_SWITCH_OUT = ("pp", "sleep_turns")


@dataclass
class Volatiles:
    protect: bool = False
    protect_chain: int = 0
    substitute_hp: int = 0
    taunt_turns: int = 0
    encore_turns: int = 0
    encore_move_id: Optional[str] = None
    disabled_turns: int = 0
    disabled_move_id: Optional[str] = None
    torment_turns: int = 0
    magnet_rise_turns: int = 0
    last_move_id: Optional[str] = None
    pp: Dict[str, int] = field(default_factory=dict)
    toxic_counter: int = 0
    sleep_turns: int = 0
    choice_locked_move_id: Optional[str] = None
    flash_fire_boost: bool = False
    solar_beam_charging: bool = False

    def tick(self) -> List[str]:
        """Advance the per-turn timers once. Returns the names of the effects that ended."""
        ended = []
        if self.protect:
            self.protect = False
        else:
            self.protect_chain = 0

        if self.magnet_rise_turns > 0:
            self.magnet_rise_turns -= 1
            if self.magnet_rise_turns == 0:
                ended.append("magnet_rise")
        if self.taunt_turns > 0:
            self.taunt_turns -= 1
            if self.taunt_turns == 0:
                ended.append("taunt")
        if self.encore_turns > 0:
            self.encore_turns -= 1
            if self.encore_turns == 0:
                self.encore_move_id = None
                ended.append("encore")
        if self.disabled_turns > 0:
            self.disabled_turns -= 1
            if self.disabled_turns == 0:
                self.disabled_move_id = None
                ended.append("disable")
        if self.torment_turns > 0:
            self.torment_turns -= 1
            if self.torment_turns == 0:
                ended.append("torment")
        return ended

    def after_switch_out(self) -> "Volatiles":
        return Volatiles(**{name: getattr(self, name) for name in KEPT_ON_SWITCH_OUT})


@dataclass
class Pokemon:
    id: str
    name: str
    level: int = 50
    types: List[str] = field(default_factory=lambda: ["Normal"])
    base_stats: Dict[str, int] = field(
        default_factory=lambda: {"hp": 100, "atk": 50, "def": 50, "spa": 50, "spd": 50, "spe": 50}
    )
    moves: List[Move] = field(default_factory=list)
    ability: Optional[str] = None
    item: Optional[str] = None
    max_hp: Optional[int] = None
    current_hp: Optional[int] = None
    status: str = "none"
    stages: Dict[str, int] = field(default_factory=fresh_stages)
    volatile: Volatiles = field(default_factory=Volatiles)

    def __post_init__(self):
        if self.max_hp is None:
            self.max_hp = self.base_stats.get("hp", 1)
        if self.current_hp is None:
            self.current_hp = self.max_hp
        for s in STAGE_NAMES:
            self.stages.setdefault(s, 0)

    @property
    def fainted(self) -> bool:
        return self.current_hp <= 0

    def stat(self, name: str) -> int:
        return self.base_stats.get(name, 1)

    def has_type(self, *types) -> bool:
        return any(t in self.types for t in types)

    def find_move(self, move_id: Optional[str]) -> Optional[Move]:
        for move in self.moves:
            if move.id == move_id:
                return move
        return None

    def pp_left(self, move: Move) -> int:
        return self.volatile.pp.get(move.id, move.max_pp)

    def reset_on_switch_out(self):
        """Single switch-out transition: stat stages and every volatile except PP and sleep."""
        self.stages = fresh_stages()
        self.volatile = self.volatile.after_switch_out()


@dataclass
class SideHazards:
    stealth_rock: bool = False
    spikes: int = 0  # 0-3
    toxic_spikes: int = 0  # 0-2
    sticky_web: bool = False

    def any(self) -> bool:
        return self.stealth_rock or self.spikes > 0 or self.toxic_spikes > 0 or self.sticky_web

    def clear(self):
        self.stealth_rock = False
        self.spikes = 0
        self.toxic_spikes = 0
        self.sticky_web = False


@dataclass
class SideConditions:
    tailwind: int = 0
    reflect: int = 0
    light_screen: int = 0


@dataclass
class Side:
    id: str
    name: str
    roster: List[Pokemon]
    active_index: int = 0
    hazards: SideHazards = field(default_factory=SideHazards)
    conditions: SideConditions = field(default_factory=SideConditions)

    def __post_init__(self):
        self.active_index = self.clamp_index(self.active_index)

    def clamp_index(self, index: int) -> int:
        if not self.roster:
            return 0
        return max(0, min(len(self.roster) - 1, int(index)))

    @property
    def active(self) -> Pokemon:
        return self.roster[self.active_index]

    def find(self, pokemon_id: Optional[str]) -> Optional[Pokemon]:
        for mon in self.roster:
            if mon.id == pokemon_id:
                return mon
        return None


@dataclass
class FieldEffect:
    id: str = "none"
    turns_left: int = 0

    @property
    def active(self) -> bool:
        return self.turns_left > 0 and self.id != "none"

    def clear(self):
        self.id = "none"
        self.turns_left = 0


@dataclass
class Field:
    weather: FieldEffect = field(default_factory=FieldEffect)
    terrain: FieldEffect = field(default_factory=FieldEffect)
    room: FieldEffect = field(default_factory=FieldEffect)
    magic_room: FieldEffect = field(default_factory=FieldEffect)
    wonder_room: FieldEffect = field(default_factory=FieldEffect)

    SLOTS = ("weather", "terrain", "room", "magic_room", "wonder_room")

    def slot(self, name: str) -> FieldEffect:
        return getattr(self, name)


@dataclass
class BattleState:
    sides: List[Side]
    turn: int = 0
    rng_seed: Optional[int] = None
    log: List[str] = field(default_factory=list)
    # Declared last: the attribute name shadows dataclasses.field in the class body.
    field: Field = field(default_factory=Field)

    def find_side(self, side_id: Optional[str]) -> Optional[Side]:
        for side in self.sides:
            if side.id == side_id:
                return side
        return None

    def find_pokemon(self, side_id, pokemon_id) -> Optional[Pokemon]:
        side = self.find_side(side_id)
        return side.find(pokemon_id) if side else None

    def side_of(self, pokemon: Pokemon) -> Optional[Side]:
        # Roster membership, not id equality: both sides may reuse ids.
        for side in self.sides:
            if any(m is pokemon for m in side.roster):
                return side
        return None

    def opponent_of(self, side: Side) -> Optional[Side]:
        for other in self.sides:
            if other is not side:
                return other
        return None

    def actives(self) -> List[Pokemon]:
        return [side.active for side in self.sides]

    def deep_copy(self):
        return copy.deepcopy(self)

    def fingerprint(self):
        """Hashable summary of the battle-relevant state, used to compare replays."""

        def mon_key(m: Pokemon):
            return (
                m.id,
                m.current_hp,
                m.status,
                m.item,
                tuple(sorted(m.stages.items())),
                tuple(sorted((k, v) for k, v in vars(m.volatile).items() if k != "pp")),
                tuple(sorted(m.volatile.pp.items())),
            )

        sides_key = tuple(
            (
                s.id,
                s.active_index,
                tuple(mon_key(m) for m in s.roster),
                tuple(vars(s.hazards).items()),
                tuple(vars(s.conditions).items()),
            )
            for s in self.sides
        )
        field_key = tuple((name, self.field.slot(name).id, self.field.slot(name).turns_left) for name in Field.SLOTS)
        return (self.turn, self.rng_seed, sides_key, field_key)


@dataclass
class MoveAction:
    side_id: str
    pokemon_id: str
    move_id: str
    target_side_id: Optional[str] = None
    target_pokemon_id: Optional[str] = None


@dataclass
class SwitchAction:
    side_id: str
    pokemon_id: str
    to_index: int


@dataclass
class AnimationEvent:
    type: str
    payload: Dict = field(default_factory=dict)


@dataclass
class TurnResult:
    state: BattleState
    events: List[str]
    anim: List[AnimationEvent]


class TurnLog:
    """
    Sink for one engine call. Text lines go to both the battle's permanent log
    and this call's events; animation intents are collected separately.
    """

    def __init__(self, state: Optional[BattleState] = None):
        self.state = state
        self.events: List[str] = []
        self.anim: List[AnimationEvent] = []

    def append(self, line: str):
        if self.state is not None:
            self.state.log.append(line)
        self.events.append(line)

    def emit(self, type: str, payload: Optional[Dict] = None):
        self.anim.append(AnimationEvent(type, dict(payload or {})))

    def result(self) -> TurnResult:
        return TurnResult(self.state, self.events, self.anim)
