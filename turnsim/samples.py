"""Curated move catalog and small roster builders for demos and tests."""

from typing import Dict, Iterable, List, Optional

from turnsim.battle_engine import move_effects as fx
from turnsim.battle_engine.state import Move, Pokemon, Side


def _status(id, name, type, on_use, accuracy=None, priority=0, pp=None):
    return Move(id, name, type, "Status", accuracy=accuracy, priority=priority, pp=pp, on_use=on_use)


MOVE_LIST = [
    # Generic attacks
    Move("tackle", "Tackle", "Normal", "Physical", power=40, pp=35),
    Move("quick_attack", "Quick Attack", "Normal", "Physical", power=40, priority=1, pp=30),
    Move("extreme_speed", "Extreme Speed", "Normal", "Physical", power=80, priority=2, pp=5),
    Move("body_slam", "Body Slam", "Normal", "Physical", power=85, pp=15),
    Move("flamethrower", "Flamethrower", "Fire", "Special", power=90, pp=15),
    Move("ember", "Ember", "Fire", "Special", power=40, pp=25),
    Move("surf", "Surf", "Water", "Special", power=90, pp=15),
    Move("water_gun", "Water Gun", "Water", "Special", power=40, pp=25),
    Move("hydro_steam", "Hydro Steam", "Water", "Special", power=80, pp=15),
    Move("thunderbolt", "Thunderbolt", "Electric", "Special", power=90, pp=15),
    Move("thunder", "Thunder", "Electric", "Special", power=110, accuracy=70, pp=10),
    Move("hurricane", "Hurricane", "Flying", "Special", power=110, accuracy=70, pp=10),
    Move("energy_ball", "Energy Ball", "Grass", "Special", power=90, pp=10),
    Move("solar_beam", "Solar Beam", "Grass", "Special", power=120, pp=10),
    Move("weather_ball", "Weather Ball", "Normal", "Special", power=50, pp=10),
    Move("earthquake", "Earthquake", "Ground", "Physical", power=100, pp=10),
    Move("rock_slide", "Rock Slide", "Rock", "Physical", power=75, accuracy=90, pp=10),
    Move("stone_edge", "Stone Edge", "Rock", "Physical", power=100, accuracy=80, crit_ratio=1, pp=5),
    Move("ice_beam", "Ice Beam", "Ice", "Special", power=90, pp=10),
    Move("frost_breath", "Frost Breath", "Ice", "Special", power=60, accuracy=90, crit_ratio=3, pp=10),
    Move("psychic", "Psychic", "Psychic", "Special", power=90, pp=10),
    Move("shadow_ball", "Shadow Ball", "Ghost", "Special", power=80, pp=15),
    Move("dragon_pulse", "Dragon Pulse", "Dragon", "Special", power=85, pp=10),
    Move("close_combat", "Close Combat", "Fighting", "Physical", power=120, pp=5),
    Move("aerial_ace", "Aerial Ace", "Flying", "Physical", power=60, accuracy=None, pp=20),
    Move("bullet_seed", "Bullet Seed", "Grass", "Physical", power=25, multi_hit=(2, 5), pp=30),
    Move("double_kick", "Double Kick", "Fighting", "Physical", power=30, multi_hit=2, pp=30),
    Move("u_turn", "U-turn", "Bug", "Physical", power=70, pp=20, switches_user_out=True),
    Move("volt_switch", "Volt Switch", "Electric", "Special", power=70, pp=20, switches_user_out=True),
    Move("rapid_spin", "Rapid Spin", "Normal", "Physical", power=50, pp=40, on_use=fx.rapid_spin),
    # Field
    _status("rain_dance", "Rain Dance", "Water", fx.set_weather("rain"), pp=5),
    _status("sunny_day", "Sunny Day", "Fire", fx.set_weather("sun"), pp=5),
    _status("sandstorm", "Sandstorm", "Rock", fx.set_weather("sandstorm"), pp=10),
    _status("hail", "Hail", "Ice", fx.set_weather("hail"), pp=10),
    _status("snowscape", "Snowscape", "Ice", fx.set_weather("snow"), pp=10),
    _status("grassy_terrain", "Grassy Terrain", "Grass", fx.set_terrain("grassy"), pp=10),
    _status("electric_terrain", "Electric Terrain", "Electric", fx.set_terrain("electric"), pp=10),
    _status("psychic_terrain", "Psychic Terrain", "Psychic", fx.set_terrain("psychic"), pp=10),
    _status("misty_terrain", "Misty Terrain", "Fairy", fx.set_terrain("misty"), pp=10),
    _status("trick_room", "Trick Room", "Psychic", fx.trick_room, priority=-7, pp=5),
    _status("magic_room", "Magic Room", "Psychic", fx.magic_room, pp=10),
    _status("wonder_room", "Wonder Room", "Psychic", fx.wonder_room, pp=10),
    # Protection
    _status("protect", "Protect", "Normal", fx.protect, priority=4, pp=10),
    _status("substitute", "Substitute", "Normal", fx.substitute, pp=10),
    _status("recover", "Recover", "Normal", fx.recover, pp=5),
    _status("magnet_rise", "Magnet Rise", "Electric", fx.magnet_rise, pp=10),
    # Hazards
    _status("stealth_rock", "Stealth Rock", "Rock", fx.stealth_rock, pp=20),
    _status("spikes", "Spikes", "Ground", fx.spikes, pp=20),
    _status("toxic_spikes", "Toxic Spikes", "Poison", fx.toxic_spikes, pp=20),
    _status("sticky_web", "Sticky Web", "Bug", fx.sticky_web, pp=20),
    _status("defog", "Defog", "Flying", fx.defog, pp=15),
    # Stat stages
    _status("swords_dance", "Swords Dance", "Normal", fx.boost_user({"atk": 2}), pp=20),
    _status("nasty_plot", "Nasty Plot", "Dark", fx.boost_user({"spa": 2}), pp=20),
    _status("calm_mind", "Calm Mind", "Psychic", fx.boost_user({"spa": 1, "spd": 1}), pp=20),
    # Disruption
    _status("taunt", "Taunt", "Dark", fx.taunt, pp=20),
    _status("encore", "Encore", "Normal", fx.encore, pp=5),
    _status("disable", "Disable", "Normal", fx.disable, pp=20),
    _status("torment", "Torment", "Dark", fx.torment, pp=15),
    _status("will_o_wisp", "Will-O-Wisp", "Fire", fx.inflict("burn"), accuracy=85, pp=15),
    _status("toxic", "Toxic", "Poison", fx.inflict("toxic"), accuracy=90, pp=10),
    _status("thunder_wave", "Thunder Wave", "Electric", fx.inflict("paralysis", respect_type_immunity=True), accuracy=90, pp=20),
    _status("spore", "Spore", "Grass", fx.inflict("sleep"), accuracy=100, pp=15),
    # Side conditions
    _status("tailwind", "Tailwind", "Flying", fx.tailwind, pp=15),
    _status("reflect", "Reflect", "Psychic", fx.reflect, pp=20),
    _status("light_screen", "Light Screen", "Psychic", fx.light_screen, pp=30),
]

MOVES: Dict[str, Move] = {move.id: move for move in MOVE_LIST}


def moves(*ids: str) -> List[Move]:
    return [MOVES[i] for i in ids]


def default_stats(**overrides) -> Dict[str, int]:
    stats = {"hp": 100, "atk": 50, "def": 50, "spa": 50, "spd": 50, "spe": 50}
    stats.update(overrides)
    return stats


def sample_mon(
    id: str,
    name: Optional[str] = None,
    types: Optional[Iterable[str]] = None,
    move_ids: Iterable[str] = ("tackle",),
    level: int = 50,
    ability: Optional[str] = None,
    item: Optional[str] = None,
    **stats,
) -> Pokemon:
    return Pokemon(
        id=id,
        name=name or id.replace("_", " ").title(),
        level=level,
        types=list(types or ["Normal"]),
        base_stats=default_stats(**stats),
        moves=moves(*move_ids),
        ability=ability,
        item=item,
    )


def sample_sides() -> List[Side]:
    """Two three-member teams used by the demo CLI."""
    p1 = Side(
        "p1",
        "Red",
        [
            sample_mon("charizard", types=["Fire", "Flying"], move_ids=("flamethrower", "sunny_day", "solar_beam", "u_turn"),
                       ability="solar_power", item="life_orb", hp=153, spa=109, spe=100),
            sample_mon("skarmory", types=["Steel", "Flying"], move_ids=("stealth_rock", "spikes", "aerial_ace", "defog"),
                       ability="sturdy", item="leftovers", hp=140, atk=80, **{"def": 140}, spe=70),
            sample_mon("blastoise", types=["Water"], move_ids=("surf", "rapid_spin", "ice_beam", "protect"),
                       ability="torrent", hp=154, spa=85, spd=105, spe=78),
        ],
    )
    p2 = Side(
        "p2",
        "Blue",
        [
            sample_mon("pelipper", types=["Water", "Flying"], move_ids=("hurricane", "surf", "u_turn", "tailwind"),
                       ability="drizzle", item="damp_rock", hp=135, spa=95, spe=65),
            sample_mon("ferrothorn", types=["Grass", "Steel"], move_ids=("spikes", "toxic_spikes", "bullet_seed", "protect"),
                       ability="overcoat", item="leftovers", hp=149, atk=94, **{"def": 131}, spe=20),
            sample_mon("jolteon", types=["Electric"], move_ids=("thunder", "volt_switch", "thunder_wave", "substitute"),
                       ability="volt_absorb", item="focus_sash", hp=140, spa=110, spe=130),
        ],
    )
    return [p1, p2]
