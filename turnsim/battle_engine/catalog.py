"""
Ability and item hook registry.

An ability or item is a ``Hooks`` object: every hook family has a no-op
default, and concrete entries override only the families they care about.
Hook objects are shared by every holder, so any state an entry needs to
remember belongs in the holder's ``Volatiles``.

``ABILITIES`` and ``ITEMS`` are the process-wide defaults; each engine gets
its own ``Catalog`` snapshot so that merging entries into one battle never
affects another.
"""

from typing import Dict, Iterable, Optional

from turnsim.mechanics import Mechanics


class Hooks:
    id: str = ""
    name: str = ""

    def __init__(self, id=None, name=None):
        if id is not None:
            self.id = id
        if name is not None:
            self.name = name
        if not self.name:
            self.name = self.id.replace("_", " ").title()

    def on_switch_in(self, holder, utils):
        pass

    def modify_attack(self, holder, stat, value, move, utils):
        return value

    def modify_defense(self, holder, stat, value, move, utils):
        return value

    def modify_speed(self, holder, value, utils):
        return value

    def modify_accuracy(self, holder, accuracy, move, target, utils):
        return accuracy

    def modify_damage(self, holder, damage, move, target, crit, utils):
        return damage

    def on_end_of_turn(self, holder, utils):
        pass

    def modify_duration(self, holder, effect, turns, utils):
        return turns

    def __repr__(self):
        return f"<{type(self).__name__} {self.id}>"


class Ability(Hooks):
    pass


class Item(Hooks):
    pass


NO_ABILITY = Ability("none", "No Ability")
NO_ITEM = Item("none", "No Item")


# --- Abilities ---------------------------------------------------------------


class Intimidate(Ability):
    def on_switch_in(self, holder, utils):
        foe = utils.opponent_active(holder)
        if foe is None or foe.fainted:
            return
        applied = utils.modify_stat_stages(foe, {"atk": -1})
        if applied.get("atk"):
            utils.log.append(f"{holder.name}'s Intimidate cuts {foe.name}'s Attack!")
            utils.emit_anim("ability:intimidate", {"source": holder.id, "target": foe.id})
        else:
            utils.log.append(f"{foe.name}'s Attack won't go any lower!")


class StatMultiplier(Ability):
    def __init__(self, id, stat, factor, name=None):
        super().__init__(id, name)
        self.stat = stat
        self.factor = factor

    def modify_attack(self, holder, stat, value, move, utils):
        if stat == self.stat:
            return Mechanics.scale(value, self.factor)
        return value


class Hustle(StatMultiplier):
    def __init__(self):
        super().__init__("hustle", "atk", 1.5)

    def modify_accuracy(self, holder, accuracy, move, target, utils):
        if move.category == "Physical":
            return Mechanics.scale(accuracy, 0.8)
        return accuracy


class CompoundEyes(Ability):
    def modify_accuracy(self, holder, accuracy, move, target, utils):
        return Mechanics.scale(accuracy, 1.3)


class WeatherSpeed(Ability):
    def __init__(self, id, weathers):
        super().__init__(id)
        self.weathers = weathers

    def modify_speed(self, holder, value, utils):
        if utils.weather() in self.weathers:
            return value * 2
        return value


class PinchBoost(Ability):
    """Blaze-style: 1.5x to one type while at or below a third of max HP."""

    def __init__(self, id, move_type):
        super().__init__(id)
        self.move_type = move_type

    def modify_damage(self, holder, damage, move, target, crit, utils):
        if utils.move_type(move, holder) == self.move_type and holder.current_hp * 3 <= holder.max_hp:
            return Mechanics.scale(damage, 1.5)
        return damage


class FlashFire(Ability):
    def modify_damage(self, holder, damage, move, target, crit, utils):
        if holder.volatile.flash_fire_boost and utils.move_type(move, holder) == "Fire":
            return Mechanics.scale(damage, 1.5)
        return damage


class SandForce(Ability):
    def modify_damage(self, holder, damage, move, target, crit, utils):
        if utils.weather() == "sandstorm" and utils.move_type(move, holder) in ("Rock", "Ground", "Steel"):
            return Mechanics.scale(damage, 1.3)
        return damage


class Sniper(Ability):
    def modify_damage(self, holder, damage, move, target, crit, utils):
        return Mechanics.scale(damage, 1.5) if crit else damage


class WeatherSuppressor(Ability):
    def on_switch_in(self, holder, utils):
        utils.log.append(f"{holder.name}'s {self.name}: The effects of the weather disappeared.")
        utils.emit_anim("ability:weather-suppress", {"source": holder.id})


class WeatherSetter(Ability):
    def __init__(self, id, weather):
        super().__init__(id)
        self.weather = weather

    def on_switch_in(self, holder, utils):
        utils.log.append(f"[{holder.name}'s {self.name}]")
        utils.set_field_effect("weather", self.weather, holder=holder)


class WeatherRecovery(Ability):
    def __init__(self, id, weathers):
        super().__init__(id)
        self.weathers = weathers

    def on_end_of_turn(self, holder, utils):
        if utils.weather() not in self.weathers or holder.current_hp >= holder.max_hp:
            return
        healed = utils.heal(holder, max(1, Mechanics.fraction(holder.max_hp, 1, 16)))
        if healed:
            utils.log.append(f"{holder.name}'s {self.name} restored its HP. (+{healed})")


class SolarPower(Ability):
    def modify_attack(self, holder, stat, value, move, utils):
        if stat == "spa" and utils.weather() == "sun" and not utils.holds_umbrella(holder):
            return Mechanics.scale(value, 1.5)
        return value

    def on_end_of_turn(self, holder, utils):
        if utils.weather() != "sun" or utils.holds_umbrella(holder):
            return
        lost = utils.deal_damage(holder, max(1, Mechanics.fraction(holder.max_hp, 1, 8)))
        utils.log.append(f"{holder.name} was hurt by its Solar Power! (-{lost})")


def _passive(id, name=None):
    # Abilities whose effect is checked by id inside the engine.
    return Ability(id, name)


ABILITIES: Dict[str, Ability] = {}


def _register(table, entries: Iterable[Hooks]):
    for entry in entries:
        table[entry.id] = entry


_register(ABILITIES, [
    Intimidate("intimidate"),
    _passive("sturdy"),
    _passive("no_guard"),
    _passive("levitate"),
    _passive("pressure"),
    _passive("water_absorb"),
    _passive("volt_absorb"),
    _passive("snow_cloak"),
    _passive("overcoat"),
    PinchBoost("blaze", "Fire"),
    PinchBoost("torrent", "Water"),
    PinchBoost("overgrow", "Grass"),
    WeatherSpeed("swift_swim", ("rain",)),
    WeatherSpeed("chlorophyll", ("sun",)),
    WeatherSpeed("sand_rush", ("sandstorm",)),
    WeatherSpeed("slush_rush", ("hail", "snow")),
    StatMultiplier("huge_power", "atk", 2),
    Hustle(),
    CompoundEyes("compound_eyes"),
    Sniper("sniper"),
    FlashFire("flash_fire"),
    SandForce("sand_force"),
    WeatherSuppressor("cloud_nine"),
    WeatherSuppressor("air_lock"),
    WeatherSetter("drizzle", "rain"),
    WeatherSetter("drought", "sun"),
    WeatherSetter("sand_stream", "sandstorm"),
    WeatherSetter("snow_warning", "snow"),
    WeatherRecovery("rain_dish", ("rain",)),
    WeatherRecovery("ice_body", ("hail", "snow")),
    SolarPower("solar_power"),
])


# --- Items -------------------------------------------------------------------


class ChoiceItem(Item):
    def __init__(self, id, stat, factor=1.5):
        super().__init__(id)
        self.stat = stat
        self.factor = factor

    def modify_attack(self, holder, stat, value, move, utils):
        if stat == self.stat:
            return Mechanics.scale(value, self.factor)
        return value

    def modify_speed(self, holder, value, utils):
        if self.stat == "spe":
            return Mechanics.scale(value, self.factor)
        return value


class Leftovers(Item):
    def on_end_of_turn(self, holder, utils):
        if holder.current_hp >= holder.max_hp:
            return
        healed = utils.heal(holder, max(1, Mechanics.fraction(holder.max_hp, 1, 16)))
        if healed:
            utils.log.append(f"{holder.name} restored a little HP using its Leftovers! (+{healed})")


class BlackSludge(Item):
    def on_end_of_turn(self, holder, utils):
        if holder.has_type("Poison"):
            if holder.current_hp < holder.max_hp:
                healed = utils.heal(holder, max(1, Mechanics.fraction(holder.max_hp, 1, 16)))
                utils.log.append(f"{holder.name} restored HP using its Black Sludge! (+{healed})")
        else:
            lost = utils.deal_damage(holder, max(1, Mechanics.fraction(holder.max_hp, 1, 8)))
            utils.log.append(f"{holder.name} was hurt by its Black Sludge! (-{lost})")


class LifeOrb(Item):
    # Recoil is applied by the engine once per move that dealt damage.
    def modify_damage(self, holder, damage, move, target, crit, utils):
        return Mechanics.scale(damage, 1.3)


class DurationExtender(Item):
    def __init__(self, id, effects, turns=8):
        super().__init__(id)
        self.effects = effects
        self.turns = turns

    def modify_duration(self, holder, effect, turns, utils):
        if effect in self.effects:
            return max(turns, self.turns)
        return turns


class AccuracyItem(Item):
    def __init__(self, id, factor):
        super().__init__(id)
        self.factor = factor

    def modify_accuracy(self, holder, accuracy, move, target, utils):
        return Mechanics.scale(accuracy, self.factor)


class AssaultVest(Item):
    def modify_defense(self, holder, stat, value, move, utils):
        if stat == "spd":
            return Mechanics.scale(value, 1.5)
        return value


class IronBall(Item):
    def modify_speed(self, holder, value, utils):
        return Mechanics.fraction(value, 1, 2)


class AirBalloon(Item):
    def on_switch_in(self, holder, utils):
        utils.log.append(f"{holder.name} floats in the air with its Air Balloon!")
        utils.emit_anim("item:air-balloon", {"target": holder.id})


def _held(id, name=None):
    # Items whose effect is checked by id inside the engine.
    return Item(id, name)


ITEMS: Dict[str, Item] = {}

_register(ITEMS, [
    ChoiceItem("choice_band", "atk"),
    ChoiceItem("choice_specs", "spa"),
    ChoiceItem("choice_scarf", "spe"),
    Leftovers("leftovers"),
    BlackSludge("black_sludge"),
    LifeOrb("life_orb"),
    _held("focus_sash"),
    _held("heavy_duty_boots", "Heavy-Duty Boots"),
    AirBalloon("air_balloon"),
    _held("utility_umbrella"),
    DurationExtender("damp_rock", ("weather:rain",)),
    DurationExtender("heat_rock", ("weather:sun",)),
    DurationExtender("smooth_rock", ("weather:sandstorm",)),
    DurationExtender("icy_rock", ("weather:hail", "weather:snow")),
    DurationExtender(
        "terrain_extender",
        ("terrain:grassy", "terrain:electric", "terrain:psychic", "terrain:misty"),
    ),
    DurationExtender("light_clay", ("screen:reflect", "screen:light_screen")),
    _held("bright_powder"),
    _held("lax_incense"),
    AccuracyItem("wide_lens", 1.1),
    _held("lum_berry"),
    _held("safety_goggles"),
    AssaultVest("assault_vest"),
    IronBall("iron_ball"),
])

CHOICE_ITEMS = ("choice_band", "choice_specs", "choice_scarf")


def merge_abilities(entries):
    """Extend the process-wide default abilities. Call at startup, before engines are built."""
    ABILITIES.update(_as_table(entries))


def merge_items(entries):
    """Extend the process-wide default items. Call at startup, before engines are built."""
    ITEMS.update(_as_table(entries))


def _as_table(entries):
    if isinstance(entries, dict):
        return dict(entries)
    return {entry.id: entry for entry in entries}


class Catalog:
    """Per-engine view of abilities and items."""

    def __init__(self, abilities=None, items=None):
        self.abilities: Dict[str, Ability] = dict(abilities or {})
        self.items: Dict[str, Item] = dict(items or {})

    def ability(self, ability_id: Optional[str]) -> Ability:
        if not ability_id:
            return NO_ABILITY
        return self.abilities.get(ability_id, NO_ABILITY)

    def item(self, item_id: Optional[str]) -> Item:
        if not item_id:
            return NO_ITEM
        return self.items.get(item_id, NO_ITEM)

    def merge_abilities(self, entries):
        self.abilities.update(_as_table(entries))

    def merge_items(self, entries):
        self.items.update(_as_table(entries))


def default_catalog() -> Catalog:
    return Catalog(ABILITIES, ITEMS)
