
from typing import List
import logging

from .catalog import Catalog, Hooks


class TriggerHandler:
    """
    Runs ability and item hooks in a fixed order: ability first, then item.
    Item hooks are skipped entirely while Magic Room is active; the item
    itself stays on the holder.
    """

    def __init__(self, catalog: Catalog):
        self.catalog = catalog

    def hooks_for(self, mon, utils) -> List[Hooks]:
        hooks = [self.catalog.ability(mon.ability)]
        if not utils.magic_room_active():
            hooks.append(self.catalog.item(mon.item))
        return hooks

    def run_switch_in(self, mon, utils):
        for hook in self.hooks_for(mon, utils):
            if mon.fainted:
                return
            hook.on_switch_in(mon, utils)

    def run_end_of_turn(self, mon, utils):
        for hook in self.hooks_for(mon, utils):
            if mon.fainted:
                return
            hook.on_end_of_turn(mon, utils)

    def modify_attack(self, mon, stat, value, move, utils):
        for hook in self.hooks_for(mon, utils):
            value = hook.modify_attack(mon, stat, value, move, utils)
        return value

    def modify_defense(self, mon, stat, value, move, utils):
        for hook in self.hooks_for(mon, utils):
            value = hook.modify_defense(mon, stat, value, move, utils)
        return value

    def modify_speed(self, mon, value, utils):
        for hook in self.hooks_for(mon, utils):
            value = hook.modify_speed(mon, value, utils)
        return value

    def modify_accuracy(self, mon, accuracy, move, target, utils):
        for hook in self.hooks_for(mon, utils):
            accuracy = hook.modify_accuracy(mon, accuracy, move, target, utils)
        return accuracy

    def modify_damage(self, mon, damage, move, target, crit, utils):
        for hook in self.hooks_for(mon, utils):
            damage = hook.modify_damage(mon, damage, move, target, crit, utils)
        return damage

    def modify_duration(self, mon, effect, turns, utils):
        if mon is None:
            return turns
        for hook in self.hooks_for(mon, utils):
            extended = hook.modify_duration(mon, effect, turns, utils)
            if extended != turns:
                logging.debug(f"{mon.name}'s {hook.name} extends {effect} to {extended} turns")
            turns = extended
        return turns
