from turnsim.battle_engine import BattleNotInitializedError, Engine
from turnsim.battle_engine.catalog import Ability, Catalog, Item, default_catalog, merge_abilities, merge_items
from turnsim.battle_engine.state import (
    AnimationEvent,
    BattleState,
    Move,
    MoveAction,
    Pokemon,
    Side,
    SwitchAction,
    TurnResult,
)

__version__ = "0.1.0"
