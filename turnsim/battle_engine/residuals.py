from turnsim.mechanics import Mechanics


def apply_status_residuals(pokemon, status, state, log):
    """
    Default end-of-turn status damage, registered as the first status-tick
    provider. Burn takes 1/16, poison 1/8, toxic n/16 with n counting up
    from 1 while the holder stays in.
    """
    if pokemon.current_hp <= 0:
        return
    if status == "burn":
        damage = max(1, Mechanics.fraction(pokemon.max_hp, 1, 16))
        message = f"{pokemon.name} was hurt by its burn!"
    elif status == "poison":
        damage = max(1, Mechanics.fraction(pokemon.max_hp, 1, 8))
        message = f"{pokemon.name} was hurt by poison!"
    elif status == "toxic":
        pokemon.volatile.toxic_counter = min(15, pokemon.volatile.toxic_counter + 1)
        damage = max(1, Mechanics.fraction(pokemon.max_hp, pokemon.volatile.toxic_counter, 16))
        message = f"{pokemon.name} was hurt by poison!"
    else:
        return

    lost = min(damage, pokemon.current_hp)
    pokemon.current_hp -= lost
    log.append(f"{message} (-{lost})")
    log.emit(f"status:{status}:damage", {"target": pokemon.id, "damage": lost})
