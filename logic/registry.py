# logic/registry.py
# Реестр баттлов: создание, жизненный цикл, флаги видимости

import logging
from datetime import datetime

from extensions import db
from models import Battle, BattleStatus, Participant
from .errors import ValidationError, NotFound, InvalidTransition, InvalidState
from .storage import commit, storage_errors

logger = logging.getLogger(__name__)

# Единственный допустимый переход из каждой фазы. termine поглощающая.
NEXT_PHASE = {
    BattleStatus.INSCRIPTION: BattleStatus.SELECTION,
    BattleStatus.SELECTION: BattleStatus.PRODUCTION,
    BattleStatus.PRODUCTION: BattleStatus.ENVOI,
    BattleStatus.ENVOI: BattleStatus.VOTE,
    BattleStatus.VOTE: BattleStatus.TERMINE,
}

# Фазы, в которых еще можно менять состав (до начала голосования)
ROSTER_OPEN_PHASES = (
    BattleStatus.INSCRIPTION,
    BattleStatus.SELECTION,
    BattleStatus.PRODUCTION,
    BattleStatus.ENVOI,
)

# Какой срок "горит" в каждой фазе
_PHASE_DEADLINE = {
    BattleStatus.INSCRIPTION: 'registration_end',
    BattleStatus.SELECTION: 'registration_end',
    BattleStatus.PRODUCTION: 'production_end',
    BattleStatus.ENVOI: 'production_end',
    BattleStatus.VOTE: 'voting_end',
}


def parse_phase(value):
    if isinstance(value, BattleStatus):
        return value
    try:
        return BattleStatus(value)
    except ValueError:
        raise ValidationError(f'Неизвестная фаза "{value}"', phase=value)


def get_battle(battle_id):
    with storage_errors('get_battle'):
        battle = db.session.get(Battle, battle_id)
    if battle is None:
        raise NotFound('battle', battle_id)
    return battle


def ensure_not_terminated(battle):
    if battle.phase == BattleStatus.TERMINE:
        raise InvalidState(
            f'Баттл "{battle.theme}" завершен, изменения запрещены',
            battle_id=battle.id, status=battle.status,
        )


def _validate_int(name, value, minimum, maximum=None):
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f'Поле {name} должно быть целым числом', field=name, value=value)
    if value < minimum or (maximum is not None and value > maximum):
        raise ValidationError(f'Поле {name} вне допустимого диапазона', field=name, value=value)


def create_battle(theme, constraints, registration_end, production_end, voting_end,
                  reward_credits, min_jams_required, reward_description=None,
                  max_judges=10, max_price_credits=10, judge_discount_percent=25,
                  is_featured=False):
    """
    Создает баттл в фазе inscription.
    Даты должны строго возрастать: регистрация < производство < голосование.
    """
    if not theme or not theme.strip():
        raise ValidationError('Тема баттла обязательна', field='theme')
    if constraints is None:
        constraints = {}
    if not isinstance(constraints, dict):
        raise ValidationError('Ограничения должны быть словарем "правило -> значение"', field='constraints')

    dates = [('registration_end', registration_end), ('production_end', production_end), ('voting_end', voting_end)]
    for name, value in dates:
        if not isinstance(value, datetime):
            raise ValidationError(f'Поле {name} должно быть датой', field=name)
    for (prev_name, prev), (name, value) in zip(dates, dates[1:]):
        if not value > prev:
            raise ValidationError(
                f'Дата {name} должна быть позже {prev_name}',
                field=name, previous=prev_name,
            )

    _validate_int('reward_credits', reward_credits, 0)
    _validate_int('min_jams_required', min_jams_required, 0)
    _validate_int('max_judges', max_judges, 1)
    _validate_int('max_price_credits', max_price_credits, 1)
    _validate_int('judge_discount_percent', judge_discount_percent, 0, 100)

    battle = Battle(
        theme=theme.strip(),
        constraints=dict(constraints),
        registration_end=registration_end,
        production_end=production_end,
        voting_end=voting_end,
        status=BattleStatus.INSCRIPTION.value,
        reward_credits=reward_credits,
        reward_description=reward_description,
        min_jams_required=min_jams_required,
        max_judges=max_judges,
        max_price_credits=max_price_credits,
        judge_discount_percent=judge_discount_percent,
        is_featured=bool(is_featured),
        is_active=True,
    )
    with storage_errors('create_battle'):
        db.session.add(battle)
        db.session.commit()
    logger.info(f"[battle] created #{battle.id} '{battle.theme}' reward={reward_credits}")
    return battle


def advance_phase(battle_id, target_phase):
    target = parse_phase(target_phase)
    battle = get_battle(battle_id)
    current = battle.phase

    if NEXT_PHASE.get(current) != target:
        logger.warning(f"[battle] #{battle_id} refused {current.value} -> {target.value}")
        raise InvalidTransition(
            f'Переход {current.value} -> {target.value} недопустим',
            battle_id=battle_id, current=current.value, target=target.value,
        )

    # Условное обновление: если кто-то уже сдвинул фазу, строк не будет
    with storage_errors('advance_phase'):
        updated = Battle.query.filter_by(id=battle_id, status=current.value).update(
            {'status': target.value}, synchronize_session=False
        )
        if updated != 1:
            db.session.rollback()
            raise InvalidTransition(
                f'Фаза баттла #{battle_id} уже изменилась',
                battle_id=battle_id, current=current.value, target=target.value,
            )
        db.session.commit()

    db.session.refresh(battle)
    logger.info(f"[battle] #{battle_id} {current.value} -> {target.value}")
    return battle


def set_visibility(battle_id, featured=None, active=None):
    battle = get_battle(battle_id)
    if featured is not None:
        battle.is_featured = bool(featured)
    if active is not None:
        battle.is_active = bool(active)
    commit('set_visibility')
    return battle


def set_featured(battle_id, value):
    return set_visibility(battle_id, featured=value)


def set_active(battle_id, value):
    return set_visibility(battle_id, active=value)


def delete_battle(battle_id):
    """
    Баттл с участниками физически не удаляется, только скрывается.
    Возвращает True, если запись удалена, False, если выполнено мягкое удаление.
    """
    battle = get_battle(battle_id)
    has_participants = Participant.query.filter_by(battle_id=battle_id).count() > 0
    if has_participants:
        battle.is_active = False
        commit('delete_battle')
        logger.info(f"[battle] #{battle_id} soft-deleted")
        return False

    db.session.delete(battle)
    commit('delete_battle')
    logger.info(f"[battle] #{battle_id} deleted")
    return True


def list_battles(status=None, include_inactive=False):
    query = Battle.query
    if status is not None:
        query = query.filter_by(status=parse_phase(status).value)
    if not include_inactive:
        query = query.filter_by(is_active=True)
    return query.order_by(Battle.is_featured.desc(), Battle.created_at.desc(), Battle.id.desc()).all()


def list_overdue_battles(now=None):
    """
    Баттлы, у которых прошел срок текущей фазы. Фазы сами не сдвигаются:
    список нужен организатору, чтобы не забыть перевести баттл дальше.
    """
    now = now or datetime.now()
    overdue = []
    for battle in Battle.query.filter(Battle.status != BattleStatus.TERMINE.value, Battle.is_active.is_(True)).all():
        deadline = getattr(battle, _PHASE_DEADLINE[battle.phase])
        if deadline < now:
            overdue.append(battle)
    return overdue
