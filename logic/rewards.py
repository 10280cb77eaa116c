# logic/rewards.py
# Выплата награды победителю. Ровно один раз, даже при повторах и параллельных вызовах.

import logging

from sqlalchemy.exc import IntegrityError

from extensions import db
from models import (
    BattleStatus, Battle, BattleResult, BattleStars, CreditTransaction, Participant, Profile,
)
from .errors import NoWinner, NotFound, StorageError
from .registry import get_battle
from .scoring import get_result
from .storage import storage_errors

logger = logging.getLogger(__name__)


def reward_description(theme):
    return f'Награда за баттл: {theme or "Баттл джемов"}'


def distribute_rewards(battle_id):
    """
    Начисляет reward_credits победителю и пишет транзакцию.

    Возвращает словарь с ключами amount, winner_user_id, already_distributed.
    Повторный вызов после успешной выплаты ничего не меняет и возвращает
    already_distributed=True.
    """
    battle = get_battle(battle_id)
    result = get_result(battle_id)

    if result.is_tie:
        raise NoWinner(f'Баттл "{battle.theme}" закончился ничьей, награды нет', battle_id=battle_id)

    winner = db.session.get(Participant, result.winner_id)
    if winner is None:
        raise NotFound('participant', result.winner_id)
    outcome = {
        'battle_id': battle_id,
        'winner_user_id': winner.user_id,
        'amount': battle.reward_credits,
        'already_distributed': False,
    }

    if result.reward_distributed:
        logger.info(f"[reward] battle #{battle_id} already paid, nothing to do")
        return dict(outcome, already_distributed=True)

    amount = battle.reward_credits
    with storage_errors('distribute_rewards'):
        # Мьютекс: только один вызов переведет флаг false -> true
        claimed = BattleResult.query.filter_by(id=result.id, reward_distributed=False).update(
            {'reward_distributed': True, 'distributed_at': db.func.current_timestamp()},
            synchronize_session=False,
        )
        if claimed != 1:
            db.session.rollback()
            logger.info(f"[reward] battle #{battle_id} claimed by a concurrent call")
            return dict(outcome, already_distributed=True)

        if amount > 0:
            Profile.query.filter_by(id=winner.user_id).update(
                {Profile.credits: Profile.credits + amount}, synchronize_session=False
            )
            db.session.add(CreditTransaction(
                user_id=winner.user_id,
                amount=amount,
                description=reward_description(battle.theme),
                reward_battle_id=battle_id,
            ))

        _update_stars(result)

        Battle.query.filter_by(id=battle_id, status=BattleStatus.VOTE.value).update(
            {'status': BattleStatus.TERMINE.value}, synchronize_session=False
        )
        try:
            db.session.commit()
        except IntegrityError as e:
            # Уникальные ключи (reward_battle_id, battle_stars.user_id) задеты параллельной записью
            db.session.rollback()
            logger.error(f"[reward] battle #{battle_id} payout conflict: {e}")
            raise StorageError('Конфликт при записи выплаты, повторите запрос', battle_id=battle_id) from e

    logger.info(f"[reward] battle #{battle_id}: +{amount} credits to user {winner.user_id}")
    return outcome


def _update_stars(result):
    """Статистика баттлов: участие обоим, победа победителю."""
    rows = [
        (result.participant_a_id, result.participant_a_score),
        (result.participant_b_id, result.participant_b_score),
    ]
    for participant_id, score in rows:
        participant = db.session.get(Participant, participant_id)
        if participant is None:
            continue
        won = 1 if participant_id == result.winner_id else 0
        # Инкремент в SQL: строку может одновременно менять выплата по другому баттлу
        updated = BattleStars.query.filter_by(user_id=participant.user_id).update({
            BattleStars.participations: BattleStars.participations + 1,
            BattleStars.victories: BattleStars.victories + won,
            BattleStars.total_score: BattleStars.total_score + (score or 0),
            BattleStars.last_battle_date: db.func.current_timestamp(),
        }, synchronize_session=False)
        if not updated:
            db.session.add(BattleStars(
                user_id=participant.user_id,
                participations=1,
                victories=won,
                total_score=score or 0,
                last_battle_date=db.func.current_timestamp(),
            ))


def get_credit_history(user_id):
    if db.session.get(Profile, user_id) is None:
        raise NotFound('profile', user_id)
    return CreditTransaction.query.filter_by(user_id=user_id).order_by(
        CreditTransaction.created_at.desc(), CreditTransaction.id.desc()
    ).all()
