# logic/scoring.py
# Подсчет баллов и объявление результата баттла

import logging
import math
from collections import defaultdict
from numbers import Real

from sqlalchemy.exc import IntegrityError

from extensions import db
from models import BattleStatus, Participant, Judge, CriteriaScore, BattleResult
from .errors import ValidationError, NotFound, InvalidState
from .registry import get_battle
from .storage import storage_errors

logger = logging.getLogger(__name__)


def _tally(battle_id):
    """
    Точные средние судей для каждого участника, без округления.
    Среднее судьи считается только по выставленным критериям,
    пропущенный критерий не превращается в ноль.
    Учитываются только подтвержденные судьи.
    """
    get_battle(battle_id)
    participants = Participant.query.filter_by(battle_id=battle_id).order_by(Participant.id).all()
    judges = Judge.query.filter_by(battle_id=battle_id, is_validated=True).order_by(Judge.id).all()
    judge_ids = {j.id for j in judges}

    scores_map = defaultdict(list)
    for vote in CriteriaScore.query.filter_by(battle_id=battle_id).all():
        if vote.judge_id in judge_ids:
            scores_map[(vote.participant_id, vote.judge_id)].append(vote.score)

    tally = []
    for participant in participants:
        judge_means = {}
        for judge in judges:
            values = scores_map.get((participant.id, judge.id))
            if values:
                judge_means[judge.id] = sum(values) / len(values)
        tally.append((participant, judge_means, math.fsum(judge_means.values())))
    return tally


def compute_scores(battle_id):
    """
    Итог участника = сумма средних по каждому судье.
    Округление до сотых только для показа, порядок по точному итогу.
    """
    tally = sorted(_tally(battle_id), key=lambda row: row[2], reverse=True)
    return [
        {
            'participant_id': participant.id,
            'user_id': participant.user_id,
            'judge_means': {j_id: round(mean, 2) for j_id, mean in judge_means.items()},
            'judges_count': len(judge_means),
            'total': round(total, 2),
        }
        for participant, judge_means, total in tally
    ]


def pick_winner(score_a, score_b):
    """Возвращает 'a', 'b' или None при равенстве."""
    if score_a > score_b:
        return 'a'
    if score_b > score_a:
        return 'b'
    return None


def declare_result(battle_id):
    """
    Результат по голосам жюри. Равные итоги дают ничью без победителя.
    Сравниваются и сохраняются точные итоги, без округления.
    """
    battle = get_battle(battle_id)
    _require_vote_phase(battle)

    tally = _tally(battle_id)
    if len(tally) != 2:
        raise InvalidState(
            f'Для подведения итогов нужно ровно 2 участника, сейчас {len(tally)}',
            battle_id=battle_id, participants=len(tally),
        )

    (a, _, a_total), (b, _, b_total) = tally
    side = pick_winner(a_total, b_total)
    winner_id = {'a': a.id, 'b': b.id}.get(side)

    result = _record_result(battle, a.id, a_total, b.id, b_total, winner_id, is_manual=False)
    if result.is_tie:
        logger.info(f"[scoring] battle #{battle_id} tie at {a_total:.2f}")
    else:
        logger.info(f"[scoring] battle #{battle_id} winner participant #{winner_id} "
                    f"({a_total:.2f} vs {b_total:.2f})")
    return result


def declare_manual_result(battle_id, participant_a, score_a, participant_b, score_b, winner=None):
    """
    Ручной ввод итогов организатором, без подсчета голосов.
    Равные баллы означают ничью: победителя указывать нельзя.
    """
    battle = get_battle(battle_id)
    _require_vote_phase(battle)

    for field, value in (('participant_a_score', score_a), ('participant_b_score', score_b)):
        if isinstance(value, bool) or not isinstance(value, Real) or value < 0:
            raise ValidationError(f'Поле {field} должно быть неотрицательным числом', field=field, value=value)
    if participant_a == participant_b:
        raise ValidationError('Участники A и B должны различаться', participant_a=participant_a)
    if score_a == score_b:
        if winner is not None:
            raise ValidationError(
                'При равных баллах победителя нет',
                winner=winner, participant_a_score=score_a, participant_b_score=score_b,
            )
    elif winner not in (participant_a, participant_b):
        raise ValidationError(
            'Победитель должен быть одним из двух участников',
            winner=winner, participant_a=participant_a, participant_b=participant_b,
        )

    for participant_id in (participant_a, participant_b):
        participant = db.session.get(Participant, participant_id)
        if participant is None or participant.battle_id != battle.id:
            raise NotFound('participant', participant_id)

    result = _record_result(battle, participant_a, float(score_a), participant_b, float(score_b),
                            winner, is_manual=True)
    logger.info(f"[scoring] battle #{battle_id} manual result, winner participant #{winner}")
    return result


def get_result(battle_id):
    get_battle(battle_id)
    result = BattleResult.query.filter_by(battle_id=battle_id).first()
    if result is None:
        raise NotFound('battle_result', battle_id, f'Результат баттла #{battle_id} еще не объявлен')
    return result


def _require_vote_phase(battle):
    if battle.phase != BattleStatus.VOTE:
        raise InvalidState(
            f'Итоги подводятся только в фазе vote (сейчас {battle.status})',
            battle_id=battle.id, status=battle.status,
        )


def _record_result(battle, participant_a, score_a, participant_b, score_b, winner_id, is_manual):
    """
    Один результат на баттл. До выплаты награды его можно перезаписать,
    после выплаты нельзя.
    """
    values = {
        'participant_a_id': participant_a,
        'participant_a_score': score_a,
        'participant_b_id': participant_b,
        'participant_b_score': score_b,
        'winner_id': winner_id,
        'is_manual': is_manual,
    }
    with storage_errors('declare_result'):
        updated = BattleResult.query.filter_by(battle_id=battle.id, reward_distributed=False).update(
            values, synchronize_session=False
        )
        if updated == 0:
            if BattleResult.query.filter_by(battle_id=battle.id).count():
                db.session.rollback()
                raise InvalidState('Награда уже выплачена, результат изменить нельзя', battle_id=battle.id)
            try:
                db.session.add(BattleResult(battle_id=battle.id, reward_distributed=False, **values))
                db.session.commit()
            except IntegrityError:
                db.session.rollback()
                raise InvalidState('Результат объявлен параллельно, повторите запрос', battle_id=battle.id)
        else:
            db.session.commit()

    return BattleResult.query.filter_by(battle_id=battle.id).one()
