# logic/votes.py
# Журнал голосов: оценки по критериям и комментарии судей

import logging

from flask import current_app
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import BattleStatus, Judge, Participant, Criterion, CriteriaScore, VoteComment
from .errors import ValidationError, NotFound, NotEligible, InvalidState, DuplicateVote
from .registry import get_battle
from .storage import storage_errors

logger = logging.getLogger(__name__)


def score_scale():
    return (
        current_app.config.get('BATTLE_SCORE_MIN', 1),
        current_app.config.get('BATTLE_SCORE_MAX', 5),
    )


def _check_voting_context(judge_id, battle_id, participant_id):
    """Общие проверки: судья подтвержден, баттл в фазе vote, участник из этого баттла."""
    judge = db.session.get(Judge, judge_id)
    if judge is None:
        raise NotFound('judge', judge_id)
    battle = get_battle(battle_id)
    if judge.battle_id != battle.id:
        raise NotEligible('Судья не состоит в жюри этого баттла', judge_id=judge_id, battle_id=battle_id)
    if battle.phase != BattleStatus.VOTE:
        raise InvalidState(
            f'Голосование закрыто (фаза {battle.status})',
            battle_id=battle_id, status=battle.status,
        )
    if not judge.is_validated:
        raise NotEligible('Судья еще не подтвержден организатором', judge_id=judge_id, battle_id=battle_id)

    participant = db.session.get(Participant, participant_id)
    if participant is None or participant.battle_id != battle.id:
        raise NotFound('participant', participant_id)
    return judge, battle, participant


def _check_score(criteria_id, score):
    criterion = db.session.get(Criterion, criteria_id)
    if criterion is None or not criterion.is_active:
        raise NotFound('criterion', criteria_id)

    low, high = score_scale()
    if isinstance(score, bool) or not isinstance(score, int) or not low <= score <= high:
        raise ValidationError(
            f'Оценка должна быть целым числом от {low} до {high}',
            field='score', value=score, criterion_id=criteria_id,
        )
    return criterion


def _stage(model, keys, values):
    """Существующая строка обновляется, иначе добавляется новая. Без commit."""
    existing = model.query.filter_by(**keys).first()
    if existing is not None:
        for field, value in values.items():
            setattr(existing, field, value)
        return existing
    record = model(**keys, **values)
    db.session.add(record)
    return record


def _upsert(model, keys, values, action):
    """
    Одна строка на ключ. Существующая запись перезаписывается;
    если параллельная вставка обогнала нас, повторяем как UPDATE.
    """
    with storage_errors(action):
        try:
            record = _stage(model, keys, values)
            db.session.commit()
            return record
        except IntegrityError:
            db.session.rollback()

        updated = model.query.filter_by(**keys).update(values, synchronize_session=False)
        if updated != 1:
            db.session.rollback()
            raise DuplicateVote(f'Не удалось записать голос ({action})', **keys)
        db.session.commit()
        return model.query.filter_by(**keys).one()


def cast_vote(judge_id, battle_id, participant_id, criteria_id, score):
    _check_voting_context(judge_id, battle_id, participant_id)
    _check_score(criteria_id, score)

    vote = _upsert(
        CriteriaScore,
        {'judge_id': judge_id, 'battle_id': battle_id, 'participant_id': participant_id, 'criterion_id': criteria_id},
        {'score': score},
        'cast_vote',
    )
    logger.debug(f"[vote] judge #{judge_id} -> participant #{participant_id} criterion #{criteria_id} = {score}")
    return vote


def cast_comment(judge_id, battle_id, participant_id, comment, is_draft=False):
    _check_voting_context(judge_id, battle_id, participant_id)
    if not comment or not comment.strip():
        raise ValidationError('Комментарий не может быть пустым', field='comment')

    return _upsert(
        VoteComment,
        {'judge_id': judge_id, 'battle_id': battle_id, 'participant_id': participant_id},
        {'comment': comment.strip(), 'is_draft': bool(is_draft)},
        'cast_comment',
    )


def cast_ballot(judge_id, battle_id, participant_id, scores, comment=None, is_draft=False):
    """
    Полная карточка судьи для одного участника: оценки по всем критериям и комментарий.
    Сначала проверяется все, потом пишется одной транзакцией: карточка
    сохраняется целиком или не сохраняется вовсе.
    """
    _check_voting_context(judge_id, battle_id, participant_id)
    if not scores:
        raise ValidationError('Нужна хотя бы одна оценка', field='scores')
    for criteria_id, score in scores.items():
        _check_score(criteria_id, score)
    if comment is not None and not comment.strip():
        raise ValidationError('Комментарий не может быть пустым', field='comment')

    keys = {'judge_id': judge_id, 'battle_id': battle_id, 'participant_id': participant_id}
    # Вторая попытка нужна, если параллельная вставка заняла одну из строк:
    # тогда она уже существует и будет обновлена
    for _ in range(2):
        with storage_errors('cast_ballot'):
            try:
                votes = [_stage(CriteriaScore, dict(keys, criterion_id=criteria_id), {'score': score})
                         for criteria_id, score in scores.items()]
                saved_comment = None
                if comment is not None:
                    saved_comment = _stage(VoteComment, keys, {'comment': comment.strip(), 'is_draft': bool(is_draft)})
                db.session.commit()
                break
            except IntegrityError:
                db.session.rollback()
    else:
        raise DuplicateVote('Не удалось записать карточку судьи', **keys)

    logger.info(f"[vote] ballot judge #{judge_id} participant #{participant_id}: {len(votes)} scores")
    return votes, saved_comment


def list_votes(battle_id):
    get_battle(battle_id)
    return CriteriaScore.query.filter_by(battle_id=battle_id).order_by(
        CriteriaScore.participant_id, CriteriaScore.judge_id, CriteriaScore.criterion_id
    ).all()


def list_votes_by_judge(battle_id, judge_id):
    get_battle(battle_id)
    return CriteriaScore.query.filter_by(battle_id=battle_id, judge_id=judge_id).order_by(
        CriteriaScore.participant_id, CriteriaScore.criterion_id
    ).all()


def list_comments(battle_id, include_drafts=True):
    get_battle(battle_id)
    query = VoteComment.query.filter_by(battle_id=battle_id)
    if not include_drafts:
        query = query.filter_by(is_draft=False)
    return query.order_by(VoteComment.participant_id, VoteComment.judge_id).all()
