# logic/roster.py
# Состав баттла: кандидаты, участники, судьи

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from extensions import db
from models import Battle, BattleStatus, Candidate, Participant, Judge, Jam
from .errors import ValidationError, NotFound, NotEligible, DuplicateCandidacy, InvalidState
from .eligibility import is_eligible_candidate, is_eligible_judge, count_approved_jams
from .registry import get_battle, ensure_not_terminated, ROSTER_OPEN_PHASES
from .storage import commit, storage_errors

logger = logging.getLogger(__name__)

MAX_PARTICIPANTS = 2
JUDGE_LOGISTICS_FIELDS = ('has_ordered', 'has_received')
_APPLICATION_PHASES = (BattleStatus.INSCRIPTION, BattleStatus.SELECTION)


def _get(model, entity, entity_id):
    record = db.session.get(model, entity_id)
    if record is None:
        raise NotFound(entity, entity_id)
    return record


def _require_phase(battle, phases, action):
    if battle.phase not in phases:
        raise InvalidState(
            f'Действие "{action}" недоступно в фазе {battle.status}',
            battle_id=battle.id, status=battle.status, action=action,
        )


# --- Кандидаты ---

def submit_candidacy(battle_id, user_id, motivation, reference_jam_id=None):
    battle = get_battle(battle_id)
    _require_phase(battle, (BattleStatus.INSCRIPTION,), 'submit_candidacy')

    if not motivation or not motivation.strip():
        raise ValidationError('Мотивация обязательна', field='motivation')

    if not is_eligible_candidate(user_id, battle_id):
        logger.warning(f"[roster] user={user_id} not eligible for battle #{battle_id}")
        raise NotEligible(
            f'Нужно минимум {battle.min_jams_required} одобренных джемов',
            battle_id=battle_id, user_id=user_id,
            required=battle.min_jams_required, approved=count_approved_jams(user_id),
        )

    if Candidate.query.filter_by(battle_id=battle_id, user_id=user_id).first():
        raise DuplicateCandidacy('Заявка уже подана', battle_id=battle_id, user_id=user_id)

    if reference_jam_id is not None:
        jam = _get(Jam, 'jam', reference_jam_id)
        if jam.creator_id != user_id:
            raise ValidationError(
                'Референсный джем должен принадлежать кандидату',
                field='reference_jam_id', jam_id=reference_jam_id,
            )

    candidate = Candidate(
        battle_id=battle_id,
        user_id=user_id,
        motivation=motivation.strip(),
        reference_jam_id=reference_jam_id,
        is_selected=False,
    )
    with storage_errors('submit_candidacy'):
        try:
            db.session.add(candidate)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise DuplicateCandidacy('Заявка уже подана', battle_id=battle_id, user_id=user_id)

    logger.info(f"[roster] candidacy #{candidate.id} user={user_id} battle=#{battle_id}")
    return candidate


def select_candidate(candidate_id):
    """
    Отмечает кандидата выбранным и создает участника.
    Повторный выбор того же кандидата ничего не меняет.
    """
    candidate = _get(Candidate, 'candidate', candidate_id)
    battle = get_battle(candidate.battle_id)

    participant = Participant.query.filter_by(battle_id=battle.id, user_id=candidate.user_id).first()
    if candidate.is_selected and participant is not None:
        return participant

    _require_phase(battle, _APPLICATION_PHASES, 'select_candidate')

    if participant is None:
        participants_count = Participant.query.filter_by(battle_id=battle.id).count()
        if participants_count >= MAX_PARTICIPANTS:
            raise InvalidState(
                f'В баттле уже {MAX_PARTICIPANTS} участника',
                battle_id=battle.id, candidate_id=candidate_id,
            )

    with storage_errors('select_candidate'):
        Candidate.query.filter_by(id=candidate_id, is_selected=False).update(
            {'is_selected': True}, synchronize_session=False
        )
        if participant is None:
            try:
                with db.session.begin_nested():
                    participant = Participant(
                        battle_id=battle.id,
                        user_id=candidate.user_id,
                        jam_id=candidate.reference_jam_id,
                    )
                    db.session.add(participant)
            except IntegrityError:
                # Параллельный выбор уже создал участника
                participant = Participant.query.filter_by(battle_id=battle.id, user_id=candidate.user_id).one()
        db.session.commit()

    logger.info(f"[roster] candidate #{candidate_id} selected -> participant #{participant.id}")
    return participant


def remove_candidate(candidate_id):
    return _remove(Candidate, 'candidate', candidate_id)


def list_candidates(battle_id):
    get_battle(battle_id)
    return Candidate.query.filter_by(battle_id=battle_id).order_by(Candidate.id).all()


# --- Участники ---

def remove_participant(participant_id):
    participant = _get(Participant, 'participant', participant_id)
    battle_id, user_id = participant.battle_id, participant.user_id
    removed = _remove(Participant, 'participant', participant_id, commit_now=False)
    # Кандидат снова становится невыбранным, чтобы его можно было выбрать повторно
    with storage_errors('remove_participant'):
        Candidate.query.filter_by(battle_id=battle_id, user_id=user_id).update(
            {'is_selected': False}, synchronize_session=False
        )
        db.session.commit()
    return removed


def list_participants(battle_id):
    get_battle(battle_id)
    return Participant.query.filter_by(battle_id=battle_id).order_by(Participant.id).all()


# --- Судьи ---

def apply_as_judge(battle_id, user_id):
    battle = get_battle(battle_id)
    _require_phase(battle, _APPLICATION_PHASES, 'apply_as_judge')

    if Judge.query.filter_by(battle_id=battle_id, user_id=user_id).first():
        raise DuplicateCandidacy('Пользователь уже в жюри', battle_id=battle_id, user_id=user_id)

    if not is_eligible_judge(user_id, battle_id):
        raise NotEligible(
            'Нельзя стать судьей: жюри заполнено или пользователь участвует в баттле',
            battle_id=battle_id, user_id=user_id, max_judges=battle.max_judges,
        )

    judge = Judge(battle_id=battle_id, user_id=user_id)
    with storage_errors('apply_as_judge'):
        try:
            db.session.add(judge)
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise DuplicateCandidacy('Пользователь уже в жюри', battle_id=battle_id, user_id=user_id)

    logger.info(f"[roster] judge #{judge.id} user={user_id} applied to battle #{battle_id}")
    return judge


def validate_judge(judge_id):
    judge = _get(Judge, 'judge', judge_id)
    ensure_not_terminated(get_battle(judge.battle_id))

    with storage_errors('validate_judge'):
        updated = Judge.query.filter_by(id=judge_id, is_validated=False).update(
            {'is_validated': True}, synchronize_session=False
        )
        db.session.commit()

    db.session.refresh(judge)
    if updated:
        logger.info(f"[roster] judge #{judge_id} validated")
    return judge


def update_judge_logistics(judge_id, field, value):
    if field not in JUDGE_LOGISTICS_FIELDS:
        raise ValidationError(f'Неизвестное поле "{field}"', field=field, allowed=list(JUDGE_LOGISTICS_FIELDS))
    if not isinstance(value, bool):
        raise ValidationError(f'Поле {field} должно быть булевым', field=field, value=value)

    judge = _get(Judge, 'judge', judge_id)
    ensure_not_terminated(get_battle(judge.battle_id))
    setattr(judge, field, value)
    commit('update_judge_logistics')
    return judge


def remove_judge(judge_id):
    return _remove(Judge, 'judge', judge_id)


def list_judges(battle_id, validated_only=False):
    get_battle(battle_id)
    query = Judge.query.filter_by(battle_id=battle_id)
    if validated_only:
        query = query.filter_by(is_validated=True)
    return query.order_by(Judge.id).all()


# --- Удаление ---

def _remove(model, entity, entity_id, commit_now=True):
    """
    Жесткое удаление, только пока не началось голосование.
    Фаза проверяется в том же DELETE, чтобы не гоняться с переводом фазы.
    """
    record = _get(model, entity, entity_id)
    battle_id = record.battle_id

    open_battle = select(Battle.id).where(
        Battle.id == battle_id,
        Battle.status.in_([p.value for p in ROSTER_OPEN_PHASES]),
    )
    with storage_errors(f'remove_{entity}'):
        deleted = model.query.filter(model.id == entity_id, model.battle_id.in_(open_battle)).delete(
            synchronize_session=False
        )
        if deleted != 1:
            db.session.rollback()
            battle = get_battle(battle_id)
            logger.warning(f"[roster] refused to remove {entity} #{entity_id} in phase {battle.status}")
            raise InvalidState(
                f'Удаление ({entity}) невозможно после начала голосования',
                battle_id=battle_id, id=entity_id, status=battle.status,
            )
        db.session.expunge(record)
        if commit_now:
            db.session.commit()

    logger.info(f"[roster] {entity} #{entity_id} removed from battle #{battle_id}")
    return True
