# routes/main.py
# Маршруты для участников и судей

from functools import wraps

from flask import Blueprint, jsonify, request, session

from extensions import db
from models import Judge, Profile
import logic
from logic.errors import NotEligible, ValidationError
from .utils import json_body, require, parse_int, ok

main_bp = Blueprint('main', __name__)


def login_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user_id' not in session:
            return jsonify({'ok': False, 'error': 'unauthorized',
                            'message': 'Необходимо войти в систему.', 'details': {}}), 401
        return f(*args, **kwargs)
    return decorated_function


def _current_judge(battle_id):
    """Судья текущего пользователя в этом баттле."""
    judge = Judge.query.filter_by(battle_id=battle_id, user_id=session['user_id']).first()
    if judge is None:
        raise NotEligible('Вы не состоите в жюри этого баттла', battle_id=battle_id, user_id=session['user_id'])
    return judge


@main_bp.route('/battles')
def battles_list():
    status = request.args.get('status')
    battles = logic.list_battles(status=status)
    return ok([b.to_dict() for b in battles])


@main_bp.route('/battles/<int:battle_id>')
def battle_details(battle_id):
    battle = logic.get_battle(battle_id)
    payload = battle.to_dict()
    payload['candidates'] = [c.to_dict() for c in logic.list_candidates(battle_id)]
    payload['participants'] = [p.to_dict() for p in logic.list_participants(battle_id)]
    payload['judges'] = [j.to_dict() for j in logic.list_judges(battle_id)]
    payload['result'] = battle.result.to_dict() if battle.result else None
    return ok(payload)


@main_bp.route('/battles/<int:battle_id>/scores')
@login_required
def battle_scores(battle_id):
    return ok(logic.compute_scores(battle_id))


@main_bp.route('/battles/<int:battle_id>/candidacy', methods=['POST'])
@login_required
def submit_candidacy(battle_id):
    data = json_body()
    reference_jam_id = data.get('reference_jam_id')
    candidate = logic.submit_candidacy(
        battle_id,
        session['user_id'],
        data.get('motivation', ''),
        parse_int(reference_jam_id, 'reference_jam_id') if reference_jam_id is not None else None,
    )
    return ok(candidate.to_dict(), status=201)


@main_bp.route('/battles/<int:battle_id>/judges', methods=['POST'])
@login_required
def apply_as_judge(battle_id):
    judge = logic.apply_as_judge(battle_id, session['user_id'])
    return ok(judge.to_dict(), status=201)


@main_bp.route('/battles/<int:battle_id>/votes', methods=['POST'])
@login_required
def cast_vote(battle_id):
    data = json_body()
    judge = _current_judge(battle_id)
    vote = logic.cast_vote(
        judge.id,
        battle_id,
        parse_int(require(data, 'participant_id'), 'participant_id'),
        parse_int(require(data, 'criteria_id'), 'criteria_id'),
        require(data, 'score'),
    )
    return ok(vote.to_dict())


@main_bp.route('/battles/<int:battle_id>/comments', methods=['POST'])
@login_required
def cast_comment(battle_id):
    data = json_body()
    judge = _current_judge(battle_id)
    comment = logic.cast_comment(
        judge.id,
        battle_id,
        parse_int(require(data, 'participant_id'), 'participant_id'),
        data.get('comment', ''),
        is_draft=bool(data.get('is_draft', False)),
    )
    return ok(comment.to_dict())


@main_bp.route('/battles/<int:battle_id>/ballot', methods=['POST'])
@login_required
def cast_ballot(battle_id):
    """Карточка судьи: {"participant_id": 1, "scores": {"<criteria_id>": 4}, "comment": "..."}"""
    data = json_body()
    judge = _current_judge(battle_id)
    raw_scores = require(data, 'scores')
    if not isinstance(raw_scores, dict):
        raise ValidationError('Поле scores должно быть объектом {criteria_id: оценка}', field='scores')
    scores = {parse_int(c_id, 'criteria_id'): value for c_id, value in raw_scores.items()}
    votes, comment = logic.cast_ballot(
        judge.id,
        battle_id,
        parse_int(require(data, 'participant_id'), 'participant_id'),
        scores,
        comment=data.get('comment'),
        is_draft=bool(data.get('is_draft', False)),
    )
    return ok({
        'votes': [v.to_dict() for v in votes],
        'comment': comment.to_dict() if comment else None,
    })


@main_bp.route('/credits')
@login_required
def credit_history():
    transactions = logic.get_credit_history(session['user_id'])
    user = db.session.get(Profile, session['user_id'])
    return ok({
        'balance': user.credits,
        'transactions': [t.to_dict() for t in transactions],
    })
