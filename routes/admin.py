# routes/admin.py
# Маршруты организатора: жизненный цикл баттла, состав, итоги, награды

from functools import wraps

from flask import Blueprint, jsonify, request, session

import logic
from logic.errors import ValidationError
from .utils import json_body, require, parse_datetime, parse_int, ok

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


def admin_required(f):
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if 'user_role' not in session or session['user_role'] != 'admin':
            return jsonify({'ok': False, 'error': 'forbidden',
                            'message': 'У вас нет прав для доступа к этой странице.', 'details': {}}), 403
        return f(*args, **kwargs)
    return decorated_function


# --- БЛОК: жизненный цикл баттла ---

@admin_bp.route('/battles', methods=['POST'])
@admin_required
def create_battle():
    data = json_body()
    extras = {
        field: parse_int(data[field], field)
        for field in ('max_judges', 'max_price_credits', 'judge_discount_percent')
        if data.get(field) is not None
    }
    battle = logic.create_battle(
        theme=data.get('theme', ''),
        constraints=data.get('constraints') or {},
        registration_end=parse_datetime(data, 'registration_end'),
        production_end=parse_datetime(data, 'production_end'),
        voting_end=parse_datetime(data, 'voting_end'),
        reward_credits=parse_int(data.get('reward_credits', 0), 'reward_credits'),
        min_jams_required=parse_int(data.get('min_jams_required', 0), 'min_jams_required'),
        reward_description=data.get('reward_description'),
        is_featured=bool(data.get('is_featured', False)),
        **extras,
    )
    return ok(battle.to_dict(), status=201)


@admin_bp.route('/battles/<int:battle_id>/phase', methods=['POST'])
@admin_required
def advance_phase(battle_id):
    data = json_body()
    battle = logic.advance_phase(battle_id, require(data, 'target'))
    return ok(battle.to_dict())


@admin_bp.route('/battles/<int:battle_id>/visibility', methods=['POST'])
@admin_required
def set_visibility(battle_id):
    data = json_body()
    featured = data.get('is_featured')
    active = data.get('is_active')
    if featured is None and active is None:
        raise ValidationError('Нужно передать is_featured и/или is_active')
    battle = logic.set_visibility(battle_id, featured=featured, active=active)
    return ok(battle.to_dict())


@admin_bp.route('/battles/<int:battle_id>/delete', methods=['POST'])
@admin_required
def delete_battle(battle_id):
    hard_deleted = logic.delete_battle(battle_id)
    return ok({'battle_id': battle_id, 'hard_deleted': hard_deleted})


@admin_bp.route('/battles/overdue')
@admin_required
def overdue_battles():
    return ok([b.to_dict() for b in logic.list_overdue_battles()])


# --- БЛОК: кандидаты и участники ---

@admin_bp.route('/battles/<int:battle_id>/candidates')
@admin_required
def battle_candidates(battle_id):
    return ok([c.to_dict() for c in logic.list_candidates(battle_id)])


@admin_bp.route('/candidates/<int:candidate_id>/select', methods=['POST'])
@admin_required
def select_candidate(candidate_id):
    participant = logic.select_candidate(candidate_id)
    return ok(participant.to_dict())


@admin_bp.route('/candidates/<int:candidate_id>/delete', methods=['POST'])
@admin_required
def delete_candidate(candidate_id):
    logic.remove_candidate(candidate_id)
    return ok({'candidate_id': candidate_id})


@admin_bp.route('/participants/<int:participant_id>/delete', methods=['POST'])
@admin_required
def delete_participant(participant_id):
    logic.remove_participant(participant_id)
    return ok({'participant_id': participant_id})


# --- БЛОК: судьи ---

@admin_bp.route('/battles/<int:battle_id>/judges')
@admin_required
def battle_judges(battle_id):
    return ok([j.to_dict() for j in logic.list_judges(battle_id)])


@admin_bp.route('/judges/<int:judge_id>/validate', methods=['POST'])
@admin_required
def validate_judge(judge_id):
    return ok(logic.validate_judge(judge_id).to_dict())


@admin_bp.route('/judges/<int:judge_id>/logistics', methods=['POST'])
@admin_required
def judge_logistics(judge_id):
    data = json_body()
    judge = logic.update_judge_logistics(judge_id, require(data, 'field'), require(data, 'value'))
    return ok(judge.to_dict())


@admin_bp.route('/judges/<int:judge_id>/delete', methods=['POST'])
@admin_required
def delete_judge(judge_id):
    logic.remove_judge(judge_id)
    return ok({'judge_id': judge_id})


# --- БЛОК: голоса, итоги, награды ---

@admin_bp.route('/battles/<int:battle_id>/votes')
@admin_required
def battle_votes(battle_id):
    judge_id = request.args.get('judge_id', type=int)
    if judge_id:
        votes = logic.list_votes_by_judge(battle_id, judge_id)
    else:
        votes = logic.list_votes(battle_id)
    comments = [c for c in logic.list_comments(battle_id) if not judge_id or c.judge_id == judge_id]
    return ok({
        'votes': [v.to_dict() for v in votes],
        'comments': [c.to_dict() for c in comments],
    })


@admin_bp.route('/battles/<int:battle_id>/result', methods=['POST'])
@admin_required
def declare_result(battle_id):
    """
    mode = "aggregated" (по голосам жюри, по умолчанию) или "manual":
    {"mode": "manual", "participant_a": 1, "score_a": 8, "participant_b": 2, "score_b": 6, "winner": 1}
    """
    data = json_body()
    mode = data.get('mode', 'aggregated')
    if mode == 'aggregated':
        result = logic.declare_result(battle_id)
    elif mode == 'manual':
        # При равных баллах winner не передается: это ничья
        winner = data.get('winner')
        result = logic.declare_manual_result(
            battle_id,
            parse_int(require(data, 'participant_a'), 'participant_a'),
            require(data, 'score_a'),
            parse_int(require(data, 'participant_b'), 'participant_b'),
            require(data, 'score_b'),
            parse_int(winner, 'winner') if winner is not None else None,
        )
    else:
        raise ValidationError(f'Неизвестный режим "{mode}"', field='mode')
    return ok(result.to_dict(), scores=logic.compute_scores(battle_id))


@admin_bp.route('/battles/<int:battle_id>/rewards', methods=['POST'])
@admin_required
def distribute_rewards(battle_id):
    outcome = logic.distribute_rewards(battle_id)
    return ok(outcome)
