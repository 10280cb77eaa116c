# logic/eligibility.py
# Проверки допуска. Только чтение, без побочных эффектов.

from extensions import db
from models import Profile, Jam, Candidate, Participant, Judge
from .errors import NotFound
from .registry import get_battle


def _get_profile(user_id):
    profile = db.session.get(Profile, user_id)
    if profile is None:
        raise NotFound('profile', user_id)
    return profile


def count_approved_jams(user_id):
    """Сколько у пользователя одобренных и активных джемов."""
    return Jam.query.filter_by(creator_id=user_id, status='approved', is_active=True).count()


def is_eligible_candidate(user_id, battle_id):
    battle = get_battle(battle_id)
    _get_profile(user_id)
    return count_approved_jams(user_id) >= battle.min_jams_required


def is_eligible_judge(user_id, battle_id):
    """
    Судьей может стать пользователь, который сам не соревнуется в этом баттле,
    пока в жюри есть свободные места.
    """
    battle = get_battle(battle_id)
    _get_profile(user_id)

    competes = (
        Candidate.query.filter_by(battle_id=battle_id, user_id=user_id).count() > 0
        or Participant.query.filter_by(battle_id=battle_id, user_id=user_id).count() > 0
    )
    if competes:
        return False
    judges_count = Judge.query.filter_by(battle_id=battle_id).count()
    return judges_count < battle.max_judges
