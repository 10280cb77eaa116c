# logic/__init__.py
# Движок баттлов: реестр, допуск, состав, голоса, подсчет, награды

from .errors import (
    BattleError, ValidationError, NotFound, NotEligible, DuplicateCandidacy, DuplicateVote,
    InvalidTransition, InvalidState, NoWinner, StorageError,
)
from .registry import (
    NEXT_PHASE, create_battle, advance_phase, get_battle, list_battles, list_overdue_battles,
    set_featured, set_active, set_visibility, delete_battle,
)
from .eligibility import is_eligible_candidate, is_eligible_judge
from .roster import (
    submit_candidacy, select_candidate, remove_candidate, list_candidates,
    remove_participant, list_participants,
    apply_as_judge, validate_judge, update_judge_logistics, remove_judge, list_judges,
)
from .votes import cast_vote, cast_comment, cast_ballot, list_votes, list_votes_by_judge, list_comments
from .scoring import compute_scores, declare_result, declare_manual_result, get_result
from .rewards import distribute_rewards, get_credit_history
