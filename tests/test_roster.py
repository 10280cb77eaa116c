"""
tests/test_roster.py - кандидаты, участники, судьи.
"""

import pytest

import logic
from extensions import db
from models import BattleStatus, Candidate, Participant
from logic.errors import (
    DuplicateCandidacy, InvalidState, NotEligible, NotFound, ValidationError,
)


# ======================================================================
# Кандидаты
# ======================================================================


class TestSubmitCandidacy:
    def test_creates_unselected_candidate(self, factory):
        battle = factory.battle(min_jams_required=1)
        user = factory.profile()
        jam = factory.jams(user, 1)[0]
        candidate = logic.submit_candidacy(battle.id, user.id, '  Ma confiture de coings  ', jam.id)
        assert candidate.is_selected is False
        assert candidate.motivation == 'Ma confiture de coings'
        assert candidate.reference_jam_id == jam.id

    def test_not_eligible(self, factory):
        battle = factory.battle(min_jams_required=3)
        user = factory.profile()
        factory.jams(user, 2)
        with pytest.raises(NotEligible) as exc:
            logic.submit_candidacy(battle.id, user.id, 'Motivé')
        assert exc.value.details['required'] == 3
        assert exc.value.details['approved'] == 2
        assert Candidate.query.count() == 0

    def test_duplicate(self, factory):
        battle = factory.battle()
        user = factory.profile()
        logic.submit_candidacy(battle.id, user.id, 'Première fois')
        with pytest.raises(DuplicateCandidacy):
            logic.submit_candidacy(battle.id, user.id, 'Deuxième fois')
        assert Candidate.query.count() == 1

    def test_only_during_inscription(self, factory):
        battle = factory.advance_to(factory.battle(), 'selection')
        with pytest.raises(InvalidState):
            logic.submit_candidacy(battle.id, factory.profile().id, 'Trop tard')

    def test_reference_jam_must_be_own(self, factory):
        battle = factory.battle()
        user, other = factory.profile(), factory.profile()
        foreign_jam = factory.jams(other, 1)[0]
        with pytest.raises(ValidationError):
            logic.submit_candidacy(battle.id, user.id, 'Motivé', foreign_jam.id)
        with pytest.raises(NotFound):
            logic.submit_candidacy(battle.id, user.id, 'Motivé', 9999)

    def test_motivation_required(self, factory):
        battle = factory.battle()
        with pytest.raises(ValidationError):
            logic.submit_candidacy(battle.id, factory.profile().id, '')


class TestSelectCandidate:
    def test_select_creates_participant(self, factory):
        battle = factory.battle()
        candidate = logic.submit_candidacy(battle.id, factory.profile().id, 'Motivé')
        participant = logic.select_candidate(candidate.id)
        assert participant.user_id == candidate.user_id
        assert participant.battle_id == battle.id
        assert candidate.is_selected is True

    def test_select_twice_is_idempotent(self, factory):
        battle = factory.battle()
        candidate = logic.submit_candidacy(battle.id, factory.profile().id, 'Motivé')
        factory.advance_to(battle, 'selection')
        first = logic.select_candidate(candidate.id)
        second = logic.select_candidate(candidate.id)
        assert first.id == second.id
        assert Participant.query.filter_by(battle_id=battle.id, user_id=candidate.user_id).count() == 1

    def test_reselect_after_selection_phase_is_still_a_noop(self, factory):
        setup = factory.voting_battle()
        participant = logic.select_candidate(setup.candidates[0].id)
        assert participant.id == setup.participants[0].id

    def test_at_most_two_participants(self, factory):
        battle = factory.battle()
        candidates = [logic.submit_candidacy(battle.id, factory.profile().id, 'Motivé') for _ in range(3)]
        logic.select_candidate(candidates[0].id)
        logic.select_candidate(candidates[1].id)
        with pytest.raises(InvalidState):
            logic.select_candidate(candidates[2].id)
        assert candidates[2].is_selected is False

    def test_not_after_selection_phase(self, factory):
        battle = factory.battle()
        candidate = logic.submit_candidacy(battle.id, factory.profile().id, 'Motivé')
        factory.advance_to(battle, 'production')
        with pytest.raises(InvalidState):
            logic.select_candidate(candidate.id)

    def test_missing_candidate(self, app):
        with pytest.raises(NotFound):
            logic.select_candidate(123)


# ======================================================================
# Судьи
# ======================================================================


class TestJudges:
    def test_apply_and_validate(self, factory):
        battle = factory.battle()
        judge = logic.apply_as_judge(battle.id, factory.profile().id)
        assert judge.is_validated is False
        logic.validate_judge(judge.id)
        assert judge.is_validated is True

    def test_validate_is_idempotent(self, factory):
        battle = factory.battle()
        judge = logic.apply_as_judge(battle.id, factory.profile().id)
        logic.validate_judge(judge.id)
        logic.validate_judge(judge.id)
        assert judge.is_validated is True

    def test_apply_twice(self, factory):
        battle = factory.battle()
        user = factory.profile()
        logic.apply_as_judge(battle.id, user.id)
        with pytest.raises(DuplicateCandidacy):
            logic.apply_as_judge(battle.id, user.id)

    def test_apply_when_panel_full(self, factory):
        battle = factory.battle(max_judges=1)
        logic.apply_as_judge(battle.id, factory.profile().id)
        with pytest.raises(NotEligible):
            logic.apply_as_judge(battle.id, factory.profile().id)

    def test_apply_closed_after_selection(self, factory):
        battle = factory.advance_to(factory.battle(), 'production')
        with pytest.raises(InvalidState):
            logic.apply_as_judge(battle.id, factory.profile().id)

    def test_logistics_regardless_of_validation(self, factory):
        battle = factory.battle()
        judge = logic.apply_as_judge(battle.id, factory.profile().id)
        logic.update_judge_logistics(judge.id, 'has_ordered', True)
        logic.update_judge_logistics(judge.id, 'has_received', True)
        assert judge.has_ordered is True
        assert judge.has_received is True
        assert judge.is_validated is False

    @pytest.mark.parametrize('field, value', [
        ('is_validated', True),
        ('has_ordered', 'yes'),
    ])
    def test_logistics_rejects_bad_input(self, factory, field, value):
        battle = factory.battle()
        judge = logic.apply_as_judge(battle.id, factory.profile().id)
        with pytest.raises(ValidationError):
            logic.update_judge_logistics(judge.id, field, value)
        assert judge.is_validated is False

    def test_no_changes_once_finished(self, factory):
        setup = factory.voting_battle()
        judge = setup.judges[0]
        factory.advance_to(setup.battle, BattleStatus.TERMINE)
        with pytest.raises(InvalidState):
            logic.update_judge_logistics(judge.id, 'has_received', True)
        with pytest.raises(InvalidState):
            logic.validate_judge(judge.id)


# ======================================================================
# Удаление
# ======================================================================


class TestRemoval:
    def test_remove_participant_before_vote(self, factory):
        battle = factory.battle()
        candidate = logic.submit_candidacy(battle.id, factory.profile().id, 'Motivé')
        participant = logic.select_candidate(candidate.id)
        participant_id = participant.id
        factory.advance_to(battle, 'envoi')

        assert logic.remove_participant(participant_id) is True
        assert logic.list_participants(battle.id) == []
        assert db.session.get(Candidate, candidate.id).is_selected is False

    def test_remove_participant_during_vote_fails(self, factory):
        setup = factory.voting_battle()
        with pytest.raises(InvalidState):
            logic.remove_participant(setup.participants[0].id)
        assert len(logic.list_participants(setup.battle.id)) == 2

    def test_remove_judge_and_candidate_before_vote(self, factory):
        battle = factory.battle()
        judge = logic.apply_as_judge(battle.id, factory.profile().id)
        candidate = logic.submit_candidacy(battle.id, factory.profile().id, 'Motivé')
        logic.remove_judge(judge.id)
        logic.remove_candidate(candidate.id)
        assert logic.list_judges(battle.id) == []
        assert logic.list_candidates(battle.id) == []

    def test_remove_judge_and_candidate_after_vote_starts(self, factory):
        setup = factory.voting_battle()
        with pytest.raises(InvalidState):
            logic.remove_judge(setup.judges[0].id)
        with pytest.raises(InvalidState):
            logic.remove_candidate(setup.candidates[0].id)

    def test_remove_missing(self, app):
        with pytest.raises(NotFound):
            logic.remove_participant(77)
