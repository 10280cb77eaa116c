"""
tests/test_routes.py - HTTP-слой: доступ, формат ответов, полный цикл баттла.
"""

from sqlalchemy.exc import OperationalError

import logic
from extensions import db
from models import Profile


def _battle_payload(**overrides):
    payload = {
        'theme': 'Fruits rouges sans pectine',
        'constraints': {'pectine_ajoutee': False, 'sucre_max_pct': 50},
        'registration_end': '2030-03-01T12:00:00',
        'production_end': '2030-03-15T12:00:00',
        'voting_end': '2030-03-31T12:00:00',
        'reward_credits': 50,
        'min_jams_required': 3,
    }
    payload.update(overrides)
    return payload


class TestAccess:
    def test_login_with_unknown_code(self, client):
        resp = client.post('/login', json={'code': '000000'})
        assert resp.status_code == 404
        assert resp.get_json()['ok'] is False

    def test_login_without_code(self, client):
        resp = client.post('/login', json={})
        assert resp.status_code == 400
        assert resp.get_json()['error'] == 'validation_error'

    def test_member_routes_need_login(self, client, factory):
        battle = factory.battle()
        resp = client.post(f'/battles/{battle.id}/candidacy', json={'motivation': 'Motivé'})
        assert resp.status_code == 401
        assert resp.get_json()['error'] == 'unauthorized'

    def test_admin_routes_need_admin_role(self, client, factory, login):
        login(factory.profile())
        resp = client.post('/admin/battles', json=_battle_payload())
        assert resp.status_code == 403
        assert resp.get_json()['error'] == 'forbidden'

    def test_logout(self, client, factory, login):
        login(factory.profile())
        client.post('/logout')
        assert client.get('/credits').status_code == 401

    def test_unknown_url_is_json(self, client):
        resp = client.get('/nope')
        assert resp.status_code == 404
        assert resp.get_json()['error'] == 'not_found'


class TestErrors:
    def test_invalid_transition(self, client, factory, login):
        login(factory.profile(role='admin'))
        battle = factory.battle()
        resp = client.post(f'/admin/battles/{battle.id}/phase', json={'target': 'vote'})
        assert resp.status_code == 409
        body = resp.get_json()
        assert body['error'] == 'invalid_transition'
        assert body['details']['current'] == 'inscription'
        assert body['retryable'] is False

    def test_bad_dates(self, client, factory, login):
        login(factory.profile(role='admin'))
        resp = client.post('/admin/battles', json=_battle_payload(production_end='2030-02-01T00:00:00'))
        assert resp.status_code == 400
        assert resp.get_json()['details']['field'] == 'production_end'

    def test_date_not_iso(self, client, factory, login):
        login(factory.profile(role='admin'))
        resp = client.post('/admin/battles', json=_battle_payload(voting_end='demain'))
        assert resp.status_code == 400

    def test_missing_battle(self, client):
        resp = client.get('/battles/999')
        assert resp.status_code == 404
        assert resp.get_json()['details'] == {'entity': 'battle', 'id': 999}

    def test_storage_failure_on_read(self, client, factory, monkeypatch):
        battle = factory.battle()

        def broken_get(*args, **kwargs):
            raise OperationalError('SELECT', {}, Exception('database is locked'))

        monkeypatch.setattr(db.session, 'get', broken_get)
        resp = client.get(f'/battles/{battle.id}')
        assert resp.status_code == 503
        body = resp.get_json()
        assert body['error'] == 'storage_error'
        assert body['retryable'] is True

    def test_unwrapped_storage_failure_is_json(self, client, monkeypatch):
        def broken_list(status=None):
            raise OperationalError('SELECT', {}, Exception('connection refused'))

        monkeypatch.setattr(logic, 'list_battles', broken_list)
        resp = client.get('/battles')
        assert resp.status_code == 503
        assert resp.get_json()['error'] == 'storage_error'
        assert resp.get_json()['retryable'] is True

    def test_not_eligible(self, client, factory, login):
        battle = factory.battle(min_jams_required=2)
        login(factory.profile())
        resp = client.post(f'/battles/{battle.id}/candidacy', json={'motivation': 'Motivé'})
        assert resp.status_code == 403
        assert resp.get_json()['error'] == 'not_eligible'

    def test_vote_by_non_judge(self, client, factory, login):
        setup = factory.voting_battle()
        login(setup.makers[0])
        resp = client.post(f'/battles/{setup.battle.id}/votes', json={
            'participant_id': setup.participants[1].id, 'criteria_id': setup.criteria[0].id, 'score': 5,
        })
        assert resp.status_code == 403

    def test_bad_score(self, client, factory, login):
        setup = factory.voting_battle()
        login(db.session.get(Profile, setup.judges[0].user_id))
        resp = client.post(f'/battles/{setup.battle.id}/votes', json={
            'participant_id': setup.participants[0].id, 'criteria_id': setup.criteria[0].id, 'score': 6,
        })
        assert resp.status_code == 400
        assert resp.get_json()['details']['field'] == 'score'


class TestBattleLifecycle:
    def test_full_flow(self, client, factory, login):
        admin = factory.profile(role='admin')
        makers = [factory.profile(), factory.profile()]
        for maker in makers:
            factory.jams(maker, 3)
        judges = [factory.profile(), factory.profile()]
        criterion = factory.criteria(1)[0]

        login(admin)
        resp = client.post('/admin/battles', json=_battle_payload())
        assert resp.status_code == 201
        battle_id = resp.get_json()['data']['id']
        assert resp.get_json()['data']['status'] == 'inscription'

        for maker in makers:
            login(maker)
            resp = client.post(f'/battles/{battle_id}/candidacy', json={'motivation': 'Confiture maison'})
            assert resp.status_code == 201
        for judge in judges:
            login(judge)
            assert client.post(f'/battles/{battle_id}/judges').status_code == 201

        login(admin)
        for judge in client.get(f'/admin/battles/{battle_id}/judges').get_json()['data']:
            assert client.post(f"/admin/judges/{judge['id']}/validate").get_json()['data']['is_validated']
        assert client.post(f'/admin/battles/{battle_id}/phase', json={'target': 'selection'}).status_code == 200
        participants = []
        for candidate in client.get(f'/admin/battles/{battle_id}/candidates').get_json()['data']:
            resp = client.post(f"/admin/candidates/{candidate['id']}/select")
            participants.append(resp.get_json()['data']['id'])
        for target in ('production', 'envoi', 'vote'):
            client.post(f'/admin/battles/{battle_id}/phase', json={'target': target})

        for judge, (score_a, score_b) in zip(judges, ((5, 2), (4, 3))):
            login(judge)
            for participant_id, score in zip(participants, (score_a, score_b)):
                resp = client.post(f'/battles/{battle_id}/ballot', json={
                    'participant_id': participant_id,
                    'scores': {str(criterion.id): score},
                    'comment': 'Bien équilibrée',
                })
                assert resp.status_code == 200

        login(admin)
        resp = client.post(f'/admin/battles/{battle_id}/result', json={})
        body = resp.get_json()
        assert body['data']['winner_id'] == participants[0]
        assert body['data']['participant_a_score'] == 9.0
        assert body['scores'][0]['participant_id'] == participants[0]

        first = client.post(f'/admin/battles/{battle_id}/rewards').get_json()['data']
        second = client.post(f'/admin/battles/{battle_id}/rewards').get_json()['data']
        assert first['already_distributed'] is False
        assert second['already_distributed'] is True

        detail = client.get(f'/battles/{battle_id}').get_json()['data']
        assert detail['status'] == 'termine'
        assert detail['result']['reward_distributed'] is True

        login(makers[0])
        credits = client.get('/credits').get_json()['data']
        assert credits['balance'] == 50
        assert len(credits['transactions']) == 1

    def test_manual_result(self, client, factory, login):
        setup = factory.voting_battle()
        a, b = setup.participants
        login(factory.profile(role='admin'))
        resp = client.post(f'/admin/battles/{setup.battle.id}/result', json={
            'mode': 'manual',
            'participant_a': a.id, 'score_a': 3,
            'participant_b': b.id, 'score_b': 7,
            'winner': b.id,
        })
        assert resp.status_code == 200
        assert resp.get_json()['data']['is_manual'] is True

    def test_manual_result_needs_winner(self, client, factory, login):
        setup = factory.voting_battle()
        a, b = setup.participants
        login(factory.profile(role='admin'))
        resp = client.post(f'/admin/battles/{setup.battle.id}/result', json={
            'mode': 'manual', 'participant_a': a.id, 'score_a': 3, 'participant_b': b.id, 'score_b': 7,
        })
        assert resp.status_code == 400

    def test_manual_tie_without_winner(self, client, factory, login):
        setup = factory.voting_battle()
        a, b = setup.participants
        login(factory.profile(role='admin'))
        resp = client.post(f'/admin/battles/{setup.battle.id}/result', json={
            'mode': 'manual', 'participant_a': a.id, 'score_a': 6, 'participant_b': b.id, 'score_b': 6,
        })
        assert resp.status_code == 200
        assert resp.get_json()['data']['winner_id'] is None

    def test_rewards_on_tie(self, client, factory, login):
        setup = factory.voting_battle()
        logic.declare_result(setup.battle.id)
        login(factory.profile(role='admin'))
        resp = client.post(f'/admin/battles/{setup.battle.id}/rewards')
        assert resp.status_code == 409
        assert resp.get_json()['error'] == 'no_winner'

    def test_admin_sees_votes_by_judge(self, client, factory, login):
        setup = factory.voting_battle()
        j1, j2 = setup.judges
        factory.score_all(setup, j1, setup.participants[0], [4])
        factory.score_all(setup, j2, setup.participants[0], [2])
        logic.cast_comment(j1.id, setup.battle.id, setup.participants[0].id, 'Parfaite')

        login(factory.profile(role='admin'))
        data = client.get(f'/admin/battles/{setup.battle.id}/votes?judge_id={j2.id}').get_json()['data']
        assert [v['score'] for v in data['votes']] == [2]
        assert data['comments'] == []

    def test_visibility_and_listing(self, client, factory, login):
        shown = factory.battle(theme='Visible')
        hidden = factory.battle(theme='Masquée')
        login(factory.profile(role='admin'))
        client.post(f'/admin/battles/{hidden.id}/visibility', json={'is_active': False})
        client.post(f'/admin/battles/{shown.id}/visibility', json={'is_featured': True})

        listed = client.get('/battles').get_json()['data']
        assert [b['id'] for b in listed] == [shown.id]
        assert listed[0]['is_featured'] is True

    def test_visibility_needs_a_flag(self, client, factory, login):
        battle = factory.battle()
        login(factory.profile(role='admin'))
        assert client.post(f'/admin/battles/{battle.id}/visibility', json={}).status_code == 400

    def test_delete_battle(self, client, factory, login):
        battle = factory.battle()
        login(factory.profile(role='admin'))
        resp = client.post(f'/admin/battles/{battle.id}/delete')
        assert resp.get_json()['data']['hard_deleted'] is True
        assert client.get(f'/battles/{battle.id}').status_code == 404

    def test_judge_logistics(self, client, factory, login):
        battle = factory.battle()
        judge = logic.apply_as_judge(battle.id, factory.profile().id)
        login(factory.profile(role='admin'))
        resp = client.post(f'/admin/judges/{judge.id}/logistics', json={'field': 'has_ordered', 'value': True})
        assert resp.get_json()['data']['has_ordered'] is True
        resp = client.post(f'/admin/judges/{judge.id}/logistics', json={'field': 'is_validated', 'value': True})
        assert resp.status_code == 400

    def test_overdue_battles(self, client, factory, login):
        # У баттла из прошлого срок регистрации давно истек
        late = factory.battle(
            theme='Oubliée',
            registration_end=factory.base_date.replace(year=2020),
            production_end=factory.base_date.replace(year=2021),
            voting_end=factory.base_date.replace(year=2022),
        )
        factory.battle(theme='À venir')
        login(factory.profile(role='admin'))
        data = client.get('/admin/battles/overdue').get_json()['data']
        assert [b['id'] for b in data] == [late.id]
