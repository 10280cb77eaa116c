"""
tests/conftest.py - общие фикстуры: приложение на SQLite в памяти и фабрика данных.
"""

from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

import logic
from app import create_app
from config import TestConfig
from extensions import db
from models import BattleStatus, Criterion, Jam, Profile

BASE_DATE = datetime(2030, 3, 1, 12, 0)


class Factory:
    """Создает записи через ту же сессию, что и движок."""

    base_date = BASE_DATE

    def __init__(self):
        self._seq = 0

    def _next(self):
        self._seq += 1
        return self._seq

    def profile(self, role='member', credits=0):
        n = self._next()
        profile = Profile(code=f'{n:06d}', username=f'user{n}', role=role, credits=credits)
        db.session.add(profile)
        db.session.commit()
        return profile

    def jams(self, user, count, status='approved', is_active=True):
        jams = [
            Jam(creator_id=user.id, name=f'Confiture {self._next()}', status=status, is_active=is_active)
            for _ in range(count)
        ]
        db.session.add_all(jams)
        db.session.commit()
        return jams

    def criteria(self, count=1):
        criteria = [Criterion(name=f'Critère {self._next()}', order=i + 1) for i in range(count)]
        db.session.add_all(criteria)
        db.session.commit()
        return criteria

    def battle(self, **overrides):
        params = dict(
            theme='Agrumes amers',
            constraints={'sucre_max_pct': 45, 'pectine_ajoutee': False},
            registration_end=BASE_DATE,
            production_end=BASE_DATE + timedelta(days=14),
            voting_end=BASE_DATE + timedelta(days=30),
            reward_credits=50,
            min_jams_required=0,
        )
        params.update(overrides)
        return logic.create_battle(**params)

    def advance_to(self, battle, phase):
        target = BattleStatus(phase)
        while battle.phase != target:
            logic.advance_phase(battle.id, logic.NEXT_PHASE[battle.phase])
        return battle

    def voting_battle(self, judges=2, criteria=1, reward_credits=50, theme='Agrumes amers'):
        """Баттл в фазе vote: два участника, подтвержденные судьи, критерии."""
        battle = self.battle(reward_credits=reward_credits, theme=theme)
        makers = [self.profile(), self.profile()]
        candidates = [logic.submit_candidacy(battle.id, m.id, 'Ma meilleure confiture') for m in makers]
        judge_records = []
        for _ in range(judges):
            judge = logic.apply_as_judge(battle.id, self.profile().id)
            judge_records.append(logic.validate_judge(judge.id))
        self.advance_to(battle, BattleStatus.SELECTION)
        participants = [logic.select_candidate(c.id) for c in candidates]
        self.advance_to(battle, BattleStatus.VOTE)
        return SimpleNamespace(
            battle=battle,
            makers=makers,
            candidates=candidates,
            participants=participants,
            judges=judge_records,
            criteria=self.criteria(criteria),
        )

    def score_all(self, setup, judge, participant, values):
        """Оценки одного судьи одному участнику по критериям по порядку."""
        for criterion, value in zip(setup.criteria, values):
            logic.cast_vote(judge.id, setup.battle.id, participant.id, criterion.id, value)


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def factory(app):
    return Factory()


@pytest.fixture
def login(client):
    def _login(profile):
        resp = client.post('/login', json={'code': profile.code})
        assert resp.status_code == 200
        return resp
    return _login


@pytest.fixture
def file_app(tmp_path):
    """Приложение на файловой SQLite: нужно, когда несколько потоков пишут в одну базу."""
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'battles.db'}"

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def file_factory(file_app):
    return Factory()
