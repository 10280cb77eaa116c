# models/battle.py

import enum

from extensions import db
from sqlalchemy import CheckConstraint


class BattleStatus(str, enum.Enum):
    """Фазы баттла в порядке прохождения."""
    INSCRIPTION = 'inscription'
    SELECTION = 'selection'
    PRODUCTION = 'production'
    ENVOI = 'envoi'
    VOTE = 'vote'
    TERMINE = 'termine'


_STATUS_VALUES = ", ".join(f"'{s.value}'" for s in BattleStatus)


class Battle(db.Model):
    __tablename__ = 'jam_battles'
    id = db.Column(db.Integer, primary_key=True)
    theme = db.Column(db.String(200), nullable=False)
    # Упорядоченный словарь правил: {"sucre_max_pct": 40, ...}
    constraints = db.Column(db.JSON, nullable=False, default=dict)

    registration_end = db.Column(db.DateTime, nullable=False)
    production_end = db.Column(db.DateTime, nullable=False)
    voting_end = db.Column(db.DateTime, nullable=False)

    status = db.Column(db.String(20), nullable=False, default=BattleStatus.INSCRIPTION.value, index=True)
    reward_credits = db.Column(db.Integer, nullable=False, default=0)
    reward_description = db.Column(db.Text, nullable=True)
    min_jams_required = db.Column(db.Integer, nullable=False, default=0)
    max_judges = db.Column(db.Integer, nullable=False, default=10)
    max_price_credits = db.Column(db.Integer, nullable=False, default=10)
    judge_discount_percent = db.Column(db.Integer, nullable=False, default=25)

    is_featured = db.Column(db.Boolean, nullable=False, default=False)
    # False = баттл "удален" (мягкое удаление) или скрыт
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, server_default=db.func.current_timestamp(), onupdate=db.func.current_timestamp())

    candidates = db.relationship('Candidate', backref='battle', lazy=True, cascade="all, delete-orphan")
    participants = db.relationship('Participant', backref='battle', lazy=True, cascade="all, delete-orphan")
    judges = db.relationship('Judge', backref='battle', lazy=True, cascade="all, delete-orphan")
    result = db.relationship('BattleResult', backref='battle', uselist=False, cascade="all, delete-orphan")

    __table_args__ = (
        CheckConstraint(f"status IN ({_STATUS_VALUES})", name="check_battle_status"),
        CheckConstraint("reward_credits >= 0", name="check_reward_credits"),
        CheckConstraint("min_jams_required >= 0", name="check_min_jams_required"),
        CheckConstraint("max_judges >= 1", name="check_max_judges"),
        CheckConstraint("judge_discount_percent BETWEEN 0 AND 100", name="check_judge_discount"),
        CheckConstraint("registration_end < production_end AND production_end < voting_end", name="check_battle_dates"),
    )

    @property
    def phase(self):
        return BattleStatus(self.status)

    def to_dict(self):
        return {
            'id': self.id,
            'theme': self.theme,
            'constraints': self.constraints or {},
            'registration_end': self.registration_end.isoformat(),
            'production_end': self.production_end.isoformat(),
            'voting_end': self.voting_end.isoformat(),
            'status': self.status,
            'reward_credits': self.reward_credits,
            'reward_description': self.reward_description,
            'min_jams_required': self.min_jams_required,
            'max_judges': self.max_judges,
            'max_price_credits': self.max_price_credits,
            'judge_discount_percent': self.judge_discount_percent,
            'is_featured': self.is_featured,
            'is_active': self.is_active,
        }
