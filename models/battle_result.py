# models/battle_result.py

from extensions import db
from sqlalchemy import CheckConstraint


class BattleResult(db.Model):
    __tablename__ = 'battle_results'
    id = db.Column(db.Integer, primary_key=True)
    battle_id = db.Column(db.Integer, db.ForeignKey('jam_battles.id', ondelete='CASCADE'), nullable=False, unique=True)

    # winner_id = NULL означает ничью
    winner_id = db.Column(db.Integer, db.ForeignKey('battle_participants.id'), nullable=True)
    participant_a_id = db.Column(db.Integer, db.ForeignKey('battle_participants.id'), nullable=False)
    participant_b_id = db.Column(db.Integer, db.ForeignKey('battle_participants.id'), nullable=False)
    participant_a_score = db.Column(db.Float, nullable=False, default=0)
    participant_b_score = db.Column(db.Float, nullable=False, default=0)
    is_manual = db.Column(db.Boolean, nullable=False, default=False)

    # Меняется только false -> true, один раз
    reward_distributed = db.Column(db.Boolean, nullable=False, default=False)
    distributed_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, server_default=db.func.current_timestamp(), onupdate=db.func.current_timestamp())

    winner = db.relationship('Participant', foreign_keys=[winner_id])
    participant_a = db.relationship('Participant', foreign_keys=[participant_a_id])
    participant_b = db.relationship('Participant', foreign_keys=[participant_b_id])

    __table_args__ = (
        CheckConstraint("participant_a_id <> participant_b_id", name="check_result_distinct_pair"),
        CheckConstraint(
            "winner_id IS NULL OR winner_id = participant_a_id OR winner_id = participant_b_id",
            name="check_result_winner_in_pair",
        ),
    )

    @property
    def is_tie(self):
        return self.winner_id is None

    def to_dict(self):
        return {
            'id': self.id,
            'battle_id': self.battle_id,
            'winner_id': self.winner_id,
            'participant_a_id': self.participant_a_id,
            'participant_a_score': self.participant_a_score,
            'participant_b_id': self.participant_b_id,
            'participant_b_score': self.participant_b_score,
            'is_manual': self.is_manual,
            'is_tie': self.is_tie,
            'reward_distributed': self.reward_distributed,
        }
