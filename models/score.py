# models/score.py
# Оценка судьи участнику по одному критерию

from extensions import db
from sqlalchemy import CheckConstraint


class CriteriaScore(db.Model):
    __tablename__ = 'battle_votes'
    id = db.Column(db.Integer, primary_key=True)
    judge_id = db.Column(db.Integer, db.ForeignKey('battle_judges.id', ondelete='CASCADE'), nullable=False)
    battle_id = db.Column(db.Integer, db.ForeignKey('jam_battles.id', ondelete='CASCADE'), nullable=False, index=True)
    participant_id = db.Column(db.Integer, db.ForeignKey('battle_participants.id', ondelete='CASCADE'), nullable=False)
    criterion_id = db.Column(db.Integer, db.ForeignKey('battle_criteria.id', ondelete='CASCADE'), nullable=False)
    score = db.Column(db.Integer, nullable=False)
    scored_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, server_default=db.func.current_timestamp(), onupdate=db.func.current_timestamp())

    criterion = db.relationship('Criterion')

    # Повторная оценка перезаписывает старую, а не добавляет строку
    __table_args__ = (
        db.UniqueConstraint('judge_id', 'participant_id', 'criterion_id', name='unique_vote'),
        CheckConstraint("score >= 0", name="check_vote_score"),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'judge_id': self.judge_id,
            'battle_id': self.battle_id,
            'participant_id': self.participant_id,
            'criterion_id': self.criterion_id,
            'score': self.score,
        }
