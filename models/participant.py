# models/participant.py

from extensions import db
from sqlalchemy import UniqueConstraint


class Participant(db.Model):
    __tablename__ = 'battle_participants'

    id = db.Column(db.Integer, primary_key=True)
    battle_id = db.Column(db.Integer, db.ForeignKey('jam_battles.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    jam_id = db.Column(db.Integer, db.ForeignKey('jams.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    user = db.relationship('Profile')
    scores = db.relationship('CriteriaScore', backref='participant', lazy=True, cascade="all, delete-orphan")

    # Один участник на пользователя в рамках баттла
    __table_args__ = (
        UniqueConstraint('battle_id', 'user_id', name='unique_participant_battle_user'),
    )

    def to_dict(self):
        return {'id': self.id, 'battle_id': self.battle_id, 'user_id': self.user_id, 'jam_id': self.jam_id}
