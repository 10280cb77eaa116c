# models/candidate.py

from extensions import db


class Candidate(db.Model):
    __tablename__ = 'battle_candidates'
    id = db.Column(db.Integer, primary_key=True)
    battle_id = db.Column(db.Integer, db.ForeignKey('jam_battles.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    motivation = db.Column(db.Text, nullable=False)
    reference_jam_id = db.Column(db.Integer, db.ForeignKey('jams.id', ondelete='SET NULL'), nullable=True)
    is_selected = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    user = db.relationship('Profile')
    reference_jam = db.relationship('Jam')

    __table_args__ = (
        db.UniqueConstraint('battle_id', 'user_id', name='unique_candidate_battle_user'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'battle_id': self.battle_id,
            'user_id': self.user_id,
            'motivation': self.motivation,
            'reference_jam_id': self.reference_jam_id,
            'is_selected': self.is_selected,
        }
