# models/judge.py

from extensions import db


class Judge(db.Model):
    __tablename__ = 'battle_judges'
    id = db.Column(db.Integer, primary_key=True)
    battle_id = db.Column(db.Integer, db.ForeignKey('jam_battles.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False)
    is_validated = db.Column(db.Boolean, nullable=False, default=False)
    # Обмен образцами: судья заказал баночки / получил их
    has_ordered = db.Column(db.Boolean, nullable=False, default=False)
    has_received = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    user = db.relationship('Profile')
    scores = db.relationship('CriteriaScore', backref='judge', lazy=True, cascade="all, delete-orphan")

    __table_args__ = (
        db.UniqueConstraint('battle_id', 'user_id', name='unique_judge_battle_user'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'battle_id': self.battle_id,
            'user_id': self.user_id,
            'is_validated': self.is_validated,
            'has_ordered': self.has_ordered,
            'has_received': self.has_received,
        }
