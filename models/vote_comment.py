# models/vote_comment.py

from extensions import db


class VoteComment(db.Model):
    __tablename__ = 'battle_vote_comments'
    id = db.Column(db.Integer, primary_key=True)
    judge_id = db.Column(db.Integer, db.ForeignKey('battle_judges.id', ondelete='CASCADE'), nullable=False)
    battle_id = db.Column(db.Integer, db.ForeignKey('jam_battles.id', ondelete='CASCADE'), nullable=False, index=True)
    participant_id = db.Column(db.Integer, db.ForeignKey('battle_participants.id', ondelete='CASCADE'), nullable=False)
    comment = db.Column(db.Text, nullable=False)
    is_draft = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())
    updated_at = db.Column(db.DateTime, server_default=db.func.current_timestamp(), onupdate=db.func.current_timestamp())

    __table_args__ = (
        db.UniqueConstraint('judge_id', 'participant_id', name='unique_vote_comment'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'judge_id': self.judge_id,
            'battle_id': self.battle_id,
            'participant_id': self.participant_id,
            'comment': self.comment,
            'is_draft': self.is_draft,
        }
