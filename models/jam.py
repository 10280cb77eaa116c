# models/jam.py
# Джем пользователя. Для баттлов нужно только число одобренных и активных

from extensions import db
from sqlalchemy import CheckConstraint


class Jam(db.Model):
    __tablename__ = 'jams'
    id = db.Column(db.Integer, primary_key=True)
    creator_id = db.Column(db.Integer, db.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    status = db.Column(db.String(20), nullable=False, default='pending')
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    __table_args__ = (
        CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="check_jam_status"),
    )
