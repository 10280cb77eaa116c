# models/battle_stars.py
# Статистика пользователя по баттлам (участия, победы)

from extensions import db
from sqlalchemy import CheckConstraint


class BattleStars(db.Model):
    __tablename__ = 'battle_stars'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False, unique=True)
    participations = db.Column(db.Integer, nullable=False, default=0)
    victories = db.Column(db.Integer, nullable=False, default=0)
    total_score = db.Column(db.Float, nullable=False, default=0)
    last_battle_date = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint("victories <= participations", name="check_stars_victories"),
    )
