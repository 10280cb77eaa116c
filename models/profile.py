# models/profile.py
# Профиль пользователя: роль и баланс кредитов

from extensions import db
from sqlalchemy import CheckConstraint


class Profile(db.Model):
    __tablename__ = 'profiles'
    id = db.Column(db.Integer, primary_key=True)
    code = db.Column(db.String(6), unique=True, nullable=False)
    username = db.Column(db.String(100), nullable=True, index=True)
    role = db.Column(db.String, nullable=False, default='member')
    # Баланс меняется только вместе с записью в credit_transactions
    credits = db.Column(db.Integer, nullable=False, default=0)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    jams = db.relationship('Jam', backref='creator', lazy='dynamic')
    transactions = db.relationship('CreditTransaction', backref='user', lazy='dynamic')

    __table_args__ = (
        CheckConstraint("role IN ('member', 'admin')", name="check_profile_role"),
    )
