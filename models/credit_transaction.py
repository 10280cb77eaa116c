# models/credit_transaction.py
# Журнал движения кредитов, только добавление

from extensions import db


class CreditTransaction(db.Model):
    __tablename__ = 'credit_transactions'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False, index=True)
    amount = db.Column(db.Integer, nullable=False)
    description = db.Column(db.String(255), nullable=False)
    related_order_id = db.Column(db.String(64), nullable=True)
    # Не больше одной выплаты награды на баттл
    reward_battle_id = db.Column(db.Integer, db.ForeignKey('jam_battles.id'), nullable=True, unique=True)
    created_at = db.Column(db.DateTime, server_default=db.func.current_timestamp())

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'amount': self.amount,
            'description': self.description,
            'related_order_id': self.related_order_id,
            'reward_battle_id': self.reward_battle_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
