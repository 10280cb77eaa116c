# routes/auth.py
# Вход по коду доступа. Роль сохраняется в сессии и проверяется декораторами.

from flask import Blueprint, session

from models import Profile
from logic.errors import ValidationError, NotFound
from .utils import json_body, ok

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
def login():
    data = json_body()
    user_code = data.get('code')
    if not user_code:
        raise ValidationError('Пожалуйста, введите ваш код.', field='code')

    # Ищем пользователя в базе данных по коду
    user = Profile.query.filter_by(code=user_code).first()
    if user is None:
        raise NotFound('profile', user_code, 'Неверный код доступа. Попробуйте еще раз.')

    session.clear()  # Очищаем старую сессию для безопасности
    session['user_id'] = user.id
    session['user_role'] = user.role
    return ok({'user_id': user.id, 'role': user.role, 'credits': user.credits})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.clear()
    return ok()
