# app.py
# Основной файл Flask-приложения с использованием паттерна Application Factory

import logging

from flask import Flask, jsonify
from sqlalchemy.exc import SQLAlchemyError

from config import Config
from extensions import db, migrate
from logic.errors import BattleError, StorageError

# Важно импортировать модели здесь, чтобы Alembic (Migrate) мог их видеть
from models import (
    Profile, Jam, Battle, Candidate, Participant, Judge, Criterion, CriteriaScore,
    VoteComment, BattleResult, CreditTransaction, BattleStars,
)


def create_app(config_class=Config):
    # Создаем экземпляр приложения
    app = Flask(__name__)
    app.config.from_object(config_class)

    logging.basicConfig(
        level=app.config.get('LOG_LEVEL', 'INFO'),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )

    # --- Инициализируем расширения С ПРИЛОЖЕНИЕМ ---
    db.init_app(app)
    migrate.init_app(app, db)

    # --- Регистрируем наши Blueprints (маршруты) ---
    from routes.auth import auth_bp
    from routes.main import main_bp
    from routes.admin import admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(main_bp)
    app.register_blueprint(admin_bp)

    register_error_handlers(app)
    return app


def register_error_handlers(app):
    """Ошибки движка превращаются в JSON-ответ, процесс не падает."""

    @app.errorhandler(BattleError)
    def handle_battle_error(error):
        log = app.logger.error if error.retryable else app.logger.info
        log(f"[api] {error.code}: {error.message} {error.details}")
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_storage_error(error):
        # Сбой базы вне storage_errors: откатываем и отвечаем как StorageError
        db.session.rollback()
        app.logger.error(f"[api] storage failure: {error}")
        wrapped = StorageError('Хранилище недоступно, повторите запрос', error=type(error).__name__)
        return jsonify(wrapped.to_dict()), wrapped.status_code

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({'ok': False, 'error': 'not_found', 'message': 'Страница не найдена', 'details': {}}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({'ok': False, 'error': 'method_not_allowed', 'message': 'Метод не поддерживается', 'details': {}}), 405
