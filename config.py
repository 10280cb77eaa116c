# config.py
# Конфигурация приложения Flask

import os
from dotenv import load_dotenv

# .env читаем один раз, при импорте
load_dotenv()


class Config:
    # Абсолютный путь к базе данных по умолчанию
    BASE_DIR = os.path.abspath(os.path.dirname(__file__))
    SQLALCHEMY_DATABASE_URI = os.getenv(
        'DATABASE_URL',
        f'sqlite:///{os.path.join(BASE_DIR, "instance", "battles.db")}',
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SECRET_KEY = os.getenv('SECRET_KEY', 'your-secret-key-change-me')  # Замени на случайный ключ в продакшене

    # Шкала оценок судей (включительно)
    BATTLE_SCORE_MIN = int(os.getenv('BATTLE_SCORE_MIN', '1'))
    BATTLE_SCORE_MAX = int(os.getenv('BATTLE_SCORE_MAX', '5'))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SECRET_KEY = 'test'
    LOG_LEVEL = 'DEBUG'
