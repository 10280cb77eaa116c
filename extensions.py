# extensions.py
# Экземпляры расширений Flask, общие для всего приложения

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()
