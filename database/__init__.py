# database/__init__.py
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
