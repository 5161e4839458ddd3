# wsgi.py
# Ponto de entrada para servidores WSGI: gunicorn -w 1 --threads 50 wsgi:app
from app import create_app

app = create_app()
