# backend/wsgi.py
from saleslens import create_app

app = create_app()
