# backend/wsgi.py
from brewplan import create_app

app = create_app()
