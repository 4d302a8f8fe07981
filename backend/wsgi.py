# backend/wsgi.py
from swiftflow import create_app

app = create_app()
