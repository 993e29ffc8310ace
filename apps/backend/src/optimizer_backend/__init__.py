"""
Optimizer Backend - Flask API for batch image optimization

This app is deployed on the backend server. It:
1. Accepts image uploads from the frontend
2. Optimizes them into the requested format
3. Returns the results as a single ZIP archive

Deployment:
    pip install image-optimizer
    flask --app optimizer_backend.app:create_app run
"""

from .app import create_app
from .config import Config

__all__ = ["create_app", "Config"]
