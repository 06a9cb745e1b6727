"""
backend — FastAPI application package.

Routers: api/health.py, api/profile.py, api/weather.py, api/videos.py, api/chat.py
Schemas: schemas/request.py, schemas/response.py
Entry point: main.py → run with `uvicorn backend.main:app --reload`
"""
