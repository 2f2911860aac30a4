"""API router package.

Route modules for the replay API service:
- `replays`: replay and zip uploads
- `sample_data`: bundled demo replays
- `analysis`: aggregations over parsed replays

Import the composed router via:

    from services.api.app.routes import router

The composition lives in `services/api/app/routes/api_router.py`.
"""

from .api_router import router
