"""Taste Predictor Application - Ingredient taste prediction and recipe service.

Single entry point for the HTTP service:
- Chooses account storage from DATABASE_URL (in-memory or SQLAlchemy)
- Configures the Gemini completion client from GEMINI_* settings
- Serves the REST API and OpenAPI docs via FastAPI/uvicorn

Run with: python app.py
"""

import uvicorn

from taste_predictor.api.app import create_app
from taste_predictor.utils.config import config
from taste_predictor.utils.logger import logger


app = create_app()


if __name__ == "__main__":
    logger.info(f"Starting Taste Predictor Service on port {config.PORT}")
    logger.info(f"Model: {config.GEMINI_MODEL}")
    logger.info(f"API docs available at: http://localhost:{config.PORT}/docs")
    uvicorn.run(app, host="0.0.0.0", port=config.PORT, log_config=None)
