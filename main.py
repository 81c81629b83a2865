# main.py
from fastapi import FastAPI
import uvicorn

from logger.logger import logger

# Try to import config - if any required configs are missing,
# the app will exit before starting
try:
    import config
except Exception as e:
    logger.critical(f"Failed to load configuration: {e}")
    import sys
    sys.exit(1)

from db.db import init_db, close_db_connection, get_db
from db.init_db import init_db_indexes
from routes.routes import setup_routes


# Initialize FastAPI app
app = FastAPI(title="Marketplace Chat API")

# Setup routes
setup_routes(app)

# Startup and shutdown events
@app.on_event("startup")
async def startup_db_client():
    logger.info("Starting up marketplace chat service")
    await init_db()

    try:
        db = await get_db()
        await init_db_indexes(db)
        logger.info("Chat indexes ensured")
    except Exception as e:
        # Requests answer 503 until the database is reachable
        logger.error(f"Could not ensure chat indexes: {e}")

@app.on_event("shutdown")
async def shutdown_db_client():
    logger.info("Shutting down marketplace chat service")
    await close_db_connection()

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
