import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import CORS_ORIGINS
from database import init_db
from errors import register_exception_handlers
from routes.auth_routes import router as auth_router
from routes.habit_routes import router as habit_router
from routes.progress_routes import router as progress_router
from routes.notification_routes import router as notification_router

logger = logging.getLogger(__name__)

# Initialize db configuration
init_db()

app = FastAPI(title="Habit Tracker API")

register_exception_handlers(app)


@app.get("/api/v1/health-check")
async def health():
    return {"status": "ok", "message": "Backend is alive!"}


app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(habit_router)
app.include_router(progress_router)
app.include_router(notification_router)

logger.info("Routers mounted: auth, habits, progress, notifications")

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
