# main.py
from fastapi.middleware.cors import CORSMiddleware
import os
from dotenv import load_dotenv

from fastapi import FastAPI
from api import containers, fcm, reminders, settings, water
from services.fcm_service import init_fcm_service
from services.notification_sink import get_job_scheduler
from services.supabase_service import init_supabase_service

# Load environment variables
load_dotenv()

# Initialize FastAPI app
app = FastAPI(
    title="Hydration Tracker Backend",
    description="Water intake logging, daily goals, history stats and hydration reminders",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Initialize services on startup
@app.on_event("startup")
async def startup_event():
    """Initialize services when the app starts"""
    print("🚀 Starting Hydration Tracker Backend...")

    try:
        init_supabase_service()
        print("✅ Supabase service initialized")

        init_fcm_service()
        print("✅ FCM service initialized")

        get_job_scheduler().start()
        print("✅ Reminder job scheduler started")

        print("🎉 Backend startup complete!")

    except Exception as e:
        print(f"❌ Error during startup: {e}")
        raise

@app.on_event("shutdown")
async def shutdown_event():
    scheduler = get_job_scheduler()
    if scheduler.running:
        scheduler.shutdown(wait=False)
        print("👋 Reminder job scheduler stopped")

# Include API routers
app.include_router(water.router)
app.include_router(containers.router)
app.include_router(settings.router)
app.include_router(reminders.router)
app.include_router(fcm.router)

# Root endpoint
@app.get("/")
async def root():
    return {
        "message": "Hydration Tracker Backend API",
        "version": "1.0.0",
        "status": "running",
        "features": ["water_logging", "containers", "history_stats", "reminders"]
    }

# Health check endpoint
@app.get("/health")
async def health_check():
    from services.supabase_service import get_supabase_service

    try:
        supabase_health = await get_supabase_service().health_check()

        return {
            "status": "healthy",
            "services": {
                "api": "healthy",
                "supabase": supabase_health,
                "reminders": "running" if get_job_scheduler().running else "stopped"
            },
            "message": "All services are running"
        }

    except Exception as e:
        return {
            "status": "unhealthy",
            "error": str(e),
            "message": "Some services are down"
        }

if __name__ == "__main__":
    import uvicorn

    port = int(os.environ.get("PORT", 8000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
