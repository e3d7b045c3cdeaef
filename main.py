from fastapi import FastAPI, Depends
from fastapi.middleware.cors import CORSMiddleware
import logging

from dayos.config.settings import Settings
from dayos.routers import cron, notification, reminder, meeting, item
from dayos.services.reminder_engine import ReminderEngine, get_engine
from dayos.services.scheduler import reminder_scheduler

logger = logging.getLogger(__name__)

app = FastAPI(title="DayOS Reminder Engine")

# CORS configuration
origins = [
    Settings.APP['url'],
    "http://localhost:3000",                  # Local development frontend
    "http://127.0.0.1:3000",                  # Alternative localhost
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Route registration
app.include_router(cron.router)
app.include_router(notification.router)
app.include_router(reminder.router)
app.include_router(meeting.router)
app.include_router(item.router)

# Startup and shutdown events
@app.on_event("startup")
async def startup_event():
    """Start the in-process scheduler when it is enabled"""
    logger.info("Starting DayOS Reminder Engine...")
    if Settings.SCHEDULER['enabled']:
        reminder_scheduler.start()
    else:
        logger.info("Scheduler disabled (ENABLE_SCHEDULER=false); relying on /cron triggers")

@app.on_event("shutdown")
async def shutdown_event():
    """Stop the scheduler when the application shuts down"""
    reminder_scheduler.stop()

# Root route
@app.get("/")
def read_root():
    return {"message": "DayOS Reminder Engine"}

@app.get("/health")
def health(engine: ReminderEngine = Depends(get_engine)):
    return {
        "status": "ok",
        "push_configured": engine.dispatcher.push_available,
        "email_configured": engine.dispatcher.email_available,
    }

@app.get("/scheduler/status")
async def get_scheduler_status():
    """Get scheduler status and job information"""
    return await reminder_scheduler.get_scheduler_status()
