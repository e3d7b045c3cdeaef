# dayos/routers/cron.py
from fastapi import APIRouter, Depends

from dayos.services.reminder_engine import ReminderEngine, get_engine
from dayos.utils.auth import verify_cron_secret

router = APIRouter(prefix="/cron", tags=["cron"], dependencies=[Depends(verify_cron_secret)])

@router.api_route("/reminders", methods=["GET", "POST"])
async def process_due_reminders(engine: ReminderEngine = Depends(get_engine)):
    """Process every reminder that is due now"""
    report = await engine.process_due_reminders()
    return {"success": True, **report.to_dict()}

@router.api_route("/daily-digest", methods=["GET", "POST"])
async def send_daily_digests(engine: ReminderEngine = Depends(get_engine)):
    """Send the once-a-day digest to every opted-in user not yet served today"""
    report = await engine.send_daily_digests()
    return {"success": True, **report.to_dict()}

@router.api_route("/cleanup", methods=["GET", "POST"])
def cleanup(engine: ReminderEngine = Depends(get_engine)):
    """Prune delivery logs past the retention window"""
    deleted = engine.cleanup_delivery_logs()
    return {"success": True, "deleted_delivery_logs": deleted}
