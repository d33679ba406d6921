# MINIQUARE CRM backend entrypoint.

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from backend.app.core.logging import configure_logging
from backend.app.core.settings import get_settings
from backend.app.api.auth.router import router as auth_router
from backend.app.api import register
from backend.app.api import login
from backend.app.api import leads
from backend.app.api import notes
from backend.app.api import reminders
from backend.app.api import dashboard
from backend.app.api import admin_users
from backend.app.core.dev_seed import ensure_default_dev_users
from backend.app.db.session import SessionLocal
from backend.app.services.reminder_hub import ReminderHub

configure_logging()

app = FastAPI()
settings = get_settings()

origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(register.router)
app.include_router(login.router)
app.include_router(leads.router)
app.include_router(notes.router)
app.include_router(reminders.router)
app.include_router(dashboard.router)
app.include_router(admin_users.router)


@app.get("/")
def read_root():
    return {"app": "MINIQUARE CRM backend", "status": "ok"}


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.on_event("startup")
def seed_default_dev_users():
    db = SessionLocal()
    try:
        ensure_default_dev_users(db)
    finally:
        db.close()


@app.on_event("startup")
async def start_reminder_hub():
    hub = ReminderHub()
    await hub.start()
    app.state.reminder_hub = hub


@app.on_event("shutdown")
async def stop_reminder_hub():
    hub = getattr(app.state, "reminder_hub", None)
    if hub is not None:
        await hub.close()
        app.state.reminder_hub = None
