"""FastAPI app for library reports. Run from repo root: uvicorn backend.main:app --reload."""
import logging
import os
from datetime import datetime, timezone

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from library_reporting import config
from library_reporting.db import get_db, find_borrower_by_email

from backend.auth import verify_password, create_access_token

logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


class LoginBody(BaseModel):
    email: str = ""
    password: str = ""

app = FastAPI(title="Library Reporting API", version="0.1.0")

# CORS: allow React dev (localhost) and production origin
ALLOWED_ORIGINS = os.environ.get("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def root():
    return {"message": "Welcome to the Library Management API"}


@app.get("/health")
def health():
    return {
        "status": "success",
        "message": "Library Management API is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ----- Auth -----
@app.post("/api/auth/login")
def login(body: LoginBody):
    """Body: { "email": "...", "password": "..." }. Returns { "access_token": "..." } or 401."""
    email = (body.email or "").strip()
    password = (body.password or "").strip()
    if not email or not password:
        raise HTTPException(status_code=401, detail="Email and password required")
    if not verify_password(password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    with get_db(config.DB_PATH) as conn:
        borrower = find_borrower_by_email(conn, email)
    if not borrower:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return {"access_token": create_access_token(borrower), "token_type": "bearer"}


from backend.routers import reports
app.include_router(reports.router)
