from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .. import __version__
from . import crud, models, schemas
from .database import get_db, init_db

app = FastAPI(title="Talentbook Sync API", version=__version__)

# CORS for web client
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def startup_event():
    init_db()


def get_current_user(
    authorization: Optional[str] = Header(default=None),
    db: Session = Depends(get_db),
) -> models.User:
    """Resolve the bearer token to a user"""
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Not authenticated")
    user = crud.get_user_by_token(db, authorization[len("Bearer "):].strip())
    if not user:
        raise HTTPException(status_code=401, detail="Invalid session token")
    return user


@app.get("/")
def read_root():
    return {"message": "Talentbook Sync API", "version": __version__}


# Sync endpoints
@app.post("/api/sync/push", response_model=schemas.SyncPushResponse)
def sync_push(
    push: schemas.SyncPushRequest,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Upsert a full snapshot of the user's local data"""
    try:
        result = crud.sync_user_data(db, user.id, push)
    except SQLAlchemyError:
        raise HTTPException(status_code=500, detail="Sync failed; no changes were saved")
    crud.touch_user(db, user)
    return result


@app.get("/api/sync/pull", response_model=schemas.SyncData)
def sync_pull(user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Everything stored for the user"""
    return crud.get_all_user_data(db, user.id)


@app.get("/api/stats", response_model=schemas.StatsResponse)
def get_stats(user: models.User = Depends(get_current_user), db: Session = Depends(get_db)):
    return crud.get_stats(db, user.id)
