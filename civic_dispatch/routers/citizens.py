# civic_dispatch/routers/citizens.py
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from civic_dispatch.core.config import settings
from civic_dispatch.db.session import get_db
from civic_dispatch.services.rewards import RewardsLedger

router = APIRouter(prefix="/citizens", tags=["citizens"])

@router.get("/{phone}/rewards")
def get_rewards(phone: str, db: Session = Depends(get_db)):
    return {"phone": phone, "points": RewardsLedger(db).points(phone)}

@router.delete("/{phone}/rewards")
def redeem_rewards(phone: str, db: Session = Depends(get_db)):
    redeemed = RewardsLedger(db).redeem(phone)
    if redeemed is None:
        raise HTTPException(status_code=400, detail=f"Reach {settings.redeem_min_points} pts to Redeem")
    return {"phone": phone, "redeemed": redeemed, "points": 0}
