# civic_dispatch/services/rewards.py
import json
import logging
from typing import Dict, Optional

from sqlalchemy.orm import Session

from civic_dispatch.core.config import settings
from civic_dispatch.services.store import CollectionStore

logger = logging.getLogger(__name__)


class RewardsLedger:
    """Citizen reward points keyed by phone number, stored as one JSON object."""

    def __init__(self, db: Session, key: Optional[str] = None):
        self._blob = CollectionStore(db, key or settings.rewards_key)

    def load(self) -> Dict[str, int]:
        _, payload = self._blob.read()
        if payload is None:
            return {}
        try:
            data = json.loads(payload)
        except ValueError:
            logger.warning("Rewards ledger is not valid JSON; treating as empty")
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): int(v) for k, v in data.items() if isinstance(v, int) and not isinstance(v, bool) and v >= 0}

    def points(self, phone: str) -> int:
        return self.load().get(phone, 0)

    def credit(self, phone: str, points: Optional[int] = None) -> int:
        if points is None:
            points = settings.reward_points_per_report
        if not phone or points <= 0:
            return self.points(phone) if phone else 0
        ledger = self.load()
        ledger[phone] = ledger.get(phone, 0) + points
        self._blob.write(json.dumps(ledger, sort_keys=True))
        return ledger[phone]

    def redeem(self, phone: str) -> Optional[int]:
        """Pay out the whole balance. None when it is below the redemption minimum."""
        balance = self.points(phone)
        if balance <= 0 or balance < settings.redeem_min_points:
            return None
        self.reset(phone)
        logger.info(f"Redeemed {balance} points for citizen {phone}")
        return balance

    def reset(self, phone: str) -> None:
        ledger = self.load()
        if phone in ledger:
            ledger[phone] = 0
            self._blob.write(json.dumps(ledger, sort_keys=True))
