# fakeverifier/firebase.py
import logging
import os
from datetime import datetime
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import auth, credentials, firestore

from .config import settings
from .errors import AuthError
from .model_selection import Tier, get_user_tier as tier_from_subscription

logger = logging.getLogger(__name__)

_DB = None


def init_firebase():
    global _DB
    if _DB is not None:
        return _DB

    # explicit setting first, then the standard Google env var
    cred_path = settings.FIREBASE_CREDENTIALS or os.getenv("GOOGLE_APPLICATION_CREDENTIALS")

    if not firebase_admin._apps:
        options = {"projectId": settings.FIREBASE_PROJECT_ID} if settings.FIREBASE_PROJECT_ID else None
        if cred_path:
            if not os.path.exists(cred_path):
                raise FileNotFoundError(
                    f"Firebase service account key not found. Checked: FIREBASE_CREDENTIALS="
                    f"'{settings.FIREBASE_CREDENTIALS}' and GOOGLE_APPLICATION_CREDENTIALS="
                    f"'{os.getenv('GOOGLE_APPLICATION_CREDENTIALS')}'."
                )
            firebase_admin.initialize_app(credentials.Certificate(cred_path), options)
        else:
            # application default credentials (e.g. on Cloud Run)
            firebase_admin.initialize_app(options=options)

    _DB = firestore.client()
    return _DB


def get_db():
    return init_firebase()


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    return authorization[len("Bearer "):].strip() or None


def verify_id_token(token: str) -> Dict[str, Any]:
    try:
        init_firebase()
        return auth.verify_id_token(token)
    except Exception as e:
        logger.info("Rejected Firebase ID token: %s", e.__class__.__name__)
        raise AuthError() from e


def get_user_tier(uid: str) -> Tier:
    """Tier from the `subscription` map on users/<uid>; FREE when unknown."""
    try:
        snap = get_db().collection("users").document(uid).get()
    except Exception as e:
        logger.warning("Subscription lookup failed for %s, using free tier: %s", uid, e)
        return Tier.FREE
    if not snap.exists:
        return Tier.FREE
    subscription = (snap.to_dict() or {}).get("subscription")
    return tier_from_subscription(bool(subscription), subscription)


def resolve_caller(authorization: Optional[str]):
    """(uid, tier) for the request. Anonymous callers are (None, FREE)."""
    token = bearer_token(authorization)
    if token is None:
        return None, Tier.FREE
    uid = verify_id_token(token)["uid"]
    return uid, get_user_tier(uid)


def save_verification(uid: str, record: Dict[str, Any]) -> Optional[str]:
    doc = {**record, "user_id": uid, "created_at": datetime.utcnow()}
    try:
        # add() returns (write time, DocumentReference)
        _, doc_ref = get_db().collection("verifications").add(doc)
        return doc_ref.id
    except Exception as e:
        logger.warning("Verification history save skipped: %s", e.__class__.__name__)
        return None
