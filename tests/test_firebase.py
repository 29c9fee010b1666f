from unittest.mock import MagicMock, patch

import pytest

from fakeverifier import firebase
from fakeverifier.errors import AuthError
from fakeverifier.model_selection import Tier


def _db_with_user(data):
    db = MagicMock()
    snap = db.collection.return_value.document.return_value.get.return_value
    snap.exists = data is not None
    snap.to_dict.return_value = data
    return db


def test_bearer_token_parsing():
    assert firebase.bearer_token("Bearer abc.def") == "abc.def"
    assert firebase.bearer_token("Basic xyz") is None
    assert firebase.bearer_token(None) is None
    assert firebase.bearer_token("Bearer ") is None


def test_invalid_token_raises_auth_error():
    with patch.object(firebase, "init_firebase"), \
         patch.object(firebase.auth, "verify_id_token", side_effect=ValueError("bad token")):
        with pytest.raises(AuthError) as exc_info:
            firebase.verify_id_token("nope")
    assert exc_info.value.status == 401


def test_anonymous_caller_is_free():
    assert firebase.resolve_caller(None) == (None, Tier.FREE)


def test_active_subscription_is_paid():
    db = _db_with_user({"subscription": {"status": "active"}})
    with patch.object(firebase, "get_db", return_value=db), \
         patch.object(firebase, "verify_id_token", return_value={"uid": "u1"}):
        assert firebase.resolve_caller("Bearer tok") == ("u1", Tier.PAID)
    db.collection.assert_called_with("users")


def test_unknown_user_or_lookup_failure_is_free():
    with patch.object(firebase, "get_db", return_value=_db_with_user(None)):
        assert firebase.get_user_tier("ghost") == Tier.FREE
    with patch.object(firebase, "get_db", side_effect=RuntimeError("firestore down")):
        assert firebase.get_user_tier("u1") == Tier.FREE


def test_save_verification_is_best_effort():
    db = MagicMock()
    doc_ref = MagicMock(id="doc-1")
    db.collection.return_value.add.return_value = (MagicMock(), doc_ref)
    with patch.object(firebase, "get_db", return_value=db):
        assert firebase.save_verification("u1", {"verdict": "real"}) == "doc-1"

    saved = db.collection.return_value.add.call_args.args[0]
    assert saved["user_id"] == "u1"
    assert "created_at" in saved

    with patch.object(firebase, "get_db", side_effect=RuntimeError("no credentials")):
        assert firebase.save_verification("u1", {"verdict": "real"}) is None
