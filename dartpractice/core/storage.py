"""
Session storage - keeps practice session records per user.

Records live in memory; load_from_api(user_id) refreshes a user's sessions
from the remote document store. Writing records back to the document store
is the caller's job, the store only hands out plain pydantic records.
"""
import logging
import os
import requests
from typing import Dict, Optional, List, Any
from threading import Lock

from pydantic import ValidationError

from dartpractice.core.ledger import AccuracyLedger
from dartpractice.models.schemas import SessionRecord

logger = logging.getLogger("dartpractice.storage")


class SessionStore:
    """Thread-safe in-memory storage for session records, keyed by user and session id."""

    def __init__(self):
        self._store: Dict[str, Dict[str, SessionRecord]] = {}
        self._lock = Lock()
        self._document_store_url = os.environ.get("DOCUMENT_STORE_URL", "http://localhost:8080")
        self._timeout = float(os.environ.get("DOCUMENT_STORE_TIMEOUT", "10"))

    def load_from_api(self, user_id: str) -> dict:
        """
        Load a user's sessions from the document store.

        Replaces whatever is held for that user. Documents that fail
        validation are skipped and reported.

        Args:
            user_id: Identifier from the identity provider

        Returns:
            Dict with success status, loaded session ids, and any errors
        """
        result = {
            "success": False,
            "user_id": user_id,
            "sessions_loaded": [],
            "sessions_failed": [],
            "errors": []
        }

        url = f"{self._document_store_url}/users/{user_id}/sessions"
        logger.info(f"[STORE] Fetching sessions from {url}")

        try:
            response = requests.get(url, timeout=self._timeout)

            if response.status_code == 404:
                result["errors"].append(f"User '{user_id}' not found")
                return result

            response.raise_for_status()
            documents = response.json()
        except requests.RequestException as e:
            result["errors"].append(f"Failed to connect to document store: {e}")
            logger.warning(f"[STORE] Failed to load sessions for {user_id}: {e}")
            return result
        except ValueError as e:
            result["errors"].append(f"Invalid response from document store: {e}")
            logger.warning(f"[STORE] Invalid session payload for {user_id}: {e}")
            return result

        if isinstance(documents, dict):
            documents = documents.get("sessions", [])

        records: Dict[str, SessionRecord] = {}
        for document in documents or []:
            try:
                record = SessionRecord.model_validate(document)
            except ValidationError as e:
                session_id = document.get("id") if isinstance(document, dict) else None
                result["sessions_failed"].append({
                    "session_id": session_id,
                    "error": str(e)
                })
                continue
            records[record.id] = record
            result["sessions_loaded"].append(record.id)

        with self._lock:
            self._store[user_id] = records

        result["success"] = True
        logger.info(f"[STORE] Loaded {len(records)} sessions for {user_id}")
        return result

    def save(self, user_id: str, record: SessionRecord) -> None:
        """Save (or replace) a session record."""
        with self._lock:
            self._store.setdefault(user_id, {})[record.id] = record

    def get(self, user_id: str, session_id: str) -> Optional[SessionRecord]:
        with self._lock:
            return self._store.get(user_id, {}).get(session_id)

    def delete(self, user_id: str, session_id: str) -> bool:
        """Delete a session. Returns True if existed."""
        with self._lock:
            sessions = self._store.get(user_id, {})
            if session_id in sessions:
                del sessions[session_id]
                return True
            return False

    def list_for_user(self, user_id: str) -> List[SessionRecord]:
        """A user's sessions, newest first."""
        with self._lock:
            records = list(self._store.get(user_id, {}).values())
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def ledger_for_user(self, user_id: str) -> AccuracyLedger:
        """All-time ledger: merge of every training session's accuracy data."""
        return AccuracyLedger.merge(
            AccuracyLedger.from_stored(record.training_accuracy)
            for record in self.list_for_user(user_id)
            if record.game_mode == "training" and record.training_accuracy
        )

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "users": len(self._store),
                "sessions": sum(len(s) for s in self._store.values()),
            }

    def clear(self) -> None:
        """Clear all sessions."""
        with self._lock:
            self._store.clear()


# Global singleton instance
session_store = SessionStore()
