"""
Activity history in Firestore.

Every finished study interaction (a quiz, a summary, a chat transcript...) is
stored as one document in the ``activities`` collection. When Firebase is not
configured the store is disabled: writes return ``None`` and reads return
nothing, so the study tools keep working.
"""
import json
import logging
import os

import firebase_admin
from firebase_admin import credentials, firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from pydantic import ValidationError

from . import config
from .records import ActivityAnalysis, KnowledgeProfile, UserActivity

logger = logging.getLogger(__name__)

PROFILE_WINDOW = 20
PROFILE_ITEMS = 5


def _certificate(raw):
    # Either the service-account JSON itself or a path to it
    raw = raw.strip()
    if raw.startswith("{"):
        return credentials.Certificate(json.loads(raw))
    return credentials.Certificate(os.path.expanduser(raw))


def init_firestore(raw_credentials=None):
    """Initialize firebase-admin once and return a Firestore client, or None."""
    raw_credentials = raw_credentials if raw_credentials is not None else config.FIREBASE_CREDENTIALS
    if not raw_credentials:
        logger.warning("Firebase is not configured. History and accounts are disabled.")
        return None
    try:
        if not firebase_admin._apps:
            firebase_admin.initialize_app(_certificate(raw_credentials))
        return firestore.client()
    except (ValueError, OSError) as e:
        logger.error("Firebase initialization failed: %s", e)
        return None


class ActivityStore:
    def __init__(self, db, collection=None):
        self.db = db
        self.collection = collection or config.ACTIVITIES_COLLECTION

    @property
    def enabled(self):
        return self.db is not None

    def save_activity(self, user_id, activity_type, topic, subject, data, analysis=None, session_id=None):
        """Store one activity and return its document id (None when disabled or failed)."""
        if not self.enabled or not user_id:
            logger.info("Skipping save of %s activity: persistence unavailable", activity_type)
            return None
        if isinstance(analysis, dict):
            analysis = ActivityAnalysis.model_validate(analysis)
        document = {
            "userId": user_id,
            "type": activity_type,
            "topic": topic,
            "subject": subject,
            "timestamp": firestore.SERVER_TIMESTAMP,
            "data": _plain(data),
            "analysis": analysis.to_dict() if analysis is not None else {},
            "sessionId": session_id,
        }
        try:
            doc_ref = self.db.collection(self.collection).document()
            doc_ref.set(document)
        except Exception as e:
            logger.error("Error saving %s activity: %s", activity_type, e)
            return None
        logger.info("Saved %s activity %s", activity_type, doc_ref.id)
        return doc_ref.id

    def update_activity(self, activity_id, data):
        if not self.enabled or not activity_id:
            return False
        try:
            self.db.collection(self.collection).document(activity_id).update({"data": _plain(data)})
        except Exception as e:
            logger.error("Error updating activity %s: %s", activity_id, e)
            return False
        return True

    def list_activities(self, user_id, limit=20):
        """The user's activities, newest first."""
        if not self.enabled or not user_id:
            return []
        query = (
            self.db.collection(self.collection)
            .where(filter=FieldFilter("userId", "==", user_id))
            .order_by("timestamp", direction=firestore.Query.DESCENDING)
            .limit(limit)
        )
        try:
            snapshots = list(query.stream())
        except Exception as e:
            logger.error("Error loading activities for %s: %s", user_id, e)
            return []
        activities = []
        for snapshot in snapshots:
            record = snapshot.to_dict() or {}
            record["id"] = snapshot.id
            if not record.get("analysis"):
                record.pop("analysis", None)
            try:
                activities.append(UserActivity.model_validate(record))
            except ValidationError as e:
                logger.warning("Skipping unreadable activity %s: %s", snapshot.id, e)
        return activities

    def build_knowledge_profile(self, user_id):
        activities = self.list_activities(user_id, limit=PROFILE_WINDOW)
        profile = KnowledgeProfile()
        for activity in activities:
            _add_unique(profile.recentTopics, [activity.topic])
            if activity.analysis is None:
                continue
            _add_unique(profile.strengths, activity.analysis.strengthsIdentified or [])
            _add_unique(profile.weaknesses, activity.analysis.weaknessesIdentified or [])
            if not profile.lastSessionSummary and activity.analysis.aiFeedback:
                profile.lastSessionSummary = activity.analysis.aiFeedback
        return profile

    def get_student_context(self, user_id):
        """Prompt preamble describing what we know about the student."""
        profile = self.build_knowledge_profile(user_id)
        return render_student_context(profile)


def render_student_context(profile):
    if profile.is_empty():
        return ""
    lines = ["STUDENT PROFILE (adapt explanations to it):"]
    if profile.recentTopics:
        lines.append(f"Recent topics: {', '.join(profile.recentTopics)}")
    if profile.strengths:
        lines.append(f"Strengths: {', '.join(profile.strengths)}")
    if profile.weaknesses:
        lines.append(f"Needs work on: {', '.join(profile.weaknesses)}")
    if profile.lastSessionSummary:
        lines.append(f"Last feedback: {profile.lastSessionSummary}")
    return "\n".join(lines)


def _add_unique(target, items):
    for item in items:
        if item and item not in target and len(target) < PROFILE_ITEMS:
            target.append(item)


def _plain(data):
    """Records and lists of records as Firestore-friendly dicts."""
    if hasattr(data, "to_dict"):
        return data.to_dict()
    if isinstance(data, (list, tuple)):
        return [_plain(item) for item in data]
    if isinstance(data, dict):
        return {key: _plain(value) for key, value in data.items()}
    return data
