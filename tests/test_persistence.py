from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from firebase_admin import firestore

from stubro.persistence import ActivityStore, init_firestore, render_student_context
from stubro.records import Flashcard, KnowledgeProfile


class FakeDocument:
    def __init__(self, collection, doc_id):
        self.collection = collection
        self.id = doc_id

    def set(self, data):
        self.collection.docs[self.id] = dict(data)

    def update(self, data):
        self.collection.docs[self.id].update(data)


class FakeQuery:
    def __init__(self, collection):
        self.collection = collection
        self.filters = []
        self.order = None
        self.count = None

    def where(self, filter):
        self.filters.append((filter.field_path, filter.op_string, filter.value))
        return self

    def order_by(self, field, direction):
        self.order = (field, direction)
        return self

    def limit(self, count):
        self.count = count
        return self

    def stream(self):
        rows = [(doc_id, doc) for doc_id, doc in self.collection.docs.items()
                if all(op == "==" and doc.get(field) == value for field, op, value in self.filters)]
        if self.order is not None:
            field, direction = self.order
            rows.sort(key=lambda row: row[1][field], reverse=direction == firestore.Query.DESCENDING)
        for doc_id, doc in rows[:self.count]:
            yield SimpleNamespace(id=doc_id, to_dict=lambda doc=doc: dict(doc))


class FakeCollection:
    def __init__(self):
        self.docs = {}

    def document(self, doc_id=None):
        return FakeDocument(self, doc_id or f"doc{len(self.docs) + 1}")

    def where(self, filter):
        return FakeQuery(self).where(filter=filter)


class FakeFirestore:
    def __init__(self):
        self.collections = {}

    def collection(self, name):
        return self.collections.setdefault(name, FakeCollection())


@pytest.fixture
def db():
    return FakeFirestore()


@pytest.fixture
def store(db):
    return ActivityStore(db, collection="activities")


def seed(db, doc_id, user_id, topic, day, analysis=None, activity_type="quiz"):
    db.collection("activities").docs[doc_id] = {
        "userId": user_id, "type": activity_type, "topic": topic, "subject": "Physics",
        "timestamp": datetime(2026, 1, day, tzinfo=timezone.utc), "data": {},
        "analysis": analysis or {}, "sessionId": "session_1",
    }


def test_save_activity_document_shape(store, db):
    doc_id = store.save_activity("u1", "flashcards", "Flashcards: Physics", "Physics",
                                 [Flashcard(term="Lens", definition="Curved glass")], session_id="session_9")
    saved = db.collection("activities").docs[doc_id]
    assert saved["userId"] == "u1"
    assert saved["type"] == "flashcards"
    assert saved["timestamp"] is firestore.SERVER_TIMESTAMP
    assert saved["data"] == [{"term": "Lens", "definition": "Curved glass"}]
    assert saved["analysis"] == {}
    assert saved["sessionId"] == "session_9"


def test_save_activity_with_analysis(store, db):
    doc_id = store.save_activity("u1", "quiz", "Mastery Test: Physics", "Physics", [],
                                 analysis={"score": "3/5", "aiFeedback": "Nice"})
    assert db.collection("activities").docs[doc_id]["analysis"] == {"score": "3/5", "aiFeedback": "Nice"}


def test_disabled_store_skips_writes():
    store = ActivityStore(None)
    assert not store.enabled
    assert store.save_activity("u1", "quiz", "t", "s", {}) is None
    assert store.update_activity("doc1", {}) is False
    assert store.list_activities("u1") == []


def test_guest_activity_is_not_saved(store, db):
    assert store.save_activity(None, "quiz", "t", "s", {}) is None
    assert db.collection("activities").docs == {}


def test_update_activity_rewrites_data(store, db):
    doc_id = store.save_activity("u1", "chat", "Chat: Physics", "Physics", [{"role": "model", "text": "Hi"}])
    assert store.update_activity(doc_id, [{"role": "model", "text": "Hi"}, {"role": "user", "text": "Yo"}])
    assert len(db.collection("activities").docs[doc_id]["data"]) == 2


def test_list_activities_newest_first_for_user(store, db):
    seed(db, "a", "u1", "Light", 1)
    seed(db, "b", "u1", "Motion", 3)
    seed(db, "c", "u2", "Cells", 2)

    activities = store.list_activities("u1")

    assert [a.id for a in activities] == ["b", "a"]
    assert activities[0].topic == "Motion"
    assert activities[0].analysis is None


def test_list_activities_skips_unknown_types(store, db):
    seed(db, "a", "u1", "Light", 1)
    seed(db, "b", "u1", "Old tool", 2, activity_type="podcast")

    assert [a.id for a in store.list_activities("u1")] == ["a"]


def test_knowledge_profile_and_context(store, db):
    seed(db, "a", "u1", "Light", 1, {"strengthsIdentified": ["Ray diagrams"], "weaknessesIdentified": ["Lens formula"],
                                     "aiFeedback": "Old feedback"})
    seed(db, "b", "u1", "Motion", 2, {"strengthsIdentified": ["Graphs"], "aiFeedback": "Latest feedback"})

    profile = store.build_knowledge_profile("u1")

    assert profile.recentTopics == ["Motion", "Light"]
    assert profile.strengths == ["Graphs", "Ray diagrams"]
    assert profile.weaknesses == ["Lens formula"]
    assert profile.lastSessionSummary == "Latest feedback"

    context = store.get_student_context("u1")
    assert "Recent topics: Motion, Light" in context
    assert "Needs work on: Lens formula" in context


def test_empty_profile_gives_no_context():
    assert render_student_context(KnowledgeProfile()) == ""


def test_init_firestore_without_credentials():
    assert init_firestore("") is None
