"""Unit tests for the document activity log service"""

from datetime import timedelta
from uuid import uuid4

import pytest
from prometheus_client import REGISTRY

from doccontrol.activity.schemas import ActivityLogCreate, ActivityLogEntryResponse
from doccontrol.activity.service import ActivityLogService
from doccontrol.models import DocumentActivityLog
from doccontrol.models.activity_log import ActivityAction
from doccontrol.models.base import utcnow


def failure_count(action: str) -> float:
    return REGISTRY.get_sample_value("doccontrol_activity_log_failures_total", {"action": action}) or 0.0


class TestAppend:

    def test_append_persists_entry(self, db_session, document, users):
        entry = ActivityLogService(db_session).append(
            document_id=document.id,
            user_id=users["approver1"].id,
            action=ActivityAction.APPROVAL,
            description="Approved step 1 of 3",
            old_value="pending",
            new_value="under-review",
            metadata={"step": 1, "total_steps": 3},
        )
        db_session.commit()

        assert entry is not None
        data = entry.to_dict()
        assert data["action"] == "approval"
        assert data["metadata"] == {"step": 1, "total_steps": 3}
        assert data["user_id"] == str(users["approver1"].id)

    def test_accepts_plain_string_action(self, db_session, document, users):
        entry = ActivityLogService(db_session).append(document.id, users["requester"].id, "comment", "Left a note")

        assert entry.action == "comment"

    def test_unknown_action_raises(self, db_session, document, users):
        with pytest.raises(ValueError):
            ActivityLogService(db_session).append(document.id, users["requester"].id, "teleport", "?")

    def test_failed_write_is_swallowed_and_counted(self, db_session, document, users):
        """An insert that violates a foreign key rolls back only its savepoint"""
        before = failure_count("approval")
        document.title = "Renamed in the same transaction"
        db_session.flush()

        entry = ActivityLogService(db_session).append(
            document_id=uuid4(),  # no such document
            user_id=users["approver1"].id,
            action=ActivityAction.APPROVAL,
            description="Approved step 1 of 1",
        )
        db_session.commit()

        assert entry is None
        assert failure_count("approval") == before + 1
        db_session.refresh(document)
        assert document.title == "Renamed in the same transaction"
        assert db_session.query(DocumentActivityLog).count() == 0


class TestList:

    def test_newest_first(self, db_session, document, users):
        now = utcnow()
        for minutes, action in ((3, "upload"), (1, "approval"), (2, "view")):
            db_session.add(
                DocumentActivityLog(
                    document_id=document.id,
                    user_id=users["requester"].id,
                    action=action,
                    description=action,
                    created_at=now - timedelta(minutes=minutes),
                )
            )
        db_session.commit()

        entries = ActivityLogService(db_session).list(document.id)

        assert [e.action for e in entries] == ["approval", "view", "upload"]

    def test_scoped_to_document(self, db_session, document, foreign_document, users):
        ActivityLogService(db_session).append(document.id, users["requester"].id, ActivityAction.VIEW, "Viewed")
        db_session.commit()

        assert ActivityLogService(db_session).list(foreign_document.id) == []


class TestSchemas:

    def test_examples_are_published_in_json_schema(self):
        create_example = ActivityLogCreate.model_json_schema()["example"]
        entry_example = ActivityLogEntryResponse.model_json_schema()["example"]

        assert ActivityLogCreate(**create_example).action == ActivityAction.DOWNLOAD
        assert ActivityLogEntryResponse(**entry_example).metadata == {"step": 1, "total_steps": 3}
