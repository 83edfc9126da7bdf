# =============================================================================
# tests/test_catalog_services.py - Subject and Topic Service Tests
# =============================================================================
# Admin CRUD, archive-instead-of-delete and the public catalogue lookups.
# =============================================================================

from uuid import uuid4

import pytest

from app.exceptions import (
    BadRequestError,
    ConflictError,
    DeleteBlockedError,
    NotFoundError,
    SubjectNotFoundError,
    TopicNotFoundError,
)
from core.models.subject import SubjectCreate, SubjectUpdate
from core.models.topic import TopicCreate, TopicReorderRequest, TopicUpdate
from core.services.subject_service import SubjectService
from core.services.topic_service import TopicService
from tests.conftest import make_question


# =============================================================================
# Subjects
# =============================================================================

class TestSubjectAdmin:

    def test_create_derives_slug_and_order(self, fake_db, catalog, admin_user):
        subject = SubjectService.create_subject(SubjectCreate(name="  Further Mathematics! "), admin_user)

        assert subject["name"] == "Further Mathematics!"
        assert subject["slug"] == "further-mathematics"
        assert subject["display_order"] == 2
        assert subject["topic_count"] == 0

        audit = fake_db.rows("admin_audit_logs")[0]
        assert audit["action"] == "CREATE"
        assert audit["entity_type"] == "subject"
        assert audit["entity_id"] == subject["id"]

    def test_duplicate_name_is_case_insensitive(self, fake_db, catalog, admin_user):
        with pytest.raises(ConflictError) as exc:
            SubjectService.create_subject(SubjectCreate(name="mathematics"), admin_user)
        assert exc.value.code == "SUBJECT_EXISTS"

    def test_blank_name(self, fake_db, admin_user):
        with pytest.raises(BadRequestError):
            SubjectService.create_subject(SubjectCreate(name="   "), admin_user)

    def test_list_counts(self, fake_db, catalog):
        subject_id = catalog["subject"]["id"]
        fake_db.add("questions", make_question(subject_id, catalog["algebra"]["id"]))

        subjects = SubjectService.list_subjects()

        assert len(subjects) == 1
        assert subjects[0]["topic_count"] == 2
        assert subjects[0]["question_count"] == 1

    def test_detail_counts_per_topic(self, fake_db, catalog):
        subject_id = catalog["subject"]["id"]
        for _ in range(2):
            fake_db.add("questions", make_question(subject_id, catalog["geometry"]["id"]))

        detail = SubjectService.get_subject_detail(subject_id)

        assert detail["subject"]["question_count"] == 2
        counts = {t["name"]: t["question_count"] for t in detail["topics"]}
        assert counts == {"Algebra": 0, "Geometry": 2}

    def test_update_name_regenerates_slug(self, fake_db, catalog, admin_user):
        subject_id = catalog["subject"]["id"]

        updated = SubjectService.update_subject(subject_id, SubjectUpdate(name="Maths"), admin_user)

        assert updated["slug"] == "maths"
        assert fake_db.rows("admin_audit_logs")[0]["details"]["changes"] == {"name": "Maths", "slug": "maths"}

    def test_update_without_fields(self, fake_db, catalog, admin_user):
        with pytest.raises(BadRequestError) as exc:
            SubjectService.update_subject(catalog["subject"]["id"], SubjectUpdate(), admin_user)
        assert exc.value.code == "NO_CHANGES"

    def test_delete_blocked_then_archived(self, fake_db, catalog, admin_user):
        subject_id = catalog["subject"]["id"]

        with pytest.raises(DeleteBlockedError) as exc:
            SubjectService.delete_subject(subject_id, admin_user)
        body = exc.value.to_dict()
        assert exc.value.status_code == 409
        assert body["canArchive"] is True
        assert body["details"] == {"topicCount": 2, "questionCount": 0}

        result = SubjectService.delete_subject(subject_id, admin_user, archive=True)
        assert result["archived"] is True
        assert fake_db.rows("subjects")[0]["status"] == "inactive"

    def test_delete_empty_subject(self, fake_db, admin_user):
        subject = fake_db.add("subjects", {"name": "Art", "slug": "art", "status": "active"})

        result = SubjectService.delete_subject(subject["id"], admin_user)

        assert result["deleted"] is True
        assert fake_db.rows("subjects") == []

    def test_missing_subject(self, fake_db, admin_user):
        with pytest.raises(SubjectNotFoundError):
            SubjectService.delete_subject(str(uuid4()), admin_user)


class TestCatalogue:

    def test_lookup_by_slug_or_id(self, fake_db, catalog):
        subject = catalog["subject"]
        assert SubjectService.get_subject("mathematics")["id"] == subject["id"]
        assert SubjectService.get_subject(subject["id"])["slug"] == "mathematics"

    def test_inactive_hidden(self, fake_db, catalog):
        fake_db.add("subjects", {"name": "Latin", "slug": "latin", "status": "inactive", "display_order": 2})
        fake_db.rows("topics")[1]["status"] = "inactive"

        assert [s["slug"] for s in SubjectService.list_active_subjects()] == ["mathematics"]
        assert [t["slug"] for t in SubjectService.list_active_topics(catalog["subject"]["id"])] == ["algebra"]
        with pytest.raises(SubjectNotFoundError):
            SubjectService.get_subject("latin")
        with pytest.raises(TopicNotFoundError):
            SubjectService.get_topic(catalog["geometry"]["id"])


# =============================================================================
# Topics
# =============================================================================

class TestTopicAdmin:

    def test_create_in_subject(self, fake_db, catalog, admin_user):
        topic = TopicService.create_topic(
            TopicCreate(subject_id=catalog["subject"]["id"], name="Quadratic Equations", difficulty="Hard"),
            admin_user,
        )

        assert topic["slug"] == "quadratic-equations"
        assert topic["difficulty"] == "Hard"
        assert topic["display_order"] == 3
        assert topic["subject_name"] == "Mathematics"

    def test_slug_unique_within_subject(self, fake_db, catalog, admin_user):
        with pytest.raises(ConflictError) as exc:
            TopicService.create_topic(TopicCreate(subject_id=catalog["subject"]["id"], name="Algebra"), admin_user)
        assert exc.value.code == "TOPIC_EXISTS"

    def test_same_slug_in_other_subject(self, fake_db, catalog, admin_user):
        other = fake_db.add("subjects", {"name": "Physics", "slug": "physics", "status": "active"})
        topic = TopicService.create_topic(TopicCreate(subject_id=other["id"], name="Algebra"), admin_user)
        assert topic["slug"] == "algebra"

    def test_unknown_subject(self, fake_db, admin_user):
        with pytest.raises(SubjectNotFoundError):
            TopicService.create_topic(TopicCreate(subject_id=uuid4(), name="Optics"), admin_user)

    def test_detail_statistics(self, fake_db, catalog):
        subject_id, topic_id = catalog["subject"]["id"], catalog["algebra"]["id"]
        fake_db.add("questions", make_question(subject_id, topic_id, difficulty="Easy", exam_year=2019))
        fake_db.add("questions", make_question(subject_id, topic_id, status="draft", exam_year=2021))
        fake_db.rows("topics")[0]["subjects"] = {"name": "Mathematics", "slug": "mathematics"}

        detail = TopicService.get_topic_detail(topic_id)

        stats = detail["statistics"]
        assert stats["totalQuestions"] == 2
        assert stats["byDifficulty"] == {"Easy": 1, "Medium": 1, "Hard": 0}
        assert stats["byStatus"] == {"draft": 1, "published": 1, "archived": 0}
        assert list(stats["byYear"]) == [2021, 2019]
        assert detail["topic"]["subject_name"] == "Mathematics"

    def test_rename_conflict(self, fake_db, catalog, admin_user):
        with pytest.raises(ConflictError):
            TopicService.update_topic(catalog["geometry"]["id"], TopicUpdate(name="Algebra"), admin_user)

    def test_delete_with_questions_requires_archive(self, fake_db, catalog, admin_user):
        topic_id = catalog["algebra"]["id"]
        fake_db.add("questions", make_question(catalog["subject"]["id"], topic_id))

        with pytest.raises(DeleteBlockedError):
            TopicService.delete_topic(topic_id, admin_user)

        result = TopicService.delete_topic(topic_id, admin_user, archive=True)
        assert result["archived"] is True
        assert fake_db.rows("topics")[0]["status"] == "inactive"

    def test_reorder(self, fake_db, catalog, admin_user):
        algebra, geometry = catalog["algebra"]["id"], catalog["geometry"]["id"]
        request = TopicReorderRequest(
            subject_id=catalog["subject"]["id"],
            items=[{"id": algebra, "display_order": 2}, {"id": geometry, "display_order": 1}],
        )

        result = TopicService.reorder_topics(request, admin_user)

        assert result["updatedCount"] == 2
        orders = {t["id"]: t["display_order"] for t in fake_db.rows("topics")}
        assert orders == {algebra: 2, geometry: 1}

    def test_reorder_rejects_foreign_topics(self, fake_db, catalog, admin_user):
        other = fake_db.add("subjects", {"name": "Physics", "slug": "physics", "status": "active"})
        request = TopicReorderRequest(
            subject_id=other["id"],
            items=[{"id": catalog["algebra"]["id"], "display_order": 1}],
        )

        with pytest.raises(NotFoundError) as exc:
            TopicService.reorder_topics(request, admin_user)
        assert exc.value.code == "TOPICS_NOT_FOUND"
        assert fake_db.rows("topics")[0]["display_order"] == 1
