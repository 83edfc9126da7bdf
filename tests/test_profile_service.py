# =============================================================================
# tests/test_profile_service.py - Self-Service Profile Tests
# =============================================================================

from uuid import uuid4

import pytest
from pydantic import ValidationError

from app.exceptions import BadRequestError, SubjectNotFoundError, UserNotFoundError
from core.models.profile import ProfileUpdate
from core.services.profile_service import ProfileService
from tests.conftest import make_question


@pytest.fixture
def profile(fake_db, student):
    return fake_db.add("users", {
        "id": str(student.id), "email": student.email, "full_name": "Sade Student",
        "role": "student", "status": "active", "grade": "SS2", "total_questions_answered": 40,
    })


class TestProfileUpdate:

    def test_updates_only_sent_fields(self, fake_db, student, profile):
        updated = ProfileService.update_profile(student.id, ProfileUpdate(grade="SS3"))

        assert updated["grade"] == "SS3"
        assert updated["full_name"] == "Sade Student"
        assert updated["updated_at"]

    def test_totals_and_role_are_not_writable(self):
        payload = ProfileUpdate.model_validate({"full_name": "New", "role": "admin", "xp_points": 9999})
        assert payload.model_dump(exclude_unset=True) == {"full_name": "New"}

    def test_rejects_unknown_grade(self):
        with pytest.raises(ValidationError):
            ProfileUpdate(grade="JSS1")

    def test_empty_update(self, fake_db, student, profile):
        with pytest.raises(BadRequestError) as exc:
            ProfileService.update_profile(student.id, ProfileUpdate())
        assert exc.value.code == "NO_CHANGES"

    def test_missing_profile(self, fake_db):
        with pytest.raises(UserNotFoundError):
            ProfileService.update_profile(uuid4(), ProfileUpdate(full_name="Nobody"))


class TestSubjectPreferences:

    @pytest.fixture
    def english(self, fake_db):
        return fake_db.add("subjects", {
            "name": "English Language", "slug": "english-language", "status": "active", "display_order": 2,
        })

    def test_replaces_existing_preferences(self, fake_db, student, catalog, english):
        maths = catalog["subject"]["id"]
        ProfileService.set_subject_preferences(student.id, [maths])

        saved = ProfileService.set_subject_preferences(student.id, [english["id"], maths, english["id"]])

        assert saved == [english["id"], maths]
        assert sorted(ProfileService.get_subject_preferences(student.id)) == sorted([english["id"], maths])
        assert len(fake_db.rows("user_subject_preferences")) == 2

    def test_empty_list_clears(self, fake_db, student, catalog):
        ProfileService.set_subject_preferences(student.id, [catalog["subject"]["id"]])
        assert ProfileService.set_subject_preferences(student.id, []) == []
        assert fake_db.rows("user_subject_preferences") == []

    def test_unknown_subject_keeps_old_list(self, fake_db, student, catalog):
        ProfileService.set_subject_preferences(student.id, [catalog["subject"]["id"]])

        with pytest.raises(SubjectNotFoundError):
            ProfileService.set_subject_preferences(student.id, [catalog["subject"]["id"], str(uuid4())])

        assert ProfileService.get_subject_preferences(student.id) == [catalog["subject"]["id"]]

    def test_preferred_subjects_with_counts(self, fake_db, student, catalog, english):
        maths = catalog["subject"]["id"]
        for status in ("published", "published", "draft"):
            fake_db.add("questions", make_question(maths, catalog["algebra"]["id"], status=status))
        ProfileService.set_subject_preferences(student.id, [maths, english["id"]])

        subjects = ProfileService.preferred_subjects(student.id)

        assert [(s["name"], s["total_questions"]) for s in subjects] == [
            ("English Language", 0),
            ("Mathematics", 2),
        ]
