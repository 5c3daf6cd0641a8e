"""
Tests for user provisioning, role changes and removal.
"""

import pytest

from weeklyreport.errors import ConflictError, ForbiddenError, ValidationError
from weeklyreport.models.user import User, UserRole
from weeklyreport.services import user_service
from weeklyreport.utils.week import WorkWeek


class TestProvisioning:
    """create_user and update_user rules."""

    @pytest.fixture(autouse=True)
    def _setup(self, org):
        self.hq = org.office(name="HQ")
        self.factory = org.office(name="Factory", type="FACTORY_OFFICE")
        department = org.department(self.hq)
        self.job_position = org.job_position(org.position(7), department)
        self.superadmin = org.staff(department, role=UserRole.SUPERADMIN.value)
        self.admin = org.staff(department, role=UserRole.ADMIN.value)

    def _create(self, actor, **overrides):
        fields = {
            "employee_code": "NV001",
            "password": "secret123",
            "first_name": "An",
            "last_name": "Nguyễn",
            "job_position_id": self.job_position.id,
        }
        fields.update(overrides)
        return user_service.create_user(actor, **fields)

    def test_create_copies_office(self):
        """The office id comes from the job position."""
        user = self._create(self.admin)
        assert user.office_id == self.hq.id
        assert user.role == UserRole.USER.value

    def test_duplicate_employee_code(self):
        """Employee codes are unique."""
        self._create(self.admin)
        with pytest.raises(ConflictError):
            self._create(self.admin, email="other@example.com")

    def test_office_mismatch(self):
        """The job position must belong to the requested office."""
        with pytest.raises(ValidationError):
            self._create(self.admin, office_id=self.factory.id)

    def test_short_password(self):
        """Passwords shorter than six characters are rejected."""
        with pytest.raises(ValidationError):
            self._create(self.admin, password="123")

    def test_only_superadmin_assigns_roles(self):
        """ADMIN cannot create elevated accounts; SUPERADMIN can."""
        with pytest.raises(ForbiddenError):
            self._create(self.admin, role=UserRole.ADMIN.value)
        user = self._create(self.superadmin, role=UserRole.ADMIN.value)
        assert user.role == UserRole.ADMIN.value

    def test_role_change_requires_superadmin(self):
        """update_user refuses role changes from ADMIN."""
        user = self._create(self.admin)
        with pytest.raises(ForbiddenError):
            user_service.update_user(self.admin, user.id, role=UserRole.OFFICE_ADMIN.value)
        updated = user_service.update_user(
            self.superadmin, user.id, role=UserRole.OFFICE_ADMIN.value
        )
        assert updated.role == UserRole.OFFICE_ADMIN.value

    def test_login_by_email(self):
        """Users can be found by e-mail regardless of case."""
        user = self._create(self.admin, email="an@example.com")
        assert user_service.get_user_by_login("AN@example.com").id == user.id


class TestRemoval:
    """remove_user deletes or deactivates."""

    @pytest.fixture(autouse=True)
    def _setup(self, org):
        department = org.department(org.office())
        self.admin = org.staff(department, role=UserRole.ADMIN.value)
        self.with_reports = org.staff(department)
        self.without_reports = org.staff(department)
        org.report(self.with_reports, WorkWeek(2024, 10), completed=1, total=1)

    def test_user_with_reports_is_deactivated(self, db_session):
        """History is kept by deactivating instead of deleting."""
        assert user_service.remove_user(self.admin, self.with_reports.id) == "deactivated"
        assert db_session.get(User, self.with_reports.id).is_active is False

    def test_user_without_reports_is_deleted(self, db_session):
        """Users with no history are deleted."""
        user_id = self.without_reports.id
        assert user_service.remove_user(self.admin, user_id) == "deleted"
        assert db_session.get(User, user_id) is None

    def test_cannot_remove_self(self):
        """Administrators cannot remove their own account."""
        with pytest.raises(ValidationError):
            user_service.remove_user(self.admin, self.admin.id)
