"""
Tests for task evaluations.
"""

import pytest

from weeklyreport.errors import ConflictError, ForbiddenError, ValidationError
from weeklyreport.models.user import UserRole
from weeklyreport.services import evaluation_service
from weeklyreport.utils.week import WorkWeek

WEEK = WorkWeek(2024, 10)


class TestEvaluations:
    """Permission, snapshot and uniqueness rules."""

    @pytest.fixture(autouse=True)
    def _setup(self, org):
        self.department = org.department(org.office())
        self.manager = org.staff(self.department, level=3, is_management=True)
        self.peer_manager = org.staff(self.department, level=7, is_management=True)
        self.owner = org.staff(self.department, level=7)
        self.report = org.report(self.owner, WEEK, completed=0, total=2, reason="Thiếu vật tư")
        self.task = self.report.tasks[0]

    def test_snapshot_of_task(self):
        """The evaluation stores the task's state at evaluation time."""
        evaluation = evaluation_service.create_evaluation(
            self.manager, self.task.id, True, evaluator_comment="Đã kiểm tra"
        )
        assert evaluation.original_is_completed is False
        assert evaluation.original_reason_not_done == "Thiếu vật tư"
        assert evaluation.evaluated_is_completed is True
        assert self.task.is_completed is False

    def test_one_per_evaluator(self):
        """A second evaluation by the same manager conflicts."""
        evaluation_service.create_evaluation(self.manager, self.task.id, True)
        with pytest.raises(ConflictError):
            evaluation_service.create_evaluation(self.manager, self.task.id, False)

    def test_same_level_forbidden(self):
        """Management at the owner's level cannot evaluate."""
        with pytest.raises(ForbiddenError):
            evaluation_service.create_evaluation(self.peer_manager, self.task.id, True)

    def test_plain_user_forbidden(self):
        """Users without management flags cannot evaluate."""
        with pytest.raises(ForbiddenError):
            evaluation_service.create_evaluation(self.owner, self.task.id, True)

    def test_superadmin_any_task(self, org):
        """SUPERADMIN skips the level rule."""
        root = org.staff(self.department, level=7, role=UserRole.SUPERADMIN.value)
        evaluation = evaluation_service.create_evaluation(root, self.task.id, True)
        assert evaluation.evaluator_id == root.id

    def test_invalid_type(self):
        """Unknown evaluation types are rejected."""
        with pytest.raises(ValidationError):
            evaluation_service.create_evaluation(
                self.manager, self.task.id, True, evaluation_type="GRADE"
            )

    def test_update_keeps_snapshot(self):
        """Updating changes the verdict, never the original snapshot."""
        evaluation = evaluation_service.create_evaluation(self.manager, self.task.id, True)
        evaluation_service.update_evaluation(
            self.manager, evaluation.id, evaluated_is_completed=False, evaluation_type="REJECTION"
        )
        assert evaluation.evaluated_is_completed is False
        assert evaluation.evaluation_type == "REJECTION"
        assert evaluation.original_is_completed is False

    def test_delete_own_only(self, org):
        """Only the evaluator or a SUPERADMIN may delete an evaluation."""
        other = org.staff(self.department, level=4, is_management=True)
        evaluation = evaluation_service.create_evaluation(self.manager, self.task.id, True)
        with pytest.raises(ForbiddenError):
            evaluation_service.delete_evaluation(other, evaluation.id)
        evaluation_service.delete_evaluation(self.manager, evaluation.id)
        assert evaluation_service.get_task_evaluations(self.task.id) == []

    def test_evaluable_tasks(self):
        """Managers see deeper-level tasks in their department only."""
        tasks = evaluation_service.get_evaluable_tasks(self.manager, week_number=10, year=2024)
        assert {task.id for task in tasks} == {task.id for task in self.report.tasks}
        assert evaluation_service.get_evaluable_tasks(self.owner) == []

    def test_by_evaluator_filters(self):
        """Listing by evaluator honours the week filter."""
        evaluation_service.create_evaluation(self.manager, self.task.id, True)
        assert len(evaluation_service.get_evaluations_by_evaluator(self.manager.id)) == 1
        assert evaluation_service.get_evaluations_by_evaluator(
            self.manager.id, week_number=11, year=2024
        ) == []
