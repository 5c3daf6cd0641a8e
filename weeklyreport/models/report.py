"""
Weekly report models.

A report is one user's checklist for one work week.  Tasks carry seven
day flags and a completion flag; a manager's evaluation of a task keeps
a snapshot of what the employee originally submitted.
"""

from weeklyreport.extensions import db

WEEKDAYS = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)

EVALUATION_TYPES = ("REVIEW", "APPROVAL", "REJECTION")


class Report(db.Model):
    """
    Weekly report keyed by (user, week_number, year).

    Once ``is_locked`` is set no task or completion flag may change.
    The lock is enforced by ``report_service`` with a conditional
    UPDATE so an edit cannot slip past a concurrent lock run.
    """

    __tablename__ = "report"
    __table_args__ = (
        db.UniqueConstraint(
            "week_number", "year", "user_id", name="UQ_report_week_year_user"
        ),
        db.CheckConstraint(
            "week_number BETWEEN 1 AND 53", name="CK_report_week_number"
        ),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    week_number = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False, index=True)
    user_id = db.Column(
        db.Integer, db.ForeignKey("user.id"), nullable=False, index=True
    )
    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    is_locked = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(
        db.DateTime, nullable=False, server_default=db.func.current_timestamp()
    )
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        server_default=db.func.current_timestamp(),
        onupdate=db.func.current_timestamp(),
    )

    # -- Relationships -----------------------------------------------------
    user = db.relationship("User", back_populates="reports")
    tasks = db.relationship(
        "ReportTask",
        back_populates="report",
        order_by="ReportTask.id",
        cascade="all, delete-orphan",
    )

    @property
    def total_tasks(self) -> int:
        return len(self.tasks)

    @property
    def completed_tasks(self) -> int:
        return sum(1 for task in self.tasks if task.is_completed)

    def __repr__(self) -> str:
        return f"<Report W{self.week_number}/{self.year} user={self.user_id}>"


class ReportTask(db.Model):
    """Single checklist line of a weekly report."""

    __tablename__ = "report_task"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    report_id = db.Column(
        db.Integer, db.ForeignKey("report.id"), nullable=False, index=True
    )
    task_name = db.Column(db.String(500), nullable=False)
    monday = db.Column(db.Boolean, nullable=False, default=False)
    tuesday = db.Column(db.Boolean, nullable=False, default=False)
    wednesday = db.Column(db.Boolean, nullable=False, default=False)
    thursday = db.Column(db.Boolean, nullable=False, default=False)
    friday = db.Column(db.Boolean, nullable=False, default=False)
    saturday = db.Column(db.Boolean, nullable=False, default=False)
    sunday = db.Column(db.Boolean, nullable=False, default=False)
    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    reason_not_done = db.Column(db.String(1000), nullable=True)
    created_at = db.Column(
        db.DateTime, nullable=False, server_default=db.func.current_timestamp()
    )
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        server_default=db.func.current_timestamp(),
        onupdate=db.func.current_timestamp(),
    )

    # -- Relationships -----------------------------------------------------
    report = db.relationship("Report", back_populates="tasks")
    evaluations = db.relationship(
        "TaskEvaluation",
        back_populates="task",
        order_by="TaskEvaluation.id",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<ReportTask {self.id}: {self.task_name[:30]}>"


class TaskEvaluation(db.Model):
    """
    A manager's verdict on a subordinate's task.

    ``original_*`` columns snapshot the task at evaluation time and are
    never rewritten by later updates.
    """

    __tablename__ = "task_evaluation"
    __table_args__ = (
        db.UniqueConstraint(
            "task_id", "evaluator_id", name="UQ_task_evaluation_task_evaluator"
        ),
        db.CheckConstraint(
            "evaluation_type IN ('REVIEW', 'APPROVAL', 'REJECTION')",
            name="CK_task_evaluation_type",
        ),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    task_id = db.Column(
        db.Integer, db.ForeignKey("report_task.id"), nullable=False, index=True
    )
    evaluator_id = db.Column(
        db.Integer, db.ForeignKey("user.id"), nullable=False, index=True
    )
    original_is_completed = db.Column(db.Boolean, nullable=False)
    original_reason_not_done = db.Column(db.String(1000), nullable=True)
    evaluated_is_completed = db.Column(db.Boolean, nullable=False)
    evaluated_reason_not_done = db.Column(db.String(1000), nullable=True)
    evaluator_comment = db.Column(db.String(1000), nullable=True)
    evaluation_type = db.Column(db.String(20), nullable=False, default="REVIEW")
    created_at = db.Column(
        db.DateTime, nullable=False, server_default=db.func.current_timestamp()
    )
    updated_at = db.Column(
        db.DateTime,
        nullable=False,
        server_default=db.func.current_timestamp(),
        onupdate=db.func.current_timestamp(),
    )

    # -- Relationships -----------------------------------------------------
    task = db.relationship("ReportTask", back_populates="evaluations")
    evaluator = db.relationship("User")

    def __repr__(self) -> str:
        return (
            f"<TaskEvaluation task={self.task_id} "
            f"evaluator={self.evaluator_id} {self.evaluation_type}>"
        )
