"""
Model package — imports all models so Alembic and SQLAlchemy can
discover them automatically when ``flask db`` commands are run.

  - organization.py -> office, department, position, job_position
  - user.py         -> user
  - report.py       -> report, report_task, task_evaluation
"""

from weeklyreport.models.organization import (  # noqa: F401
    Department,
    JobPosition,
    Office,
    Position,
)
from weeklyreport.models.report import (  # noqa: F401
    Report,
    ReportTask,
    TaskEvaluation,
)
from weeklyreport.models.user import User, UserRole  # noqa: F401
