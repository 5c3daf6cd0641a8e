"""
JSON shapes for models returned by the API.

Keys are camelCase to match the payloads the web client consumes.
Only routes call these; services return models or plain dicts.
"""

from weeklyreport.models.report import WEEKDAYS


def office_to_dict(office) -> dict:
    return {
        "id": office.id,
        "name": office.name,
        "type": office.type,
        "description": office.description,
    }


def department_to_dict(department) -> dict:
    return {
        "id": department.id,
        "name": department.name,
        "description": department.description,
        "officeId": department.office_id,
        "office": {"id": department.office.id, "name": department.office.name},
    }


def position_to_dict(position) -> dict:
    return {
        "id": position.id,
        "name": position.name,
        "description": position.description,
        "level": position.level,
        "isManagement": position.is_management,
        "canViewHierarchy": position.can_view_hierarchy,
        "isReportable": position.is_reportable,
    }


def job_position_to_dict(job_position) -> dict:
    return {
        "id": job_position.id,
        "jobName": job_position.job_name,
        "code": job_position.code,
        "description": job_position.description,
        "isActive": job_position.is_active,
        "positionId": job_position.position_id,
        "departmentId": job_position.department_id,
        "officeId": job_position.office_id,
        "position": {
            "id": job_position.position.id,
            "name": job_position.position.name,
            "level": job_position.position.level,
        },
        "department": {
            "id": job_position.department.id,
            "name": job_position.department.name,
        },
    }


def user_brief(user) -> dict:
    """Identity and organization chain of a user, as shown in lists."""
    position = user.position
    department = user.department
    job_position = user.job_position
    return {
        "id": user.id,
        "employeeCode": user.employee_code,
        "firstName": user.first_name,
        "lastName": user.last_name,
        "fullName": user.full_name,
        "jobPosition": (
            {"id": job_position.id, "jobName": job_position.job_name}
            if job_position
            else None
        ),
        "position": (
            {"id": position.id, "name": position.name, "level": position.level}
            if position
            else None
        ),
        "department": (
            {"id": department.id, "name": department.name} if department else None
        ),
        "officeId": user.office_id,
    }


def user_to_dict(user) -> dict:
    data = user_brief(user)
    data.update(
        {
            "email": user.email,
            "phone": user.phone,
            "cardId": user.card_id,
            "role": user.role,
            "isActive": user.is_active,
            "isManager": user.is_management or user.can_view_hierarchy,
            "office": (
                {"id": user.office.id, "name": user.office.name, "type": user.office.type}
                if user.office
                else None
            ),
        }
    )
    return data


def task_to_dict(task) -> dict:
    data = {
        "id": task.id,
        "taskName": task.task_name,
        "isCompleted": task.is_completed,
        "reasonNotDone": task.reason_not_done,
    }
    data.update({day: getattr(task, day) for day in WEEKDAYS})
    return data


def evaluation_to_dict(evaluation) -> dict:
    return {
        "id": evaluation.id,
        "taskId": evaluation.task_id,
        "evaluatorId": evaluation.evaluator_id,
        "evaluator": {
            "id": evaluation.evaluator.id,
            "fullName": evaluation.evaluator.full_name,
            "employeeCode": evaluation.evaluator.employee_code,
        },
        "originalIsCompleted": evaluation.original_is_completed,
        "originalReasonNotDone": evaluation.original_reason_not_done,
        "evaluatedIsCompleted": evaluation.evaluated_is_completed,
        "evaluatedReasonNotDone": evaluation.evaluated_reason_not_done,
        "evaluatorComment": evaluation.evaluator_comment,
        "evaluationType": evaluation.evaluation_type,
        "createdAt": evaluation.created_at.isoformat() if evaluation.created_at else None,
        "updatedAt": evaluation.updated_at.isoformat() if evaluation.updated_at else None,
    }


def report_to_dict(report, include_tasks: bool = True, include_user: bool = False) -> dict:
    data = {
        "id": report.id,
        "weekNumber": report.week_number,
        "year": report.year,
        "userId": report.user_id,
        "isCompleted": report.is_completed,
        "isLocked": report.is_locked,
        "totalTasks": report.total_tasks,
        "completedTasks": report.completed_tasks,
        "createdAt": report.created_at.isoformat() if report.created_at else None,
        "updatedAt": report.updated_at.isoformat() if report.updated_at else None,
    }
    if include_tasks:
        data["tasks"] = [task_to_dict(task) for task in report.tasks]
    if include_user:
        data["user"] = user_brief(report.user)
    return data


def page_to_dict(page, serializer) -> dict:
    """Wrap a Flask-SQLAlchemy pagination object."""
    return {
        "data": [serializer(item) for item in page.items],
        "total": page.total,
        "page": page.page,
        "limit": page.per_page,
        "totalPages": page.pages,
    }
