"""
Routes for the evaluations blueprint.
"""

from flask import jsonify, request
from flask_login import current_user, login_required

from weeklyreport import serializers
from weeklyreport.blueprints.evaluations import bp
from weeklyreport.services import evaluation_service
from weeklyreport.utils.request_args import bool_arg, json_body, pick, require

_EVALUATION_FIELDS = {
    "evaluated_is_completed": "evaluatedIsCompleted",
    "evaluated_reason_not_done": "evaluatedReasonNotDone",
    "evaluator_comment": "evaluatorComment",
    "evaluation_type": "evaluationType",
}


@bp.route("", methods=["POST"])
@login_required
def create_evaluation():
    data = json_body()
    require(data, "taskId", "evaluatedIsCompleted")
    evaluation = evaluation_service.create_evaluation(
        current_user, int(data["taskId"]), **pick(data, **_EVALUATION_FIELDS)
    )
    return jsonify(serializers.evaluation_to_dict(evaluation)), 201


@bp.route("/<int:evaluation_id>", methods=["PATCH"])
@login_required
def update_evaluation(evaluation_id):
    data = json_body()
    evaluation = evaluation_service.update_evaluation(
        current_user, evaluation_id, **pick(data, **_EVALUATION_FIELDS)
    )
    return jsonify(serializers.evaluation_to_dict(evaluation))


@bp.route("/<int:evaluation_id>", methods=["DELETE"])
@login_required
def delete_evaluation(evaluation_id):
    evaluation_service.delete_evaluation(current_user, evaluation_id)
    return "", 204


@bp.route("/task/<int:task_id>")
@login_required
def task_evaluations(task_id):
    evaluations = evaluation_service.get_task_evaluations(task_id)
    return jsonify([serializers.evaluation_to_dict(e) for e in evaluations])


@bp.route("/my")
@login_required
def my_evaluations():
    """Evaluations written by the caller, newest first."""
    evaluations = evaluation_service.get_evaluations_by_evaluator(
        current_user.id,
        week_number=request.args.get("weekNumber", type=int),
        year=request.args.get("year", type=int),
        user_id=request.args.get("userId", type=int),
        evaluation_type=request.args.get("evaluationType"),
    )
    return jsonify([serializers.evaluation_to_dict(e) for e in evaluations])


@bp.route("/evaluable-tasks")
@login_required
def evaluable_tasks():
    tasks = evaluation_service.get_evaluable_tasks(
        current_user,
        week_number=request.args.get("weekNumber", type=int),
        year=request.args.get("year", type=int),
        user_id=request.args.get("userId", type=int),
        is_completed=bool_arg("isCompleted"),
    )
    return jsonify(
        [
            {
                **serializers.task_to_dict(task),
                "report": {
                    "id": task.report.id,
                    "weekNumber": task.report.week_number,
                    "year": task.report.year,
                    "user": serializers.user_brief(task.report.user),
                },
                "evaluations": [serializers.evaluation_to_dict(e) for e in task.evaluations],
            }
            for task in tasks
        ]
    )
