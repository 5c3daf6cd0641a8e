"""
Organization structure models.

Offices own departments; a job position pairs a rank-level ``Position``
with a ``Department`` (and carries the department's office id so users
can be filtered by office without a join).  Administrators manage all
of these directly; rows are never deleted while referenced.
"""

from weeklyreport.extensions import db

OFFICE_TYPES = ("HEAD_OFFICE", "FACTORY_OFFICE")


class Office(db.Model):
    """Physical office (head office or factory) owning departments and users."""

    __tablename__ = "office"
    __table_args__ = (
        db.CheckConstraint(
            "type IN ('HEAD_OFFICE', 'FACTORY_OFFICE')", name="CK_office_type"
        ),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(200), unique=True, nullable=False)
    type = db.Column(db.String(20), nullable=False, default="HEAD_OFFICE")
    description = db.Column(db.String(500), nullable=True)
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
    departments = db.relationship(
        "Department", back_populates="office", lazy="dynamic"
    )
    users = db.relationship("User", back_populates="office", lazy="dynamic")

    def __repr__(self) -> str:
        return f"<Office {self.id}: {self.name}>"


class Department(db.Model):
    """
    Department within an office.

    Department names are only unique inside their office; two factories
    may both have a "Phòng Kỹ thuật".
    """

    __tablename__ = "department"
    __table_args__ = (
        db.UniqueConstraint("office_id", "name", name="UQ_department_office_name"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(200), nullable=False)
    office_id = db.Column(
        db.Integer, db.ForeignKey("office.id"), nullable=False, index=True
    )
    description = db.Column(db.String(500), nullable=True)
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
    office = db.relationship("Office", back_populates="departments")
    job_positions = db.relationship(
        "JobPosition", back_populates="department", lazy="dynamic"
    )

    def __repr__(self) -> str:
        return f"<Department {self.id}: {self.name}>"


class Position(db.Model):
    """
    Rank/title definition shared across departments.

    ``level`` orders visibility: 0 is the top executive and larger
    numbers are lower ranks.  ``is_reportable = False`` removes holders
    of this position from every report-obligation and ranking figure.
    """

    __tablename__ = "position"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(200), unique=True, nullable=False)
    description = db.Column(db.String(500), nullable=True)
    level = db.Column(db.Integer, nullable=False, default=7)
    is_management = db.Column(db.Boolean, nullable=False, default=False)
    can_view_hierarchy = db.Column(db.Boolean, nullable=False, default=False)
    is_reportable = db.Column(db.Boolean, nullable=False, default=True)
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
    job_positions = db.relationship(
        "JobPosition", back_populates="position", lazy="dynamic"
    )

    def __repr__(self) -> str:
        return f"<Position {self.name} (level={self.level})>"


class JobPosition(db.Model):
    """
    Concrete seat a user holds: a Position inside a Department.

    ``office_id`` duplicates ``department.office_id``; the organization
    service copies it whenever the department changes.
    """

    __tablename__ = "job_position"
    __table_args__ = (
        db.UniqueConstraint(
            "position_id",
            "job_name",
            "department_id",
            name="UQ_job_position_position_job_department",
        ),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    job_name = db.Column(db.String(200), nullable=False)
    code = db.Column(db.String(50), nullable=False, index=True)
    description = db.Column(db.String(500), nullable=True)
    position_id = db.Column(
        db.Integer, db.ForeignKey("position.id"), nullable=False, index=True
    )
    department_id = db.Column(
        db.Integer, db.ForeignKey("department.id"), nullable=False, index=True
    )
    office_id = db.Column(
        db.Integer, db.ForeignKey("office.id"), nullable=False, index=True
    )
    is_active = db.Column(db.Boolean, nullable=False, default=True)
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
    position = db.relationship("Position", back_populates="job_positions")
    department = db.relationship("Department", back_populates="job_positions")
    office = db.relationship("Office")
    users = db.relationship("User", back_populates="job_position", lazy="dynamic")

    def __repr__(self) -> str:
        return f"<JobPosition {self.code}: {self.job_name}>"
