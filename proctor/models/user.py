"""
User Model
Portal account; students carry the academic profile the engine reads
"""
from proctor.extensions import db


class User(db.Model):
    """Portal user (admin, teacher, student, developer)"""
    __tablename__ = 'user'

    id = db.Column(db.String(64), primary_key=True)
    username = db.Column(db.String(100), unique=True, nullable=False)
    full_name = db.Column(db.String(150), nullable=False)
    role = db.Column(db.String(20), nullable=False, default='student')
    department = db.Column(db.String(100), nullable=False)

    # Student profile; year/semester may be unset
    division = db.Column(db.String(20))
    prn = db.Column(db.String(50))
    college_year = db.Column(db.Integer)  # 1-4
    semester = db.Column(db.Integer)  # 1-8

    def __repr__(self):
        return f'<User {self.username} ({self.role})>'
