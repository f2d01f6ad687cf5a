"""
Test Activation Registry
Maps quiz templates to (department, division) cohorts with an open/closed flag
"""
from collections import namedtuple
import logging

from proctor.errors import ValidationError
from proctor.models import TestActivation, QuizTemplate
from proctor.services.persistence import persistence
from proctor.utils import generate_id

logger = logging.getLogger(__name__)

EligibleTest = namedtuple('EligibleTest', ['activation', 'quiz'])


def matches_profile(activation, quiz, profile):
    """
    Eligibility: active, same cohort, and the quiz targets the student's
    year/semester. Unset profile fields do not filter.
    """
    if activation is None or quiz is None or profile is None:
        return False
    if not activation.is_active or not quiz.questions:
        return False
    if activation.quiz_id != quiz.id:
        return False
    if activation.department != profile.department or activation.division != profile.division:
        return False
    return targets(quiz, profile.college_year, profile.semester)


def targets(quiz, college_year=None, semester=None):
    """Year/semester match; an unset side never filters"""
    if college_year and quiz.college_year and college_year != quiz.college_year:
        return False
    if semester and quiz.semester and semester != quiz.semester:
        return False
    return True


class TestActivationRegistry:
    """Create, toggle, delete and query activations"""
    __test__ = False

    def __init__(self, catalog):
        self.catalog = catalog

    def create(self, quiz_id, department, division, teacher_id, activation_id=None):
        department = (department or '').strip()
        division = (division or '').strip()
        if not department or not division:
            raise ValidationError("Department and division are required")
        if not teacher_id:
            raise ValidationError("Assigning teacher is required")

        quiz = self.catalog.get(quiz_id)
        if quiz is None:
            raise ValidationError(f"Quiz template {quiz_id} does not exist")
        if not quiz.questions:
            raise ValidationError("A quiz with no questions cannot be activated")

        if activation_id:
            existing = self.get(activation_id)
            if existing is not None:
                return existing

        with persistence('create test activation') as session:
            activation = TestActivation(
                id=activation_id or generate_id('ta'),
                quiz_id=quiz.id,
                quiz_title=quiz.title,
                assigned_by=str(teacher_id),
                department=department,
                division=division,
                is_active=False,
            )
            session.add(activation)

        logger.info(
            "Assigned %s to %s - Div %s (inactive)",
            quiz.title, department, division
        )
        return activation

    def get(self, activation_id):
        if not activation_id:
            return None
        with persistence('load test activation'):
            return TestActivation.query.filter_by(id=activation_id).first()

    def set_active(self, activation_id, is_active):
        if not isinstance(is_active, bool):
            raise ValidationError("'is_active' must be a boolean")

        with persistence('update test activation'):
            activation = TestActivation.query.filter_by(id=activation_id).first()
            if activation is None:
                return None
            activation.is_active = is_active

        logger.info("Activation %s is now %s", activation_id, 'open' if is_active else 'closed')
        return activation

    def delete(self, activation_id):
        """Removes future eligibility only; live sessions keep running"""
        with persistence('delete test activation'):
            deleted = TestActivation.query.filter_by(id=activation_id).delete()
        return deleted > 0

    def list(self, teacher_id=None, department=None, division=None):
        with persistence('list test activations'):
            query = TestActivation.query
            if teacher_id is not None:
                query = query.filter_by(assigned_by=str(teacher_id))
            if department is not None:
                query = query.filter_by(department=department)
            if division is not None:
                query = query.filter_by(division=division)
            return query.order_by(TestActivation.seq).all()

    def list_eligible(self, department, division, college_year=None, semester=None):
        """
        Active activations for the cohort whose template matches the
        student's year/semester, in insertion order.

        Orphaned activations (template deleted) are skipped.
        """
        if not department or not division:
            return []

        with persistence('list eligible tests') as session:
            activations = (
                TestActivation.query
                .filter_by(department=department, division=division, is_active=True)
                .order_by(TestActivation.seq)
                .all()
            )
            quiz_ids = {a.quiz_id for a in activations}
            quizzes = {
                q.id: q for q in
                session.query(QuizTemplate).filter(QuizTemplate.id.in_(quiz_ids)).all()
            } if quiz_ids else {}

        eligible = []
        for activation in activations:
            quiz = quizzes.get(activation.quiz_id)
            if quiz is None:
                continue
            if not targets(quiz, college_year, semester) or not quiz.questions:
                continue
            eligible.append(EligibleTest(activation, quiz))
        return eligible
