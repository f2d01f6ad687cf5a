"""
Models Package
Exports all database models
"""
from proctor.models.user import User
from proctor.models.quiz import QuizTemplate
from proctor.models.question import Question
from proctor.models.activation import TestActivation
from proctor.models.violation import ViolationRecord
from proctor.models.result import QuizResult, SubmissionType

__all__ = [
    'User',
    'QuizTemplate',
    'Question',
    'TestActivation',
    'ViolationRecord',
    'QuizResult',
    'SubmissionType'
]
