"""
Tests for the quiz catalog: template validation, listing and deletion.
"""
import pytest

from proctor.errors import ValidationError
from proctor.models import Question

from conftest import quiz_payload


class TestCreate:
    def test_create_stores_questions_in_order(self, engine, teacher):
        quiz = engine.catalog.create(quiz_payload())

        assert quiz.id == 'qz1'
        assert [q.id for q in quiz.questions] == ['q1', 'q2', 'q3']
        assert quiz.questions[2].correct_option_index == 2
        assert quiz.time_limit_minutes == 1

    def test_missing_option_slots_are_padded(self, engine, teacher):
        payload = quiz_payload(questions=[
            {'text': 'True or false?', 'options': ['True', 'False'], 'correct_option_index': 1},
        ])
        quiz = engine.catalog.create(payload)

        assert quiz.questions[0].options == ['True', 'False', '', '']
        assert quiz.questions[0].id  # generated

    def test_empty_question_set_is_rejected(self, engine, teacher):
        with pytest.raises(ValidationError):
            engine.catalog.create(quiz_payload(questions=[]))

    def test_question_needs_two_filled_options(self, engine, teacher):
        payload = quiz_payload(questions=[
            {'text': 'Only one?', 'options': ['Yes', '', '  ', ''], 'correct_option_index': 0},
        ])
        with pytest.raises(ValidationError):
            engine.catalog.create(payload)

    @pytest.mark.parametrize('limit', [0, -5, '30', None])
    def test_time_limit_must_be_positive_integer(self, engine, teacher, limit):
        with pytest.raises(ValidationError):
            engine.catalog.create(quiz_payload(time_limit_minutes=limit))

    def test_year_and_semester_are_range_checked(self, engine, teacher):
        with pytest.raises(ValidationError):
            engine.catalog.create(quiz_payload(college_year=5))
        with pytest.raises(ValidationError):
            engine.catalog.create(quiz_payload(semester=0))

    def test_correct_index_out_of_range(self, engine, teacher):
        payload = quiz_payload(questions=[
            {'text': 'Pick', 'options': ['a', 'b', 'c', 'd'], 'correct_option_index': 4},
        ])
        with pytest.raises(ValidationError):
            engine.catalog.create(payload)

    def test_rejected_template_writes_nothing(self, engine, teacher):
        payload = quiz_payload()
        payload['questions'].append({'text': '', 'options': ['a', 'b'], 'correct_option_index': 0})

        with pytest.raises(ValidationError):
            engine.catalog.create(payload)

        assert engine.catalog.get('qz1') is None
        assert Question.query.count() == 0

    def test_retried_create_returns_existing(self, engine, teacher):
        first = engine.catalog.create(quiz_payload())
        again = engine.catalog.create(quiz_payload(title='Changed'))

        assert again.id == first.id
        assert again.title == 'Data Structures Unit Test'
        assert len(engine.catalog.list()) == 1

    def test_question_ids_may_repeat_across_quizzes(self, engine, teacher):
        engine.catalog.create(quiz_payload())
        other = engine.catalog.create(quiz_payload(id='qz2', title='Another'))

        assert [q.id for q in other.questions] == ['q1', 'q2', 'q3']


class TestListAndDelete:
    def test_list_filters(self, engine, teacher):
        engine.catalog.create(quiz_payload())
        engine.catalog.create(quiz_payload(id='qz2', title='Sem 4', semester=4))
        engine.catalog.create(quiz_payload(id='qz3', title='Other teacher', created_by='t9'))

        assert {q.id for q in engine.catalog.list(creator='t1')} == {'qz1', 'qz2'}
        assert [q.id for q in engine.catalog.list(creator='t1', semester=4)] == ['qz2']
        assert engine.catalog.list(college_year=3) == []

    def test_delete_removes_questions_but_not_activations(self, engine, quiz, teacher):
        activation = engine.activations.create(quiz.id, 'CS', 'A', teacher.id)
        engine.activations.set_active(activation.id, True)

        assert engine.catalog.delete('qz1') is True
        assert engine.catalog.get('qz1') is None
        assert Question.query.count() == 0

        # Orphaned, and no longer offered
        assert engine.activations.get(activation.id) is not None
        assert engine.activations.list_eligible('CS', 'A', 2, 3) == []

    def test_delete_unknown(self, engine):
        assert engine.catalog.delete('missing') is False
