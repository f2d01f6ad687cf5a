"""
Tests for activations and cohort eligibility.
"""
import pytest

from proctor.errors import ValidationError

from conftest import quiz_payload


class TestLifecycle:
    def test_created_inactive_with_title_snapshot(self, engine, quiz, teacher):
        activation = engine.activations.create(quiz.id, 'CS', 'A', teacher.id)

        assert activation.is_active is False
        assert activation.quiz_title == 'Data Structures Unit Test'
        assert activation.assigned_by == 't1'
        assert activation.assigned_at is not None

    def test_toggle_open_and_closed(self, engine, quiz, teacher):
        activation = engine.activations.create(quiz.id, 'CS', 'A', teacher.id)

        assert engine.activations.set_active(activation.id, True).is_active is True
        assert engine.activations.set_active(activation.id, False).is_active is False
        assert engine.activations.set_active('missing', True) is None

    def test_set_active_requires_boolean(self, engine, quiz, teacher):
        activation = engine.activations.create(quiz.id, 'CS', 'A', teacher.id)
        with pytest.raises(ValidationError):
            engine.activations.set_active(activation.id, 'yes')

    def test_unknown_template_is_rejected(self, engine, teacher):
        with pytest.raises(ValidationError):
            engine.activations.create('nope', 'CS', 'A', teacher.id)

    def test_blank_cohort_is_rejected(self, engine, quiz, teacher):
        with pytest.raises(ValidationError):
            engine.activations.create(quiz.id, 'CS', ' ', teacher.id)

    def test_delete(self, engine, activation):
        activation_id = activation.id

        assert engine.activations.delete(activation_id) is True
        assert engine.activations.delete(activation_id) is False
        assert engine.activations.list_eligible('CS', 'A') == []


class TestEligibility:
    def test_matching_student_sees_quiz(self, engine, activation):
        eligible = engine.activations.list_eligible('CS', 'A', college_year=2, semester=3)

        assert [(e.activation.id, e.quiz.id) for e in eligible] == [('ta1', 'qz1')]

    def test_other_division_does_not(self, engine, activation):
        assert engine.activations.list_eligible('CS', 'B', college_year=2) == []

    def test_unset_year_and_semester_do_not_filter(self, engine, activation):
        assert len(engine.activations.list_eligible('CS', 'A')) == 1

    def test_year_mismatch_is_filtered(self, engine, activation):
        assert engine.activations.list_eligible('CS', 'A', college_year=3) == []
        assert engine.activations.list_eligible('CS', 'A', college_year=2, semester=4) == []

    def test_inactive_is_hidden(self, engine, quiz, teacher):
        engine.activations.create(quiz.id, 'CS', 'A', teacher.id)
        assert engine.activations.list_eligible('CS', 'A') == []

    def test_insertion_order(self, engine, teacher):
        for n in range(3):
            quiz = engine.catalog.create(quiz_payload(id=f'qz{n}', title=f'Quiz {n}'))
            activation = engine.activations.create(quiz.id, 'CS', 'A', teacher.id, activation_id=f'z{n}')
            engine.activations.set_active(activation.id, True)

        eligible = engine.activations.list_eligible('CS', 'A')

        assert [e.activation.id for e in eligible] == ['z0', 'z1', 'z2']
