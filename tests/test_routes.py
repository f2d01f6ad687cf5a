"""
HTTP surface: role guards, the teacher workflow, the student session flow
and admin maintenance.
"""
import pytest

from proctor.models import QuizResult, ViolationRecord

from conftest import add_user, login, quiz_payload


@pytest.fixture
def admin(app):
    return add_user(id='a1', role='admin')


class TestGuards:
    def test_login_required(self, client):
        response = client.get('/student/tests')

        assert response.status_code == 401
        assert response.get_json()['error'] == 'Unauthorized'

    @pytest.mark.parametrize('url', ['/teacher/quizzes', '/admin/results'])
    def test_student_cannot_use_staff_routes(self, client, student, url):
        login(client, student)

        assert client.get(url).status_code == 403

    def test_developer_shares_admin_routes(self, client):
        login(client, add_user(id='d1', role='developer'))

        assert client.get('/admin/results').status_code == 200


class TestTeacherRoutes:
    def test_create_quiz_and_activate(self, client, teacher):
        login(client, teacher)
        payload = quiz_payload()
        payload.pop('created_by')

        response = client.post('/teacher/quizzes', json=payload)
        assert response.status_code == 201
        assert response.get_json()['created_by'] == 't1'

        response = client.post('/teacher/activations', json={
            'quiz_id': 'qz1', 'department': 'CS', 'division': 'A',
        })
        assert response.status_code == 201
        activation = response.get_json()
        assert activation['is_active'] is False

        response = client.patch(f"/teacher/activations/{activation['id']}",
                                json={'is_active': True})
        assert response.get_json()['is_active'] is True

    def test_invalid_template_is_400(self, client, teacher):
        login(client, teacher)

        response = client.post('/teacher/quizzes', json=quiz_payload(questions=[]))

        assert response.status_code == 400
        assert response.get_json()['error'] == 'ValidationError'

    def test_cannot_delete_someone_elses_quiz(self, client, quiz):
        login(client, add_user(id='t2', role='teacher'))

        assert client.delete('/teacher/quizzes/qz1').status_code == 403

    def test_unknown_activation_is_404(self, client, teacher):
        login(client, teacher)

        assert client.patch('/teacher/activations/nope', json={'is_active': True}).status_code == 404

    def test_results_are_limited_to_own_quizzes(self, client, engine, teacher, active_session):
        engine.report_visibility(active_session.id, visible=False)
        engine.submit(active_session.id)
        engine.results.create({
            'quiz_id': 'other', 'quiz_title': 'Other', 'student_id': 's9',
            'student_name': 'Someone', 'score': 0, 'total_questions': 1,
            'submission_type': 'TIMEOUT',
        })
        login(client, teacher)

        body = client.get('/teacher/results').get_json()

        assert [r['quiz_id'] for r in body['results']] == ['qz1']
        assert body['flagged'] == 0

        summary = client.get('/teacher/violations/summary').get_json()
        assert summary['tests'] == [{'test_name': 'Data Structures Unit Test', 'count': 1}]

    def test_delete_all_violations_needs_confirmation(self, client, engine, teacher):
        engine.violations.append('qz1', 'Ravi Kumar', 'Data Structures Unit Test')
        login(client, teacher)

        assert client.delete('/teacher/violations', json={}).status_code == 400
        assert ViolationRecord.query.count() == 1

        response = client.delete('/teacher/violations', json={'confirm': True})
        assert response.get_json()['deleted_count'] == 1

    def test_delete_unknown_violation_is_404(self, client, teacher):
        login(client, teacher)

        assert client.delete('/teacher/violations/nope').status_code == 404

    def test_can_only_delete_violations_from_own_tests(self, client, engine, quiz, teacher):
        engine.violations.append('qz1', 'Ravi Kumar', 'Data Structures Unit Test',
                                 violation_id='mine')
        engine.violations.append('qz9', 'Ravi Kumar', 'Someone Elses Test',
                                 violation_id='theirs')
        login(client, teacher)

        assert client.delete('/teacher/violations/theirs').status_code == 403
        assert engine.violations.get('theirs') is not None

        assert client.delete('/teacher/violations/mine').status_code == 200
        assert engine.violations.get('mine') is None


class TestStudentFlow:
    def test_full_session(self, client, student, activation):
        login(client, student)

        tests = client.get('/student/tests').get_json()['tests']
        assert [t['activation_id'] for t in tests] == ['ta1']
        assert 'correct_option_index' not in tests[0]['questions'][0]

        response = client.post('/student/tests/ta1/start')
        assert response.status_code == 201
        session_id = response.get_json()['session']['id']

        state = client.post(f'/student/sessions/{session_id}/confirm').get_json()
        assert state['state'] == 'ACTIVE'
        assert state['remaining_seconds'] == 60

        response = client.put(f'/student/sessions/{session_id}/answers',
                              json={'question_id': 'q2', 'option_index': 1})
        assert response.get_json()['answers'] == {'q2': 1}

        response = client.post(f'/student/sessions/{session_id}/submit', json={'confirm': True})
        assert response.status_code == 200
        assert response.get_json()['message'] == 'Test Submitted! Your Score: 1 / 3'

        history = client.get('/student/results').get_json()['results']
        assert [(r['quiz_id'], r['score']) for r in history] == [('qz1', 1)]

    def test_start_again_reports_prior_score(self, client, engine, student, active_session):
        engine.submit(active_session.id)
        login(client, student)

        response = client.post('/student/tests/ta1/start')

        assert response.status_code == 200
        body = response.get_json()
        assert body['status'] == 'ALREADY_ATTEMPTED'
        assert body['score'] == 0
        assert 'session' not in body

    def test_unconfirmed_submit_is_rejected(self, client, student, active_session):
        login(client, student)

        response = client.post(f'/student/sessions/{active_session.id}/submit', json={})

        assert response.status_code == 400
        assert QuizResult.query.count() == 0

    def test_bad_answer_is_400(self, client, student, active_session):
        login(client, student)

        response = client.put(f'/student/sessions/{active_session.id}/answers',
                              json={'question_id': 'q1', 'option_index': 7})

        assert response.status_code == 400

    def test_visibility_fallback_counts_violations(self, client, student, active_session):
        login(client, student)

        body = client.post(f'/student/sessions/{active_session.id}/visibility',
                           json={'visible': False}).get_json()

        assert body['violation']['count'] == 1
        assert body['violation']['warning'] is True

    def test_other_students_session_is_hidden(self, client, active_session):
        login(client, add_user(id='s2', role='student', division='A'))

        assert client.get(f'/student/sessions/{active_session.id}').status_code == 404

    def test_abandon_allows_a_fresh_start(self, client, student, active_session):
        login(client, student)

        assert client.delete(f'/student/sessions/{active_session.id}').status_code == 200
        assert client.post('/student/tests/ta1/start').status_code == 201

    def test_failed_store_returns_503_then_retry(self, client, engine, student, active_session,
                                                 monkeypatch):
        from proctor.errors import PersistenceError

        original_create = engine.results.create

        def failing_create(payload):
            raise PersistenceError('database unavailable')

        login(client, student)
        monkeypatch.setattr(engine.results, 'create', failing_create)
        response = client.post(f'/student/sessions/{active_session.id}/submit',
                               json={'confirm': True})
        assert response.status_code == 503
        assert response.get_json()['persisted'] is False

        start = client.post('/student/tests/ta1/start')
        assert start.status_code == 200
        assert start.get_json()['status'] == 'SUBMISSION_PENDING'
        assert client.delete(f'/student/sessions/{active_session.id}').status_code == 409

        monkeypatch.setattr(engine.results, 'create', original_create)
        response = client.post(f'/student/sessions/{active_session.id}/retry')
        assert response.status_code == 200
        assert QuizResult.query.count() == 1


class TestAdminRoutes:
    def test_prune_requires_months(self, client, admin):
        login(client, admin)

        response = client.delete('/admin/results/prune', json={})

        assert response.status_code == 400
        assert response.get_json()['message'] == 'Months required'

    def test_prune_reports_count(self, client, engine, admin):
        from datetime import datetime, timezone

        engine.results.create({
            'quiz_id': 'qz1', 'quiz_title': 'Old', 'student_id': 's1', 'student_name': 'Ravi',
            'score': 1, 'total_questions': 2,
            'submitted_at': datetime(2020, 1, 1, tzinfo=timezone.utc),
        })
        login(client, admin)

        response = client.post('/admin/results/prune', json={'months': '6'})

        assert response.get_json() == {'deleted_count': 1}

    def test_live_sessions_listing(self, client, admin, active_session):
        login(client, admin)

        sessions = client.get('/admin/sessions').get_json()['sessions']

        assert [s['id'] for s in sessions] == [active_session.id]
        assert sessions[0]['remaining_seconds'] == 60
