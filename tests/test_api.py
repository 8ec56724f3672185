"""
Tests for the Proctoring HTTP API
"""
import pytest


def _start(client, name="Ada Lovelace", **extra):
    response = client.post('/api/sessions', json={"candidateName": name, **extra})
    assert response.status_code == 201
    return response.json()


class TestHealthEndpoints:
    """Test health check endpoints"""

    def test_health_check(self, client):
        response = client.get('/health')

        assert response.status_code == 200
        data = response.json()
        assert data['status'] == 'healthy'
        assert data['service'] == 'Interview Proctor Service'

    def test_root_endpoint(self, client):
        response = client.get('/')

        assert response.status_code == 200
        data = response.json()
        assert 'message' in data
        assert 'docs' in data

    def test_proctor_health(self, client):
        _start(client)
        data = client.get('/api/health').json()

        assert data['status'] == 'healthy'
        assert data['module'] == 'proctoring'
        assert data['active_sessions'] >= 1


class TestSessionEndpoints:
    """Test session lifecycle endpoints"""

    def test_create_session(self, client):
        data = _start(client, interviewCode="ENG-42")

        assert data['id'].startswith('INT_')
        assert data['candidateName'] == 'Ada Lovelace'
        assert data['interviewCode'] == 'ENG-42'
        assert data['integrityScore'] == 100
        assert data['status'] == 'active'
        assert data['events'] == []

    def test_create_requires_name(self, client):
        assert client.post('/api/sessions', json={}).status_code == 422
        assert client.post('/api/sessions', json={"candidateName": "  "}).status_code == 400

    def test_get_session_errors(self, client):
        assert client.get('/api/sessions/not-an-id').status_code == 400
        assert client.get('/api/sessions/INT_FFFFFFFFFFFF').status_code == 404

    def test_append_events(self, client):
        session = _start(client)
        response = client.post(f"/api/sessions/{session['id']}/events", json={"events": [
            {"type": "NO_FACE", "timestamp": "2024-03-01T10:00:00Z", "message": "No face detected for 11 seconds"},
            {"type": "NO_FACE", "timestamp": 1709287205000},
            {"type": "MULTIPLE_FACES", "severity": "critical", "message": "2 faces detected in frame"},
            {"type": "SUSPICIOUS_OBJECT", "object": "book", "confidence": 0.8}
        ]})

        assert response.status_code == 200
        data = response.json()
        assert data['integrityScore'] == 45
        assert [e['type'] for e in data['events']] == ['NO_FACE', 'NO_FACE', 'MULTIPLE_FACES', 'SUSPICIOUS_OBJECT']

    def test_append_invalid_event(self, client):
        session = _start(client)
        response = client.post(f"/api/sessions/{session['id']}/events", json={"events": [{"type": "TAB_SWITCH"}]})

        assert response.status_code == 400

    def test_end_session_twice(self, client):
        session = _start(client)

        first = client.post(f"/api/sessions/{session['id']}/end")
        second = client.post(f"/api/sessions/{session['id']}/end", json={"endTime": "2099-01-01T00:00:00Z"})

        assert first.status_code == 200
        assert first.json()['status'] == 'completed'
        assert second.status_code == 200
        assert second.json() == first.json()

    def test_append_after_end_conflicts(self, client):
        session = _start(client)
        client.post(f"/api/sessions/{session['id']}/end")

        response = client.post(f"/api/sessions/{session['id']}/events", json={"events": [{"type": "NO_FACE"}]})
        assert response.status_code == 409

    def test_end_before_start(self, client):
        session = _start(client, startTime="2024-03-01T10:00:00Z")
        response = client.post(f"/api/sessions/{session['id']}/end", json={"endTime": "2024-03-01T09:00:00Z"})

        assert response.status_code == 400

    def test_end_unknown(self, client):
        assert client.post('/api/sessions/INT_FFFFFFFFFFFF/end').status_code == 404

    def test_terminate(self, client):
        session = _start(client)
        response = client.post(f"/api/sessions/{session['id']}/terminate", json={"reason": "Left the call"})

        assert response.status_code == 200
        assert response.json()['status'] == 'terminated'
        assert response.json()['notes'] == 'Left the call'

    def test_list_sessions(self, client):
        session = _start(client, name="Grace Hopper")
        client.post(f"/api/sessions/{session['id']}/terminate")

        data = client.get('/api/sessions', params={"status": "terminated", "limit": 500}).json()
        assert session['id'] in [s['id'] for s in data]
        assert all(s['status'] == 'terminated' for s in data)

    def test_end_with_out_of_range_epoch(self, client):
        session = _start(client)
        response = client.post(f"/api/sessions/{session['id']}/end", json={"endTime": 1e20})

        assert response.status_code == 400
        assert client.get(f"/api/sessions/{session['id']}").json()['status'] == 'active'

    def test_event_with_out_of_range_epoch(self, client):
        session = _start(client)
        response = client.post(f"/api/sessions/{session['id']}/events", json={"events": [
            {"type": "NO_FACE", "timestamp": 1e20}
        ]})

        assert response.status_code == 400
        assert client.get(f"/api/sessions/{session['id']}").json()['events'] == []


class TestReportEndpoint:
    """Test report generation"""

    def test_report_review_required(self, client):
        session = _start(client, startTime="2024-03-01T10:00:00Z")
        client.post(f"/api/sessions/{session['id']}/events", json={"events": [
            {"type": "NO_FACE"}, {"type": "NO_FACE"}, {"type": "MULTIPLE_FACES"}, {"type": "SUSPICIOUS_OBJECT"}
        ]})
        client.post(f"/api/sessions/{session['id']}/end", json={"endTime": "2024-03-01T10:30:00Z"})

        response = client.get(f"/api/sessions/{session['id']}/report")

        assert response.status_code == 200
        report = response.json()
        assert report['integrityScore'] == 45
        assert report['recommendation'] == 'REVIEW_REQUIRED'
        assert report['totalEvents'] == 4
        assert report['eventSummary'] == {"NO_FACE": 2, "MULTIPLE_FACES": 1, "SUSPICIOUS_OBJECT": 1}
        assert report['duration'] == 1800
        assert report['needsReview'] is True

    def test_report_pass(self, client):
        session = _start(client)
        report = client.get(f"/api/sessions/{session['id']}/report").json()

        assert report['recommendation'] == 'PASS'
        assert report['grade'] == 'A'


class TestDetectionEndpoints:
    """Test frame and audio ingestion"""

    CENTRED_FACE = {"keypoints": {"noseTip": [320, 240], "leftEye": [290, 220], "rightEye": [350, 220]}}

    def test_frame_with_phone_and_two_faces(self, client):
        session = _start(client)
        response = client.post(f"/api/sessions/{session['id']}/frame", json={
            "faces": [self.CENTRED_FACE, self.CENTRED_FACE],
            "predictions": [{"class": "cell phone", "score": 0.91}, {"class": "person", "score": 0.99}],
            "frameWidth": 640
        })

        assert response.status_code == 200
        data = response.json()
        assert [e['type'] for e in data['events']] == ['MULTIPLE_FACES', 'SUSPICIOUS_OBJECT']
        assert data['events'][1]['message'] == 'cell phone detected with 91% confidence'
        assert data['integrityScore'] == 65
        assert data['framesProcessed'] == 1

        stored = client.get(f"/api/sessions/{session['id']}").json()
        assert stored['integrityScore'] == 65

    def test_audio_noise(self, client):
        session = _start(client)
        url = f"/api/sessions/{session['id']}/audio"

        responses = [client.post(url, json={"magnitudes": [90.0] * 32}).json() for _ in range(11)]

        assert all(r['event'] is None for r in responses[:10])
        assert responses[-1]['event']['type'] == 'BACKGROUND_NOISE'
        assert responses[-1]['level'] == 90.0
        assert responses[-1]['integrityScore'] == 95

    def test_frame_after_end_conflicts(self, client):
        session = _start(client)
        client.post(f"/api/sessions/{session['id']}/end")

        response = client.post(f"/api/sessions/{session['id']}/frame", json={"faces": []})
        assert response.status_code == 409

    def test_frame_unknown_session(self, client):
        assert client.post('/api/sessions/INT_FFFFFFFFFFFF/frame', json={}).status_code == 404
