from datetime import time

import pytest
from pydantic import ValidationError

from conftest import auth_headers, make_user, make_window, seed, upcoming
from healthlife.models.enums import UserRole
from healthlife.routes.availability_routes import (
    AvailabilityWindowRequest,
    UpdateAvailabilityRequest,
)

DOCTOR_EMAIL = 'doctor@healthlife.test'
PATIENT_EMAIL = 'patient@healthlife.test'


@pytest.fixture
def clinic(api_session_factory):
    doctor_id, patient_id = seed(
        api_session_factory,
        make_user(DOCTOR_EMAIL, UserRole.DOCTOR, 'Dana', 'Doctor'),
        make_user(PATIENT_EMAIL, UserRole.USER, 'Pat', 'Patient'),
    )
    return {'doctor': doctor_id, 'patient': patient_id}


def test_window_request_parses_clock_times() -> None:
    request = AvailabilityWindowRequest(day_of_week=1, start_time='09:00', end_time='17:30')

    assert request.start_time == time(9, 0)
    assert request.end_time == time(17, 30)
    assert request.is_available is True


@pytest.mark.parametrize(
    'payload',
    [
        {'day_of_week': 7, 'start_time': '09:00', 'end_time': '17:00'},
        {'day_of_week': -1, 'start_time': '09:00', 'end_time': '17:00'},
        {'day_of_week': 1, 'start_time': '9am', 'end_time': '17:00'},
        {'day_of_week': 1, 'start_time': '17:00', 'end_time': '09:00'},
        {'day_of_week': 1, 'start_time': '09:00', 'end_time': '09:00'},
    ],
)
def test_window_request_rejects_invalid_entries(payload: dict) -> None:
    with pytest.raises(ValidationError):
        AvailabilityWindowRequest(**payload)


def test_update_request_rejects_duplicate_days() -> None:
    window = {'day_of_week': 1, 'start_time': '09:00', 'end_time': '17:00'}

    with pytest.raises(ValidationError):
        UpdateAvailabilityRequest(windows=[window, window])


def test_doctor_sets_and_replaces_weekly_availability(client, clinic) -> None:
    first = client.put(
        '/availability/me',
        json={'windows': [
            {'day_of_week': 1, 'start_time': '09:00', 'end_time': '17:00'},
            {'day_of_week': 3, 'start_time': '10:00', 'end_time': '14:00', 'is_available': False},
        ]},
        headers=auth_headers(DOCTOR_EMAIL),
    )
    second = client.put(
        '/availability/me',
        json={'windows': [{'day_of_week': 1, 'start_time': '08:00', 'end_time': '12:00'}]},
        headers=auth_headers(DOCTOR_EMAIL),
    )
    listing = client.get('/availability/me', headers=auth_headers(DOCTOR_EMAIL))

    assert first.status_code == 200
    assert second.status_code == 200
    windows = listing.json()
    assert [window['day_of_week'] for window in windows] == [1, 3]
    assert windows[0]['day_name'] == 'Monday'
    assert windows[0]['start_time'] == '08:00:00'
    assert windows[0]['end_time'] == '12:00:00'
    assert windows[1]['is_available'] is False


def test_patients_cannot_edit_availability(client, clinic) -> None:
    response = client.put(
        '/availability/me',
        json={'windows': [{'day_of_week': 1, 'start_time': '09:00', 'end_time': '17:00'}]},
        headers=auth_headers(PATIENT_EMAIL),
    )

    assert response.status_code == 403


def test_doctor_directory_lists_doctors_with_windows(client, clinic, api_session_factory) -> None:
    seed(api_session_factory, make_window(clinic['doctor'], day=2))

    response = client.get('/availability/doctors')

    assert response.status_code == 200
    doctors = response.json()
    assert [doctor['id'] for doctor in doctors] == [clinic['doctor']]
    assert doctors[0]['availability'][0]['day_name'] == 'Tuesday'


def test_schedule_reports_window_and_booked_intervals(client, clinic, api_session_factory) -> None:
    seed(api_session_factory, make_window(clinic['doctor'], day=1))
    monday = upcoming(1)
    booked = client.post(
        '/appointments',
        json={'doctor_id': clinic['doctor'], 'date': monday.isoformat(), 'start_time': '10:00', 'end_time': '10:45'},
        headers=auth_headers(PATIENT_EMAIL),
    )
    assert booked.status_code == 201

    schedule = client.get(f'/availability/doctors/{clinic["doctor"]}/schedule', params={'date': monday.isoformat()})
    tuesday = client.get(
        f'/availability/doctors/{clinic["doctor"]}/schedule',
        params={'date': upcoming(2).isoformat()},
    )

    body = schedule.json()
    assert body['is_available'] is True
    assert body['day_of_week'] == 1
    assert body['start_time'] == '09:00:00'
    assert len(body['booked']) == 1
    assert body['booked'][0]['start_time'].endswith('10:00:00')
    assert tuesday.json()['is_available'] is False
    assert tuesday.json()['booked'] == []


def test_schedule_for_unknown_doctor_returns_not_found(client, clinic) -> None:
    response = client.get('/availability/doctors/999/schedule', params={'date': upcoming(1).isoformat()})

    assert response.status_code == 404
