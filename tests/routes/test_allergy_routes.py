import pytest

from conftest import auth_headers, make_user, seed
from healthlife.models.allergy import Allergy, AllergySolution
from healthlife.models.enums import UserRole

PATIENT_EMAIL = 'patient@healthlife.test'


@pytest.fixture
def allergies(api_session_factory):
    seed(api_session_factory, make_user(PATIENT_EMAIL, UserRole.USER, 'Pat', 'Patient'))
    peanut_id, lactose_id = seed(
        api_session_factory,
        Allergy(
            name='Peanut',
            solutions=[
                AllergySolution(solution='Avoid foods containing peanuts.'),
                AllergySolution(solution='Carry an epinephrine auto-injector.'),
            ],
        ),
        Allergy(name='Lactose', solutions=[AllergySolution(solution='Choose lactose-free dairy.')]),
    )
    return {'peanut': peanut_id, 'lactose': lactose_id}


def test_list_allergies_includes_solutions_sorted_by_name(client, allergies) -> None:
    response = client.get('/allergies', headers=auth_headers(PATIENT_EMAIL))

    assert response.status_code == 200
    body = response.json()
    assert [allergy['name'] for allergy in body] == ['Lactose', 'Peanut']
    assert [solution['solution'] for solution in body[1]['solutions']] == [
        'Avoid foods containing peanuts.',
        'Carry an epinephrine auto-injector.',
    ]


def test_get_allergy_by_id(client, allergies) -> None:
    response = client.get(f'/allergies/{allergies["lactose"]}', headers=auth_headers(PATIENT_EMAIL))

    assert response.status_code == 200
    assert response.json()['name'] == 'Lactose'
    assert len(response.json()['solutions']) == 1


def test_get_unknown_allergy_returns_not_found(client, allergies) -> None:
    response = client.get('/allergies/999', headers=auth_headers(PATIENT_EMAIL))

    assert response.status_code == 404
    assert response.json() == {'detail': 'Allergy not found.'}


def test_allergies_require_authentication(client, allergies) -> None:
    assert client.get('/allergies').status_code in {401, 403}
