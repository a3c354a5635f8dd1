import pytest

from conftest import auth_headers, make_user, seed
from healthlife.models.enums import UserRole
from healthlife.models.recipe import Ingredient, Recipe, RecipeStep

DOCTOR_EMAIL = 'doctor@healthlife.test'
PATIENT_EMAIL = 'patient@healthlife.test'


@pytest.fixture
def recipes(api_session_factory):
    doctor_id, _ = seed(
        api_session_factory,
        make_user(DOCTOR_EMAIL, UserRole.DOCTOR, 'Dana', 'Doctor'),
        make_user(PATIENT_EMAIL, UserRole.USER, 'Pat', 'Patient'),
    )
    soup_id, salad_id = seed(
        api_session_factory,
        Recipe(
            title='Vegetarian Lentil Soup',
            description='A hearty, fiber-rich soup.',
            price=1000,
            cooking_time='40 minutes',
            author_id=doctor_id,
            ingredients=[
                Ingredient(name='Lentils', quantity='1 cup'),
                Ingredient(name='Vegetable broth', quantity='4 cups'),
            ],
            steps=[
                RecipeStep(position=2, content='Simmer until lentils are tender.'),
                RecipeStep(position=1, content='Saute onions, carrots, and celery.'),
            ],
        ),
        Recipe(
            title='Greek Yogurt Chicken Salad',
            description='Creamy chicken salad with Greek yogurt.',
            price=1500,
            cooking_time='20 minutes',
        ),
    )
    return {'soup': soup_id, 'salad': salad_id}


def test_list_recipes_returns_summaries_sorted_by_title(client, recipes) -> None:
    response = client.get('/recipes', headers=auth_headers(PATIENT_EMAIL))

    assert response.status_code == 200
    body = response.json()
    assert [recipe['title'] for recipe in body] == ['Greek Yogurt Chicken Salad', 'Vegetarian Lentil Soup']
    assert body[0]['author_name'] is None
    assert body[1]['author_name'] == 'Dana Doctor'
    assert body[1]['ingredient_count'] == 2
    assert body[1]['step_count'] == 2


def test_get_recipe_returns_ingredients_and_ordered_steps(client, recipes) -> None:
    response = client.get(f'/recipes/{recipes["soup"]}', headers=auth_headers(DOCTOR_EMAIL))

    assert response.status_code == 200
    body = response.json()
    assert body['price'] == 1000
    assert body['cooking_time'] == '40 minutes'
    assert [ingredient['name'] for ingredient in body['ingredients']] == ['Lentils', 'Vegetable broth']
    assert [step['position'] for step in body['steps']] == [1, 2]


def test_get_unknown_recipe_returns_not_found(client, recipes) -> None:
    response = client.get('/recipes/999', headers=auth_headers(PATIENT_EMAIL))

    assert response.status_code == 404
    assert response.json() == {'detail': 'Recipe not found.'}
