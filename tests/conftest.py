import pytest

from parsing import family_from_dict


@pytest.fixture
def family_payload():
    """A three-generation family document as returned by GET /families/{id}."""
    return {
        "apiId": "fam-1",
        "settings": {
            "familyName": "Chen Family",
            "familySubtitle": "Hall of Virtue",
            "hometown": "Quanzhou",
            "theme": "classic",
            "backgroundImages": ["https://cdn.example.com/bg.jpg"],
            "showConnections": True,
            "zoomLevel": 1,
        },
        "generations": [
            {
                "id": 1,
                "apiId": "gen-1",
                "name": "First",
                "members": [
                    {"id": 1, "apiId": "m-1", "name": "Chen Da", "gender": "male",
                     "birthYear": 1900, "deathYear": 1970, "spouseIds": ["m-2", "m-3"]},
                    {"id": 2, "apiId": "m-2", "name": "Lin Shi", "gender": "female", "birthYear": 1902},
                    {"id": 3, "apiId": "m-3", "name": "Wang Shi", "gender": "female", "birthYear": 1910},
                ],
            },
            {
                "id": 2,
                "name": "Second",
                "members": [
                    {"id": 12, "name": "Chen Er", "gender": "male", "birthOrder": 2,
                     "birthYear": 1930, "parentId": "m-1", "motherId": "m-3"},
                    {"id": 13, "name": "Zhao Shi", "gender": "female", "birthYear": 1932},
                    {"id": 11, "name": "Chen Yi", "gender": "male", "birthOrder": 1,
                     "birthYear": 1925, "parentId": "m-1", "motherId": "m-2", "spouseId": 13},
                ],
            },
            {
                "id": 3,
                "name": "Third",
                "members": [
                    {"id": 21, "name": "Chen San", "gender": "male", "birthOrder": 1,
                     "birthYear": 1950, "parentId": 11},
                ],
            },
        ],
    }


@pytest.fixture
def family(family_payload):
    return family_from_dict(family_payload)
