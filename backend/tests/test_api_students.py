"""
Tests d'intégration API pour les élèves.
"""


def test_creer_puis_lister(client):
    created = client.post("/api/v1/students", json={
        "first_name": "Alice",
        "last_name": "Bernard",
        "email": "alice@school.be",
    })
    client.post("/api/v1/students", json={"first_name": "Jean", "last_name": "Aubert"})

    assert created.status_code == 201
    names = [s["last_name"] for s in client.get("/api/v1/students").json()]
    assert names == ["Aubert", "Bernard"]


def test_email_deja_utilise_409(client):
    payload = {"first_name": "Alice", "last_name": "Bernard", "email": "alice@school.be"}
    client.post("/api/v1/students", json=payload)

    response = client.post("/api/v1/students", json=payload)

    assert response.status_code == 409


def test_prenom_vide_422(client):
    response = client.post("/api/v1/students", json={"first_name": "  ", "last_name": "Dupont"})
    assert response.status_code == 422
