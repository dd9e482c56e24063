from fastapi.testclient import TestClient

from main import app

client = TestClient(app)

SQL = (
    "CREATE TABLE users (id SERIAL PRIMARY KEY, email VARCHAR(255) UNIQUE NOT NULL);"
    "CREATE TABLE posts (id SERIAL PRIMARY KEY, author_id INTEGER REFERENCES users(id));"
)


def test_health():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_convert():
    response = client.post("/convert", json={"sql": SQL})
    assert response.status_code == 200

    body = response.json()
    assert body["tables"] == 2
    assert body["enums"] == 0
    assert body["errors"] == []
    assert body["warnings"] == []
    assert "model Post {" in body["prisma_schema"]
    assert 'posts Post[] @relation("PostToUser")' in body["prisma_schema"]


def test_convert_nothing_found():
    response = client.post("/convert", json={"sql": "DROP TABLE users;"})
    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "No valid table definitions or enums found in SQL"


def test_convert_requires_sql_field():
    response = client.post("/convert", json={})
    assert response.status_code == 422


def test_parse():
    response = client.post("/parse", json={"sql": SQL})
    assert response.status_code == 200

    body = response.json()
    posts = body["tables"][1]
    assert posts["name"] == "posts"
    assert posts["constraints"][0]["kind"] == "FOREIGN KEY"
    assert posts["constraints"][0]["referenced_table"] == "users"


def test_convert_download():
    response = client.post("/convert/download", json={"sql": SQL})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")

    disposition = response.headers["content-disposition"]
    assert disposition.startswith('attachment; filename="schema_')
    assert disposition.endswith('.prisma"')
    assert response.text.startswith("// Generated Prisma schema")


def test_convert_unexpected_error_is_structured(monkeypatch):
    import handlers

    def broken_generate(ir, options=None):
        raise ValueError("boom")

    monkeypatch.setattr(handlers, "generate_schema", broken_generate)

    response = client.post("/convert", json={"sql": SQL})
    assert response.status_code == 422
    assert response.json()["detail"] == {"error": "boom"}
