import pytest

from naming import foreign_key_context, model_name, pluralize, singularize, to_camel_case, to_pascal_case


@pytest.mark.parametrize(
    "name, expected",
    [
        ("users", "Users"),
        ("order_items", "OrderItems"),
        ("createdAt", "Createdat"),
        ("USER_ROLE", "UserRole"),
        ("User Accounts", "UserAccounts"),
        ("display  name", "DisplayName"),
    ],
)
def test_to_pascal_case(name, expected):
    assert to_pascal_case(name) == expected


def test_to_camel_case():
    assert to_camel_case("created_at") == "createdAt"
    assert to_camel_case("id") == "id"
    assert to_camel_case("Display Name") == "displayName"


@pytest.mark.parametrize(
    "word, expected",
    [
        ("category", "categories"),
        ("box", "boxes"),
        ("post", "posts"),
        ("posts", "posts"),
        ("branch", "branches"),
        ("day", "days"),
        ("wish", "wishes"),
    ],
)
def test_pluralize(word, expected):
    assert pluralize(word) == expected


@pytest.mark.parametrize(
    "word, expected",
    [
        ("users", "user"),
        ("categories", "category"),
        ("boxes", "box"),
        ("addresses", "address"),
        ("status", "status"),
        ("user", "user"),
    ],
)
def test_singularize(word, expected):
    assert singularize(word) == expected


def test_model_name():
    assert model_name("users") == "User"
    assert model_name("order_items") == "OrderItem"
    assert model_name("category") == "Category"
    assert model_name("User Accounts") == "UserAccount"


def test_foreign_key_context():
    assert foreign_key_context("created_by_id") == "created_by"
    assert foreign_key_context("assigned_to_user_id") == "to_user"
    assert foreign_key_context("reviewer_id") == "reviewer"
    assert foreign_key_context("owner") == "owner"
