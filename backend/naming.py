import re

VOWEL_Y = re.compile(r"[aeiou]y$")
ID_SUFFIX = re.compile(r"_id$", re.IGNORECASE)
WORD_SEPARATOR = re.compile(r"[_\s]+")

# Endings that singularize to themselves (status, analysis, address)
SINGULAR_ENDINGS = ("ss", "us", "is")


def to_pascal_case(name: str) -> str:
    """order_items -> OrderItems, "Display Name" -> DisplayName"""
    return "".join(word[:1].upper() + word[1:].lower() for word in WORD_SEPARATOR.split(name))


def to_camel_case(name: str) -> str:
    """created_at -> createdAt"""
    pascal = to_pascal_case(name)
    return pascal[:1].lower() + pascal[1:]


def strip_id_suffix(column: str) -> str:
    return ID_SUFFIX.sub("", column)


def pluralize(word: str) -> str:
    """Plural of a field name. Words already ending in 's' are left alone."""
    lower = word.lower()

    if lower.endswith("s"):
        return word
    if lower.endswith(("sh", "ch", "x", "z")):
        return word + "es"
    if lower.endswith("y") and not VOWEL_Y.search(lower):
        return word[:-1] + "ies"
    return word + "s"


def singularize(word: str) -> str:
    """Inverse of pluralize, used to turn table names into model names"""
    lower = word.lower()

    if lower.endswith("ies") and len(word) > 3:
        return word[:-3] + "y"
    if lower.endswith(("sses", "shes", "ches", "xes", "zes")):
        return word[:-2]
    if lower.endswith(SINGULAR_ENDINGS):
        return word
    if lower.endswith("s") and len(word) > 1:
        return word[:-1]
    return word


def model_name(table_name: str) -> str:
    """users -> User, order_items -> OrderItem"""
    return to_pascal_case(singularize(table_name))


def foreign_key_context(column: str) -> str:
    """
    Last two underscore-separated tokens of a FK column, used to tell
    apart several foreign keys between the same pair of tables.

    created_by_id -> created_by, reviewer_id -> reviewer
    """
    cleaned = strip_id_suffix(column)
    parts = [p for p in cleaned.split("_") if p]
    if len(parts) >= 2:
        return f"{parts[-2]}_{parts[-1]}"
    return parts[0] if parts else cleaned
