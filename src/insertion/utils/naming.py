"""
Naming convention helpers.

    "users" / "user" / "User"  -> "User"         (classify)
    "User"                     -> "UserInsert"   (handler_name)
    "UserInsert"               -> "User"         (model_name_from_handler)
"""

import inflection


def classify(name: str) -> str:
    """
    Return the canonical class name for a table or model name.

    The last word is singularized and the result camelized, so plural table names,
    underscored names and already classified names all land on the same class name.
    """
    name = str(name).strip()
    if not name:
        raise ValueError("model name must not be empty")
    return inflection.camelize(inflection.singularize(name))


def handler_name(model_name: str, suffix: str) -> str:
    return f"{classify(model_name)}{suffix}"


def model_name_from_handler(class_name: str, suffix: str) -> str | None:
    """
    Strip the handler suffix from a class name; None when the name does not follow the convention.
    """
    if not class_name.endswith(suffix) or class_name == suffix:
        return None
    return class_name[: -len(suffix)]


__all__ = ["classify", "handler_name", "model_name_from_handler"]
