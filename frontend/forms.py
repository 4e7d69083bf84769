"""Payload helpers shared by the Streamlit forms."""


def clean(values: dict, updating: bool = False) -> dict:
    """Blank fields are left out of a create; on update they go out as null so the API clears them."""
    if updating:
        return {k: (None if v == "" else v) for k, v in values.items()}
    return {k: v for k, v in values.items() if v not in ("", None)}
