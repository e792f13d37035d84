from rhythm.db.base import Base
from rhythm.db import models  # noqa: F401  ensure models are loaded


def test_metadata_contains_core_tables() -> None:
    table_names = set(Base.metadata.tables.keys())

    assert {"users", "user_rhythms"}.issubset(table_names)


def test_rhythms_reference_users() -> None:
    rhythms = Base.metadata.tables["user_rhythms"]

    assert {fk.target_fullname for fk in rhythms.foreign_keys} == {"users.id"}
    assert "ix_user_rhythms_user_id" in {index.name for index in rhythms.indexes}
