from backend.app.models.user import ROLE_ADMIN, ROLE_TEAM_LEADER, ROLE_USER, User


def test_user_model_has_columns():
    column_names = [column.name for column in User.__table__.columns]
    expected = {"id", "email", "full_name", "hashed_password", "role", "is_active", "last_login", "created_at", "updated_at"}
    assert expected.issubset(set(column_names))


def test_user_model_primary_key():
    pk_columns = [column.name for column in User.__table__.primary_key.columns]
    assert "id" in pk_columns


def test_user_model_email_field_exists():
    email_column = User.__table__.columns.get("email")
    assert email_column is not None


def test_visibility_by_role():
    assert not User(role=ROLE_USER).can_see_all
    assert User(role=ROLE_TEAM_LEADER).can_see_all
    assert User(role=ROLE_ADMIN).can_see_all
    assert User(role=ROLE_ADMIN).is_admin
    assert not User(role=ROLE_TEAM_LEADER).is_admin
