from storefront.models import Admin


def test_admins_create_and_list(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=[
        "admins", "create",
        "--name", "Owner",
        "--email", "Owner@RedaStore.lk",
        "--password", "Secret123",
        "--role", "OWNER",
    ])

    assert result.exit_code == 0, result.output
    assert "PASS Created admin owner@redastore.lk" in result.output
    assert db_session.query(Admin).filter_by(email="owner@redastore.lk").one().role == "OWNER"

    listing = runner.invoke(args=["admins", "list"])
    assert "owner@redastore.lk" in listing.output


def test_admins_create_rejects_weak_password(app, db_session):
    result = app.test_cli_runner().invoke(args=[
        "admins", "create",
        "--name", "Owner",
        "--email", "owner@redastore.lk",
        "--password", "weak",
        "--role", "OWNER",
    ])

    assert result.exit_code == 1
    assert "FAIL Password must be at least 8 characters long" in result.output
    assert db_session.query(Admin).count() == 0


def test_system_init_is_idempotent(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "init"])
    assert result.exit_code == 0
    assert "sales" in result.output
