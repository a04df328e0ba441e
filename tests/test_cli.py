import pytest
from typer.testing import CliRunner

from shopmata.cli import app
from shopmata.db import AiSuggestion, Product, Store, create_db_engine, create_session_factory, init_db, session_scope

runner = CliRunner()


@pytest.fixture
def database_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'shopmata.db'}"
    monkeypatch.setenv("SHOPMATA_DATABASE_URL", url)
    monkeypatch.delenv("SHOPMATA_LOG_FILE", raising=False)
    return url


@pytest.fixture
def store_id(database_url):
    engine = create_db_engine(database_url)
    init_db(engine)
    with session_scope(create_session_factory(engine)) as session:
        store = Store(name="CLI Pawn")
        session.add(store)
        session.flush()
        product = Product(store_id=store.id, title="Gold Ring", description="old copy")
        session.add(product)
        session.flush()
        session.add(AiSuggestion(
            store_id=store.id,
            suggestable_type="product",
            suggestable_id=product.id,
            type="description",
            suggested_content="new copy",
        ))
        store_id = store.id
    engine.dispose()
    return store_id


def test_init_db(tmp_path, monkeypatch):
    monkeypatch.delenv("SHOPMATA_DATABASE_URL", raising=False)
    path = tmp_path / "fresh.db"

    result = runner.invoke(app, ["init-db", "--database-url", f"sqlite:///{path}"])

    assert result.exit_code == 0
    assert "Database ready" in result.output
    assert path.exists()


def test_tools_list(database_url):
    result = runner.invoke(app, ["tools", "list"])

    assert result.exit_code == 0
    assert "Tools (12)" in result.output


def test_tools_show(database_url):
    result = runner.invoke(app, ["tools", "show", "get_sales_report"])

    assert result.exit_code == 0
    assert "this_week" in result.output


def test_tools_show_unknown(database_url):
    result = runner.invoke(app, ["tools", "show", "get_payroll"])

    assert result.exit_code == 1
    assert "Unknown tool" in result.output


def test_tools_run(store_id):
    result = runner.invoke(
        app, ["tools", "run", "get_sales_summary", "--store-id", str(store_id), "--params", '{"period": "today"}']
    )

    assert result.exit_code == 0
    assert "revenue" in result.output


@pytest.mark.parametrize("params, message", [
    ("{period: today}", "not valid JSON"),
    ('["today"]', "must be a JSON object"),
])
def test_tools_run_rejects_bad_params(store_id, params, message):
    result = runner.invoke(app, ["tools", "run", "get_sales_summary", "--store-id", str(store_id), "--params", params])

    assert result.exit_code == 1
    assert message in result.output


def test_tools_run_error_result_exits_nonzero(store_id):
    result = runner.invoke(
        app, ["tools", "run", "get_end_of_day_report", "--store-id", str(store_id), "--params", '{"date": "soon"}']
    )

    assert result.exit_code == 1
    assert "Invalid date" in result.output


def test_suggestions_list_and_accept(store_id, database_url):
    listed = runner.invoke(app, ["suggestions", "list", "--store-id", str(store_id)])
    assert listed.exit_code == 0
    assert "Pending suggestions (1)" in listed.output

    accepted = runner.invoke(app, ["suggestions", "accept", "1", "--store-id", str(store_id)])
    assert accepted.exit_code == 0
    assert "Accepted description suggestion 1" in accepted.output

    engine = create_db_engine(database_url)
    with session_scope(create_session_factory(engine)) as session:
        assert session.get(Product, 1).description == "new copy"
    engine.dispose()

    empty = runner.invoke(app, ["suggestions", "list", "--store-id", str(store_id)])
    assert "No pending suggestions" in empty.output


def test_suggestions_reject_in_wrong_store(store_id):
    result = runner.invoke(app, ["suggestions", "reject", "1", "--store-id", str(store_id + 1)])

    assert result.exit_code == 1
    assert "not found" in result.output


def test_usage_without_calls(store_id):
    result = runner.invoke(app, ["usage", "--store-id", str(store_id)])

    assert result.exit_code == 0
    assert "No AI usage recorded" in result.output
