from pathlib import Path

from fee_billing.database.bootstrap import _strip_create_db_and_use, iter_sql_statements

DATABASE_DIR = Path(__file__).resolve().parents[2] / "database"


def test_semicolons_in_quotes_and_comments_do_not_split():
    sql = "CREATE TABLE a (x INT); -- note; not a statement\nINSERT INTO a VALUES ('x;y', \"p;q\");"

    statements = list(iter_sql_statements(sql))

    assert len(statements) == 2
    assert statements[0] == "CREATE TABLE a (x INT)"
    assert "'x;y'" in statements[1]
    assert "note" not in statements[1]


def test_escaped_quote_stays_inside_string():
    statements = list(iter_sql_statements("INSERT INTO a VALUES ('it\\'s; fine');SELECT 1"))

    assert statements == ["INSERT INTO a VALUES ('it\\'s; fine')", "SELECT 1"]


def test_database_name_lines_are_stripped():
    sql = "CREATE DATABASE fee_billing_db;\nUSE fee_billing_db;\nCREATE TABLE t (id INT);"

    assert list(iter_sql_statements(_strip_create_db_and_use(sql))) == ["CREATE TABLE t (id INT)"]


def test_shipped_scripts_split_cleanly():
    schema = list(iter_sql_statements(_strip_create_db_and_use((DATABASE_DIR / "schema.sql").read_text("utf-8"))))
    seed = list(iter_sql_statements(_strip_create_db_and_use((DATABASE_DIR / "seed.sql").read_text("utf-8"))))

    assert sum(1 for s in schema if s.upper().startswith("CREATE TABLE")) == 5
    assert all(s.upper().startswith(("INSERT", "DELETE", "SET", "UPDATE")) for s in seed)
