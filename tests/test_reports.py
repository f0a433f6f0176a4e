import datetime as dt
import io
import json

from budget_insights.cli import main
from budget_insights.data_loader import Facts
from budget_insights.periods import Period
from budget_insights.reports import (
    build_report,
    export_report_csv,
    format_text_report,
    report_to_dict,
    save_json,
)

from conftest import FOOD, RENT, SALARY, budget, txn


def _report():
    march = [
        txn(5000, kind="income", category=SALARY),
        txn(1200, category=FOOD),
        txn(300, category=RENT),
    ]
    history = march + [txn(40, category=FOOD, date=dt.date(2025, 2, 3))]
    return build_report(
        Period(3, 2025),
        Facts(transactions=march, budgets=[budget(1000)]),
        history=Facts(transactions=history, budgets=[]),
    )


def test_build_report_uses_history_for_charts() -> None:
    report = _report()
    assert report.summary.transaction_count == 3
    assert [r.category for r in report.comparison] == ["Food"]
    assert [(p.label, p.expense) for p in report.monthly] == [("Feb", 40), ("Mar", 1500)]
    assert report.breakdown[0].value == 1240
    assert [i.rule for i in report.insights] == ["over_budget", "top_category", "savings_rate"]


def test_report_json_serializes_decimals_as_strings() -> None:
    buf = io.StringIO()
    save_json(report_to_dict(_report()), buf)
    data = json.loads(buf.getvalue())
    assert data["period"] == {"month": 3, "year": 2025, "label": "March 2025"}
    assert data["summary"]["balance"] == "3500"
    assert data["budget_comparison"][0]["remaining"] == "0"
    assert data["insights"][0]["title"] == "Over Budget: Food"


def test_text_and_csv_output() -> None:
    report = _report()
    text = format_text_report(report)
    assert "=== Budget Insights: March 2025 ===" in text
    assert "[WARNING] Over Budget: Food" in text

    buf = io.StringIO()
    export_report_csv(report, buf)
    lines = buf.getvalue().splitlines()
    assert lines[0] == "Section,Item,Metric,Value"
    assert "Budget Comparison,Food,Actual,1200.00" in lines


def test_cli_writes_report(tmp_path, capsys) -> None:
    tx = tmp_path / "tx.csv"
    tx.write_text(
        "date,description,amount,type,category\n"
        "2025-03-01,Salary,1000,income,Income\n"
        "2025-03-03,Groceries,850,expense,Food\n",
        encoding="utf-8",
    )
    budgets = tmp_path / "budgets.json"
    budgets.write_text(json.dumps([{"category": "Food", "amount": 1000, "month": 3, "year": 2025}]), encoding="utf-8")
    out = tmp_path / "out" / "report.json"

    rc = main(["-i", str(tx), "-b", str(budgets), "--month", "3", "--year", "2025", "--json", str(out)])

    assert rc == 0
    printed = capsys.readouterr().out
    assert "Approaching Budget Limit: Food" in printed
    data = json.loads(out.read_text(encoding="utf-8"))
    assert [i["rule"] for i in data["insights"]] == ["approaching_limit", "top_category"]


def test_cli_reports_bad_period(tmp_path, capsys) -> None:
    tx = tmp_path / "tx.csv"
    tx.write_text("date,description,amount\n2025-03-01,x,-1\n", encoding="utf-8")
    rc = main(["-i", str(tx), "--month", "13", "--year", "2025"])
    assert rc == 2
    assert "Month must be between 1 and 12" in capsys.readouterr().err


def test_cli_reports_undecodable_csv(tmp_path, capsys) -> None:
    tx = tmp_path / "tx.csv"
    tx.write_bytes(b"date,description,amount\n2025-03-01,\xff\xfe,-1\n")
    rc = main(["-i", str(tx), "--month", "3", "--year", "2025"])
    assert rc == 2
    assert "not valid UTF-8" in capsys.readouterr().err
