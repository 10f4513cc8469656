from datetime import date

from spendsight.ml.training import run_sample_analysis
from spendsight.ml.training.run_sample_analysis import generate_sample_transactions
from spendsight.schemas.transaction import Category
from spendsight.services.analysis import AnalysisEngine

def test_generate_sample_transactions():
    transactions = generate_sample_transactions(n_samples=200, seed=1, end=date(2025, 12, 31))

    expenses = [t for t in transactions if t.is_expense]
    income = [t for t in transactions if not t.is_expense]
    assert len(expenses) == 200
    assert len(income) == 12
    assert all(t.category == Category.INCOME for t in income)
    assert all(date(2024, 12, 31) <= t.occurred_on < date(2025, 12, 31) for t in transactions)

def test_generator_is_seeded():
    first = generate_sample_transactions(n_samples=50, seed=4, end=date(2025, 6, 1))
    second = generate_sample_transactions(n_samples=50, seed=4, end=date(2025, 6, 1))

    assert [t.amount for t in first] == [t.amount for t in second]

def test_sample_data_produces_full_analysis():
    transactions = generate_sample_transactions(n_samples=300, seed=42, end=date(2025, 12, 31))
    result = AnalysisEngine(seed=42, warm_start=False).analyze(transactions, as_of=date(2025, 12, 31))

    assert not result.is_minimal
    assert len(result.forecasts) > 0
    assert 0 < len(result.anomalies) <= 10
    assert all(f.predicted_amount >= 0 for f in result.forecasts)

def test_main_prints_summary(monkeypatch, capsys):
    monkeypatch.setattr(
        run_sample_analysis, 'generate_sample_transactions',
        lambda: generate_sample_transactions(n_samples=120, seed=3, end=date(2025, 12, 31))
    )

    run_sample_analysis.main()

    out = capsys.readouterr().out
    assert "Generated 132 transactions" in out
    assert "Forecasts:" in out
    assert "Overall confidence:" in out
