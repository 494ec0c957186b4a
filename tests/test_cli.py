import json

from click.testing import CliRunner

from pocket_ledger.cli import main as cli


def write_ledger(path):
    rows = []
    for month in range(1, 7):
        rows.append(
            f"- date: 2025-{month:02d}-03\n"
            "  description: NETFLIX.COM\n"
            "  amount: -9.99\n"
            "  category: entertainment\n"
        )
    rows.append(
        "- date: 2025-06-04\n"
        "  description: RANDOM STORE #4471\n"
        "  amount: -23.0\n"
    )
    path.write_text("".join(rows))
    return path


def invoke(tmp_path, *args):
    base = [
        '--config', str(tmp_path / 'config.yaml'),
        '--mappings', str(tmp_path / 'mappings.json'),
    ]
    return CliRunner().invoke(cli, base + list(args))


def test_categorize_uses_keywords(tmp_path):
    res = invoke(tmp_path, 'categorize', 'STARBUCKS', '#123')
    assert res.exit_code == 0, res.output
    assert res.output.strip() == 'dining'


def test_learn_then_export(tmp_path):
    for _ in range(2):
        res = invoke(tmp_path, 'learn', 'AMZN MKTP US*1Z2K3', 'entertainment')
        assert res.exit_code == 0, res.output
    assert 'seen 2x' in res.output

    res = invoke(tmp_path, 'categorize', 'AMZN MKTP US*9Y8X7')
    assert res.output.strip() == 'entertainment'

    out = tmp_path / 'export.json'
    res = invoke(tmp_path, 'export-mappings', str(out))
    assert res.exit_code == 0, res.output
    exported = json.loads(out.read_text())
    assert [(e['description'], e['count']) for e in exported] == [('amzn mktp us*1z2k3', 2)]


def test_import_mappings(tmp_path):
    good = tmp_path / 'good.json'
    good.write_text(json.dumps([
        {'description': 'corner shop', 'category': 'groceries', 'count': 3},
    ]))
    res = invoke(tmp_path, 'import-mappings', str(good))
    assert res.exit_code == 0, res.output
    assert 'Imported 1 of 1' in res.output
    stored = json.loads((tmp_path / 'mappings.json').read_text())
    assert stored[0]['category'] == 'groceries'

    bad = tmp_path / 'bad.json'
    bad.write_text(json.dumps([
        {'description': 'gym', 'category': 'health', 'count': 4},
        {'description': 'pool', 'category': 'health'},
    ]))
    res = invoke(tmp_path, 'import-mappings', str(bad))
    assert res.exit_code != 0
    assert 'Invalid mappings file' in res.output
    stored = json.loads((tmp_path / 'mappings.json').read_text())
    assert [m['description'] for m in stored] == ['corner shop']


def test_categories_listing(tmp_path):
    res = invoke(tmp_path, 'categories')
    assert res.exit_code == 0, res.output
    assert res.output.splitlines()[0].startswith('groceries')


def test_recurring_command(tmp_path):
    ledger = write_ledger(tmp_path / 'ledger.yaml')
    res = invoke(tmp_path, 'recurring', str(ledger), '--today', '2025-08-01')
    assert res.exit_code == 0, res.output
    first = res.output.splitlines()[0]
    assert first.startswith('netflix.com')
    assert 'monthly' in first
    assert 'OVERDUE' in first
    assert 'random' not in res.output

    res = invoke(tmp_path, 'recurring', str(ledger), '--json')
    payments = json.loads(res.output)
    assert len(payments) == 1
    assert payments[0]['count'] == 6


def test_insights_command(tmp_path):
    ledger = write_ledger(tmp_path / 'ledger.yaml')
    res = invoke(tmp_path, 'insights', str(ledger), '--json')
    assert res.exit_code == 0, res.output
    ids = [m['id'] for m in json.loads(res.output)]
    assert ids == ['recurring-netflix.com', 'top-category']


def test_bad_ledger_is_reported(tmp_path):
    ledger = tmp_path / 'ledger.yaml'
    ledger.write_text('- description: no date\n  amount: 1\n')
    res = invoke(tmp_path, 'recurring', str(ledger))
    assert res.exit_code != 0
    assert "Missing 'date'" in res.output


def test_dedupe_is_opt_in(tmp_path):
    ledger = tmp_path / 'ledger.yaml'
    dates = ['2025-01-03', '2025-01-03', '2025-02-03', '2025-03-03', '2025-04-03']
    ledger.write_text(''.join(
        f"- date: {d}\n  description: NETFLIX.COM\n  amount: -9.99\n" for d in dates
    ))
    res = invoke(tmp_path, 'recurring', str(ledger))
    assert res.exit_code == 0, res.output
    assert res.output.strip() == 'No recurring payments found.'

    res = invoke(tmp_path, 'recurring', str(ledger), '--json', '--dedupe')
    assert res.exit_code == 0, res.output
    payments = json.loads(res.output)
    assert [p['count'] for p in payments] == [4]
