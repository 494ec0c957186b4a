# pocket_ledger/cli.py
import json
import logging
import os
from dataclasses import asdict
from datetime import date
from pathlib import Path

import click
from dotenv import load_dotenv

from pocket_ledger.config import detector_settings, keyword_rules, load_config
from pocket_ledger.core.categories import CATEGORIES, CATEGORY_COLORS, CATEGORY_LABELS
from pocket_ledger.core.categorizer import Categorizer
from pocket_ledger.core.mappings import (
    LearnedMappingStore,
    dump_mappings_json,
    load_mappings_json,
)
from pocket_ledger.insights import generate_insights
from pocket_ledger.ledger import dump_recurring_json, load_transactions
from pocket_ledger.recurring import detect_recurring, is_overdue, summarize_recurring
from pocket_ledger.stats import category_stats
from pocket_ledger.utils import dedupe_transactions

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV = "POCKET_LEDGER_LOG_LEVEL"


class LedgerContext:
    def __init__(self, config, mappings_path):
        self.config = config
        self.mappings_path = Path(mappings_path)
        self._categorizer = None

    @property
    def categorizer(self):
        if self._categorizer is None:
            store = LearnedMappingStore()
            if self.mappings_path.exists():
                with self.mappings_path.open(encoding="utf-8") as f:
                    store = LearnedMappingStore.from_records(json.load(f))
            self._categorizer = Categorizer(store, keyword_rules(self.config))
        return self._categorizer

    def save_mappings(self):
        self.mappings_path.parent.mkdir(parents=True, exist_ok=True)
        with self.mappings_path.open("w", encoding="utf-8") as f:
            json.dump(self.categorizer.store.records(), f, indent=2)

    def load_ledger(self, path, auto_categorize=False, dedupe=False):
        txs = load_transactions(path, self.categorizer)
        if dedupe:
            txs = dedupe_transactions(txs)
        if auto_categorize:
            txs = [self.categorizer.categorize_transaction(tx) for tx in txs]
        return txs


def _parse_today(value):
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise click.BadParameter(f"Invalid date: {value}") from exc


@click.group()
@click.option(
    '--config', 'config_path',
    default='config.yaml',
    type=click.Path(dir_okay=False),
    help='Path to config.yaml (defaults are used when missing)'
)
@click.option(
    '--mappings', 'mappings_path',
    default=None,
    type=click.Path(dir_okay=False),
    help='JSON file holding learned category mappings (overrides config)'
)
@click.option(
    '--env-file', 'env_file',
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help=f'Optional .env file, e.g. setting {LOG_LEVEL_ENV}'
)
@click.option(
    '--log-level', 'log_level',
    default=None,
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    help='Logging verbosity'
)
@click.pass_context
def main(ctx, config_path, mappings_path, env_file, log_level):
    """
    Categorize a personal ledger, learn from corrections and surface
    recurring payments and spending insights.
    """
    if env_file:
        load_dotenv(env_file)
    try:
        cfg = load_config(Path(config_path))
    except ValueError as e:
        raise click.ClickException(str(e))

    level = log_level or os.getenv(LOG_LEVEL_ENV) or cfg.get('log_level') or 'WARNING'
    logging.basicConfig(level=str(level).upper())
    logger.debug("Loaded config from %s", config_path)

    ctx.obj = LedgerContext(cfg, mappings_path or cfg['mappings_file'])


@main.command()
@click.argument('description', nargs=-1, required=True)
@click.pass_obj
def categorize(obj, description):
    """Print the category for DESCRIPTION."""
    try:
        click.echo(obj.categorizer.categorize(' '.join(description)))
    except ValueError as e:
        raise click.ClickException(str(e))


@main.command()
@click.argument('description')
@click.argument('category', type=click.Choice(CATEGORIES))
@click.pass_obj
def learn(obj, description, category):
    """Record that DESCRIPTION belongs to CATEGORY."""
    try:
        entry = obj.categorizer.learn_correction(description, category)
    except ValueError as e:
        raise click.ClickException(str(e))
    obj.save_mappings()
    click.echo(f"Learned '{entry.description}' -> {entry.category} (seen {entry.count}x)")


@main.command('export-mappings')
@click.argument('out_path', type=click.Path(dir_okay=False))
@click.pass_obj
def export_mappings(obj, out_path):
    """Write mappings confirmed at least twice to OUT_PATH."""
    try:
        entries = obj.categorizer.export_learned_mappings()
    except ValueError as e:
        raise click.ClickException(str(e))
    Path(out_path).write_text(dump_mappings_json(entries), encoding="utf-8")
    click.echo(f"Exported {len(entries)} mapping(s) to {out_path}.")


@main.command('import-mappings')
@click.argument('in_path', type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def import_mappings(obj, in_path):
    """Merge mappings from IN_PATH; an invalid file changes nothing."""
    try:
        incoming = load_mappings_json(Path(in_path).read_text(encoding="utf-8"))
        changed = obj.categorizer.import_learned_mappings(incoming)
    except ValueError as e:
        raise click.ClickException(f"Invalid mappings file: {e}")
    obj.save_mappings()
    click.echo(f"Imported {changed} of {len(incoming)} mapping(s).")


@main.command()
@click.pass_obj
def categories(obj):
    """List the category tags and their keywords."""
    rules = keyword_rules(obj.config)
    for cat in CATEGORIES:
        keywords = ', '.join(rules[cat]) or '-'
        click.echo(f"{cat:<14}{CATEGORY_LABELS[cat]:<14}{CATEGORY_COLORS[cat]}  {keywords}")


@main.command()
@click.argument('ledger', type=click.Path(exists=True, dir_okay=False))
@click.option('--today', default=None, help='Reference date (YYYY-MM-DD) for overdue checks')
@click.option('--json', 'as_json', is_flag=True, default=False, help='Print JSON records')
@click.option('--auto-categorize', is_flag=True, default=False,
              help='Re-categorize every transaction before detection')
@click.option('--dedupe', is_flag=True, default=False,
              help='Drop repeated (date, description, merchant, amount) rows')
@click.pass_obj
def recurring(obj, ledger, today, as_json, auto_categorize, dedupe):
    """Detect recurring payments in LEDGER (YAML or CSV)."""
    today = _parse_today(today)
    try:
        txs = obj.load_ledger(ledger, auto_categorize, dedupe)
        payments = detect_recurring(txs, detector_settings(obj.config))
    except ValueError as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(dump_recurring_json(payments))
        return
    if not payments:
        click.echo("No recurring payments found.")
        return

    for p in payments:
        flag = ' OVERDUE' if today and is_overdue(p, today) else ''
        click.echo(
            f"{p.merchant:<24}{p.amount:>10.2f}  {p.frequency:<8}"
            f" x{p.count:<3} conf {p.confidence:.2f}"
            f"  next {p.next_expected_date.isoformat()}{flag}"
        )
    summary = summarize_recurring(payments)
    click.echo(
        f"Recurring costs: {summary.total_monthly:.2f}/mo "
        f"(essential {summary.essential_total:.2f}, "
        f"other {summary.non_essential_total:.2f})"
    )


@main.command()
@click.argument('ledger', type=click.Path(exists=True, dir_okay=False))
@click.option('--today', default=None, help='Reference date (YYYY-MM-DD); defaults to the latest transaction')
@click.option('--budget', type=float, default=None, help='Monthly budget for pacing (overrides config)')
@click.option('--json', 'as_json', is_flag=True, default=False, help='Print JSON records')
@click.option('--auto-categorize', is_flag=True, default=False,
              help='Re-categorize every transaction before analysis')
@click.option('--dedupe', is_flag=True, default=False,
              help='Drop repeated (date, description, merchant, amount) rows')
@click.pass_obj
def insights(obj, ledger, today, budget, as_json, auto_categorize, dedupe):
    """Print spending insights for LEDGER."""
    today = _parse_today(today)
    budget = budget if budget is not None else obj.config.get('monthly_budget')
    try:
        txs = obj.load_ledger(ledger, auto_categorize, dedupe)
        payments = detect_recurring(txs, detector_settings(obj.config))
        messages = generate_insights(
            txs, category_stats(txs), payments, today=today,
            budget=float(budget) if budget is not None else None,
        )
    except ValueError as e:
        raise click.ClickException(str(e))

    if as_json:
        click.echo(json.dumps([asdict(m) for m in messages], indent=2))
        return
    if not messages:
        click.echo("Nothing to report.")
        return
    for m in messages:
        click.echo(f"[{m.severity}] {m.title}: {m.description}")


if __name__ == '__main__':
    main()
