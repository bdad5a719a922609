"""Command-line interface for the mortgage calculator.

This module uses the ``click`` library to implement a multi-command
interface. Users can run a full simulation (capacity, price, loan, fees,
TAEG and schedule), print the schedule of a single loan or itemize the fees
of a purchase. Results can be printed to the terminal or exported to JSON.
"""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import click

from .amortization import generate_schedule, summarize, yearly_totals
from .config import FormulaConstants, load_constants
from .data_models import BudgetItem, GigogneConfig, LoanTerms, MortgageInput
from .engine import recalculate
from .exceptions import ConfigurationError, MortgageCalcError
from .fees import fee_breakdown, notary_fee_details
from .formatter import print_fees, print_schedule, print_summary, print_yearly
from .insurance import monthly_insurance, rate_for_age
from .logging import setup_logging
from .utils import parse_amount, parse_budget_item, parse_rate_table

DEFAULT_RATES = ("15=3.09", "20=3.17", "25=3.25")


def _amount(value: Optional[str], default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        return parse_amount(value)
    except MortgageCalcError as exc:
        raise click.BadParameter(str(exc))


def _budget_items(values: Tuple[str, ...], label: str) -> list[BudgetItem]:
    items = []
    for value in values:
        try:
            amount, recurrence = parse_budget_item(value)
            items.append(BudgetItem(amount=amount, recurrence=recurrence, label=label))
        except MortgageCalcError as exc:
            raise click.BadParameter(str(exc))
    return items


def build_input_from_options(
    incomes: Tuple[str, ...],
    expenses: Tuple[str, ...],
    age: Optional[int],
    capital: Optional[str],
    duration: int,
    dossier_fee: Optional[str],
    category: str,
    price: Optional[str],
    rates: Tuple[str, ...],
    rate_override: Optional[float] = None,
    gigogne_rate: Optional[float] = None,
    gigogne_duration: Optional[int] = None,
    gigogne_max: Optional[str] = None,
) -> MortgageInput:
    try:
        rate_table = parse_rate_table(rates or DEFAULT_RATES)
    except MortgageCalcError as exc:
        raise click.BadParameter(str(exc))
    gigogne = None
    if gigogne_duration:
        gigogne = GigogneConfig(
            enabled=True,
            secondary_rate=gigogne_rate or 0.0,
            secondary_duration_years=gigogne_duration,
            max_secondary_amount=_amount(gigogne_max),
        )
    return MortgageInput(
        incomes=_budget_items(incomes, "income"),
        expenses=_budget_items(expenses, "expense"),
        rates=rate_table,
        age=age,
        capital=_amount(capital),
        duration_years=duration,
        dossier_fee=_amount(dossier_fee),
        property_category=category,
        property_price=_amount(price),
        gigogne=gigogne,
        rate_override=rate_override,
    )


def load_input_file(path: Path) -> MortgageInput:
    """Read an input snapshot from a JSON file."""
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    return MortgageInput.from_dict(data)


def export_to_json(path: Path, data: Dict[str, Any]) -> None:
    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


@click.group()
@click.option("--log-level", "log_level", default="WARNING", show_default=True, help="Logging level")
@click.option(
    "--constants",
    "constants_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON file overriding formula constants",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str, constants_path: Optional[Path]) -> None:
    """A French mortgage simulator: capacity, fees, TAEG and schedules."""
    setup_logging(log_level)
    ctx.ensure_object(dict)
    try:
        ctx.obj["constants"] = (
            load_constants(constants_path) if constants_path else FormulaConstants.from_env()
        )
    except ConfigurationError as exc:
        raise click.ClickException(str(exc))


@cli.command()
@click.option(
    "--input",
    "input_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="JSON input snapshot (replaces the other options)",
)
@click.option("--income", "incomes", multiple=True, help="Income in AMOUNT[:monthly|yearly] format")
@click.option("--expense", "expenses", multiple=True, help="Charge in AMOUNT[:monthly|yearly] format")
@click.option("--age", "age", type=int, help="Borrower age (insurance bracket)")
@click.option("--capital", "-c", "capital", help="Personal contribution")
@click.option("--duration", "-t", "duration", type=int, default=20, show_default=True, help="Loan duration in years")
@click.option("--dossier-fee", "dossier_fee", help="Bank dossier fee")
@click.option("--category", "category", type=click.Choice(["new", "old"]), default="old", show_default=True)
@click.option("--price", "-p", "price", help="Selected property price")
@click.option("--rate", "rates", multiple=True, help="Rate anchor in YEARS=RATE format (percent)")
@click.option("--rate-override", "rate_override", type=float, help="Use this annual rate instead of interpolating")
@click.option("--gigogne-rate", "gigogne_rate", type=float, help="Secondary loan annual rate (percent)")
@click.option("--gigogne-duration", "gigogne_duration", type=int, help="Secondary loan duration in years")
@click.option("--gigogne-max", "gigogne_max", help="Maximum secondary loan amount")
@click.option("--show-schedule", "show_schedule", is_flag=True, help="Print the amortization schedule")
@click.option("--output", "output", type=str, help="Output file path (.json)")
@click.pass_context
def simulate(
    ctx: click.Context,
    input_path: Optional[Path],
    incomes: Tuple[str, ...],
    expenses: Tuple[str, ...],
    age: Optional[int],
    capital: Optional[str],
    duration: int,
    dossier_fee: Optional[str],
    category: str,
    price: Optional[str],
    rates: Tuple[str, ...],
    rate_override: Optional[float],
    gigogne_rate: Optional[float],
    gigogne_duration: Optional[int],
    gigogne_max: Optional[str],
    show_schedule: bool,
    output: Optional[str],
) -> None:
    """Run a full simulation and print the summary."""
    try:
        if input_path:
            snapshot = load_input_file(input_path)
        else:
            snapshot = build_input_from_options(
                incomes,
                expenses,
                age,
                capital,
                duration,
                dossier_fee,
                category,
                price,
                rates,
                rate_override,
                gigogne_rate,
                gigogne_duration,
                gigogne_max,
            )
    except (MortgageCalcError, json.JSONDecodeError) as exc:
        raise click.BadParameter(str(exc))

    result = recalculate(snapshot, ctx.obj["constants"])
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Unsupported output format; use .json")
        export_to_json(path, result.to_dict())
        click.echo(f"Simulation exported to {path}")
        return
    print_summary(result)
    if show_schedule:
        print_schedule(result.schedule)


@cli.command()
@click.option("--principal", "-p", "principal", required=True, help="Loan amount")
@click.option("--rate", "-r", "rate", required=True, type=float, help="Annual interest rate (percent)")
@click.option("--duration", "-t", "duration", required=True, type=int, help="Loan duration in years")
@click.option("--age", "age", type=int, help="Borrower age (insurance bracket)")
@click.option("--yearly", "yearly", is_flag=True, help="Group the schedule by year")
@click.option("--output", "output", type=str, help="Output file path (.json)")
@click.pass_context
def schedule(
    ctx: click.Context,
    principal: str,
    rate: float,
    duration: int,
    age: Optional[int],
    yearly: bool,
    output: Optional[str],
) -> None:
    """Compute and print the amortization schedule of a single loan."""
    constants = ctx.obj["constants"]
    loan = _amount(principal)
    if rate < 0 or duration <= 0:
        raise click.BadParameter("Rate must not be negative and duration must be positive")
    insurance = monthly_insurance(loan, rate_for_age(age, constants=constants))
    rows = generate_schedule(LoanTerms(loan, rate, duration), insurance)
    if output:
        path = Path(output)
        if path.suffix.lower() != ".json":
            raise click.BadParameter("Unsupported output format; use .json")
        export_to_json(path, {"summary": summarize(rows), "schedule": [asdict(r) for r in rows]})
        click.echo(f"Schedule exported to {path}")
    elif yearly:
        print_yearly(yearly_totals(rows))
    else:
        print_schedule(rows)


@cli.command()
@click.option("--price", "-p", "price", required=True, help="Property price")
@click.option("--loan", "-l", "loan", help="Loan amount (for the guarantee)")
@click.option("--category", "category", type=click.Choice(["new", "old"]), default="old", show_default=True)
@click.option("--dossier-fee", "dossier_fee", help="Bank dossier fee")
@click.pass_context
def fees(
    ctx: click.Context,
    price: str,
    loan: Optional[str],
    category: str,
    dossier_fee: Optional[str],
) -> None:
    """Itemize notary fees and the loan guarantee."""
    constants = ctx.obj["constants"]
    price_value = _amount(price)
    breakdown = fee_breakdown(
        price_value, _amount(loan), category, _amount(dossier_fee), constants=constants
    )
    print_fees(breakdown, notary_fee_details(price_value, category, constants=constants))


if __name__ == "__main__":
    cli()
