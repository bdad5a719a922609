"""Output helpers for the mortgage calculator.

This module renders results, fee breakdowns and amortization schedules in a
plain tabular text format for the command-line interface. Currency and
percentage display in richer front ends is left to them.
"""

from __future__ import annotations

from typing import Iterable, List

from .data_models import AmortizationRow, FeeBreakdown, GigogneRow, MortgageResult, NotaryFeeDetails


def print_summary(result: MortgageResult) -> None:
    """Print the headline figures of a recalculation."""
    print("Summary")
    print("-" * 72)
    print(f"Monthly income       : {result.monthly_income:.2f}")
    print(f"Monthly charges      : {result.monthly_charges:.2f}")
    print(f"Max monthly payment  : {result.max_monthly_payment:.2f}")
    print(f"Interest rate        : {result.interest_rate:.3f}%")
    print(f"Max loan             : {result.max_loan:.2f}")
    print(f"Max property price   : {result.max_affordable_price:.2f}")
    print(f"Required loan        : {result.required_loan.loan:.2f}")
    print(f"Monthly payment      : {result.monthly_payment:.2f}")
    print(f"Monthly insurance    : {result.monthly_insurance:.2f}")
    print(f"Payment w/ insurance : {result.monthly_payment_with_insurance:.2f}")
    print(f"Total cost           : {result.total_cost:.2f}")
    print(f"Total interest       : {result.total_interest:.2f}")
    print(f"Total insurance      : {result.total_insurance:.2f}")
    print(f"TAEG                 : {result.taeg.value:.3f}%")
    print(f"Debt ratio           : {result.debt_ratio:.1f}%")
    if result.gigogne:
        print(f"Primary loan         : {result.gigogne.primary_amount:.2f}")
        print(f"Secondary loan       : {result.gigogne.actual_amount:.2f}")
        print(f"Secondary optimum    : {result.gigogne.optimal_amount:.2f}")
    print("-" * 72)
    print_fees(result.fees)


def print_fees(fees: FeeBreakdown, notary: NotaryFeeDetails | None = None) -> None:
    """Print a fee breakdown, optionally itemizing the notary fees."""
    print("Fees")
    print("-" * 72)
    if notary is not None:
        print(f"  Emoluments         : {notary.emoluments:.2f}")
        print(f"  Transfer tax       : {notary.transfer_tax:.2f}")
        print(f"  Disbursements      : {notary.disbursements:.2f}")
        print(f"  Security contrib.  : {notary.security_contribution:.2f}")
    print(f"Notary fees          : {fees.notary_fees:.2f}")
    print(f"Guarantee            : {fees.guarantee_fee:.2f}")
    print(f"Dossier fee          : {fees.dossier_fee:.2f}")
    print(f"Total fees           : {fees.total:.2f}")
    print("-" * 72)


def print_schedule(schedule: Iterable[AmortizationRow]) -> None:
    """Print the amortization schedule as a simple table.

    Two-tranche rows get extra columns for the primary and secondary
    balances.
    """
    rows: List[AmortizationRow] = list(schedule)
    two_tranches = bool(rows) and isinstance(rows[0], GigogneRow)
    headers = ["Month", "Year", "Payment", "Principal", "Interest", "Insurance", "Paid", "Remaining"]
    if two_tranches:
        headers += ["Primary", "Secondary"]
    print("\t".join(headers))
    for row in rows:
        cells = [
            str(row.period),
            str(row.year),
            f"{row.payment:.2f}",
            f"{row.principal:.2f}",
            f"{row.interest:.2f}",
            f"{row.insurance:.2f}",
            f"{row.cumulative_paid:.2f}",
            f"{row.remaining:.2f}",
        ]
        if isinstance(row, GigogneRow):
            cells += [f"{row.primary_remaining:.2f}", f"{row.secondary_remaining:.2f}"]
        print("\t".join(cells))


def print_yearly(totals: Iterable[dict]) -> None:
    """Print per-year totals of a schedule."""
    print("\t".join(["Year", "Payment", "Principal", "Interest", "Insurance", "Remaining"]))
    for entry in totals:
        print(
            "\t".join(
                [
                    str(entry["year"]),
                    f"{entry['payment']:.2f}",
                    f"{entry['principal']:.2f}",
                    f"{entry['interest']:.2f}",
                    f"{entry['insurance']:.2f}",
                    f"{entry['remaining']:.2f}",
                ]
            )
        )
