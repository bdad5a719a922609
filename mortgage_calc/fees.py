"""Purchase fees: notary fees and loan guarantee.

The formulas follow the French regulated scales. Tier boundaries are
inclusive on the lower tier: a price exactly on a threshold gets no
contribution from the tier above it.
"""

from __future__ import annotations

from typing import Optional

from .config import FormulaConstants, resolve_constants
from .data_models import FeeBreakdown, NotaryFeeDetails, PropertyCategory


def notary_emoluments(price: float, *, constants: Optional[FormulaConstants] = None) -> float:
    """Return the notary's émoluments including VAT.

    The sliding scale is applied from the top tier down: the portion of the
    price above the highest threshold is charged the last rate, the portion
    between the two highest thresholds the rate before it, and so on down to
    the first tier.
    """
    scale = resolve_constants(constants).emoluments
    if price <= 0:
        return 0.0
    emoluments = 0.0
    remaining = price
    for threshold, rate in zip(reversed(scale.thresholds), reversed(scale.rates[1:])):
        if remaining > threshold:
            emoluments += (remaining - threshold) * rate
            remaining = threshold
    emoluments += remaining * scale.rates[0]
    return emoluments * scale.vat_factor


def transfer_tax(
    price: float,
    category: PropertyCategory | str,
    *,
    constants: Optional[FormulaConstants] = None,
) -> float:
    """Taxe de publicité foncière (new) or droits de mutation (old)."""
    if price <= 0:
        return 0.0
    taxes = resolve_constants(constants).property_tax
    if PropertyCategory(category) is PropertyCategory.NEW:
        return price * taxes.new
    return price * taxes.old


def notary_fee_details(
    price: float,
    category: PropertyCategory | str,
    *,
    constants: Optional[FormulaConstants] = None,
) -> NotaryFeeDetails:
    """Itemized notary fees for a purchase at ``price``."""
    if price <= 0:
        return NotaryFeeDetails(0.0, 0.0, 0.0, 0.0)
    constants = resolve_constants(constants)
    contribution = max(constants.contribution.minimum, price * constants.contribution.rate)
    return NotaryFeeDetails(
        emoluments=notary_emoluments(price, constants=constants),
        transfer_tax=transfer_tax(price, category, constants=constants),
        disbursements=constants.disbursements,
        security_contribution=contribution,
    )


def notary_fees(
    price: float,
    category: PropertyCategory | str,
    *,
    constants: Optional[FormulaConstants] = None,
) -> float:
    """Total notary fees (émoluments, taxes, disbursements, contribution)."""
    return notary_fee_details(price, category, constants=constants).total


def guarantee_fee(loan: float, *, constants: Optional[FormulaConstants] = None) -> float:
    """Caution Crédit Logement cost for a loan of ``loan``.

    Commission at the low rate up to and including the threshold, a fixed
    amount plus the high rate on the excess above it, plus the mutual
    guarantee fund share. The total is floored at the configured minimum.
    """
    if loan <= 0:
        return 0.0
    config = resolve_constants(constants).guarantee
    if loan <= config.threshold:
        commission = loan * config.commission_rate_low
    else:
        commission = config.commission_fixed + (loan - config.threshold) * config.commission_rate_high
    mutual_fund = loan * config.mutual_fund_rate
    return max(config.minimum, commission + mutual_fund)


def fee_breakdown(
    price: float,
    loan: float,
    category: PropertyCategory | str,
    dossier_fee: float,
    *,
    constants: Optional[FormulaConstants] = None,
) -> FeeBreakdown:
    return FeeBreakdown(
        notary_fees=notary_fees(price, category, constants=constants),
        guarantee_fee=guarantee_fee(loan, constants=constants),
        dossier_fee=dossier_fee,
    )
