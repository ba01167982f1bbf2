"""
Plain-text renderings of the compliance reports, for human-facing summaries
and for the context blocks fed to the analysis prompt.
"""
from datetime import date
from typing import Optional, Sequence

from compliance.allergens.constants import (
    HIGH_CONFIDENCE_MARKER,
    MATCH_TYPE_LABELS,
    MEDIUM_CONFIDENCE_MARKER,
    NO_ALLERGENS_TEXT,
)
from compliance.allergens.models import AllergenCheckResult, AllergenSummary
from compliance.gras.constants import CFR_CITATIONS
from compliance.gras.models import GRASComplianceReport
from compliance.ndi.constants import DSHEA_CUTOFF_TEXT
from compliance.ndi.models import NDIComplianceReport
from core.reference_records import NDINotificationRecord


def _us_date(value: Optional[date]) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def format_allergen_results(results: Sequence[AllergenCheckResult]) -> str:
    """e.g. "✓ Milk (derivative), ? Crustacean Shellfish (fuzzy match)" """
    if not results:
        return NO_ALLERGENS_TEXT

    parts = []
    for result in results:
        marker = HIGH_CONFIDENCE_MARKER if result.confidence == "high" else MEDIUM_CONFIDENCE_MARKER
        name = result.allergen.name if result.allergen else "Unknown"
        label = MATCH_TYPE_LABELS.get(result.matchType, MATCH_TYPE_LABELS["fuzzy"])
        parts.append(f"{marker} {name} ({label})")
    return ", ".join(parts)


def build_allergen_context(summary: AllergenSummary) -> str:
    counts = summary.summary
    if not summary.allergensDetected:
        text = (
            "\n## Major Food Allergens: No major food allergens detected\n\n"
            f"None of the {counts.totalIngredients} ingredients matched the nine major food "
            "allergens (FALCPA 2004, FASTER Act 2021).\n"
        )
    else:
        names = ", ".join(a.name for a in summary.allergensDetected)
        lines = "\n".join(
            f"- {item.ingredient}: {format_allergen_results(item.allergens)}"
            for item in summary.ingredientsWithAllergens
        )
        text = (
            f"\n## Major Food Allergens Detected: {names}\n\n"
            f"{counts.ingredientsWithAllergens} of {counts.totalIngredients} ingredient(s) contain or "
            f"derive from {counts.uniqueAllergensDetected} major food allergen(s):\n\n"
            f"{lines}\n\n"
            "Each major food allergen must be declared on the label, either in a \"Contains\" "
            "statement or parenthetically in the ingredient list (FALCPA Section 403(w), FASTER Act).\n"
            "Matches marked ? are lower-confidence and should be confirmed against the ingredient specification.\n"
        )

    if counts.unverifiedIngredients:
        text += (
            "\nThe following ingredient(s) could not be checked for allergens and require manual review: "
            f"{', '.join(counts.unverifiedIngredients)}\n"
        )
    return text


def build_gras_context(report: GRASComplianceReport) -> str:
    if report.totalIngredients == 0:
        return (
            "\n## GRAS Compliance Status: No ingredients to check\n\n"
            "No ingredients were provided, so GRAS status was not evaluated.\n"
        )

    if report.overallCompliant:
        return (
            "\n## GRAS Compliance Status: ✅ COMPLIANT\n\n"
            f"All {report.totalIngredients} ingredients are found in the FDA GRAS "
            "(Generally Recognized as Safe) database.\n"
            "This is a positive compliance indicator.\n"
        )

    non_gras_list = "\n".join(
        f"{idx}. {ing}" for idx, ing in enumerate(report.nonGRASIngredients, start=1)
    )
    return (
        "\n## 🚨 CRITICAL: GRAS Compliance Issue Detected\n\n"
        f"The following {len(report.nonGRASIngredients)} ingredient(s) are NOT found in the FDA GRAS database:\n\n"
        f"{non_gras_list}\n\n"
        "IMPORTANT: Ingredients not in the GRAS database may:\n"
        "- Require FDA pre-market approval (food additive petition)\n"
        "- Be prohibited substances\n"
        "- Require special GRAS determination\n"
        "- Need specific usage limitations or conditions\n\n"
        "This is a CRITICAL COMPLIANCE ISSUE and should be flagged as a major violation.\n\n"
        "Instructions for AI:\n"
        "1. Mark this as a CRITICAL PRIORITY recommendation\n"
        "2. Advise removal of non-GRAS ingredients OR obtaining proper FDA approval\n"
        "3. Include specific ingredient names in your recommendations\n"
        f"4. Cite {CFR_CITATIONS}\n"
    )


def format_ndi_info(record: NDINotificationRecord) -> str:
    """e.g. "NDI Notification #1 (RPT-001) - Firm: Acme - Submitted: 1/15/2020" """
    parts = [
        f"NDI Notification #{record.notification_number}",
        f"({record.report_number})" if record.report_number else "",
        f"- Firm: {record.firm}" if record.firm else "",
        f"- Submitted: {_us_date(record.submission_date)}" if record.submission_date else "",
        f"- FDA Response: {_us_date(record.fda_response_date)}" if record.fda_response_date else "",
    ]
    return " ".join(p for p in parts if p)


def build_ndi_context(report: NDIComplianceReport) -> str:
    summary = report.summary
    if summary.totalChecked == 0:
        return (
            "\n## NDI Status: No ingredients to check\n\n"
            "No dietary ingredients were provided, so NDI status was not evaluated.\n"
        )

    lines = [
        "\n## New Dietary Ingredient (NDI) Status (informational)\n",
        f"Checked {summary.totalChecked} ingredient(s): {summary.withNDI} with an NDI notification on file, "
        f"{summary.withoutNDI} without.",
    ]

    on_file = [r for r in report.results if r.hasNDI and r.ndiMatch]
    if on_file:
        lines.append("\nIngredients with NDI notifications:")
        lines.extend(f"- {r.ingredient}: {format_ndi_info(r.ndiMatch)}" for r in on_file)

    needs_check = [r.ingredient for r in report.results if r.requiresNDI]
    if needs_check:
        lines.append(
            f"\nThe following {len(needs_check)} ingredient(s) were not found in the NDI database and are "
            f"not recognized as marketed before {DSHEA_CUTOFF_TEXT}:"
        )
        lines.extend(f"{idx}. {ing}" for idx, ing in enumerate(needs_check, start=1))
        lines.append(
            "\nThis is NOT a confirmed violation: the reference data is incomplete and most of these are "
            "simply absent from it. Recommend verifying that each ingredient was marketed before "
            f"{DSHEA_CUTOFF_TEXT} or that an NDI notification was submitted 75 days before marketing "
            "(DSHEA, FD&C Act §413)."
        )

    unverified = [r.ingredient for r in report.results if r.verificationError]
    if unverified:
        lines.append(
            f"\nNDI status could not be verified (manual review required): {', '.join(unverified)}"
        )

    return "\n".join(lines) + "\n"
