"""
Instruction text for plan extraction.

Two variants: foundation plans (default) and plot/grading plans, picked from
the caller's document type.
"""

from typing import Optional

from pipeline.models.dto import AnalysisContext

ESTIMATOR_ROLE = "You are a senior concrete and excavation estimator for Watren Concrete."

FOUNDATION_HEADER = (
    "You are reading either a FOUNDATION PLAN IMAGE or a MULTI-PAGE FOUNDATION PDF."
)
PLOT_GRADING_HEADER = (
    "You are reading a residential PLOT / GRADING PLAN image or multi-page PDF."
)

FOUNDATION_JOB = [
    "Your job:",
    "1) Carefully read ALL visible notes, schedules, and callouts.",
    "2) Extract SPECIFIC, ESTIMATION-READY DATA into the JSON schema fields provided.",
    "3) Avoid vague wording. When possible, include actual numbers (sizes, spacings, strengths).",
    "",
    "If an item truly is not present or cannot be read, leave that field as an empty string. "
    "Do NOT make up numbers.",
    "",
    "Important:",
    "- Include any wall heights, slab thicknesses, footing sizes, and concrete strengths you can read.",
    '- Include key rebar sizes and spacings (e.g., "#4 @ 12\\" o.c. horiz / vert").',
    "- Note special features that affect cost (retaining conditions, turndowns, piers, "
    "thickened slabs, etc.).",
    "- If the subdivision name is visible anywhere, put it in lot_info.subdivision.",
]

PLOT_GRADING_JOB = [
    "Your job:",
    "1) Carefully read ALL visible notes, schedules, callouts, dimension strings, and "
    "scale/graphic bars on the plot/grading plan.",
    "2) Extract SPECIFIC, ESTIMATION-READY DATA into the JSON schema fields provided.",
    "3) Focus especially on:",
    "   - Water service route and length from meter pit (W) to house "
    "(estimation_data.water_service_length_ft).",
    "   - Sanitary sewer route and length from stub (S) to house "
    "(estimation_data.sewer_service_length_ft).",
    "   - Lot area (estimation_data.lot_area_sqft).",
    "   - House footprint area (estimation_data.house_footprint_area_sqft).",
    "   - Grading area = lot area minus house footprint (estimation_data.grading_area_sqft) "
    "when both are known.",
    "   - Top of foundation elevation (estimation_data.top_of_foundation_elev_ft).",
    "   - Total foundation wall linear footage if reasonably determinable "
    "(estimation_data.foundation_wall_total_lf).",
    "   - Any notable options or grading-related conditions and assumptions "
    "(estimation_data.plot_grading_notes).",
    "",
    "Water / sewer measurement rules (very important):",
    "- Identify the W (water meter pit) and S (sewer stub) symbols and the lines from those "
    "symbols to the house.",
    "- If a legible scale note (for example \"1\\\"=20'-0\") or a graphic scale bar is present, "
    "you MUST attempt to estimate the water and sewer line lengths using that scale.",
    "- Use dimension text when available. Otherwise, measure using the scale and provide a "
    "reasonable estimate in feet, rounded to the nearest whole foot.",
    "- For each service, set estimation_data.<service>_length_method to one of:",
    '   "dimension_text" (if the length is clearly labeled),',
    '   "scale_bar_approx" (if estimated via scale/graphic bar),',
    '   "inferred_from_property_dims" (if inferred from known lot dimensions and offsets),',
    '   "unknown" (if you truly cannot determine the length).',
    "",
    "General rules:",
    "- Avoid wild guessing. When a value is not clearly stated or reasonably inferred from "
    'dimensions/scale, leave that field as an empty string ("").',
    "- If you approximate a value using the scale, keep it reasonable, and mention the "
    "assumption in unusual_items or structural_notes or estimation_data.plot_grading_notes.",
    "- Do NOT invent obviously unrealistic numbers.",
]


def is_plot_or_grading(doc_type: Optional[str]) -> bool:
    lowered = (doc_type or "").lower()
    return "plot" in lowered or "grading" in lowered


def build_instruction(context: AnalysisContext, estimate_id: Optional[str] = None) -> str:
    """Build the instruction block for one request.

    Context values are only included when present.
    """
    plot = is_plot_or_grading(context.doc_type)

    header = [
        ESTIMATOR_ROLE,
        PLOT_GRADING_HEADER if plot else FOUNDATION_HEADER,
        "",
    ]
    job = PLOT_GRADING_JOB if plot else FOUNDATION_JOB

    context_lines = [
        "",
        "Context (may help you interpret the plan):",
        f"Estimate ID: {estimate_id or 'Unknown'}",
    ]
    for label, value in (
        ("Project", context.project),
        ("Address", context.address),
        ("Builder", context.builder),
        ("Community", context.community),
        ("Document type", context.doc_type),
    ):
        if value:
            context_lines.append(f"{label}: {value}")

    return "\n".join(header + job + context_lines)
